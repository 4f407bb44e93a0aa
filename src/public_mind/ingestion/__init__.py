"""
Ingestion — document discovery, chunking, embedding and persistence.

This module converts raw documents (PDF, Markdown, plain text) into
embedded chunks stored in a vector database, one document at a time and
without duplicating documents that are already stored.
"""
