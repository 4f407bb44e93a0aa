"""
Serving — FastAPI application for the retrieval pipeline.

Exposes ``/health`` and ``/ask`` so the corpus can be queried over HTTP.
"""
