"""Command-line entry point: ingest a corpus, search it, or serve the API.

    public-mind ingest [DOCS_DIR]
    public-mind search "What are the development permit areas?" --top-k 3
    public-mind serve
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from pydantic import ValidationError

from public_mind.bootstrap import build_coordinator, build_retriever, build_vector_store
from public_mind.config import Settings, get_settings
from public_mind.exceptions import ConfigurationError, PublicMindError

logger = logging.getLogger(__name__)


def _ingest(args: argparse.Namespace, settings: Settings) -> int:
    # Validate chunking settings before touching the store.
    store = build_vector_store(settings)
    coordinator = build_coordinator(settings, store=store)
    store.ensure_schema()

    def _on_signal(signum, frame) -> None:  # noqa: ANN001
        logger.warning("Received signal %d; stopping after the current stage", signum)
        coordinator.cancel()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    summary = coordinator.ingest_directory(args.docs_dir or settings.docs_dir)
    for outcome in summary.outcomes:
        if outcome.error is not None:
            print(f"FAILED  {outcome.document_name} [{outcome.stage.value}]: {outcome.error}")
    print(
        f"Ingestion complete: {summary.processed} processed, "
        f"{summary.skipped} skipped, {summary.failed} failed"
    )
    return 1 if summary.failed or summary.cancelled else 0


def _search(args: argparse.Namespace, settings: Settings) -> int:
    retriever = build_retriever(settings)
    results = retriever.retrieve(args.question, top_k=args.top_k)
    print(f"Found {len(results)} similar chunks")
    for i, hit in enumerate(results, 1):
        print(f"--- Result {i} ---")
        print(f"File: {hit.document_name}")
        print(f"Similarity: {hit.similarity:.3f}")
        print(f"Text: {hit.content[:200]}\n")
    return 0


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    uvicorn.run(
        "public_mind.serving.app:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="public-mind", description="Document ingestion and retrieval")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Ingest every supported document under a directory")
    ingest.add_argument("docs_dir", nargs="?", default=None, help="Defaults to settings.docs_dir")
    ingest.set_defaults(handler=_ingest)

    search = sub.add_parser("search", help="Print the chunks most similar to a question")
    search.add_argument("question")
    search.add_argument("--top-k", type=int, default=None)
    search.set_defaults(handler=_search)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(handler=_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = get_settings()
        logging.getLogger().setLevel(settings.log_level.upper())
        return args.handler(args, settings)
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    except PublicMindError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
