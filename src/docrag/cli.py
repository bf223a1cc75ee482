"""Command-line entry point.

    docrag ingest https://www.npmjs.com/package/openai
    docrag query "How to make an API call to OpenAI?"
    docrag list
"""

from __future__ import annotations

import argparse
import logging
import sys

from docrag import services
from docrag.config import settings
from docrag.errors import DocRagError
from docrag.listing import format_listing, list_documents

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docrag", description="Minimal retrieval-augmented QA.")
    parser.add_argument("--log-level", default=settings.log_level, help="logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="fetch, chunk, embed and store documents")
    ingest.add_argument("sources", nargs="+", help="URLs or file paths")
    ingest.add_argument(
        "--source-type",
        choices=["markdown_service", "html", "file"],
        default=None,
        help="how sources are fetched (default: settings.document_source)",
    )

    query = sub.add_parser("query", help="answer a question from the stored documents")
    query.add_argument("question")

    sub.add_parser("list", help="show the stored documents")
    return parser


def _ingest(args: argparse.Namespace) -> int:
    pipeline = services.build_ingestion_pipeline(source_type=args.source_type)
    results = pipeline.add_documents(args.sources)
    for r in results:
        if r.ok:
            print(f"{r.source}: {r.chunk_count} chunks")
        else:
            print(f"{r.source}: FAILED ({r.error})")
    return 0 if all(r.ok for r in results) else 1


def _query(args: argparse.Namespace) -> int:
    answer = services.build_query_pipeline().run(args.question)
    print(f"Response: {answer.answer}")
    if answer.sources:
        print("\nSources:")
        for citation in answer.sources:
            print(f"  {citation.short_ref()}")
    return 0


def _list(args: argparse.Namespace) -> int:
    print(format_listing(list_documents(services.build_store())))
    return 0


_COMMANDS = {"ingest": _ingest, "query": _query, "list": _list}


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return _COMMANDS[args.command](args)
    except DocRagError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
