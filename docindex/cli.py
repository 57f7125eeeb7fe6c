"""Command-line interface for crawling, searching and looking up documentation."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "docindex"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"
DEFAULT_STORE_DIR = Path.home() / ".cache" / "docindex" / "pages"


def _load_config() -> None:
    """Load .env configuration with fallback to user config directory.

    Search order:
    1. .env in current working directory
    2. ~/.config/docindex/.env
    """
    local_env = Path.cwd() / ".env"
    if local_env.is_file():
        load_dotenv(local_env)
        return

    if CONFIG_ENV_FILE.is_file():
        load_dotenv(CONFIG_ENV_FILE)


_load_config()

from .config import load_site_settings
from .engine import DocsEngine
from .fetch import HttpFetcher
from .lookup import find_code_examples, find_mutation, find_schema_type
from .search import Facets, SearchHit
from .site import SiteCrawlOptions, SiteCrawlResult
from .store import FileDocumentStore


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _store_dir(value: Optional[str]) -> Path:
    return Path(value or os.getenv("DOCINDEX_STORE_DIR") or DEFAULT_STORE_DIR).expanduser()


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Directory of stored pages (default: $DOCINDEX_STORE_DIR or ~/.cache/docindex/pages)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _crawl_result_to_dict(result: SiteCrawlResult) -> Dict[str, Any]:
    return {
        "discovered_urls": result.discovered_urls,
        "crawled_urls": result.crawled_urls,
        "failed_urls": result.failed_urls,
        "cached_urls": result.cached_urls,
        "duration": round(result.duration, 3),
    }


def _format_crawl_markdown(result: SiteCrawlResult, indexed: int) -> str:
    lines = [
        "# Crawl Complete",
        "",
        f"**Duration**: {result.duration:.2f}s",
        f"**Pages discovered**: {len(result.discovered_urls)}",
        f"**Pages crawled**: {len(result.crawled_urls)}",
        f"**Already stored**: {len(result.cached_urls)}",
        f"**Failed**: {len(result.failed_urls)}",
        f"**Documents indexed**: {indexed}",
    ]
    if result.failed_urls:
        lines.append("")
        lines.append("## Failed pages")
        lines.extend(f"- {url}" for url in result.failed_urls)
    return "\n".join(lines)


def _format_search_markdown(query: str, hits: List[SearchHit]) -> str:
    """Format search hits as markdown.

    Example output:
    # Search: product

    ## 1. Product Mutations
    https://ikas.dev/docs/api/admin-api/products
    _Score: 45_

    ...create a product with the saveProduct mutation...

    ---
    """
    lines = [f"# Search: {query}", f"_Found {len(hits)} results_", ""]
    for i, hit in enumerate(hits, 1):
        lines.append(f"## {i}. {hit.title}")
        lines.append(hit.url)
        lines.append(f"_Score: {hit.score}_")
        lines.append("")
        if hit.snippet:
            lines.append(hit.snippet)
            lines.append("")
        lines.append("---")
        lines.append("")
    return "\n".join(lines)


def _format_facets_markdown(facets: Facets) -> str:
    lines = ["# Categories", ""]
    lines.extend(f"- {facet.name}: {facet.count} pages" for facet in facets.categories)
    lines.extend(["", "# Document types", ""])
    lines.extend(f"- {facet.name}: {facet.count} pages" for facet in facets.doc_types)
    return "\n".join(lines)


def _facets_to_dict(facets: Facets) -> Dict[str, Any]:
    return {
        "categories": [{"name": f.name, "count": f.count} for f in facets.categories],
        "doc_types": [{"name": f.name, "count": f.count} for f in facets.doc_types],
    }


# =============================================================================
# CRAWL COMMAND
# =============================================================================


def _parse_crawl_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="docindex-crawl",
        description="Crawl the documentation site and store extracted pages.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Crawl with defaults (site from DOCINDEX_BASE_URL)
  docindex-crawl

  # Small, fast crawl
  docindex-crawl --max-pages 20 --max-depth 2 --delay 0.2

  # Restrict to the API reference
  docindex-crawl --include '/docs/api/'
""",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=50,
        help="Maximum pages to visit (default: 50)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Maximum link depth from the seed pages (default: 10)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=1.0,
        help="Seconds to wait after each fresh fetch (default: 1.0)",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        help="Regex a URL must match to be crawled (repeatable)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Regex that rejects a URL (repeatable)",
    )
    parser.add_argument(
        "--include-subdomains",
        action="store_true",
        help="Follow links to subdomains of the site",
    )
    parser.add_argument(
        "--no-sitemap",
        action="store_true",
        help="Do not seed the crawl from sitemap.xml",
    )
    _add_common_args(parser)
    return parser.parse_args(argv)


async def _run_crawl_async(args: argparse.Namespace) -> int:
    site = load_site_settings()
    store = FileDocumentStore(_store_dir(args.store))
    options = SiteCrawlOptions(
        max_depth=args.max_depth,
        max_pages=args.max_pages,
        delay=args.delay,
        include_patterns=args.include,
        exclude_patterns=args.exclude,
        include_subdomains=args.include_subdomains,
        use_sitemap=not args.no_sitemap,
    )

    async with HttpFetcher(site) as fetcher:
        engine = DocsEngine(store, fetcher, site)
        result = await engine.crawl(options)

    if args.json_output:
        payload = _crawl_result_to_dict(result)
        payload["indexed"] = len(engine.index)
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(_format_crawl_markdown(result, len(engine.index)))

    return 0 if result.crawled_urls or not result.discovered_urls else 1


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the crawl command."""
    args = _parse_crawl_args(argv)
    _setup_logging(args.verbose)

    try:
        return asyncio.run(_run_crawl_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


# =============================================================================
# SEARCH COMMAND
# =============================================================================


def _parse_search_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="docindex-search",
        description="Search stored documentation pages.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  docindex-search "product mutation"
  docindex-search orders --category api --limit 5
  docindex-search webhook --type guide --json
""",
    )
    parser.add_argument("query", help="Search query")
    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum results (default: 10)",
    )
    parser.add_argument(
        "--category",
        type=str,
        default=None,
        help="Only pages of this category (e.g. api)",
    )
    parser.add_argument(
        "--type",
        type=str,
        dest="doc_type",
        default=None,
        choices=["api", "graphql", "playground", "guide", "general"],
        help="Only pages of this document type",
    )
    _add_common_args(parser)
    return parser.parse_args(argv)


def _build_engine(store: Optional[str]) -> DocsEngine:
    engine = DocsEngine(FileDocumentStore(_store_dir(store)), site=load_site_settings())
    engine.rebuild_index()
    return engine


def search_main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the search command."""
    args = _parse_search_args(argv)
    _setup_logging(args.verbose)

    try:
        engine = _build_engine(args.store)
        hits = engine.search(
            args.query,
            limit=args.limit,
            category=args.category,
            doc_type=args.doc_type,
        )
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1

    if args.json_output:
        payload = {"query": args.query, "results": [hit.to_dict() for hit in hits]}
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(_format_search_markdown(args.query, hits))
    return 0


# =============================================================================
# LOOKUP COMMAND
# =============================================================================


def _parse_lookup_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="docindex-lookup",
        description="Look up schema types, operations, code samples and facets.",
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--schema", metavar="NAME", help="Find a schema type by name")
    group.add_argument(
        "--doc-type",
        metavar="TYPE",
        help="List pages of a document type",
    )
    group.add_argument(
        "--mutation",
        nargs=2,
        metavar=("ACTION", "ENTITY"),
        help="Find a mutation, e.g. --mutation create Product",
    )
    group.add_argument("--example", metavar="TOPIC", help="Find code examples")
    group.add_argument(
        "--facets",
        action="store_true",
        help="Show category and document type counts",
    )
    parser.add_argument(
        "--language",
        default=None,
        help="Language filter for --example (e.g. graphql)",
    )
    _add_common_args(parser)
    return parser.parse_args(argv)


def _lookup(args: argparse.Namespace, engine: DocsEngine) -> Any:
    store = engine.store
    if args.schema:
        return [
            {
                "url": match.url,
                "exact": match.exact,
                "fragment": match.fragment.to_dict(),
            }
            for match in find_schema_type(store, args.schema)
        ]
    if args.doc_type:
        return [hit.to_dict() for hit in engine.find_by_doc_type(args.doc_type)]
    if args.mutation:
        action, entity = args.mutation
        return [
            {
                "url": match.url,
                "name": match.field.name,
                "signature": match.field.type_signature,
                "arguments": match.field.arguments,
                "description": match.field.description,
            }
            for match in find_mutation(store, action, entity)
        ]
    if args.example:
        return [
            {
                "url": match.url,
                "relevance": match.relevance,
                "example": match.example.to_dict(),
            }
            for match in find_code_examples(store, args.example, args.language)
        ]
    return _facets_to_dict(engine.facets())


def lookup_main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the lookup command."""
    args = _parse_lookup_args(argv)
    _setup_logging(args.verbose)

    try:
        engine = _build_engine(args.store)
        payload = _lookup(args, engine)
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1

    if args.facets and not args.json_output:
        print(_format_facets_markdown(engine.facets()))
    else:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if payload else 1


if __name__ == "__main__":
    sys.exit(main())
