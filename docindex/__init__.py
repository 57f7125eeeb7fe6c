"""Documentation site crawler, structured extractor and search index.

This package discovers pages on a documentation site, extracts structured
knowledge from their HTML and answers keyword and faceted lookups. It
supports:

- Site crawling with depth/page limits (BFS strategy)
- Extraction of sections, schema fragments, code samples and endpoints
- Scored keyword search with category and document-type filters
- Schema, mutation and code-sample lookups

Example usage:

    from docindex import DocsEngine, HttpFetcher, MemoryDocumentStore

    async with HttpFetcher() as fetcher:
        engine = DocsEngine(MemoryDocumentStore(), fetcher)
        result = await engine.crawl(SiteCrawlOptions(max_pages=20))

    for hit in engine.search("product mutation", limit=5):
        print(hit.score, hit.title, hit.url)

    # Structured extraction without the crawler
    content = extract_content(html, "https://ikas.dev/docs/intro")
    for fragment in content.schema_fragments:
        print(fragment.kind.value, fragment.name)
"""

from __future__ import annotations

import asyncio
from typing import Optional

from .config import SiteSettings, load_site_settings
from .document import (
    CodeExample,
    Endpoint,
    ExtractedContent,
    FetchedPage,
    FragmentKind,
    NavLink,
    PageMetadata,
    RelatedPage,
    SchemaField,
    SchemaFragment,
    Section,
    StoredDocument,
)
from .engine import DocsEngine
from .extract import extract_content
from .fetch import Fetcher, FetchError, HttpFetcher
from .lookup import (
    find_code_examples,
    find_endpoints,
    find_field,
    find_mutation,
    find_query,
    find_schema_type,
)
from .schema import classify_block
from .search import Facets, SearchHit, SearchIndex
from .site import SiteCrawlOptions, SiteCrawlResult, crawl_site, crawl_site_async
from .store import DocumentStore, FileDocumentStore, MemoryDocumentStore

__all__ = [
    # Document types
    "FetchedPage",
    "ExtractedContent",
    "Section",
    "SchemaFragment",
    "SchemaField",
    "FragmentKind",
    "CodeExample",
    "Endpoint",
    "NavLink",
    "RelatedPage",
    "PageMetadata",
    "StoredDocument",
    # Collaborators
    "Fetcher",
    "FetchError",
    "HttpFetcher",
    "DocumentStore",
    "MemoryDocumentStore",
    "FileDocumentStore",
    # Extraction
    "extract_content",
    "classify_block",
    # Crawl
    "SiteCrawlOptions",
    "SiteCrawlResult",
    "crawl_site",
    "crawl_site_async",
    "crawl_docs",
    "crawl_docs_async",
    # Search and lookup
    "SearchIndex",
    "SearchHit",
    "Facets",
    "DocsEngine",
    "find_schema_type",
    "find_field",
    "find_mutation",
    "find_query",
    "find_code_examples",
    "find_endpoints",
    # Config
    "SiteSettings",
    "load_site_settings",
]


async def crawl_docs_async(
    store: DocumentStore,
    options: Optional[SiteCrawlOptions] = None,
    *,
    site: Optional[SiteSettings] = None,
) -> DocsEngine:
    """
    Crawl the site into store with an HttpFetcher and return an indexed engine.

    Args:
        store: Where fetched documents are persisted.
        options: Crawl limits and admission patterns.
        site: Site description; defaults to the environment-derived settings.

    Returns:
        DocsEngine whose index holds every stored document.
    """
    site = site or load_site_settings()
    async with HttpFetcher(site) as fetcher:
        engine = DocsEngine(store, fetcher, site)
        await engine.crawl(options)
    engine.fetcher = None
    return engine


def crawl_docs(
    store: DocumentStore,
    options: Optional[SiteCrawlOptions] = None,
    *,
    site: Optional[SiteSettings] = None,
) -> DocsEngine:
    """Synchronous wrapper for crawl_docs_async."""
    return asyncio.run(crawl_docs_async(store, options, site=site))
