"""Facade tying the crawler, the store and the search index together."""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import SiteSettings
from .document import StoredDocument
from .fetch import Fetcher
from .links import brand_name
from .search import Facets, IndexStats, SearchHit, SearchIndex
from .site import SiteCrawlOptions, SiteCrawlResult, crawl_site_async, fetch_document
from .store import DocumentStore

LOGGER = logging.getLogger(__name__)


class DocsEngine:
    """Crawl, search and lookup operations over one documentation site.

    The index is only ever rebuilt from the store as a whole; a crawl
    triggers a rebuild when it finishes.
    """

    def __init__(
        self,
        store: DocumentStore,
        fetcher: Optional[Fetcher] = None,
        site: Optional[SiteSettings] = None,
    ):
        self.store = store
        self.fetcher = fetcher
        self.site = site or SiteSettings()
        brand = brand_name(self.site.base_url)
        self.index = SearchIndex(extra_stopwords=[brand] if brand else ())

    def _require_fetcher(self) -> Fetcher:
        if self.fetcher is None:
            raise RuntimeError("DocsEngine was created without a fetcher")
        return self.fetcher

    async def crawl(self, options: Optional[SiteCrawlOptions] = None) -> SiteCrawlResult:
        result = await crawl_site_async(
            self._require_fetcher(), self.store, options, site=self.site
        )
        self.rebuild_index()
        return result

    def rebuild_index(self) -> int:
        """Clear the index and add every stored document; returns the count."""
        self.index.clear()
        count = 0
        for url in self.store.list():
            document = self.store.get(url)
            if document is None:
                continue
            self.index.add_document(document)
            count += 1
        LOGGER.info("Index rebuilt with %d documents", count)
        return count

    async def get_page(self, url: str) -> StoredDocument:
        """Return the stored page, fetching and persisting it on a miss."""
        document = self.store.get(url)
        if document is not None:
            return document
        document = await fetch_document(self._require_fetcher(), url, site=self.site)
        self.store.put(url, document)
        return document

    def search(
        self,
        query: str,
        *,
        limit: int = 10,
        category: Optional[str] = None,
        doc_type: Optional[str] = None,
    ) -> List[SearchHit]:
        return self.index.search(query, limit=limit, category=category, doc_type=doc_type)

    def facets(self) -> Facets:
        return self.index.facets()

    def stats(self) -> IndexStats:
        return self.index.stats()

    def find_by_schema_name(self, name: str) -> List[SearchHit]:
        return self.index.find_by_schema_name(name)

    def find_by_doc_type(self, doc_type: str) -> List[SearchHit]:
        return self.index.find_by_doc_type(doc_type)
