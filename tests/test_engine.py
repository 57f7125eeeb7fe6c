"""Tests for docindex.engine module."""

from __future__ import annotations

from typing import Dict

import pytest
from conftest import PRODUCTS_HTML, make_document, product_fragment

from docindex.config import SiteSettings
from docindex.engine import DocsEngine
from docindex.fetch import FetchError
from docindex.site import SiteCrawlOptions
from docindex.store import MemoryDocumentStore

PRODUCTS = "https://ikas.dev/docs/api/admin-api/products"
ORDERS = "https://ikas.dev/docs/api/admin-api/orders"


class StaticFetcher:
    def __init__(self, pages: Dict[str, str]):
        self.pages = pages
        self.count = 0

    async def fetch(self, url: str, *, render: bool = False) -> str:
        self.count += 1
        if url not in self.pages:
            raise FetchError("not found", url=url)
        return self.pages[url]


def _site() -> SiteSettings:
    return SiteSettings(seed_paths=["/docs/api/admin-api/products"])


class TestDocsEngine:
    @pytest.mark.asyncio
    async def test_crawl_rebuilds_index(self):
        orders_html = "<html><body><h1>Orders</h1><main>List orders.</main></body></html>"
        fetcher = StaticFetcher({PRODUCTS: PRODUCTS_HTML, ORDERS: orders_html})
        engine = DocsEngine(MemoryDocumentStore(), fetcher, _site())

        result = await engine.crawl(SiteCrawlOptions(delay=0, use_sitemap=False))

        assert result.crawled_urls == [PRODUCTS, ORDERS]
        assert len(engine.index) == 2
        hits = engine.search("products")
        assert hits[0].url == PRODUCTS
        assert [h.url for h in engine.find_by_schema_name("Product")] == [PRODUCTS]
        assert engine.stats().total_documents == 2

    def test_rebuild_index_replaces_state(self):
        store = MemoryDocumentStore()
        store.put(PRODUCTS, make_document(PRODUCTS, "Products", fragments=[product_fragment()]))
        engine = DocsEngine(store)
        assert engine.rebuild_index() == 1

        store.put(ORDERS, make_document(ORDERS, "Orders"))
        assert engine.rebuild_index() == 2
        assert len(engine.index) == 2
        assert [f.name for f in engine.facets().doc_types] == ["api"]

    def test_brand_stopword_from_site(self):
        store = MemoryDocumentStore()
        store.put(PRODUCTS, make_document(PRODUCTS, "ikas Products"))
        engine = DocsEngine(store)
        engine.rebuild_index()
        assert "ikas" not in engine.index.get(PRODUCTS).keywords

    def test_lookup_by_doc_type(self):
        store = MemoryDocumentStore()
        store.put(PRODUCTS, make_document(PRODUCTS, "Products"))
        engine = DocsEngine(store)
        engine.rebuild_index()
        assert [h.url for h in engine.find_by_doc_type("api")] == [PRODUCTS]
        assert engine.find_by_doc_type("guide") == []

    @pytest.mark.asyncio
    async def test_get_page_hits_store_first(self):
        store = MemoryDocumentStore()
        document = make_document(PRODUCTS, "Products")
        store.put(PRODUCTS, document)
        fetcher = StaticFetcher({})
        engine = DocsEngine(store, fetcher)

        assert await engine.get_page(PRODUCTS) is document
        assert fetcher.count == 0

    @pytest.mark.asyncio
    async def test_get_page_fetches_and_stores_on_miss(self):
        store = MemoryDocumentStore()
        engine = DocsEngine(store, StaticFetcher({PRODUCTS: PRODUCTS_HTML}))

        document = await engine.get_page(PRODUCTS)

        assert document.content.title == "Products"
        assert store.get(PRODUCTS) is document

    @pytest.mark.asyncio
    async def test_requires_fetcher_for_network_operations(self):
        engine = DocsEngine(MemoryDocumentStore())
        with pytest.raises(RuntimeError):
            await engine.crawl()
        with pytest.raises(RuntimeError):
            await engine.get_page(PRODUCTS)

    def test_rebuild_index_is_idempotent(self):
        store = MemoryDocumentStore()
        store.put(PRODUCTS, make_document(PRODUCTS, "Products", fragments=[product_fragment()]))
        store.put(ORDERS, make_document(ORDERS, "Orders"))
        engine = DocsEngine(store)
        engine.rebuild_index()
        facets = engine.facets()
        stats = engine.stats()

        assert engine.rebuild_index() == 2
        assert engine.facets() == facets
        assert engine.stats() == stats
