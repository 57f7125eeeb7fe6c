"""Tests for docindex.store module."""

from __future__ import annotations

from conftest import make_document, product_fragment

from docindex.store import FileDocumentStore, MemoryDocumentStore, _url_to_filename

PRODUCTS = "https://ikas.dev/docs/api/admin-api/products"


class TestMemoryDocumentStore:
    def test_put_get_has_list(self):
        store = MemoryDocumentStore()
        document = make_document(PRODUCTS, "Products")
        store.put(PRODUCTS, document)

        assert store.has(PRODUCTS)
        assert store.get(PRODUCTS) is document
        assert store.list() == [PRODUCTS]
        assert len(store) == 1

    def test_missing(self):
        store = MemoryDocumentStore()
        assert store.get(PRODUCTS) is None
        assert not store.has(PRODUCTS)


class TestUrlToFilename:
    def test_stable_and_safe(self):
        name = _url_to_filename(PRODUCTS)
        assert name == _url_to_filename(PRODUCTS)
        assert name.endswith(".json")
        assert "/" not in name

    def test_distinct_urls(self):
        assert _url_to_filename(PRODUCTS) != _url_to_filename(PRODUCTS + "/")


class TestFileDocumentStore:
    def test_persists_documents(self, tmp_path):
        store = FileDocumentStore(tmp_path / "pages")
        document = make_document(PRODUCTS, "Products", "body", fragments=[product_fragment()])
        store.put(PRODUCTS, document)

        reopened = FileDocumentStore(tmp_path / "pages")
        assert reopened.has(PRODUCTS)
        assert reopened.list() == [PRODUCTS]
        assert reopened.get(PRODUCTS) == document

    def test_missing_directory(self, tmp_path):
        store = FileDocumentStore(tmp_path / "absent")
        assert store.list() == []
        assert store.get(PRODUCTS) is None
        assert not store.has(PRODUCTS)

    def test_unreadable_entries_skipped(self, tmp_path):
        store = FileDocumentStore(tmp_path)
        store.put(PRODUCTS, make_document(PRODUCTS, "Products"))
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        (tmp_path / "list.json").write_text("[1, 2]", encoding="utf-8")

        assert store.list() == [PRODUCTS]

    def test_corrupted_document_returns_none(self, tmp_path):
        store = FileDocumentStore(tmp_path)
        (tmp_path / _url_to_filename(PRODUCTS)).write_text(
            '{"url": "%s"}' % PRODUCTS, encoding="utf-8"
        )
        assert store.has(PRODUCTS)
        assert store.get(PRODUCTS) is None

    def test_non_mapping_document_returns_none(self, tmp_path):
        store = FileDocumentStore(tmp_path)
        (tmp_path / _url_to_filename(PRODUCTS)).write_text(
            '{"url": "%s", "document": ["not", "a", "mapping"]}' % PRODUCTS,
            encoding="utf-8",
        )
        assert store.get(PRODUCTS) is None
