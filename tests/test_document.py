"""Tests for docindex.document module."""

from __future__ import annotations

import dataclasses

import pytest

from docindex.document import (
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


def _tree() -> Section:
    return Section(
        id="products",
        title="Products",
        level=1,
        children=[
            Section(
                id="create",
                title="Create",
                level=2,
                children=[Section(id="args", title="Args", level=3)],
            ),
            Section(id="schema", title="Schema", level=2),
        ],
    )


def _content() -> ExtractedContent:
    return ExtractedContent(
        title="Products",
        description="Manage products.",
        main_text="The product API.",
        sections=[_tree()],
        schema_fragments=[
            SchemaFragment(
                kind=FragmentKind.TYPE,
                name="Product",
                raw_text="type Product { id: ID! }",
                fields=[SchemaField("id", "ID!", "identifier")],
            ),
            SchemaFragment(FragmentKind.ENUM, "Status", "enum Status { A B }"),
        ],
        code_examples=[CodeExample("graphql", "query { a }", title="Query")],
        api_endpoints=[Endpoint("POST", "https://api.myikas.com/graphql")],
        navigation_links=[NavLink("Intro", "https://ikas.dev/docs/intro", True)],
        metadata=PageMetadata(
            category="api",
            tags=["graphql"],
            related_pages=[RelatedPage("Orders", "https://ikas.dev/docs/orders")],
            last_modified="2026-01-02",
        ),
    )


class TestSection:
    def test_walk_is_depth_first(self):
        assert [s.id for s in _tree().walk()] == ["products", "create", "args", "schema"]

    def test_iter_sections(self):
        content = _content()
        assert [s.title for s in content.iter_sections()] == [
            "Products",
            "Create",
            "Args",
            "Schema",
        ]


class TestImmutability:
    def test_extracted_content_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            _content().title = "Other"

    def test_fetched_page_is_frozen(self):
        page = FetchedPage("u", "t", "<html>", "now", "hash")
        with pytest.raises(dataclasses.FrozenInstanceError):
            page.raw_html = ""


class TestSerialization:
    def test_stored_document_dict(self):
        page = FetchedPage("https://ikas.dev/docs/api/x", "Products", "<html>", "now", "h")
        document = StoredDocument(page=page, content=_content())
        restored = StoredDocument.from_dict(document.to_dict())
        assert restored == document
        assert restored.url == "https://ikas.dev/docs/api/x"

    def test_fragment_kind_serialized_as_value(self):
        data = _content().schema_fragments[0].to_dict()
        assert data["kind"] == "type"
        assert _content().schema_fragments[1].to_dict()["fields"] is None

    def test_from_dict_defaults(self):
        content = ExtractedContent.from_dict({"title": "Only title"})
        assert content.sections == []
        assert content.metadata == PageMetadata()
