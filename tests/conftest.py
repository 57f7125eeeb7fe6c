"""Global pytest hooks for strict test-accounting guardrails and shared page fixtures."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from docindex.config import SiteSettings
from docindex.document import (
    ExtractedContent,
    FetchedPage,
    FragmentKind,
    SchemaField,
    SchemaFragment,
    StoredDocument,
)


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return

    is_xfail = bool(getattr(report, "wasxfail", False))
    if is_xfail:
        if report.outcome == "skipped":
            _ACCOUNTING.xfailed += 1
        elif report.outcome == "passed":
            _ACCOUNTING.xpassed += 1
        return

    if report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = []
    if _ACCOUNTING.deselected:
        violations.append(f"deselected={_ACCOUNTING.deselected}")
    if _ACCOUNTING.skipped:
        violations.append(f"skipped={_ACCOUNTING.skipped}")
    if _ACCOUNTING.xfailed:
        violations.append(f"xfailed={_ACCOUNTING.xfailed}")
    if _ACCOUNTING.xpassed:
        violations.append(f"xpassed={_ACCOUNTING.xpassed}")

    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            "Strict guard failed: test accounting violations detected "
            f"({', '.join(violations)})",
        )
        reporter.write_line(
            "Hard guard requires zero skipped/deselected/xfail/xpass tests."
        )

    session.exitstatus = 1


# ---------------------------------------------------------------------------
# Shared page fixtures
# ---------------------------------------------------------------------------

PRODUCTS_HTML = """
<html>
<head>
  <title>Products | ikas</title>
  <meta name="description" content="Manage products with the Admin API.">
</head>
<body>
  <nav>
    <a href="/docs/intro">Intro</a>
    <a href="/docs/api/admin-api/products" class="menu__link active">Products</a>
    <a href="https://github.com/ikas">GitHub</a>
  </nav>
  <main>
    <h1>Products</h1>
    <p>The product API lets you list, create and update the products of a store.</p>
    <h2>Create a product</h2>
    <p>Use the saveProduct mutation to create a product.</p>
    <pre><code class="language-graphql">mutation {
  saveProduct(input: ProductInput!): Product
}</code></pre>
    <h3>Arguments</h3>
    <p>The input argument carries the product fields.</p>
    <h2>Schema</h2>
    <pre><code class="language-graphql">type Product {
  id: ID!
  name: String! # display name
  variants: [Variant]
}</code></pre>
    <p>Send requests to https://api.myikas.com/api/v1/admin/graphql with POST /api/v1/admin/graphql.</p>
    <a href="/docs/api/admin-api/orders#list">Orders</a>
    <a href="#top">Top</a>
    <a href="/files/catalog.pdf">Catalog</a>
  </main>
</body>
</html>
"""


def make_document(
    url: str,
    title: str,
    main_text: str = "",
    *,
    fragments=None,
    html: str = "<html></html>",
) -> StoredDocument:
    content = ExtractedContent(
        title=title,
        main_text=main_text,
        schema_fragments=list(fragments or []),
    )
    page = FetchedPage(
        url=url,
        title=title,
        raw_html=html,
        fetched_at="2026-01-01T00:00:00+00:00",
        content_hash="hash",
    )
    return StoredDocument(page=page, content=content)


def product_fragment() -> SchemaFragment:
    return SchemaFragment(
        kind=FragmentKind.TYPE,
        name="Product",
        raw_text="type Product { id: ID! }",
        fields=[SchemaField(name="id", type_signature="ID!")],
    )


@pytest.fixture
def site() -> SiteSettings:
    return SiteSettings()


@pytest.fixture
def products_html() -> str:
    return PRODUCTS_HTML
