"""Curated content for the interactive API explorer route.

The explorer renders almost nothing statically; when extraction comes back
nearly empty the crawler swaps in this content so the route still indexes.
"""

from __future__ import annotations

import dataclasses

from .config import SiteSettings
from .document import Endpoint, ExtractedContent, Section

MIN_INTERACTIVE_TEXT = 100


def playground_text(site: SiteSettings) -> str:
    """Markdown overview of the explorer and where its schema is documented."""
    reference_pages = "\n".join(
        f"   - {url}" for url in site.seed_urls if site.interactive_path not in url
    )
    return f"""# GraphQL Playground

The GraphQL Playground at {site.base_url}{site.interactive_path} is an
interactive tool for exploring the API. It requires authentication and loads
its content dynamically.

## What is the GraphQL Playground?

The GraphQL Playground provides:
- Interactive schema exploration
- Query/mutation builder
- Real-time API testing
- Schema documentation

## Accessing the Schema

The schema is documented in detail on the API reference pages:
{reference_pages}

## GraphQL Endpoint

```
POST {site.graphql_endpoint}
```

## Authentication

All API requests require authentication via API tokens.
"""


def needs_fallback(content: ExtractedContent) -> bool:
    return len(content.main_text) < MIN_INTERACTIVE_TEXT


def playground_fallback(content: ExtractedContent, site: SiteSettings) -> ExtractedContent:
    """Return content with the curated title, text, outline and endpoint."""
    return dataclasses.replace(
        content,
        title="GraphQL Playground",
        description="Interactive GraphQL API explorer",
        main_text=playground_text(site),
        sections=[
            Section(
                id="what-is-the-graphql-playground",
                title="What is the GraphQL Playground?",
                level=2,
                body_text=(
                    "The GraphQL Playground provides interactive schema exploration, "
                    "query/mutation builder, real-time API testing, and schema "
                    "documentation."
                ),
            ),
            Section(
                id="accessing-the-schema",
                title="Accessing the Schema",
                level=2,
                body_text="Use the API documentation pages to explore the schema.",
            ),
            Section(
                id="graphql-endpoint",
                title="GraphQL Endpoint",
                level=2,
                body_text=f"POST {site.graphql_endpoint}",
            ),
        ],
        api_endpoints=[
            Endpoint(
                method="POST",
                url=site.graphql_endpoint,
                description="Main GraphQL API endpoint",
            )
        ],
    )
