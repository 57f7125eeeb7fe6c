"""Code samples and HTTP endpoints mentioned on documentation pages."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .config import SiteSettings
from .document import CodeExample, Endpoint

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

LANGUAGE_CLASS = re.compile(r"language-(\w+)")

HTTP_METHODS = r"GET|POST|PUT|DELETE|PATCH"
METHOD_PATH = re.compile(rf"\b({HTTP_METHODS})\s+(/[^\s]+)")
METHOD_BACKTICK = re.compile(rf"\b({HTTP_METHODS})\s+`([^`]+)`")

_TRAILING_PUNCTUATION = ".,;:)'\""


def _language_of(code: Tag) -> str:
    classes = " ".join(code.get("class") or [])
    match = LANGUAGE_CLASS.search(classes)
    return match.group(1) if match else "plaintext"


def extract_code_examples(soup: BeautifulSoup) -> List[CodeExample]:
    """Collect ``pre > code`` blocks with their nearest heading and lead paragraph."""
    examples: List[CodeExample] = []
    for pre in soup.find_all("pre"):
        code = pre.find("code")
        if code is None:
            continue
        text = code.get_text().strip()
        if not text:
            continue

        title: Optional[str] = None
        heading = pre.find_previous_sibling(HEADING_TAGS)
        if heading is not None:
            title = heading.get_text().strip() or None

        description: Optional[str] = None
        previous = pre.find_previous_sibling()
        if previous is not None and previous.name == "p":
            description = previous.get_text().strip() or None

        examples.append(
            CodeExample(
                language=_language_of(code),
                code=text,
                title=title,
                description=description,
            )
        )
    return examples


def _clean_url(url: str) -> str:
    return url.rstrip(_TRAILING_PUNCTUATION)


def extract_endpoints(soup: BeautifulSoup, site: SiteSettings) -> List[Endpoint]:
    """Find ``METHOD /path`` tokens and URLs under the API host."""
    root = soup.body or soup
    text = root.get_text(" ")

    found: List[Endpoint] = []
    for pattern in (METHOD_PATH, METHOD_BACKTICK):
        for match in pattern.finditer(text):
            found.append(Endpoint(method=match.group(1), url=_clean_url(match.group(2))))

    api_url = re.compile(rf"\bhttps?://{re.escape(site.api_host)}[^\s]*")
    for match in api_url.finditer(text):
        found.append(Endpoint(method="GET", url=_clean_url(match.group(0))))

    if "graphql" in text.lower() and site.api_host in text:
        found.append(
            Endpoint(
                method="POST",
                url=site.graphql_endpoint,
                description="GraphQL API endpoint",
            )
        )

    # first position wins, last value wins
    unique: Dict[Tuple[str, str], Endpoint] = {}
    for endpoint in found:
        unique[(endpoint.method, endpoint.url)] = endpoint
    return list(unique.values())
