"""Turn raw documentation HTML into ExtractedContent.

Every field is produced by an independent heuristic with its own fallback,
so a page missing some structure still yields the fields it does have.
``extract_content`` never raises.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Callable, List, Optional, TypeVar

from bs4 import BeautifulSoup, Tag

from .config import (
    BODY_EXCLUDED_SELECTORS,
    DESCRIPTION_SELECTORS,
    MAIN_EXCLUDED_SELECTORS,
    MAIN_SELECTORS,
    NAVIGATION_SELECTORS,
    PLAYGROUND_SELECTORS,
    RELATED_SELECTORS,
    TAG_SELECTORS,
    TITLE_SELECTORS,
    SiteSettings,
)
from .document import ExtractedContent, NavLink, PageMetadata, RelatedPage, Section
from .links import category_from_url, resolve_href, same_site
from .samples import extract_code_examples, extract_endpoints
from .schema import extract_schema_fragments

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

UNTITLED = "Untitled Page"
HEADING_PATTERN = re.compile(r"^h([1-6])$")

MIN_PLAYGROUND_TEXT = 50
MIN_MAIN_TEXT = 100
MIN_DESCRIPTION_TEXT = 50
MAX_DESCRIPTION_TEXT = 200
MAX_TAG_LENGTH = 50


def _guard(label: str, func: Callable[[], T], default: T) -> T:
    try:
        return func()
    except Exception as exc:  # extraction degrades, never fails
        LOGGER.debug("Extraction of %s degraded to default: %s", label, exc)
        return default


def extract_content(
    html: str, url: str, *, site: Optional[SiteSettings] = None
) -> ExtractedContent:
    """Extract structured content from html fetched at url."""
    site = site or SiteSettings()
    soup = _guard("document", lambda: BeautifulSoup(html or "", "html.parser"), None)
    if soup is None:
        return ExtractedContent(title=UNTITLED)

    return ExtractedContent(
        title=_guard("title", lambda: extract_title(soup), UNTITLED),
        description=_guard("description", lambda: extract_description(soup), ""),
        main_text=_guard("main content", lambda: extract_main_content(soup), ""),
        sections=_guard("sections", lambda: extract_sections(soup), []),
        schema_fragments=_guard(
            "schema fragments", lambda: extract_schema_fragments(soup), []
        ),
        code_examples=_guard("code examples", lambda: extract_code_examples(soup), []),
        api_endpoints=_guard(
            "endpoints", lambda: extract_endpoints(soup, site), []
        ),
        navigation_links=_guard(
            "navigation", lambda: extract_navigation(soup, url), []
        ),
        metadata=_guard(
            "metadata", lambda: extract_metadata(soup, url), PageMetadata()
        ),
    )


def _text(element: Tag) -> str:
    return element.get_text().strip()


def _joined_text(elements: List[Tag]) -> str:
    return " ".join(part for part in (_text(element) for element in elements) if part)


def extract_title(soup: BeautifulSoup) -> str:
    for selector in TITLE_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        title = _text(element)
        if title:
            return title
    return UNTITLED


def extract_description(soup: BeautifulSoup) -> str:
    meta = soup.find("meta", attrs={"name": "description"})
    if meta is not None:
        content = (meta.get("content") or "").strip()
        if content:
            return content

    heading = soup.find("h1")
    if heading is not None:
        paragraph = heading.find_next_sibling("p")
        if paragraph is not None:
            text = _text(paragraph)
            if len(text) > MIN_DESCRIPTION_TEXT:
                return text

    for selector in DESCRIPTION_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = _text(element)
        if len(text) > MIN_DESCRIPTION_TEXT:
            if len(text) > MAX_DESCRIPTION_TEXT:
                return text[:MAX_DESCRIPTION_TEXT] + "..."
            return text

    return ""


def _stripped_copy(element: Tag, selectors: List[str]) -> Tag:
    clone = copy.copy(element)
    for selector in selectors:
        for unwanted in clone.select(selector):
            unwanted.decompose()
    return clone


def extract_main_content(soup: BeautifulSoup) -> str:
    """Read the page's main text from the first region that has enough of it."""
    for selector in PLAYGROUND_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        text = _joined_text(elements)
        if len(text) > MIN_PLAYGROUND_TEXT:
            LOGGER.debug("Found playground content with selector: %s", selector)
            return text

    for selector in MAIN_SELECTORS:
        elements = soup.select(selector)
        if not elements:
            continue
        text = _joined_text(
            [_stripped_copy(element, MAIN_EXCLUDED_SELECTORS) for element in elements]
        )
        if len(text) > MIN_MAIN_TEXT:
            return text

    root = soup.body or soup
    return _text(_stripped_copy(root, BODY_EXCLUDED_SELECTORS))


def slugify(text: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim '-' at the ends."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def _heading_level(element: Tag) -> Optional[int]:
    match = HEADING_PATTERN.match(element.name or "")
    return int(match.group(1)) if match else None


def extract_sections(soup: BeautifulSoup) -> List[Section]:
    """Build the heading tree of a page.

    Each heading collects the text of the sibling elements that follow it,
    up to the next heading of the same or a shallower level.
    """
    flat: List[Section] = []
    for heading in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
        level = _heading_level(heading)
        title = _text(heading)
        if level is None or not title:
            continue

        parts: List[str] = []
        for sibling in heading.find_next_siblings():
            sibling_level = _heading_level(sibling)
            if sibling_level is not None and sibling_level <= level:
                break
            parts.append(_text(sibling))

        flat.append(
            Section(
                id=slugify(title),
                title=title,
                level=level,
                body_text="\n".join(parts).strip(),
            )
        )
    return build_section_tree(flat)


def build_section_tree(flat_sections: List[Section]) -> List[Section]:
    """Nest sections with a level stack, keeping document order."""
    roots: List[Section] = []
    stack: List[Section] = []
    for section in flat_sections:
        while stack and stack[-1].level >= section.level:
            stack.pop()
        if stack:
            stack[-1].children.append(section)
        else:
            roots.append(section)
        stack.append(section)
    return roots


def extract_navigation(soup: BeautifulSoup, url: str) -> List[NavLink]:
    """Return the links of the first navigation container that yields any."""
    for selector in NAVIGATION_SELECTORS:
        items: List[NavLink] = []
        for anchor in soup.select(selector):
            title = _text(anchor)
            target = resolve_href(anchor.get("href"), url)
            if not title or target is None or not same_site(target, url):
                continue
            classes = anchor.get("class") or []
            items.append(
                NavLink(
                    title=title,
                    url=target,
                    is_active="active" in classes
                    or anchor.get("aria-current") == "page",
                )
            )
        if items:
            return items
    return []


def _last_modified(soup: BeautifulSoup) -> Optional[str]:
    for attrs in (
        {"property": "article:modified_time"},
        {"name": "last-modified"},
        {"http-equiv": "last-modified"},
    ):
        meta = soup.find("meta", attrs=attrs)
        if meta is not None and (meta.get("content") or "").strip():
            return meta["content"].strip()
    return None


def extract_metadata(soup: BeautifulSoup, url: str) -> PageMetadata:
    tags: List[str] = []
    for selector in TAG_SELECTORS:
        for element in soup.select(selector):
            tag = _text(element)
            if tag and len(tag) < MAX_TAG_LENGTH and tag not in tags:
                tags.append(tag)

    related: List[RelatedPage] = []
    seen_urls = set()
    for selector in RELATED_SELECTORS:
        for anchor in soup.select(selector):
            title = _text(anchor)
            target = resolve_href(anchor.get("href"), url)
            if not title or target is None or target in seen_urls:
                continue
            seen_urls.add(target)
            related.append(RelatedPage(title=title, url=target))

    return PageMetadata(
        category=category_from_url(url),
        tags=tags,
        related_pages=related,
        last_modified=_last_modified(soup),
    )
