"""URL helpers: link harvesting, admission rules, sitemaps and URL facets."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Iterable, List, Optional
from urllib.parse import urldefrag, urljoin, urlparse

import tldextract
from bs4 import BeautifulSoup

from .config import SiteSettings

LOGGER = logging.getLogger(__name__)


def _normalize_host(host: Optional[str]) -> str:
    """Normalize hostname by removing port and lowercasing."""
    if not host:
        return ""
    return host.split(":")[0].lower()


@lru_cache(maxsize=256)
def _registrable_domain(host: str) -> Optional[str]:
    """Extract the registrable domain from a hostname."""
    if not host:
        return None
    extracted = tldextract.extract(host)
    if not extracted.domain or not extracted.suffix:
        return host
    domain = ".".join(part for part in (extracted.domain, extracted.suffix) if part)
    return domain or host


def brand_name(url: str) -> Optional[str]:
    """Return the bare domain label of a URL ("ikas" for https://ikas.dev)."""
    host = _normalize_host(urlparse(url).netloc)
    if not host:
        return None
    return tldextract.extract(host).domain or None


def same_site(url: str, site_url: str, *, include_subdomains: bool = False) -> bool:
    """Return True when url shares the origin of site_url.

    With include_subdomains, any host under the same registrable domain and
    scheme qualifies.
    """
    parsed = urlparse(url)
    site = urlparse(site_url)
    if parsed.scheme not in ("http", "https"):
        return False
    host = _normalize_host(parsed.netloc)
    site_host = _normalize_host(site.netloc)
    if include_subdomains:
        if parsed.scheme != site.scheme:
            return False
        return host == site_host or _registrable_domain(host) == _registrable_domain(
            site_host
        )
    return parsed.scheme == site.scheme and parsed.netloc.lower() == site.netloc.lower()


def resolve_href(href: Optional[str], page_url: str) -> Optional[str]:
    """Resolve an anchor href against its page, dropping the fragment.

    Fragment-only and non-navigational hrefs resolve to None.
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith("#"):
        return None
    if href.startswith(("mailto:", "javascript:", "tel:", "data:")):
        return None
    try:
        absolute = urljoin(page_url, href)
    except ValueError:
        return None
    cleaned, _fragment = urldefrag(absolute)
    return cleaned or None


def harvest_links(
    html: str,
    page_url: str,
    *,
    site_url: Optional[str] = None,
    include_subdomains: bool = False,
) -> List[str]:
    """Return same-site links found in the anchors of html, in document order."""
    soup = BeautifulSoup(html or "", "html.parser")
    origin = site_url or page_url
    links: List[str] = []
    seen = set()
    for anchor in soup.find_all("a", href=True):
        url = resolve_href(anchor.get("href"), page_url)
        if url is None or url in seen:
            continue
        if not same_site(url, origin, include_subdomains=include_subdomains):
            continue
        seen.add(url)
        links.append(url)
    return links


def is_admitted(url: str, include: Iterable[str], exclude: Iterable[str]) -> bool:
    """Apply admission rules: no exclude pattern, and some include pattern.

    An empty include list admits everything not excluded.
    """
    for pattern in exclude:
        if re.search(pattern, url):
            return False
    include = list(include)
    if not include:
        return True
    return any(re.search(pattern, url) for pattern in include)


def parse_sitemap(xml: str, site_url: str) -> List[str]:
    """Extract ``<url><loc>`` entries that belong to the site."""
    soup = BeautifulSoup(xml or "", "html.parser")
    urls: List[str] = []
    for loc in soup.find_all("loc"):
        if loc.parent is None or loc.parent.name != "url":
            continue
        url = loc.get_text().strip()
        if url and same_site(url, site_url):
            urls.append(url)
    return urls


def category_from_url(url: str) -> Optional[str]:
    """Return the path segment naming the documentation category.

    ``https://site/docs/api/products`` has category ``api``; the segment is
    read at a fixed position, the one following the ``docs`` prefix.
    """
    # a leading "" comes from the path's initial slash
    segments = urlparse(url).path.split("/")
    if len(segments) > 2 and segments[2]:
        return segments[2]
    return None


def is_interactive_route(url: str, site: SiteSettings) -> bool:
    """Return True for the route family rendered as an in-browser explorer."""
    return site.interactive_path in urlparse(url).path
