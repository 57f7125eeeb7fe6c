"""Site settings, selector cascades and Crawl4AI run configurations."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from crawl4ai import CrawlerRunConfig
from crawl4ai.async_configs import CacheMode

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://ikas.dev"
DEFAULT_API_HOST = "api.myikas.com"
DEFAULT_GRAPHQL_ENDPOINT = "https://api.myikas.com/api/v1/admin/graphql"
DEFAULT_USER_AGENT = "docindex/1.0 (+https://github.com/docindex)"

DEFAULT_SEED_PATHS: List[str] = [
    "/docs/intro",
    "/docs/api/admin-api/products",
    "/docs/api/admin-api/orders",
    "/docs/api/admin-api/customers",
    "/playground",
]

# Regular expressions matched with re.search against absolute URLs
DEFAULT_INCLUDE_PATTERNS: List[str] = [r"/docs/", r"/playground"]
DEFAULT_EXCLUDE_PATTERNS: List[str] = [r"(?i)\.(pdf|zip|png|jpg|jpeg|gif)$"]

TITLE_SELECTORS: List[str] = [
    "h1",
    "title",
    ".page-title",
    "[class*='title']",
    "header h1",
    "main h1",
]

DESCRIPTION_SELECTORS: List[str] = [
    ".description",
    ".page-description",
    "[class*='description']",
    ".intro",
    ".lead",
]

# Interactive schema explorer containers (GraphiQL style playgrounds)
PLAYGROUND_SELECTORS: List[str] = [
    ".graphiql-container",
    ".playground",
    "[class*='graphiql']",
    ".schema-docs",
    ".doc-explorer",
]

# Selectors for main content areas (documentation sites, articles, etc.)
MAIN_SELECTORS: List[str] = [
    "main",
    "article",
    ".docs-content",
    ".content",
    "[role='main']",
    ".documentation",
    "#content",
]

# Stripped from a main-content region before reading its text
MAIN_EXCLUDED_SELECTORS: List[str] = ["nav", "aside", ".sidebar", ".navigation"]

# Stripped from the whole body when no main region qualifies
BODY_EXCLUDED_SELECTORS: List[str] = [
    "nav",
    "header",
    "footer",
    "aside",
    "script",
    "style",
]

NAVIGATION_SELECTORS: List[str] = [
    "nav a",
    ".navigation a",
    ".sidebar a",
    ".docs-nav a",
    ".menu a",
]

TAG_SELECTORS: List[str] = [".tag", ".label", "[class*='tag']"]

RELATED_SELECTORS: List[str] = [
    ".related a",
    ".see-also a",
    "[class*='related'] a",
]

# Markers of a client-side rendered application shell
APP_SHELL_SELECTORS: List[str] = ["#__next", ".react-root", "#root", "#app"]

# Expands the schema pane of a playground when such a button exists
PLAYGROUND_EXPAND_JS = """
    const button = document.querySelector(
        'button[title*="schema"], button[aria-label*="schema"], .schema-button'
    );
    if (button) { button.click(); }
"""


@dataclass
class SiteSettings:
    """Describes the documentation site being crawled and indexed."""

    base_url: str = DEFAULT_BASE_URL
    api_host: str = DEFAULT_API_HOST
    graphql_endpoint: str = DEFAULT_GRAPHQL_ENDPOINT
    seed_paths: List[str] = field(default_factory=lambda: list(DEFAULT_SEED_PATHS))
    interactive_path: str = "/playground"
    include_patterns: List[str] = field(
        default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS)
    )
    exclude_patterns: List[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS)
    )
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 15.0

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")

    @property
    def host(self) -> str:
        return (urlparse(self.base_url).hostname or "").lower()

    @property
    def seed_urls(self) -> List[str]:
        return [urljoin(self.base_url + "/", path.lstrip("/")) for path in self.seed_paths]

    @property
    def sitemap_url(self) -> str:
        return f"{self.base_url}/sitemap.xml"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r; using %s.", name, raw, default)
        return default


def load_site_settings() -> SiteSettings:
    """Build SiteSettings from environment variables, read at call time."""
    return SiteSettings(
        base_url=os.getenv("DOCINDEX_BASE_URL") or DEFAULT_BASE_URL,
        api_host=os.getenv("DOCINDEX_API_HOST") or DEFAULT_API_HOST,
        graphql_endpoint=os.getenv("DOCINDEX_GRAPHQL_ENDPOINT")
        or DEFAULT_GRAPHQL_ENDPOINT,
        user_agent=os.getenv("DOCINDEX_USER_AGENT") or DEFAULT_USER_AGENT,
        request_timeout=_float_env("DOCINDEX_REQUEST_TIMEOUT", 15.0),
    )


@dataclass
class RunConfigOverrides:
    """Optional render-run overrides."""

    verbose: Optional[bool] = None
    wait_until: Optional[str] = None
    page_timeout: Optional[int] = None
    delay_before_return_html: Optional[float] = None
    cache_mode: Optional[str] = None
    js_code: Optional[str] = None
    wait_for: Optional[str] = None


def _convert_cache_mode(value: Optional[str], default: CacheMode) -> CacheMode:
    if not value:
        return default
    candidate = value.strip().replace("CacheMode.", "")
    try:
        return CacheMode[candidate.upper()]
    except KeyError:
        pass
    try:
        return CacheMode(candidate.lower())
    except ValueError:
        LOGGER.warning(
            "Unknown cache_mode '%s'; falling back to %s.", value, default.name
        )
        return default


def _apply_overrides(config: CrawlerRunConfig, overrides: RunConfigOverrides) -> None:
    """Apply optional overrides to a CrawlerRunConfig."""
    if overrides.verbose is not None:
        config.verbose = overrides.verbose
    if overrides.wait_until is not None:
        config.wait_until = overrides.wait_until
    if overrides.page_timeout is not None:
        config.page_timeout = overrides.page_timeout
    if overrides.delay_before_return_html is not None:
        config.delay_before_return_html = overrides.delay_before_return_html
    if overrides.cache_mode:
        config.cache_mode = _convert_cache_mode(overrides.cache_mode, config.cache_mode)
    if overrides.js_code:
        config.js_code = overrides.js_code
    if overrides.wait_for:
        config.wait_for = overrides.wait_for


def build_render_run_config(
    *,
    interactive: bool = False,
    timeout: float = 15.0,
    overrides: Optional[RunConfigOverrides] = None,
) -> CrawlerRunConfig:
    """RunConfig for the full-rendering fetch path.

    Interactive routes get a longer settle delay and a script that opens the
    schema pane so the explorer's content lands in the returned HTML.
    """
    config = CrawlerRunConfig(
        verbose=False,
        cache_mode=CacheMode.BYPASS,
        wait_until="domcontentloaded",
        page_timeout=int(timeout * 1000),
        delay_before_return_html=2.0 if interactive else 0.5,
        js_code=PLAYGROUND_EXPAND_JS if interactive else None,
    )
    if overrides:
        _apply_overrides(config, overrides)
    return config
