"""In-memory inverted index over stored documentation pages.

The index is rebuilt wholesale: callers ``clear()`` it and add every stored
document again. There is no update or delete; a rebuild replaces all state.

Public API::

    from docindex.search import SearchIndex

    index = SearchIndex()
    for url in store.list():
        index.add_document(store.get(url))
    for hit in index.search("product mutation", limit=5):
        print(hit.score, hit.title, hit.url)
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .document import StoredDocument
from .links import category_from_url

DEFAULT_STOPWORDS = frozenset(
    {
        "this", "that", "with", "from", "have", "been",
        "were", "what", "when", "where", "which", "while",
        "about", "after", "before", "between", "into",
        "through", "during",
    }
)

MIN_KEYWORD_LENGTH = 4
MIN_QUERY_TOKEN_LENGTH = 3

TITLE_WEIGHT = 20
EXACT_TITLE_BONUS = 50
KEYWORD_WEIGHT = 10
SCHEMA_WEIGHT = 15
BODY_WEIGHT = 2
BODY_CAP = 10
SECTION_WEIGHT = 5

SNIPPET_LENGTH = 200
SNIPPET_STRIDE = 50
SNIPPET_EDGE = 20


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SearchDocument:
    """Read-only projection of a stored page used for scoring."""

    url: str
    title: str
    body: str
    description: str = ""
    category: Optional[str] = None
    doc_type: str = "general"
    keywords: List[str] = field(default_factory=list)
    section_titles: List[str] = field(default_factory=list)
    schema_names: List[str] = field(default_factory=list)
    code_languages: List[str] = field(default_factory=list)


@dataclass(slots=True)
class MatchFlags:
    """Which parts of a document matched the query."""

    title: bool = False
    content: bool = False
    keywords: bool = False
    schema: bool = False


@dataclass(slots=True)
class SearchHit:
    """A single ranked search result."""

    url: str
    title: str
    snippet: str
    score: int
    matches: MatchFlags = field(default_factory=MatchFlags)

    def to_dict(self) -> Dict[str, object]:
        return {
            "url": self.url,
            "title": self.title,
            "snippet": self.snippet,
            "score": self.score,
            "matches": {
                "title": self.matches.title,
                "content": self.matches.content,
                "keywords": self.matches.keywords,
                "schema": self.matches.schema,
            },
        }


@dataclass(slots=True)
class FacetCount:
    name: str
    count: int


@dataclass(slots=True)
class Facets:
    categories: List[FacetCount] = field(default_factory=list)
    doc_types: List[FacetCount] = field(default_factory=list)


@dataclass(slots=True)
class IndexStats:
    total_documents: int
    total_keywords: int
    total_schema_names: int
    categories: List[FacetCount] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def classify_doc_type(url: str) -> str:
    """Classify a URL as api, graphql, playground, guide or general."""
    if "/api/" in url:
        return "api"
    if "/graphql" in url:
        return "graphql"
    if "/playground" in url:
        return "playground"
    if "/guides/" in url:
        return "guide"
    return "general"


def _words(text: str) -> List[str]:
    return re.sub(r"[^a-z0-9\s]", " ", text.lower()).split()


def extract_keywords(text: str, stopwords: Iterable[str] = DEFAULT_STOPWORDS) -> List[str]:
    """Normalize text into distinct keywords, in first-seen order."""
    stop = set(stopwords)
    words = _words(text)
    keywords: List[str] = []
    seen: Set[str] = set()
    for word in words:
        if len(word) < MIN_KEYWORD_LENGTH or word in stop or word in seen:
            continue
        seen.add(word)
        keywords.append(word)
    return keywords


def query_tokens(query: str) -> List[str]:
    return [word for word in _words(query) if len(word) >= MIN_QUERY_TOKEN_LENGTH]


def extract_snippet(body: str, tokens: List[str], max_length: int = SNIPPET_LENGTH) -> str:
    """Pick the window of body that contains the most distinct query tokens."""
    lowered = body.lower()
    best_start = 0
    best_score = 0
    for start in range(0, len(body) - max_length + 1, SNIPPET_STRIDE):
        window = lowered[start : start + max_length]
        score = sum(1 for token in tokens if token in window)
        if score > best_score:
            best_score = score
            best_start = start

    snippet = body[best_start : best_start + max_length].strip()

    if best_start > 0:
        word_start = snippet.find(" ")
        if 0 < word_start < SNIPPET_EDGE:
            snippet = snippet[word_start + 1 :]
        snippet = "..." + snippet

    if best_start + max_length < len(body):
        last_space = snippet.rfind(" ")
        if last_space > len(snippet) - SNIPPET_EDGE:
            snippet = snippet[:last_space]
        snippet += "..."

    return snippet


def _sorted_counts(counter: Counter) -> List[FacetCount]:
    # Counter preserves first-seen order, so sorting keeps ties stable
    return [
        FacetCount(name=name, count=count)
        for name, count in sorted(counter.items(), key=lambda item: -item[1])
    ]


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class SearchIndex:
    """Keyword and schema-name postings plus a forward document table."""

    def __init__(self, extra_stopwords: Iterable[str] = ()):
        self.stopwords = frozenset(DEFAULT_STOPWORDS | set(extra_stopwords))
        self._documents: Dict[str, SearchDocument] = {}
        self._keywords: Dict[str, Set[str]] = {}
        self._schema_names: Dict[str, Set[str]] = {}

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, url: object) -> bool:
        return url in self._documents

    def clear(self) -> None:
        self._documents = {}
        self._keywords = {}
        self._schema_names = {}

    def project(self, stored: StoredDocument) -> SearchDocument:
        """Build the SearchDocument for a stored page."""
        url = stored.page.url
        content = stored.content
        schema_names: List[str] = []
        for fragment in content.schema_fragments:
            if fragment.name and fragment.name not in schema_names:
                schema_names.append(fragment.name)
        languages: List[str] = []
        for example in content.code_examples:
            if example.language not in languages:
                languages.append(example.language)

        return SearchDocument(
            url=url,
            title=stored.page.title or content.title,
            body=content.main_text,
            description=content.description,
            category=category_from_url(url),
            doc_type=classify_doc_type(url),
            keywords=extract_keywords(
                f"{stored.page.title or content.title} {url}", self.stopwords
            ),
            section_titles=[section.title for section in content.iter_sections()],
            schema_names=schema_names,
            code_languages=languages,
        )

    def add_document(self, stored: StoredDocument) -> SearchDocument:
        doc = self.project(stored)
        self._documents[doc.url] = doc
        for keyword in doc.keywords:
            self._keywords.setdefault(keyword, set()).add(doc.url)
        for name in doc.schema_names:
            self._schema_names.setdefault(name.lower(), set()).add(doc.url)
        return doc

    def get(self, url: str) -> Optional[SearchDocument]:
        return self._documents.get(url)

    def documents_for_keyword(self, keyword: str) -> Set[str]:
        return set(self._keywords.get(keyword.lower(), set()))

    def _score(self, doc: SearchDocument, query: str, tokens: List[str]) -> SearchHit:
        matches = MatchFlags()
        score = 0

        title = doc.title.lower()
        for token in tokens:
            if token in title:
                score += TITLE_WEIGHT
                matches.title = True
        if title == query:
            score += EXACT_TITLE_BONUS

        for token in tokens:
            if any(token in keyword for keyword in doc.keywords):
                score += KEYWORD_WEIGHT
                matches.keywords = True

        schema_names = [name.lower() for name in doc.schema_names]
        for token in tokens:
            if any(token in name for name in schema_names):
                score += SCHEMA_WEIGHT
                matches.schema = True

        body = doc.body.lower()
        for token in tokens:
            occurrences = body.count(token)
            score += min(occurrences * BODY_WEIGHT, BODY_CAP)
            if occurrences:
                matches.content = True

        for section_title in doc.section_titles:
            lowered = section_title.lower()
            for token in tokens:
                if token in lowered:
                    score += SECTION_WEIGHT

        return SearchHit(url=doc.url, title=doc.title, snippet="", score=score, matches=matches)

    def search(
        self,
        query: str,
        *,
        limit: int = 10,
        category: Optional[str] = None,
        doc_type: Optional[str] = None,
    ) -> List[SearchHit]:
        """Rank documents for query; ties keep insertion order."""
        normalized = query.lower().strip()
        tokens = query_tokens(normalized)

        hits: List[SearchHit] = []
        for doc in self._documents.values():
            if category and doc.category != category:
                continue
            if doc_type and doc.doc_type != doc_type:
                continue
            hit = self._score(doc, normalized, tokens)
            if hit.score <= 0:
                continue
            hit.snippet = extract_snippet(doc.body, tokens)
            hits.append(hit)

        hits.sort(key=lambda hit: -hit.score)
        return hits[: max(0, limit)]

    def find_by_schema_name(self, name: str) -> List[SearchHit]:
        urls = self._schema_names.get(name.lower())
        if not urls:
            return []
        return [
            SearchHit(
                url=doc.url,
                title=doc.title,
                snippet=f"Contains schema type: {name}",
                score=100,
                matches=MatchFlags(schema=True),
            )
            for doc in self._documents.values()
            if doc.url in urls
        ]

    def find_by_doc_type(self, doc_type: str) -> List[SearchHit]:
        return [
            SearchHit(
                url=doc.url,
                title=doc.title,
                snippet=doc.description or extract_snippet(doc.body, []),
                score=100,
            )
            for doc in self._documents.values()
            if doc.doc_type == doc_type
        ]

    def facets(self) -> Facets:
        categories: Counter = Counter()
        doc_types: Counter = Counter()
        for doc in self._documents.values():
            if doc.category:
                categories[doc.category] += 1
            doc_types[doc.doc_type] += 1
        return Facets(
            categories=_sorted_counts(categories),
            doc_types=_sorted_counts(doc_types),
        )

    def stats(self) -> IndexStats:
        return IndexStats(
            total_documents=len(self._documents),
            total_keywords=len(self._keywords),
            total_schema_names=len(self._schema_names),
            categories=self.facets().categories,
        )
