"""Data structures representing fetched and extracted documentation pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class FragmentKind(str, Enum):
    """Kind of a classified schema fragment."""

    TYPE = "type"
    INPUT = "input"
    ENUM = "enum"
    INTERFACE = "interface"
    QUERY = "query"
    MUTATION = "mutation"


@dataclass(frozen=True, slots=True)
class FetchedPage:
    """Raw page as returned by one successful fetch."""

    url: str
    title: str
    raw_html: str
    fetched_at: str
    content_hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "raw_html": self.raw_html,
            "fetched_at": self.fetched_at,
            "content_hash": self.content_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FetchedPage":
        return cls(
            url=data["url"],
            title=data.get("title", ""),
            raw_html=data.get("raw_html", ""),
            fetched_at=data.get("fetched_at", ""),
            content_hash=data.get("content_hash", ""),
        )


@dataclass(frozen=True, slots=True)
class SchemaField:
    """Single field line inside a schema fragment."""

    name: str
    type_signature: str
    description: Optional[str] = None
    arguments: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type_signature": self.type_signature,
            "description": self.description,
            "arguments": self.arguments,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemaField":
        return cls(
            name=data["name"],
            type_signature=data.get("type_signature", ""),
            description=data.get("description"),
            arguments=data.get("arguments"),
        )


@dataclass(frozen=True, slots=True)
class SchemaFragment:
    """Block of schema-definition text classified by kind and name."""

    kind: FragmentKind
    name: str
    raw_text: str
    fields: Optional[List[SchemaField]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "raw_text": self.raw_text,
            "fields": (
                [item.to_dict() for item in self.fields]
                if self.fields is not None
                else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemaFragment":
        raw_fields = data.get("fields")
        return cls(
            kind=FragmentKind(data["kind"]),
            name=data["name"],
            raw_text=data.get("raw_text", ""),
            fields=(
                [SchemaField.from_dict(item) for item in raw_fields]
                if raw_fields is not None
                else None
            ),
        )


@dataclass(frozen=True, slots=True)
class CodeExample:
    """Code sample found in a preformatted block."""

    language: str
    code: str
    title: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "code": self.code,
            "title": self.title,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodeExample":
        return cls(
            language=data.get("language", "plaintext"),
            code=data.get("code", ""),
            title=data.get("title"),
            description=data.get("description"),
        )


@dataclass(frozen=True, slots=True)
class Endpoint:
    """HTTP endpoint mentioned on a page."""

    method: str
    url: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"method": self.method, "url": self.url, "description": self.description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Endpoint":
        return cls(
            method=data["method"],
            url=data["url"],
            description=data.get("description"),
        )


@dataclass(frozen=True, slots=True)
class NavLink:
    """Navigation entry harvested from a sidebar or nav container."""

    title: str
    url: str
    is_active: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "url": self.url, "is_active": self.is_active}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NavLink":
        return cls(
            title=data["title"],
            url=data["url"],
            is_active=bool(data.get("is_active", False)),
        )


@dataclass(frozen=True, slots=True)
class RelatedPage:
    """Link from a "related" or "see also" region."""

    title: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "url": self.url}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelatedPage":
        return cls(title=data["title"], url=data["url"])


@dataclass(frozen=True, slots=True)
class PageMetadata:
    """Page-level metadata derived from the URL and tag-like regions."""

    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    related_pages: List[RelatedPage] = field(default_factory=list)
    last_modified: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "tags": list(self.tags),
            "related_pages": [page.to_dict() for page in self.related_pages],
            "last_modified": self.last_modified,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageMetadata":
        return cls(
            category=data.get("category"),
            tags=list(data.get("tags") or []),
            related_pages=[
                RelatedPage.from_dict(item) for item in data.get("related_pages") or []
            ],
            last_modified=data.get("last_modified"),
        )


@dataclass(slots=True)
class Section:
    """Heading plus the content that follows it.

    Children always have a strictly greater level than their parent and are
    kept in document order.
    """

    id: str
    title: str
    level: int
    body_text: str = ""
    children: List["Section"] = field(default_factory=list)

    def walk(self) -> Iterator["Section"]:
        """Yield this section and all descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "level": self.level,
            "body_text": self.body_text,
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Section":
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            level=int(data.get("level", 1)),
            body_text=data.get("body_text", ""),
            children=[cls.from_dict(item) for item in data.get("children") or []],
        )


@dataclass(frozen=True, slots=True)
class ExtractedContent:
    """Structured knowledge extracted from one page's HTML."""

    title: str
    description: str = ""
    main_text: str = ""
    sections: List[Section] = field(default_factory=list)
    schema_fragments: List[SchemaFragment] = field(default_factory=list)
    code_examples: List[CodeExample] = field(default_factory=list)
    api_endpoints: List[Endpoint] = field(default_factory=list)
    navigation_links: List[NavLink] = field(default_factory=list)
    metadata: PageMetadata = field(default_factory=PageMetadata)

    def iter_sections(self) -> Iterator[Section]:
        """Yield every section of the tree in document order."""
        for section in self.sections:
            yield from section.walk()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "main_text": self.main_text,
            "sections": [section.to_dict() for section in self.sections],
            "schema_fragments": [item.to_dict() for item in self.schema_fragments],
            "code_examples": [item.to_dict() for item in self.code_examples],
            "api_endpoints": [item.to_dict() for item in self.api_endpoints],
            "navigation_links": [item.to_dict() for item in self.navigation_links],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractedContent":
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            main_text=data.get("main_text", ""),
            sections=[Section.from_dict(item) for item in data.get("sections") or []],
            schema_fragments=[
                SchemaFragment.from_dict(item)
                for item in data.get("schema_fragments") or []
            ],
            code_examples=[
                CodeExample.from_dict(item) for item in data.get("code_examples") or []
            ],
            api_endpoints=[
                Endpoint.from_dict(item) for item in data.get("api_endpoints") or []
            ],
            navigation_links=[
                NavLink.from_dict(item) for item in data.get("navigation_links") or []
            ],
            metadata=PageMetadata.from_dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True, slots=True)
class StoredDocument:
    """Unit persisted by a document store: the fetched page and its extraction."""

    page: FetchedPage
    content: ExtractedContent

    @property
    def url(self) -> str:
        return self.page.url

    def to_dict(self) -> Dict[str, Any]:
        return {"page": self.page.to_dict(), "content": self.content.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredDocument":
        return cls(
            page=FetchedPage.from_dict(data["page"]),
            content=ExtractedContent.from_dict(data.get("content") or {}),
        )
