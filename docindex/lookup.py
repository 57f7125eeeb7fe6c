"""Schema, operation, code-sample and endpoint lookups over a document store.

The mutation and query lookups are name heuristics: an operation matches
when one of a fixed set of action/entity name patterns occurs inside the
field name, case-insensitively. They can produce false positives on
ambiguous names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .document import (
    CodeExample,
    Endpoint,
    FragmentKind,
    SchemaField,
    SchemaFragment,
    StoredDocument,
)
from .store import DocumentStore


@dataclass(slots=True)
class SchemaMatch:
    url: str
    fragment: SchemaFragment
    exact: bool


@dataclass(slots=True)
class OperationMatch:
    url: str
    field: SchemaField
    fragment: SchemaFragment


@dataclass(slots=True)
class ExampleMatch:
    url: str
    example: CodeExample
    relevance: int


@dataclass(slots=True)
class EndpointMatch:
    url: str
    endpoint: Endpoint


def _iter_documents(store: DocumentStore) -> Iterator[Tuple[str, StoredDocument]]:
    for url in store.list():
        document = store.get(url)
        if document is not None:
            yield url, document


def find_schema_type(store: DocumentStore, type_name: str) -> List[SchemaMatch]:
    """Fragments whose name equals type_name, then those containing it."""
    wanted = type_name.lower()
    matches: List[SchemaMatch] = []
    for url, document in _iter_documents(store):
        for fragment in document.content.schema_fragments:
            name = fragment.name.lower()
            if name == wanted:
                matches.append(SchemaMatch(url=url, fragment=fragment, exact=True))
            elif wanted in name:
                matches.append(SchemaMatch(url=url, fragment=fragment, exact=False))
    matches.sort(key=lambda match: not match.exact)
    return matches


def find_field(
    store: DocumentStore, type_name: str, field_name: str
) -> Optional[Tuple[SchemaMatch, SchemaField]]:
    """Return the first field named field_name on an exactly named type."""
    wanted = field_name.lower()
    for match in find_schema_type(store, type_name):
        if not match.exact:
            break
        for schema_field in match.fragment.fields or []:
            if schema_field.name.lower() == wanted:
                return match, schema_field
    return None


def mutation_patterns(action: str, entity: str) -> List[str]:
    return [
        f"{action}{entity}",
        f"{entity}{action}",
        f"save{entity}",
        f"{action}{entity}s",
        f"{entity}Create",
        f"{entity}Update",
        f"{entity}Delete",
    ]


def query_patterns(entity: str, operation: Optional[str] = None) -> List[str]:
    singular = entity[:-1] if entity.endswith("s") else entity
    patterns = []
    if operation:
        patterns.extend([f"{operation}{entity}", f"{operation}{singular}"])
    patterns.extend([f"list{entity}", f"list{singular}", f"get{singular}", entity])
    return patterns


def _match_operations(
    store: DocumentStore, kind: FragmentKind, patterns: List[str]
) -> List[OperationMatch]:
    lowered = [pattern.lower() for pattern in patterns]
    matches: List[OperationMatch] = []
    for url, document in _iter_documents(store):
        for fragment in document.content.schema_fragments:
            if fragment.kind is not kind:
                continue
            for schema_field in fragment.fields or []:
                name = schema_field.name.lower()
                if any(pattern in name for pattern in lowered):
                    matches.append(
                        OperationMatch(url=url, field=schema_field, fragment=fragment)
                    )
    return matches


def find_mutation(store: DocumentStore, action: str, entity: str) -> List[OperationMatch]:
    """Mutation fields named after ``action`` applied to ``entity``."""
    return _match_operations(
        store, FragmentKind.MUTATION, mutation_patterns(action, entity)
    )


def find_query(
    store: DocumentStore, entity: str, operation: Optional[str] = None
) -> List[OperationMatch]:
    """Query fields that read ``entity``, optionally via ``operation``."""
    return _match_operations(store, FragmentKind.QUERY, query_patterns(entity, operation))


def find_code_examples(
    store: DocumentStore, topic: str, language: Optional[str] = None
) -> List[ExampleMatch]:
    """Code samples ranked by where topic appears: title, description, code."""
    wanted = topic.lower()
    matches: List[ExampleMatch] = []
    for url, document in _iter_documents(store):
        for example in document.content.code_examples:
            if language and example.language != language:
                continue
            relevance = 0
            if example.title and wanted in example.title.lower():
                relevance += 10
            if example.description and wanted in example.description.lower():
                relevance += 5
            if wanted in example.code.lower():
                relevance += 1
            if relevance > 0:
                matches.append(ExampleMatch(url=url, example=example, relevance=relevance))
    matches.sort(key=lambda match: -match.relevance)
    return matches


def find_endpoints(store: DocumentStore, operation: str) -> List[EndpointMatch]:
    """Endpoints whose URL or description mentions operation."""
    wanted = operation.lower()
    matches: List[EndpointMatch] = []
    seen = set()
    for url, document in _iter_documents(store):
        for endpoint in document.content.api_endpoints:
            haystack = f"{endpoint.url} {endpoint.description or ''}".lower()
            key = (endpoint.method, endpoint.url)
            if wanted in haystack and key not in seen:
                seen.add(key)
                matches.append(EndpointMatch(url=url, endpoint=endpoint))
    return matches
