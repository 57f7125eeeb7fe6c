"""Pattern-based classification of schema-definition code blocks.

A candidate block is matched against an ordered list of header rules; the
first rule that matches decides the fragment kind and name. Blocks that
match no rule are not schema fragments. Classification never raises.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

from .document import FragmentKind, SchemaField, SchemaFragment

LOGGER = logging.getLogger(__name__)

MIN_BLOCK_LENGTH = 20

STRUCTURAL_KEYWORDS = frozenset(
    {"type", "input", "enum", "interface", "query", "mutation"}
)

CODE_BLOCK_SELECTORS: List[str] = [
    "pre code",
    ".language-graphql",
    ".language-gql",
    "[class*='graphql']",
    "code",
]

# Whole quoted string literals in inline scripts, honouring backslash escapes
SCRIPT_LITERAL = re.compile(
    r'"((?:[^"\\]|\\.)*)"|\'((?:[^\'\\]|\\.)*)\'|`((?:[^`\\]|\\.)*)`',
    re.S,
)

TYPE_LIKE = re.compile(r"(?:type|input|enum|interface)\s+\w+\s*\{[\s\S]*?\}")

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

FIELD_PATTERN = re.compile(
    r"(?P<name>\w+)\s*(?P<args>\([^)]*\))?\s*:\s*(?P<type>[\w\[\]!]+)"
)


@dataclass(frozen=True)
class _Rule:
    pattern: re.Pattern
    resolve: Callable[[re.Match], Tuple[FragmentKind, str]]


def _fixed(kind: FragmentKind, name: str) -> Callable[[re.Match], Tuple[FragmentKind, str]]:
    return lambda _match: (kind, name)


def _named(kind: FragmentKind) -> Callable[[re.Match], Tuple[FragmentKind, str]]:
    return lambda match: (kind, match.group("name"))


def _type_or_interface(match: re.Match) -> Tuple[FragmentKind, str]:
    keyword = match.group("keyword")
    kind = FragmentKind.INTERFACE if keyword == "interface" else FragmentKind.TYPE
    return kind, match.group("name")


def _operation(match: re.Match) -> Tuple[FragmentKind, str]:
    keyword = match.group("keyword")
    return FragmentKind(keyword), match.group("name") or f"{keyword}Operation"


# Priority order matters: the root operation types shadow the generic type rule.
RULES: Tuple[_Rule, ...] = (
    _Rule(re.compile(r"^\s*type\s+Query\s*\{", re.M), _fixed(FragmentKind.QUERY, "Query")),
    _Rule(
        re.compile(r"^\s*type\s+Mutation\s*\{", re.M),
        _fixed(FragmentKind.MUTATION, "Mutation"),
    ),
    _Rule(re.compile(r"^\s*input\s+(?P<name>\w+)\s*\{", re.M), _named(FragmentKind.INPUT)),
    _Rule(re.compile(r"^\s*enum\s+(?P<name>\w+)\s*\{", re.M), _named(FragmentKind.ENUM)),
    _Rule(
        re.compile(r"^\s*(?P<keyword>type|interface)\s+(?P<name>\w+)\s*\{", re.M),
        _type_or_interface,
    ),
    _Rule(
        re.compile(
            r"^\s*(?P<keyword>query|mutation)\b\s*(?P<name>\w+)?\s*(?:\([^)]*\))?\s*\{",
            re.M,
        ),
        _operation,
    ),
)


def classify_block(text: Optional[str]) -> Optional[SchemaFragment]:
    """Classify a code-like block, returning None when it is not a fragment."""
    if not text:
        return None
    code = text.strip()
    if len(code) < MIN_BLOCK_LENGTH:
        return None

    for rule in RULES:
        match = rule.pattern.search(code)
        if match is None:
            continue
        kind, name = rule.resolve(match)
        body = _brace_body(code, match.end() - 1)
        return SchemaFragment(
            kind=kind,
            name=name,
            raw_text=code,
            fields=extract_fields(body),
        )
    return None


def _brace_body(code: str, open_index: int) -> str:
    """Return the text between the brace at open_index and its partner."""
    depth = 0
    for index in range(open_index, len(code)):
        char = code[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return code[open_index + 1 : index]
    return code[open_index + 1 :]


def extract_fields(body: str) -> Optional[List[SchemaField]]:
    """Parse ``name[(args)]: Type [# description]`` entries from a brace body."""
    fields: List[SchemaField] = []
    for line in body.splitlines():
        code, _, comment = line.partition("#")
        description = comment.strip() or None
        for match in FIELD_PATTERN.finditer(code):
            name = match.group("name")
            if name in STRUCTURAL_KEYWORDS:
                continue
            args = match.group("args")
            fields.append(
                SchemaField(
                    name=name,
                    type_signature=match.group("type"),
                    description=description,
                    arguments=args[1:-1].strip() if args else None,
                )
            )
    return fields or None


def dedupe_fragments(fragments: Iterable[SchemaFragment]) -> List[SchemaFragment]:
    """Keep one fragment per (kind, name), preferring the longest raw text."""
    kept: Dict[Tuple[FragmentKind, str], SchemaFragment] = {}
    for fragment in fragments:
        key = (fragment.kind, fragment.name)
        existing = kept.get(key)
        if existing is None or len(fragment.raw_text) > len(existing.raw_text):
            kept[key] = fragment
    return list(kept.values())


def _unescape_literal(literal: str) -> str:
    return re.sub(
        r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), literal, flags=re.S
    )


def _script_candidates(soup: BeautifulSoup) -> Iterable[str]:
    for script in soup.find_all("script"):
        source = script.string or script.get_text() or ""
        if not source:
            continue
        for match in SCRIPT_LITERAL.finditer(source):
            literal = next(group for group in match.groups() if group is not None)
            text = _unescape_literal(literal)
            if TYPE_LIKE.search(text):
                yield text


def _code_candidates(soup: BeautifulSoup) -> Iterable[str]:
    for selector in CODE_BLOCK_SELECTORS:
        for element in soup.select(selector):
            yield element.get_text().strip()


def extract_schema_fragments(soup: BeautifulSoup) -> List[SchemaFragment]:
    """Classify every candidate block on a page and deduplicate the results."""
    fragments: List[SchemaFragment] = []
    for candidate in _script_candidates(soup):
        fragment = classify_block(candidate)
        if fragment is not None:
            fragments.append(fragment)
    for candidate in _code_candidates(soup):
        fragment = classify_block(candidate)
        if fragment is not None:
            fragments.append(fragment)
    unique = dedupe_fragments(fragments)
    LOGGER.debug(
        "Classified %d schema fragments (%d unique)", len(fragments), len(unique)
    )
    return unique
