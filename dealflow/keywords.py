"""Keyword normalization and synonym expansion for sector matching.

Free text, JSON-encoded tag lists and delimited strings are turned into sets
of canonical keywords, each expanded with its synonym group from
``config.sector_taxonomy``.
"""
from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from typing import Any, Iterable, Mapping

from config.sector_taxonomy import KEYWORD_SYNONYMS

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s/&_]+")
_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_SPACES = re.compile(r"\s+")
_COMPOUND_SPLIT = re.compile(r"[\s-]")
_DELIMITERS = re.compile(r"[,;]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")

MIN_TOKEN_LENGTH = 2


def normalize_keyword(value: str | None) -> str:
    """Canonical form of a keyword: lowercase, single spaces, ``[a-z0-9 -]`` only."""
    if not value:
        return ""
    text = _SEPARATORS.sub(" ", value.lower())
    text = _DISALLOWED.sub("", text)
    return _SPACES.sub(" ", text).strip()


def _flatten(values: Iterable[Any]) -> list[str]:
    items: list[str] = []
    for value in values:
        if isinstance(value, str):
            items.append(value.strip())
        elif isinstance(value, (list, tuple)):
            items.extend(v.strip() for v in value if isinstance(v, str))
    return [item for item in items if item]


def _split_delimited(text: str) -> list[str]:
    return [part.strip() for part in _DELIMITERS.split(text) if part.strip()]


def _load_json(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except json.JSONDecodeError:
        return False, None


def parse_list_field(value: Any) -> list[str]:
    """Parse a tag-like field into a flat list of strings.

    Accepted shapes:
    - list/tuple of strings
    - mapping of lists (values are flattened)
    - JSON text encoding either of the above, or a JSON string
    - comma/semicolon delimited text

    Malformed JSON yields an empty list.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return _flatten(value)
    if isinstance(value, Mapping):
        return _flatten(value.values())
    if not isinstance(value, str):
        return []

    text = value.strip()
    if not text:
        return []

    if text[0] not in "[{\"":
        return _split_delimited(text)

    ok, parsed = _load_json(text)
    if not ok:
        logger.debug(f"Ignoring malformed JSON list field: {text[:60]!r}")
        return []
    if isinstance(parsed, list):
        return _flatten(parsed)
    if isinstance(parsed, dict):
        return _flatten(parsed.values())
    if isinstance(parsed, str):
        return _split_delimited(parsed)
    return []


class KeywordExpander:
    """Symmetric synonym lookup built once from a root -> synonyms table.

    Every term of a group maps to the whole group. A term listed in several
    groups maps to the union of them, so two terms expand to each other
    exactly when they share a group.
    """

    def __init__(self, synonyms: Mapping[str, Iterable[str]] | None = None) -> None:
        """Initialize expander.

        Args:
            synonyms: Root -> synonyms table. If None, uses the sector taxonomy.
        """
        self._lookup: dict[str, frozenset[str]] = {}
        self._build_index(KEYWORD_SYNONYMS if synonyms is None else synonyms)
        logger.info(f"Loaded {len(self._lookup)} sector keywords into synonym lookup")

    def _build_index(self, synonyms: Mapping[str, Iterable[str]]) -> None:
        merged: dict[str, set[str]] = {}
        for root, terms in synonyms.items():
            normalized_root = normalize_keyword(root)
            if not normalized_root:
                continue
            group = {normalized_root}
            group.update(normalize_keyword(term) for term in terms)
            group.discard("")
            for term in group:
                merged.setdefault(term, set()).update(group)
        self._lookup = {term: frozenset(group) for term, group in merged.items()}

    def synonyms(self, keyword: str) -> frozenset[str]:
        """Synonym group for an already normalized keyword (empty if unknown)."""
        return self._lookup.get(keyword, frozenset())

    def expand(self, keyword: str) -> set[str]:
        """Keyword plus its synonyms, and each compound part plus its synonyms.

        "ai-ml" expands to {"ai-ml", "ai", "ml", ...synonyms of ai and ml}.
        """
        normalized = normalize_keyword(keyword)
        if not normalized:
            return set()

        expanded = {normalized}
        expanded.update(self.synonyms(normalized))

        for part in _COMPOUND_SPLIT.split(normalized):
            clean = normalize_keyword(part)
            if len(clean) >= MIN_TOKEN_LENGTH:
                expanded.add(clean)
                expanded.update(self.synonyms(clean))

        return expanded

    def build_keyword_list(self, values: Iterable[Any]) -> set[str]:
        """Canonical, synonym-expanded keyword set from mixed raw values."""
        keywords: set[str] = set()
        for value in values:
            for item in parse_list_field(value):
                keywords.update(self.expand(item))
        return keywords


@lru_cache(maxsize=1)
def get_keyword_expander() -> KeywordExpander:
    """Process-wide expander over the static sector taxonomy."""
    return KeywordExpander()


def build_keyword_list(values: Iterable[Any]) -> set[str]:
    """Module-level shortcut over the shared expander."""
    return get_keyword_expander().build_keyword_list(values)


def tokens_from_keywords(keywords: Iterable[str]) -> set[str]:
    """Split multi-word keywords into their words (at least two characters)."""
    tokens: set[str] = set()
    for keyword in keywords:
        for part in keyword.split(" "):
            normalized = normalize_keyword(part)
            if len(normalized) >= MIN_TOKEN_LENGTH:
                tokens.add(normalized)
    return tokens


def to_token_set(text: str | None) -> set[str]:
    """Lowercase alphanumeric words of free text."""
    if not text:
        return set()
    return set(_NON_ALNUM.sub(" ", text.lower()).split())


def jaccard(a: set[str], b: set[str]) -> float:
    """Intersection over union; 0 when either side is empty."""
    if not a or not b:
        return 0.0
    intersection = len(a & b)
    union = len(a) + len(b) - intersection
    return intersection / union if union else 0.0


def keyword_overlap(a: set[str], b: set[str]) -> float:
    """Shared keywords relative to the smaller set."""
    if not a or not b:
        return 0.0
    return len(a & b) / min(len(a), len(b))
