"""Filesystem-backed storage for glossary term records."""

from __future__ import annotations

import json
import unicodedata
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from logger import get_logger
from models import AuthoredMention, GlossaryTerm, TermReference, TermSource

logger = get_logger(__name__)


def find_term_files(root: Path, suffix: str = ".json") -> List[Path]:
    """Walk ``root`` and return every file ending in ``suffix``, sorted.

    Each directory is visited once by resolved path, so symlink loops end.
    Unreadable directories are logged and skipped.
    """
    found: List[Path] = []
    to_visit = [Path(root)]
    seen: Set[Path] = set()
    while to_visit:
        current = to_visit.pop()
        resolved = current.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        try:
            children = list(current.iterdir())
        except OSError as exc:
            logger.error("Cannot list glossary directory %s: %s", current, exc)
            continue
        for child in children:
            if child.is_dir():
                to_visit.append(child)
            elif child.name.endswith(suffix):
                found.append(child)
    return sorted(found)


class TermStorage:
    """Reads ``glossary.d`` style JSON term records."""

    def __init__(self, root: Path, allowed_terms: Optional[Iterable[str]] = None):
        self.root = Path(root)
        self.allowed_terms: Optional[Set[str]] = (
            {term.lower() for term in allowed_terms} if allowed_terms is not None else None
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load_terms(self) -> List[GlossaryTerm]:
        """Load every published term. Bad files are logged and skipped."""
        if not self.root.is_dir():
            logger.warning("Glossary directory %s does not exist", self.root)
            return []

        terms: List[GlossaryTerm] = []
        loaded: Dict[str, Path] = {}
        for path in find_term_files(self.root):
            try:
                term = self._read_term(path)
            except (OSError, ValueError) as exc:
                logger.error("Failed to load glossary term from %s: %s", path, exc)
                continue

            if not self._is_published(term):
                logger.debug("Skipping unpublished glossary term %r from %s", term.term, path)
                continue
            key = term.term.lower()
            if key in loaded:
                logger.warning(
                    "Ignoring duplicate glossary term %r in %s (already loaded from %s)",
                    term.term,
                    path,
                    loaded[key],
                )
                continue
            loaded[key] = path
            terms.append(term)

        terms.sort(key=term_sort_key)
        return terms

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _is_published(self, term: GlossaryTerm) -> bool:
        if not term.public:
            return False
        if self.allowed_terms is None:
            return True
        return term.term.lower() in self.allowed_terms

    def _read_term(self, path: Path) -> GlossaryTerm:
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)
        return parse_term(raw)


def term_sort_key(term) -> tuple:
    """Case- and accent-insensitive ordering; the raw name breaks ties."""
    name = term.term
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), name)


def parse_term(raw: Any) -> GlossaryTerm:
    """Normalize one decoded JSON record into a ``GlossaryTerm``.

    ``relatedTerms`` become ``references``; external links live in ``sources``
    or, in older files, in ``references``.
    """
    if not isinstance(raw, dict):
        raise ValueError("term record must be a JSON object")

    name = raw.get("term")
    definition = raw.get("definition")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("missing 'term'")
    if not isinstance(definition, str) or not definition.strip():
        raise ValueError("missing 'definition'")

    if isinstance(raw.get("sources"), list):
        source_items = raw["sources"]
    elif isinstance(raw.get("references"), list):
        source_items = raw["references"]
    else:
        source_items = []

    return GlossaryTerm(
        term=name,
        definition=definition,
        mentions=tuple(_parse_mentions(raw.get("mentions"))),
        references=tuple(_parse_references(raw.get("relatedTerms"))),
        sources=tuple(_parse_sources(source_items)),
        public=raw.get("public") is not False,
    )


def _dict_items(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _parse_mentions(value: Any) -> List[AuthoredMention]:
    mentions: List[AuthoredMention] = []
    for item in _dict_items(value):
        number = item.get("number")
        # bool is an int subclass
        if not isinstance(number, int) or isinstance(number, bool):
            continue
        text = item.get("text")
        mentions.append(AuthoredMention(number=number, text=text if isinstance(text, str) else None))
    return mentions


def _parse_references(value: Any) -> List[TermReference]:
    return [
        TermReference(term=str(item["term"]), anchor=str(item["anchor"]))
        for item in _dict_items(value)
        if "term" in item and "anchor" in item
    ]


def _parse_sources(value: Any) -> List[TermSource]:
    return [
        TermSource(url=str(item["url"]), text=str(item.get("text") or ""))
        for item in _dict_items(value)
        if item.get("url")
    ]
