"""Turn ``[[term]]`` markers in definitions into text and link segments."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

_LINK_RE = re.compile(r"\[\[(\w+)\]\]")

TEXT = "text"
LINK = "link"


@dataclass(frozen=True)
class DefinitionSegment:
    kind: str
    text: str
    anchor: Optional[str] = None


def glossary_anchor(term: str) -> str:
    return f"glossary-term-{term.lower()}"


def render_definition(
    definition: str, known_terms: Iterable[str], current_term: str
) -> List[DefinitionSegment]:
    """Split ``definition`` into segments.

    A marker becomes a link only when it names a known term other than
    ``current_term``; otherwise it is kept as plain text without brackets.
    """
    known = {term.lower() for term in known_terms}
    current = (current_term or "").lower()
    segments: List[DefinitionSegment] = []
    last_index = 0

    for match in _LINK_RE.finditer(definition or ""):
        if match.start() > last_index:
            segments.append(DefinitionSegment(TEXT, definition[last_index : match.start()]))

        display = match.group(1)
        linked = display.lower()
        if linked in known and linked != current:
            segments.append(DefinitionSegment(LINK, display, glossary_anchor(linked)))
        else:
            segments.append(DefinitionSegment(TEXT, display))
        last_index = match.end()

    if definition and last_index < len(definition):
        segments.append(DefinitionSegment(TEXT, definition[last_index:]))
    return segments
