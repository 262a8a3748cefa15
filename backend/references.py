"""Inline ``See RFD N`` citations inside glossary definitions."""

from __future__ import annotations

import re
from typing import List, Set

# "See RFD 46" or "See RFD 61 Control Plane Architecture and Design."
_RFD_REFERENCE_RE = re.compile(r"See\s+RFD\s+(\d+)", re.IGNORECASE)
_RFD_CITATION_RE = re.compile(r"\.?\s*See\s+RFD\s+\d+(?:\s+[^.]*)?\.?", re.IGNORECASE)


def extract_rfd_references(definition: str) -> List[int]:
    """RFD numbers cited in ``definition``, first occurrence order, no repeats."""
    numbers: List[int] = []
    seen: Set[int] = set()
    for match in _RFD_REFERENCE_RE.finditer(definition or ""):
        try:
            number = int(match.group(1))
        except ValueError:
            continue
        if number in seen:
            continue
        seen.add(number)
        numbers.append(number)
    return numbers


def remove_rfd_references(definition: str) -> str:
    """Drop ``See RFD N [title].`` phrases so the definition reads cleanly."""
    return _RFD_CITATION_RE.sub("", definition or "").strip()
