"""Resolve which RFDs mention a glossary term.

Terms with authored ``mentions`` use them verbatim (looked up against the
live RFD list). Terms without them fall back to the ``See RFD N`` citations
in their definition, then to a text search over every other RFD.
"""

from __future__ import annotations

import inspect
import re
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set, Union

from logger import get_logger
from models import GlossaryTerm, RfdListItem, RfdMention, User, format_rfd_number
from references import extract_rfd_references

logger = get_logger(__name__)

ContentFetcher = Callable[[int, Optional[User]], Union[str, None, Awaitable[Optional[str]]]]


def term_pattern(term: str) -> "re.Pattern[str]":
    """Whole-word match for ``term``, allowing ``s``/``'s`` or a trailing ``:``/``.``."""
    escaped = re.escape(term)
    return re.compile(
        rf"(?<!\w){escaped}(?:s|'s)?(?!\w)|(?<!\w){escaped}[:.]",
        re.IGNORECASE,
    )


def _mention_for(
    number: int, rfd_map: Dict[int, RfdListItem], label: Optional[str] = None
) -> RfdMention:
    rfd = rfd_map.get(number)
    if rfd is not None:
        return RfdMention(
            number=rfd.number,
            formatted_number=rfd.formatted_number,
            title=rfd.title,
            exists=True,
        )
    # Dangling reference; keep it so the page can show the authored label.
    return RfdMention(
        number=number,
        formatted_number=format_rfd_number(number),
        title=label,
        exists=False,
    )


async def _fetch(fetch_content: ContentFetcher, number: int, user: Optional[User]) -> Optional[str]:
    result = fetch_content(number, user)
    if inspect.isawaitable(result):
        result = await result
    return result


async def resolve_mentions(
    term: GlossaryTerm,
    rfds: Iterable[RfdListItem],
    fetch_content: ContentFetcher,
    user: Optional[User] = None,
) -> List[RfdMention]:
    """Ordered RFD mentions for ``term``; each RFD number appears once."""
    rfd_list = list(rfds)
    rfd_map = {rfd.number: rfd for rfd in rfd_list}
    mentions: List[RfdMention] = []
    seen: Set[int] = set()

    def add(mention: RfdMention) -> None:
        if mention.number in seen:
            return
        seen.add(mention.number)
        mentions.append(mention)

    if term.mentions:
        for authored in term.mentions:
            add(_mention_for(authored.number, rfd_map, authored.text))
        return mentions

    for number in extract_rfd_references(term.definition):
        add(_mention_for(number, rfd_map))

    pattern = term_pattern(term.term)
    for rfd in rfd_list:
        if rfd.number in seen:
            continue
        try:
            content = await _fetch(fetch_content, rfd.number, user)
        except Exception as exc:
            logger.warning("Failed to load RFD %s for glossary search: %s", rfd.number, exc)
            continue

        if content and pattern.search(content):
            add(_mention_for(rfd.number, rfd_map))

    return mentions
