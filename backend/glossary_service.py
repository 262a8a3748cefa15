"""Glossary page data: term records cross-referenced against RFDs.

- Terms are re-read from ``glossary.d`` on every call.
- Mentions are resolved per term, one RFD fetch at a time, through a single
  store session per call.
- Entries come back sorted by term name, ignoring case and accents.
"""

from __future__ import annotations

import inspect
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, List, Optional, Sequence

from exceptions import TermNotFoundError
from links import glossary_anchor, render_definition
from logger import get_logger
from mentions import resolve_mentions
from models import (
    DefinitionSegmentPayload,
    GlossaryEntry,
    GlossaryEntryPayload,
    GlossaryTerm,
    MentionPayload,
    RfdListItem,
    RfdMention,
    TermReferencePayload,
    TermSourcePayload,
    User,
)
from references import remove_rfd_references
from storage import TermStorage, term_sort_key

logger = get_logger(__name__)


def build_entry(term: GlossaryTerm, mentions: Sequence[RfdMention]) -> GlossaryEntry:
    return GlossaryEntry(
        term=term.term,
        definition=term.definition,
        mentions=list(mentions),
        references=list(term.references or ()),
        sources=list(term.sources or ()),
    )


def entry_payload(entry: GlossaryEntry, known_terms: Iterable[str]) -> GlossaryEntryPayload:
    """Shape an entry for the page, rendering ``[[term]]`` links."""
    segments = render_definition(entry.definition, known_terms, entry.term)
    return GlossaryEntryPayload(
        term=entry.term,
        anchor=glossary_anchor(entry.term),
        definition=entry.definition,
        display_definition=remove_rfd_references(entry.definition),
        segments=[
            DefinitionSegmentPayload(kind=s.kind, text=s.text, anchor=s.anchor) for s in segments
        ],
        mentions=[
            MentionPayload(
                number=m.number,
                formatted_number=m.formatted_number,
                title=m.title,
                exists=m.exists,
            )
            for m in entry.mentions
        ],
        references=[TermReferencePayload(term=r.term, anchor=r.anchor) for r in entry.references],
        sources=[TermSourcePayload(url=s.url, text=s.text) for s in entry.sources],
    )


class GlossaryService:
    """Builds glossary entries from a term store and an RFD store."""

    def __init__(self, storage: TermStorage, rfd_store):
        self.storage = storage
        self.rfd_store = rfd_store

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def entries(self, user: Optional[User] = None) -> List[GlossaryEntry]:
        terms = self.storage.load_terms()
        async with self._open_store() as store:
            rfds = await self._list_rfds(store, user)
            logger.info("Resolving %d glossary terms against %d RFDs", len(terms), len(rfds))
            return await self._resolve(store, terms, rfds, user)

    async def entry(self, term: str, user: Optional[User] = None) -> GlossaryEntry:
        wanted = (term or "").strip().lower()
        for candidate in self.storage.load_terms():
            if candidate.term.lower() == wanted:
                async with self._open_store() as store:
                    rfds = await self._list_rfds(store, user)
                    return (await self._resolve(store, [candidate], rfds, user))[0]
        raise TermNotFoundError(term)

    def term_names(self) -> List[str]:
        return [term.term for term in self.storage.load_terms()]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @asynccontextmanager
    async def _open_store(self) -> AsyncIterator[Any]:
        # Stores without session() are used directly.
        opener = getattr(self.rfd_store, "session", None)
        if opener is None:
            yield self.rfd_store
            return
        async with opener() as store:
            yield store

    async def _list_rfds(self, store, user: Optional[User]) -> List[RfdListItem]:
        result = store.list_rfds(user)
        if inspect.isawaitable(result):
            result = await result
        return list(result or [])

    async def _resolve(
        self,
        store,
        terms: Iterable[GlossaryTerm],
        rfds: List[RfdListItem],
        user: Optional[User],
    ) -> List[GlossaryEntry]:
        entries: List[GlossaryEntry] = []
        for term in terms:
            mentions = await resolve_mentions(term, rfds, store.fetch_content, user)
            entries.append(build_entry(term, mentions))
        entries.sort(key=term_sort_key)
        return entries
