"""Shared backend models for the glossary."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


def format_rfd_number(number: int) -> str:
    return str(number).zfill(4)


@dataclass(frozen=True)
class AuthoredMention:
    number: int
    text: Optional[str] = None


@dataclass(frozen=True)
class TermReference:
    """Link to another glossary term."""

    term: str
    anchor: str


@dataclass(frozen=True)
class TermSource:
    """External citation for a definition."""

    url: str
    text: str = ""


@dataclass(frozen=True)
class GlossaryTerm:
    """A term record as loaded from ``glossary.d``."""

    term: str
    definition: str
    mentions: Tuple[AuthoredMention, ...] = ()
    references: Tuple[TermReference, ...] = ()
    sources: Tuple[TermSource, ...] = ()
    public: bool = True


@dataclass(frozen=True)
class RfdListItem:
    number: int
    title: str
    formatted_number: str = ""

    def __post_init__(self):
        if not self.formatted_number:
            object.__setattr__(self, "formatted_number", format_rfd_number(self.number))


@dataclass(frozen=True)
class RfdMention:
    number: int
    formatted_number: str
    title: Optional[str] = None
    exists: bool = True


@dataclass(frozen=True)
class GlossaryEntry:
    term: str
    definition: str
    mentions: List[RfdMention] = field(default_factory=list)
    references: List[TermReference] = field(default_factory=list)
    sources: List[TermSource] = field(default_factory=list)


@dataclass(frozen=True)
class User:
    """Caller identity forwarded to the RFD store."""

    token: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.token


# API payloads

class DefinitionSegmentPayload(BaseModel):
    kind: str
    text: str
    anchor: Optional[str] = None


class MentionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    number: int
    formatted_number: str = Field(alias="formatted_number")
    title: Optional[str] = None
    exists: bool = True


class TermReferencePayload(BaseModel):
    term: str
    anchor: str


class TermSourcePayload(BaseModel):
    url: str
    text: str = ""


class GlossaryEntryPayload(BaseModel):
    term: str
    anchor: str
    definition: str
    display_definition: str = ""
    segments: List[DefinitionSegmentPayload] = Field(default_factory=list)
    mentions: List[MentionPayload] = Field(default_factory=list)
    references: List[TermReferencePayload] = Field(default_factory=list)
    sources: List[TermSourcePayload] = Field(default_factory=list)


class GlossaryResponsePayload(BaseModel):
    entries: List[GlossaryEntryPayload] = Field(default_factory=list)
