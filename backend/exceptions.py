"""Exception hierarchy for the glossary backend."""

from __future__ import annotations

from typing import Any, Dict, Optional


class GlossaryError(Exception):
    """Base class for glossary backend errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class TermNotFoundError(GlossaryError):
    """Raised when a glossary term is not published."""

    def __init__(self, term: str) -> None:
        super().__init__(f"Glossary term not found: {term}", {"term": term})
        self.term = term


class RfdNotFoundError(GlossaryError):
    """Raised when an RFD number has no content in the store."""

    def __init__(self, number: int) -> None:
        super().__init__(f"RFD not found: {number}", {"number": number})
        self.number = number


class RfdStoreError(GlossaryError):
    """Raised when the RFD store cannot be reached or returns garbage."""
