"""RFD document stores.

Two implementations share the same two calls:

- ``list_rfds(user)`` returns the RFDs visible to ``user``.
- ``fetch_content(number, user)`` returns the full document text.

``LocalRfdStore`` reads a checkout on disk and answers synchronously.
``RemoteRfdStore`` talks to the RFD HTTP API and answers with coroutines.
Callers await the result when it is awaitable.

Both also offer ``session()``, an async context manager yielding an object
with the same two calls that shares resources (one HTTP client) across a
batch of lookups.
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from config import Settings
from exceptions import RfdNotFoundError, RfdStoreError
from logger import get_logger
from models import RfdListItem, User, format_rfd_number

logger = get_logger(__name__)

_README_NAMES = ("README.adoc", "README.md")
_TITLE_LINE_RE = re.compile(r"^(?:=|#)[ \t]+(.+?)\s*$", re.MULTILINE)
_TITLE_PREFIX_RE = re.compile(r"^RFD\s+\d+\s*:?\s*", re.IGNORECASE)


def _title_from_content(content: str, number: int) -> str:
    match = _TITLE_LINE_RE.search(content or "")
    if not match:
        return f"RFD {number}"
    title = _TITLE_PREFIX_RE.sub("", match.group(1)).strip()
    return title or f"RFD {number}"


class LocalRfdStore:
    """RFDs stored as ``<root>/<NNNN>/README.adoc`` (or ``README.md``).

    Unpadded directory names (``46``) are accepted too. When two directories
    hold the same number, the zero-padded one wins.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @asynccontextmanager
    async def session(self) -> AsyncIterator["LocalRfdStore"]:
        yield self

    def list_rfds(self, user: Optional[User] = None) -> List[RfdListItem]:
        if not self.root.is_dir():
            logger.warning("RFD directory %s does not exist", self.root)
            return []

        rfds: List[RfdListItem] = []
        for number, readme in sorted(self._readmes().items()):
            try:
                content = readme.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable RFD %s: %s", number, exc)
                continue
            rfds.append(
                RfdListItem(
                    number=number,
                    title=_title_from_content(content, number),
                    formatted_number=format_rfd_number(number),
                )
            )
        return rfds

    def fetch_content(self, number: int, user: Optional[User] = None) -> str:
        readme = self._readme_path(self.root / format_rfd_number(number))
        if readme is None:
            readme = self._readmes().get(number)
        if readme is None:
            raise RfdNotFoundError(number)
        return readme.read_text(encoding="utf-8")

    def _readmes(self) -> Dict[int, Path]:
        readmes: Dict[int, Path] = {}
        if not self.root.is_dir():
            return readmes
        for child in sorted(self.root.iterdir()):
            if not child.is_dir() or not child.name.isdigit():
                continue
            readme = self._readme_path(child)
            if readme is None:
                continue
            number = int(child.name)
            if number in readmes and child.name != format_rfd_number(number):
                continue
            readmes[number] = readme
        return readmes

    def _readme_path(self, directory: Path) -> Optional[Path]:
        for name in _README_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None


def _parse_list_item(item: Any) -> Optional[RfdListItem]:
    if not isinstance(item, dict):
        return None
    number = item.get("number")
    if not isinstance(number, int) or isinstance(number, bool):
        return None
    formatted = item.get("formattedNumber") or item.get("formatted_number")
    return RfdListItem(
        number=number,
        title=str(item.get("title") or f"RFD {number}"),
        formatted_number=str(formatted) if formatted else format_rfd_number(number),
    )


class RemoteRfdSession:
    """RFD API calls sharing one ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def list_rfds(self, user: Optional[User] = None) -> List[RfdListItem]:
        try:
            payload = await self._get_json("/rfds", user)
        except (httpx.HTTPError, RfdStoreError) as exc:
            logger.error("Failed to list RFDs from %s: %s", self.client.base_url, exc)
            return []

        if not isinstance(payload, list):
            logger.error("Unexpected RFD listing payload from %s", self.client.base_url)
            return []

        rfds: List[RfdListItem] = []
        for item in payload:
            rfd = _parse_list_item(item)
            if rfd is not None:
                rfds.append(rfd)
        return rfds

    async def fetch_content(self, number: int, user: Optional[User] = None) -> str:
        try:
            payload = await self._get_json(f"/rfds/{number}", user)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise RfdNotFoundError(number) from exc
            raise RfdStoreError(f"RFD {number} request failed", {"status": exc.response.status_code}) from exc
        except httpx.HTTPError as exc:
            raise RfdStoreError(f"RFD {number} request failed: {exc}") from exc

        if not isinstance(payload, dict):
            raise RfdStoreError(f"Unexpected payload for RFD {number}")
        return str(payload.get("content") or "")

    async def _get_json(self, path: str, user: Optional[User]) -> Any:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if user is not None and user.token:
            headers["Authorization"] = f"Bearer {user.token}"

        response = await self.client.get(path, headers=headers)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise RfdStoreError(f"Invalid JSON from {path}") from exc


class RemoteRfdStore:
    """Client for the RFD API (``GET /rfds`` and ``GET /rfds/{number}``).

    ``list_rfds``/``fetch_content`` open a client per call; use ``session()``
    to reuse one connection pool across many lookups.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @asynccontextmanager
    async def session(self) -> AsyncIterator[RemoteRfdSession]:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            yield RemoteRfdSession(client)

    async def list_rfds(self, user: Optional[User] = None) -> List[RfdListItem]:
        async with self.session() as session:
            return await session.list_rfds(user)

    async def fetch_content(self, number: int, user: Optional[User] = None) -> str:
        async with self.session() as session:
            return await session.fetch_content(number, user)


def build_rfd_store(settings: Settings):
    if settings.rfd_mode == "remote":
        return RemoteRfdStore(settings.rfd_api_url, timeout=settings.rfd_api_timeout)
    return LocalRfdStore(settings.rfd_local_dir)
