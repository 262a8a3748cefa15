"""
Tests for assembling glossary entries from term files and RFDs.
"""

import asyncio
import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../backend"))

from exceptions import TermNotFoundError
from glossary_service import GlossaryService, build_entry, entry_payload
from models import GlossaryEntry, GlossaryTerm, RfdMention, TermReference, TermSource
from rfd_store import LocalRfdStore
from storage import TermStorage


def _term_file(root, name, payload):
    root.mkdir(parents=True, exist_ok=True)
    (root / f"{name}.json").write_text(json.dumps(payload), encoding="utf-8")


def _rfd(root, number, text):
    directory = root / str(number).zfill(4)
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "README.adoc").write_text(text, encoding="utf-8")


@pytest.fixture
def service(tmp_path):
    glossary = tmp_path / "glossary.d"
    rfds = tmp_path / "rfd"

    _term_file(glossary, "sled", {"term": "sled", "definition": "A server in the rack. Runs [[Helios]]."})
    _term_file(
        glossary,
        "crucible",
        {
            "term": "Crucible",
            "definition": "Distributed storage.",
            "mentions": [{"number": 60, "text": "Storage"}, {"number": 404, "text": "Lost RFD"}],
            "relatedTerms": [{"term": "sled", "anchor": "sled"}],
            "sources": [{"url": "https://example.com/crucible", "text": "Crucible repo"}],
        },
    )
    _term_file(glossary / "sw", "nexus", {"term": "nexus", "definition": "Control plane. See RFD 61 Control Plane."})
    _term_file(glossary, "private", {"term": "helios", "definition": "The OS.", "public": False})

    _rfd(rfds, 46, "= RFD 46 Server Sled 'Gimlet'\n\nEach Sled has a service processor.")
    _rfd(rfds, 60, "= RFD 60 Storage\n\nCrucible design.")
    _rfd(rfds, 61, "= RFD 61 Control Plane\n\nNexus talks to every sled's agent.")

    storage = TermStorage(glossary, allowed_terms={"sled", "crucible", "nexus", "helios"})
    return GlossaryService(storage=storage, rfd_store=LocalRfdStore(rfds))


@pytest.mark.unit
def test_entries_are_sorted_and_resolved(service):
    entries = asyncio.run(service.entries())

    assert [e.term for e in entries] == ["Crucible", "nexus", "sled"]

    crucible, nexus, sled = entries
    assert crucible.mentions == [
        RfdMention(60, "0060", "Storage", True),
        RfdMention(404, "0404", "Lost RFD", False),
    ]
    assert crucible.references == [TermReference("sled", "sled")]
    assert crucible.sources == [TermSource("https://example.com/crucible", "Crucible repo")]

    assert [m.number for m in nexus.mentions] == [61]
    assert [m.number for m in sled.mentions] == [46, 61]
    assert sled.references == [] and sled.sources == []


@pytest.mark.unit
def test_entry_lookup_is_case_insensitive(service):
    entry = asyncio.run(service.entry("NEXUS"))

    assert entry.term == "nexus"
    assert entry.mentions[0].title == "Control Plane"


@pytest.mark.unit
def test_entry_lookup_of_unpublished_term_raises(service):
    with pytest.raises(TermNotFoundError):
        asyncio.run(service.entry("helios"))


@pytest.mark.unit
def test_sorting_example_terms():
    class Terms:
        def load_terms(self):
            return [GlossaryTerm(name, "x") for name in ["sled", "Crucible", "nexus"]]

    class NoRfds:
        def list_rfds(self, user=None):
            return []

        def fetch_content(self, number, user=None):
            raise AssertionError("nothing to fetch")

    entries = asyncio.run(GlossaryService(Terms(), NoRfds()).entries())

    assert [e.term for e in entries] == ["Crucible", "nexus", "sled"]
    assert all(e.mentions == [] for e in entries)


@pytest.mark.unit
def test_build_entry_defaults_optional_lists():
    entry = build_entry(GlossaryTerm("sled", "A server."), [])

    assert entry == GlossaryEntry("sled", "A server.", [], [], [])


@pytest.mark.unit
def test_entry_payload_renders_links_against_known_terms():
    entry = GlossaryEntry(
        "sled",
        "Runs [[Helios]] and [[nexus]].",
        mentions=[RfdMention(46, "0046", "Gimlet", True)],
    )

    payload = entry_payload(entry, ["sled", "nexus"])

    assert payload.anchor == "glossary-term-sled"
    assert [(s.kind, s.text) for s in payload.segments] == [
        ("text", "Runs "),
        ("text", "Helios"),
        ("text", " and "),
        ("link", "nexus"),
        ("text", "."),
    ]
    assert payload.mentions[0].formatted_number == "0046"


@pytest.mark.unit
def test_sorting_ignores_accents():
    class Terms:
        def load_terms(self):
            return [GlossaryTerm(name, "x") for name in ["zone", "Éclair", "ezra"]]

    class NoRfds:
        def list_rfds(self, user=None):
            return []

        def fetch_content(self, number, user=None):
            raise AssertionError("nothing to fetch")

    entries = asyncio.run(GlossaryService(Terms(), NoRfds()).entries())

    assert [e.term for e in entries] == ["Éclair", "ezra", "zone"]


@pytest.mark.unit
def test_entries_share_one_remote_client(monkeypatch):
    import httpx

    from rfd_store import RemoteRfdStore

    created = []
    real_client = httpx.AsyncClient

    class CountingClient(real_client):
        def __init__(self, *args, **kwargs):
            created.append(self)
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", CountingClient)

    def handler(request):
        if request.url.path == "/rfds":
            return httpx.Response(200, json=[{"number": n, "title": f"RFD {n}"} for n in (46, 48, 61)])
        return httpx.Response(200, json={"content": "every sled" if request.url.path == "/rfds/48" else ""})

    class Terms:
        def load_terms(self):
            return [GlossaryTerm("sled", "A server."), GlossaryTerm("nexus", "Control plane.")]

    store = RemoteRfdStore("http://rfd.test", transport=httpx.MockTransport(handler))
    entries = asyncio.run(GlossaryService(Terms(), store).entries())

    assert [(e.term, [m.number for m in e.mentions]) for e in entries] == [("nexus", []), ("sled", [48])]
    assert len(created) == 1
