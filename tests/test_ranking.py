from __future__ import annotations

import pytest

from crm_matching.config import IMPORT_CONFIG
from crm_matching.model import (
    ContactMethod,
    EmailEntry,
    ExistingContact,
    MatchCandidate,
    MatchResult,
    RankedCandidate,
)
from crm_matching.ranking import paginate, rank_candidates, sort_candidates
from crm_matching.similarity import InMemorySimilaritySearch


# ── helpers ────────────────────────────────────────────────────────────────────

def _entry(name: str | None, confidence: float | None = None) -> RankedCandidate:
    match = None
    if confidence is not None:
        match = MatchResult(contact_id=f"id-{confidence}", contact_name="X", confidence=confidence)
    return RankedCandidate(candidate=MatchCandidate(display_name=name), match=match)


def _names(entries) -> list[str]:
    return [e.candidate.display_name for e in entries]


# ── Sorting ────────────────────────────────────────────────────────────────────

def test_sort_matched_first_then_alphabetical_empty_last():
    a = _entry("")
    b = _entry("B", 0.9)
    c = _entry("C", 0.95)
    d = _entry("Aaa")
    assert sort_candidates([a, b, c, d]) == [c, b, d, a]


def test_matched_beats_unmatched_regardless_of_confidence():
    low = _entry("Zed", 0.01)
    unmatched = _entry("Aaron")
    assert sort_candidates([unmatched, low]) == [low, unmatched]


def test_unmatched_sort_is_case_sensitive():
    assert _names(sort_candidates([_entry("alice"), _entry("Bob"), _entry("Alice")])) == [
        "Alice", "Bob", "alice",
    ]


def test_missing_names_sort_last():
    entries = [_entry(None), _entry("Zoe"), _entry("")]
    ordered = sort_candidates(entries)
    assert ordered[0].candidate.display_name == "Zoe"
    assert {e.candidate.effective_name for e in ordered[1:]} == {""}


def test_sort_uses_effective_name():
    by_parts = RankedCandidate(candidate=MatchCandidate(first_name="Amy", last_name="Zane"))
    assert sort_candidates([_entry("Bea"), by_parts])[0] is by_parts


def test_sort_is_stable_for_equal_keys():
    first = _entry("Same", 0.8)
    second = _entry("Other", 0.8)
    assert sort_candidates([first, second]) == [first, second]


# ── Batch ranking ──────────────────────────────────────────────────────────────

def _contacts() -> list[ExistingContact]:
    return [
        ExistingContact("c1", "Alice Smith", (ContactMethod("email_personal", "alice@home.com"),)),
        ExistingContact("c2", "Bob Jones", (ContactMethod("phone", "555-0100"),)),
    ]


def _candidates() -> list[MatchCandidate]:
    return [
        MatchCandidate(display_name="Zed Unknown"),
        MatchCandidate(display_name="Bob Jones"),
        MatchCandidate(display_name=None),
        MatchCandidate(display_name="Alice Smith", emails=(EmailEntry("Alice@Home.com"),)),
    ]


@pytest.mark.parametrize("workers", [None, 1, 4])
def test_rank_candidates(workers):
    ranked = rank_candidates(
        _candidates(), InMemorySimilaritySearch(_contacts()), IMPORT_CONFIG, max_workers=workers
    )
    assert [e.candidate.effective_name for e in ranked] == ["Alice Smith", "Bob Jones", "Zed Unknown", ""]
    assert ranked[0].match.contact_id == "c1"
    assert ranked[0].match.confidence == 1.0
    assert ranked[1].match.contact_id == "c2"
    assert ranked[1].match.confidence == pytest.approx(0.6)
    assert ranked[2].match is None
    assert ranked[3].match is None


# ── Pagination ─────────────────────────────────────────────────────────────────

def test_paginate_basic():
    page = paginate(list(range(45)), page=2, limit=20)
    assert page.items == list(range(20, 40))
    assert (page.page, page.limit, page.total, page.pages) == (2, 20, 45, 3)


def test_paginate_last_partial_page():
    assert paginate(list(range(45)), page=3, limit=20).items == [40, 41, 42, 43, 44]


def test_paginate_past_end_is_empty():
    page = paginate(list(range(5)), page=4, limit=2)
    assert page.items == []
    assert page.pages == 3


@pytest.mark.parametrize("page_no, limit, expected", [
    (0, 20, (1, 20)),
    (-3, 20, (1, 20)),
    (1, 0, (1, 20)),
    (1, 101, (1, 20)),
    (1, 100, (1, 100)),
])
def test_paginate_clamps(page_no, limit, expected):
    page = paginate(list(range(3)), page=page_no, limit=limit)
    assert (page.page, page.limit) == expected


def test_paginate_empty():
    page = paginate([], page=1, limit=20)
    assert page.items == []
    assert (page.total, page.pages) == (0, 0)
