"""Name-similarity search over existing contacts.

In the CRM this is a trigram query in the database; ``InMemorySimilaritySearch``
provides the same contract over a list of contacts for the CLI and tests.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from rapidfuzz import fuzz

from .model import ExistingContact, SimilarityResult


class SimilaritySearch(Protocol):
    def find_similar(
        self, name: str, min_similarity: float, limit: int
    ) -> list[SimilarityResult]:
        """Contacts whose name scores ``>= min_similarity``, best first, at most ``limit``."""
        ...


def name_similarity(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    return fuzz.token_sort_ratio(a.lower(), b.lower()) / 100.0


class InMemorySimilaritySearch:
    def __init__(self, contacts: Iterable[ExistingContact]):
        self.contacts = list(contacts)

    def find_similar(
        self, name: str, min_similarity: float, limit: int
    ) -> list[SimilarityResult]:
        results = [
            SimilarityResult(contact=c, name_similarity=sim)
            for c in self.contacts
            if (sim := name_similarity(name, c.full_name)) >= min_similarity
        ]
        # sorted() is stable, so equal scores keep contact order
        results.sort(key=lambda r: r.name_similarity, reverse=True)
        return results[:max(limit, 0)]
