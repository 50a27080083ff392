from __future__ import annotations

from crm_matching.model import ExistingContact
from crm_matching.similarity import InMemorySimilaritySearch, name_similarity


def _contacts(*names: str) -> list[ExistingContact]:
    return [ExistingContact(id=f"c{i}", full_name=n) for i, n in enumerate(names, start=1)]


def test_name_similarity_ignores_case_and_token_order():
    assert name_similarity("John Smith", "smith JOHN") == 1.0


def test_name_similarity_empty():
    assert name_similarity("", "John") == 0.0
    assert name_similarity("John", "") == 0.0


def test_find_similar_sorted_and_filtered():
    search = InMemorySimilaritySearch(_contacts("Jon Smith", "Completely Different", "John Smith"))
    results = search.find_similar("John Smith", 0.5, 5)
    assert [r.contact.id for r in results] == ["c3", "c1"]
    assert results[0].name_similarity == 1.0
    assert results[0].name_similarity >= results[1].name_similarity >= 0.5


def test_find_similar_respects_limit():
    search = InMemorySimilaritySearch(_contacts("Ann Lee", "Ann Lee", "Ann Lee"))
    assert [r.contact.id for r in search.find_similar("Ann Lee", 0.3, 2)] == ["c1", "c2"]


def test_find_similar_no_hits():
    search = InMemorySimilaritySearch(_contacts("Alice"))
    assert search.find_similar("Zebediah Quartermaine", 0.9, 5) == []
