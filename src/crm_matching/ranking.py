"""Ordering of import candidates for the candidate list view.

Matched candidates come first by confidence (highest first), then unmatched
candidates by effective name, with empty names last. Pagination is applied to
the already sorted list.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import DEFAULT_CANDIDATE_LIMIT, FuzzyConfig
from .matcher import match_candidate
from .model import MatchCandidate, RankedCandidate

if TYPE_CHECKING:
    from .similarity import SimilaritySearch

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _sort_key(entry: RankedCandidate) -> tuple:
    if entry.match is not None:
        return (0, -entry.match.confidence)
    name = entry.candidate.effective_name
    return (1, name == "", name)


def sort_candidates(entries: Iterable[RankedCandidate]) -> list[RankedCandidate]:
    return sorted(entries, key=_sort_key)


def rank_candidates(
    candidates: Iterable[MatchCandidate],
    search: SimilaritySearch,
    config: FuzzyConfig,
    limit: int = DEFAULT_CANDIDATE_LIMIT,
    max_workers: int | None = None,
) -> list[RankedCandidate]:
    """Match every candidate independently, then sort the batch.

    With ``max_workers`` greater than 1 the similarity searches run in a
    thread pool; results are identical either way.
    """
    candidates = list(candidates)

    def _match(c: MatchCandidate) -> RankedCandidate:
        return RankedCandidate(candidate=c, match=match_candidate(c, search, config, limit))

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            entries = list(pool.map(_match, candidates))
    else:
        entries = [_match(c) for c in candidates]

    matched = sum(1 for e in entries if e.is_matched)
    logger.info("Ranked %d candidate(s), %d with a suggested match", len(entries), matched)
    return sort_candidates(entries)


@dataclass(frozen=True)
class Page:
    items: list
    page: int
    limit: int
    total: int
    pages: int


def paginate(items: Sequence, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Page:
    if page < 1:
        page = 1
    if limit < 1 or limit > MAX_PAGE_SIZE:
        limit = DEFAULT_PAGE_SIZE

    total = len(items)
    offset = min((page - 1) * limit, total)
    end = min(offset + limit, total)
    return Page(
        items=list(items[offset:end]),
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit),
    )
