"""Fuzzy matching of external candidates against existing CRM contacts.

Every call is a pure fold over a small, name-similar pool of contacts
supplied by a similarity search. The score for one pool entry is

    name_similarity * name_weight + (method_matches / total_methods) * method_weight

where only email and phone methods are counted. The best entry at or above
the profile's confidence threshold wins; on equal scores the entry seen first
is kept.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from .config import DEFAULT_CANDIDATE_LIMIT, FuzzyConfig
from .model import (
    EMAIL_METHOD_TYPES,
    ContactMethod,
    MatchCandidate,
    MatchResult,
    MethodType,
    SimilarityResult,
)
from .normalize import normalize_email, normalize_phone_loose

if TYPE_CHECKING:
    from .similarity import SimilaritySearch

logger = logging.getLogger(__name__)

# Attendee addresses on these domains are rooms, group and system calendars
CALENDAR_RESOURCE_DOMAINS = (
    "group.calendar.google.com",
    "resource.calendar.google.com",
    "calendar.google.com",
    "group.v.calendar.google.com",
)


def is_better_match(score: float, best_score: float | None, threshold: float) -> bool:
    """Return True when ``score`` should replace the current best.

    The threshold check is inclusive (``>=``) but the comparison against the
    current best is strict (``>``), so an equal later score never displaces
    an earlier one. With no best yet the baseline is 0.0, so a zero score
    never matches.
    """
    if score < threshold:
        return False
    return score > (best_score if best_score is not None else 0.0)


def count_method_overlap(
    methods: Iterable[ContactMethod],
    candidate_emails: set[str],
    candidate_phones: set[str],
) -> tuple[int, int]:
    """Return ``(method_matches, total_methods)`` over email and phone methods.

    Every other method type is skipped and counts toward neither number.
    """
    matches = 0
    total = 0
    for method in methods:
        if method.type in EMAIL_METHOD_TYPES:
            total += 1
            if normalize_email(method.value) in candidate_emails:
                matches += 1
        elif method.type == MethodType.PHONE.value:
            total += 1
            if normalize_phone_loose(method.value) in candidate_phones:
                matches += 1
    return matches, total


def _best_of(
    scored: Iterable[tuple[SimilarityResult, float]],
    threshold: float,
) -> MatchResult | None:
    best: MatchResult | None = None
    for result, score in scored:
        if is_better_match(score, best.confidence if best else None, threshold):
            best = MatchResult(
                contact_id=result.contact.id,
                contact_name=result.contact.full_name,
                confidence=score,
            )
    return best


def find_best_match(
    candidate: MatchCandidate,
    similarity_results: Sequence[SimilarityResult],
    config: FuzzyConfig,
) -> MatchResult | None:
    """Pick the existing contact that best matches ``candidate``, if any.

    ``similarity_results`` is the pool returned by the similarity search,
    already filtered by ``config.min_similarity_threshold``. A candidate
    without an effective name never matches.
    """
    if not candidate.effective_name:
        return None

    emails = {normalize_email(e.value) for e in candidate.emails}
    phones = {normalize_phone_loose(p.value) for p in candidate.phones}

    def scored():
        for result in similarity_results:
            method_matches, total_methods = count_method_overlap(
                result.contact.methods, emails, phones
            )
            yield result, config.score(result.name_similarity, method_matches, total_methods)

    best = _best_of(scored(), config.confidence_threshold)
    if best is not None:
        logger.debug(
            "Matched %r to contact %s (%s) with confidence %.3f",
            candidate.effective_name, best.contact_id, best.contact_name, best.confidence,
        )
    return best


def is_calendar_resource(email: str) -> bool:
    email = normalize_email(email)
    return any(email.endswith("@" + domain) for domain in CALENDAR_RESOURCE_DOMAINS)


def find_attendee_match(
    display_name: str,
    email: str,
    similarity_results: Sequence[SimilarityResult],
    config: FuzzyConfig,
) -> MatchResult | None:
    """Calendar-attendee variant of :func:`find_best_match`.

    An attendee carries one email and no phones, so only the contact's email
    methods enter the overlap ratio.
    """
    if not display_name or not email.strip() or is_calendar_resource(email):
        return None

    attendee_email = normalize_email(email)

    def scored():
        for result in similarity_results:
            total = 0
            matches = 0
            for method in result.contact.methods:
                if method.type in EMAIL_METHOD_TYPES:
                    total += 1
                    if normalize_email(method.value) == attendee_email:
                        matches += 1
            yield result, config.score(result.name_similarity, matches, total)

    best = _best_of(scored(), config.confidence_threshold)
    if best is not None:
        logger.debug(
            "Matched attendee %r <%s> to contact %s with confidence %.3f",
            display_name, email, best.contact_id, best.confidence,
        )
    return best


def match_candidate(
    candidate: MatchCandidate,
    search: SimilaritySearch,
    config: FuzzyConfig,
    limit: int = DEFAULT_CANDIDATE_LIMIT,
) -> MatchResult | None:
    """Fetch the similarity pool for ``candidate`` and score it.

    A failing search is logged and treated as "no similar contacts".
    """
    name = candidate.effective_name
    if not name:
        return None

    try:
        pool = search.find_similar(name, config.min_similarity_threshold, limit)
    except Exception:
        logger.warning("Similarity search failed for %r", name, exc_info=True)
        return None

    return find_best_match(candidate, pool, config)
