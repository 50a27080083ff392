from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MethodType(str, Enum):
    """Contact-method types stored on an existing CRM contact."""

    EMAIL_PERSONAL = "email_personal"
    EMAIL_WORK = "email_work"
    PHONE = "phone"
    TELEGRAM = "telegram"
    DISCORD = "discord"
    TWITTER = "twitter"
    SIGNAL = "signal"
    GCHAT = "gchat"
    WHATSAPP = "whatsapp"


EMAIL_METHOD_TYPES: frozenset[str] = frozenset(
    {MethodType.EMAIL_PERSONAL.value, MethodType.EMAIL_WORK.value}
)
# Only these take part in overlap scoring, numerator and denominator alike.
MATCHABLE_METHOD_TYPES: frozenset[str] = EMAIL_METHOD_TYPES | {MethodType.PHONE.value}


@dataclass(frozen=True)
class EmailEntry:
    value: str
    kind: str | None = None


@dataclass(frozen=True)
class PhoneEntry:
    value: str
    kind: str | None = None
    is_primary: bool = False


@dataclass(frozen=True)
class MatchCandidate:
    """An externally sourced contact being considered for import or linking."""

    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    emails: tuple[EmailEntry, ...] = ()
    phones: tuple[PhoneEntry, ...] = ()
    source: str | None = None       # e.g. gcontacts, gcal_attendee
    source_id: str | None = None

    @property
    def effective_name(self) -> str:
        if self.display_name is not None:
            return self.display_name
        if self.first_name is not None and self.last_name is not None:
            return f"{self.first_name} {self.last_name}"
        if self.first_name is not None:
            return self.first_name
        if self.last_name is not None:
            return self.last_name
        return ""


@dataclass(frozen=True)
class ContactMethod:
    type: str
    value: str

    def __post_init__(self) -> None:
        # Accept MethodType members but store the plain string value
        if isinstance(self.type, MethodType):
            object.__setattr__(self, "type", self.type.value)

    @property
    def is_matchable(self) -> bool:
        return self.type in MATCHABLE_METHOD_TYPES


@dataclass(frozen=True)
class ExistingContact:
    id: str
    full_name: str
    methods: tuple[ContactMethod, ...] = ()


@dataclass(frozen=True)
class SimilarityResult:
    contact: ExistingContact
    name_similarity: float


@dataclass(frozen=True)
class MatchResult:
    contact_id: str
    contact_name: str
    confidence: float


@dataclass
class RankedCandidate:
    candidate: MatchCandidate
    match: MatchResult | None = None

    @property
    def is_matched(self) -> bool:
        return self.match is not None
