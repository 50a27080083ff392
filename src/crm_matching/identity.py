"""Identifier normalization for cross-platform identity lookups.

External identities (chat handles, iMessage addresses, phone numbers) are
stored in normalized form so they can be joined against contact methods.
Phones here use the strict E.164 form, unlike the fuzzy matcher.
"""
from __future__ import annotations

from enum import Enum

from .model import MethodType
from .normalize import normalize_email, normalize_phone_e164


class IdentifierType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    TELEGRAM = "telegram"
    IMESSAGE_EMAIL = "imessage_email"
    IMESSAGE_PHONE = "imessage_phone"
    WHATSAPP = "whatsapp"


_EMAIL_TYPES = {IdentifierType.EMAIL, IdentifierType.IMESSAGE_EMAIL}
_PHONE_TYPES = {IdentifierType.PHONE, IdentifierType.IMESSAGE_PHONE, IdentifierType.WHATSAPP}

_METHOD_TYPES: dict[IdentifierType, list[MethodType]] = {
    IdentifierType.EMAIL: [MethodType.EMAIL_PERSONAL, MethodType.EMAIL_WORK],
    IdentifierType.IMESSAGE_EMAIL: [MethodType.EMAIL_PERSONAL, MethodType.EMAIL_WORK],
    IdentifierType.PHONE: [MethodType.PHONE],
    IdentifierType.IMESSAGE_PHONE: [MethodType.PHONE],
    IdentifierType.TELEGRAM: [MethodType.TELEGRAM],
    IdentifierType.WHATSAPP: [MethodType.WHATSAPP, MethodType.PHONE],
}


def normalize_telegram(handle: str) -> str:
    handle = handle.strip()
    if handle.startswith("@"):
        handle = handle[1:]
    return handle.lower()


def normalize_identifier(raw: str, id_type: IdentifierType | str) -> str:
    """Return the stored form of ``raw`` for its identifier type.

    Unknown types are only trimmed.
    """
    try:
        id_type = IdentifierType(id_type)
    except ValueError:
        return raw.strip()

    if id_type in _EMAIL_TYPES:
        return normalize_email(raw)
    if id_type in _PHONE_TYPES:
        return normalize_phone_e164(raw)
    return normalize_telegram(raw)


def method_types_for(id_type: IdentifierType | str) -> list[MethodType]:
    """Contact-method types an identifier of ``id_type`` can be found under."""
    try:
        return list(_METHOD_TYPES[IdentifierType(id_type)])
    except (KeyError, ValueError):
        return []


def detect_identifier_type(identifier: str) -> IdentifierType:
    """Guess whether a bare identifier (e.g. an iMessage handle) is an email or a phone."""
    identifier = identifier.strip()
    if "@" in identifier:
        return IdentifierType.EMAIL
    if identifier.startswith("+"):
        return IdentifierType.PHONE

    digits = sum(1 for ch in identifier if "0" <= ch <= "9")
    if digits >= 7 and digits / len(identifier) > 0.5:
        return IdentifierType.PHONE
    return IdentifierType.EMAIL
