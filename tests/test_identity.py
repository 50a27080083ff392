from __future__ import annotations

import pytest

from crm_matching.identity import (
    IdentifierType,
    detect_identifier_type,
    method_types_for,
    normalize_identifier,
)
from crm_matching.model import MethodType


@pytest.mark.parametrize("raw, id_type, expected", [
    ("John.Doe@Example.COM", IdentifierType.EMAIL, "john.doe@example.com"),
    ("Jo@Mac.com ", IdentifierType.IMESSAGE_EMAIL, "jo@mac.com"),
    ("555-123-4567", IdentifierType.PHONE, "+15551234567"),
    ("(555) 123-4567", IdentifierType.IMESSAGE_PHONE, "+15551234567"),
    ("+44 20 7946 0958", IdentifierType.WHATSAPP, "+442079460958"),
    (" @JohnDoe ", IdentifierType.TELEGRAM, "johndoe"),
    ("  handle  ", "matrix", "handle"),
])
def test_normalize_identifier(raw, id_type, expected):
    assert normalize_identifier(raw, id_type) == expected


def test_normalize_identifier_accepts_string_types():
    assert normalize_identifier("555-123-4567", "phone") == "+15551234567"


def test_method_types_for_email_searches_both_email_kinds():
    assert method_types_for(IdentifierType.EMAIL) == [
        MethodType.EMAIL_PERSONAL, MethodType.EMAIL_WORK,
    ]


def test_method_types_for_whatsapp_includes_phone():
    assert method_types_for("whatsapp") == [MethodType.WHATSAPP, MethodType.PHONE]


def test_method_types_for_unknown():
    assert method_types_for("matrix") == []


@pytest.mark.parametrize("identifier, expected", [
    ("john@example.com", IdentifierType.EMAIL),
    ("+15551234567", IdentifierType.PHONE),
    ("555-123-4567", IdentifierType.PHONE),
    ("(555) 1234567", IdentifierType.PHONE),
    ("12345", IdentifierType.EMAIL),
    ("johndoe", IdentifierType.EMAIL),
])
def test_detect_identifier_type(identifier, expected):
    assert detect_identifier_type(identifier) == expected
