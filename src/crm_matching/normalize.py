"""Identifier normalizers used when comparing emails and phone numbers.

Two phone forms exist and must not be mixed up:

* ``normalize_phone_loose`` is what the matcher compares. It only strips
  formatting, so ``555-1234`` and ``+1-555-1234`` stay different.
* ``normalize_phone_e164`` is used for identity lookups and synthesizes a
  country code for bare numbers.
"""
from __future__ import annotations

import re

_NON_DIGIT = re.compile(r"[^0-9]")


def normalize_email(email: str) -> str:
    """Lowercase and trim. No ``+tag`` or dot stripping."""
    return email.strip().lower()


def normalize_phone_loose(phone: str) -> str:
    if not phone:
        return ""
    digits = _NON_DIGIT.sub("", phone)
    if phone.startswith("+"):
        return "+" + digits
    return digits


def normalize_phone_e164(phone: str) -> str:
    phone = phone.strip()
    if not phone:
        return ""

    digits = _NON_DIGIT.sub("", phone)
    if not digits:
        return ""

    # Bare 10-digit numbers are taken as North American; 11 digits starting
    # with 1 already carry that country code.
    if len(digits) == 10 and not phone.startswith("+"):
        return "+1" + digits
    return "+" + digits
