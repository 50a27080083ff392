from __future__ import annotations

import logging
import re
from pathlib import Path

import vobject

from .model import (
    ContactMethod,
    EmailEntry,
    ExistingContact,
    MatchCandidate,
    MethodType,
    PhoneEntry,
)

logger = logging.getLogger(__name__)

# ── Pre-parse sanitisation ─────────────────────────────────────────────────────
#
# iCloud exports group properties as itemN.PROP (sometimes itemN..PROP) and
# attach Apple-only itemN.X-* labels that vobject rejects. The group prefix is
# dropped and the labels are discarded.

_ITEM_PREFIX = re.compile(r"^item\d+\.\.?(?=[A-Z])", re.IGNORECASE)
_ITEM_X_PROP = re.compile(r"^item\d+\.X-AB", re.IGNORECASE)

# X- properties carrying non-matchable handles
_HANDLE_PROPS: dict[str, MethodType] = {
    "x-telegram": MethodType.TELEGRAM,
    "x-discord": MethodType.DISCORD,
    "x-twitter": MethodType.TWITTER,
    "x-signal": MethodType.SIGNAL,
    "x-gchat": MethodType.GCHAT,
    "x-whatsapp": MethodType.WHATSAPP,
}


def _sanitise_vcf(data: str, source_label: str) -> str:
    out: list[str] = []
    dropped = fixed = 0
    for line in data.splitlines(keepends=True):
        if _ITEM_X_PROP.match(line):
            dropped += 1
            continue
        if _ITEM_PREFIX.match(line):
            line = _ITEM_PREFIX.sub("", line)
            fixed += 1
        out.append(line)

    if dropped or fixed:
        logger.debug("%s: %d line(s) fixed, %d dropped", source_label, fixed, dropped)
    return "".join(out)


def read_vcards(path: Path) -> list[vobject.base.Component]:
    raw = path.read_text(encoding="utf-8", errors="replace")
    data = _sanitise_vcf(raw, path.stem)
    return [
        vc for vc in vobject.readComponents(data, ignoreUnreadable=True)
        if vc.name.upper() == "VCARD"
    ]


def collect_sources(directory: Path) -> list[Path]:
    """Return all .vcf files found directly inside ``directory``, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix.lower() == ".vcf")


# ── Property helpers ───────────────────────────────────────────────────────────

def _text(prop) -> str | None:
    if prop is None:
        return None
    value = str(prop.value).strip()
    return value or None


def _param(prop, name: str) -> list[str]:
    for key, values in prop.params.items():
        if key.upper() == name:
            return values
    return []


def _types(prop) -> list[str]:
    out: list[str] = []
    for t in _param(prop, "TYPE"):
        out.extend(p.strip().lower() for p in t.split(",") if p.strip())
    return out


def _kind(types: list[str]) -> str | None:
    for t in types:
        if t not in ("internet", "pref", "voice"):
            return t
    return None


def _is_preferred(prop) -> bool:
    return "pref" in _types(prop) or bool(_param(prop, "PREF"))


def _props(vc, name: str) -> list:
    return vc.contents.get(name, [])


def _name_part(part) -> str | None:
    if isinstance(part, list):
        part = " ".join(p for p in part if p)
    return str(part or "").strip() or None


# ── Candidates ─────────────────────────────────────────────────────────────────

def card_to_candidate(vc, source: str | None = None) -> MatchCandidate:
    first = last = None
    n = vc.contents.get("n")
    if n:
        name = n[0].value
        first = _name_part(name.given)
        last = _name_part(name.family)

    emails = tuple(
        EmailEntry(value=v, kind=_kind(_types(e)))
        for e in _props(vc, "email") if (v := _text(e))
    )
    phones = tuple(
        PhoneEntry(value=v, kind=_kind(_types(t)), is_primary=_is_preferred(t))
        for t in _props(vc, "tel") if (v := _text(t))
    )
    uid = vc.contents.get("uid")
    return MatchCandidate(
        display_name=_text(vc.contents["fn"][0]) if "fn" in vc.contents else None,
        first_name=first,
        last_name=last,
        emails=emails,
        phones=phones,
        source=source,
        source_id=_text(uid[0]) if uid else None,
    )


def read_candidates(paths: list[Path]) -> list[MatchCandidate]:
    out: list[MatchCandidate] = []
    for p in paths:
        out.extend(card_to_candidate(vc, source=p.stem) for vc in read_vcards(p))
    return out


# ── Existing contacts ──────────────────────────────────────────────────────────

def card_to_contact(vc, fallback_id: str) -> ExistingContact:
    methods: list[ContactMethod] = []
    for e in _props(vc, "email"):
        if value := _text(e):
            kind = MethodType.EMAIL_WORK if "work" in _types(e) else MethodType.EMAIL_PERSONAL
            methods.append(ContactMethod(type=kind, value=value))
    for t in _props(vc, "tel"):
        if value := _text(t):
            methods.append(ContactMethod(type=MethodType.PHONE, value=value))
    for prop_name, kind in _HANDLE_PROPS.items():
        for h in _props(vc, prop_name):
            if value := _text(h):
                methods.append(ContactMethod(type=kind, value=value))

    uid = vc.contents.get("uid")
    fn = vc.contents.get("fn")
    return ExistingContact(
        id=(_text(uid[0]) if uid else None) or fallback_id,
        full_name=(_text(fn[0]) if fn else None) or "",
        methods=tuple(methods),
    )


def read_contacts(paths: list[Path]) -> list[ExistingContact]:
    out: list[ExistingContact] = []
    for p in paths:
        for i, vc in enumerate(read_vcards(p), start=1):
            out.append(card_to_contact(vc, fallback_id=f"{p.stem}-{i}"))
    return out
