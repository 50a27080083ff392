from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .model import RankedCandidate
from .ranking import Page

console = Console()

# ── Palette ────────────────────────────────────────────────────────────────────
_ACCENT  = "#4d9fff"
_GREEN   = "#3ecf8e"
_AMBER   = "#f0a500"
_TEXT    = "#c9d1e0"
_DIM     = "#546075"


def _confidence_style(confidence: float, threshold: float) -> str:
    # Comfortably above the profile floor reads green, near it amber
    return _GREEN if confidence >= threshold + 0.2 else _AMBER


def print_ranked(page: Page, *, profile: str, threshold: float) -> None:
    entries: list[RankedCandidate] = page.items
    offset = (page.page - 1) * page.limit

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("#", justify="right", style=_DIM, no_wrap=True)
    table.add_column("Candidate", style=f"bold {_TEXT}")
    table.add_column("Emails / Phones", style=_DIM)
    table.add_column("Suggested match", style=_ACCENT)
    table.add_column("Confidence", justify="right")

    for idx, entry in enumerate(entries, start=offset + 1):
        c = entry.candidate
        idents = [e.value for e in c.emails] + [p.value for p in c.phones]
        if entry.match:
            match_cell = f"{entry.match.contact_name}  [dim]{entry.match.contact_id}[/dim]"
            conf_cell = Text(
                f"{entry.match.confidence:.2f}",
                style=_confidence_style(entry.match.confidence, threshold),
            )
        else:
            match_cell = "[dim]—[/dim]"
            conf_cell = Text("")
        table.add_row(
            str(idx),
            c.effective_name or "[dim]Unnamed[/dim]",
            "\n".join(idents),
            match_cell,
            conf_cell,
        )

    console.print()
    console.print(Text(f"  IMPORT CANDIDATES  profile: {profile}", style=f"dim {_DIM}"))
    console.print()
    if entries:
        console.print(table)
    else:
        console.print(Text("  No candidates on this page.", style=f"dim {_DIM}"))
    console.print()
    console.print(Text(
        f"  page {page.page}/{max(page.pages, 1)}  ·  {page.total} candidate(s)",
        style=f"dim {_DIM}",
    ))


def candidate_to_dict(entry: RankedCandidate) -> dict:
    c = entry.candidate
    out = {
        "source": c.source,
        "source_id": c.source_id,
        "display_name": c.display_name,
        "first_name": c.first_name,
        "last_name": c.last_name,
        "emails": [e.value for e in c.emails],
        "phones": [p.value for p in c.phones],
    }
    if entry.match:
        out["suggested_match"] = {
            "contact_id": entry.match.contact_id,
            "contact_name": entry.match.contact_name,
            "confidence": entry.match.confidence,
        }
    return out


def write_json_report(entries: list[RankedCandidate], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [candidate_to_dict(e) for e in entries]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
