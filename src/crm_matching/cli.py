from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import ConfigError, ensure_workspace, load_settings
from .identity import detect_identifier_type
from .io import collect_sources, read_candidates, read_contacts
from .normalize import normalize_email, normalize_phone_e164, normalize_phone_loose
from .ranking import paginate, rank_candidates
from .report import print_ranked, write_json_report
from .similarity import InMemorySimilaritySearch

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="crm-match: suggest existing CRM contacts for imported contacts.",
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(config: Path | None):
    try:
        if config is not None:
            return None, load_settings(config)
        return ensure_workspace()
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


# ── `match` command ────────────────────────────────────────────────────────────

@app.command()
def match(
    candidates_dir: Path = typer.Option(
        Path("candidates"), "--candidates", "-c",
        help="Folder of .vcf files holding the contacts to import",
    ),
    contacts_dir: Path = typer.Option(
        Path("contacts"), "--contacts", "-k",
        help="Folder of .vcf files holding the existing CRM contacts",
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p",
        help="Matching profile (import or calendar). Falls back to local/matching.conf.",
    ),
    config: Path | None = typer.Option(None, "--config", help="Explicit settings file"),
    page: int = typer.Option(1, "--page", help="Page number"),
    limit: int = typer.Option(20, "--limit", help="Candidates per page (max 100)"),
    workers: int = typer.Option(1, "--workers", help="Parallel similarity searches"),
    json_out: Path | None = typer.Option(None, "--json", help="Write the full ranked list as JSON"),
) -> None:
    """Rank import candidates, best suggested match first."""
    _, settings = _load(config)
    profile_name = profile or settings.default_profile
    try:
        fuzzy = settings.profile(profile_name)
    except ConfigError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(code=1) from e

    candidate_files = collect_sources(candidates_dir)
    if not candidate_files:
        console.print(Panel(
            f"[bold red]No .vcf files found in [white]{candidates_dir}/[/white][/bold red]\n\n"
            "Export the contacts you want to import and drop them here.",
            title="Nothing to match",
            border_style="red",
        ))
        raise typer.Exit(code=2)

    candidates = read_candidates(candidate_files)
    contacts = read_contacts(collect_sources(contacts_dir))
    console.print(
        f"  Read [bold]{len(candidates)}[/bold] candidate(s) and "
        f"[bold]{len(contacts)}[/bold] existing contact(s)"
    )

    ranked = rank_candidates(
        candidates,
        InMemorySimilaritySearch(contacts),
        fuzzy,
        limit=settings.candidate_limit,
        max_workers=workers,
    )
    print_ranked(
        paginate(ranked, page=page, limit=limit),
        profile=profile_name,
        threshold=fuzzy.confidence_threshold,
    )

    if json_out is not None:
        write_json_report(ranked, json_out)
        console.print(f"[dim]Ranked list → {json_out}[/dim]")


# ── `normalize` command ────────────────────────────────────────────────────────

@app.command()
def normalize(value: str = typer.Argument(..., help="Email address or phone number")) -> None:
    """Show how an identifier is normalized for matching and identity lookups."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_row("detected type", detect_identifier_type(value).value)
    table.add_row("email", normalize_email(value))
    table.add_row("phone (match)", normalize_phone_loose(value))
    table.add_row("phone (E.164)", normalize_phone_e164(value))
    console.print(table)


# ── `profiles` command ─────────────────────────────────────────────────────────

@app.command()
def profiles(
    config: Path | None = typer.Option(None, "--config", help="Explicit settings file"),
) -> None:
    """Print the effective matching profiles."""
    _, settings = _load(config)
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Profile")
    table.add_column("Min similarity", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Name weight", justify="right")
    table.add_column("Method weight", justify="right")
    for name, cfg in sorted(settings.profiles.items()):
        label = f"{name} [dim](default)[/dim]" if name == settings.default_profile else name
        table.add_row(
            label,
            f"{cfg.min_similarity_threshold:.2f}",
            f"{cfg.confidence_threshold:.2f}",
            f"{cfg.name_weight:.2f}",
            f"{cfg.method_weight:.2f}",
        )
    console.print(table)
    console.print(f"  candidate limit: [bold]{settings.candidate_limit}[/bold]")


if __name__ == "__main__":
    app()
