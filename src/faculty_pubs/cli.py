"""CLI entry point using Typer."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from faculty_pubs.config import ConfigError, get_project_root, load_config

app = typer.Typer(
    name="faculty-pubs",
    help="Topic classification and summary reports for faculty publication records.",
    no_args_is_help=True,
)


def _setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_cfg(config_path: Optional[Path]) -> dict[str, Any]:
    """Load config; without an explicit path a missing file just means defaults."""
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        if config_path is not None:
            typer.echo(str(e), err=True)
            raise typer.Exit(1)
        logging.getLogger("faculty_pubs").info("No config file found; using classifier defaults")
        return {}


def _build_classifier(cfg: dict[str, Any]):
    from faculty_pubs.classify.engine import TopicClassifier
    from faculty_pubs.classify.rules import RuleTableError

    try:
        return TopicClassifier.from_config(cfg)
    except (ConfigError, RuleTableError, FileNotFoundError) as e:
        typer.echo(f"Invalid classifier setup: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def classify(
    text: str = typer.Argument(..., help="Citation, title, URL or DOI to classify."),
    explain: bool = typer.Option(
        False, "--explain", "-e",
        help="Show the per-topic score breakdown.",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to config file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Classify a single free-text publication reference."""
    _setup_logging(verbose)
    classifier = _build_classifier(_load_cfg(config_path))

    result = classifier.explain(text)
    typer.echo(result.category)
    if explain:
        if not result.breakdown:
            typer.echo("  (no rule matched)")
        ranked = sorted(
            result.breakdown.items(),
            key=lambda kv: (-kv[1].score, classifier.table.index(kv[0])),
        )
        for topic, entry in ranked:
            typer.echo(f"  {entry.score:>3}  {topic}")
            for reason in entry.reasons:
                typer.echo(f"         {reason}")


@app.command()
def report(
    pubs_json: Path = typer.Argument(..., help="JSON array of raw publication records."),
    max_other: Optional[int] = typer.Option(
        None, "--max-other",
        help="Cap on records left in the 'Other' topic (defaults to config).",
    ),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Only this publication year."),
    year_from: Optional[int] = typer.Option(None, "--from", help="Start of a year range."),
    year_to: Optional[int] = typer.Option(None, "--to", help="End of a year range."),
    month: Optional[int] = typer.Option(None, "--month", "-m", min=1, max=12),
    author: str = typer.Option("", "--author", "-a", help="Exact author name."),
    subject: str = typer.Option("", "--subject", "-s", help="Exact subject tag."),
    topic: str = typer.Option("", "--topic", "-t", help="Exact topic label."),
    query: str = typer.Option("", "--query", "-q", help="Search title, venue, subjects and authors."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Output directory for the markdown report and classified JSON.",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to config file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Classify a publication export and write the summary report."""
    _setup_logging(verbose)
    logger = logging.getLogger("faculty_pubs")

    cfg = _load_cfg(config_path)
    classifier = _build_classifier(cfg)

    if not pubs_json.exists():
        typer.echo(f"Publication file not found: {pubs_json}", err=True)
        raise typer.Exit(1)
    try:
        with open(pubs_json) as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        typer.echo(f"Could not parse {pubs_json}: {e}", err=True)
        raise typer.Exit(1)

    from faculty_pubs.classify.rebalance import LabeledRecord
    from faculty_pubs.records.model import build_records, label_records
    from faculty_pubs.report.generator import generate_report, save_classified
    from faculty_pubs.report.views import RecordFilter

    records = label_records(build_records(raw, classifier), classifier, max_other)
    logger.info("Classified %d publication(s)", len(records))

    year_range = None
    if year_from is not None or year_to is not None:
        year_range = (year_from if year_from is not None else year_to,
                      year_to if year_to is not None else year_from)
    record_filter = RecordFilter(
        query=query, year=year, year_range=year_range, month=month,
        author=author, subject=subject, topic=topic, overflow=classifier.overflow,
    )
    selected = record_filter.apply(records)
    counts = classifier.counts_by_category(LabeledRecord(category=r.topic, record=r) for r in selected)

    report_cfg = cfg.get("report", {})
    output_dir = output or Path(report_cfg.get("output_dir") or get_project_root() / "reports")
    now = datetime.now()
    rendered = generate_report(
        selected,
        counts,
        output_dir=output_dir,
        date=now,
        title=report_cfg.get("title") or "Faculty Publication Dashboard",
        record_filter=record_filter,
    )
    save_classified(selected, output_dir, date=now)

    typer.echo(rendered)
    typer.echo(f"\nReport written to {output_dir}/{now.strftime('%Y-%m-%d')}.md")


@app.command()
def rules(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to config file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Validate the rule table and show rule counts per tier and topic."""
    _setup_logging(verbose)
    classifier = _build_classifier(_load_cfg(config_path))
    summary = classifier.table.summary()
    settings = classifier.settings

    typer.echo("Tiers (weight, rules):")
    for tier, n in summary["tiers"].items():
        typer.echo(f"  {tier:<8} w={settings.weight(tier)}  {n}")
    typer.echo(f"\nTopics (min confidence {settings.min_confidence}):")
    for topic, n in summary["categories"].items():
        marker = "  (overflow)" if topic == classifier.overflow else ""
        typer.echo(f"  {n:>4}  {topic}{marker}")
