"""Render the publication summary report from classified records."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from faculty_pubs.records.model import PublicationRecord
from faculty_pubs.report.views import (
    MONTHS,
    RecordFilter,
    by_month,
    by_subject,
    by_topic,
    by_year,
    kpis,
    top_authors,
)

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"

DEFAULT_TITLE = "Faculty Publication Dashboard"


def _shorten(text: str, n: int = 22) -> str:
    """Truncate to ``n`` characters with a trailing ellipsis."""
    return text if len(text) <= n else text[: n - 1] + "…"


def _cell(text: str) -> str:
    return str(text).replace("|", "\\|")


def _month_label(month: int | None) -> str:
    return MONTHS[month - 1] if month and 1 <= month <= 12 else ""


def _describe_filter(flt: RecordFilter | None) -> list[str]:
    if flt is None or not flt.is_active():
        return []
    chips = []
    if flt.year:
        chips.append(f"Year: {flt.year}")
    if flt.year_range:
        lo, hi = sorted(flt.year_range)
        chips.append(f"Years: {lo}–{hi}")
    if flt.month:
        chips.append(f"Month: {_month_label(flt.month)}")
    if flt.author:
        chips.append(f"Author: {flt.author}")
    if flt.subject:
        chips.append(f"Subject: {_shorten(flt.subject, 20)}")
    if flt.topic:
        chips.append(f"Topic: {_shorten(flt.topic, 20)}")
    if flt.query.strip():
        chips.append(f"Search: {flt.query.strip()}")
    return chips


def generate_report(
    records: list[PublicationRecord],
    counts: dict[str, int],
    output_dir: Path | None = None,
    date: datetime | None = None,
    title: str = DEFAULT_TITLE,
    record_filter: RecordFilter | None = None,
) -> str:
    """Render the markdown publication report.

    Args:
        records: Classified records to summarise (already filtered).
        counts: Topic counts over the full category enumeration.
        output_dir: Directory to write the report file. Nothing is written when None.
        date: Date for the report. Defaults to today.
        title: Report heading.
        record_filter: Filters that produced ``records``, listed in the header.

    Returns:
        The rendered report as a string.
    """
    date = date or datetime.now()
    date_str = date.strftime("%Y-%m-%d")

    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["month_label"] = _month_label
    env.filters["shorten"] = _shorten
    env.filters["cell"] = _cell

    template = env.get_template("report.md.j2")

    subjects = by_subject(records)
    overflow = record_filter.overflow if record_filter else "Other"
    rendered = template.render(
        title=title,
        date=date_str,
        generated_at=datetime.now().strftime("%H:%M"),
        kpi=kpis(records),
        filters=_describe_filter(record_filter),
        counts=counts,
        years=by_year(records),
        months=by_month(records),
        subjects=subjects,
        topics=by_topic(records, overflow=overflow),
        show_topics_instead=not subjects,
        authors=top_authors(records),
        records=sorted(records, key=lambda r: (-(r.year or 0), -(r.month or 0), r.title.lower())),
    )

    if output_dir:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"{date_str}.md"
        output_path.write_text(rendered)
        logger.info("Report written to %s", output_path)

    return rendered


def save_classified(
    records: list[PublicationRecord], output_dir: Path, date: datetime | None = None,
) -> Path:
    """Save classified records as JSON for downstream tools."""
    date = date or datetime.now()
    date_str = date.strftime("%Y-%m-%d")
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{date_str}.json"
    with open(output_path, "w") as f:
        json.dump([r.to_dict() for r in records], f, indent=2, default=str)
    logger.info("Classified records saved to %s", output_path)
    return output_path
