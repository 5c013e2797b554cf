"""Filterable aggregate views over classified publication records."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from faculty_pubs.records.fields import normalize_subject
from faculty_pubs.records.model import MIN_YEAR, PublicationRecord

UNSPECIFIED = "Unspecified"
MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@dataclass
class RecordFilter:
    """Active dashboard filters; unset fields do not constrain."""

    query: str = ""
    year: int | None = None
    year_range: tuple[int, int] | None = None
    month: int | None = None
    author: str = ""
    subject: str = ""
    topic: str = ""
    overflow: str = "Other"

    def is_active(self) -> bool:
        return any((self.query.strip(), self.year, self.year_range, self.month,
                    self.author, self.subject, self.topic))

    def matches(self, record: PublicationRecord) -> bool:
        if self.year and record.year != self.year:
            return False
        if self.year_range:
            lo, hi = sorted(self.year_range)
            if record.year is None or not lo <= record.year <= hi:
                return False
        if self.month and record.month != self.month:
            return False
        if self.author and self.author not in record.authors:
            return False
        if self.subject and self.subject not in (record.subjects or [UNSPECIFIED]):
            return False
        if self.topic and (record.topic or self.overflow) != self.topic:
            return False

        query = self.query.strip().lower()
        if not query:
            return True
        return (
            query in record.title.lower()
            or query in record.venue.lower()
            or any(query in s.lower() for s in record.subjects)
            or any(query in a.lower() for a in record.authors)
        )

    def apply(self, records: Iterable[PublicationRecord]) -> list[PublicationRecord]:
        return [r for r in records if self.matches(r)]


def _ranked(counts: Counter, key: str, limit: int | None) -> list[dict[str, Any]]:
    rows = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0].lower(), kv[0]))
    if limit is not None:
        rows = rows[:limit]
    return [{key: name, "count": n} for name, n in rows]


def by_year(records: Iterable[PublicationRecord]) -> list[dict[str, int]]:
    """Contiguous yearly histogram, clamped to start no earlier than MIN_YEAR."""
    counts = Counter(r.year for r in records if r.year is not None)
    if counts:
        first = max(MIN_YEAR, min(counts))
        last = max(counts)
    else:
        last = date.today().year
        first = max(MIN_YEAR, last - 1)
    rows = [{"year": y, "count": counts.get(y, 0)} for y in range(first, last + 1)]
    if len(rows) == 1:
        rows.append({"year": rows[0]["year"] + 1, "count": 0})
    return rows


def by_month(records: Iterable[PublicationRecord]) -> list[dict[str, Any]]:
    rows = [{"month": i + 1, "label": MONTHS[i], "count": 0} for i in range(12)]
    for r in records:
        if r.month is not None and 1 <= r.month <= 12:
            rows[r.month - 1]["count"] += 1
    return rows


def by_subject(records: Iterable[PublicationRecord], limit: int | None = 12) -> list[dict[str, Any]]:
    counts: Counter = Counter()
    for r in records:
        for s in r.subjects or [UNSPECIFIED]:
            key = normalize_subject(s)
            if key and key != UNSPECIFIED:
                counts[key] += 1
    return _ranked(counts, "subject", limit)


def by_topic(
    records: Iterable[PublicationRecord], limit: int | None = 12, overflow: str = "Other",
) -> list[dict[str, Any]]:
    counts = Counter(r.topic or overflow for r in records)
    return _ranked(counts, "topic", limit)


def top_authors(records: Iterable[PublicationRecord], limit: int | None = 10) -> list[dict[str, Any]]:
    counts: Counter = Counter()
    for r in records:
        for a in r.authors:
            key = " ".join(a.split())
            if key:
                counts[key] += 1
    return _ranked(counts, "author", limit)


def kpis(records: list[PublicationRecord]) -> dict[str, Any]:
    years = sorted(r.year for r in records if r.year is not None)
    return {
        "total": len(records),
        "years": f"{years[0]}–{years[-1]}" if years else "—",
        "venues": len({r.venue for r in records if r.venue}),
        "authors": len({a for r in records for a in r.authors}),
    }
