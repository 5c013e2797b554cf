"""Publication records built from raw repository exports."""

from __future__ import annotations

import logging
import math
import re
import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from faculty_pubs.records.disambiguate import disambiguate
from faculty_pubs.records.fields import clean_text, collect_authors, collect_subjects

if TYPE_CHECKING:
    from faculty_pubs.classify.engine import TopicClassifier

logger = logging.getLogger(__name__)

MIN_YEAR = 2003
MAX_YEAR = 3000
_ID_MAX_LENGTH = 160
_NON_WORD = re.compile(r"[^\w\-]+")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class PublicationRecord:
    id: str
    title: str
    venue: str = ""
    type: str = ""
    format: str = ""
    authors: list[str] = field(default_factory=list)
    subjects: list[str] = field(default_factory=list)
    year: int | None = None
    month: int | None = None
    url: str = ""
    topic: str = ""

    def to_fields(self) -> dict[str, Any]:
        """The raw-record view the classifier consumes."""
        return {
            "title": self.title,
            "venue": self.venue,
            "authors": list(self.authors),
            "url": self.url,
            "year": self.year,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "venue": self.venue,
            "type": self.type,
            "format": self.format,
            "authors": list(self.authors),
            "subjects": list(self.subjects),
            "year": self.year,
            "month": self.month,
            "url": self.url,
            "topic": self.topic,
        }


def bounded_int(value: Any, lo: int | None = None, hi: int | None = None) -> int | None:
    """Parse a leading integer (``"2019"``, ``"2019-05"``, ``7``), None if absent or out of bounds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        number = int(value)
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return None
        number = int(match.group(1))
    if lo is not None and number < lo:
        return None
    if hi is not None and number > hi:
        return None
    return number


def make_id(raw_id: Any, year: int | None, title: str, index: int) -> str:
    base = str(raw_id) if raw_id else f"{year or 'x'}-{title}-{index}"
    ascii_form = unicodedata.normalize("NFKD", base)
    return _NON_WORD.sub("-", ascii_form)[:_ID_MAX_LENGTH]


def build_record(raw: Any, index: int, classifier: TopicClassifier) -> PublicationRecord | None:
    """Turn one raw export row into a ``PublicationRecord``.

    Returns None when the row is not a mapping or has no title once the
    title/venue/author fields have been repaired.
    """
    if not isinstance(raw, Mapping):
        return None

    fixed = disambiguate(
        raw.get("title") if isinstance(raw.get("title"), str) else "",
        raw.get("venue") if isinstance(raw.get("venue"), str) else "",
        collect_authors(raw),
    )
    if not fixed.title:
        return None

    year = bounded_int(raw.get("year"), MIN_YEAR, MAX_YEAR)
    url = clean_text(raw.get("url")) if isinstance(raw.get("url"), str) else ""
    record = PublicationRecord(
        id=make_id(raw.get("id"), year, fixed.title, index),
        title=fixed.title,
        venue=fixed.venue,
        type=clean_text(raw.get("type")) if isinstance(raw.get("type"), str) else "",
        format=clean_text(raw.get("format")) if isinstance(raw.get("format"), str) else "",
        authors=fixed.authors,
        subjects=collect_subjects(raw),
        year=year,
        month=bounded_int(raw.get("month"), 1, 12),
        url=url,
    )
    record.topic = classifier.classify_one(record.to_fields())
    return record


def build_records(raws: Any, classifier: TopicClassifier) -> list[PublicationRecord]:
    """Build every titled record from a raw export payload (a JSON array)."""
    if not isinstance(raws, list):
        logger.warning("Expected a list of records, got %s", type(raws).__name__)
        return []
    records = []
    for i, raw in enumerate(raws):
        record = build_record(raw, i, classifier)
        if record is not None:
            records.append(record)
    dropped = len(raws) - len(records)
    if dropped:
        logger.info("Dropped %d record(s) without a usable title", dropped)
    return records


def repair_record(
    record: PublicationRecord, title: str, venue: str, classifier: TopicClassifier,
) -> PublicationRecord:
    """Apply an externally looked-up title/venue and recompute the topic from them."""
    repaired = replace(
        record,
        title=clean_text(title) or record.title,
        venue=clean_text(venue),
        authors=list(record.authors),
        subjects=list(record.subjects),
    )
    repaired.topic = classifier.classify_one(repaired.to_fields())
    return repaired


def label_records(
    records: list[PublicationRecord], classifier: TopicClassifier, max_overflow: int | None = None,
) -> list[PublicationRecord]:
    """Deduplicate records and assign batch-balanced topics.

    Returns copies; the input records keep their single-record topics.
    """
    labeled = classifier.classify_batch_balanced(records, max_overflow)
    return [replace(item.record, topic=item.category) for item in labeled]
