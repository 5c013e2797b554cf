"""Batch-level cap on the overflow bucket.

Single-record resolution is conservative, so a corpus can end up with a
large "Other" bucket. After every record has been classified, the weakest
overflow records that still carry *some* evidence are moved to their best
alternative until the bucket fits the cap. Records with no evidence at all
stay in overflow even when that leaves the cap exceeded.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from faculty_pubs.classify.normalize import normalize
from faculty_pubs.classify.resolver import best_candidate, top_score
from faculty_pubs.classify.rules import RuleTable
from faculty_pubs.classify.scorer import ScoreMap

logger = logging.getLogger(__name__)


@dataclass
class LabeledRecord:
    category: str
    record: Any
    scores: ScoreMap = field(default_factory=dict)
    rebalanced: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "rebalanced": self.rebalanced,
            "breakdown": {c: s.to_dict() for c, s in self.scores.items()},
        }


def dedupe_key(record: Any, position: int, title: str | None = None) -> tuple:
    """Composite (year, discriminating text) key used to drop duplicate records.

    The text is the first non-empty of title, url, venue and author text,
    normalized. Records with none of those are keyed by position so they
    are never collapsed into each other.
    """
    if isinstance(record, str):
        text = normalize(record)
        return ("", text) if text else ("#", position)
    if not isinstance(record, Mapping):
        return ("#", position)

    year = record.get("year")
    year = str(year).strip() if year is not None else ""
    candidates = (title, record.get("title"), record.get("url"), record.get("venue"), record.get("authors"))
    for value in candidates:
        if isinstance(value, (list, tuple)):
            value = " ".join(v for v in value if isinstance(v, str))
        text = normalize(value) if isinstance(value, str) else ""
        if text:
            return (year, text)
    return ("#", position)


def rebalance(labeled: list[LabeledRecord], table: RuleTable, max_overflow: int) -> list[LabeledRecord]:
    """Reassign low-evidence overflow records until at most ``max_overflow`` remain.

    Returns a new list in the same order. Non-overflow records are never
    touched, and an overflow record moves only to a category it actually
    scored for.
    """
    max_overflow = max(0, max_overflow)
    result = list(labeled)
    overflow = [i for i, item in enumerate(result) if item.category == table.overflow]
    excess = len(overflow) - max_overflow
    if excess <= 0:
        return result

    ranked = []
    for i in overflow:
        alt = best_candidate(result[i].scores, table)
        if alt is not None:
            ranked.append((i, alt, result[i].scores[alt].score, top_score(result[i].scores)))
    # sort() is stable, so equal-strength records keep input order
    ranked.sort(key=lambda r: (-r[2], -r[3]))

    moved = 0
    for i, alt, _, _ in ranked[:excess]:
        result[i] = replace(result[i], category=alt, rebalanced=True)
        moved += 1

    remaining = len(overflow) - moved
    logger.info(
        "Rebalanced %d of %d overflow records (cap %d, %d remain)",
        moved, len(overflow), max_overflow, remaining,
    )
    if remaining > max_overflow:
        logger.info("%d overflow records have no evidence for any category", remaining - max_overflow)
    return result
