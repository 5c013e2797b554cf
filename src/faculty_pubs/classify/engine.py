"""Topic classifier entry points used by the rest of the application."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from faculty_pubs.classify.rebalance import LabeledRecord, dedupe_key, rebalance
from faculty_pubs.classify.resolver import resolve
from faculty_pubs.classify.rules import RuleTable, load_rule_table
from faculty_pubs.classify.scorer import ScoreMap, score
from faculty_pubs.classify.tokenizer import Tokens, tokenize
from faculty_pubs.config import ClassifierSettings
from faculty_pubs.records.disambiguate import disambiguate
from faculty_pubs.records.fields import collect_authors

logger = logging.getLogger(__name__)


def _as_fields(value: Any) -> Any:
    """Objects such as ``PublicationRecord`` expose their raw-record view via ``to_fields``."""
    to_fields = getattr(value, "to_fields", None)
    return to_fields() if callable(to_fields) else value


@dataclass
class Explanation:
    category: str
    breakdown: ScoreMap

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "breakdown": {c: s.to_dict() for c, s in self.breakdown.items()},
        }


class TopicClassifier:
    """Deterministic rule-based topic classifier.

    Holds an immutable rule table and settings; every call is a pure
    function of its input, so one instance can serve a whole run.
    """

    def __init__(self, table: RuleTable | None = None, settings: ClassifierSettings | None = None):
        self._settings = settings or ClassifierSettings()
        self._table = table or load_rule_table(self._settings.rules_path)

    @classmethod
    def from_config(cls, cfg: dict[str, Any] | None) -> TopicClassifier:
        return cls(settings=ClassifierSettings.from_config(cfg))

    @property
    def table(self) -> RuleTable:
        return self._table

    @property
    def settings(self) -> ClassifierSettings:
        return self._settings

    @property
    def overflow(self) -> str:
        return self._table.overflow

    def _prepare(self, value: Any) -> tuple[Tokens, str | None]:
        """Repair record fields, then tokenize. Returns tokens and the repaired title."""
        value = _as_fields(value)
        if isinstance(value, Mapping) and value:
            title = value.get("title")
            venue = value.get("venue")
            fixed = disambiguate(
                title if isinstance(title, str) else "",
                venue if isinstance(venue, str) else "",
                collect_authors(value),
            )
            fields = {
                "url": value.get("url"),
                "title": fixed.title,
                "venue": fixed.venue,
                "authors": fixed.authors,
            }
            return tokenize(fields), fixed.title
        return tokenize(value), None

    def _decide(self, tokens: Tokens) -> tuple[str, ScoreMap]:
        if not tokens:
            return self.overflow, {}
        scores = score(tokens, self._table, self._settings)
        category = resolve(scores, self._table, self._settings.min_confidence)
        logger.debug("Classified %.60r as %s (%d categories scored)", tokens.haystack, category, len(scores))
        return category, scores

    def explain(self, value: Any) -> Explanation:
        """Classify ``value`` and return the full score breakdown behind the decision."""
        tokens, _ = self._prepare(value)
        category, scores = self._decide(tokens)
        return Explanation(category=category, breakdown=scores)

    def classify_one(self, value: Any) -> str:
        return self.explain(value).category

    def top_topics(self, value: Any, top_n: int = 3, threshold: int = 2) -> list[str]:
        """Multi-label view: up to ``top_n`` categories scoring at least ``threshold``.

        Ranked by score, then provenance count, then enumeration order.
        Returns ``[overflow]`` when no category reaches the threshold.
        """
        breakdown = self.explain(value).breakdown
        floor = max(threshold, 1)
        ranked = sorted(
            (c for c, s in breakdown.items() if c != self.overflow and s.score >= floor),
            key=lambda c: (-breakdown[c].score, -len(breakdown[c].reasons), self._table.index(c)),
        )
        return ranked[: max(top_n, 0)] or [self.overflow]

    def classify_batch(self, records: Iterable[Any] | None) -> list[LabeledRecord]:
        """Classify records independently, keeping the first of any duplicates."""
        labeled: list[LabeledRecord] = []
        if records is None or isinstance(records, (str, Mapping)):
            return labeled

        seen: set[tuple] = set()
        for position, record in enumerate(records):
            fields = _as_fields(record)
            tokens, title = self._prepare(fields)
            key = dedupe_key(fields, position, title=title)
            if key in seen:
                logger.debug("Skipping duplicate record at position %d", position)
                continue
            seen.add(key)

            category, scores = self._decide(tokens)
            labeled.append(LabeledRecord(category=category, record=record, scores=scores))
        return labeled

    def classify_batch_balanced(
        self, records: Iterable[Any] | None, max_overflow: int | None = None,
    ) -> list[LabeledRecord]:
        """``classify_batch`` followed by the overflow cap.

        The cap pass only starts once every record has been classified.
        """
        if max_overflow is None:
            max_overflow = self._settings.max_overflow
        return rebalance(self.classify_batch(records), self._table, max_overflow)

    def counts_by_category(self, labeled: Iterable[LabeledRecord]) -> dict[str, int]:
        """Per-category counts, zero-initialized over the full enumeration."""
        counts = {category: 0 for category in self._table.categories}
        for item in labeled:
            counts[item.category] = counts.get(item.category, 0) + 1
        return counts
