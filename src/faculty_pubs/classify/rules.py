"""Rule table: (pattern, category, tier) associations loaded from YAML data.

The table is built once and never mutated afterwards, so a single instance
can be shared by every classification in a process.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from faculty_pubs.config import TIERS

logger = logging.getLogger(__name__)

_DEFAULT_RULES = Path(__file__).parent / "rules.yaml"


class RuleTableError(ValueError):
    """Raised when a rule table is malformed or references undeclared categories."""


@dataclass(frozen=True)
class Rule:
    tier: str
    category: str
    source: str
    matcher: re.Pattern

    def matches(self, text: str) -> bool:
        return bool(text) and self.matcher.search(text) is not None

    @property
    def provenance(self) -> str:
        return f"{self.tier}:{self.source}"


@dataclass(frozen=True)
class RuleTable:
    categories: tuple[str, ...]
    overflow: str
    rules: tuple[Rule, ...]

    def rules_for(self, tier: str) -> tuple[Rule, ...]:
        return tuple(r for r in self.rules if r.tier == tier)

    def index(self, category: str) -> int:
        """Position of ``category`` in the enumeration (unknown labels sort last)."""
        try:
            return self.categories.index(category)
        except ValueError:
            return len(self.categories)

    def summary(self) -> dict[str, dict[str, int]]:
        """Rule counts per tier and per category, in enumeration order."""
        by_tier = Counter(r.tier for r in self.rules)
        by_category = Counter(r.category for r in self.rules)
        return {
            "tiers": {t: by_tier.get(t, 0) for t in TIERS},
            "categories": {c: by_category.get(c, 0) for c in self.categories},
        }


def _compile(tier: str, category: str, source: Any) -> Rule:
    if not isinstance(source, str) or not source.strip():
        raise RuleTableError(f"{tier}/{category}: pattern must be a non-empty string, got {source!r}")
    try:
        matcher = re.compile(source, re.IGNORECASE)
    except re.error as e:
        raise RuleTableError(f"{tier}/{category}: invalid pattern {source!r}: {e}") from e
    return Rule(tier=tier, category=category, source=source, matcher=matcher)


def build_rule_table(data: Any) -> RuleTable:
    """Validate a parsed rule-table document and compile it.

    Raises:
        RuleTableError: On unknown tiers, undeclared or duplicate categories,
            rules targeting the overflow label, or invalid patterns.
    """
    if not isinstance(data, dict):
        raise RuleTableError("Rule table must be a mapping")

    overflow = data.get("overflow")
    if not isinstance(overflow, str) or not overflow.strip():
        raise RuleTableError("Rule table must name an 'overflow' category")

    declared = data.get("categories")
    if not isinstance(declared, list) or not declared:
        raise RuleTableError("Rule table must declare a non-empty 'categories' list")
    if not all(isinstance(c, str) and c.strip() for c in declared):
        raise RuleTableError("Category labels must be non-empty strings")
    dupes = [c for c, n in Counter(declared).items() if n > 1]
    if dupes:
        raise RuleTableError(f"Duplicate categories: {', '.join(dupes)}")
    if overflow in declared:
        raise RuleTableError(f"Overflow category '{overflow}' must not be listed in 'categories'")

    tiers = data.get("tiers") or {}
    if not isinstance(tiers, dict):
        raise RuleTableError("'tiers' must map tier names to rule blocks")
    unknown = [t for t in tiers if t not in TIERS]
    if unknown:
        raise RuleTableError(f"Unknown tier(s): {', '.join(map(str, unknown))}")

    known = set(declared)
    rules: list[Rule] = []
    seen: set[tuple[str, str, str]] = set()
    for tier in TIERS:
        for block in tiers.get(tier) or []:
            if not isinstance(block, dict):
                raise RuleTableError(f"{tier}: rule block must be a mapping, got {block!r}")
            category = block.get("category")
            if category == overflow:
                raise RuleTableError(f"{tier}: rules may not target the overflow category '{overflow}'")
            if not isinstance(category, str) or category not in known:
                raise RuleTableError(f"{tier}: rules reference undeclared category {category!r}")
            patterns = block.get("patterns") or []
            if not isinstance(patterns, list):
                raise RuleTableError(f"{tier}/{category}: 'patterns' must be a list")
            for source in patterns:
                rule = _compile(tier, category, source)
                key = (tier, category, rule.source)
                if key in seen:
                    logger.warning("Duplicate %s rule for %s ignored: %s", tier, category, source)
                    continue
                seen.add(key)
                rules.append(rule)

    return RuleTable(
        categories=tuple(declared) + (overflow,),
        overflow=overflow,
        rules=tuple(rules),
    )


def load_rule_table(path: Path | str | None = None) -> RuleTable:
    """Load and validate a rule table YAML file (defaults to the packaged rules.yaml).

    Raises:
        FileNotFoundError: If the file does not exist.
        RuleTableError: If the table is invalid.
    """
    rules_path = Path(path) if path else _DEFAULT_RULES
    if not rules_path.exists():
        raise FileNotFoundError(f"Rule table not found: {rules_path}")

    with open(rules_path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RuleTableError(f"Could not parse {rules_path}: {e}") from e

    table = build_rule_table(data)
    logger.info(
        "Loaded %d rules across %d categories from %s",
        len(table.rules), len(table.categories) - 1, rules_path.name,
    )
    return table
