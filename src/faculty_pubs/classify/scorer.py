"""Weighted multi-tier scoring of a token bundle against the rule table."""

from __future__ import annotations

from dataclasses import dataclass, field

from faculty_pubs.classify.rules import RuleTable
from faculty_pubs.classify.tokenizer import Tokens
from faculty_pubs.config import TIERS, ClassifierSettings


@dataclass
class CategoryScore:
    score: int = 0
    reasons: list[str] = field(default_factory=list)

    def has_tier(self, tier: str) -> bool:
        prefix = f"{tier}:"
        return any(r.startswith(prefix) for r in self.reasons)

    def to_dict(self) -> dict:
        return {"score": self.score, "reasons": list(self.reasons)}


ScoreMap = dict[str, CategoryScore]


def _target(tier: str, tokens: Tokens) -> str:
    if tier == "author":
        return tokens.authors or tokens.haystack
    if tier == "doi":
        return tokens.doi_prefix
    return tokens.haystack


def score(tokens: Tokens, table: RuleTable, settings: ClassifierSettings) -> ScoreMap:
    """Test every rule of every tier and sum tier weights per category.

    Tiers are not exclusive: a record collects evidence from all of them,
    and several rules pointing at the same category add up. Only matching
    categories appear in the result; an empty map means no evidence at all.
    """
    scores: ScoreMap = {}
    if not tokens.haystack:
        return scores

    for tier in TIERS:
        text = _target(tier, tokens)
        if not text:
            continue
        weight = settings.weight(tier)
        for rule in table.rules_for(tier):
            if rule.matches(text):
                entry = scores.setdefault(rule.category, CategoryScore())
                entry.score += weight
                entry.reasons.append(rule.provenance)
    return scores
