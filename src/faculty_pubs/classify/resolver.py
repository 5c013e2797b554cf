"""Pick a single category from a score map."""

from __future__ import annotations

from faculty_pubs.classify.rules import RuleTable
from faculty_pubs.classify.scorer import ScoreMap


def best_candidate(scores: ScoreMap, table: RuleTable) -> str | None:
    """Highest-scoring non-overflow category, ignoring the confidence floor.

    Ties are broken first by venue-tier evidence, then by the number of
    provenance entries, then by enumeration order. Returns None when no
    category has any evidence.
    """
    candidates = {c: s for c, s in scores.items() if c != table.overflow and s.score > 0}
    if not candidates:
        return None

    top = max(s.score for s in candidates.values())
    tied = [c for c, s in candidates.items() if s.score == top]
    if len(tied) == 1:
        return tied[0]

    with_venue = [c for c in tied if candidates[c].has_tier("venue")]
    if len(with_venue) == 1:
        return with_venue[0]

    pool = with_venue or tied
    pool.sort(key=lambda c: (-len(candidates[c].reasons), table.index(c)))
    return pool[0]


def top_score(scores: ScoreMap) -> int:
    return max((s.score for s in scores.values()), default=0)


def resolve(scores: ScoreMap, table: RuleTable, min_confidence: int) -> str:
    """Return the committed category, or the overflow label below the confidence floor."""
    if not scores or top_score(scores) < min_confidence:
        return table.overflow
    return best_candidate(scores, table) or table.overflow
