"""Tests for the confidence floor and tie-break chain."""

import pytest

from faculty_pubs.classify.resolver import best_candidate, resolve, top_score
from faculty_pubs.classify.scorer import CategoryScore


def cs(score, *reasons):
    return CategoryScore(score=score, reasons=list(reasons))


class TestConfidenceFloor:
    def test_no_scores(self, small_table):
        assert resolve({}, small_table, 2) == "Other"

    def test_below_floor(self, small_table):
        assert resolve({"Alpha": cs(1, "doi:a")}, small_table, 2) == "Other"

    def test_at_floor(self, small_table):
        assert resolve({"Alpha": cs(2, "keyword:a")}, small_table, 2) == "Alpha"

    @pytest.mark.parametrize("floor,expected", [(1, "Alpha"), (3, "Alpha"), (4, "Other")])
    def test_configurable_floor(self, small_table, floor, expected):
        assert resolve({"Alpha": cs(3, "venue:a")}, small_table, floor) == expected

    def test_overflow_scores_ignored(self, small_table):
        assert resolve({"Other": cs(9, "keyword:x")}, small_table, 2) == "Other"


class TestTieBreaks:
    def test_single_top_wins(self, small_table):
        scores = {"Alpha": cs(4, "keyword:a", "keyword:b"), "Beta": cs(5, "venue:b", "keyword:c")}
        assert resolve(scores, small_table, 2) == "Beta"

    def test_venue_evidence_wins_tie(self, small_table):
        scores = {
            "Alpha": cs(4, "keyword:a", "doi:b", "doi:c"),
            "Gamma": cs(4, "venue:g", "doi:d"),
        }
        assert resolve(scores, small_table, 2) == "Gamma"

    def test_more_reasons_among_venue_matches(self, small_table):
        scores = {
            "Alpha": cs(6, "venue:a", "venue:b"),
            "Beta": cs(6, "venue:c", "keyword:d", "doi:e"),
        }
        assert resolve(scores, small_table, 2) == "Beta"

    def test_more_reasons_without_venue(self, small_table):
        scores = {
            "Alpha": cs(4, "keyword:x", "keyword:y"),
            "Gamma": cs(4, "keyword:a", "doi:b", "doi:c"),
        }
        assert resolve(scores, small_table, 2) == "Gamma"

    def test_enumeration_order_last(self, small_table):
        scores = {
            "Gamma": cs(4, "keyword:a", "keyword:b"),
            "Beta": cs(4, "author:x", "keyword:y"),
        }
        assert resolve(scores, small_table, 2) == "Beta"

    def test_deterministic_regardless_of_insertion_order(self, small_table):
        a = {"Gamma": cs(2, "keyword:g"), "Alpha": cs(2, "keyword:a"), "Beta": cs(2, "author:b")}
        b = dict(reversed(list(a.items())))
        assert resolve(a, small_table, 2) == resolve(b, small_table, 2) == "Alpha"


class TestBestCandidate:
    def test_ignores_floor(self, small_table):
        assert best_candidate({"Beta": cs(1, "doi:b")}, small_table) == "Beta"

    def test_zero_scores_are_not_evidence(self, small_table):
        assert best_candidate({"Beta": cs(0, "author:b")}, small_table) is None

    def test_empty(self, small_table):
        assert best_candidate({}, small_table) is None

    def test_top_score(self):
        assert top_score({}) == 0
        assert top_score({"Alpha": cs(2), "Beta": cs(5)}) == 5
