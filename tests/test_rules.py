"""Tests for rule table loading and validation."""

import copy
import logging

import pytest

from faculty_pubs.classify.rules import RuleTableError, build_rule_table, load_rule_table
from faculty_pubs.config import TIERS

from conftest import SMALL_RULES


def _rules(**changes):
    data = copy.deepcopy(SMALL_RULES)
    data.update(changes)
    return data


class TestDefaultTable:
    def test_loads(self):
        table = load_rule_table()
        assert table.overflow == "Other"
        assert len(table.categories) == 12
        assert table.categories[-1] == "Other"
        assert table.categories[0] == "Neuroscience & Neurodegeneration"

    def test_every_tier_populated(self):
        summary = load_rule_table().summary()
        assert list(summary["tiers"]) == list(TIERS)
        assert all(n > 0 for n in summary["tiers"].values())

    def test_no_rule_targets_overflow(self):
        table = load_rule_table()
        assert all(r.category in table.categories[:-1] for r in table.rules)
        assert table.summary()["categories"]["Other"] == 0


class TestBuild:
    def test_small_table(self, small_table):
        assert small_table.categories == ("Alpha", "Beta", "Gamma", "Other")
        assert len(small_table.rules) == 9
        assert [r.category for r in small_table.rules_for("doi")] == ["Alpha", "Beta"]

    def test_rule_provenance_and_matching(self, small_table):
        rule = small_table.rules_for("keyword")[0]
        assert rule.provenance == r"keyword:\bapple\b"
        assert rule.matches("an APPLE a day")
        assert not rule.matches("")
        assert not rule.matches("pineapple")

    def test_index(self, small_table):
        assert small_table.index("Alpha") == 0
        assert small_table.index("Other") == 3
        assert small_table.index("Unknown") == 4

    def test_tiers_may_be_omitted(self):
        table = build_rule_table({"overflow": "Other", "categories": ["Alpha"]})
        assert table.rules == ()

    def test_duplicate_rules_collapse(self, caplog):
        data = _rules(tiers={"keyword": [
            {"category": "Alpha", "patterns": [r"\bapple\b", r"\bapple\b"]},
            {"category": "Alpha", "patterns": [r"\bapple\b"]},
        ]})
        with caplog.at_level(logging.WARNING):
            table = build_rule_table(data)
        assert len(table.rules) == 1
        assert "Duplicate keyword rule" in caplog.text

    def test_same_pattern_different_tiers_kept(self):
        data = _rules(tiers={
            "venue": [{"category": "Alpha", "patterns": ["apple"]}],
            "keyword": [{"category": "Alpha", "patterns": ["apple"]}],
        })
        assert len(build_rule_table(data).rules) == 2


class TestRejections:
    @pytest.mark.parametrize("data,match", [
        (["Alpha"], "mapping"),
        (_rules(overflow=""), "overflow"),
        (_rules(categories=[]), "non-empty"),
        (_rules(categories=["Alpha", 3]), "non-empty strings"),
        (_rules(categories=["Alpha", "Alpha"]), "Duplicate categories"),
        (_rules(categories=["Alpha", "Other"]), "must not be listed"),
        (_rules(tiers=["venue"]), "'tiers'"),
        (_rules(tiers={"title": []}), "Unknown tier"),
        (_rules(tiers={"venue": ["Alpha"]}), "rule block"),
        (_rules(tiers={"venue": [{"category": "Delta", "patterns": ["x"]}]}), "undeclared"),
        (_rules(tiers={"venue": [{"category": ["Alpha"], "patterns": ["x"]}]}), "undeclared"),
        (_rules(tiers={"venue": [{"category": "Other", "patterns": ["x"]}]}), "overflow"),
        (_rules(tiers={"venue": [{"category": "Alpha", "patterns": "x"}]}), "must be a list"),
        (_rules(tiers={"venue": [{"category": "Alpha", "patterns": ["("]}]}), "invalid pattern"),
        (_rules(tiers={"venue": [{"category": "Alpha", "patterns": [" "]}]}), "non-empty string"),
    ])
    def test_invalid_tables(self, data, match):
        with pytest.raises(RuleTableError, match=match):
            build_rule_table(data)


class TestLoad:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rule_table(tmp_path / "missing.yaml")

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("categories: [Alpha, Beta\n")
        with pytest.raises(RuleTableError, match="Could not parse"):
            load_rule_table(path)

    def test_custom_file(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "overflow: Misc\n"
            "categories: [Birds]\n"
            "tiers:\n"
            "  keyword:\n"
            "    - category: Birds\n"
            "      patterns: ['\\bpuffins?\\b']\n"
        )
        table = load_rule_table(path)
        assert table.categories == ("Birds", "Misc")
        assert table.rules[0].matches("atlantic puffin colonies")
