"""Tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from faculty_pubs.cli import app

runner = CliRunner()


@pytest.fixture
def pubs_json(tmp_path):
    path = tmp_path / "pubs.json"
    path.write_text(json.dumps([
        {"id": "p1", "title": "Insulin resistance in obesity", "venue": "Diabetes Care",
         "authors": ["Smith J"], "year": 2021, "month": 3},
        {"id": "p2", "title": "COVID-19 outbreak response in long-term care facilities",
         "venue": "BMJ Open", "authors": "Lee K; Smith J", "year": 2020},
        {"id": "p3", "title": "insulin resistance in OBESITY", "year": 2021},
        {"venue": "No title here"},
    ]))
    return path


class TestClassify:
    def test_category(self):
        result = runner.invoke(app, ["classify", "Insulin resistance in obesity"])
        assert result.exit_code == 0
        assert result.stdout.splitlines()[0] == "Metabolic, Endocrine & Nutrition"

    def test_explain(self):
        result = runner.invoke(app, ["classify", "10.1002/abc123", "--explain"])
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "Other"
        assert "Clinical Medicine & Case Reports" in lines[1]
        assert r"doi:^10\.1002$" in lines[2]

    def test_explain_without_evidence(self):
        result = runner.invoke(app, ["classify", "", "-e"])
        assert result.exit_code == 0
        assert "(no rule matched)" in result.stdout

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["classify", "x", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1

    def test_invalid_settings(self, tmp_path):
        cfg = tmp_path / "config.yaml"
        cfg.write_text("classifier:\n  min_confidence: 0\n")
        result = runner.invoke(app, ["classify", "x", "--config", str(cfg)])
        assert result.exit_code == 1
        assert "Invalid classifier setup" in result.output


def test_rules():
    result = runner.invoke(app, ["rules"])
    assert result.exit_code == 0
    assert "venue    w=3" in result.stdout
    assert "Other  (overflow)" in result.stdout
    assert "(min confidence 2)" in result.stdout


class TestReport:
    def test_writes_report_and_json(self, tmp_path, pubs_json):
        out = tmp_path / "out"
        result = runner.invoke(app, ["report", str(pubs_json), "--output", str(out)])
        assert result.exit_code == 0, result.output
        assert "| Metabolic, Endocrine & Nutrition | 1 |" in result.stdout
        assert "| Public Health, Policy & Medical Education | 1 |" in result.stdout

        [md] = list(out.glob("*.md"))
        [js] = list(out.glob("*.json"))
        assert md.read_text() in result.stdout
        assert [r["id"] for r in json.loads(js.read_text())] == ["p1", "p2"]

    def test_filters(self, tmp_path, pubs_json):
        out = tmp_path / "out"
        result = runner.invoke(app, ["report", str(pubs_json), "-o", str(out), "--year", "2020"])
        assert result.exit_code == 0, result.output
        [js] = list(out.glob("*.json"))
        assert [r["id"] for r in json.loads(js.read_text())] == ["p2"]
        assert "Year: 2020" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["report", str(tmp_path / "none.json"), "-o", str(tmp_path)])
        assert result.exit_code == 1

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[{")
        result = runner.invoke(app, ["report", str(path), "-o", str(tmp_path)])
        assert result.exit_code == 1
