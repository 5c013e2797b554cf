import pytest

from faculty_pubs.classify.rules import build_rule_table

SMALL_RULES = {
    "overflow": "Other",
    "categories": ["Alpha", "Beta", "Gamma"],
    "tiers": {
        "venue": [
            {"category": "Alpha", "patterns": [r"\balpha journal\b"]},
            {"category": "Gamma", "patterns": [r"\bgamma letters\b"]},
        ],
        "keyword": [
            {"category": "Alpha", "patterns": [r"\bapple\b"]},
            {"category": "Beta", "patterns": [r"\bbanana\b", r"\bfruit\b"]},
            {"category": "Gamma", "patterns": [r"\bcherry\b"]},
        ],
        "author": [
            {"category": "Beta", "patterns": [r"\bsmith\b"]},
        ],
        "doi": [
            {"category": "Alpha", "patterns": [r"^10\.1111$"]},
            {"category": "Beta", "patterns": [r"^10\.2222$"]},
        ],
    },
}


@pytest.fixture
def small_table():
    """Three topics plus the Other overflow, with a couple of rules per tier."""
    return build_rule_table(SMALL_RULES)
