"""Configuration loader with environment variable expansion."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

# Default config path relative to project root
_DEFAULT_CONFIG = Path(__file__).resolve().parent.parent.parent / "config" / "config.yaml"

TIERS = ("venue", "keyword", "author", "doi")

DEFAULT_WEIGHTS = {"venue": 3, "keyword": 2, "author": 2, "doi": 1}
DEFAULT_MIN_CONFIDENCE = 2
DEFAULT_MAX_OVERFLOW = 25


class ConfigError(ValueError):
    """Raised when the classifier section of the config is invalid."""


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(value, str):
        def _replace(match: re.Match) -> str:
            var_name = match.group(1)
            return os.environ.get(var_name, match.group(0))
        return _ENV_VAR_PATTERN.sub(_replace, value)
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """Load YAML config, expanding environment variable references.

    Args:
        path: Path to config file. Defaults to config/config.yaml in the project root.

    Returns:
        Parsed configuration dictionary.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    config_path = Path(path) if path else _DEFAULT_CONFIG

    if not config_path.exists():
        # Fall back to example config if main config missing
        example = config_path.parent / "config.example.yaml"
        if config_path.name == "config.yaml" and example.exists():
            config_path = example
        else:
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Copy config/config.example.yaml to config/config.yaml and fill in your values."
            )

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    return _expand_env_vars(raw or {})


def get_project_root() -> Path:
    """Return the project root directory (where pyproject.toml lives)."""
    return Path(__file__).resolve().parent.parent.parent


def _as_int(name: str, value: Any) -> int:
    # bool is an int subclass but never a meaningful weight
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class ClassifierSettings:
    """Tunable constants of the topic classifier.

    Tier weights, the confidence floor and the overflow cap were tuned
    against the faculty corpus; they live here rather than in the scorer
    so they can be swapped per run (and per test).
    """

    weights: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    min_confidence: int = DEFAULT_MIN_CONFIDENCE
    max_overflow: int = DEFAULT_MAX_OVERFLOW
    rules_path: Path | None = None

    def __post_init__(self):
        if not isinstance(self.weights, Mapping):
            raise ConfigError("weights must be a mapping of tier to weight")
        # read-only copy
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))
        unknown = set(self.weights) - set(TIERS)
        if unknown:
            raise ConfigError(f"Unknown tier(s) in weights: {', '.join(sorted(unknown))}")
        for tier in TIERS:
            if tier not in self.weights:
                raise ConfigError(f"Missing weight for tier '{tier}'")
            if _as_int(f"weights.{tier}", self.weights[tier]) < 0:
                raise ConfigError(f"weights.{tier} must not be negative")
        if _as_int("min_confidence", self.min_confidence) < 1:
            raise ConfigError("min_confidence must be at least 1")
        if _as_int("max_overflow", self.max_overflow) < 0:
            raise ConfigError("max_overflow must not be negative")

    def weight(self, tier: str) -> int:
        return self.weights[tier]

    @classmethod
    def from_config(cls, cfg: dict[str, Any] | None) -> ClassifierSettings:
        """Build settings from the ``classifier`` section of a loaded config.

        Missing keys fall back to the defaults. A ``rules_path`` that is
        empty or still an unexpanded ``${VAR}`` reference is treated as unset.
        """
        section = (cfg or {}).get("classifier") or {}
        if not isinstance(section, dict):
            raise ConfigError("'classifier' config section must be a mapping")

        weights = dict(DEFAULT_WEIGHTS)
        overrides = section.get("weights") or {}
        if not isinstance(overrides, dict):
            raise ConfigError("classifier.weights must be a mapping of tier to weight")
        weights.update(overrides)

        rules_path = section.get("rules_path") or ""
        if isinstance(rules_path, str) and (not rules_path.strip() or rules_path.startswith("${")):
            rules_path = None

        return cls(
            weights=weights,
            min_confidence=section.get("min_confidence", DEFAULT_MIN_CONFIDENCE),
            max_overflow=section.get("max_overflow", DEFAULT_MAX_OVERFLOW),
            rules_path=Path(rules_path) if rules_path else None,
        )
