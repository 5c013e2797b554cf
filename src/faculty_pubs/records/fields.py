"""Field extraction helpers for loosely shaped publication records.

Raw records come from several exporters (repository dumps, Dublin Core
harvests, hand-edited spreadsheets), so the same field may hold a string,
a list of strings, a list of objects or a single object. Each helper here
accepts any of those shapes and coerces anything else to an empty result.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from faculty_pubs.classify.normalize import normalize_dashes_quotes, squash_spaces

_ET_AL = re.compile(r"\bet\s*al\.?$", re.IGNORECASE)
_CONJ_SPLIT = re.compile(r";|,|\||/|\s+and\s+|\s*&\s*|—|–|:|\s{2,}", re.IGNORECASE)
_TRAILING_PUNCT = re.compile(r"[.;,:]$")

AUTHOR_KEYS = (
    "authors", "author", "creators", "creator", "contributors", "contributor",
    "dc.creator", "dc.contributor", "creatorNames", "Author", "Authors",
)
SUBJECT_KEYS = (
    "subject", "subjects", "dc.subject", "dc.subjects",
    "keywords", "keyword", "tags", "tag", "discipline", "disciplines",
)


def clean_text(value: Any) -> str:
    """Display-safe cleanup: ASCII dashes/quotes and squashed whitespace, case kept."""
    if value is None:
        return ""
    return squash_spaces(normalize_dashes_quotes(str(value)))


def split_by_conj(value: Any) -> list[str]:
    """Split a serialized name/tag list on separators and conjunctions.

    ``"Smith J, Lee K and Gupta R et al."`` -> ``["Smith J", "Lee K", "Gupta R"]``
    """
    if value is None:
        return []
    # Split the raw text: dash and double-space separators do not survive clean_text
    text = _ET_AL.sub("", str(value).strip())
    parts = (clean_text(p) for p in _CONJ_SPLIT.split(text))
    return [p for p in parts if p]


def dedupe_ci(items: Iterable[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first spelling seen."""
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        key = item.lower()
        if key not in seen:
            seen.add(key)
            out.append(item)
    return out


def name_from_obj(obj: Any) -> str:
    if not isinstance(obj, Mapping):
        return ""
    parts = " ".join(
        p for p in (clean_text(obj.get("given") or obj.get("first")),
                    clean_text(obj.get("family") or obj.get("last"))) if p
    )
    for key in ("name", "fullName", "displayName", "value"):
        if obj.get(key):
            return clean_text(obj[key])
    return clean_text(parts)


def subject_from_obj(obj: Any) -> str:
    if not isinstance(obj, Mapping):
        return ""
    for key in ("subject", "name", "label", "value"):
        if obj.get(key):
            return clean_text(obj[key])
    return ""


def _collect(raw: Mapping[str, Any], keys: tuple[str, ...], from_obj) -> list[str]:
    out: list[str] = []

    def _take(item: Any):
        if isinstance(item, str):
            out.extend(split_by_conj(item))
        elif isinstance(item, Mapping):
            text = from_obj(item)
            if text:
                out.extend(split_by_conj(text))
        # numbers, nested lists and other shapes are skipped

    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                _take(item)
        else:
            _take(value)
    return out


def collect_authors(raw: Any) -> list[str]:
    """Gather author names from every author-like field of a raw record."""
    if not isinstance(raw, Mapping):
        return []
    names = _collect(raw, AUTHOR_KEYS, name_from_obj)
    return dedupe_ci(n for n in (squash_spaces(x) for x in names) if n)


def normalize_subject(value: Any) -> str:
    return _TRAILING_PUNCT.sub("", clean_text(value))


def collect_subjects(raw: Any) -> list[str]:
    """Gather subject tags from every subject/keyword/tag field of a raw record."""
    if not isinstance(raw, Mapping):
        return []
    subjects = _collect(raw, SUBJECT_KEYS, subject_from_obj)
    return dedupe_ci(s for s in (normalize_subject(x) for x in subjects) if s)
