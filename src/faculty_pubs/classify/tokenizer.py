"""Build the token bundle a classification runs against."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from faculty_pubs.classify.normalize import normalize
from faculty_pubs.records.fields import clean_text, collect_authors

# Registrant prefix "10." + 4-9 digits, then "/" and a suffix token
DOI_PATTERN = re.compile(r"\b(10\.\d{4,9})/[^\s\"'<>]+", re.IGNORECASE)
URL_PATTERN = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)

# "Surname X, Surname Y, ..." at the start of a free-text string
_AUTHOR_LIST_HEAD = re.compile(r"^[A-Z][\w'\-]+(?:\s+[A-Z][\w'\-]*\.?){0,3}\s*,\s*[A-Z]")
_SENTENCE_END = re.compile(r"[a-z]{2,}\.(?:\s|$)")


@dataclass(frozen=True)
class Tokens:
    haystack: str = ""
    doi_prefix: str = ""
    authors: str = ""

    def __bool__(self) -> bool:
        return bool(self.haystack)


def looks_like_author_blob(text: str) -> bool:
    """Heuristic for a free-text ``Name, Name, ...`` author list.

    Rejects strings with a sentence-ending period before the first comma,
    so a citation like ``"Outcomes of care. Smith J, ..."`` is not mistaken
    for a bare list.
    """
    text = text.strip()
    if "," not in text or not _AUTHOR_LIST_HEAD.match(text):
        return False
    head = text.split(",", 1)[0]
    return not _SENTENCE_END.search(head)


def extract_doi_prefix(text: str) -> str:
    match = DOI_PATTERN.search(text or "")
    return match.group(1).lower() if match else ""


def _split_free_text(text: str) -> tuple[str, str, str]:
    """Route a free-text input into (url remnant, extra text, author text)."""
    links = [m.group(0) for m in URL_PATTERN.finditer(text)]
    rest = URL_PATTERN.sub(" ", text)
    dois = [m.group(0) for m in DOI_PATTERN.finditer(rest)]
    rest = DOI_PATTERN.sub(" ", rest)
    url_part = " ".join(links + dois)
    rest = clean_text(rest)

    if rest and looks_like_author_blob(rest):
        return url_part, "", rest
    return url_part, rest, ""


def _split_record(record: Mapping[str, Any]) -> tuple[str, str, str]:
    url = record.get("url")
    url_part = url if isinstance(url, str) else ""
    extra = " ".join(
        clean_text(record.get(key)) for key in ("title", "venue")
        if isinstance(record.get(key), str) and record.get(key).strip()
    )
    authors = ", ".join(collect_authors(record))
    return url_part, extra, authors


def tokenize(value: Any) -> Tokens:
    """Extract haystack, DOI registrant prefix and author text from an input.

    Accepts a free-text string (citation, URL, DOI, author blob or any mix)
    or a record mapping with ``url``/``title``/``venue``/author fields.
    Anything else, or an input with no usable text, yields empty tokens.
    """
    if not value:
        return Tokens()
    if isinstance(value, str):
        url_part, extra, authors = _split_free_text(value)
    elif isinstance(value, Mapping):
        url_part, extra, authors = _split_record(value)
    else:
        return Tokens()

    url_clean = normalize(unquote(url_part)) if url_part else ""
    authors_clean = normalize(authors)
    haystack = " ".join(p for p in (url_clean, normalize(extra), authors_clean) if p)

    return Tokens(
        haystack=haystack,
        doi_prefix=extract_doi_prefix(haystack),
        authors=authors_clean,
    )
