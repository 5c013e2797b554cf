"""Repair records whose title field actually holds an author list.

Some upstream imports conflate citation components: the serialized author
list lands in ``title``, the real title lands in ``venue`` and ``authors``
is left empty. ``disambiguate`` detects that shape and swaps the fields back.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from faculty_pubs.records.fields import clean_text, split_by_conj

logger = logging.getLogger(__name__)

# Capitalized surname, optionally followed by one to three capital initials
PERSONAL_NAME = re.compile(r"^[A-Z][a-zA-Z'\-]+(?:\s+[A-Z]{1,3}\.?)?$")

_COMMA_SPLIT = re.compile(r"\s*,\s*")
_PROSE_RUN = re.compile(r"[a-z]{3,}")

MIN_NAME_PARTS = 2
TITLE_MIN_LENGTH = 12


@dataclass
class Disambiguated:
    title: str
    venue: str
    authors: list[str] = field(default_factory=list)


def looks_like_author_list(text: str) -> bool:
    """True when at least 60% (and at least two) comma-separated parts are personal names."""
    cleaned = clean_text(text)
    if not cleaned:
        return False
    parts = [p for p in _COMMA_SPLIT.split(cleaned) if p]
    if len(parts) < MIN_NAME_PARTS:
        return False
    names = sum(1 for p in parts if PERSONAL_NAME.match(p))
    return names >= MIN_NAME_PARTS and names * 5 >= len(parts) * 3


def looks_like_title(text: str) -> bool:
    return len(text) > TITLE_MIN_LENGTH and bool(_PROSE_RUN.search(text))


def disambiguate(raw_title: str | None, raw_venue: str | None, authors=None) -> Disambiguated:
    """Return cleaned title/venue/authors, repairing an author list stored as title.

    Only fires when ``authors`` is empty. Never raises; when the shape is not
    recognised the cleaned inputs are returned as they are.
    """
    title = clean_text(raw_title)
    venue = clean_text(raw_venue)
    if isinstance(authors, str):
        authors = [authors]
    elif not isinstance(authors, (list, tuple)):
        authors = []
    out_authors = [a for a in authors if isinstance(a, str) and a]

    if not out_authors and looks_like_author_list(title):
        out_authors = split_by_conj(title)
        if venue and looks_like_title(venue):
            logger.debug("Title %r looks like an author list; promoting venue %r", title, venue)
            title, venue = venue, ""
    return Disambiguated(title=title, venue=venue, authors=out_authors)
