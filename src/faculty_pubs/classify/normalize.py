"""Text canonicalization for rule matching."""

from __future__ import annotations

import re
import unicodedata

_DASHES = re.compile(r"[\u2010-\u2015\u2212]")
_SINGLE_QUOTES = re.compile(r"[\u2018\u2019\u201A\u201B\u2032]")
_DOUBLE_QUOTES = re.compile(r"[\u201C\u201D\u201E\u201F\u2033]")
_WHITESPACE = re.compile(r"\s+")

_ENTITIES = (("&quot;", '"'), ("&#39;", "'"), ("&amp;", "&"))

# Library proxy login wrappers, e.g. https://login.proxy.library.mun.ca/login?url=
_PROXY_PREFIX = re.compile(
    r"(?:https?://)?[\w.-]*proxy[\w.-]*(?::\d+)?/login\?q?url="
)
_DOI_RESOLVER = re.compile(r"(?:https?://)?(?:dx\.)?doi\.org/|\bdoi:\s*")
_SCHEME = re.compile(r"\b(?:https?|ftp)://")


def squash_spaces(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def normalize_dashes_quotes(text: str) -> str:
    """Map Unicode dash and curly-quote variants to their ASCII forms."""
    text = _DASHES.sub("-", text)
    text = _SINGLE_QUOTES.sub("'", text)
    return _DOUBLE_QUOTES.sub('"', text)


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _decode_entities(text: str) -> str:
    for entity, literal in _ENTITIES:
        text = text.replace(entity, literal)
    return text


def _normalize_once(text: str) -> str:
    text = strip_accents(text.lower())
    text = _decode_entities(text)
    text = normalize_dashes_quotes(text)
    text = _PROXY_PREFIX.sub(" ", text)
    text = _DOI_RESOLVER.sub("", text)
    text = _SCHEME.sub("", text)
    return squash_spaces(text)


def normalize(raw: str | None) -> str:
    """Canonicalize a raw string into a matchable haystack.

    Lower-cases, strips accents, decodes ``&amp;``/``&quot;``/``&#39;``,
    folds dash and quote variants, removes proxy-login and DOI-resolver
    prefixes plus URL schemes, then squashes whitespace.

    The pipeline is repeated until the text stops changing, so
    ``normalize(normalize(x)) == normalize(x)`` holds even for inputs such
    as ``&amp;quot;`` whose decoding exposes another entity.
    """
    if not raw:
        return ""
    text = str(raw)
    while True:
        nxt = _normalize_once(text)
        if nxt == text:
            return nxt
        text = nxt
