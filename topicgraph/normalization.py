"""Text normalization shared by the store index, reference resolution and duplicate checks."""

import re
from urllib.parse import unquote, urlsplit, urlunsplit

_PUNCTUATION = re.compile(r"[^\w\s]", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")
_WORD = re.compile(r"\w+", re.UNICODE)
_URI = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_BARE_URI = re.compile(r"https?://[^\s<>()\[\]\"']+")


def normalize_title(title: str) -> str:
    """Case-fold a title, strip punctuation and collapse whitespace.

    Underscores count as word characters for regex purposes, so they are
    folded into spaces explicitly to make ``my_note`` match ``My Note``.

    Args:
        title: Raw title text

    Returns:
        Normalized title, possibly empty
    """
    text = title.casefold().replace("_", " ")
    text = _PUNCTUATION.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def title_tokens(title: str) -> set[str]:
    """Return the word tokens of a normalized title."""
    normalized = normalize_title(title)
    return set(normalized.split()) if normalized else set()


def word_tokens(text: str) -> set[str]:
    """Return lower-cased word tokens of free text, without stemming."""
    return {token.lower() for token in _WORD.findall(text)}


def overlap_ratio(first: set[str], second: set[str]) -> float:
    """Token-set overlap ratio (intersection over union).

    Two empty sets have nothing in common, so the ratio is 0.0 rather than
    undefined.
    """
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


def slugify(text: str) -> str:
    """Turn a heading or anchor into a hyphenated slug for anchor matching."""
    return normalize_title(unquote(text)).replace(" ", "-")


def is_uri(text: str) -> bool:
    """Check whether a reference looks like an absolute URI (``scheme://...``)."""
    return bool(_URI.match(text.strip()))


def normalize_uri(uri: str) -> str:
    """Normalize a URI for equality checks.

    Lower-cases scheme and host, drops the fragment and a trailing slash.
    """
    parts = urlsplit(uri.strip())
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


def find_uri(text: str) -> str | None:
    """Return the first bare ``http(s)://`` URI in free text, without trailing punctuation."""
    match = _BARE_URI.search(text)
    return match.group(0).rstrip(".,;:") if match else None
