# biblio_export/shared/utils/text_utils.py

"""Text processing utilities for export formats"""

# Standard library imports
from html import unescape
from re import sub

# Third party imports
from unidecode import unidecode

# Leading words ignored when a title supplies a citation key
TITLE_STOPWORDS = frozenset(
    {"a", "an", "the", "and", "of", "on", "in", "for", "to"}
    | {"la", "le", "les", "el", "der", "die", "das"}
)


def ascii_fold(text: str) -> str:
    """Convert accented characters to their ASCII equivalents

    Uses the unidecode library for comprehensive character conversion.

    Args:
        text: Input text with potential accented characters

    Returns:
        Text with all accented characters converted to ASCII
    """
    if not text:
        return ""
    return unidecode(text)


def key_token(text: str) -> str:
    """ASCII-folded, lowercase, alphanumeric-only form of a name or word"""
    return sub(r"[^a-z0-9]", "", ascii_fold(text).lower())


def first_significant_word(title: str) -> str:
    """First title word that is not an article or particle, as a key token

    Falls back to the first word with any alphanumeric content.
    """
    tokens = [key_token(word) for word in title.split()]
    tokens = [token for token in tokens if token]
    for token in tokens:
        if token not in TITLE_STOPWORDS:
            return token
    return tokens[0] if tokens else ""


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces"""
    return sub(r"\s+", " ", text).strip()


def strip_markup(text: str) -> str:
    """Remove HTML/XML tags from rich text fields such as abstracts

    Character references are resolved after the tags are gone, so escaped
    angle brackets survive as text.
    """
    return normalize_whitespace(unescape(sub(r"<[^>]+>", " ", text)))


def truncate_utf8(text: str, max_bytes: int) -> str:
    """Truncate text so its UTF-8 encoding fits in max_bytes

    Never splits a multi-byte character.
    """
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")
