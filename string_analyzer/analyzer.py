import hashlib
import re
from collections import Counter
from typing import NamedTuple

from .errors import TypeMismatch

# Palindrome comparison only looks at ASCII letters and digits.
_NON_ALNUM = re.compile(r"[^a-z0-9]")


class Analysis(NamedTuple):
    id: str
    properties: dict


def compute_sha256(value: str) -> str:
    """Compute SHA-256 hash for the string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def normalize_for_palindrome(value: str) -> str:
    return _NON_ALNUM.sub("", value.lower())


def is_palindrome(value: str) -> bool:
    """Check if string reads the same forward and backward (case-insensitive, punctuation ignored)."""
    normalized = normalize_for_palindrome(value)
    return normalized == normalized[::-1]


def count_words(value: str) -> int:
    """Count maximal runs of non-whitespace characters."""
    return len(value.split())


def character_frequency(value: str) -> dict:
    return dict(Counter(value))


def _require_str(value):
    if not isinstance(value, str):
        raise TypeMismatch(
            f"Value must be a string, got {type(value).__name__}.")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise TypeMismatch(
            "Value must be valid Unicode text (lone surrogates are not allowed).")


def content_address(value: str) -> str:
    """The record id for `value`, without computing the other properties."""
    _require_str(value)
    return compute_sha256(value)


def analyze_string(value: str) -> dict:
    """Compute all required string properties."""
    _require_str(value)

    char_freq = character_frequency(value)

    return {
        "length": len(value),
        "is_palindrome": is_palindrome(value),
        "unique_characters": len(char_freq),
        "word_count": count_words(value),
        "sha256_hash": compute_sha256(value),
        "character_frequency_map": char_freq,
    }


def analyze(value: str) -> Analysis:
    """
    Analyze a string into its content address and property set.

    The result depends on nothing but ``value``: the same string always yields
    the same id and the same properties. Raises ``TypeMismatch`` when ``value``
    is not a ``str`` instead of coercing it.
    """
    properties = analyze_string(value)
    return Analysis(id=properties["sha256_hash"], properties=properties)
