"""
Natural-language filtering for string records.

Supported queries (case-insensitive, rules combine):
  - "all single word palindromic strings" -> word_count=1, is_palindrome=true
  - "strings longer than 10 characters"   -> min_length=11
  - "strings shorter than 5 characters"   -> max_length=4
  - "strings containing the letter z"     -> contains_character='z'
  - "strings with the first vowel"        -> contains_character='a'

"first vowel" is a fixed heuristic and always means the letter 'a'.
"""
import logging
import re

from .compiler import StringFilter, compile_filter
from .errors import ConflictingFilter, Unparseable

logger = logging.getLogger(__name__)

WORD_COUNT_PHRASES = (
    ("single word", 1),
    ("two words", 2),
    ("three words", 3),
)

_WORD_COUNT_OF = re.compile(r"word count of (\d+)")
_LONGER_THAN = re.compile(r"longer than (\d+)")
_SHORTER_THAN = re.compile(r"shorter than (\d+)")
# exactly one letter, not the first letter of a longer word
_CONTAINS_LETTER = re.compile(r"contain(?:s|ing)? the letter ['\"]?([^\W\d_])(?![^\W\d_])")


def parse_query(query: str) -> dict:
    """Map the recognised phrases in ``query`` to raw filter fields."""
    query_lower = query.lower()
    parsed_filters = {}

    # Rule 1: palindrome-related queries
    if "palindromic" in query_lower or "palindrome" in query_lower:
        parsed_filters["is_palindrome"] = True

    # Rule 2: number of words
    for phrase, count in WORD_COUNT_PHRASES:
        if phrase in query_lower:
            parsed_filters["word_count"] = count
            break
    else:
        match = _WORD_COUNT_OF.search(query_lower)
        if match:
            parsed_filters["word_count"] = int(match.group(1))

    # Rule 3: strictly longer / strictly shorter
    match_longer = _LONGER_THAN.search(query_lower)
    match_shorter = _SHORTER_THAN.search(query_lower)
    if match_longer:
        parsed_filters["min_length"] = int(match_longer.group(1)) + 1
    if match_shorter:
        parsed_filters["max_length"] = int(match_shorter.group(1)) - 1

    # Rule 4: "containing the letter X"
    match_contains = _CONTAINS_LETTER.search(query_lower)
    if match_contains:
        parsed_filters["contains_character"] = match_contains.group(1)

    # Rule 5: heuristic for "first vowel"
    if "first vowel" in query_lower:
        parsed_filters["contains_character"] = "a"

    return parsed_filters


def interpret(query: str) -> StringFilter:
    """
    Turn a free-text query into a compiled ``StringFilter``.

    Raises ``Unparseable`` when no rule matches and ``ConflictingFilter`` when
    the derived length bounds cannot be satisfied. The ``details`` of either
    error hold whatever filters were parsed.
    """
    parsed_filters = parse_query(query)

    if not parsed_filters:
        logger.info("Unparseable natural language query: %r", query)
        raise Unparseable(details={})

    max_length = parsed_filters.get("max_length")
    if max_length is not None and max_length < 0:
        raise ConflictingFilter(
            "Conflicting filters detected: no string is shorter than 0 characters.",
            details=parsed_filters)

    min_length = parsed_filters.get("min_length")
    if min_length is not None and max_length is not None and min_length > max_length:
        raise ConflictingFilter(details=parsed_filters)

    return compile_filter(parsed_filters)
