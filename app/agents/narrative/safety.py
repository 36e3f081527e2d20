"""
Content safety filter.

Local keyword gate applied to every generated chapter, whatever backend wrote
it. No external moderation service is called.
"""
import re
from typing import List

# Stems are matched at the start of a word, so "danger" also catches
# "dangerous" but "anger" does not fire inside "stranger".
DENYLIST = (
    "violen",   # violence, violent
    "scary",
    "scared",
    "fear",
    "danger",
    "angry",
    "anger",
)

_DENY_PATTERN = re.compile(r"\b(" + "|".join(DENYLIST) + r")\w*", re.IGNORECASE)


def find_violations(text: str) -> List[str]:
    """Return the denylisted words found in text, lowercased, in order of appearance."""
    if not text:
        return []
    return [match.group(0).lower() for match in _DENY_PATTERN.finditer(text)]


def is_safe(text: str) -> bool:
    return not find_violations(text)
