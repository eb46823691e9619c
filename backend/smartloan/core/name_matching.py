"""Name Matching — normalization and Jaro-Winkler similarity for applicant names.

Invariants:
    - normalize_name: NFC, uppercase, every non-letter becomes a space, whitespace collapsed
    - Letters of any script survive normalization ("ZOË", "МАРИЯ ИВАНОВА")
    - name_similarity is symmetric and lies in [0, 1]; identical normalized names score 1.0
    - Either side empty after normalization scores 0.0

Design Decisions:
    - Jaro-Winkler (rapidfuzz) over token overlap: tolerates initials ("JOHN M KARIUKI")
      and OCR slips
    - Score is the better of a direct and a token-sorted comparison so that
      "KARIUKI JOHN" still matches "JOHN KARIUKI"
"""

import re
import unicodedata

from rapidfuzz.distance import JaroWinkler

# digits and underscore are \w but never part of a name
_NON_NAME_CHARS = re.compile(r"[\W\d_]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    composed = unicodedata.normalize("NFC", name or "")
    letters = _NON_NAME_CHARS.sub(" ", composed.upper())
    return _WHITESPACE.sub(" ", letters).strip()


def _token_sorted(name: str) -> str:
    return " ".join(sorted(name.split()))


def name_similarity(name1: str, name2: str) -> float:
    """Best of direct and token-sorted Jaro-Winkler similarity of two names."""
    n1, n2 = normalize_name(name1), normalize_name(name2)
    if not n1 or not n2:
        return 0.0
    if n1 == n2:
        return 1.0
    direct = JaroWinkler.normalized_similarity(n1, n2)
    reordered = JaroWinkler.normalized_similarity(_token_sorted(n1), _token_sorted(n2))
    return max(direct, reordered)
