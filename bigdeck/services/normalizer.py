"""
Card name / set code normalization.

Maps (name, set) to a CardKey that is stable across spelling noise:
" Sol  Ring ", "sol ring" and "Sol Ring" all share one cache slot.

Rules:
- Name: compatibility caseless form, diacritics and zero-width/control
  characters removed, whitespace collapsed. Internal punctuation kept
  ("Fire // Ice", "Borrowing 100,000 Arrows", "Lim-Dûl's Vault").
- Set: surrounding whitespace and parentheses removed, upper-cased.
  Empty, None, "UNK" and "UNKNOWN" mean any print (wildcard).

normalize_key(normalize_key(x)) == normalize_key(x). Never raises.
"""

import re
import unicodedata

from bigdeck.models.pricing import WILDCARD_SET, CardKey

# Placeholders older decklists and imports use for "no set"
WILDCARD_SET_ALIASES = frozenset({"", "UNK", "UNKNOWN", "NULL", "NONE"})

_WHITESPACE = re.compile(r"\s+")

# Zero-width characters are category Cf; Cc covers control characters.
_STRIPPED_CATEGORIES = frozenset({"Cc", "Cf", "Mn"})


def _strip_invisible(text: str) -> str:
    """Drop control, format (zero-width) and combining characters.

    Whitespace controls (tab, newline) become spaces so they still separate words.
    """
    chars: list[str] = []
    for ch in text:
        if ch.isspace():
            chars.append(" ")
        elif unicodedata.category(ch) not in _STRIPPED_CATEGORIES:
            chars.append(ch)
    return "".join(chars)


def _caseless(text: str) -> str:
    """Unicode compatibility caseless form (Unicode 3.13, D146)."""
    nfd = unicodedata.normalize("NFD", text)
    once = unicodedata.normalize("NFKD", nfd.casefold())
    return unicodedata.normalize("NFKD", once.casefold())


def normalize_name(name: str | None) -> str:
    if not name:
        return ""
    cleaned = _strip_invisible(_caseless(name))
    return _WHITESPACE.sub(" ", cleaned).strip()


def normalize_set(set_code: str | None) -> str:
    if not set_code:
        return WILDCARD_SET
    cleaned = _strip_invisible(set_code).strip().strip("()[]").strip().upper()
    if cleaned in WILDCARD_SET_ALIASES:
        return WILDCARD_SET
    return cleaned


def normalize_key(name: str | None, set_code: str | None = None) -> CardKey:
    """Build the canonical CardKey for a (name, set) pair."""
    return CardKey(name=normalize_name(name), set_code=normalize_set(set_code))
