"""
Text normalization for message bodies sent through the brand SMS gateway.

The gateway is called with useUnicode=0, so every token that ends up in the
message body has to be plain ASCII letters.
"""

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")

# Letters that NFD does not decompose into base + combining mark
_EXTRA_LETTERS = str.maketrans({"đ": "d", "Đ": "D"})


def strip_diacritics(text: str) -> str:
    """Remove Vietnamese tone marks and other combining accents"""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.translate(_EXTRA_LETTERS)


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run (newlines and tabs included) by one space and trim"""
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_token(text: str) -> str:
    """Normalize a free-text token for the message body: no accents, single spaces, upper case"""
    return collapse_whitespace(strip_diacritics(text)).upper()
