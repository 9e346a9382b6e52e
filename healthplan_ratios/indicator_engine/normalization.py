"""
Text normalization for ledger descriptions.

Descriptions arrive as free text typed by operators ("Receita de
Contraprestações", "EVENTOS INDENIZÁVEIS - LÍQUIDOS", ...). Both descriptions
and classification patterns go through the same canonical form before any
substring comparison.
"""

import re
import unicodedata
from typing import Optional

# Anything that is not a letter, digit or whitespace (\w also keeps "_")
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_accents(text: str) -> str:
    """Decompose to NFD and drop combining marks."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(text: Optional[str]) -> str:
    """
    Canonicalize a description for matching.

    Lowercases, strips diacritics, turns punctuation into spaces, collapses
    whitespace and trims. Never raises; normalizing twice is a no-op.

    Args:
        text: Raw description (None is treated as empty).

    Returns:
        Normalized text.
    """
    if not text:
        return ""

    text = strip_accents(text.lower())
    text = _PUNCTUATION_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()
