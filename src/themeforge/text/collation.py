"""
Deterministic sort order for Japanese display names.

Approximates dictionary order in three levels: first by kana with voicing
and size differences folded away and the long vowel mark spelled out as
its vowel ("ガーナ" sorts as "かあな"), then by script-folded text (so
voiced kana sort right after their unvoiced form), then by the raw string
as a final tie-breaker. Kana sort before kanji because of their code points.
"""

import unicodedata
from typing import Iterable

from .kana import expand_long_vowels, fold_kana, katakana_to_hiragana


def collation_key(text: str) -> tuple[str, str, str]:
    """Sort key for a display name."""
    nfkc = unicodedata.normalize("NFKC", text)
    return (expand_long_vowels(fold_kana(nfkc)), katakana_to_hiragana(nfkc), text)


def sort_localized(values: Iterable[str]) -> list[str]:
    """Return ``values`` sorted by :func:`collation_key`."""
    return sorted(values, key=collation_key)
