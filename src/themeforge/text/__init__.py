"""
Unicode-aware text utilities for theme generation and answer matching.
"""

from .collation import collation_key, sort_localized
from .initials import get_initial, initial_to_id_token, slugify_snake
from .kana import kana_row, kana_row_label
from .normalize import halfwidth_kana_to_fullwidth, normalize_answer

__all__ = [
    "collation_key",
    "sort_localized",
    "get_initial",
    "initial_to_id_token",
    "slugify_snake",
    "kana_row",
    "kana_row_label",
    "halfwidth_kana_to_fullwidth",
    "normalize_answer",
]
