"""
Initial-character extraction and identifier tokens.
"""

import re
import unicodedata
from types import MappingProxyType

# Leading characters that never count as the "first letter" of a name.
INITIAL_SKIP_CHARS = frozenset([
    "(", ")",
    "（", "）",
    "[", "]",
    "「", "」",
    "『", "』",
    '"', "'",
    "・",
    "-", "—", "–",
    ".", ",", "、", "。",
    "　",
])

# A leading parenthetical is skipped as a whole: "（ソフト）アイスランド" -> "ア".
# Quote brackets are not: "「サントメ」・プリンシペ" -> "サ".
PAREN_PAIRS = MappingProxyType({
    "(": ")",
    "（": "）",
})

_ASCII_ALNUM_RE = re.compile(r"^[A-Za-z0-9]$")
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _scan_initial(text: str, skip_groups: bool) -> str:
    i = 0
    while i < len(text):
        ch = text[i]
        if skip_groups and ch in PAREN_PAIRS:
            end = text.find(PAREN_PAIRS[ch], i + 1)
            if end != -1:
                i = end + 1
                continue
        if ch in INITIAL_SKIP_CHARS:
            i += 1
            continue
        return ch
    return ""


def get_initial(name: str) -> str:
    """
    Return the display initial of a name.

    The name is NFKC-normalized and trimmed, then leading brackets, quotes,
    dots and dashes are skipped. Leading parenthesized groups are skipped
    as a whole; if nothing significant follows them, their content is used
    instead ("(ソフト)" -> "ソ"). An unclosed parenthesis is skipped alone.
    Python strings index by code point, so a character outside the BMP is
    returned whole.

    Args:
        name: Display name, e.g. "（ソフト）アイスランド"

    Returns:
        The first significant character ("ア"), or "" if there is none.
    """
    if not isinstance(name, str):
        return ""
    text = unicodedata.normalize("NFKC", name).strip()
    return _scan_initial(text, skip_groups=True) or _scan_initial(text, skip_groups=False)


def initial_to_id_token(initial: str) -> str:
    """
    Turn an initial into a token that is safe inside a snake_case id.

    ASCII letters and digits are lowercased as-is; anything else becomes
    "u" followed by the code point in lowercase hex, padded to 4 digits.

    Example:
        >>> initial_to_id_token("B")
        'b'
        >>> initial_to_id_token("ア")
        'u30a2'
    """
    if not isinstance(initial, str):
        return ""
    text = initial.strip()
    if not text:
        return ""
    ch = text[0]
    if _ASCII_ALNUM_RE.match(ch):
        return ch.lower()
    return f"u{ord(ch):04x}"


def slugify_snake(value: str) -> str:
    """
    Slugify a label into snake_case: "South-Eastern Asia" -> "south_eastern_asia".

    Accents are stripped first, so "Åland" becomes "aland". Labels with no
    ASCII letters or digits at all produce "".
    """
    decomposed = unicodedata.normalize("NFKD", str(value).strip())
    ascii_only = "".join(c for c in decomposed if not unicodedata.combining(c))
    slug = _NON_SLUG_RE.sub("_", ascii_only.casefold())
    return slug.strip("_")
