"""
Kana tables and script-row classification.

Rows ("gyō") are the coarse grouping used by Japanese dictionaries: every
hiragana syllable belongs to one of ten rows headed by あ, か, さ, た, な,
は, ま, や, ら and わ. Katakana is folded onto hiragana, voicing marks are
dropped and small kana are folded to their full-size form before lookup,
so "ガンマ", "がんま" and "かんた" all land in the か row.
"""

import unicodedata
from types import MappingProxyType

KATAKANA_START = 0x30A1  # ァ
KATAKANA_END = 0x30F6  # ヶ
KATAKANA_TO_HIRAGANA_OFFSET = 0x60

HIRAGANA_START = 0x3041  # ぁ
HIRAGANA_END = 0x309F  # ゟ

# Combining and spacing (han)dakuten.
VOICING_MARKS = frozenset("゙゚゛゜")

SMALL_KANA = MappingProxyType({
    "ぁ": "あ",
    "ぃ": "い",
    "ぅ": "う",
    "ぇ": "え",
    "ぉ": "お",
    "っ": "つ",
    "ゃ": "や",
    "ゅ": "ゆ",
    "ょ": "よ",
    "ゎ": "わ",
    "ゕ": "か",
    "ゖ": "け",
})

KANA_ROWS = MappingProxyType({
    "a": frozenset("あいうえお"),
    "ka": frozenset("かきくけこ"),
    "sa": frozenset("さしすせそ"),
    "ta": frozenset("たちつてと"),
    "na": frozenset("なにぬねの"),
    "ha": frozenset("はひふへほ"),
    "ma": frozenset("まみむめも"),
    "ya": frozenset("やゆよ"),
    "ra": frozenset("らりるれろ"),
    "wa": frozenset("わゐゑをん"),
})

KANA_ROW_LABELS = MappingProxyType({
    "a": "あ行",
    "ka": "か行",
    "sa": "さ行",
    "ta": "た行",
    "na": "な行",
    "ha": "は行",
    "ma": "ま行",
    "ya": "や行",
    "ra": "ら行",
    "wa": "わ行",
})


def katakana_to_hiragana(text: str) -> str:
    """Shift katakana (ァ..ヶ) onto the matching hiragana code points."""
    out = []
    for ch in text:
        code = ord(ch)
        if KATAKANA_START <= code <= KATAKANA_END:
            out.append(chr(code - KATAKANA_TO_HIRAGANA_OFFSET))
        else:
            out.append(ch)
    return "".join(out)


def strip_voicing(text: str) -> str:
    """Remove dakuten/handakuten: が -> か, ぱ -> は, ゔ -> う."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in decomposed if c not in VOICING_MARKS)
    return unicodedata.normalize("NFC", stripped)


def fold_small_kana(text: str) -> str:
    """Replace small kana with their full-size equivalents."""
    return "".join(SMALL_KANA.get(ch, ch) for ch in text)


def fold_kana(text: str) -> str:
    """Apply the full folding chain used for row lookup.

    NFKC, katakana to hiragana, voicing removal, small kana folding.
    """
    text = unicodedata.normalize("NFKC", text)
    text = katakana_to_hiragana(text)
    text = strip_voicing(text)
    return fold_small_kana(text)


def kana_row(text: str) -> str | None:
    """
    Classify the first character of ``text`` into a kana row.

    Args:
        text: A single character or a longer string; only the first
              character after folding is considered.

    Returns:
        Row key ("a", "ka", ... "wa"), or None when the character is not
        hiragana/katakana or belongs to no row (e.g. the long vowel mark).
    """
    folded = fold_kana(text or "")
    if not folded:
        return None
    ch = folded[0]
    if not HIRAGANA_START <= ord(ch) <= HIRAGANA_END:
        return None
    for row, members in KANA_ROWS.items():
        if ch in members:
            return row
    return None


def kana_row_label(row: str) -> str:
    """Display label for a row key ("ka" -> "か行")."""
    return KANA_ROW_LABELS.get(row, row)


LONG_VOWEL_MARK = "ー"

# Vowel of each folded hiragana syllable, used to spell out "ー".
KANA_VOWELS = MappingProxyType({
    **dict.fromkeys("あかさたなはまやらわ", "あ"),
    **dict.fromkeys("いきしちにひみりゐ", "い"),
    **dict.fromkeys("うくすつぬふむゆる", "う"),
    **dict.fromkeys("えけせてねへめれゑ", "え"),
    **dict.fromkeys("おこそとのほもよろを", "お"),
})


def expand_long_vowels(text: str) -> str:
    """
    Replace each long vowel mark with the vowel of the kana before it.

    Expects folded hiragana (see :func:`fold_kana`): "かーな" becomes "かあな".
    A mark after ん, another script or at the start is kept as-is.
    """
    out: list[str] = []
    for ch in text:
        if ch == LONG_VOWEL_MARK and out:
            ch = KANA_VOWELS.get(out[-1], ch)
        out.append(ch)
    return "".join(out)
