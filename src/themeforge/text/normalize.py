"""
Answer normalization used when grading at play time.

Two answers are considered the same when they only differ by whitespace,
latin case, full-width/half-width form or hiragana/katakana.
"""

import re
import unicodedata
from types import MappingProxyType

from .kana import katakana_to_hiragana

_WHITESPACE_RE = re.compile(r"[\s　]+")

HALFWIDTH_TO_FULLWIDTH = MappingProxyType({
    "｡": "。", "｢": "「", "｣": "」", "､": "、", "･": "・", "ｰ": "ー",
    "ｦ": "ヲ", "ｧ": "ァ", "ｨ": "ィ", "ｩ": "ゥ", "ｪ": "ェ", "ｫ": "ォ",
    "ｬ": "ャ", "ｭ": "ュ", "ｮ": "ョ", "ｯ": "ッ",
    "ｱ": "ア", "ｲ": "イ", "ｳ": "ウ", "ｴ": "エ", "ｵ": "オ",
    "ｶ": "カ", "ｷ": "キ", "ｸ": "ク", "ｹ": "ケ", "ｺ": "コ",
    "ｻ": "サ", "ｼ": "シ", "ｽ": "ス", "ｾ": "セ", "ｿ": "ソ",
    "ﾀ": "タ", "ﾁ": "チ", "ﾂ": "ツ", "ﾃ": "テ", "ﾄ": "ト",
    "ﾅ": "ナ", "ﾆ": "ニ", "ﾇ": "ヌ", "ﾈ": "ネ", "ﾉ": "ノ",
    "ﾊ": "ハ", "ﾋ": "ヒ", "ﾌ": "フ", "ﾍ": "ヘ", "ﾎ": "ホ",
    "ﾏ": "マ", "ﾐ": "ミ", "ﾑ": "ム", "ﾒ": "メ", "ﾓ": "モ",
    "ﾔ": "ヤ", "ﾕ": "ユ", "ﾖ": "ヨ",
    "ﾗ": "ラ", "ﾘ": "リ", "ﾙ": "ル", "ﾚ": "レ", "ﾛ": "ロ",
    "ﾜ": "ワ", "ﾝ": "ン",
})

DAKUTEN = MappingProxyType({
    "ウ": "ヴ",
    "カ": "ガ", "キ": "ギ", "ク": "グ", "ケ": "ゲ", "コ": "ゴ",
    "サ": "ザ", "シ": "ジ", "ス": "ズ", "セ": "ゼ", "ソ": "ゾ",
    "タ": "ダ", "チ": "ヂ", "ツ": "ヅ", "テ": "デ", "ト": "ド",
    "ハ": "バ", "ヒ": "ビ", "フ": "ブ", "ヘ": "ベ", "ホ": "ボ",
})

HANDAKUTEN = MappingProxyType({
    "ハ": "パ", "ヒ": "ピ", "フ": "プ", "ヘ": "ペ", "ホ": "ポ",
})

HALFWIDTH_DAKUTEN = "ﾞ"
HALFWIDTH_HANDAKUTEN = "ﾟ"


def halfwidth_kana_to_fullwidth(text: str) -> str:
    """
    Convert half-width katakana (U+FF61..U+FF9F) to full-width.

    A half-width (han)dakuten is merged into the preceding kana when the
    combination exists ("ｶﾞ" -> "ガ") and dropped otherwise.
    """
    out: list[str] = []
    for ch in text:
        if ch in (HALFWIDTH_DAKUTEN, HALFWIDTH_HANDAKUTEN):
            if not out:
                continue
            table = DAKUTEN if ch == HALFWIDTH_DAKUTEN else HANDAKUTEN
            voiced = table.get(out[-1])
            if voiced:
                out[-1] = voiced
            continue
        out.append(HALFWIDTH_TO_FULLWIDTH.get(ch, ch))
    return "".join(out)


def normalize_answer(text: str) -> str:
    """
    Normalize an answer for comparison.

    Steps: drop all whitespace (including ideographic space), half-width
    kana to full-width, NFKC, lowercase, katakana to hiragana.

    Example:
        >>> normalize_answer(" ｲﾀﾘｱ ")
        'いたりあ'
    """
    no_spaces = _WHITESPACE_RE.sub("", text or "")
    fullwidth = halfwidth_kana_to_fullwidth(no_spaces)
    nfkc = unicodedata.normalize("NFKC", fullwidth)
    return katakana_to_hiragana(nfkc.lower())
