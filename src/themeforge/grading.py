"""
Grading of quiz answers against a theme.
"""

from dataclasses import dataclass, field

from .text import normalize_answer

SUGGEST_MAX = 5


@dataclass
class GradeResult:
    """Outcome of one quiz attempt."""
    score: int
    wrong: list[str] = field(default_factory=list)            # user answers not in the theme
    missing: list[str] = field(default_factory=list)          # theme answers not given, theme order
    missing_suggested: list[str] = field(default_factory=list)


def grade_answers(user_answers: list[str], correct_answers: list[str]) -> GradeResult:
    """
    Grade user answers against the theme's answers.

    Matching is done on normalize_answer() forms. Blank and repeated user
    answers are ignored; wrong answers never affect ``missing``.

    Example:
        >>> grade_answers(["ｲﾀﾘｱ", "ドイツ"], ["イタリア", "フランス"]).score
        1
    """
    correct_norms: set[str] = set()
    for answer in correct_answers:
        norm = normalize_answer(answer)
        if norm:
            correct_norms.add(norm)

    hits: set[str] = set()
    seen: set[str] = set()
    wrong: list[str] = []
    for raw in user_answers:
        norm = normalize_answer(raw)
        if not norm or norm in seen:
            continue
        seen.add(norm)
        if norm in correct_norms:
            hits.add(norm)
        else:
            wrong.append(raw)

    missing: list[str] = []
    listed: set[str] = set()
    for answer in correct_answers:
        norm = normalize_answer(answer)
        if not norm or norm in listed:
            continue
        listed.add(norm)
        if norm not in hits:
            missing.append(answer)

    return GradeResult(
        score=len(hits),
        wrong=wrong,
        missing=missing,
        missing_suggested=missing[:SUGGEST_MAX],
    )
