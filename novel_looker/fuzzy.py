"""Fuzzy matching of chapter names, used to filter and align tables of contents."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum, auto

from novel_looker.models import ChapterMeta

SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_NON_WORD = SCORE_MATCH // 2
BONUS_CAMEL = BONUS_BOUNDARY + SCORE_GAP_EXTENSION
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2


class _CharClass(Enum):
    NON_WORD = auto()
    LOWER = auto()
    UPPER = auto()
    NUMBER = auto()
    LETTER = auto()


def _char_class(ch: str) -> _CharClass:
    if ch.isdigit():
        return _CharClass.NUMBER
    if ch.islower():
        return _CharClass.LOWER
    if ch.isupper():
        return _CharClass.UPPER
    if ch.isalpha():
        return _CharClass.LETTER
    return _CharClass.NON_WORD


def _bonus(prev: _CharClass, curr: _CharClass) -> int:
    if prev is _CharClass.NON_WORD and curr is not _CharClass.NON_WORD:
        return BONUS_BOUNDARY
    if (prev is _CharClass.LOWER and curr is _CharClass.UPPER) or (
        prev is not _CharClass.NUMBER and curr is _CharClass.NUMBER
    ):
        return BONUS_CAMEL
    if curr is _CharClass.NON_WORD:
        return BONUS_NON_WORD
    return 0


def _bonuses(text: str) -> list[int]:
    result = []
    prev = _CharClass.NON_WORD
    for ch in text:
        curr = _char_class(ch)
        result.append(_bonus(prev, curr))
        prev = curr
    return result


def fuzzy_score(choice: str, pattern: str) -> int | None:
    """Score ``pattern`` as an in-order subsequence of ``choice``.

    Matching is smart-case: case-insensitive unless the pattern holds an
    upper-case letter. Returns ``None`` when the pattern does not occur.
    """
    if not pattern:
        return 0
    case_sensitive = any(ch.isupper() for ch in pattern)
    haystack = choice if case_sensitive else choice.lower()
    needle = pattern if case_sensitive else pattern.lower()
    if len(needle) > len(haystack):
        return None
    bonuses = _bonuses(choice)

    # previous row: position -> (score, bonus of the consecutive chunk's first char)
    prev_row: dict[int, tuple[int, int]] = {}
    for j, ch in enumerate(haystack):
        if ch == needle[0]:
            prev_row[j] = (SCORE_MATCH + bonuses[j] * BONUS_FIRST_CHAR_MULTIPLIER, bonuses[j])
    if not prev_row:
        return None

    for pch in needle[1:]:
        row: dict[int, tuple[int, int]] = {}
        for j, ch in enumerate(haystack):
            if ch != pch:
                continue
            best: tuple[int, int] | None = None
            for k, (score, chunk_bonus) in prev_row.items():
                if k >= j:
                    continue
                if k == j - 1:
                    bonus = max(bonuses[j], chunk_bonus, BONUS_CONSECUTIVE)
                    candidate = (score + SCORE_MATCH + bonus, chunk_bonus)
                else:
                    gap = j - k - 1
                    penalty = SCORE_GAP_START + SCORE_GAP_EXTENSION * (gap - 1)
                    candidate = (score + SCORE_MATCH + bonuses[j] + penalty, bonuses[j])
                if best is None or candidate[0] > best[0]:
                    best = candidate
            if best is not None:
                row[j] = best
        if not row:
            return None
        prev_row = row

    return max(score for score, _ in prev_row.values())


def apply_fuzzy_filter(
    query: str, chapters: Sequence[ChapterMeta], anchor: int | None = None
) -> list[tuple[int, int]]:
    """Return ``(position, score)`` pairs of chapters whose names match ``query``.

    Ordered by score descending; with an ``anchor``, ties go to the position
    closest to it, otherwise the original order is kept. An empty query
    returns every position with score 0.
    """
    if not query:
        return [(pos, 0) for pos in range(len(chapters))]
    scored = [
        (pos, score)
        for pos, chapter in enumerate(chapters)
        if (score := fuzzy_score(chapter.name, query)) is not None
    ]
    if anchor is None:
        scored.sort(key=lambda item: -item[1])
    else:
        scored.sort(key=lambda item: (-item[1], abs(item[0] - anchor)))
    return scored


def pick_best_with_anchor(
    scored: Sequence[tuple[int, int]], anchor: int | None = None
) -> tuple[int, int] | None:
    """The best entry of an already sorted result, or ``None`` when empty."""
    return scored[0] if scored else None