from __future__ import annotations
from typing import Iterable, Sequence

from aigc_editor.ir import Signal, ParagraphReport, MEDIUM_THRESHOLD
from aigc_editor.analysis.text_utils import clamp, round_half_up


def synergy_bonus(signals: Sequence[Signal]) -> int:
    """Extra points when several independent signals corroborate each other."""
    n = len(signals)
    if n >= 5:
        bonus = 25
    elif n >= 4:
        bonus = 18
    elif n >= 3:
        bonus = 10
    else:
        bonus = 0
    if len({s.category for s in signals}) >= 3:
        bonus += 8
    return bonus


def score_paragraph(signals: Sequence[Signal]) -> int:
    base = sum(s.score for s in signals)
    return int(clamp(base + synergy_bonus(signals), 0, 100))


def aggregate_document(reports: Iterable[ParagraphReport]) -> int:
    """Character-weighted document score.

    Paragraphs below the medium threshold add length to the denominator
    only, so many short clean paragraphs cannot hide one long risky one.
    """
    flagged = 0.0
    total = 0
    for r in reports:
        n = len(r.text)
        total += n
        if r.risk_score >= MEDIUM_THRESHOLD:
            flagged += n * (r.risk_score / 100)
    if total <= 0:
        return 0
    return int(clamp(round_half_up(flagged / total * 100), 0, 100))
