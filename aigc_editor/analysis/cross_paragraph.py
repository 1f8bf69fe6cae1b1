from __future__ import annotations
from typing import List, Sequence, Set, Tuple

from aigc_editor.analysis.text_utils import jaccard, tokenize


def content_tokens(text: str) -> Set[str]:
    # single characters are mostly punctuation and particles
    return {t for t in tokenize(text) if len(t) > 1}


def neighbor_similarities(texts: Sequence[str]) -> List[Tuple[float, float]]:
    """(similarity to previous, similarity to next) per text; a missing neighbor counts as 1.0."""
    token_sets = [content_tokens(t) for t in texts]
    out: List[Tuple[float, float]] = []
    for i, cur in enumerate(token_sets):
        prev_sim = jaccard(token_sets[i - 1], cur) if i > 0 else 1.0
        next_sim = jaccard(cur, token_sets[i + 1]) if i + 1 < len(token_sets) else 1.0
        out.append((prev_sim, next_sim))
    return out


def isomorphic_positions(
    texts: Sequence[str],
    connectives: Sequence[str],
    *,
    window: int = 3,
    prefix_len: int = 2,
    min_connectives: int = 2,
) -> Set[int]:
    """Positions that sit in a run of ``window`` consecutive texts sharing a template.

    A window matches when every text starts with the same ``prefix_len``
    characters, or every text contains at least ``min_connectives`` distinct
    connectives from ``connectives``.
    """
    marked: Set[int] = set()
    if window < 2 or len(texts) < window:
        return marked

    for i in range(len(texts) - window + 1):
        span = range(i, i + window)
        prefixes = {texts[j].strip()[:prefix_len] for j in span}
        if len(prefixes) == 1 and len(next(iter(prefixes))) >= prefix_len:
            marked.update(span)
            continue
        if connectives and all(
            sum(1 for c in connectives if c in texts[j]) >= min_connectives for j in span
        ):
            marked.update(span)
    return marked
