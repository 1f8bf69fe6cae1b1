from __future__ import annotations
from typing import Iterable, List, Optional, Pattern, Sequence, Set, Tuple
import math
import re

import jieba

_SENTENCE_END_RE = re.compile(r"(?<=[。！？!?；;])\s*")
_INLINE_SPACE_RE = re.compile(r"[ \t]+")

jieba.setLogLevel(60)  # silence the dictionary-loading banner


def normalize_text(text: str) -> str:
    return _INLINE_SPACE_RE.sub(" ", text.replace("\r\n", "\n")).strip()


def split_sentences(text: str) -> List[str]:
    """Split on sentence-final punctuation, keeping the punctuation with its sentence."""
    text = normalize_text(text)
    if not text:
        return []
    return [s.strip() for s in _SENTENCE_END_RE.split(text) if s.strip()]


def tokenize(text: str) -> List[str]:
    text = normalize_text(text)
    if not text:
        return []
    return [t.strip() for t in jieba.lcut(text) if t.strip()]


def _needle_pattern(needles: Iterable[str]) -> Optional[Pattern[str]]:
    ordered = sorted(dict.fromkeys(n for n in needles if n), key=len, reverse=True)
    if not ordered:
        return None
    return re.compile("|".join(re.escape(n) for n in ordered))


def mask_occurrences(text: str, needles: Iterable[str]) -> str:
    """Blank out needle hits (same length) so another lexicon does not match inside them."""
    pattern = _needle_pattern(needles)
    if pattern is None:
        return text
    return pattern.sub(lambda m: " " * len(m.group(0)), text)


def count_occurrences(text: str, needles: Iterable[str]) -> Tuple[int, List[str]]:
    """Total non-overlapping hits of the needles, plus the distinct needles that hit.

    Longer needles win where they overlap, so "与此同时" is one hit, not also "同时".
    """
    pattern = _needle_pattern(needles)
    if pattern is None:
        return 0, []
    count = 0
    hits: List[str] = []
    for m in pattern.finditer(text):
        count += 1
        if m.group(0) not in hits:
            hits.append(m.group(0))
    return count, hits


def clamp(n: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, n))


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def mean(xs: Sequence[float]) -> float:
    return sum(xs) / len(xs) if xs else 0.0


def variance(xs: Sequence[float]) -> float:
    if len(xs) <= 1:
        return 0.0
    m = mean(xs)
    return sum((x - m) ** 2 for x in xs) / len(xs)


def entropy(xs: Sequence[float]) -> float:
    """Shannon entropy (bits) of the distribution xs / sum(xs)."""
    total = sum(xs)
    if total <= 0:
        return 0.0
    h = 0.0
    for x in xs:
        p = x / total
        if p > 0:
            h -= p * math.log2(p)
    return h


def ngram_repeat_ratio(tokens: Sequence[str], n: int) -> float:
    """Share of n-grams that repeat an earlier n-gram in the same sequence."""
    if len(tokens) < n + 2:
        return 0.0
    grams = [tuple(tokens[i:i + n]) for i in range(len(tokens) - n + 1)]
    return clamp((len(grams) - len(set(grams))) / len(grams), 0.0, 1.0)


def jaccard(a: Set[str], b: Set[str]) -> float:
    if not a or not b:
        return 0.0
    inter = len(a & b)
    union = len(a) + len(b) - inter
    return inter / union if union else 0.0
