"""
Paragraph feature extraction.

A pure function from paragraph text to a fixed record of statistics,
lexicon hits and pattern matches. Same text and lexicon, same record.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Pattern, Sequence, Tuple
import re

from aigc_editor.rules.load_rules import Lexicon
from aigc_editor.analysis.text_utils import (
    clamp,
    count_occurrences,
    entropy,
    mask_occurrences,
    mean,
    ngram_repeat_ratio,
    split_sentences,
    tokenize,
    variance,
)

HEAD_CHARS = 40
TAIL_CHARS = 80
SNIPPET_CHARS = 40

_NUMBER_RE = re.compile(r"[0-9０-９]+")
_BRACKET_CITE_RE = re.compile(r"\[[0-9]+\]")
_FULLWIDTH_YEAR_CITE_RE = re.compile(r"（[^（）]{0,20}\d{4}[^（）]{0,20}）")
_AUTHOR_YEAR_CITE_RE = re.compile(r"\([A-Z][A-Za-z]+,\s*\d{4}\)")

STATEMENT = "S"
CONTRAST = "T"
CONCLUSION = "C"


@dataclass(frozen=True)
class ParagraphFeatures:
    char_count: int = 0
    sentence_count: int = 0
    sentence_len_mean: float = 0.0
    sentence_len_variance: float = 0.0
    sentence_len_entropy: float = 0.0

    token_count: int = 0
    token_unique_ratio: float = 0.0
    bigram_repeat_ratio: float = 0.0
    trigram_repeat_ratio: float = 0.0

    template_phrase_count: int = 0
    template_phrase_hits: Tuple[str, ...] = ()
    connective_count: int = 0
    connective_hits: Tuple[str, ...] = ()
    strong_claim_count: int = 0
    strong_claim_hits: Tuple[str, ...] = ()
    abstract_noun_count: int = 0
    abstract_noun_hits: Tuple[str, ...] = ()
    pronoun_count: int = 0
    pronoun_hits: Tuple[str, ...] = ()
    cognitive_marker_count: int = 0
    cognitive_marker_hits: Tuple[str, ...] = ()
    cognitive_marker_density: float = 0.0  # per 1000 chars

    number_token_count: int = 0
    citation_marker_count: int = 0
    has_citation_marker: bool = False

    ai_opening_match: bool = False
    ai_opening_hit: str = ""
    symmetric_match: bool = False
    symmetric_hit: str = ""
    hollow_conclusion_match: bool = False
    hollow_conclusion_hit: str = ""
    enumerated_opening_match: bool = False
    opening_snippet: str = ""

    connective_at_head_ratio: float = 0.0
    internal_structure_shifts: int = 0


def _first_match(patterns: Sequence[Pattern[str]], text: str) -> Optional[str]:
    for pat in patterns:
        m = pat.search(text)
        if m:
            return m.group(0)
    return None


def classify_sentence(sentence: str, lexicon: Lexicon) -> str:
    head = sentence.strip()
    if any(head.startswith(w) for w in lexicon.contrast_openers):
        return CONTRAST
    if any(head.startswith(w) for w in lexicon.conclusion_openers):
        return CONCLUSION
    return STATEMENT


def count_role_shifts(sentences: Sequence[str], lexicon: Lexicon) -> int:
    roles = [classify_sentence(s, lexicon) for s in sentences]
    return sum(1 for a, b in zip(roles, roles[1:]) if a != b)


def count_citations(text: str) -> int:
    return (
        len(_BRACKET_CITE_RE.findall(text))
        + len(_FULLWIDTH_YEAR_CITE_RE.findall(text))
        + len(_AUTHOR_YEAR_CITE_RE.findall(text))
    )


def extract_features(text: str, lexicon: Lexicon) -> ParagraphFeatures:
    text = text or ""
    char_count = len(text)

    sentences = split_sentences(text)
    sentence_lens = [len(s) for s in sentences]

    tokens = tokenize(text)
    token_count = len(tokens)
    unique_ratio = clamp(len(set(tokens)) / token_count, 0.0, 1.0) if token_count else 0.0

    template_count, template_hits = count_occurrences(text, lexicon.template_phrases)
    connective_count, connective_hits = count_occurrences(text, lexicon.connectives)
    claim_count, claim_hits = count_occurrences(text, lexicon.strong_claims)
    abstract_count, abstract_hits = count_occurrences(text, lexicon.abstract_nouns)
    # "其次" is a connective, not the pronoun "其"
    pronoun_count, pronoun_hits = count_occurrences(
        mask_occurrences(text, lexicon.connectives), lexicon.pronouns
    )
    cognitive_count, cognitive_hits = count_occurrences(text, lexicon.cognitive_markers)

    citations = count_citations(text)

    stripped = text.strip()
    opening = _first_match(lexicon.ai_opening_patterns, stripped[:HEAD_CHARS])
    symmetric = _first_match(lexicon.symmetric_patterns, text)
    if symmetric and len(symmetric) > SNIPPET_CHARS:
        symmetric = symmetric[:SNIPPET_CHARS] + "…"
    hollow = _first_match(lexicon.hollow_conclusion_patterns, stripped[-TAIL_CHARS:])
    enumerated = _first_match(lexicon.enumerated_opening_patterns, stripped)

    at_head = 0
    for s in sentences:
        if any(s.startswith(c) for c in lexicon.connectives):
            at_head += 1

    return ParagraphFeatures(
        char_count=char_count,
        sentence_count=len(sentences),
        sentence_len_mean=mean(sentence_lens),
        sentence_len_variance=variance(sentence_lens),
        sentence_len_entropy=entropy(sentence_lens) if len(sentences) >= 2 else 0.0,
        token_count=token_count,
        token_unique_ratio=unique_ratio,
        bigram_repeat_ratio=ngram_repeat_ratio(tokens, 2),
        trigram_repeat_ratio=ngram_repeat_ratio(tokens, 3),
        template_phrase_count=template_count,
        template_phrase_hits=tuple(template_hits),
        connective_count=connective_count,
        connective_hits=tuple(connective_hits),
        strong_claim_count=claim_count,
        strong_claim_hits=tuple(claim_hits),
        abstract_noun_count=abstract_count,
        abstract_noun_hits=tuple(abstract_hits),
        pronoun_count=pronoun_count,
        pronoun_hits=tuple(pronoun_hits),
        cognitive_marker_count=cognitive_count,
        cognitive_marker_hits=tuple(cognitive_hits),
        cognitive_marker_density=(cognitive_count / char_count) * 1000 if char_count else 0.0,
        number_token_count=len(_NUMBER_RE.findall(text)),
        citation_marker_count=citations,
        has_citation_marker=citations > 0,
        ai_opening_match=opening is not None,
        ai_opening_hit=opening or "",
        symmetric_match=symmetric is not None,
        symmetric_hit=symmetric or "",
        hollow_conclusion_match=hollow is not None,
        hollow_conclusion_hit=hollow or "",
        enumerated_opening_match=enumerated is not None,
        opening_snippet=stripped[:12],
        connective_at_head_ratio=at_head / connective_count if connective_count else 0.0,
        internal_structure_shifts=count_role_shifts(sentences, lexicon),
    )
