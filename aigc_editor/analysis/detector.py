"""
Document-level risk detection.

detect() turns an ordered block list into a DocumentReport: per-paragraph
features and rule signals, cross-paragraph context, synergy scoring and the
length-weighted document score. It performs no I/O and never raises for a
well-formed block list, including an empty one.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional, Sequence
import logging

from aigc_editor.ir import (
    TextBlock,
    Signal,
    ParagraphReport,
    DocumentReport,
    risk_level,
)
from aigc_editor.rules.load_rules import Lexicon, load_lexicon
from aigc_editor.analysis.features import extract_features
from aigc_editor.analysis.signals import RuleContext, evaluate_rules
from aigc_editor.analysis.cross_paragraph import isomorphic_positions, neighbor_similarities
from aigc_editor.analysis.scoring import score_paragraph, aggregate_document

logger = logging.getLogger(__name__)

LIMITATIONS = (
    "检测结果是风险提示而非定性证据：高分不等于一定使用了生成式工具，低分也不等于一定没有使用。",
    "模板化的学术写作、反复润色或非母语写作都可能导致误报，深度人工改写也可能导致漏报。",
    "本工具不联网核验事实与引用真伪，关键结论、数据和引用来源请人工复核。",
)


@lru_cache(maxsize=1)
def default_lexicon() -> Lexicon:
    return load_lexicon()


@dataclass(frozen=True)
class DetectorConfig:
    lexicon: Lexicon = field(default_factory=default_lexicon)
    isomorphism_window: int = 3
    isomorphism_prefix_len: int = 2
    isomorphism_min_connectives: int = 2


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def detect_paragraph(text: str, ctx: RuleContext, lexicon: Lexicon) -> List[Signal]:
    return evaluate_rules(extract_features(text, lexicon), ctx)


def detect(
    blocks: Sequence[TextBlock],
    config: Optional[DetectorConfig] = None,
    *,
    generated_at: Optional[str] = None,
) -> DocumentReport:
    config = config or DetectorConfig()
    texts = [b.text for b in blocks]

    similarities = neighbor_similarities(texts)
    iso = isomorphic_positions(
        texts,
        config.lexicon.isomorphism_connectives,
        window=config.isomorphism_window,
        prefix_len=config.isomorphism_prefix_len,
        min_connectives=config.isomorphism_min_connectives,
    )

    reports: List[ParagraphReport] = []
    for pos, block in enumerate(blocks):
        prev_sim, next_sim = similarities[pos]
        ctx = RuleContext(similarity_prev=prev_sim, similarity_next=next_sim, isomorphic=pos in iso)
        signals = detect_paragraph(block.text, ctx, config.lexicon)
        score = score_paragraph(signals)
        reports.append(ParagraphReport(
            block_id=block.id,
            index=block.index,
            kind=block.kind,
            text=block.text,
            risk_score=score,
            risk_level=risk_level(score),
            signals=tuple(signals),
        ))

    overall = aggregate_document(reports)
    flagged = sum(1 for r in reports if r.risk_level != "low")
    logger.info(f"Detected {len(reports)} paragraphs: overall={overall}, {flagged} at medium or above")

    return DocumentReport(
        overall_risk_score=overall,
        overall_risk_level=risk_level(overall),
        paragraph_reports=tuple(reports),
        limitations=LIMITATIONS,
        generated_at=generated_at or _now(),
    )
