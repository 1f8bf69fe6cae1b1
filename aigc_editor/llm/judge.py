"""
Second-opinion judging and score fusion.

The rule score stays the primary, reproducible signal. A judged paragraph's
score becomes a weighted blend of both, and the document score is recomputed
from the fused paragraphs.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
import logging
import math

from aigc_editor.ir import (
    AI_PATTERN,
    DocumentReport,
    ParagraphReport,
    Signal,
    risk_level,
)
from aigc_editor.analysis.text_utils import clamp, round_half_up
from aigc_editor.llm.client import ClaudeClient
from aigc_editor.llm.prompts import JUDGE_SYSTEM_PROMPT, build_judge_messages

logger = logging.getLogger(__name__)

_LEVELS = ("low", "medium", "high")


@dataclass
class JudgeOutput:
    risk_score: int
    risk_level: str
    top_reasons: List[str] = field(default_factory=list)
    should_rewrite: bool = False


@dataclass(frozen=True)
class JudgeSelection:
    min_score: int = 50
    max_paragraphs: int = 30


@dataclass(frozen=True)
class FusionWeights:
    rule: float = 0.4
    judge: float = 0.6


def judge_output_from_json(data: Mapping[str, object]) -> JudgeOutput:
    try:
        score = float(data.get("riskScore0to100"))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        score = 0.0
    if not math.isfinite(score):
        score = 0.0
    score_int = int(clamp(round_half_up(score), 0, 100))
    level = data.get("riskLevel")
    if level not in _LEVELS:
        level = risk_level(score_int)
    reasons = data.get("topReasons")
    return JudgeOutput(
        risk_score=score_int,
        risk_level=str(level),
        top_reasons=[str(r) for r in reasons] if isinstance(reasons, list) else [],
        should_rewrite=bool(data.get("shouldRewrite")),
    )


def judge_paragraph(client: ClaudeClient, paragraph_text: str, signals: Sequence[Signal]) -> JudgeOutput:
    data = client.chat_json(
        JUDGE_SYSTEM_PROMPT,
        build_judge_messages(paragraph_text, signals),
        purpose="judge.paragraph",
        temperature=0.1,
    )
    return judge_output_from_json(data)


def select_for_judge(report: DocumentReport, selection: JudgeSelection = JudgeSelection()) -> List[ParagraphReport]:
    candidates = [p for p in report.paragraph_reports if p.risk_score >= selection.min_score]
    candidates.sort(key=lambda p: p.risk_score, reverse=True)
    return candidates[:selection.max_paragraphs]


def judge_paragraphs(client: ClaudeClient, paragraphs: Sequence[ParagraphReport]) -> Dict[str, JudgeOutput]:
    """Judge paragraphs in parallel. Failed calls are logged and left out."""
    def _one(p: ParagraphReport):
        try:
            return p.block_id, judge_paragraph(client, p.text, p.signals)
        except Exception as e:
            logger.warning(f"Judge failed for {p.block_id}: {type(e).__name__}: {e}")
            return p.block_id, None

    out: Dict[str, JudgeOutput] = {}
    if not paragraphs:
        return out
    with ThreadPoolExecutor(max_workers=max(1, client.config.max_concurrent)) as executor:
        for bid, judged in executor.map(_one, paragraphs):
            if judged is not None:
                out[bid] = judged
    logger.info(f"Judged {len(out)}/{len(paragraphs)} paragraphs")
    return out


def _review_signal(judged: JudgeOutput) -> Signal:
    return Signal(
        signal_id="llm_judge_review",
        category=AI_PATTERN,
        title="模型复核意见",
        evidence=tuple(judged.top_reasons[:3]),
        suggestion="建议改写此段以降低生成痕迹。" if judged.should_rewrite else "复核认为此段风险可控。",
        score=0,  # already reflected in the fused score
    )


def fuse_judgments(
    report: DocumentReport,
    judgments: Mapping[str, JudgeOutput],
    weights: FusionWeights = FusionWeights(),
) -> DocumentReport:
    fused: List[ParagraphReport] = []
    for p in report.paragraph_reports:
        judged = judgments.get(p.block_id)
        if judged is None:
            fused.append(p)
            continue
        score = int(clamp(round_half_up(p.risk_score * weights.rule + judged.risk_score * weights.judge), 0, 100))
        signals = p.signals + ((_review_signal(judged),) if judged.top_reasons else ())
        fused.append(replace(p, risk_score=score, risk_level=risk_level(score), signals=signals))
    return replace(report, paragraph_reports=tuple(fused)).recompute_overall()
