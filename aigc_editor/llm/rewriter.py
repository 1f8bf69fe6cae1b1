"""
Paragraph rewriting through the LLM.

Produces replacement texts for patch(); the model sees the paragraph, its
immediate neighbors and the signals that fired on it.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
import time

from aigc_editor.ir import DocumentReport, Signal
from aigc_editor.llm.client import ClaudeClient
from aigc_editor.llm.prompts import REWRITE_SYSTEM_PROMPT, build_rewrite_messages

logger = logging.getLogger(__name__)

CONTEXT_CHARS = 200


@dataclass
class RewriteOutput:
    revised_text: str
    change_rationale: List[str] = field(default_factory=list)
    risk_signals_resolved: List[str] = field(default_factory=list)
    need_human_check: List[str] = field(default_factory=list)
    human_features: List[str] = field(default_factory=list)


@dataclass
class RewriteResult:
    """Result of rewriting one block."""
    block_id: str
    original: str
    success: bool
    output: Optional[RewriteOutput] = None
    error: Optional[str] = None


def _str_list(value: object) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def rewrite_paragraph(
    client: ClaudeClient,
    paragraph_text: str,
    signals: Sequence[Signal],
    context_before: str = "",
    context_after: str = "",
) -> RewriteOutput:
    data = client.chat_json(
        REWRITE_SYSTEM_PROMPT,
        build_rewrite_messages(
            paragraph_text,
            signals,
            context_before=context_before[:CONTEXT_CHARS],
            context_after=context_after[:CONTEXT_CHARS],
        ),
        purpose="rewrite.paragraph",
    )
    revised = data.get("revisedText")
    if not isinstance(revised, str) or not revised.strip():
        raise ValueError("LLM rewrite output missing revisedText")
    return RewriteOutput(
        revised_text=revised.strip(),
        change_rationale=_str_list(data.get("changeRationale")),
        risk_signals_resolved=_str_list(data.get("riskSignalsResolved")),
        need_human_check=_str_list(data.get("needHumanCheck")),
        human_features=_str_list(data.get("humanFeatures")),
    )


def rewrite_paragraphs(
    client: ClaudeClient,
    report: DocumentReport,
    block_ids: Sequence[str],
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> List[RewriteResult]:
    """Rewrite the given blocks in parallel; results come back in ``block_ids`` order.

    A failed request yields a result with ``success=False`` instead of
    aborting the batch. Unknown ids are skipped.
    """
    paras = report.paragraph_reports
    position = {p.block_id: i for i, p in enumerate(paras)}
    wanted = [bid for bid in block_ids if bid in position]
    if not wanted:
        return []

    def _one(bid: str) -> RewriteResult:
        i = position[bid]
        p = paras[i]
        before = paras[i - 1].text if i > 0 else ""
        after = paras[i + 1].text if i + 1 < len(paras) else ""
        try:
            out = rewrite_paragraph(client, p.text, p.signals, before, after)
            return RewriteResult(block_id=bid, original=p.text, success=True, output=out)
        except Exception as e:
            logger.warning(f"Rewrite failed for {bid}: {type(e).__name__}: {e}")
            return RewriteResult(block_id=bid, original=p.text, success=False, error=str(e))

    total = len(wanted)
    results: Dict[str, RewriteResult] = {}
    logger.info(f"Starting rewrite of {total} paragraphs with {client.config.max_concurrent} workers")
    start_time = time.time()

    with ThreadPoolExecutor(max_workers=max(1, client.config.max_concurrent)) as executor:
        futures = {executor.submit(_one, bid): bid for bid in wanted}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
            if progress_callback:
                progress_callback(len(results), total)

    ok = sum(1 for r in results.values() if r.success)
    logger.info(f"Completed {total} rewrites in {time.time() - start_time:.1f}s ({ok} successful)")
    return [results[bid] for bid in wanted]


def replacements_from(results: Sequence[RewriteResult]) -> Dict[str, str]:
    return {r.block_id: r.output.revised_text for r in results if r.success and r.output is not None}
