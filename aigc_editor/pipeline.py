from __future__ import annotations
from dataclasses import replace
from typing import Dict, Any, List
from pathlib import Path
from datetime import datetime, timezone
import json
import logging

from aigc_editor.rules.load_rules import load_lexicon
from aigc_editor.adapters.docx_adapter import extract, patch, structure_inventory
from aigc_editor.analysis.detector import DetectorConfig, detect
from aigc_editor.llm.judge import FusionWeights, JudgeSelection
from aigc_editor.verify import finding_to_dict, verify_rewrites, verify_structure
from aigc_editor.changelog import report_to_dict, write_json, write_txt

logger = logging.getLogger(__name__)

MODES = ("detect", "patch", "rewrite")


def load_replacements(path: str) -> Dict[str, str]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
        raise ValueError(f"{path}: expected a JSON object mapping block ids to replacement text")
    return data


def run_pipeline(
    *,
    input_docx: str,
    out_dir: str,
    mode: str = "detect",
    replacements_path: str | None = None,
    lexicon_path: str | None = None,
    # LLM options
    use_judge: bool = False,
    anthropic_api_key: str | None = None,
    llm_model: str = "claude-sonnet-4-20250514",
    min_score: int = 35,
    max_rewrites: int = 20,
    judge_selection: JudgeSelection = JudgeSelection(),
    fusion_weights: FusionWeights = FusionWeights(),
    llm_client: Any = None,
) -> Dict[str, Any]:
    """Run detection and, depending on ``mode``, patching or LLM rewriting.

    Writes a review bundle under ``out_dir`` and returns the changelog payload.
    ``llm_client`` replaces the Anthropic SDK client (used by tests).
    """
    if mode not in MODES:
        raise ValueError(f"Unknown mode {mode!r}; expected one of {', '.join(MODES)}")
    if mode == "patch" and not replacements_path:
        raise ValueError("patch mode requires a replacements file")
    needs_llm = mode == "rewrite" or use_judge
    if needs_llm and not (anthropic_api_key or llm_client):
        raise ValueError("rewrite mode and judge fusion require an Anthropic API key")

    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")
    stem = Path(input_docx).stem
    bundle = Path(out_dir) / f"{stem}_{ts}"
    bundle.mkdir(parents=True, exist_ok=True)

    original_copy = bundle / f"{stem}.original.docx"
    report_json = bundle / f"{stem}.report.json"
    report_txt = bundle / f"{stem}.report.txt"
    revised_path = bundle / f"{stem}.revised.docx"
    report_after_json = bundle / f"{stem}.report_after.json"
    changelog_json = bundle / f"{stem}.changelog.json"

    original_bytes = Path(input_docx).read_bytes()
    original_copy.write_bytes(original_bytes)

    config = DetectorConfig(lexicon=load_lexicon(lexicon_path)) if lexicon_path else DetectorConfig()

    # Parse + detect
    extraction = extract(original_bytes)
    report = detect(extraction.blocks, config)

    client = None
    if needs_llm:
        from aigc_editor.llm.client import ClaudeClient, LLMConfig
        client = ClaudeClient(LLMConfig(api_key=anthropic_api_key or "", model=llm_model), client=llm_client)

    judge_stats = {"enabled": use_judge, "judged": 0}
    if use_judge:
        from aigc_editor.llm.judge import fuse_judgments, judge_paragraphs, select_for_judge
        candidates = select_for_judge(report, judge_selection)
        judgments = judge_paragraphs(client, candidates)
        judge_stats["judged"] = len(judgments)
        report = fuse_judgments(report, judgments, fusion_weights)

    write_json(str(report_json), report_to_dict(report))
    write_txt(str(report_txt), report)

    artifacts: Dict[str, Any] = {
        "original_docx": str(original_copy),
        "report_json": str(report_json),
        "report_txt": str(report_txt),
    }
    payload: Dict[str, Any] = {
        "timestamp_utc": ts,
        "mode": mode,
        "bundle_dir": str(bundle),
        "artifacts": artifacts,
        "judge": judge_stats,
        "stats": {
            "blocks": len(extraction.blocks),
            "overall_risk_score": report.overall_risk_score,
            "overall_risk_level": report.overall_risk_level,
        },
    }
    if mode == "detect":
        return payload

    # Replacement map: user-supplied or LLM rewrites
    rewrite_log: List[Dict[str, Any]] = []
    if mode == "patch":
        replacements = load_replacements(replacements_path)
    else:
        from aigc_editor.llm.rewriter import replacements_from, rewrite_paragraphs
        targets = sorted(
            (p for p in report.paragraph_reports if p.risk_score >= min_score and p.text.strip()),
            key=lambda p: p.risk_score, reverse=True,
        )[:max_rewrites]
        results = rewrite_paragraphs(client, report, [p.block_id for p in targets])
        replacements = replacements_from(results)
        for r in results:
            entry: Dict[str, Any] = {"block_id": r.block_id, "success": r.success, "error": r.error}
            if r.output is not None:
                entry.update({
                    "change_rationale": r.output.change_rationale,
                    "risk_signals_resolved": r.output.risk_signals_resolved,
                    "need_human_check": r.output.need_human_check,
                    "human_features": r.output.human_features,
                })
            rewrite_log.append(entry)

    known = {b.id: b.text for b in extraction.blocks}
    applied = {bid: text for bid, text in replacements.items() if bid in known}

    revised_bytes = patch(original_bytes, applied)
    revised_path.write_bytes(revised_bytes)

    # Re-detect on the merged texts
    merged = [replace(b, text=applied[b.id]) if b.id in applied else b for b in extraction.blocks]
    report_after = detect(merged, config)
    write_json(str(report_after_json), report_to_dict(report_after))

    # Verification
    findings = verify_rewrites(known, applied)
    findings.extend(verify_structure(structure_inventory(original_bytes), structure_inventory(revised_bytes)))

    artifacts["revised_docx"] = str(revised_path)
    artifacts["report_after_json"] = str(report_after_json)
    artifacts["changelog_json"] = str(changelog_json)
    payload["stats"].update({
        "replacements_requested": len(replacements),
        "replacements_applied": len(applied),
        "overall_risk_score_after": report_after.overall_risk_score,
        "overall_risk_level_after": report_after.overall_risk_level,
        "findings_total": len(findings),
    })
    payload["changes"] = [
        {"block_id": bid, "before": known[bid], "after": text} for bid, text in applied.items()
    ]
    payload["rewrites"] = rewrite_log
    payload["findings"] = [finding_to_dict(f) for f in findings]

    logger.info(
        f"Patched {len(applied)} blocks: overall {report.overall_risk_score} -> {report_after.overall_risk_score}, "
        f"{len(findings)} findings"
    )
    write_json(str(changelog_json), payload)
    return payload
