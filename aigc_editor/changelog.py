from __future__ import annotations
from typing import Dict, Any, List
import json

from aigc_editor.ir import DocumentReport, ParagraphReport, Signal


def signal_to_dict(s: Signal) -> Dict[str, Any]:
    return {
        "signal_id": s.signal_id, "category": s.category, "title": s.title,
        "evidence": list(s.evidence), "suggestion": s.suggestion, "score": s.score,
    }


def report_to_dict(report: DocumentReport) -> Dict[str, Any]:
    return {
        "overall_risk_score": report.overall_risk_score,
        "overall_risk_level": report.overall_risk_level,
        "generated_at": report.generated_at,
        "limitations": list(report.limitations),
        "paragraph_reports": [
            {
                "block_id": p.block_id, "index": p.index, "kind": p.kind, "text": p.text,
                "risk_score": p.risk_score, "risk_level": p.risk_level,
                "signals": [signal_to_dict(s) for s in p.signals],
            }
            for p in report.paragraph_reports
        ],
    }


def report_from_dict(payload: Dict[str, Any]) -> DocumentReport:
    paragraphs = []
    for p in payload.get("paragraph_reports", []) or []:
        paragraphs.append(ParagraphReport(
            block_id=p["block_id"],
            index=int(p["index"]),
            kind=p["kind"],
            text=p["text"],
            risk_score=int(p["risk_score"]),
            risk_level=p["risk_level"],
            signals=tuple(
                Signal(
                    signal_id=s["signal_id"],
                    category=s["category"],
                    title=s["title"],
                    evidence=tuple(s.get("evidence", [])),
                    suggestion=s.get("suggestion", ""),
                    score=int(s["score"]),
                )
                for s in p.get("signals", [])
            ),
        ))
    return DocumentReport(
        overall_risk_score=int(payload["overall_risk_score"]),
        overall_risk_level=payload["overall_risk_level"],
        paragraph_reports=tuple(paragraphs),
        limitations=tuple(payload.get("limitations", [])),
        generated_at=payload.get("generated_at", ""),
    )


def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_txt(path: str, report: DocumentReport) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_txt(report))


def _snippet(text: str, n: int = 60) -> str:
    return text if len(text) <= n else text[:n] + "…"


def render_txt(report: DocumentReport) -> str:
    lines: List[str] = []
    lines.append(f"AIGC Risk Report ({report.generated_at})")
    lines.append("")
    lines.append(f"Overall: {report.overall_risk_score} [{report.overall_risk_level.upper()}]")
    counts = {level: sum(1 for p in report.paragraph_reports if p.risk_level == level) for level in ("high", "medium", "low")}
    lines.append(f"Paragraphs: {len(report.paragraph_reports)} (high {counts['high']}, medium {counts['medium']}, low {counts['low']})")
    lines.append("")
    flagged = [p for p in report.paragraph_reports if p.risk_level != "low"]
    if flagged:
        lines.append("Flagged paragraphs")
        for p in flagged[:60]:
            lines.append(f"- {p.block_id} score={p.risk_score} [{p.risk_level.upper()}] {_snippet(p.text)}")
            for s in p.signals:
                lines.append(f"    * {s.signal_id} (+{s.score}) {s.title}")
        if len(flagged) > 60:
            lines.append(f"... plus {len(flagged)-60} more.")
        lines.append("")
    lines.append("Limitations")
    for note in report.limitations:
        lines.append(f"- {note}")
    return "\n".join(lines)
