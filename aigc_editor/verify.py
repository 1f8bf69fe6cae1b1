from __future__ import annotations
from typing import Dict, List, Mapping
import logging
import re

from aigc_editor.ir import Finding, StructureInventory

logger = logging.getLogger(__name__)


def _extract_numbers(s: str) -> List[str]:
    return re.findall(r"\d+(?:\.\d+)?%?", s)


def _extract_citations(s: str) -> List[str]:
    return re.findall(r"\[\d+(?:[,，\-–]\d+)*\]|（[^（）]{0,20}\d{4}[^（）]{0,20}）|\([A-Z][A-Za-z]+,\s*\d{4}\)", s)


def verify_rewrites(originals: Mapping[str, str], replacements: Mapping[str, str]) -> List[Finding]:
    """Check replacement texts against the paragraphs they replace.

    Citation markers and numbers present in the original must survive; an
    empty replacement is always flagged.
    """
    findings: List[Finding] = []
    for bid, after in replacements.items():
        before = originals.get(bid)
        if before is None:
            continue

        if not after.strip() and before.strip():
            findings.append(Finding(
                rule_id="inv.empty_replacement",
                severity="critical",
                category="invariant",
                message="Replacement text is empty.",
                block_id=bid,
                before=before, after=after,
            ))
            continue

        missing_cites = [c for c in _extract_citations(before) if c not in after]
        if missing_cites:
            logger.warning(f"Rewrite of {bid} dropped {len(missing_cites)} citation marker(s)")
            findings.append(Finding(
                rule_id="inv.citation_dropped",
                severity="critical",
                category="invariant",
                message="Citation markers removed during rewrite.",
                block_id=bid,
                before=before, after=after,
                details={"missing": ", ".join(missing_cites)},
            ))

        after_numbers = set(_extract_numbers(after))
        missing_numbers = [n for n in _extract_numbers(before) if n not in after_numbers]
        if missing_numbers:
            findings.append(Finding(
                rule_id="inv.number_dropped",
                severity="warning",
                category="invariant",
                message="Numbers removed or changed during rewrite.",
                block_id=bid,
                before=before, after=after,
                details={"missing": ", ".join(missing_numbers)},
            ))

    return findings


def verify_structure(pre: StructureInventory, post: StructureInventory) -> List[Finding]:
    findings: List[Finding] = []
    if post.table_count < pre.table_count:
        findings.append(Finding(
            rule_id="struct.table_count_decrease",
            severity="critical",
            category="structure",
            message="Table count decreased after patching.",
            details={"before": str(pre.table_count), "after": str(post.table_count)},
        ))

    # patching rewrites text only; any change in block count is a defect
    if post.paragraph_count != pre.paragraph_count:
        findings.append(Finding(
            rule_id="struct.paragraph_count_change",
            severity="critical",
            category="structure",
            message="Paragraph count changed after patching.",
            details={"before": str(pre.paragraph_count), "after": str(post.paragraph_count)},
        ))

    if len(post.headings) < len(pre.headings):
        findings.append(Finding(
            rule_id="struct.heading_count_decrease",
            severity="warning",
            category="structure",
            message="Heading count decreased after patching.",
            details={"before": str(len(pre.headings)), "after": str(len(post.headings))},
        ))

    return findings


def finding_to_dict(f: Finding) -> Dict[str, object]:
    return {
        "rule_id": f.rule_id, "severity": f.severity, "category": f.category, "message": f.message,
        "block_id": f.block_id, "before": f.before, "after": f.after, "details": f.details,
    }
