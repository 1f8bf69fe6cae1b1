from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import List, Dict, Optional, Tuple, Union

# Block kinds
PLAIN_BLOCK = "plain_block"
TABLE_CELL_BLOCK = "table_cell_block"

# Signal categories
LANGUAGE_STATS = "language_stats"
STYLE_HABITS = "style_habits"
LOGIC_COHERENCE = "logic_coherence"
VERIFIABILITY = "verifiability"
STRUCTURE_FORMAT = "structure_format"
AI_PATTERN = "ai_pattern"
COGNITIVE_FEATURES = "cognitive_features"

CATEGORIES = (
    LANGUAGE_STATS,
    STYLE_HABITS,
    LOGIC_COHERENCE,
    VERIFIABILITY,
    STRUCTURE_FORMAT,
    AI_PATTERN,
    COGNITIVE_FEATURES,
)

# Risk tiers
LOW = "low"
MEDIUM = "medium"
HIGH = "high"

MEDIUM_THRESHOLD = 35
HIGH_THRESHOLD = 70


def risk_level(score: float) -> str:
    if score >= HIGH_THRESHOLD:
        return HIGH
    if score >= MEDIUM_THRESHOLD:
        return MEDIUM
    return LOW


def block_id(index: int) -> str:
    return f"p-{index}"


@dataclass(frozen=True)
class TextBlock:
    id: str            # "p-<index>"
    index: int         # ordinal across the whole document
    kind: str          # plain_block | table_cell_block
    text: str
    raw_markup: str = ""  # verbatim <w:p>...</w:p> fragment


@dataclass(frozen=True)
class MarkupChunk:
    """Markup between blocks, carried through untouched."""
    markup: str


Part = Union[MarkupChunk, TextBlock]


@dataclass(frozen=True)
class Signal:
    signal_id: str
    category: str
    title: str
    evidence: Tuple[str, ...]
    suggestion: str
    score: int


@dataclass(frozen=True)
class ParagraphReport:
    block_id: str
    index: int
    kind: str
    text: str
    risk_score: int
    risk_level: str
    signals: Tuple[Signal, ...] = ()


@dataclass(frozen=True)
class DocumentReport:
    overall_risk_score: int
    overall_risk_level: str
    paragraph_reports: Tuple[ParagraphReport, ...]
    limitations: Tuple[str, ...]
    generated_at: str

    def recompute_overall(self) -> "DocumentReport":
        # local import: scoring depends on this module
        from aigc_editor.analysis.scoring import aggregate_document
        score = aggregate_document(self.paragraph_reports)
        return replace(self, overall_risk_score=score, overall_risk_level=risk_level(score))

    def paragraph(self, bid: str) -> Optional[ParagraphReport]:
        for pr in self.paragraph_reports:
            if pr.block_id == bid:
                return pr
        return None


@dataclass
class Finding:
    rule_id: str
    severity: str  # info|warning|critical
    message: str
    block_id: Optional[str] = None
    category: str = "general"
    before: Optional[str] = None
    after: Optional[str] = None
    details: Dict[str, str] = field(default_factory=dict)


@dataclass
class StructureInventory:
    paragraph_count: int = 0
    table_count: int = 0
    headings: List[str] = field(default_factory=list)
