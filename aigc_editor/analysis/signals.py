"""
Signal rules.

Each rule is a pure predicate over a ParagraphFeatures record (two of them
also read the cross-paragraph RuleContext) that returns at most one Signal.
Rules never raise: short or empty text simply fails their guards.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from aigc_editor.ir import (
    Signal,
    LANGUAGE_STATS,
    STYLE_HABITS,
    LOGIC_COHERENCE,
    VERIFIABILITY,
    STRUCTURE_FORMAT,
    AI_PATTERN,
    COGNITIVE_FEATURES,
)
from aigc_editor.analysis.features import ParagraphFeatures


@dataclass(frozen=True)
class RuleContext:
    similarity_prev: float = 1.0  # 1.0 when there is no neighbor
    similarity_next: float = 1.0
    isomorphic: bool = False

    @property
    def min_neighbor_similarity(self) -> float:
        return min(self.similarity_prev, self.similarity_next)


Rule = Callable[[ParagraphFeatures, RuleContext], Optional[Signal]]


def _hits(hits: Sequence[str]) -> str:
    return "、".join(hits) or "（未列出）"


def _pct(x: float) -> str:
    return f"{x * 100:.1f}%"


# ---- language statistics ----

def rule_uniform_sentence(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.sentence_count >= 2 and f.sentence_len_variance < 35 and f.char_count >= 60:
        return Signal(
            signal_id="lang_uniform_sentence",
            category=LANGUAGE_STATS,
            title="句子长度过于均匀（行文节奏偏平）",
            evidence=(f"句子数={f.sentence_count}", f"句长方差≈{f.sentence_len_variance:.1f}"),
            suggestion="拆分或合并部分句子，在关键处补充限定条件、例子或反例，让句长自然起伏。",
            score=15,
        )
    return None


def rule_ngram_repeat(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.bigram_repeat_ratio > 0.06 or f.trigram_repeat_ratio > 0.03:
        return Signal(
            signal_id="lang_ngram_repeat",
            category=LANGUAGE_STATS,
            title="局部措辞或句式重复偏多",
            evidence=(f"二元组重复≈{_pct(f.bigram_repeat_ratio)}", f"三元组重复≈{_pct(f.trigram_repeat_ratio)}"),
            suggestion="删去重复表达，把并列句改写成“观点→理由→证据”的推进关系。",
            score=16,
        )
    return None


def rule_low_diversity(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.token_count >= 15 and f.token_unique_ratio < 0.55:
        return Signal(
            signal_id="lang_low_diversity",
            category=LANGUAGE_STATS,
            title="用词多样性偏低",
            evidence=(f"词汇多样性≈{_pct(f.token_unique_ratio)}",),
            suggestion="少做抽象复述，换成可核验的信息：时间、对象、方法、边界条件。",
            score=12,
        )
    return None


# ---- style habits ----

def rule_template_phrases(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.template_phrase_count >= 1:
        return Signal(
            signal_id="style_template_phrases",
            category=STYLE_HABITS,
            title="套话或模板句偏多",
            evidence=(f"命中模板短语：{_hits(f.template_phrase_hits)}", f"共{f.template_phrase_count}处"),
            suggestion="删掉不承载信息的句子，把总结性套话换成具体结论、依据和适用范围。",
            score=18,
        )
    return None


def rule_connectives_dense(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    per_100 = (f.connective_count / f.char_count) * 100 if f.char_count else 0.0
    if f.connective_count >= 2 and per_100 > 0.8:
        return Signal(
            signal_id="style_connectives_dense",
            category=STYLE_HABITS,
            title="连接词密度偏高（行文过度工整）",
            evidence=(f"连接词：{_hits(f.connective_hits)}", f"每百字≈{per_100:.1f}个"),
            suggestion="减少显式连接词，每句只承担一个信息点，用指代和因果自然衔接。",
            score=14,
        )
    return None


def rule_abstract_dense(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.abstract_noun_count >= 2 and f.char_count >= 40:
        return Signal(
            signal_id="style_abstract_dense",
            category=STYLE_HABITS,
            title="抽象名词堆叠（信息增量不足）",
            evidence=(f"命中：{_hits(f.abstract_noun_hits)}", f"共{f.abstract_noun_count}处"),
            suggestion="给抽象词补上具体所指：是什么、如何衡量、用哪个例子说明。",
            score=12,
        )
    return None


# ---- logical coherence ----

def rule_pronoun_dense(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.pronoun_count >= 3 and f.char_count >= 40:
        return Signal(
            signal_id="logic_pronoun_dense",
            category=LOGIC_COHERENCE,
            title="指代词偏多（“这/其/该”所指不清）",
            evidence=(f"命中：{_hits(f.pronoun_hits)}", f"共{f.pronoun_count}处"),
            suggestion="把关键指代替换成明确实体：研究对象、变量或结论名称。",
            score=10,
        )
    return None


def rule_topic_shift(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.char_count >= 50 and ctx.min_neighbor_similarity < 0.08:
        return Signal(
            signal_id="logic_topic_shift",
            category=LOGIC_COHERENCE,
            title="与相邻段落衔接偏弱（疑似拼接或跳跃）",
            evidence=(f"与上一段相似度≈{ctx.similarity_prev:.2f}", f"与下一段相似度≈{ctx.similarity_next:.2f}"),
            suggestion="段首补一句承接上一段结论的话，段尾交代如何引出下一段。",
            score=12,
        )
    return None


# ---- verifiability ----

def rule_unsupported_claims(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    claim_ratio = f.strong_claim_count / f.sentence_count if f.sentence_count else 0.0
    if claim_ratio > 0.3 and f.citation_marker_count <= 1:
        return Signal(
            signal_id="veri_strong_claim_no_cite",
            category=VERIFIABILITY,
            title="强断言较多但缺少可核验支撑",
            evidence=(
                f"强断言：{_hits(f.strong_claim_hits)}",
                f"断言占比≈{claim_ratio * 100:.0f}%",
                f"引用标记仅{f.citation_marker_count}处",
            ),
            suggestion="在结论句后补上证据来源（文献、数据或实验）与适用范围；无法支撑时弱化措辞。",
            score=18,
        )
    if f.strong_claim_count >= 1 and not f.has_citation_marker:
        return Signal(
            signal_id="veri_claim_no_cite_weak",
            category=VERIFIABILITY,
            title="存在断言但缺少引用支撑",
            evidence=(f"强断言：{_hits(f.strong_claim_hits)}", "引用标记：无"),
            suggestion="为关键结论补上文献来源或数据依据。",
            score=12,
        )
    return None


def rule_citation_imbalance(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.strong_claim_count >= 3 and f.citation_marker_count <= 1:
        return Signal(
            signal_id="veri_cite_imbalance",
            category=VERIFIABILITY,
            title="引用与断言数量严重失衡",
            evidence=(f"强断言{f.strong_claim_count}处，引用仅{f.citation_marker_count}处",),
            suggestion="每个核心断言至少对应一个可核验来源。",
            score=16,
        )
    return None


# ---- structure format ----

def rule_list_like(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.enumerated_opening_match and f.connective_count >= 2:
        return Signal(
            signal_id="struct_list_like",
            category=STRUCTURE_FORMAT,
            title="段落呈现罗列式模板结构",
            evidence=(f"段首：{f.opening_snippet}", f"连接词{f.connective_count}处"),
            suggestion="先给出结论，再按重要性展开一到两个关键理由，不必逐条罗列。",
            score=12,
        )
    return None


# ---- AI patterns ----

def rule_ai_opening(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.ai_opening_match:
        return Signal(
            signal_id="ai_opening_pattern",
            category=AI_PATTERN,
            title="段首使用了典型的生成式开头",
            evidence=(f"匹配：“{f.ai_opening_hit}”",),
            suggestion="删去段首铺垫，直接从本段要论证的核心观点写起。",
            score=14,
        )
    return None


def rule_symmetric(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.symmetric_match:
        return Signal(
            signal_id="ai_symmetric_structure",
            category=AI_PATTERN,
            title="使用了工整的对称句式",
            evidence=(f"匹配：“{f.symmetric_hit}”",),
            suggestion="打破对称，侧重论述更重要的一方，或用因果链替代并列。",
            score=10,
        )
    return None


def rule_hollow_conclusion(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.hollow_conclusion_match:
        return Signal(
            signal_id="ai_hollow_conclusion",
            category=AI_PATTERN,
            title="段尾是没有信息增量的空洞总结",
            evidence=(f"匹配：“{f.hollow_conclusion_hit}”",),
            suggestion="删去空洞总结，或换成本段的具体结论加下一步推论。",
            score=12,
        )
    return None


def rule_long_homogeneous(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.char_count >= 200 and f.sentence_len_variance < 40 and f.token_unique_ratio < 0.50:
        return Signal(
            signal_id="ai_long_homogeneous",
            category=AI_PATTERN,
            title="长段落行文过于均质",
            evidence=(
                f"段落{f.char_count}字",
                f"句长方差≈{f.sentence_len_variance:.1f}",
                f"词汇多样性≈{_pct(f.token_unique_ratio)}",
            ),
            suggestion="在长段落中穿插短句、设问或具体例子，打破均匀的行文。",
            score=10,
        )
    return None


def rule_structural_isomorphism(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if ctx.isomorphic:
        return Signal(
            signal_id="ai_structural_isomorphism",
            category=AI_PATTERN,
            title="与相邻段落句式同构（结构重复）",
            evidence=("连续多段使用相同的开头或连接词序列",),
            suggestion="变换段落的开头方式与论证结构，避免每段都套用同一模板。",
            score=12,
        )
    return None


# ---- cognitive features ----

def rule_low_cognitive_density(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.char_count >= 80 and f.cognitive_marker_density < 1.5:
        return Signal(
            signal_id="cog_low_density",
            category=COGNITIVE_FEATURES,
            title="缺少研究者的思维痕迹",
            evidence=(
                f"认知标记{f.cognitive_marker_count}处",
                f"密度≈{f.cognitive_marker_density:.1f}/千字",
            ),
            suggestion="加入研究过程中的判断与转折，如“笔者在调研中注意到”“这一结果与预期不同”。",
            score=14,
        )
    return None


def rule_low_entropy(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.sentence_count >= 3 and f.sentence_len_entropy < 2.2:
        return Signal(
            signal_id="cog_low_entropy",
            category=COGNITIVE_FEATURES,
            title="句长分布熵偏低（节奏机械）",
            evidence=(f"句长熵≈{f.sentence_len_entropy:.2f}", f"共{f.sentence_count}个句子"),
            suggestion="混用短句与长句：长句之后接一句简短判断，短句之后展开论述。",
            score=12,
        )
    return None


def rule_connective_head_only(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.connective_count >= 2 and f.connective_at_head_ratio >= 0.9:
        return Signal(
            signal_id="cog_connective_head_only",
            category=COGNITIVE_FEATURES,
            title="连接词几乎都位于句首",
            evidence=(f"{f.connective_count}个连接词中{round(f.connective_at_head_ratio * 100)}%在句首",),
            suggestion="把部分连接词移到句中或删去，用因果与指代衔接。",
            score=10,
        )
    return None


def rule_flat_structure(f: ParagraphFeatures, ctx: RuleContext) -> Optional[Signal]:
    if f.sentence_count >= 4 and f.internal_structure_shifts == 0:
        return Signal(
            signal_id="cog_flat_structure",
            category=COGNITIVE_FEATURES,
            title="段内论证结构单一",
            evidence=(f"{f.sentence_count}个句子功能相同，未见转折或总结",),
            suggestion="加入转折句或限定句，如“但需要注意的是”“这一结论也有局限”。",
            score=10,
        )
    return None


RULES: Tuple[Tuple[str, Rule], ...] = (
    ("lang_uniform_sentence", rule_uniform_sentence),
    ("lang_ngram_repeat", rule_ngram_repeat),
    ("lang_low_diversity", rule_low_diversity),
    ("style_template_phrases", rule_template_phrases),
    ("style_connectives_dense", rule_connectives_dense),
    ("style_abstract_dense", rule_abstract_dense),
    ("logic_pronoun_dense", rule_pronoun_dense),
    ("logic_topic_shift", rule_topic_shift),
    ("veri_unsupported_claims", rule_unsupported_claims),
    ("veri_cite_imbalance", rule_citation_imbalance),
    ("struct_list_like", rule_list_like),
    ("ai_opening_pattern", rule_ai_opening),
    ("ai_symmetric_structure", rule_symmetric),
    ("ai_hollow_conclusion", rule_hollow_conclusion),
    ("ai_long_homogeneous", rule_long_homogeneous),
    ("cog_low_density", rule_low_cognitive_density),
    ("cog_low_entropy", rule_low_entropy),
    ("cog_connective_head_only", rule_connective_head_only),
    ("cog_flat_structure", rule_flat_structure),
    ("ai_structural_isomorphism", rule_structural_isomorphism),
)


def evaluate_rules(
    features: ParagraphFeatures,
    ctx: Optional[RuleContext] = None,
    rules: Sequence[Tuple[str, Rule]] = RULES,
) -> List[Signal]:
    ctx = ctx or RuleContext()
    signals: List[Signal] = []
    for _, rule in rules:
        sig = rule(features, ctx)
        if sig is not None:
            signals.append(sig)
    return signals
