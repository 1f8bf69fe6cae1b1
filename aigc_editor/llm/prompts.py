from __future__ import annotations
from typing import Dict, List, Sequence
import json

from aigc_editor.ir import Signal

REWRITE_SYSTEM_PROMPT = """你是资深的学术写作修订编辑。你的任务是改写一段论文段落，使其读起来像研究者本人的写作，同时严格保持原意。

必须遵守：
1. 不捏造事实、数据或引用；不改动专有名词、术语和数值。
2. 原文中的引用标记（如 [1]、（作者，2020））必须保留，位置尽量不变。
3. 不增删核心论点。

改写时重点处理：
- 模板化连接词（首先/其次/此外/同时）堆叠，改用因果与指代自然衔接；
- 对称句式（一方面……另一方面、不仅……而且），改为侧重一方；
- 段首铺垫（随着……的发展、在……背景下）与段尾空洞总结（具有重要意义）；
- 抽象名词堆叠（层面、维度、路径、机制），换成具体所指；
- 句长过于均匀，混用短句与长句；
- 在不捏造数据的前提下，加入研究者的判断、转折或限定。

只输出一个 JSON 对象，不要输出其他文字：
{"revisedText": "改写后的段落", "changeRationale": ["修改说明"], "riskSignalsResolved": ["signalId"], "needHumanCheck": ["需要人工确认的点"], "humanFeatures": ["加入的写作特征"]}"""

JUDGE_SYSTEM_PROMPT = """你是严格的生成式文本检测复核专家。请根据段落原文和已触发的规则信号，独立判断该段落由生成式模型写成的可能性。

关注：节奏是否过于均匀、用词是否缺少个人风格、论证是否套话化、结构是否模板化、是否缺少具体数据与个人观察。

评分口径：90-100 几乎确定；70-89 高度疑似；50-69 有明显痕迹；35-49 有一些特征但不确定；0-34 更像人类写作。

只输出一个 JSON 对象，不要输出其他文字：
{"riskScore0to100": 数字, "riskLevel": "low|medium|high", "topReasons": ["原因"], "shouldRewrite": true}"""


def _signal_summary(signals: Sequence[Signal], with_suggestion: bool) -> List[Dict[str, object]]:
    out = []
    for s in signals:
        item: Dict[str, object] = {"signalId": s.signal_id, "title": s.title, "evidence": list(s.evidence)}
        if with_suggestion:
            item["suggestion"] = s.suggestion
        out.append(item)
    return out


def build_rewrite_messages(
    paragraph_text: str,
    signals: Sequence[Signal],
    context_before: str = "",
    context_after: str = "",
) -> List[Dict[str, str]]:
    payload = {
        "contextBefore": context_before,
        "paragraphText": paragraph_text,
        "contextAfter": context_after,
        "signals": _signal_summary(signals, with_suggestion=True),
    }
    return [{"role": "user", "content": json.dumps(payload, ensure_ascii=False, indent=2)}]


def build_judge_messages(paragraph_text: str, signals: Sequence[Signal]) -> List[Dict[str, str]]:
    payload = {
        "paragraphText": paragraph_text,
        "ruleSignals": _signal_summary(signals, with_suggestion=False),
    }
    return [{"role": "user", "content": json.dumps(payload, ensure_ascii=False, indent=2)}]
