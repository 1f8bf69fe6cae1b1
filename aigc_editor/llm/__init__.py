from __future__ import annotations

from aigc_editor.llm.client import ClaudeClient, LLMConfig
from aigc_editor.llm.rewriter import rewrite_paragraphs, replacements_from
from aigc_editor.llm.judge import judge_paragraphs, fuse_judgments, select_for_judge

__all__ = [
    "ClaudeClient",
    "LLMConfig",
    "rewrite_paragraphs",
    "replacements_from",
    "judge_paragraphs",
    "fuse_judgments",
    "select_for_judge",
]
