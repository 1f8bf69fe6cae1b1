from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Pattern, Tuple
import re
import yaml

DEFAULT_LEXICON_PATH = Path(__file__).parent / "lexicon.yml"


@dataclass(frozen=True)
class Lexicon:
    template_phrases: Tuple[str, ...] = ()
    connectives: Tuple[str, ...] = ()
    strong_claims: Tuple[str, ...] = ()
    abstract_nouns: Tuple[str, ...] = ()
    pronouns: Tuple[str, ...] = ()
    cognitive_markers: Tuple[str, ...] = ()
    isomorphism_connectives: Tuple[str, ...] = ()
    contrast_openers: Tuple[str, ...] = ()
    conclusion_openers: Tuple[str, ...] = ()
    ai_opening_patterns: Tuple[Pattern[str], ...] = ()
    symmetric_patterns: Tuple[Pattern[str], ...] = ()
    hollow_conclusion_patterns: Tuple[Pattern[str], ...] = ()
    enumerated_opening_patterns: Tuple[Pattern[str], ...] = ()


def load_rule_pack(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _words(pack: Dict[str, Any], key: str) -> Tuple[str, ...]:
    return tuple(str(w) for w in (pack.get(key) or []) if isinstance(w, str) and w)


def _patterns(pack: Dict[str, Any], key: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p) for p in _words(pack, key))


def lexicon_from_pack(pack: Dict[str, Any]) -> Lexicon:
    roles = pack.get("sentence_roles") or {}
    patterns = pack.get("patterns") or {}
    return Lexicon(
        template_phrases=_words(pack, "template_phrases"),
        connectives=_words(pack, "connectives"),
        strong_claims=_words(pack, "strong_claims"),
        abstract_nouns=_words(pack, "abstract_nouns"),
        pronouns=_words(pack, "pronouns"),
        cognitive_markers=_words(pack, "cognitive_markers"),
        isomorphism_connectives=_words(pack, "isomorphism_connectives"),
        contrast_openers=_words(roles, "contrast"),
        conclusion_openers=_words(roles, "conclusion"),
        ai_opening_patterns=_patterns(patterns, "ai_opening"),
        symmetric_patterns=_patterns(patterns, "symmetric"),
        hollow_conclusion_patterns=_patterns(patterns, "hollow_conclusion"),
        enumerated_opening_patterns=_patterns(patterns, "enumerated_opening"),
    )


def load_lexicon(path: Optional[str] = None) -> Lexicon:
    return lexicon_from_pack(load_rule_pack(path or str(DEFAULT_LEXICON_PATH)))
