import re

import pytest

from aigc_editor.rules.load_rules import Lexicon, lexicon_from_pack, load_lexicon
from aigc_editor.analysis.features import count_citations, count_role_shifts, extract_features
from aigc_editor.analysis.text_utils import (
    count_occurrences,
    entropy,
    jaccard,
    ngram_repeat_ratio,
    round_half_up,
    split_sentences,
    variance,
)
from aigc_editor.analysis.cross_paragraph import isomorphic_positions, neighbor_similarities


@pytest.fixture(scope="module")
def lexicon():
    return load_lexicon()


def test_default_lexicon_loads(lexicon):
    assert "综上所述" in lexicon.template_phrases
    assert "首先" in lexicon.connectives
    assert lexicon.ai_opening_patterns and lexicon.hollow_conclusion_patterns


def test_missing_lexicon_keys_load_empty():
    lex = lexicon_from_pack({"connectives": ["然而"]})
    assert lex.connectives == ("然而",)
    assert lex.template_phrases == ()
    assert lex.symmetric_patterns == ()


def test_invalid_pattern_fails_at_load():
    with pytest.raises(re.error):
        lexicon_from_pack({"patterns": {"ai_opening": ["("]}})


def test_custom_lexicon_file(tmp_path):
    path = tmp_path / "lex.yml"
    path.write_text("template_phrases:\n  - 自定义套话\n", encoding="utf-8")
    lex = load_lexicon(str(path))
    assert lex.template_phrases == ("自定义套话",)
    f = extract_features("这里有一句自定义套话。", lex)
    assert f.template_phrase_count == 1


def test_sentence_split_keeps_punctuation():
    assert split_sentences("第一句。第二句！第三句？第四句；") == ["第一句。", "第二句！", "第三句？", "第四句；"]
    assert split_sentences("  ") == []
    assert split_sentences("没有句末标点") == ["没有句末标点"]


def test_statistics_helpers():
    assert variance([20, 20, 20]) == 0.0
    assert variance([10]) == 0.0
    assert entropy([1, 1, 1, 1]) == pytest.approx(2.0)
    assert entropy([]) == 0.0
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2
    assert jaccard(set(), {"a"}) == 0.0
    assert jaccard({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)


def test_ngram_repeat_ratio():
    assert ngram_repeat_ratio(["a", "b"], 2) == 0.0
    assert ngram_repeat_ratio(["a", "b", "a", "b"], 2) == pytest.approx(1 / 3)
    assert ngram_repeat_ratio(["a", "b", "c", "d", "e"], 2) == 0.0


def test_citation_counting():
    text = "已有研究[1]指出（张三，2020），另见(Smith, 2019)与[12]。"
    assert count_citations(text) == 4
    assert count_citations("没有引用。") == 0


def test_role_shifts(lexicon):
    sentences = split_sentences("模型效果较好。但是成本较高。因此需要权衡。")
    assert count_role_shifts(sentences, lexicon) == 2
    assert count_role_shifts(split_sentences("甲。乙。丙。"), lexicon) == 0


def test_opening_citation_and_hollow_features(lexicon):
    f = extract_features("随着人工智能的快速发展，该技术具有重要意义[1]。", lexicon)
    assert f.ai_opening_match
    assert f.ai_opening_hit.startswith("随着人工智能")
    assert f.hollow_conclusion_match
    assert "具有重要意义" in f.template_phrase_hits
    assert f.citation_marker_count == 1 and f.has_citation_marker
    assert f.sentence_count == 1
    assert f.number_token_count == 1


def test_opening_only_matched_at_head(lexicon):
    text = "本章先交代数据来源。" * 5 + "随着人工智能的快速发展，问题变得复杂。"
    assert not extract_features(text, lexicon).ai_opening_match


def test_connectives_at_sentence_head(lexicon):
    f = extract_features("首先，我们收集数据。其次，我们清洗数据。", lexicon)
    assert f.connective_count == 2
    assert f.connective_at_head_ratio == 1.0
    assert f.enumerated_opening_match
    assert f.opening_snippet == "首先，我们收集数据。其次"


def test_symmetric_and_uniform_sentences(lexicon):
    text = "一方面提高了效率，另一方面降低了成本。"
    f = extract_features(text, lexicon)
    assert f.symmetric_match
    assert f.symmetric_hit.startswith("一方面")

    uniform = extract_features("甲" * 19 + "。" + "乙" * 19 + "。" + "丙" * 19 + "。", lexicon)
    assert uniform.sentence_count == 3
    assert uniform.sentence_len_mean == 20
    assert uniform.sentence_len_variance == 0.0
    assert uniform.sentence_len_entropy == pytest.approx(1.585, abs=0.001)


def test_cognitive_density(lexicon):
    text = "笔者在调研中发现，这一结论或许只在小样本下成立。"
    f = extract_features(text, lexicon)
    assert f.cognitive_marker_count >= 3
    assert f.cognitive_marker_density == pytest.approx(f.cognitive_marker_count / len(text) * 1000)


def test_features_are_deterministic(lexicon):
    text = "综上所述，本文提出的方法显然优于基线[2]。然而，数据规模有限。"
    assert extract_features(text, lexicon) == extract_features(text, lexicon)


def test_empty_text_features(lexicon):
    f = extract_features("", lexicon)
    assert f.char_count == 0 and f.sentence_count == 0 and f.token_count == 0
    assert f.token_unique_ratio == 0.0


def test_empty_lexicon_features():
    f = extract_features("首先，综上所述，这显然很重要。", Lexicon())
    assert f.connective_count == 0 and f.template_phrase_count == 0
    assert not f.ai_opening_match


def test_neighbor_similarities():
    assert neighbor_similarities([]) == []
    assert neighbor_similarities(["唯一的段落"]) == [(1.0, 1.0)]
    sims = neighbor_similarities(["深度学习模型", "深度学习模型", "天气晴朗"])
    assert sims[0] == (1.0, 1.0)
    assert sims[1][0] == 1.0 and sims[1][1] < 0.5
    assert sims[2][1] == 1.0


def test_isomorphism_by_prefix():
    texts = ["实验结果稳定。", "我们收集了数据。", "我们清洗了样本。", "我们训练了模型。", "结论见下。"]
    assert isomorphic_positions(texts, ()) == {1, 2, 3}
    assert isomorphic_positions(texts, (), window=4) == set()
    assert isomorphic_positions(texts[:2], ()) == set()


def test_isomorphism_by_connectives():
    texts = ["首先甲，此外乙。", "其次丙，同时丁。", "最后戊，另外己。"]
    assert isomorphic_positions(texts, ("首先", "其次", "最后", "此外", "同时", "另外")) == {0, 1, 2}
    assert isomorphic_positions(texts, ("首先", "其次", "最后"), min_connectives=2) == set()


def test_longer_lexicon_entries_win_overlaps(lexicon):
    assert count_occurrences("另一方面", ["一方面", "另一方面"]) == (1, ["另一方面"])
    assert count_occurrences("同时同时", ["同时", ""]) == (2, ["同时"])

    f = extract_features("与此同时，我们对样本进行了重新标注并复核了结果。", lexicon)
    assert f.connective_count == 1
    assert f.connective_hits == ("与此同时",)
    assert extract_features("它们很好。", lexicon).pronoun_count == 1


def test_connectives_do_not_count_as_pronouns(lexicon):
    f = extract_features("其次，样本量较小。", lexicon)
    assert f.connective_count == 1
    assert f.pronoun_count == 0
    assert extract_features("其结果较好。", lexicon).pronoun_count == 1
