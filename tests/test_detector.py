from dataclasses import replace

from aigc_editor.ir import TextBlock, block_id
from aigc_editor.rules.load_rules import Lexicon
from aigc_editor.analysis.detector import LIMITATIONS, DetectorConfig, detect


def _blocks(*texts):
    return [TextBlock(id=block_id(i), index=i, kind="plain_block", text=t) for i, t in enumerate(texts)]


def _ids(paragraph_report):
    return {s.signal_id for s in paragraph_report.signals}


def test_empty_document():
    report = detect([])
    assert report.overall_risk_score == 0
    assert report.overall_risk_level == "low"
    assert report.paragraph_reports == ()
    assert report.limitations == LIMITATIONS


def test_uniform_templated_paragraph():
    s1 = "综上所述" + "本" * 15 + "。"
    s2 = "该方法必然" + "有" * 14 + "。"
    s3 = "实验" * 9 + "数" + "。"
    assert len(s1) == len(s2) == len(s3) == 20

    report = detect(_blocks(s1 + s2 + s3))
    p = report.paragraph_reports[0]
    ids = _ids(p)
    assert "lang_uniform_sentence" in ids
    assert "style_template_phrases" in ids
    assert ids & {"veri_strong_claim_no_cite", "veri_claim_no_cite_weak"}
    assert p.risk_score >= 45
    assert p.risk_level in ("medium", "high")


def test_isomorphism_only_inside_window():
    report = detect(_blocks(
        "实验结果表明模型在测试集上表现稳定。",
        "我们收集了三个城市的数据。",
        "我们清洗了缺失的样本。",
        "我们训练了两个基线模型。",
        "结论部分讨论了局限。",
    ))
    flagged = [i for i, p in enumerate(report.paragraph_reports) if "ai_structural_isomorphism" in _ids(p)]
    assert flagged == [1, 2, 3]


def test_isomorphism_window_is_configurable():
    texts = ["我们甲。", "我们乙。", "其他丙。"]
    default = detect(_blocks(*texts))
    assert not any("ai_structural_isomorphism" in _ids(p) for p in default.paragraph_reports)
    narrow = detect(_blocks(*texts), DetectorConfig(isomorphism_window=2))
    assert [("ai_structural_isomorphism" in _ids(p)) for p in narrow.paragraph_reports] == [True, True, False]


def test_report_carries_block_identity():
    blocks = [TextBlock(id="p-7", index=7, kind="table_cell_block", text="单元格文字")]
    p = detect(blocks).paragraph_reports[0]
    assert (p.block_id, p.index, p.kind, p.text) == ("p-7", 7, "table_cell_block", "单元格文字")


def test_empty_lexicon_disables_lexicon_rules():
    text = "综上所述，首先这显然具有重要意义，其次该结论必然成立。"
    ids = _ids(detect(_blocks(text), DetectorConfig(lexicon=Lexicon())).paragraph_reports[0])
    assert not ids & {"style_template_phrases", "style_connectives_dense", "veri_strong_claim_no_cite",
                      "veri_claim_no_cite_weak", "ai_hollow_conclusion", "logic_pronoun_dense"}


def test_generated_at_and_overall_recompute():
    report = detect(_blocks("综上所述" + "本" * 15 + "。" + "该方法必然" + "有" * 14 + "。", "短句。"),
                    generated_at="2026-01-01T00:00:00+00:00")
    assert report.generated_at == "2026-01-01T00:00:00+00:00"
    assert report.recompute_overall() == report

    tampered = replace(report, overall_risk_score=99, overall_risk_level="high")
    assert tampered.recompute_overall().overall_risk_score == report.overall_risk_score
    assert report.paragraph("p-1").text == "短句。"
    assert report.paragraph("p-9") is None


def test_detect_is_deterministic():
    blocks = _blocks("随着人工智能的快速发展，该技术具有重要意义。", "我们在调研中发现，结论或许并不稳定[3]。")
    a = detect(blocks, generated_at="t")
    b = detect(blocks, generated_at="t")
    assert a == b


def test_single_long_connective_is_not_dense():
    report = detect(_blocks("与此同时，我们对样本进行了重新标注并复核了结果。"))
    assert "style_connectives_dense" not in _ids(report.paragraph_reports[0])
