import json
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace

import pytest
from docx import Document

from aigc_editor.adapters.docx_adapter import extract_file
from aigc_editor.cli import main
from aigc_editor.llm.prompts import JUDGE_SYSTEM_PROMPT
from aigc_editor.pipeline import run_pipeline

RISKY = "综上所述" + "本" * 15 + "。" + "该方法必然" + "有" * 14 + "。" + "实验" * 9 + "数。"
CITED = "已有研究[1]表明该模型的准确率为95.2%，我们在调研中发现结论或许并不稳定。"


def _thesis(tmp_path) -> str:
    doc = Document()
    doc.add_heading("第二章 方法", level=1)
    doc.add_paragraph(RISKY)
    doc.add_paragraph(CITED)
    t = doc.add_table(rows=1, cols=1)
    t.cell(0, 0).text = "表格内容"
    path = tmp_path / "thesis.docx"
    doc.save(str(path))
    return str(path)


def _id_of(docx_path, text):
    return next(b.id for b in extract_file(docx_path).blocks if b.text == text)


def _fake_llm(respond):
    return SimpleNamespace(messages=SimpleNamespace(
        create=lambda **kw: SimpleNamespace(content=[SimpleNamespace(text=respond(kw))])
    ))


def test_detect_mode_writes_report_bundle(tmp_path):
    src = _thesis(tmp_path)
    payload = run_pipeline(input_docx=src, out_dir=str(tmp_path / "out"), mode="detect")

    bundle = Path(payload["bundle_dir"])
    assert bundle.name.startswith("thesis_")
    assert (bundle / "thesis.original.docx").read_bytes() == Path(src).read_bytes()
    report = json.loads((bundle / "thesis.report.json").read_text(encoding="utf-8"))
    assert report["overall_risk_level"] in ("low", "medium", "high")
    assert any(p["text"] == RISKY for p in report["paragraph_reports"])
    assert (bundle / "thesis.report.txt").exists()
    assert not (bundle / "thesis.revised.docx").exists()


def test_patch_mode_applies_replacements_and_verifies(tmp_path):
    src = _thesis(tmp_path)
    risky_id = _id_of(src, RISKY)
    cited_id = _id_of(src, CITED)
    repl = tmp_path / "repl.json"
    repl.write_text(json.dumps({
        risky_id: "我们用三组实验检验该方法，结果并不完全一致。",
        cited_id: "已有研究表明该模型准确率较高。",
        "p-999": "忽略",
    }, ensure_ascii=False), encoding="utf-8")

    payload = run_pipeline(input_docx=src, out_dir=str(tmp_path / "out"), mode="patch", replacements_path=str(repl))

    bundle = Path(payload["bundle_dir"])
    revised = bundle / "thesis.revised.docx"
    texts = [p.text for p in Document(BytesIO(revised.read_bytes())).paragraphs]
    assert "我们用三组实验检验该方法，结果并不完全一致。" in texts
    assert "第二章 方法" in texts

    assert payload["stats"]["replacements_requested"] == 3
    assert payload["stats"]["replacements_applied"] == 2
    rules = {f["rule_id"] for f in payload["findings"]}
    assert "inv.citation_dropped" in rules
    assert not any(r.startswith("struct.") for r in rules)

    after = json.loads((bundle / "thesis.report_after.json").read_text(encoding="utf-8"))
    assert any(p["text"] == "我们用三组实验检验该方法，结果并不完全一致。" for p in after["paragraph_reports"])
    assert json.loads((bundle / "thesis.changelog.json").read_text(encoding="utf-8"))["mode"] == "patch"


def test_rewrite_mode_with_judge(tmp_path):
    src = _thesis(tmp_path)

    def respond(kwargs):
        if kwargs["system"] == JUDGE_SYSTEM_PROMPT:
            return '{"riskScore0to100": 20, "riskLevel": "low", "topReasons": ["有具体数据"], "shouldRewrite": false}'
        payload = json.loads(kwargs["messages"][0]["content"])
        return json.dumps({"revisedText": payload["paragraphText"].replace("综上所述", "总的看来")}, ensure_ascii=False)

    payload = run_pipeline(
        input_docx=src, out_dir=str(tmp_path / "out"), mode="rewrite",
        use_judge=True, min_score=0, llm_client=_fake_llm(respond),
    )
    assert payload["judge"]["judged"] >= 1
    assert payload["stats"]["replacements_applied"] >= 1
    revised = Path(payload["artifacts"]["revised_docx"])
    texts = [p.text for p in Document(str(revised)).paragraphs]
    assert RISKY.replace("综上所述", "总的看来") in texts
    assert all(r["success"] for r in payload["rewrites"])


def test_pipeline_argument_checks(tmp_path):
    src = _thesis(tmp_path)
    with pytest.raises(ValueError):
        run_pipeline(input_docx=src, out_dir=str(tmp_path), mode="patch")
    with pytest.raises(ValueError):
        run_pipeline(input_docx=src, out_dir=str(tmp_path), mode="rewrite")
    with pytest.raises(ValueError):
        run_pipeline(input_docx=src, out_dir=str(tmp_path), mode="redline")


def test_cli_detect_summary(tmp_path, capsys):
    src = _thesis(tmp_path)
    assert main([src, "--out", str(tmp_path / "out"), "--log-level", "WARNING"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["mode"] == "detect"
    assert summary["blocks"] >= 4


def test_cli_malformed_input_exit_code(tmp_path, capsys):
    bad = tmp_path / "broken.docx"
    bad.write_bytes(b"this is not a docx")
    assert main([str(bad), "--out", str(tmp_path / "out")]) == 2
    assert "aigc-edit: error" in capsys.readouterr().err


def test_cli_bad_replacements_file_exit_code(tmp_path, capsys):
    src = _thesis(tmp_path)
    bad = tmp_path / "replacements.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    assert main([src, "--out", str(tmp_path / "out"), "--mode", "patch", "--replacements", str(bad)]) == 2
    assert "aigc-edit: error" in capsys.readouterr().err

    bad.write_text("{not json", encoding="utf-8")
    assert main([src, "--out", str(tmp_path / "out"), "--mode", "patch", "--replacements", str(bad)]) == 2
    assert "aigc-edit: error" in capsys.readouterr().err


def test_cli_missing_input_exit_code(tmp_path, capsys):
    assert main([str(tmp_path / "missing.docx"), "--out", str(tmp_path / "out")]) == 2
    assert "aigc-edit: error" in capsys.readouterr().err
