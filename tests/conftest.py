from __future__ import annotations
from io import BytesIO
from types import SimpleNamespace
import zipfile

import pytest

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    '</Types>'
)


def build_docx(body: str, extra_entries=None) -> bytes:
    xml = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<w:document xmlns:w="{W_NS}"><w:body>{body}</w:body></w:document>'
    )
    buf = BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as z:
        z.writestr("[Content_Types].xml", CONTENT_TYPES)
        z.writestr("word/document.xml", xml)
        for name, data in (extra_entries or {}).items():
            z.writestr(name, data)
    return buf.getvalue()


def para(text: str, ppr: str = "") -> str:
    return f"<w:p>{ppr}<w:r><w:t>{text}</w:t></w:r></w:p>"


def cell(*paras: str) -> str:
    return "<w:tc><w:tcPr><w:tcW w:w=\"2000\" w:type=\"dxa\"/></w:tcPr>" + "".join(paras) + "</w:tc>"


def table(*cells: str) -> str:
    return "<w:tbl><w:tr>" + "".join(cells) + "</w:tr></w:tbl>"


@pytest.fixture
def make_docx():
    return build_docx


class FakeMessages:
    """Stands in for anthropic.Anthropic().messages; ``respond`` maps call kwargs to reply text."""

    def __init__(self, respond):
        self.respond = respond
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(content=[SimpleNamespace(text=self.respond(kwargs))])


@pytest.fixture
def fake_claude():
    from aigc_editor.llm.client import ClaudeClient, LLMConfig

    def _make(respond, max_concurrent=2):
        messages = FakeMessages(respond)
        client = ClaudeClient(
            LLMConfig(api_key="test-key", max_concurrent=max_concurrent, min_request_interval=0),
            client=SimpleNamespace(messages=messages),
        )
        return client, messages

    return _make
