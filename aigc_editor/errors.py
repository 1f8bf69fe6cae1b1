from __future__ import annotations
from typing import Optional


class AigcEditorError(Exception):
    """Base class for errors surfaced to callers of extract/patch."""


class MalformedContainer(AigcEditorError):
    """The input is not a usable .docx package.

    ``reason`` tells a caller whether the bytes are not a zip archive at all
    ("not_a_container"), a zip without the main document stream
    ("missing_stream"), or a stream that cannot be decoded ("undecodable_stream").
    """

    def __init__(self, message: str, *, stream: Optional[str] = None, reason: str = "missing_stream"):
        super().__init__(message)
        self.stream = stream
        self.reason = reason


class EncodingFailure(AigcEditorError):
    """Escaping a replacement text did not round-trip."""

    def __init__(self, text: str):
        super().__init__(f"XML escaping is not reversible for text starting {text[:40]!r}")
        self.text = text
