from __future__ import annotations
import re

_ENCODE = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}
_DECODE = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
}

_ENCODE_RE = re.compile(r"[&<>\"']")
_ENTITY_RE = re.compile(r"&(?:(amp|lt|gt|quot|apos)|#(\d+)|#x([0-9A-Fa-f]+));")


def encode_xml_text(text: str) -> str:
    """Escape the five reserved XML characters for use inside <w:t>."""
    return _ENCODE_RE.sub(lambda m: _ENCODE[m.group(0)], text)


def _decode_entity(m: "re.Match[str]") -> str:
    if m.group(1):
        return _DECODE[m.group(1)]
    code = int(m.group(2)) if m.group(2) else int(m.group(3), 16)
    if 0xD800 <= code <= 0xDFFF:
        # lone surrogates cannot be written back as UTF-8
        return m.group(0)
    try:
        return chr(code)
    except (ValueError, OverflowError):
        return m.group(0)


def decode_xml_text(text: str) -> str:
    """Resolve named and numeric entities in a single left-to-right pass."""
    return _ENTITY_RE.sub(_decode_entity, text)
