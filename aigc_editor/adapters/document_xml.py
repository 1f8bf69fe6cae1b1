"""
Block slicing for ``word/document.xml``.

The stream is never parsed into a tree. It is cut into an ordered list of
parts, each either an untouched markup chunk or a ``<w:p>`` block, so that
joining the parts reproduces the stream byte for byte and an edit to one
block cannot disturb anything else.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple
import re
import logging

from aigc_editor.ir import (
    TextBlock,
    MarkupChunk,
    Part,
    PLAIN_BLOCK,
    TABLE_CELL_BLOCK,
    block_id,
)
from aigc_editor.adapters.xml_text import encode_xml_text, decode_xml_text
from aigc_editor.errors import EncodingFailure

logger = logging.getLogger(__name__)

# <w:p/> and <w:p ...>...</w:p>; \b keeps <w:pPr>, <w:proofErr> etc. out
BLOCK_RE = re.compile(r"<w:p\b[^>]*?/>|<w:p\b[^>]*>.*?</w:p>", re.S)

# table cell open/close; group 1 is "/" on close, group 2 is "/" when self-closing
TABLE_CELL_RE = re.compile(r"<(/?)w:tc\b[^>]*?(/?)>")

# text leaf, open/close or self-closing; group 1 attributes, group 2 content
LEAF_RE = re.compile(r"<w:t\b([^>]*?)(?:/>|>(.*?)</w:t>)", re.S)

# leaves plus the tab and break markers, in document order.
# <w:tab/> must be attribute-less: tab stop definitions in <w:tabs> carry attributes.
TEXT_TOKEN_RE = re.compile(
    r"<w:t\b[^>]*?(?:/>|>(.*?)</w:t>)|<w:tab\s*/>|<w:br\b[^>]*/>|<w:cr\s*/>",
    re.S,
)

PPR_RE = re.compile(r"<w:pPr\b[^>]*?/>|<w:pPr\b[^>]*>.*?</w:pPr>", re.S)
BLOCK_OPEN_RE = re.compile(r"<w:p\b[^>]*>")
# either quote style is valid XML
XML_SPACE_RE = re.compile(r"""xml:space\s*=\s*(?:"[^"]*"|'[^']*')""")


@dataclass(frozen=True)
class ExtractionResult:
    document_xml: str
    parts: Tuple[Part, ...]
    blocks: Tuple[TextBlock, ...]

    def reassemble(self, replacements: Optional[Mapping[str, str]] = None) -> str:
        return reassemble(self.parts, replacements)


def extract_block_text(block_markup: str) -> str:
    """Plain text of one block: leaves de-escaped, tabs and breaks translated."""
    out: List[str] = []
    for m in TEXT_TOKEN_RE.finditer(block_markup):
        token = m.group(0)
        if token.startswith("<w:tab"):
            out.append("\t")
        elif token.startswith("<w:br") or token.startswith("<w:cr"):
            out.append("\n")
        else:
            out.append(decode_xml_text(m.group(1) or ""))
    # rstrip() also covers U+00A0
    return "".join(out).rstrip()


def _update_cell_depth(markup: str, depth: int) -> int:
    for m in TABLE_CELL_RE.finditer(markup):
        if m.group(1):
            depth = max(0, depth - 1)
        elif not m.group(2):
            depth += 1
    return depth


def split_document_xml(document_xml: str) -> ExtractionResult:
    parts: List[Part] = []
    blocks: List[TextBlock] = []
    last = 0
    depth = 0

    for m in BLOCK_RE.finditer(document_xml):
        before = document_xml[last:m.start()]
        if before:
            depth = _update_cell_depth(before, depth)
            parts.append(MarkupChunk(before))

        raw = m.group(0)
        idx = len(blocks)
        block = TextBlock(
            id=block_id(idx),
            index=idx,
            kind=TABLE_CELL_BLOCK if depth > 0 else PLAIN_BLOCK,
            text=extract_block_text(raw),
            raw_markup=raw,
        )
        parts.append(block)
        blocks.append(block)

        # a block can hold a nested table (text boxes); keep the depth honest
        depth = _update_cell_depth(raw, depth)
        last = m.end()

    tail = document_xml[last:]
    if tail:
        parts.append(MarkupChunk(tail))

    logger.debug(f"Split document.xml into {len(parts)} parts, {len(blocks)} blocks")
    return ExtractionResult(document_xml=document_xml, parts=tuple(parts), blocks=tuple(blocks))


def _encode_checked(text: str) -> str:
    encoded = encode_xml_text(text)
    if decode_xml_text(encoded) != text:
        raise EncodingFailure(text)
    return encoded


def _first_leaf_tag(attrs: str) -> str:
    attrs = attrs.rstrip()
    if XML_SPACE_RE.search(attrs):
        attrs = XML_SPACE_RE.sub('xml:space="preserve"', attrs)
    else:
        attrs = f'{attrs} xml:space="preserve"'
    return f"<w:t{attrs}>"


def replace_block_text(block_markup: str, new_text: str) -> str:
    """Put ``new_text`` into the block's text leaves, leaving all other markup as is.

    The first leaf receives the whole text, later leaves are emptied so their
    run properties survive. A block without leaves gets one minimal run right
    after its <w:pPr> (or its opening tag).
    """
    encoded = _encode_checked(new_text)
    leaves = list(LEAF_RE.finditer(block_markup))

    if not leaves:
        run = f'<w:r><w:t xml:space="preserve">{encoded}</w:t></w:r>'
        if block_markup.endswith("/>") and not block_markup.endswith("</w:p>"):
            # <w:p .../> -> <w:p ...>run</w:p>
            return f"{block_markup[:-2].rstrip()}>{run}</w:p>"
        ppr = PPR_RE.search(block_markup)
        anchor = ppr if ppr else BLOCK_OPEN_RE.match(block_markup)
        if anchor is None:
            return block_markup
        return block_markup[:anchor.end()] + run + block_markup[anchor.end():]

    out: List[str] = []
    last = 0
    for i, m in enumerate(leaves):
        out.append(block_markup[last:m.start()])
        attrs = m.group(1)
        if i == 0:
            out.append(f"{_first_leaf_tag(attrs)}{encoded}</w:t>")
        elif m.group(0).endswith("</w:t>"):
            out.append(f"<w:t{attrs}></w:t>")
        else:
            out.append(m.group(0))  # already empty
        last = m.end()
    out.append(block_markup[last:])
    return "".join(out)


def reassemble(parts: Tuple[Part, ...], replacements: Optional[Mapping[str, str]] = None) -> str:
    replacements = replacements or {}
    out: List[str] = []
    for part in parts:
        if isinstance(part, MarkupChunk):
            out.append(part.markup)
            continue
        new_text = replacements.get(part.id)
        if isinstance(new_text, str):
            out.append(replace_block_text(part.raw_markup, new_text))
        else:
            out.append(part.raw_markup)
    return "".join(out)


def unknown_block_ids(blocks: Tuple[TextBlock, ...], replacements: Mapping[str, str]) -> List[str]:
    known = {b.id for b in blocks}
    return [bid for bid in replacements if bid not in known]
