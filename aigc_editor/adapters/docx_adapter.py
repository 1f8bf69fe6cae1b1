from __future__ import annotations
from typing import Mapping
from io import BytesIO
from pathlib import Path
import logging
import zipfile

from docx import Document

from aigc_editor.ir import StructureInventory, TABLE_CELL_BLOCK
from aigc_editor.errors import MalformedContainer
from aigc_editor.adapters.document_xml import (
    ExtractionResult,
    split_document_xml,
    unknown_block_ids,
)

logger = logging.getLogger(__name__)

DOCUMENT_STREAM = "word/document.xml"


def _open_container(document_bytes: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(BytesIO(document_bytes), "r")
    except zipfile.BadZipFile as e:
        raise MalformedContainer(
            f"Not a .docx package: {e}", stream=None, reason="not_a_container"
        ) from e


def _read_document_xml(zf: zipfile.ZipFile) -> str:
    if DOCUMENT_STREAM not in zf.namelist():
        raise MalformedContainer(
            f"Invalid docx: missing {DOCUMENT_STREAM}", stream=DOCUMENT_STREAM, reason="missing_stream"
        )
    raw = zf.read(DOCUMENT_STREAM)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedContainer(
            f"{DOCUMENT_STREAM} is not UTF-8: {e}", stream=DOCUMENT_STREAM, reason="undecodable_stream"
        ) from e


def extract(document_bytes: bytes) -> ExtractionResult:
    """Slice a .docx into text blocks plus the untouched markup between them."""
    with _open_container(document_bytes) as zf:
        document_xml = _read_document_xml(zf)
    result = split_document_xml(document_xml)
    cells = sum(1 for b in result.blocks if b.kind == TABLE_CELL_BLOCK)
    logger.info(f"Extracted {len(result.blocks)} blocks ({cells} in table cells)")
    return result


def patch(document_bytes: bytes, replacements: Mapping[str, str]) -> bytes:
    """Return new .docx bytes with the given blocks' text replaced.

    Ids that do not exist in the document are skipped. When nothing changes
    the input bytes are returned as they are.
    """
    with _open_container(document_bytes) as zin:
        document_xml = _read_document_xml(zin)
        result = split_document_xml(document_xml)

        for bid in unknown_block_ids(result.blocks, replacements):
            logger.debug(f"Ignoring replacement for unknown block {bid}")

        new_xml = result.reassemble(replacements)
        if new_xml == document_xml:
            return document_bytes

        applied = len(replacements) - len(unknown_block_ids(result.blocks, replacements))
        logger.info(f"Patching {applied} blocks")

        out = BytesIO()
        with zipfile.ZipFile(out, "w") as zout:
            zout.comment = zin.comment
            for info in zin.infolist():
                data = new_xml.encode("utf-8") if info.filename == DOCUMENT_STREAM else zin.read(info.filename)
                zout.writestr(info, data)
    return out.getvalue()


def extract_file(docx_path: str) -> ExtractionResult:
    return extract(Path(docx_path).read_bytes())


def patch_file(original_docx: str, replacements: Mapping[str, str], out_docx: str) -> None:
    Path(out_docx).write_bytes(patch(Path(original_docx).read_bytes(), replacements))


def structure_inventory(document_bytes: bytes) -> StructureInventory:
    """Open the package with python-docx and count what a reader would see."""
    doc = Document(BytesIO(document_bytes))
    inv = StructureInventory()
    inv.table_count = len(doc.tables)
    inv.paragraph_count = len(doc.paragraphs)
    for p in doc.paragraphs:
        style = p.style.name if p.style is not None else ""
        if style.lower().startswith("heading") and p.text.strip():
            inv.headings.append(p.text.strip())
    return inv
