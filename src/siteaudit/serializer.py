"""Serializer: packages a DocumentTree as a .docx (WordprocessingML) byte stream.

The only module that knows the container format. Any failure while writing
the package is fatal for the call and surfaces as a single
ReportGenerationError; no partial byte stream is returned.
"""

import io
import logging

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Pt, RGBColor, Twips

from .document import (
    Alignment,
    DocumentTree,
    ImageRun,
    Paragraph,
    Table,
    TableCell,
    TextRun,
)
from .exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

TABLE_STYLE = "Table Grid"

# EMU per pixel at 96 dpi
_EMU_PER_PIXEL = 9525

_ALIGNMENTS = {
    Alignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    Alignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
}


def serialize(tree: DocumentTree) -> bytes:
    """Render the tree and return the .docx bytes."""
    try:
        document = Document()
        _apply_defaults(document, tree)

        for block in tree.blocks:
            if isinstance(block, Table):
                _add_table(document, block, tree)
            else:
                _add_paragraph(document, block, tree)

        buffer = io.BytesIO()
        document.save(buffer)
    except Exception as e:
        logger.error(f"Report generation failed: {type(e).__name__}: {e}")
        raise ReportGenerationError(
            "Report generation failed",
            details={"internal_error": type(e).__name__, "reason": str(e)},
        ) from e

    return buffer.getvalue()


# ── Document ──────────────────────────────────────────────────────────────────

def _apply_defaults(document, tree: DocumentTree) -> None:
    normal = document.styles["Normal"]
    normal.font.name = tree.font
    normal.font.size = Pt(tree.font_size / 2)

    props = document.core_properties
    props.author = tree.creator
    props.title = tree.title
    props.comments = tree.description


# ── Paragraphs ────────────────────────────────────────────────────────────────

def _add_paragraph(document, block: Paragraph, tree: DocumentTree) -> None:
    if block.heading_level is not None:
        paragraph = document.add_heading("", level=block.heading_level)
    else:
        paragraph = document.add_paragraph()

    paragraph.alignment = _ALIGNMENTS[block.alignment]
    if block.space_before:
        paragraph.paragraph_format.space_before = Twips(block.space_before)
    if block.space_after:
        paragraph.paragraph_format.space_after = Twips(block.space_after)

    for run in block.runs:
        if isinstance(run, ImageRun):
            _add_image(paragraph, run)
        else:
            _add_text(paragraph, run, tree)


def _add_text(paragraph, run: TextRun, tree: DocumentTree) -> None:
    r = paragraph.add_run(run.text)
    r.font.name = tree.font
    if run.bold:
        r.bold = True
    if run.size:
        r.font.size = Pt(run.size / 2)
    if run.color:
        r.font.color.rgb = RGBColor.from_string(run.color)


def _add_image(paragraph, run: ImageRun) -> None:
    paragraph.add_run().add_picture(
        io.BytesIO(run.data),
        width=Emu(run.width * _EMU_PER_PIXEL),
        height=Emu(run.height * _EMU_PER_PIXEL),
    )


# ── Tables ────────────────────────────────────────────────────────────────────

def _add_table(document, block: Table, tree: DocumentTree) -> None:
    table = document.add_table(rows=0, cols=len(block.column_widths))
    table.style = TABLE_STYLE
    table.autofit = False

    for column, width in zip(table.columns, block.column_widths):
        column.width = Twips(width)

    for row in block.rows:
        cells = table.add_row().cells
        for cell, source, width in zip(cells, row.cells, block.column_widths):
            cell.width = Twips(width)
            _fill_cell(cell, source, tree)


def _fill_cell(cell, source: TableCell, tree: DocumentTree) -> None:
    paragraph = cell.paragraphs[0]
    for run in source.runs:
        _add_text(paragraph, run, tree)
    if source.shading:
        _shade(cell, source.shading)


def _shade(cell, fill: str) -> None:
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    cell._tc.get_or_add_tcPr().append(shd)
