"""
Serializer Tests

Reopens the produced package with python-docx and checks what a reader of
the report would see: headings, tables, embedded pictures and metadata.
"""

import io

import docx
import pytest
from docx.shared import Pt

from siteaudit.builder import build_document
from siteaudit.document import DocumentTree, ImageRun, Paragraph, Table, TableCell, TableRow, TextRun
from siteaudit.exceptions import ReportGenerationError
from siteaudit.serializer import serialize

from conftest import NOT_AN_IMAGE_PHOTO, NOT_BASE64_PHOTO, VALID_PHOTO, make_observation, make_session


def _reopen(content: bytes):
    return docx.Document(io.BytesIO(content))


def _headings(document, level):
    style = f"Heading {level}"
    return [p.text for p in document.paragraphs if p.style.name == style]


class TestPackage:
    """The output is a readable .docx package."""

    def test_zip_container(self, mixed_session):
        content = serialize(build_document(mixed_session))
        assert content[:2] == b"PK"

    def test_headings_survive(self, mixed_session):
        document = _reopen(serialize(build_document(mixed_session)))
        assert _headings(document, 1) == ["Riverside WTW (WTW)"]
        assert _headings(document, 2)[0] == "1. Audit Summary"
        assert _headings(document, 3) == [
            "Observation #1: Pumps",
            "Observation #2: Motors",
            "Observation #3: Non-Maintenance",
        ]

    def test_tables_survive(self, mixed_session):
        tree = build_document(mixed_session)
        document = _reopen(serialize(tree))
        assert len(document.tables) == len(tree.tables())
        summary = document.tables[0]
        assert summary.cell(4, 0).text == "Total Assets Checked"
        assert summary.cell(4, 1).text == "10"
        assert summary.cell(8, 1).text == "80%"

    def test_core_properties(self, mixed_session):
        document = _reopen(serialize(build_document(mixed_session)))
        props = document.core_properties
        assert props.author == "Site Inspector"
        assert props.title == "Riverside WTW"
        assert props.comments == "Asset Inspection Audit"

    def test_default_font(self, empty_session):
        document = _reopen(serialize(build_document(empty_session)))
        normal = document.styles["Normal"]
        assert normal.font.name == "Calibri"
        assert normal.font.size == Pt(11)

    def test_header_shading_written(self, mixed_session):
        document = _reopen(serialize(build_document(mixed_session)))
        header_cell = document.tables[1].cell(0, 0)
        assert 'w:fill="F2F2F2"' in header_cell._tc.xml


class TestImages:
    """Only decodable photos are embedded."""

    def test_one_valid_one_corrupt(self):
        session = make_session(observations=[
            make_observation("1", photos=[VALID_PHOTO, NOT_BASE64_PHOTO]),
        ])
        document = _reopen(serialize(build_document(session)))
        assert len(document.inline_shapes) == 1

    def test_all_corrupt_still_produces_report(self):
        session = make_session(observations=[
            make_observation("1", photos=[NOT_BASE64_PHOTO, NOT_AN_IMAGE_PHOTO]),
        ])
        document = _reopen(serialize(build_document(session)))
        assert len(document.inline_shapes) == 0
        assert _headings(document, 3) == ["Observation #1: Pumps"]

    def test_display_size(self, mixed_session):
        document = _reopen(serialize(build_document(mixed_session)))
        shape = document.inline_shapes[0]
        assert shape.width == 220 * 9525
        assert shape.height == 165 * 9525


class TestSanitizedOutput:
    """Hostile text yields a package that still opens."""

    def test_control_characters_in_every_field(self):
        session = make_session(
            site_name="Site\x00\x1b",
            inspector_name="In\x0bspector",
            observations=[make_observation(
                "1",
                asset_name="Pump\x00#1",
                asset_id="\x02ID",
                feedback_notes="bad\ud800note",
                action_owner="\x7fowner",
            )],
        )
        document = _reopen(serialize(build_document(session)))
        assert document.tables[2].cell(0, 1).text == "Pump#1"


class TestFailure:
    """Packaging failures surface as one domain error."""

    def _tree(self, *blocks):
        return DocumentTree(
            title="t", creator="c", description="d", blocks=tuple(blocks),
        )

    def test_unplaceable_image_raises(self):
        tree = self._tree(Paragraph(runs=(ImageRun(data=b"not an image"),)))
        with pytest.raises(ReportGenerationError) as exc_info:
            serialize(tree)
        assert exc_info.value.code == "SA_REPORT_FAILED"
        assert exc_info.value.details["internal_error"]
        assert exc_info.value.__cause__ is not None

    def test_bad_color_raises(self):
        tree = self._tree(Table(
            column_widths=(1000,),
            rows=(TableRow(cells=(TableCell(runs=(TextRun(text="x", color="nothex"),)),)),),
        ))
        with pytest.raises(ReportGenerationError):
            serialize(tree)
