"""
SiteAudit Core: Document Tree

Library-neutral description of a report: an ordered run of blocks, each a
paragraph (optionally a heading) or a fixed-layout table. The builder emits
this tree; the serializer is the only module that knows the container format.

Units:
- text size is in half-points (22 == 11pt)
- spacing and column widths are in twips (DXA, 1/20 pt)
- image display size is in pixels at 96 dpi
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


REPORT_FONT = "Calibri"
REPORT_FONT_SIZE = 22

IMAGE_DISPLAY_WIDTH = 220
IMAGE_DISPLAY_HEIGHT = 165


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"


@dataclass(frozen=True, kw_only=True)
class TextRun:
    text: str
    bold: bool = False
    size: Optional[int] = None
    color: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class ImageRun:
    """Raw image bytes placed inline at a fixed display size."""
    data: bytes
    width: int = IMAGE_DISPLAY_WIDTH
    height: int = IMAGE_DISPLAY_HEIGHT


Run = Union[TextRun, ImageRun]


@dataclass(frozen=True, kw_only=True)
class Paragraph:
    runs: Tuple[Run, ...] = ()
    heading_level: Optional[int] = None
    alignment: Alignment = Alignment.LEFT
    space_before: int = 0
    space_after: int = 0

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs if isinstance(r, TextRun))

    @property
    def image_count(self) -> int:
        return sum(1 for r in self.runs if isinstance(r, ImageRun))


@dataclass(frozen=True, kw_only=True)
class TableCell:
    runs: Tuple[TextRun, ...] = ()
    shading: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)


@dataclass(frozen=True, kw_only=True)
class TableRow:
    cells: Tuple[TableCell, ...]


@dataclass(frozen=True, kw_only=True)
class Table:
    """Fixed-layout table; every row has len(column_widths) cells."""
    column_widths: Tuple[int, ...]
    rows: Tuple[TableRow, ...] = ()

    def cell_texts(self) -> List[List[str]]:
        return [[cell.text for cell in row.cells] for row in self.rows]


Block = Union[Paragraph, Table]


@dataclass(frozen=True, kw_only=True)
class DocumentTree:
    """A complete report, ready for serialization."""
    title: str
    creator: str
    description: str
    blocks: Tuple[Block, ...]
    font: str = REPORT_FONT
    font_size: int = REPORT_FONT_SIZE

    def headings(self, level: Optional[int] = None) -> List[str]:
        return [
            b.text for b in self.blocks
            if isinstance(b, Paragraph) and b.heading_level is not None
            and (level is None or b.heading_level == level)
        ]

    def tables(self) -> List[Table]:
        return [b for b in self.blocks if isinstance(b, Table)]

    def image_runs(self) -> Iterator[ImageRun]:
        for block in self.blocks:
            if isinstance(block, Paragraph):
                for run in block.runs:
                    if isinstance(run, ImageRun):
                        yield run

    @property
    def image_count(self) -> int:
        return sum(1 for _ in self.image_runs())

    def outline(self) -> Dict[str, Any]:
        """JSON-safe summary of the tree without image bytes."""
        blocks: List[Dict[str, Any]] = []
        for block in self.blocks:
            if isinstance(block, Table):
                blocks.append({"type": "table", "rows": block.cell_texts()})
            elif block.heading_level is not None:
                blocks.append({
                    "type": "heading",
                    "level": block.heading_level,
                    "text": block.text,
                })
            elif block.image_count:
                blocks.append({"type": "images", "count": block.image_count})
            else:
                blocks.append({"type": "paragraph", "text": block.text})
        return {
            "title": self.title,
            "creator": self.creator,
            "description": self.description,
            "image_count": self.image_count,
            "blocks": blocks,
        }
