"""Builder: assembles the report document tree from a session and its snapshot.

Sections, in order:
  1. Title + subtitle (site, facility type, audit date)
  2. Audit summary key/value table
  3. Per-category compliance breakdown
  4. One subsection per maintenance observation, in session order
  5. Non-maintenance findings (only when any exist), numbering continues

Responsibilities:
  - pass every value through the sanitizer before it enters a node
  - decode photo payloads, dropping any that fail
  - keep observation and photo order identical to the session, even when
    photos are decoded on a thread pool
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Sequence, Tuple

from .document import (
    Alignment,
    Block,
    DocumentTree,
    ImageRun,
    Paragraph,
    REPORT_FONT_SIZE,
    Table,
    TableCell,
    TableRow,
    TextRun,
)
from .model import ComplianceSnapshot, InspectionSession, Observation, risk_color
from .sanitize import decode_image_payload, sanitize_text
from .scoring import score

REPORT_CREATOR = "Site Inspector"
REPORT_DESCRIPTION = "Asset Inspection Audit"

HEADER_SHADING = "F2F2F2"
SUBTITLE_COLOR = "555555"

SUMMARY_COLUMNS = (4000, 6000)
OBSERVATION_COLUMNS = (3000, 7000)
BREAKDOWN_COLUMNS = (2500, 2500, 2500, 2500)

# Separator run placed after each image so viewers wrap the image strip
_IMAGE_SEPARATOR = TextRun(text="  ")


def build_document(
    session: InspectionSession,
    snapshot: Optional[ComplianceSnapshot] = None,
    *,
    max_workers: Optional[int] = None,
) -> DocumentTree:
    """Build the report tree. Scores the session when no snapshot is given."""
    if snapshot is None:
        snapshot = score(session)

    maintenance = session.maintenance_observations()
    non_maintenance = session.non_maintenance_observations()

    photos = decode_photos(maintenance + non_maintenance, max_workers=max_workers)
    maintenance_photos = photos[:len(maintenance)]
    non_maintenance_photos = photos[len(maintenance):]

    blocks: List[Block] = []

    # ── Title ─────────────────────────────────────────────────────────────
    blocks.append(Paragraph(
        runs=(TextRun(
            text=f"{sanitize_text(session.site_name)} ({sanitize_text(session.site_type.value)})",
            bold=True,
            size=36,
        ),),
        heading_level=1,
        alignment=Alignment.CENTER,
        space_after=240,
    ))
    blocks.append(Paragraph(
        runs=(TextRun(
            text=f"MAINTENANCE COMPLIANCE AUDIT • {sanitize_text(session.audit_date)}",
            bold=True,
            size=18,
            color=SUBTITLE_COLOR,
        ),),
        alignment=Alignment.CENTER,
        space_after=480,
    ))

    # ── 1. Summary ────────────────────────────────────────────────────────
    blocks.append(_section_heading("1. Audit Summary", space_before=0))
    blocks.append(_summary_table(session, snapshot, non_maintenance))

    # ── 2. Breakdown ──────────────────────────────────────────────────────
    blocks.append(_section_heading("2. Compliance Breakdown by Category"))
    blocks.append(_breakdown_table(session))

    # ── 3. Maintenance findings ───────────────────────────────────────────
    blocks.append(_section_heading("3. Detailed Maintenance Findings"))
    for index, (obs, images) in enumerate(zip(maintenance, maintenance_photos), start=1):
        blocks.extend(_observation_blocks(obs, index, images))

    # ── 4. Non-maintenance findings ───────────────────────────────────────
    if non_maintenance:
        blocks.append(_section_heading(
            "4. Non-Maintenance Oriented Findings", space_before=600,
        ))
        offset = len(maintenance)
        for index, (obs, images) in enumerate(
            zip(non_maintenance, non_maintenance_photos), start=offset + 1
        ):
            blocks.extend(_observation_blocks(obs, index, images))

    return DocumentTree(
        title=sanitize_text(session.site_name),
        creator=REPORT_CREATOR,
        description=REPORT_DESCRIPTION,
        blocks=tuple(blocks),
    )


def decode_photos(
    observations: Sequence[Observation],
    *,
    max_workers: Optional[int] = None,
) -> List[Tuple[bytes, ...]]:
    """Decode every observation's photos, keeping only the ones that decode.

    Returns one tuple per observation, photos in capture order. With
    max_workers > 1 payloads are decoded concurrently; ``Executor.map``
    yields results in submission order, so completion order never leaks
    into the document.
    """
    payloads = [(i, p) for i, obs in enumerate(observations) for p in obs.photos]

    if max_workers and max_workers > 1 and len(payloads) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            decoded = list(pool.map(decode_image_payload, [p for _, p in payloads]))
    else:
        decoded = [decode_image_payload(p) for _, p in payloads]

    grouped: List[List[bytes]] = [[] for _ in observations]
    for (index, _), blob in zip(payloads, decoded):
        if blob is not None:
            grouped[index].append(blob)
    return [tuple(g) for g in grouped]


# ── Section builders ──────────────────────────────────────────────────────────

def _section_heading(text: str, *, space_before: int = 400) -> Paragraph:
    return Paragraph(
        runs=(TextRun(text=text),),
        heading_level=2,
        space_before=space_before,
        space_after=200,
    )


def _summary_table(
    session: InspectionSession,
    snapshot: ComplianceSnapshot,
    non_maintenance: Sequence[Observation],
) -> Table:
    non_maintenance_defects = sum(o.non_compliance_count for o in non_maintenance)
    rows = [
        ("Inspector", session.inspector_name),
        ("Site Reference", session.site_name),
        ("Facility Type", session.site_type.value),
        ("Audit Date", session.audit_date),
        ("Total Assets Checked", snapshot.total_assets_checked),
        ("Total Maintenance Defects Found", snapshot.defect_total),
        ("Total Non-Maintenance Defects Found", non_maintenance_defects),
        ("Mechanical SIS (Depth)", snapshot.site_issue_score),
        ("Compliance (Breadth)", f"{snapshot.compliance_percentage}%"),
    ]
    return Table(
        column_widths=SUMMARY_COLUMNS,
        rows=tuple(_kv_row(label, value) for label, value in rows),
    )


def _breakdown_table(session: InspectionSession) -> Table:
    header = TableRow(cells=tuple(
        TableCell(runs=(TextRun(text=label, bold=True),), shading=HEADER_SHADING)
        for label in ("Category", "Compliant", "Non-Compliant", "Total Inspected")
    ))
    rows = [header]
    for category in session.config.categories:
        passed = session.tally_for(category)
        failed = sum(1 for o in session.observations if o.category == category)
        rows.append(TableRow(cells=tuple(
            _text_cell(value) for value in (category, passed, failed, passed + failed)
        )))
    return Table(column_widths=BREAKDOWN_COLUMNS, rows=tuple(rows))


def _observation_blocks(
    obs: Observation,
    number: int,
    images: Sequence[bytes],
) -> List[Block]:
    blocks: List[Block] = [
        Paragraph(
            runs=(TextRun(text=f"Observation #{number}: {sanitize_text(obs.category)}"),),
            heading_level=3,
            space_before=300,
            space_after=150,
        ),
        Table(
            column_widths=OBSERVATION_COLUMNS,
            rows=(
                _kv_row("Asset Name / Description", obs.asset_name),
                _kv_row("Asset ID / Barcode", obs.asset_id),
                TableRow(cells=(
                    _label_cell("Risk Level"),
                    TableCell(runs=(TextRun(
                        text=sanitize_text(obs.risk.value).upper(),
                        bold=True,
                        color=risk_color(obs.risk),
                    ),)),
                )),
                _kv_row("Defect Count", obs.non_compliance_count),
                _kv_row("Previously Seen", "Yes" if obs.previously_seen else "No"),
                _kv_row("Findings", obs.feedback_notes),
                _kv_row("Short Term Fix", obs.short_term_fix),
                _kv_row("Long Term Fix", obs.long_term_fix),
                _kv_row("Action Owner", obs.action_owner),
            ),
        ),
    ]

    if images:
        runs: List[Any] = []
        for blob in images:
            runs.append(ImageRun(data=blob))
            runs.append(_IMAGE_SEPARATOR)
        blocks.append(Paragraph(runs=tuple(runs), space_before=200, space_after=400))

    return blocks


# ── Cells ─────────────────────────────────────────────────────────────────────

def _label_cell(label: str) -> TableCell:
    return TableCell(runs=(TextRun(text=sanitize_text(label), bold=True, size=REPORT_FONT_SIZE),))


def _text_cell(value: Any) -> TableCell:
    return TableCell(runs=(TextRun(text=sanitize_text(value)),))


def _kv_row(label: str, value: Any) -> TableRow:
    return TableRow(cells=(
        _label_cell(label),
        TableCell(runs=(TextRun(text=sanitize_text(value), size=REPORT_FONT_SIZE),)),
    ))
