"""Report pipeline: single entry point for all report generation.

Every caller (API endpoints, CLI, embedding apps) uses these functions, so
there is exactly one rendering path:

  1. score: session → ComplianceSnapshot
  2. build: session + snapshot → DocumentTree
  3. serialize: DocumentTree → .docx bytes
"""

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .builder import build_document
from .document import DocumentTree
from .model import ComplianceSnapshot, InspectionSession
from .sanitize import sanitize_text
from .scoring import score
from .serializer import serialize

logger = logging.getLogger(__name__)

REPORT_EXTENSION = "docx"


@dataclass(frozen=True, kw_only=True)
class CompiledReport:
    """Output of a full pipeline run."""
    snapshot: ComplianceSnapshot
    tree: DocumentTree
    content: bytes


def compile_report_tree(
    session: InspectionSession,
    *,
    max_workers: Optional[int] = None,
) -> tuple[ComplianceSnapshot, DocumentTree]:
    """Run score → build and return the snapshot with the document tree."""
    snapshot = score(session)
    tree = build_document(session, snapshot, max_workers=max_workers)
    return snapshot, tree


def compile_report(
    session: InspectionSession,
    *,
    max_workers: Optional[int] = None,
) -> CompiledReport:
    """Run the full pipeline.

    Raises:
        ReportGenerationError: If the tree cannot be serialized. Scoring and
            building never fail on a constructed session.
    """
    start = time.perf_counter()
    snapshot, tree = compile_report_tree(session, max_workers=max_workers)
    content = serialize(tree)

    level = logging.INFO if session.config.debug_mode else logging.DEBUG
    logger.log(
        level,
        "Report compiled",
        extra={
            "site_name": session.site_name,
            "image_count": tree.image_count,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        },
    )
    return CompiledReport(snapshot=snapshot, tree=tree, content=content)


def report_filename(
    site_name: str,
    when: Optional[datetime] = None,
    extension: str = REPORT_EXTENSION,
) -> str:
    """Suggested download name: ``{site}_{HHMMSS}_Report.{ext}``.

    Runs of whitespace in the site name collapse to one underscore; path
    separators are dropped.
    """
    when = when or datetime.now()
    site = re.sub(r"\s+", "_", sanitize_text(site_name).strip())
    site = site.replace("/", "").replace("\\", "") or "Site"
    return f"{site}_{when.strftime('%H%M%S')}_Report.{extension}"
