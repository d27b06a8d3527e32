"""Report router: endpoints only.

Pipeline: payload → session → score → build → serialize.
Router contains zero business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import Response

from siteaudit.model import DEFAULT_SCORING_CONFIG, ScoringConfig
from siteaudit.pipeline import compile_report, compile_report_tree, report_filename
from siteaudit.serializer import DOCX_MEDIA_TYPE

from service.schemas import SessionPayload

router = APIRouter(prefix="/report", tags=["Report"])

# Set by main.py at startup
_default_config: ScoringConfig = DEFAULT_SCORING_CONFIG
_image_workers: int = 1


def configure(default_config: ScoringConfig, image_workers: int) -> None:
    """Set the scoring defaults and photo decode pool size from main app."""
    global _default_config, _image_workers
    _default_config = default_config
    _image_workers = image_workers


# ── .docx ────────────────────────────────────────────────────────────────────

@router.post("")
def generate_report(payload: SessionPayload):
    """Generate the audit report as a downloadable .docx file."""
    session = payload.to_session(_default_config)
    report = compile_report(session, max_workers=_image_workers)
    filename = report_filename(session.site_name, datetime.now())

    return Response(
        content=report.content,
        media_type=DOCX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Image-Count": str(report.tree.image_count),
        },
    )


# ── Outline (JSON) ───────────────────────────────────────────────────────────

@router.post("/outline")
def report_outline(payload: SessionPayload):
    """Return the document structure as JSON, without image bytes."""
    session = payload.to_session(_default_config)
    snapshot, tree = compile_report_tree(session, max_workers=_image_workers)
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "snapshot": snapshot.to_dict(),
        "outline": tree.outline(),
    }
