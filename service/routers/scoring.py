"""Scoring endpoint: compliance snapshot plus display alerts for a session."""

from fastapi import APIRouter

from siteaudit.model import DEFAULT_SCORING_CONFIG, ScoringConfig
from siteaudit.scoring import evaluate_alerts, score

from service.schemas import SessionPayload

router = APIRouter(tags=["Scoring"])

_default_config: ScoringConfig = DEFAULT_SCORING_CONFIG


def configure(default_config: ScoringConfig) -> None:
    global _default_config
    _default_config = default_config


@router.post("/score")
async def score_session(payload: SessionPayload):
    """
    Score a session.

    Returns the raw snapshot and, separately, the threshold alerts the
    dashboard colors by. Non-maintenance observations never affect either.
    """
    session = payload.to_session(_default_config)
    snapshot = score(session)
    return {
        "snapshot": snapshot.to_dict(),
        "alerts": evaluate_alerts(snapshot, session.config).to_dict(),
        "thresholds": {
            "sis_threshold": session.config.sis_threshold,
            "compliance_threshold": session.config.compliance_threshold,
        },
    }
