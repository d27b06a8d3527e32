"""Publish endpoint: forward a session's metrics to the configured webhook."""

from fastapi import APIRouter

from siteaudit.exceptions import PublishError
from siteaudit.model import DEFAULT_SCORING_CONFIG, ScoringConfig
from siteaudit.publish import DEFAULT_TIMEOUT, publish_metrics

from service.schemas import SessionPayload

router = APIRouter(tags=["Publish"])

_default_config: ScoringConfig = DEFAULT_SCORING_CONFIG
_webhook_url: str = ""
_timeout: float = DEFAULT_TIMEOUT


def configure(default_config: ScoringConfig, webhook_url: str, timeout: float) -> None:
    global _default_config, _webhook_url, _timeout
    _default_config = default_config
    _webhook_url = webhook_url
    _timeout = timeout


@router.post("/publish")
def publish_session(payload: SessionPayload):
    """Score the session and send the metrics row to the webhook."""
    session = payload.to_session(_default_config)
    result = publish_metrics(session, _webhook_url, timeout=_timeout)
    if not result.success:
        raise PublishError(result.message, details=result.to_dict())
    return result.to_dict()
