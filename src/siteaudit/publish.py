"""Metrics publisher: forwards a session's compliance snapshot to a webhook.

A side collaborator, not part of the report path. The receiving end is an
operator-configured HTTP flow (for example a "When an HTTP request is
received" automation that appends a row to a shared spreadsheet).

Transport failures never raise; they come back as an unsuccessful
PublishResult so the caller decides how loudly to report them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from .model import ComplianceSnapshot, InspectionSession
from .scoring import score

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

MSG_URL_MISSING = "Webhook URL missing."
MSG_SUCCESS = "Metrics published successfully."
MSG_FAILED = "Sync failed. Check connection."


@dataclass(frozen=True, kw_only=True)
class PublishResult:
    success: bool
    message: str
    status_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "status_code": self.status_code,
        }


def build_publish_payload(
    session: InspectionSession,
    snapshot: ComplianceSnapshot,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Row sent to the webhook.

    ``complianceScore`` carries the site issue score and ``totalIssues`` the
    maintenance defect total; existing receiving flows map those names.
    """
    now = now or datetime.now(timezone.utc)
    return {
        "siteName": session.site_name,
        "siteType": session.site_type.value,
        "inspector": session.inspector_name,
        "date": session.audit_date,
        "complianceScore": snapshot.site_issue_score,
        "siteIssueScore": snapshot.site_issue_score,
        "compliancePercentage": snapshot.compliance_percentage,
        "totalAssets": snapshot.total_assets_checked,
        "totalIssues": snapshot.defect_total,
        "timestamp": now.isoformat(),
    }


def publish_metrics(
    session: InspectionSession,
    url: str,
    *,
    client: Optional[httpx.Client] = None,
    timeout: float = DEFAULT_TIMEOUT,
    now: Optional[datetime] = None,
) -> PublishResult:
    """Score the session and POST the metrics row to ``url``."""
    if not url:
        logger.warning("Metrics publish skipped: no webhook URL configured")
        return PublishResult(success=False, message=MSG_URL_MISSING)

    payload = build_publish_payload(session, score(session), now)

    try:
        if client is None:
            with httpx.Client(timeout=timeout) as owned:
                response = owned.post(url, json=payload)
        else:
            response = client.post(url, json=payload, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Metrics publish failed: {type(e).__name__}: {e}")
        return PublishResult(success=False, message=MSG_FAILED)

    if response.is_success:
        logger.info(
            "Metrics published",
            extra={"site_name": session.site_name},
        )
        return PublishResult(
            success=True, message=MSG_SUCCESS, status_code=response.status_code,
        )

    logger.warning(f"Metrics publish rejected: server responded with {response.status_code}")
    return PublishResult(
        success=False, message=MSG_FAILED, status_code=response.status_code,
    )
