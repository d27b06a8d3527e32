"""
SiteAudit Core: Compliance Scoring

Turns a session's pass tallies and observations into two deliberately
decoupled metrics:

- Site Issue Score (depth): mean defects per inspected maintenance asset
- Compliance percentage (breadth): share of inspected maintenance assets
  that passed

Only maintenance categories count. Observations in the non-maintenance
category (safety, PPE, housekeeping) never reach either metric, so adding
them cannot move a site's score.

Rounding uses Decimal with ROUND_HALF_UP so that exact .5 boundaries are
resolved the same way on every platform.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from .model import (
    NON_MAINTENANCE_CATEGORY,
    ComplianceSnapshot,
    InspectionSession,
    ScoringConfig,
)

_SIS_QUANTUM = Decimal("0.001")
_PERCENT_QUANTUM = Decimal("1")

EMPTY_SITE_ISSUE_SCORE = "0.000"
EMPTY_COMPLIANCE_PERCENTAGE = 100


def score(session: InspectionSession) -> ComplianceSnapshot:
    """
    Compute the compliance snapshot for a session.

    Pure and total: never raises, never mutates the session, and returns an
    equal snapshot for an equal session. A session with nothing checked is
    defined as 100% compliant with a 0.000 issue score.
    """
    categories = set(session.config.categories)
    categories.discard(NON_MAINTENANCE_CATEGORY)

    pass_total = sum(session.compliant_tally.get(c, 0) for c in categories)

    maintenance = [o for o in session.observations if o.category in categories]
    issue_count = len(maintenance)
    defect_total = sum(o.non_compliance_count for o in maintenance)

    total_checked = pass_total + issue_count

    if total_checked == 0:
        return ComplianceSnapshot(
            pass_total=0,
            issue_count=0,
            defect_total=defect_total,
            total_assets_checked=0,
            site_issue_score=EMPTY_SITE_ISSUE_SCORE,
            compliance_percentage=EMPTY_COMPLIANCE_PERCENTAGE,
        )

    sis = (Decimal(defect_total) / Decimal(total_checked)).quantize(
        _SIS_QUANTUM, rounding=ROUND_HALF_UP
    )
    percentage = (Decimal(100 * pass_total) / Decimal(total_checked)).quantize(
        _PERCENT_QUANTUM, rounding=ROUND_HALF_UP
    )

    return ComplianceSnapshot(
        pass_total=pass_total,
        issue_count=issue_count,
        defect_total=defect_total,
        total_assets_checked=total_checked,
        site_issue_score=f"{sis:.3f}",
        compliance_percentage=int(percentage),
    )


# =============================================================================
# DISPLAY ALERTS
# =============================================================================

@dataclass(frozen=True, kw_only=True)
class ComplianceAlerts:
    """Display triggers derived from a snapshot and the session thresholds."""
    sis_high: bool
    compliance_low: bool

    def to_dict(self) -> dict:
        return {"sis_high": self.sis_high, "compliance_low": self.compliance_low}


def evaluate_alerts(snapshot: ComplianceSnapshot, config: ScoringConfig) -> ComplianceAlerts:
    """Compare a snapshot against the display thresholds. Scoring never calls this."""
    return ComplianceAlerts(
        sis_high=Decimal(snapshot.site_issue_score) > Decimal(str(config.sis_threshold)),
        compliance_low=snapshot.compliance_percentage < config.compliance_threshold,
    )


__all__ = [
    'score',
    'ComplianceAlerts',
    'evaluate_alerts',
    'EMPTY_SITE_ISSUE_SCORE',
    'EMPTY_COMPLIANCE_PERCENTAGE',
]
