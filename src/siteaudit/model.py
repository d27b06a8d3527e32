"""
SiteAudit Core: Data Model

Value types for an audit session:
- SiteType / RiskLevel enums (wire values match the capture app)
- Observation: one logged defect against one asset
- ScoringConfig: thresholds plus the ordered maintenance category list
- InspectionSession: the aggregate root handed to the engine per call
- ComplianceSnapshot: derived scoring output, never stored

Immutability design:
- Every type is a frozen, keyword-only dataclass
- Sequences are tuples and the tally mapping is a read-only MappingProxyType
- Session "edits" return a new InspectionSession; the caller's value is never
  mutated, so the engine can score and render without defensive copies

Partition:
- An observation is maintenance iff its category is in config.categories
- It is non-maintenance iff its category is the reserved sentinel
- The sentinel can never be a member of config.categories
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import InputInvalidError


NON_MAINTENANCE_CATEGORY = "Non-Maintenance"

DEFAULT_CATEGORIES: Tuple[str, ...] = (
    "Pumps",
    "Motors",
    "Compressors",
    "Electrical Panels",
)

MAX_PHOTOS_PER_OBSERVATION = 10


class SiteType(str, Enum):
    """Facility type of the audited site."""
    WATER_TREATMENT = "WTW"
    SEWAGE_TREATMENT = "STW"


class RiskLevel(str, Enum):
    """Display-only risk grading. Has no effect on scoring."""
    LOW = "Low"
    MEDIUM = "Med"
    HIGH = "Hi"


# Hex colors used when a risk level is rendered in the report
RISK_COLORS: Dict[RiskLevel, str] = {
    RiskLevel.LOW: "EAB308",     # amber
    RiskLevel.MEDIUM: "F97316",  # orange
    RiskLevel.HIGH: "EF4444",    # red
}


def risk_color(risk: RiskLevel) -> str:
    """Report color for a risk level."""
    return RISK_COLORS[RiskLevel(risk)]


@dataclass(frozen=True, kw_only=True)
class Observation:
    """
    A single logged defect.

    Attributes:
        id: Opaque identifier, unique within a session
        category: A maintenance category or NON_MAINTENANCE_CATEGORY
        asset_name: Required, non-blank
        asset_id: Optional asset tag / barcode
        risk: Display-only risk grading
        non_compliance_count: Number of defects on this asset (>= 1)
        previously_seen: Whether the defect was already known
        feedback_notes: Findings text
        short_term_fix / long_term_fix / action_owner / notes: Free text
        photos: Up to ten "<mime>;base64,<data>" payloads, in capture order
        timestamp: Creation time, epoch milliseconds

    Category reassignment is not supported: editing an observation replaces
    the whole record by identifier (see InspectionSession.upsert_observation).
    """

    id: str
    category: str
    asset_name: str
    asset_id: Optional[str] = None
    risk: RiskLevel = RiskLevel.LOW
    non_compliance_count: int = 1
    previously_seen: bool = False
    feedback_notes: str = ""
    short_term_fix: str = ""
    long_term_fix: str = ""
    action_owner: str = ""
    notes: str = ""
    photos: Tuple[str, ...] = ()
    timestamp: int = 0

    def __post_init__(self):
        if not self.id:
            raise InputInvalidError("Observation id must not be empty")
        if not self.category:
            raise InputInvalidError(
                "Observation category must not be empty",
                details={"observation_id": self.id},
            )
        if not self.asset_name or not self.asset_name.strip():
            raise InputInvalidError(
                "Observation asset name is required",
                details={"observation_id": self.id},
            )
        if isinstance(self.non_compliance_count, bool) or not isinstance(self.non_compliance_count, int):
            raise InputInvalidError(
                f"non_compliance_count must be an integer, got {self.non_compliance_count!r}",
                details={"observation_id": self.id},
            )
        if self.non_compliance_count < 1:
            raise InputInvalidError(
                f"non_compliance_count must be >= 1, got {self.non_compliance_count}",
                details={"observation_id": self.id},
            )

        try:
            object.__setattr__(self, "risk", RiskLevel(self.risk))
        except ValueError:
            raise InputInvalidError(
                f"Unknown risk level: {self.risk!r}",
                details={"observation_id": self.id},
            )
        object.__setattr__(self, "photos", tuple(self.photos))
        if len(self.photos) > MAX_PHOTOS_PER_OBSERVATION:
            raise InputInvalidError(
                f"At most {MAX_PHOTOS_PER_OBSERVATION} photos per observation, got {len(self.photos)}",
                details={"observation_id": self.id},
            )

    @property
    def is_non_maintenance(self) -> bool:
        return self.category == NON_MAINTENANCE_CATEGORY


@dataclass(frozen=True, kw_only=True)
class ScoringConfig:
    """
    Session-wide scoring settings.

    sis_threshold and compliance_threshold only drive display alerts.
    categories is the ordered list of maintenance categories that count
    toward scoring; the sentinel category is never a member.
    """

    sis_threshold: float = 0.5
    compliance_threshold: float = 85
    categories: Tuple[str, ...] = DEFAULT_CATEGORIES
    debug_mode: bool = False

    def __post_init__(self):
        categories = tuple(self.categories)
        object.__setattr__(self, "categories", categories)

        if NON_MAINTENANCE_CATEGORY in categories:
            raise InputInvalidError(
                f"'{NON_MAINTENANCE_CATEGORY}' is reserved and cannot be a maintenance category"
            )
        if any(not c for c in categories):
            raise InputInvalidError("Category names must not be empty")
        if len(set(categories)) != len(categories):
            duplicates = sorted({c for c in categories if categories.count(c) > 1})
            raise InputInvalidError(
                f"Duplicate categories: {', '.join(duplicates)}",
                details={"duplicates": duplicates},
            )


DEFAULT_SCORING_CONFIG = ScoringConfig()


@dataclass(frozen=True, kw_only=True)
class InspectionSession:
    """
    Aggregate root for one site audit.

    The engine borrows a session for the duration of one call and never
    mutates it. Edits made by the surrounding app go through the with-style
    helpers below, each of which returns a new session.
    """

    inspector_name: str = ""
    site_name: str = ""
    site_type: SiteType = SiteType.WATER_TREATMENT
    audit_date: str = ""
    compliant_tally: Mapping[str, int] = field(default_factory=dict)
    observations: Tuple[Observation, ...] = ()
    config: ScoringConfig = DEFAULT_SCORING_CONFIG

    def __post_init__(self):
        try:
            object.__setattr__(self, "site_type", SiteType(self.site_type))
        except ValueError:
            raise InputInvalidError(f"Unknown site type: {self.site_type!r}")

        try:
            tally = {
                str(category): max(0, int(count or 0))
                for category, count in dict(self.compliant_tally).items()
            }
        except (TypeError, ValueError) as e:
            raise InputInvalidError(f"Compliant tallies must be integers: {e}")
        object.__setattr__(self, "compliant_tally", MappingProxyType(tally))

        observations = tuple(self.observations)
        seen = set()
        for obs in observations:
            if obs.id in seen:
                raise InputInvalidError(
                    f"Duplicate observation id: {obs.id}",
                    details={"observation_id": obs.id},
                )
            seen.add(obs.id)
        object.__setattr__(self, "observations", observations)

    @classmethod
    def start(
        cls,
        *,
        inspector_name: str,
        site_name: str,
        site_type: SiteType,
        audit_date: str,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    ) -> "InspectionSession":
        """Open a new audit with empty tallies and no observations."""
        return cls(
            inspector_name=inspector_name,
            site_name=site_name,
            site_type=site_type,
            audit_date=audit_date,
            config=config,
        )

    def tally_for(self, category: str) -> int:
        return self.compliant_tally.get(category, 0)

    def maintenance_observations(self) -> Tuple[Observation, ...]:
        """Observations in a configured maintenance category, in session order."""
        categories = set(self.config.categories)
        categories.discard(NON_MAINTENANCE_CATEGORY)
        return tuple(o for o in self.observations if o.category in categories)

    def non_maintenance_observations(self) -> Tuple[Observation, ...]:
        """Observations in the sentinel category, in session order."""
        return tuple(o for o in self.observations if o.is_non_maintenance)

    # ── Edits (each returns a new session) ────────────────────────────────

    def adjust_tally(self, category: str, delta: int) -> "InspectionSession":
        """Add delta to a category's pass tally, clamped at zero."""
        tally = dict(self.compliant_tally)
        tally[category] = max(0, tally.get(category, 0) + delta)
        return replace(self, compliant_tally=tally)

    def upsert_observation(self, observation: Observation) -> "InspectionSession":
        """Replace an observation by id in place, or append it if new."""
        observations = list(self.observations)
        for index, existing in enumerate(observations):
            if existing.id == observation.id:
                observations[index] = observation
                break
        else:
            observations.append(observation)
        return replace(self, observations=tuple(observations))

    def remove_observation(self, observation_id: str) -> "InspectionSession":
        return replace(
            self,
            observations=tuple(o for o in self.observations if o.id != observation_id),
        )

    def with_config(self, config: ScoringConfig) -> "InspectionSession":
        return replace(self, config=config)


@dataclass(frozen=True, kw_only=True)
class ComplianceSnapshot:
    """
    Derived scoring output for one session.

    Attributes:
        pass_total: Sum of pass tallies across maintenance categories
        issue_count: Number of maintenance observations
        defect_total: Sum of non-compliance counts over maintenance observations
        total_assets_checked: pass_total + issue_count
        site_issue_score: Defect density, fixed three decimals (e.g. "0.100")
        compliance_percentage: Integer 0..100
    """

    pass_total: int
    issue_count: int
    defect_total: int
    total_assets_checked: int
    site_issue_score: str
    compliance_percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pass_total": self.pass_total,
            "issue_count": self.issue_count,
            "defect_total": self.defect_total,
            "total_assets_checked": self.total_assets_checked,
            "site_issue_score": self.site_issue_score,
            "compliance_percentage": self.compliance_percentage,
        }


__all__ = [
    'NON_MAINTENANCE_CATEGORY',
    'DEFAULT_CATEGORIES',
    'MAX_PHOTOS_PER_OBSERVATION',
    'SiteType',
    'RiskLevel',
    'RISK_COLORS',
    'risk_color',
    'Observation',
    'ScoringConfig',
    'DEFAULT_SCORING_CONFIG',
    'InspectionSession',
    'ComplianceSnapshot',
]
