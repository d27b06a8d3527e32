"""
Request models for the SiteAudit API.

Field names follow the capture app's camelCase JSON through aliases, so the
app can post its saved session unchanged. Shape and type errors are rejected
here (HTTP 422) before anything reaches the engine.
"""

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from siteaudit.loader import session_from_dict
from siteaudit.model import MAX_PHOTOS_PER_OBSERVATION, InspectionSession, ScoringConfig


class ScoringConfigPayload(BaseModel):
    """Partial scoring config; missing fields fall back to the server defaults."""
    model_config = ConfigDict(populate_by_name=True)

    sis_threshold: Optional[float] = Field(None, alias="sisThreshold", ge=0)
    compliance_threshold: Optional[float] = Field(None, alias="complianceThreshold", ge=0, le=100)
    categories: Optional[List[str]] = None
    debug_mode: Optional[bool] = Field(None, alias="debugMode")


class ObservationPayload(BaseModel):
    """One logged defect."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    asset_name: str = Field(..., alias="assetName", min_length=1)
    asset_id: Optional[str] = Field(None, alias="assetId")
    risk: Literal["Low", "Med", "Hi"] = "Low"
    non_compliance_count: int = Field(1, alias="nonComplianceCount", ge=1)
    previously_seen: Union[bool, Literal["Yes", "No"]] = Field("No", alias="previouslySeen")
    short_term_fix: Optional[str] = Field("", alias="shortTermFix")
    long_term_fix: Optional[str] = Field("", alias="longTermFix")
    feedback_notes: Optional[str] = Field("", alias="feedbackNotes")
    action_owner: Optional[str] = Field("", alias="actionOwner")
    notes: Optional[str] = ""
    photos: List[str] = Field(default_factory=list, max_length=MAX_PHOTOS_PER_OBSERVATION)
    timestamp: int = 0


class SessionPayload(BaseModel):
    """A full audit session as saved by the capture app."""
    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field("", alias="userName")
    site_name: str = Field("", alias="siteName")
    site_type: Literal["WTW", "STW"] = Field("WTW", alias="siteType")
    date: str = ""
    compliant_counts: Dict[str, int] = Field(default_factory=dict, alias="compliantCounts")
    observations: List[ObservationPayload] = Field(default_factory=list)
    config: Optional[ScoringConfigPayload] = None

    def to_session(self, default_config: ScoringConfig) -> InspectionSession:
        return session_from_dict(
            self.model_dump(by_alias=True, exclude_none=True),
            default_config,
        )
