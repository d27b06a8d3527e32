"""
SiteAudit Loader

Decodes session and scoring-config documents into model values:
- session_from_dict(): the capture app's persisted camelCase JSON
- session_to_dict(): the inverse, for fixtures and round trips
- load_session(): a JSON session file
- load_scoring_config(): a YAML scoring config file

Missing optional keys take empty / zero defaults, and a partial config is
merged over the defaults field by field, so an older saved session still
loads. Only required-field violations are errors.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .exceptions import InputInvalidError, SchemaInvalidError
from .model import (
    DEFAULT_SCORING_CONFIG,
    NON_MAINTENANCE_CATEGORY,
    InspectionSession,
    Observation,
    ScoringConfig,
    SiteType,
)


# =============================================================================
# SCORING CONFIG
# =============================================================================

def scoring_config_from_dict(
    data: Optional[Mapping[str, Any]],
    base: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoringConfig:
    """
    Build a ScoringConfig from a mapping, merging over ``base``.

    Accepts either camelCase (capture app) or snake_case (YAML) keys.
    The sentinel category and duplicates are dropped from the category list.
    """
    if data is None:
        return base
    if not isinstance(data, Mapping):
        raise SchemaInvalidError("Scoring config must be a mapping")

    def pick(snake: str, camel: str, default: Any) -> Any:
        if snake in data and data[snake] is not None:
            return data[snake]
        if camel in data and data[camel] is not None:
            return data[camel]
        return default

    categories = pick("categories", "categories", base.categories)
    if not isinstance(categories, (list, tuple)):
        raise SchemaInvalidError("categories must be a list")

    try:
        return ScoringConfig(
            sis_threshold=float(pick("sis_threshold", "sisThreshold", base.sis_threshold)),
            compliance_threshold=float(
                pick("compliance_threshold", "complianceThreshold", base.compliance_threshold)
            ),
            categories=_clean_categories(categories),
            debug_mode=bool(pick("debug_mode", "debugMode", base.debug_mode)),
        )
    except (TypeError, ValueError) as e:
        raise InputInvalidError(f"Invalid scoring config: {e}")


def _clean_categories(categories: List[Any]) -> tuple:
    cleaned: List[str] = []
    for category in categories:
        name = str(category).strip() if category is not None else ""
        if not name or name == NON_MAINTENANCE_CATEGORY or name in cleaned:
            continue
        cleaned.append(name)
    return tuple(cleaned)


def load_scoring_config(
    path: Union[str, Path],
    base: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoringConfig:
    """Load a scoring config from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise SchemaInvalidError(f"Scoring config not found: {path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SchemaInvalidError(f"Invalid YAML in {path.name}: {e}")

    if data is None:
        return base
    if not isinstance(data, dict):
        raise SchemaInvalidError("Scoring config must be a YAML mapping")

    return scoring_config_from_dict(data.get("scoring", data), base)


# =============================================================================
# OBSERVATIONS
# =============================================================================

def observation_from_dict(data: Mapping[str, Any]) -> Observation:
    """Build an Observation from the capture app's camelCase record."""
    if not isinstance(data, Mapping):
        raise SchemaInvalidError("Observation must be a mapping")

    photos = data.get("photos") or []
    if not isinstance(photos, (list, tuple)):
        raise SchemaInvalidError("photos must be a list")

    asset_id = data.get("assetId")
    try:
        raw_count = data.get("nonComplianceCount")
        count = 1 if raw_count is None else int(raw_count)
        timestamp = int(data.get("timestamp") or 0)
    except (TypeError, ValueError) as e:
        raise InputInvalidError(
            f"Invalid numeric field on observation: {e}",
            details={"observation_id": data.get("id")},
        )

    return Observation(
        id=str(data.get("id") or ""),
        category=str(data.get("category") or ""),
        asset_name=str(data.get("assetName") or ""),
        asset_id=str(asset_id) if asset_id not in (None, "") else None,
        risk=data.get("risk") or "Low",
        non_compliance_count=count,
        previously_seen=_parse_yes_no(data.get("previouslySeen")),
        feedback_notes=_text(data.get("feedbackNotes")),
        short_term_fix=_text(data.get("shortTermFix")),
        long_term_fix=_text(data.get("longTermFix")),
        action_owner=_text(data.get("actionOwner")),
        notes=_text(data.get("notes")),
        photos=tuple(str(p) for p in photos if p),
        timestamp=timestamp,
    )


def observation_to_dict(obs: Observation) -> Dict[str, Any]:
    return {
        "id": obs.id,
        "category": obs.category,
        "assetName": obs.asset_name,
        "assetId": obs.asset_id,
        "risk": obs.risk.value,
        "nonComplianceCount": obs.non_compliance_count,
        "previouslySeen": "Yes" if obs.previously_seen else "No",
        "shortTermFix": obs.short_term_fix,
        "longTermFix": obs.long_term_fix,
        "feedbackNotes": obs.feedback_notes,
        "actionOwner": obs.action_owner,
        "notes": obs.notes,
        "photos": list(obs.photos),
        "timestamp": obs.timestamp,
    }


def _parse_yes_no(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"yes", "y", "true", "1"}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


# =============================================================================
# SESSIONS
# =============================================================================

def session_from_dict(
    data: Mapping[str, Any],
    default_config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> InspectionSession:
    """
    Build an InspectionSession from the capture app's persisted JSON.

    Raises:
        SchemaInvalidError: If the document or a section has the wrong shape
        InputInvalidError: If a value violates a model invariant
    """
    if not isinstance(data, Mapping):
        raise SchemaInvalidError("Session must be a JSON object")

    tally = data.get("compliantCounts") or {}
    if not isinstance(tally, Mapping):
        raise SchemaInvalidError("compliantCounts must be an object")

    observations = data.get("observations") or []
    if not isinstance(observations, (list, tuple)):
        raise SchemaInvalidError("observations must be a list")

    return InspectionSession(
        inspector_name=_text(data.get("userName")),
        site_name=_text(data.get("siteName")),
        site_type=data.get("siteType") or SiteType.WATER_TREATMENT,
        audit_date=_text(data.get("date")),
        compliant_tally=tally,
        observations=tuple(observation_from_dict(o) for o in observations),
        config=scoring_config_from_dict(data.get("config"), default_config),
    )


def session_to_dict(session: InspectionSession) -> Dict[str, Any]:
    return {
        "userName": session.inspector_name,
        "siteName": session.site_name,
        "siteType": session.site_type.value,
        "date": session.audit_date,
        "compliantCounts": dict(session.compliant_tally),
        "observations": [observation_to_dict(o) for o in session.observations],
        "config": {
            "sisThreshold": session.config.sis_threshold,
            "complianceThreshold": session.config.compliance_threshold,
            "categories": list(session.config.categories),
            "debugMode": session.config.debug_mode,
        },
    }


def load_session(
    path: Union[str, Path],
    default_config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> InspectionSession:
    """Load a session from a JSON file."""
    path = Path(path)
    if not path.exists():
        raise SchemaInvalidError(f"Session file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SchemaInvalidError(f"Invalid JSON in {path.name}: {e}")

    return session_from_dict(data, default_config)
