"""Shared pytest configuration: path setup for service & src imports, common fixtures."""

import sys
from pathlib import Path

import pytest

# Repository root
_ROOT = Path(__file__).resolve().parent.parent

# Allow ``from siteaudit import ...`` (src is the package root)
sys.path.insert(0, str(_ROOT / "src"))

# Allow ``from service.routers import ...``
sys.path.insert(0, str(_ROOT))

from siteaudit.model import (  # noqa: E402
    NON_MAINTENANCE_CATEGORY,
    InspectionSession,
    Observation,
    RiskLevel,
    ScoringConfig,
    SiteType,
)

# 1x1 PNG
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
VALID_PHOTO = f"data:image/png;base64,{PNG_BASE64}"
NOT_BASE64_PHOTO = "data:image/jpeg;base64,@@not*base64@@"
NOT_AN_IMAGE_PHOTO = "data:image/jpeg;base64,aGVsbG8gd29ybGQ="  # "hello world"


def make_observation(
    obs_id: str,
    category: str = "Pumps",
    asset_name: str = "",
    count: int = 1,
    photos=(),
    **kwargs,
) -> Observation:
    return Observation(
        id=obs_id,
        category=category,
        asset_name=asset_name or f"Asset {obs_id}",
        non_compliance_count=count,
        photos=tuple(photos),
        **kwargs,
    )


def make_session(
    tally=None,
    observations=(),
    categories=("Pumps", "Motors"),
    **kwargs,
) -> InspectionSession:
    return InspectionSession(
        inspector_name=kwargs.pop("inspector_name", "J. Smith"),
        site_name=kwargs.pop("site_name", "Riverside WTW"),
        site_type=kwargs.pop("site_type", SiteType.WATER_TREATMENT),
        audit_date=kwargs.pop("audit_date", "14/03/2026"),
        compliant_tally=tally or {},
        observations=tuple(observations),
        config=ScoringConfig(categories=tuple(categories), **kwargs),
    )


@pytest.fixture
def empty_session() -> InspectionSession:
    return make_session()


@pytest.fixture
def pumps_session() -> InspectionSession:
    """Nine passes and one single-defect observation in Pumps."""
    return make_session(
        tally={"Pumps": 9},
        observations=[make_observation("obs-1", "Pumps", "Raw water pump 1")],
        categories=("Pumps",),
    )


@pytest.fixture
def mixed_session() -> InspectionSession:
    """Maintenance and non-maintenance findings with photos."""
    return make_session(
        tally={"Pumps": 6, "Motors": 2},
        observations=[
            make_observation(
                "a", "Pumps", "Duty pump", count=2, risk=RiskLevel.HIGH,
                photos=[VALID_PHOTO], previously_seen=True,
                feedback_notes="Seal weeping", action_owner="Ops",
            ),
            make_observation("b", NON_MAINTENANCE_CATEGORY, "Handrail", count=3),
            make_observation("c", "Motors", "Blower motor", risk=RiskLevel.MEDIUM),
        ],
    )
