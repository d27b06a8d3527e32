"""
Data Model Tests

Covers:
- Observation field validation
- ScoringConfig category rules (sentinel reserved, no duplicates)
- InspectionSession coercion and tally clamping
- Edits return new sessions and leave the original untouched
"""

import pytest

from siteaudit.exceptions import InputInvalidError
from siteaudit.loader import observation_from_dict
from siteaudit.model import (
    DEFAULT_CATEGORIES,
    MAX_PHOTOS_PER_OBSERVATION,
    NON_MAINTENANCE_CATEGORY,
    RISK_COLORS,
    InspectionSession,
    Observation,
    RiskLevel,
    ScoringConfig,
    SiteType,
    risk_color,
)

from conftest import VALID_PHOTO, make_observation, make_session


class TestObservation:
    """Observation construction and validation."""

    def test_defaults(self):
        obs = make_observation("a")
        assert obs.risk == RiskLevel.LOW
        assert obs.non_compliance_count == 1
        assert obs.previously_seen is False
        assert obs.photos == ()

    def test_risk_coerced_from_wire_value(self):
        obs = make_observation("a", risk="Hi")
        assert obs.risk is RiskLevel.HIGH

    def test_unknown_risk_rejected(self):
        with pytest.raises(InputInvalidError):
            make_observation("a", risk="Critical")

    def test_blank_asset_name_rejected(self):
        with pytest.raises(InputInvalidError):
            Observation(id="a", category="Pumps", asset_name="   ")

    def test_empty_id_rejected(self):
        with pytest.raises(InputInvalidError):
            Observation(id="", category="Pumps", asset_name="Pump")

    @pytest.mark.parametrize("count", [0, -1, True, 1.5])
    def test_bad_count_rejected(self, count):
        with pytest.raises(InputInvalidError):
            make_observation("a", count=count)

    def test_photo_limit(self):
        make_observation("a", photos=[VALID_PHOTO] * MAX_PHOTOS_PER_OBSERVATION)
        with pytest.raises(InputInvalidError):
            make_observation("a", photos=[VALID_PHOTO] * (MAX_PHOTOS_PER_OBSERVATION + 1))

    def test_photos_become_tuple(self):
        obs = make_observation("a", photos=[VALID_PHOTO])
        assert isinstance(obs.photos, tuple)

    def test_is_non_maintenance(self):
        assert make_observation("a", NON_MAINTENANCE_CATEGORY).is_non_maintenance
        assert not make_observation("a", "Pumps").is_non_maintenance

    def test_frozen(self):
        obs = make_observation("a")
        with pytest.raises(AttributeError):
            obs.asset_name = "Other"


class TestRiskColor:
    def test_known_levels(self):
        assert risk_color(RiskLevel.LOW) == "EAB308"
        assert risk_color("Med") == "F97316"
        assert risk_color(RiskLevel.HIGH) == "EF4444"

    def test_every_level_has_a_color(self):
        assert set(RISK_COLORS) == set(RiskLevel)

    def test_unknown_risk_from_loader_rejected(self):
        with pytest.raises(InputInvalidError):
            observation_from_dict({
                "id": "a", "category": "Pumps", "assetName": "Pump", "risk": "Critical",
            })


class TestScoringConfig:
    """Category list rules."""

    def test_defaults(self):
        config = ScoringConfig()
        assert config.categories == DEFAULT_CATEGORIES
        assert config.sis_threshold == 0.5
        assert config.compliance_threshold == 85
        assert config.debug_mode is False

    def test_sentinel_rejected(self):
        with pytest.raises(InputInvalidError):
            ScoringConfig(categories=("Pumps", NON_MAINTENANCE_CATEGORY))

    def test_duplicates_rejected(self):
        with pytest.raises(InputInvalidError) as exc_info:
            ScoringConfig(categories=("Pumps", "Motors", "Pumps"))
        assert exc_info.value.details["duplicates"] == ["Pumps"]

    def test_empty_name_rejected(self):
        with pytest.raises(InputInvalidError):
            ScoringConfig(categories=("Pumps", ""))

    def test_order_preserved(self):
        config = ScoringConfig(categories=["Motors", "Pumps"])
        assert config.categories == ("Motors", "Pumps")


class TestInspectionSession:
    """Session construction."""

    def test_start_is_empty(self):
        session = InspectionSession.start(
            inspector_name="A. Jones",
            site_name="Hilltop STW",
            site_type="STW",
            audit_date="01/02/2026",
        )
        assert session.site_type is SiteType.SEWAGE_TREATMENT
        assert dict(session.compliant_tally) == {}
        assert session.observations == ()

    def test_unknown_site_type_rejected(self):
        with pytest.raises(InputInvalidError):
            make_session(site_type="XYZ")

    def test_negative_tally_clamped(self):
        session = make_session(tally={"Pumps": -4})
        assert session.tally_for("Pumps") == 0

    def test_non_integer_tally_rejected(self):
        with pytest.raises(InputInvalidError):
            make_session(tally={"Pumps": "lots"})

    def test_tally_is_read_only(self):
        session = make_session(tally={"Pumps": 1})
        with pytest.raises(TypeError):
            session.compliant_tally["Pumps"] = 5

    def test_duplicate_observation_ids_rejected(self):
        with pytest.raises(InputInvalidError):
            make_session(observations=[make_observation("a"), make_observation("a")])

    def test_partition(self, mixed_session):
        assert [o.id for o in mixed_session.maintenance_observations()] == ["a", "c"]
        assert [o.id for o in mixed_session.non_maintenance_observations()] == ["b"]

    def test_unconfigured_category_in_neither_partition(self):
        session = make_session(observations=[make_observation("v", "Valves")])
        assert session.maintenance_observations() == ()
        assert session.non_maintenance_observations() == ()


class TestSessionEdits:
    """Every edit returns a new session."""

    def test_adjust_tally(self, empty_session):
        updated = empty_session.adjust_tally("Pumps", 3).adjust_tally("Pumps", -1)
        assert updated.tally_for("Pumps") == 2
        assert empty_session.tally_for("Pumps") == 0

    def test_adjust_tally_clamps_at_zero(self, empty_session):
        assert empty_session.adjust_tally("Pumps", -2).tally_for("Pumps") == 0

    def test_upsert_appends(self, pumps_session):
        updated = pumps_session.upsert_observation(make_observation("obs-2"))
        assert [o.id for o in updated.observations] == ["obs-1", "obs-2"]
        assert len(pumps_session.observations) == 1

    def test_upsert_replaces_in_place(self, mixed_session):
        replacement = make_observation("a", "Pumps", "Standby pump", count=4)
        updated = mixed_session.upsert_observation(replacement)
        assert [o.id for o in updated.observations] == ["a", "b", "c"]
        assert updated.observations[0].asset_name == "Standby pump"
        assert mixed_session.observations[0].asset_name == "Duty pump"

    def test_remove(self, mixed_session):
        updated = mixed_session.remove_observation("b")
        assert [o.id for o in updated.observations] == ["a", "c"]

    def test_remove_unknown_is_noop(self, mixed_session):
        assert mixed_session.remove_observation("zzz") == mixed_session

    def test_with_config(self, empty_session):
        config = ScoringConfig(categories=("Compressors",))
        assert empty_session.with_config(config).config.categories == ("Compressors",)
