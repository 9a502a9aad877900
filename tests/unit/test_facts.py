"""
Unit Tests for the Fact Schema

Tests for fact validation, energy calculation and projection.
"""

import math

import pytest

from carryon.core.catalog import BatteryMount, RuleFamily
from carryon.core.facts import (
    BLADE_LENGTH_CM,
    ENERGY_WH,
    LIQUID_KIND,
    VOLUME_ML,
    EnergyFacts,
    FactState,
    LengthFacts,
    LiquidKind,
    VolumeFacts,
    find_spec,
    missing_required,
    normalise_choice,
    parse_number,
    project_facts,
    read_fact,
    resolve_energy,
    round_half_up,
    watt_hours,
    _spec,
)


class TestParseNumber:
    """Tests for parse_number."""

    @pytest.mark.parametrize("raw,expected", [
        (5, 5.0),
        (3.7, 3.7),
        ("20000", 20000.0),
        (" 3,7 ", 3.7),
    ])
    def test_valid(self, raw, expected):
        """Tests accepted values."""
        assert parse_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [
        0, -1, -0.5, "abc", "", None, True, False,
        math.nan, math.inf, "inf", "nan", [1], {"a": 1},
    ])
    def test_invalid(self, raw):
        """Tests rejected values."""
        assert parse_number(raw) is None


class TestNormaliseChoice:
    """Tests for normalise_choice."""

    def test_normalises(self):
        """Tests case and separator normalisation."""
        choices = tuple(k.value for k in LiquidKind)

        assert normalise_choice("Baby-Food", choices) == "baby_food"
        assert normalise_choice("duty free", choices) == "duty_free"
        assert normalise_choice("water", choices) is None
        assert normalise_choice(1, choices) is None


class TestWattHours:
    """Tests for the energy calculation."""

    def test_power_bank(self):
        """Tests a typical power bank."""
        assert watt_hours(20000, 3.7) == 74.0

    def test_rounds_half_up(self):
        """Tests half-up rounding to one decimal."""
        # 27027 * 3.7 / 1000 = 99.9999, 13500 * 3.85 / 1000 = 51.975
        assert watt_hours(27027, 3.7) == 100.0
        assert watt_hours(13500, 3.85) == 52.0
        assert round_half_up(0.25) == 0.3
        assert round_half_up(0.35) == 0.4

    def test_large_values(self):
        """Tests that huge inputs do not fail."""
        assert watt_hours(1e300, 1e10) > 160
        assert watt_hours(1e300, 1e300) == math.inf
        assert watt_hours(1.7e308, 1.7e308) == math.inf
        assert round_half_up(1.7e308) == math.inf

    def test_just_below_ceiling(self):
        """Tests that large but plausible values are still rounded."""
        assert watt_hours(270000000, 3.7) == 999000.0

    def test_integer_overflow(self):
        """Tests that an integer too large for a float is rejected."""
        assert parse_number(10 ** 400) is None
        assert parse_number(-(10 ** 400)) is None


class TestSpecLookup:
    """Tests for the internal schema lookup."""

    def test_known_key(self):
        """Tests a declared fact."""
        assert _spec(RuleFamily.VOLUME, VOLUME_ML).key == VOLUME_ML

    def test_unknown_key_raises(self):
        """Tests that a fact outside the family schema is an error."""
        with pytest.raises(KeyError):
            _spec(RuleFamily.STATIC, VOLUME_ML)
        with pytest.raises(KeyError):
            _spec(RuleFamily.LENGTH, ENERGY_WH)


class TestReadFact:
    """Tests for read_fact."""

    def test_alias(self):
        """Tests reading through an alias."""
        spec = find_spec(RuleFamily.VOLUME, VOLUME_ML)
        reading = read_fact({"volume": "250"}, spec)

        assert reading.is_present
        assert reading.value == 250.0

    def test_absent(self):
        """Tests an absent fact."""
        spec = find_spec(RuleFamily.LENGTH, BLADE_LENGTH_CM)
        assert read_fact({}, spec).state == FactState.ABSENT

    def test_malformed(self):
        """Tests a malformed fact."""
        spec = find_spec(RuleFamily.LENGTH, BLADE_LENGTH_CM)
        reading = read_fact({BLADE_LENGTH_CM: "long"}, spec)

        assert reading.state == FactState.MALFORMED
        assert reading.value is None


class TestResolveEnergy:
    """Tests for resolve_energy."""

    def test_from_components(self):
        """Tests deriving energy from capacity and voltage."""
        assert resolve_energy({"capacity_mAh": 10000, "voltage_V": 3.7}) == (37.0, [])

    def test_direct_value_wins(self):
        """Tests that a stated Wh takes precedence."""
        energy, _ = resolve_energy({"energy_Wh": 99.95, "capacity_mAh": 50000, "voltage_V": 3.7})
        assert energy == 100.0

    def test_missing_components(self):
        """Tests reporting of missing inputs."""
        energy, missing = resolve_energy({"capacity_mAh": 10000, "voltage_V": "?"})

        assert energy is None
        assert missing == ["voltage_V"]


class TestTypedRecords:
    """Tests for the per-family typed records."""

    def test_energy_default_mount_is_spare(self):
        """Tests the stricter default mount."""
        facts = EnergyFacts.from_facts({"energy_Wh": 50})
        assert facts.mount == BatteryMount.SPARE

    def test_installed_category_can_be_made_spare(self):
        """Tests that an explicit spare overrides an installed category."""
        facts = EnergyFacts.from_facts({"battery_mount": "spare"}, implied_mount=BatteryMount.INSTALLED)
        assert facts.mount == BatteryMount.SPARE

    def test_spare_category_cannot_be_made_installed(self):
        """Tests that a spare category stays spare."""
        facts = EnergyFacts.from_facts({"mount": "installed"}, implied_mount=BatteryMount.SPARE)
        assert facts.mount == BatteryMount.SPARE

    def test_volume_defaults(self):
        """Tests missing volume and default kind."""
        facts = VolumeFacts.from_facts({LIQUID_KIND: "unknown"})

        assert facts.volume_ml is None
        assert facts.kind == LiquidKind.REGULAR
        assert facts.missing == (VOLUME_ML,)

    def test_length(self):
        """Tests the length record."""
        assert LengthFacts.from_facts({"blade_length": 4}).blade_length_cm == 4.0
        assert LengthFacts.from_facts({"blade_length_cm": -4}).blade_length_cm is None


class TestProjection:
    """Tests for project_facts and missing_required."""

    def test_drops_unrelated_and_malformed(self):
        """Tests that only valid, relevant facts survive."""
        projected = project_facts(RuleFamily.VOLUME, {"volume": "120", "colour": "red", "liquid_kind": 5})
        assert projected == {VOLUME_ML: 120.0}

    def test_energy_is_derived(self):
        """Tests that energy is filled in."""
        projected = project_facts(RuleFamily.ENERGY, {"mah": 20000, "voltage": 3.7})
        assert projected[ENERGY_WH] == 74.0

    def test_extractable_only(self):
        """Tests that traveller-only facts are skipped."""
        projected = project_facts(
            RuleFamily.VOLUME,
            {"volume_ml": 50, "liquid_kind": "medication"},
            extractable_only=True,
        )
        assert LIQUID_KIND not in projected

    def test_static_projection_empty(self):
        """Tests that static families take no facts."""
        assert project_facts(RuleFamily.STATIC, {"volume_ml": 50}) == {}

    def test_missing_required(self):
        """Tests required fact detection per family."""
        assert missing_required(RuleFamily.ENERGY, {"capacity_mAh": 1000}) == (ENERGY_WH,)
        assert missing_required(RuleFamily.ENERGY, {"energy_Wh": 20}) == ()
        assert missing_required(RuleFamily.VOLUME, {}) == (VOLUME_ML,)
        assert missing_required(RuleFamily.LENGTH, {"blade_length_cm": 3}) == ()
        assert missing_required(RuleFamily.STATIC, {}) == ()
