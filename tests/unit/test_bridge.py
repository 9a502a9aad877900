"""
Unit Tests for the Extraction Bridge

Tests for fact projection and the question gate.
"""

import json

import pytest

from carryon.core.bridge import (
    VERDICT_KEYS,
    can_resolve_without_questions,
    strip_verdict_keys,
    to_facts,
)
from carryon.core.entities import Confidence, Extraction


class TestToFacts:
    """Tests for to_facts."""

    def test_derives_energy(self, bridge, power_bank_extraction):
        """Tests that Wh is derived from mAh and V."""
        facts = bridge.to_facts("battery-spare", power_bank_extraction)

        assert facts == {"capacity_mAh": 20000.0, "voltage_V": 3.7, "energy_Wh": 74.0}

    def test_drops_unrelated_keys(self, bridge):
        """Tests that facts for other families are dropped."""
        extraction = Extraction(detected_facts={"volume_ml": 250, "blade_length_cm": 4, "brand": "Acme"})
        assert bridge.to_facts("liquids", extraction) == {"volume_ml": 250.0}

    def test_drops_malformed_values(self, bridge):
        """Tests that unusable values are dropped."""
        extraction = Extraction(detected_facts={"blade_length_cm": "unknown"})
        assert bridge.to_facts("knife", extraction) == {}

    def test_strips_verdict_keys(self, bridge):
        """Tests that classifier verdict fields never become facts."""
        extraction = Extraction(detected_facts={
            "status": "allowed",
            "Verdict": "allowed",
            "handBaggage": "allowed",
            "volume_ml": 50,
        })
        facts = bridge.to_facts("liquids", extraction)

        assert facts == {"volume_ml": 50.0}
        assert not {k.lower() for k in facts} & VERDICT_KEYS

    def test_liquid_kind_not_taken_from_classifier(self, bridge):
        """Tests that an exemption cannot be claimed by the classifier."""
        extraction = Extraction(detected_facts={"volume_ml": 500, "liquid_kind": "medication"})
        assert "liquid_kind" not in bridge.to_facts("liquids", extraction)

    def test_raw_payload_accepted(self, bridge):
        """Tests passing a raw classifier payload."""
        payload = {"detectedFacts": {"blade_length_cm": 4.5}, "verdict": "allowed"}
        assert bridge.to_facts("knife", payload) == {"blade_length_cm": 4.5}

    def test_static_and_unknown(self, bridge):
        """Tests categories without facts."""
        extraction = Extraction(detected_facts={"volume_ml": 50})

        assert bridge.to_facts("lighters", extraction) == {}
        assert bridge.to_facts("nonsense", extraction) == {}
        assert bridge.to_facts("liquids", None) == {}

    def test_extraction_not_modified(self, bridge):
        """Tests that the projection returns a new map."""
        raw = {"volume_ml": 50, "status": "allowed"}
        extraction = Extraction(detected_facts=raw)

        facts = bridge.to_facts("liquids", extraction)
        facts["volume_ml"] = 999

        assert raw == {"volume_ml": 50, "status": "allowed"}


class TestCanResolveWithoutQuestions:
    """Tests for the question gate."""

    def test_complete_battery(self, bridge, power_bank_extraction):
        """Tests that complete energy facts pass."""
        assert bridge.can_resolve_without_questions("battery-spare", power_bank_extraction)

    def test_direct_energy(self, bridge):
        """Tests that a stated Wh is enough."""
        extraction = Extraction(detected_facts={"energy_Wh": 99})
        assert bridge.can_resolve_without_questions("battery-installed", extraction)

    def test_missing_voltage(self, bridge):
        """Tests that a partial battery reading needs questions."""
        extraction = Extraction(detected_facts={"capacity_mAh": 20000})
        assert not bridge.can_resolve_without_questions("battery-spare", extraction)

    @pytest.mark.parametrize("category_id", ["battery-spare", "liquids", "knife", "lighters"])
    def test_missing_critical_data(self, bridge, category_id):
        """Tests that the classifier's incompleteness flag always wins."""
        extraction = Extraction(
            identified=True,
            detected_facts={"capacity_mAh": 20000, "voltage_V": 3.7, "volume_ml": 50, "blade_length_cm": 3},
            missing_critical_data=True,
        )
        assert not bridge.can_resolve_without_questions(category_id, extraction)

    def test_static_category(self, bridge):
        """Tests that static categories never need questions."""
        assert bridge.can_resolve_without_questions("fireworks", Extraction())

    def test_unknown_category(self, bridge, power_bank_extraction):
        """Tests that unknown categories are not resolved."""
        assert not bridge.can_resolve_without_questions("rocket", power_bank_extraction)
        assert not bridge.can_resolve_without_questions(None, power_bank_extraction)

    def test_no_extraction(self, bridge):
        """Tests a missing extraction."""
        assert not bridge.can_resolve_without_questions("lighters", None)

    def test_liquid_volume(self, bridge):
        """Tests that a liquid resolves on volume alone."""
        assert bridge.can_resolve_without_questions("liquids", Extraction(detected_facts={"volume_ml": 75}))
        assert not bridge.can_resolve_without_questions("liquids", Extraction(detected_facts={"volume_ml": 0}))

    @pytest.mark.parametrize("confidence", list(Confidence) + [None])
    def test_confidence_ignored(self, bridge, confidence):
        """Tests that confidence does not affect the gate."""
        complete = Extraction(detected_facts={"blade_length_cm": 3}, confidence=confidence)
        incomplete = Extraction(detected_facts={}, confidence=confidence)

        assert bridge.can_resolve_without_questions("knife", complete)
        assert not bridge.can_resolve_without_questions("knife", incomplete)


class TestOversizedValues:
    """Tests for values beyond float range."""

    def test_huge_product(self, bridge):
        """Tests a capacity and voltage whose product overflows."""
        payload = {
            "identified": True,
            "categoryId": "battery-spare",
            "detectedFacts": {"mah": 1e300, "voltage": 1e300},
        }
        facts = bridge.to_facts("battery-spare", payload)

        assert facts == {"capacity_mAh": 1e300, "voltage_V": 1e300}
        assert bridge.can_resolve_without_questions("battery-spare", payload)

    @pytest.mark.parametrize("detected", [
        {"capacity_mAh": 10 ** 400, "voltage_V": 3.7},
        {"energy_Wh": 10 ** 400},
    ])
    def test_integer_overflow(self, bridge, detected):
        """Tests that integers too large for a float are dropped."""
        extraction = Extraction(detected_facts=detected)

        assert "energy_Wh" not in bridge.to_facts("battery-spare", extraction)
        assert not bridge.can_resolve_without_questions("battery-spare", extraction)

    def test_json_payload(self, bridge):
        """Tests a classifier payload carrying a 400-digit integer."""
        extraction = Extraction.from_dict(json.loads(
            '{"detectedFacts": {"volume_ml": 1' + "0" * 400 + '}}'
        ))

        assert bridge.to_facts("liquids", extraction) == {}
        assert not bridge.can_resolve_without_questions("liquids", extraction)


class TestModuleFunctions:
    """Tests for the module-level helpers."""

    def test_default_bridge(self, power_bank_extraction):
        """Tests the default bridge helpers."""
        assert to_facts("battery-spare", power_bank_extraction)["energy_Wh"] == 74.0
        assert can_resolve_without_questions("battery-spare", power_bank_extraction)

    def test_strip_verdict_keys(self):
        """Tests stripping by normalised key."""
        stripped = strip_verdict_keys({" Result ": "ok", "checked_baggage": "x", "volume_ml": 1, 5: "x"})
        assert stripped == {"volume_ml": 1}
