"""
CarryOn Rules Engine

Deterministic decision engine: (category, facts) -> Verdict.

Sources: IATA Dangerous Goods Regulations 2.3 (batteries),
EU Regulation 2015/1998 (liquids, prohibited articles).

Principles:
1. The engine is the only producer of verdicts
2. Facts are the only input besides the category; nothing else can
   influence the outcome
3. A missing or malformed fact selects the stricter band
4. Evaluation never raises; unknown categories get a conservative fallback
"""

from __future__ import annotations

import math
from collections.abc import Mapping as MappingABC
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from carryon.core.catalog import (
    DEFAULT_CATALOG,
    BatteryMount,
    Category,
    CategoryCatalog,
    RuleFamily,
)
from carryon.core.entities import BaggageVerdict, Verdict, VerdictStatus
from carryon.core.facts import EnergyFacts, LengthFacts, LiquidKind, VolumeFacts

ALLOWED = VerdictStatus.ALLOWED
CONDITIONAL = VerdictStatus.CONDITIONAL
NOT_ALLOWED = VerdictStatus.NOT_ALLOWED

# Thresholds. Changing any of these is a policy change.
SPARE_BATTERY_LIMIT_WH = 100.0
BATTERY_HARD_LIMIT_WH = 160.0
LIQUID_CONTAINER_LIMIT_ML = 100.0
BLADE_LIMIT_CM = 6.0

SPARE_UNITS_SMALL = 20
SPARE_UNITS_LARGE = 2


def _verdict(
    hand: VerdictStatus,
    hand_message: str,
    checked: VerdictStatus,
    checked_message: str,
    hand_tip: Optional[str] = None,
    checked_tip: Optional[str] = None,
) -> Verdict:
    return Verdict(
        hand_baggage=BaggageVerdict(hand, hand_message, hand_tip),
        checked_baggage=BaggageVerdict(checked, checked_message, checked_tip),
    )


FALLBACK_VERDICT = _verdict(
    CONDITIONAL,
    "This item could not be classified. Please check with airport security or "
    "your airline before travelling.",
    CONDITIONAL,
    "Please check with your airline or airport security for this item.",
    hand_tip="Contact your airline's customer service or the airport's security "
    "information desk.",
)


# ============================================
# Static rules
# ============================================

STATIC_RULES: Mapping[str, Verdict] = MappingProxyType({
    "lighters": _verdict(
        NOT_ALLOWED,
        "Lighters are not allowed in hand baggage. However, you may carry ONE "
        "lighter on your person (e.g. in your trouser pocket or jacket).",
        NOT_ALLOWED,
        "Lighters are prohibited in checked baggage. Only one lighter carried on "
        "your person is allowed.",
        hand_tip="One regular (non-torch) lighter on your person is allowed. Torch "
        "lighters and refuelling cartridges are fully prohibited.",
    ),
    "matches": _verdict(
        NOT_ALLOWED,
        "Matches are not allowed in hand baggage. However, one small box of safety "
        "matches on your person is allowed.",
        NOT_ALLOWED,
        "All types of matches are prohibited in checked baggage.",
        hand_tip="Strike-anywhere matches are fully prohibited.",
    ),
    "e-cigarettes": _verdict(
        ALLOWED,
        "E-cigarettes, vapes and similar devices are only allowed in hand baggage. "
        "Do not use, charge, or activate them on board the aircraft.",
        NOT_ALLOWED,
        "E-cigarettes and vaping devices are never allowed in checked baggage due "
        "to the fire risk of their lithium battery.",
        checked_tip="Always carry your vaping device in hand baggage.",
    ),
    "electronics": _verdict(
        ALLOWED,
        "Electronic devices are allowed in hand baggage. Laptops and large tablets "
        "must be placed separately in a tray at the security checkpoint.",
        CONDITIONAL,
        "Allowed in checked baggage. The device must be completely switched off "
        "(not standby or sleep) and protected against accidental activation.",
        checked_tip="Carry valuable electronics in hand baggage to reduce theft and "
        "damage risk.",
    ),
    "smart-luggage-removable": _verdict(
        ALLOWED,
        "Smart luggage with a removable battery is allowed as hand baggage if it "
        "meets the airline's size requirements.",
        CONDITIONAL,
        "Smart luggage is allowed in checked baggage only if the battery is removed "
        "before check-in. The removed battery must be carried in hand baggage.",
        checked_tip="Remove the battery before arriving at the check-in counter and "
        "tape its exposed terminals.",
    ),
    "smart-luggage-permanent": _verdict(
        NOT_ALLOWED,
        "Smart luggage with a permanently integrated (non-removable) battery is not "
        "accepted.",
        NOT_ALLOWED,
        "Smart luggage with a built-in, non-removable battery is not accepted in "
        "checked baggage.",
        hand_tip="Use luggage with a removable battery.",
    ),
    "luggage-trackers": _verdict(
        ALLOWED,
        "Luggage trackers (AirTag, Tile, SmartTag, etc.) are allowed in hand baggage.",
        ALLOWED,
        "Luggage trackers are allowed in checked baggage.",
    ),
    "electronic-bag-tags": _verdict(
        ALLOWED,
        "Electronic bag tags are allowed in hand baggage.",
        ALLOWED,
        "Electronic bag tags are allowed in checked baggage.",
    ),
    "blunt-objects": _verdict(
        NOT_ALLOWED,
        "Blunt objects that could be used as weapons (baseball bats, golf clubs, "
        "cricket bats, hammers) are prohibited in hand baggage.",
        ALLOWED,
        "Allowed in checked baggage.",
        hand_tip="Pack in checked baggage.",
    ),
    "sports-equipment": _verdict(
        NOT_ALLOWED,
        "Sports equipment that could cause injury (rackets, ski poles, fishing rods, "
        "hockey sticks) is not allowed in hand baggage.",
        ALLOWED,
        "Allowed in checked baggage. Check your airline's size, weight and sports "
        "equipment policies.",
        hand_tip="Pack in checked baggage.",
    ),
    "fireworks": _verdict(
        NOT_ALLOWED,
        "Fireworks, sparklers and pyrotechnics are prohibited in all baggage and "
        "cannot be transported by air.",
        NOT_ALLOWED,
        "Fireworks are prohibited in all baggage.",
        hand_tip="There are no exceptions. Leave these items at home.",
    ),
    "fuel-paste": _verdict(
        NOT_ALLOWED,
        "Fuel paste, camping fuel, gasoline, lighter fluid and other flammable "
        "liquids are prohibited in all baggage.",
        NOT_ALLOWED,
        "Flammable liquids are prohibited in all baggage.",
        hand_tip="Buy fuel at your destination.",
    ),
    "toxic-corrosive": _verdict(
        NOT_ALLOWED,
        "Toxic, corrosive and poisonous substances (acids, bleach, strong cleaning "
        "agents, poisons) are prohibited in all baggage.",
        NOT_ALLOWED,
        "Prohibited in all baggage.",
    ),
    "gas-cartridges": _verdict(
        NOT_ALLOWED,
        "Compressed gas cylinders, gas cartridges and aerosols with flammable or "
        "toxic gas are prohibited in all baggage.",
        NOT_ALLOWED,
        "Prohibited in all baggage.",
        hand_tip="Small non-flammable personal care aerosols (deodorant, etc.) fall "
        "under the liquids rule instead.",
    ),
    "paints": _verdict(
        NOT_ALLOWED,
        "Paints, varnishes, lacquers and flammable solvents (acetone, turpentine, "
        "paint thinner) are prohibited in all baggage.",
        NOT_ALLOWED,
        "Prohibited in all baggage.",
        hand_tip="Buy paints and solvents at your destination.",
    ),
})


# ============================================
# Family evaluators
# ============================================

def _energy_text(watt_hours: Optional[float]) -> str:
    if watt_hours is None:
        return ("The battery capacity could not be determined, so the strictest "
                f"limit (over {BATTERY_HARD_LIMIT_WH:g} Wh) is applied. ")
    if math.isinf(watt_hours):
        return f"This battery is rated far above {BATTERY_HARD_LIMIT_WH:g} Wh. "
    return f"This battery is rated at {watt_hours:.1f} Wh. "


def evaluate_energy(category: Category, facts: Mapping[str, Any]) -> Verdict:
    """Batteries, decided by watt-hours and whether the battery is spare."""
    energy = EnergyFacts.from_facts(facts, implied_mount=category.battery_mount)
    wh = energy.watt_hours
    prefix = _energy_text(wh)

    if wh is None or wh > BATTERY_HARD_LIMIT_WH:
        if energy.mount == BatteryMount.INSTALLED:
            return _verdict(
                NOT_ALLOWED,
                prefix + "Devices with batteries over 160 Wh are prohibited in all "
                "baggage.",
                NOT_ALLOWED,
                "Devices with batteries over 160 Wh are prohibited in all baggage.",
                hand_tip="Contact your airline. Such devices may only travel as "
                "cargo under dangerous goods rules.",
            )
        return _verdict(
            NOT_ALLOWED,
            prefix + "Spare batteries over 160 Wh are prohibited in all baggage. "
            "This is a hard limit with no exceptions.",
            NOT_ALLOWED,
            "Spare batteries over 160 Wh are prohibited in all baggage.",
            hand_tip="Leave this item at home. No airline can grant an exemption "
            "for spare batteries above 160 Wh.",
        )

    if energy.mount == BatteryMount.INSTALLED:
        if wh > SPARE_BATTERY_LIMIT_WH:
            hand_message = (prefix + "Devices with batteries of 100-160 Wh are "
                            "allowed in hand baggage. Place the device separately in "
                            "a tray at security screening.")
        else:
            hand_message = (prefix + "Phones, tablets, cameras and similar devices "
                            "are allowed in hand baggage.")
        return _verdict(
            ALLOWED,
            hand_message,
            CONDITIONAL,
            "Allowed in checked baggage only if the device is completely switched "
            "off (not sleep or hibernate) and protected against damage and "
            "accidental activation.",
            checked_tip="Keep valuable electronics in hand baggage.",
        )

    if wh > SPARE_BATTERY_LIMIT_WH:
        return _verdict(
            CONDITIONAL,
            prefix + f"Spare batteries of 100-160 Wh are allowed in hand baggage "
            f"only. Maximum {SPARE_UNITS_LARGE} units per person. Prior airline "
            "approval is mandatory. Exposed terminals must be taped or individually "
            "protected.",
            NOT_ALLOWED,
            "Spare batteries and power banks are never allowed in checked baggage, "
            "regardless of capacity.",
            hand_tip="Contact your airline before travelling. Without prior approval "
            "the battery may be confiscated at security.",
            checked_tip="Always carry spare batteries in your hand baggage.",
        )

    return _verdict(
        CONDITIONAL,
        prefix + "Power banks and spare batteries up to 100 Wh are allowed in hand "
        f"baggage. Maximum {SPARE_UNITS_SMALL} spare batteries in total. Exposed "
        "terminals must be taped or each battery individually protected against "
        "short circuits.",
        NOT_ALLOWED,
        "Spare batteries and power banks are never allowed in checked baggage.",
        hand_tip="Use the original packaging or a small pouch. Do not pack loose in "
        "a bag.",
        checked_tip="Always carry spare batteries in your hand baggage.",
    )


def evaluate_volume(category: Category, facts: Mapping[str, Any]) -> Verdict:
    """Liquids, gels and aerosols, decided by kind and container volume."""
    liquid = VolumeFacts.from_facts(facts)
    volume = liquid.volume_ml
    over_limit = volume is None or volume > LIQUID_CONTAINER_LIMIT_ML

    if liquid.kind == LiquidKind.MEDICATION:
        return _verdict(
            CONDITIONAL,
            "Medication needed during the journey is allowed in hand baggage, "
            "including containers over 100 ml.",
            ALLOWED,
            "Medication is allowed in checked baggage.",
            hand_tip="Carry a prescription, medical certificate or doctor's letter. "
            "Be prepared for additional security checks.",
        )

    if liquid.kind == LiquidKind.BABY_FOOD:
        return _verdict(
            ALLOWED,
            "Baby food and special dietary food may exceed 100 ml in hand baggage in "
            "quantities needed for the journey.",
            ALLOWED,
            "Allowed in checked baggage without restriction.",
            hand_tip="Carry only the amount needed for the trip. Security staff may "
            "ask you to open or taste it.",
        )

    if liquid.kind == LiquidKind.DUTY_FREE:
        if over_limit:
            hand_message = ("Duty-free liquids over 100 ml are allowed only inside a "
                            "sealed, tamper-evident security bag together with the "
                            "purchase receipt.")
        else:
            hand_message = ("Duty-free liquids up to 100 ml are allowed when kept in "
                            "the sealed, tamper-evident security bag with the purchase "
                            "receipt.")
        return _verdict(
            CONDITIONAL,
            hand_message,
            ALLOWED,
            "Allowed in checked baggage without size restriction.",
            hand_tip="Do not open the sealed bag before your final destination. "
            "Connecting airports may apply additional rules.",
        )

    checked = "Liquids in any quantity are allowed in checked baggage."
    if over_limit:
        if volume is None:
            hand_message = ("The container volume could not be determined, so it is "
                            "treated as over 100 ml. Containers over 100 ml are not "
                            "allowed in hand baggage.")
        else:
            hand_message = (f"A {volume:g} ml container exceeds the 100 ml limit. "
                            "Containers over 100 ml are not allowed in hand baggage.")
        return _verdict(
            NOT_ALLOWED,
            hand_message,
            ALLOWED,
            checked,
            hand_tip="Transfer to a container of 100 ml or less, or pack it in "
            "checked baggage.",
        )

    return _verdict(
        CONDITIONAL,
        "Allowed in hand baggage. Each container must be 100 ml or less, and all "
        "containers must fit inside one transparent, resealable plastic bag of at "
        "most 1 litre. One bag per passenger.",
        ALLOWED,
        checked,
        hand_tip="The bag must close properly; do not overfill it.",
    )


def evaluate_length(category: Category, facts: Mapping[str, Any]) -> Verdict:
    """Bladed items and tools, decided by blade length."""
    length = LengthFacts.from_facts(facts).blade_length_cm
    label = category.item_label or category.name

    if length is None or length >= BLADE_LIMIT_CM:
        if length is None:
            hand_message = (f"The blade length could not be determined, so it is "
                            f"treated as 6 cm or longer. {label} with blades 6 cm or "
                            "longer are prohibited in hand baggage.")
        else:
            hand_message = (f"{label} with blades 6 cm or longer are prohibited in "
                            "hand baggage.")
        return _verdict(
            NOT_ALLOWED,
            hand_message,
            ALLOWED,
            "Allowed in checked baggage. Blades should be sheathed or wrapped to "
            "protect baggage handlers.",
            hand_tip="Pack it in checked baggage. Items surrendered at security "
            "cannot be returned.",
        )

    return _verdict(
        ALLOWED,
        f"{label} with blades under 6 cm are generally allowed in hand baggage. "
        "Security officers may use discretion; when in doubt, pack in checked "
        "baggage.",
        ALLOWED,
        "Allowed in checked baggage.",
    )


FamilyEvaluator = Callable[[Category, Mapping[str, Any]], Verdict]


class RuleEngine:
    """
    Deterministic rules engine.

    Dispatches on the category's rule family; each family has exactly
    one evaluator. The catalog and static table are injected and never
    modified.

    Example usage:
        engine = RuleEngine()
        verdict = engine.evaluate("battery-spare", {"capacity_mAh": 20000, "voltage_V": 3.7})

        verdict.hand_baggage.status     # VerdictStatus.CONDITIONAL
        verdict.checked_baggage.status  # VerdictStatus.NOT_ALLOWED
    """

    def __init__(
        self,
        catalog: Optional[CategoryCatalog] = None,
        static_rules: Optional[Mapping[str, Verdict]] = None,
    ) -> None:
        self.catalog = catalog or DEFAULT_CATALOG
        self._static_rules: Dict[str, Verdict] = dict(
            STATIC_RULES if static_rules is None else static_rules
        )
        self._evaluators: Dict[RuleFamily, FamilyEvaluator] = {
            RuleFamily.ENERGY: evaluate_energy,
            RuleFamily.VOLUME: evaluate_volume,
            RuleFamily.LENGTH: evaluate_length,
            RuleFamily.STATIC: self._evaluate_static,
        }

        unhandled = set(RuleFamily) - set(self._evaluators)
        if unhandled:
            raise ValueError(f"No evaluator for rule families: {sorted(f.value for f in unhandled)}")

        for category in self.catalog.list_categories():
            if category.direct_rule and category.id not in self._static_rules:
                raise ValueError(f"Static category without a rule: {category.id!r}")

    def evaluate(self, category_id: Optional[str], facts: Optional[Mapping[str, Any]] = None) -> Verdict:
        """
        Evaluates a category against a fact map.

        Args:
            category_id: Category id or alias
            facts: Fact values keyed by fact key; unknown keys are ignored

        Returns:
            Verdict for hand and checked baggage
        """
        category = self.catalog.get_category(category_id)
        if category is None:
            return FALLBACK_VERDICT

        if not isinstance(facts, MappingABC):
            facts = {}

        return self._evaluators[category.family](category, facts)

    def _evaluate_static(self, category: Category, facts: Mapping[str, Any]) -> Verdict:
        return self._static_rules.get(category.id, FALLBACK_VERDICT)


_DEFAULT_ENGINE = RuleEngine()


def evaluate(category_id: Optional[str], facts: Optional[Mapping[str, Any]] = None) -> Verdict:
    """Evaluates with the default catalog and rules."""
    return _DEFAULT_ENGINE.evaluate(category_id, facts)
