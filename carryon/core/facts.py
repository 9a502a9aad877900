"""
CarryOn Fact Schema

Declares which facts each rule family reads, their types and units,
and how loosely typed input is validated into typed records.

A fact that is missing, of the wrong type, not finite or not positive is
never coerced into a default number. It is reported as absent and the
rules engine applies the stricter band for it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from carryon.core.catalog import BatteryMount, RuleFamily
from carryon.core.entities import FactMap, FactValue

# Canonical fact keys
CAPACITY_MAH = "capacity_mAh"
VOLTAGE_V = "voltage_V"
ENERGY_WH = "energy_Wh"
BATTERY_MOUNT = "battery_mount"
VOLUME_ML = "volume_ml"
LIQUID_KIND = "liquid_kind"
BLADE_LENGTH_CM = "blade_length_cm"


class FactKind(Enum):
    """Value type of a fact."""
    NUMBER = auto()
    CHOICE = auto()


class LiquidKind(Enum):
    """Kind of liquid, gel or aerosol."""
    REGULAR = "regular"
    MEDICATION = "medication"
    BABY_FOOD = "baby_food"
    DUTY_FREE = "duty_free"


@dataclass(frozen=True)
class FactSpec:
    """
    Declaration of one fact.

    Attributes:
        key: Canonical fact key
        kind: Value type
        unit: Unit of a numeric fact
        choices: Allowed values of a choice fact
        aliases: Alternate keys accepted on input (e.g. raw classifier keys)
        required: Whether the family cannot be decided precisely without it
        extractable: Whether an external classifier may supply it
    """
    key: str
    kind: FactKind
    unit: str = ""
    choices: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    required: bool = False
    extractable: bool = True


FACT_SCHEMAS: Mapping[RuleFamily, Tuple[FactSpec, ...]] = MappingProxyType({
    RuleFamily.ENERGY: (
        FactSpec(ENERGY_WH, FactKind.NUMBER, unit="Wh", aliases=("wh", "watt_hours"), required=True),
        FactSpec(CAPACITY_MAH, FactKind.NUMBER, unit="mAh", aliases=("mah", "capacity_mah")),
        FactSpec(VOLTAGE_V, FactKind.NUMBER, unit="V", aliases=("voltage", "volts")),
        FactSpec(
            BATTERY_MOUNT,
            FactKind.CHOICE,
            choices=tuple(m.value for m in BatteryMount),
            aliases=("mount",),
        ),
    ),
    RuleFamily.VOLUME: (
        FactSpec(VOLUME_ML, FactKind.NUMBER, unit="ml", aliases=("volume",), required=True),
        # An exemption must come from the traveller, not from a classifier
        FactSpec(
            LIQUID_KIND,
            FactKind.CHOICE,
            choices=tuple(k.value for k in LiquidKind),
            aliases=("liquid_type", "kind"),
            extractable=False,
        ),
    ),
    RuleFamily.LENGTH: (
        FactSpec(
            BLADE_LENGTH_CM,
            FactKind.NUMBER,
            unit="cm",
            aliases=("blade_length", "tool_length_cm", "length_cm"),
            required=True,
        ),
    ),
    RuleFamily.STATIC: (),
})


def schema_for(family: RuleFamily) -> Tuple[FactSpec, ...]:
    return FACT_SCHEMAS.get(family, ())


def find_spec(family: RuleFamily, key: str) -> Optional[FactSpec]:
    for spec in schema_for(family):
        if spec.key == key:
            return spec
    return None


# ============================================
# Readings
# ============================================

class FactState(Enum):
    """Outcome of reading one fact from a fact map."""
    PRESENT = auto()
    ABSENT = auto()
    MALFORMED = auto()


@dataclass(frozen=True)
class FactReading:
    """A single fact read from input. ``value`` is set only when PRESENT."""
    key: str
    state: FactState
    value: Optional[FactValue] = None

    @property
    def is_present(self) -> bool:
        return self.state == FactState.PRESENT


def parse_number(raw: Any) -> Optional[float]:
    """
    Converts a raw value into a positive finite number.

    Booleans are rejected. Numeric strings are accepted.
    Returns None for anything else, including integers too large for a
    float.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            number = float(raw)
        except OverflowError:
            return None
    elif isinstance(raw, str):
        try:
            number = float(raw.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def normalise_choice(raw: Any, choices: Tuple[str, ...]) -> Optional[str]:
    """Normalises ``"Baby-Food"`` to ``"baby_food"`` and checks it is allowed."""
    if not isinstance(raw, str):
        return None
    value = raw.strip().lower().replace("-", "_").replace(" ", "_")
    return value if value in choices else None


def read_fact(facts: Mapping[str, Any], spec: FactSpec) -> FactReading:
    """Reads a fact by canonical key, falling back to its aliases."""
    for key in (spec.key,) + spec.aliases:
        if key not in facts:
            continue
        raw = facts[key]
        if spec.kind == FactKind.NUMBER:
            value: Optional[FactValue] = parse_number(raw)
        else:
            value = normalise_choice(raw, spec.choices)
        if value is None:
            return FactReading(spec.key, FactState.MALFORMED)
        return FactReading(spec.key, FactState.PRESENT, value)
    return FactReading(spec.key, FactState.ABSENT)


# ============================================
# Energy
# ============================================

_ONE_DECIMAL = Decimal("0.1")
# Exact arithmetic for the product of two finite floats needs ~620 digits
_PRECISION = 700
# Values above this are past every band and are not rounded
_ROUNDING_CEILING = Decimal(10) ** 6


def _to_one_decimal(value: Decimal) -> float:
    if value > _ROUNDING_CEILING:
        return math.inf
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> float:
    """
    Rounds to one decimal place, halves away from zero.

    Values far above any threshold come back as ``math.inf``.
    """
    return _to_one_decimal(Decimal(str(value)))


def watt_hours(capacity_mah: float, voltage_v: float) -> float:
    """
    Energy in Wh: mAh x V / 1000, rounded half-up to one decimal.

    Returns ``math.inf`` when the energy is far above any threshold.
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        energy = Decimal(str(capacity_mah)) * Decimal(str(voltage_v)) / Decimal(1000)
    return _to_one_decimal(energy)


def _spec(family: RuleFamily, key: str) -> FactSpec:
    spec = find_spec(family, key)
    if spec is None:
        raise KeyError(f"No fact {key!r} in the {family.value} schema")
    return spec


def resolve_energy(facts: Mapping[str, Any]) -> Tuple[Optional[float], List[str]]:
    """
    Returns the battery energy in Wh and the keys that were unusable.

    A direct ``energy_Wh`` value wins; otherwise it is derived from
    capacity and voltage.
    """
    direct = read_fact(facts, _spec(RuleFamily.ENERGY, ENERGY_WH))
    if direct.is_present:
        return round_half_up(float(direct.value)), []

    capacity = read_fact(facts, _spec(RuleFamily.ENERGY, CAPACITY_MAH))
    voltage = read_fact(facts, _spec(RuleFamily.ENERGY, VOLTAGE_V))
    if capacity.is_present and voltage.is_present:
        return watt_hours(float(capacity.value), float(voltage.value)), []

    missing = [r.key for r in (capacity, voltage) if not r.is_present]
    return None, missing


# ============================================
# Typed per-family records
# ============================================

@dataclass(frozen=True)
class EnergyFacts:
    """
    Validated battery facts.

    Attributes:
        watt_hours: Energy in Wh, None if absent or malformed
        mount: Effective mount (spare unless proven installed)
        missing: Keys that were absent or malformed
    """
    watt_hours: Optional[float]
    mount: BatteryMount
    missing: Tuple[str, ...] = ()

    @classmethod
    def from_facts(
        cls,
        facts: Mapping[str, Any],
        implied_mount: Optional[BatteryMount] = None,
    ) -> "EnergyFacts":
        energy, missing = resolve_energy(facts)

        reading = read_fact(facts, _spec(RuleFamily.ENERGY, BATTERY_MOUNT))
        explicit = BatteryMount(reading.value) if reading.is_present else None
        if implied_mount is None:
            mount = explicit or BatteryMount.SPARE
        elif explicit == BatteryMount.SPARE:
            # A stated spare overrides an installed category, never the reverse
            mount = BatteryMount.SPARE
        else:
            # The category decides the mount; see DESIGN.md, decision 4
            mount = implied_mount

        return cls(watt_hours=energy, mount=mount, missing=tuple(missing))


@dataclass(frozen=True)
class VolumeFacts:
    """Validated liquid facts. ``kind`` defaults to REGULAR."""
    volume_ml: Optional[float]
    kind: LiquidKind
    missing: Tuple[str, ...] = ()

    @classmethod
    def from_facts(cls, facts: Mapping[str, Any]) -> "VolumeFacts":
        volume = read_fact(facts, _spec(RuleFamily.VOLUME, VOLUME_ML))
        kind = read_fact(facts, _spec(RuleFamily.VOLUME, LIQUID_KIND))
        return cls(
            volume_ml=float(volume.value) if volume.is_present else None,
            kind=LiquidKind(kind.value) if kind.is_present else LiquidKind.REGULAR,
            missing=() if volume.is_present else (VOLUME_ML,),
        )


@dataclass(frozen=True)
class LengthFacts:
    """Validated blade length."""
    blade_length_cm: Optional[float]
    missing: Tuple[str, ...] = ()

    @classmethod
    def from_facts(cls, facts: Mapping[str, Any]) -> "LengthFacts":
        length = read_fact(facts, _spec(RuleFamily.LENGTH, BLADE_LENGTH_CM))
        return cls(
            blade_length_cm=float(length.value) if length.is_present else None,
            missing=() if length.is_present else (BLADE_LENGTH_CM,),
        )


# ============================================
# Projection
# ============================================

def project_facts(
    family: RuleFamily,
    raw: Mapping[str, Any],
    extractable_only: bool = False,
) -> FactMap:
    """
    Projects loosely keyed input onto the family's canonical fact keys.

    Unrelated keys and malformed values are dropped. For the energy
    family ``energy_Wh`` is derived from capacity and voltage when it is
    not given directly.
    """
    projected: Dict[str, FactValue] = {}
    for spec in schema_for(family):
        if extractable_only and not spec.extractable:
            continue
        reading = read_fact(raw, spec)
        if reading.is_present:
            projected[spec.key] = reading.value

    if family == RuleFamily.ENERGY:
        energy, _ = resolve_energy(projected)
        if energy is not None and math.isfinite(energy):
            projected[ENERGY_WH] = energy

    return projected


def missing_required(family: RuleFamily, facts: Mapping[str, Any]) -> Tuple[str, ...]:
    """Required keys of the family that are absent or malformed in ``facts``."""
    if family == RuleFamily.ENERGY:
        energy, _ = resolve_energy(facts)
        return () if energy is not None else (ENERGY_WH,)
    return tuple(
        spec.key
        for spec in schema_for(family)
        if spec.required and not read_fact(facts, spec).is_present
    )
