"""
CarryOn Category Catalog

Static, read-only registry of item categories.

Each category belongs to exactly one rule family, which decides how the
rules engine evaluates it and which facts are relevant. Grouping is for
display only and has no effect on evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple


class RuleFamily(Enum):
    """Closed set of evaluation families."""
    ENERGY = "energy"    # Batteries, decided by watt-hours
    VOLUME = "volume"    # Liquids, gels, aerosols, decided by container volume
    LENGTH = "length"    # Bladed items and tools, decided by blade length
    STATIC = "static"    # Fixed verdict, no facts needed


class BatteryMount(Enum):
    """Whether a battery is loose or housed inside a device."""
    SPARE = "spare"
    INSTALLED = "installed"


@dataclass(frozen=True)
class Category:
    """
    An item category.

    Attributes:
        id: Stable identifier
        name: Human label
        group: Display group
        description: Short description of what belongs here
        family: Rule family used for evaluation
        aliases: Alternate identifiers accepted by lookup
        keywords: Hints for an external classifier
        battery_mount: Mount implied by the category (energy family)
        item_label: Plural label used in messages (length family)
    """
    id: str
    name: str
    group: str
    family: RuleFamily
    description: str = ""
    aliases: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    battery_mount: Optional[BatteryMount] = None
    item_label: str = ""

    @property
    def direct_rule(self) -> bool:
        """True if the verdict never depends on facts."""
        return self.family == RuleFamily.STATIC


GROUP_BATTERIES = "Batteries & Power Banks"
GROUP_LIQUIDS = "Liquids"
GROUP_SHARP = "Sharp Objects"
GROUP_FIRE = "Fire & Flammable"
GROUP_ELECTRONICS = "Electronics"
GROUP_SPORTS = "Sports & Blunt Objects"
GROUP_PROHIBITED = "Always Prohibited"


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    # Batteries
    Category(
        id="battery-spare",
        name="Spare Battery / Power Bank",
        group=GROUP_BATTERIES,
        family=RuleFamily.ENERGY,
        description="Power banks, portable chargers, spare lithium batteries",
        keywords=("power bank", "portable charger", "spare battery", "external battery", "battery pack"),
        battery_mount=BatteryMount.SPARE,
    ),
    Category(
        id="battery-installed",
        name="Battery Installed in Device",
        group=GROUP_BATTERIES,
        family=RuleFamily.ENERGY,
        description="Battery built into a phone, laptop, tablet, camera, etc.",
        keywords=("laptop battery", "phone battery", "tablet battery", "device with built-in battery"),
        battery_mount=BatteryMount.INSTALLED,
    ),

    # Liquids
    Category(
        id="liquids",
        name="Liquids, Gels & Aerosols",
        group=GROUP_LIQUIDS,
        family=RuleFamily.VOLUME,
        description="Drinks, creams, gels, sprays, pastes, perfume, shampoo",
        keywords=("water", "perfume", "shampoo", "lotion", "gel", "spray", "deodorant", "toothpaste", "cream"),
    ),

    # Sharp objects
    Category(
        id="knife",
        name="Knife",
        group=GROUP_SHARP,
        family=RuleFamily.LENGTH,
        description="Pocket knives, Swiss army knives, kitchen knives, utility knives",
        aliases=("knives",),
        keywords=("knife", "pocket knife", "swiss army knife", "utility knife", "kitchen knife"),
        item_label="Knives",
    ),
    Category(
        id="scissors",
        name="Scissors",
        group=GROUP_SHARP,
        family=RuleFamily.LENGTH,
        description="Scissors, shears, nail scissors, craft scissors",
        keywords=("scissors", "shears", "craft scissors", "nail scissors"),
        item_label="Scissors",
    ),
    Category(
        id="tools",
        name="Tools (Screwdrivers, etc.)",
        group=GROUP_SHARP,
        family=RuleFamily.LENGTH,
        description="Screwdrivers, wrenches, pliers, drills, multi-tools",
        aliases=("tool",),
        keywords=("screwdriver", "wrench", "pliers", "multi-tool", "spanner"),
        item_label="Tools",
    ),

    # Fire & flammable
    Category(
        id="lighters",
        name="Lighter",
        group=GROUP_FIRE,
        family=RuleFamily.STATIC,
        description="Disposable lighters, refillable lighters, Zippos, torch lighters",
        aliases=("lighter",),
        keywords=("lighter", "zippo", "gas lighter", "cigarette lighter", "torch lighter"),
    ),
    Category(
        id="matches",
        name="Matches",
        group=GROUP_FIRE,
        family=RuleFamily.STATIC,
        description="Matchboxes, matchsticks",
        keywords=("matches", "matchbox", "matchstick"),
    ),

    # Electronics
    Category(
        id="e-cigarettes",
        name="E-Cigarette / Vape",
        group=GROUP_ELECTRONICS,
        family=RuleFamily.STATIC,
        description="E-cigarettes, vapes, vape pens, IQOS, e-pipes",
        keywords=("e-cigarette", "vape", "vaping device", "e-pipe", "vape pen"),
    ),
    Category(
        id="electronics",
        name="Laptop / Tablet / Phone / Camera",
        group=GROUP_ELECTRONICS,
        family=RuleFamily.STATIC,
        description="Laptops, tablets, phones, cameras, electronic devices",
        keywords=("laptop", "tablet", "phone", "camera", "smartphone", "e-reader"),
    ),
    Category(
        id="smart-luggage-removable",
        name="Smart Luggage (Removable Battery)",
        group=GROUP_ELECTRONICS,
        family=RuleFamily.STATIC,
        description="Smart suitcase with a battery that can be removed",
        keywords=("smart suitcase", "smart luggage with removable battery"),
    ),
    Category(
        id="smart-luggage-permanent",
        name="Smart Luggage (Built-in Battery)",
        group=GROUP_ELECTRONICS,
        family=RuleFamily.STATIC,
        description="Smart suitcase with a permanently installed battery",
        keywords=("smart suitcase with permanent battery",),
    ),
    Category(
        id="luggage-trackers",
        name="Luggage Tracker (AirTag, etc.)",
        group=GROUP_ELECTRONICS,
        family=RuleFamily.STATIC,
        description="AirTag, Tile, GPS trackers",
        keywords=("airtag", "tile tracker", "luggage tracker", "gps tracker"),
    ),
    Category(
        id="electronic-bag-tags",
        name="Electronic Bag Tags (EBTS)",
        group=GROUP_ELECTRONICS,
        family=RuleFamily.STATIC,
        description="Electronic luggage tags",
        keywords=("electronic bag tag", "EBTS", "e-tag"),
    ),

    # Sports & blunt objects
    Category(
        id="blunt-objects",
        name="Blunt Objects (Bats, Hammers)",
        group=GROUP_SPORTS,
        family=RuleFamily.STATIC,
        description="Baseball bats, golf clubs, hammers, cricket bats, hockey sticks",
        keywords=("baseball bat", "golf club", "hammer", "cricket bat", "hockey stick"),
    ),
    Category(
        id="sports-equipment",
        name="Sports Equipment (Rackets, Poles)",
        group=GROUP_SPORTS,
        family=RuleFamily.STATIC,
        description="Tennis rackets, badminton rackets, ski poles, hiking poles",
        keywords=("tennis racket", "badminton racket", "ski poles", "hiking poles"),
    ),

    # Always prohibited
    Category(
        id="fireworks",
        name="Fireworks / Sparklers",
        group=GROUP_PROHIBITED,
        family=RuleFamily.STATIC,
        description="Fireworks, sparklers, firecrackers, pyrotechnics",
        keywords=("fireworks", "sparklers", "firecrackers", "pyrotechnics"),
    ),
    Category(
        id="fuel-paste",
        name="Fuel Paste / Flammable Liquids",
        group=GROUP_PROHIBITED,
        family=RuleFamily.STATIC,
        description="Fuel, gasoline, lighter fluid, flammable liquids",
        keywords=("fuel", "gasoline", "lighter fluid", "flammable liquid"),
    ),
    Category(
        id="toxic-corrosive",
        name="Acids / Toxic / Corrosive",
        group=GROUP_PROHIBITED,
        family=RuleFamily.STATIC,
        description="Acids, bleach, toxic chemicals, poisons, corrosive substances",
        keywords=("acid", "bleach", "corrosive", "toxic chemical", "poison"),
    ),
    Category(
        id="gas-cartridges",
        name="Gas Cartridges / Compressed Gas",
        group=GROUP_PROHIBITED,
        family=RuleFamily.STATIC,
        description="Gas cartridges, propane, butane, pepper spray, compressed gas",
        keywords=("gas cartridge", "compressed gas", "propane", "butane", "pepper spray"),
    ),
    Category(
        id="paints",
        name="Paints / Solvents",
        group=GROUP_PROHIBITED,
        family=RuleFamily.STATIC,
        description="Paints, paint thinner, solvents, turpentine, acetone",
        keywords=("paint", "paint thinner", "solvent", "turpentine", "acetone"),
    ),
)


class CategoryCatalog:
    """
    Immutable category registry.

    Built once at startup and shared freely; it exposes read-only
    accessors only.

    Example usage:
        catalog = CategoryCatalog(DEFAULT_CATEGORIES)
        category = catalog.get_category("lighter")  # alias of "lighters"
        if category and not catalog.requires_questions(category.id):
            ...
    """

    def __init__(self, categories: Iterable[Category]) -> None:
        ordered = tuple(categories)
        index: Dict[str, Category] = {}

        for category in ordered:
            for key in (category.id,) + category.aliases:
                if key in index:
                    raise ValueError(f"Duplicate category id or alias: {key!r}")
                index[key] = category

        self._categories = ordered
        self._index: Mapping[str, Category] = MappingProxyType(index)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        return isinstance(category_id, str) and category_id in self._index

    def list_categories(self) -> Tuple[Category, ...]:
        """Returns all categories in display order."""
        return self._categories

    def get_category(self, category_id: Optional[str]) -> Optional[Category]:
        """Looks up a category by id or alias. Returns None if not found."""
        if not isinstance(category_id, str):
            return None
        return self._index.get(category_id.strip())

    def requires_questions(self, category_id: Optional[str]) -> bool:
        """
        Whether the category needs facts before it can be evaluated.

        Unknown ids return True: the caller still has to gather
        information before a verdict is meaningful.
        """
        category = self.get_category(category_id)
        if category is None:
            return True
        return not category.direct_rule

    def groups(self) -> Tuple[str, ...]:
        """Returns display groups in first-seen order."""
        seen: Dict[str, None] = {}
        for category in self._categories:
            seen.setdefault(category.group, None)
        return tuple(seen)

    def by_group(self, group: str) -> Tuple[Category, ...]:
        return tuple(c for c in self._categories if c.group == group)


DEFAULT_CATALOG = CategoryCatalog(DEFAULT_CATEGORIES)


def list_categories() -> Tuple[Category, ...]:
    return DEFAULT_CATALOG.list_categories()


def get_category(category_id: Optional[str]) -> Optional[Category]:
    return DEFAULT_CATALOG.get_category(category_id)


def requires_questions(category_id: Optional[str]) -> bool:
    return DEFAULT_CATALOG.requires_questions(category_id)
