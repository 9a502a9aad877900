"""
CarryOn Extraction Bridge

Converts an untrusted classifier Extraction into engine facts, and decides
whether those facts are complete enough to skip manual questioning.

Trust boundary:
- The bridge outputs facts only; it has no access to Verdict construction
- Keys that carry a verdict or status are stripped even if the classifier
  nests them among the facts
- Classifier confidence is never consulted
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Mapping, Optional, Union

from carryon.core.catalog import DEFAULT_CATALOG, CategoryCatalog
from carryon.core.entities import Extraction, FactMap
from carryon.core.facts import missing_required, project_facts

# Never accepted as facts, whatever the classifier sends
VERDICT_KEYS: FrozenSet[str] = frozenset({
    "verdict",
    "status",
    "result",
    "handbaggage",
    "hand_baggage",
    "checkedbaggage",
    "checked_baggage",
    "allowed",
    "not_allowed",
    "conditional",
})


ExtractionInput = Union[Extraction, Mapping[str, Any], None]


def as_extraction(extraction: ExtractionInput) -> Optional[Extraction]:
    """Accepts an Extraction or a raw classifier payload."""
    if extraction is None or isinstance(extraction, Extraction):
        return extraction
    return Extraction.from_dict(extraction)


def strip_verdict_keys(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Drops keys that look like a verdict or status field."""
    return {
        key: value
        for key, value in raw.items()
        if isinstance(key, str) and key.strip().lower() not in VERDICT_KEYS
    }


class ExtractionBridge:
    """
    Bridge between an external classifier and the rules engine.

    Example usage:
        bridge = ExtractionBridge()
        if bridge.can_resolve_without_questions("battery-spare", extraction):
            verdict = engine.evaluate("battery-spare", bridge.to_facts("battery-spare", extraction))
        else:
            # Ask the traveller for the missing facts
            ...
    """

    def __init__(self, catalog: Optional[CategoryCatalog] = None) -> None:
        self.catalog = catalog or DEFAULT_CATALOG

    def to_facts(self, category_id: Optional[str], extraction: ExtractionInput) -> FactMap:
        """
        Projects the extraction onto the category's fact keys.

        Only keys relevant to the category and allowed to come from a
        classifier are copied. Malformed values are dropped, and derived
        facts (energy from capacity and voltage) are filled in.

        Returns:
            A new fact map; empty for unknown categories
        """
        extraction = as_extraction(extraction)
        category = self.catalog.get_category(category_id)
        if category is None or extraction is None:
            return {}

        raw = extraction.detected_facts
        if not isinstance(raw, Mapping):
            return {}

        return project_facts(
            category.family,
            strip_verdict_keys(raw),
            extractable_only=True,
        )

    def can_resolve_without_questions(
        self,
        category_id: Optional[str],
        extraction: ExtractionInput,
    ) -> bool:
        """
        Whether the extraction alone is enough to show a verdict.

        Conservative: unknown categories, a classifier that reports missing
        critical data, or any absent required fact all return False.
        """
        extraction = as_extraction(extraction)
        if extraction is None or extraction.missing_critical_data:
            return False

        category = self.catalog.get_category(category_id)
        if category is None:
            return False
        if category.direct_rule:
            return True

        facts = self.to_facts(category.id, extraction)
        return not missing_required(category.family, facts)


_DEFAULT_BRIDGE = ExtractionBridge()


def to_facts(category_id: Optional[str], extraction: ExtractionInput) -> FactMap:
    return _DEFAULT_BRIDGE.to_facts(category_id, extraction)


def can_resolve_without_questions(category_id: Optional[str], extraction: ExtractionInput) -> bool:
    return _DEFAULT_BRIDGE.can_resolve_without_questions(category_id, extraction)
