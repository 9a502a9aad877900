"""
CarryOn Baggage Checker - Core Domain Package

This package contains pure domain logic without infrastructure dependencies.
All dependencies are inward-facing (towards this package).
"""

from carryon.core.bridge import ExtractionBridge, can_resolve_without_questions, to_facts
from carryon.core.catalog import (
    BatteryMount,
    Category,
    CategoryCatalog,
    RuleFamily,
    get_category,
    list_categories,
    requires_questions,
)
from carryon.core.entities import (
    BaggageVerdict,
    Confidence,
    Extraction,
    ScanRecord,
    Verdict,
    VerdictStatus,
    worst_status,
)
from carryon.core.rules import RuleEngine, evaluate

__all__ = [
    # Entities
    "VerdictStatus",
    "BaggageVerdict",
    "Verdict",
    "Confidence",
    "Extraction",
    "ScanRecord",
    "worst_status",
    # Catalog
    "RuleFamily",
    "BatteryMount",
    "Category",
    "CategoryCatalog",
    "list_categories",
    "get_category",
    "requires_questions",
    # Engine
    "RuleEngine",
    "evaluate",
    # Bridge
    "ExtractionBridge",
    "to_facts",
    "can_resolve_without_questions",
]
