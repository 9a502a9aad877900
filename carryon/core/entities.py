"""
CarryOn Core Domain Entities

This module contains the domain entities (Data Classes) shared by the
rules engine, the extraction bridge and the outer layers.
Entities are immutable and do not contain business rules.

Hierarchy:
    Extraction -> FactMap -> Verdict -> ScanRecord
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import total_ordering
from typing import Any, Dict, Mapping, Optional, Union

FactValue = Union[int, float, str, bool]
FactMap = Dict[str, FactValue]


# Severity rank for ordering: a higher rank is stricter
_SEVERITY: Dict[str, int] = {
    "allowed": 0,
    "conditional": 1,
    "not_allowed": 2,
}


@total_ordering
class VerdictStatus(Enum):
    """
    Status of an item for one baggage type.

    Ordered by severity: ALLOWED < CONDITIONAL < NOT_ALLOWED.
    """
    ALLOWED = "allowed"
    CONDITIONAL = "conditional"
    NOT_ALLOWED = "not_allowed"

    @property
    def severity(self) -> int:
        return _SEVERITY[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VerdictStatus):
            return NotImplemented
        return self.severity < other.severity

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VerdictStatus):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)


class Confidence(Enum):
    """Classifier confidence. Advisory only, never a rule input."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def worst_status(first: VerdictStatus, second: VerdictStatus) -> VerdictStatus:
    """Returns the more severe of two statuses."""
    return max(first, second)


@dataclass(frozen=True)
class BaggageVerdict:
    """
    Verdict for a single baggage type.

    Attributes:
        status: Allowed / conditional / not allowed
        message: Explanation for the traveller
        tip: Optional remediation hint
    """
    status: VerdictStatus
    message: str
    tip: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "tip": self.tip,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BaggageVerdict":
        return cls(
            status=VerdictStatus(data["status"]),
            message=str(data.get("message", "")),
            tip=data.get("tip"),
        )


@dataclass(frozen=True)
class Verdict:
    """
    Result of one rules evaluation.

    Produced only by the rules engine. Identical inputs always yield
    an equal Verdict.

    Attributes:
        hand_baggage: Verdict for cabin / carry-on baggage
        checked_baggage: Verdict for hold baggage
    """
    hand_baggage: BaggageVerdict
    checked_baggage: BaggageVerdict

    @property
    def overall_status(self) -> VerdictStatus:
        """The stricter of the two statuses (used for history listings)."""
        return worst_status(self.hand_baggage.status, self.checked_baggage.status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handBaggage": self.hand_baggage.to_dict(),
            "checkedBaggage": self.checked_baggage.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Verdict":
        """Rebuilds a previously stored verdict."""
        return cls(
            hand_baggage=BaggageVerdict.from_dict(data["handBaggage"]),
            checked_baggage=BaggageVerdict.from_dict(data["checkedBaggage"]),
        )


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (int, float, str, bool))


@dataclass(frozen=True)
class Extraction:
    """
    Untrusted output of an external item classifier.

    Carries facts only. A verdict volunteered by the classifier is
    never stored here.

    Attributes:
        identified: Whether the classifier recognised the item
        category_id: Suggested category (may be unknown or absent)
        confidence: Advisory confidence level
        detected_facts: Raw fact values read from the item (scalars only)
        missing_critical_data: Classifier reports it could not read key data
        item_name: Descriptive name of the item
        summary: Free-text explanation (display only)
        error: Error message if classification failed
    """
    identified: bool = False
    category_id: Optional[str] = None
    confidence: Optional[Confidence] = None
    detected_facts: Mapping[str, FactValue] = field(default_factory=dict)
    missing_critical_data: bool = False
    item_name: Optional[str] = None
    summary: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence == Confidence.LOW

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Extraction":
        """
        Builds an Extraction from a loosely shaped classifier payload.

        Any subset of fields may be absent. Both ``detectedFacts`` and
        ``detectedProperties`` are accepted; null and non-scalar values
        are dropped. The ``verdict`` field, if present, is ignored.
        """
        if not isinstance(data, Mapping):
            return cls(error="Classifier payload is not an object.")

        raw_facts = data.get("detectedFacts")
        if not isinstance(raw_facts, Mapping):
            raw_facts = data.get("detectedProperties")
        facts: Dict[str, FactValue] = {}
        if isinstance(raw_facts, Mapping):
            for key, value in raw_facts.items():
                if isinstance(key, str) and _is_scalar(value):
                    facts[key] = value

        confidence = None
        raw_confidence = data.get("confidence")
        if isinstance(raw_confidence, str):
            try:
                confidence = Confidence(raw_confidence.strip().lower())
            except ValueError:
                confidence = None

        category_id = data.get("categoryId")
        return cls(
            identified=data.get("identified") is True,
            category_id=category_id if isinstance(category_id, str) and category_id else None,
            confidence=confidence,
            detected_facts=facts,
            missing_critical_data=data.get("missingCriticalData") is True,
            item_name=_optional_text(data.get("itemName")),
            summary=_optional_text(data.get("summary")),
            error=_optional_text(data.get("error")),
        )


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


@dataclass(frozen=True)
class ScanRecord:
    """
    One completed check, as kept in the history.

    Attributes:
        record_id: Unique record identifier
        category_id: Evaluated category
        category_name: Display name at the time of the check
        facts: Facts the verdict was computed from
        verdict: Engine verdict
        timestamp: Creation time
        photo_ref: Reference to a captured photo (opaque to the core)
        summary: Classifier summary, display only
    """
    category_id: str
    category_name: str
    facts: Mapping[str, FactValue]
    verdict: Verdict
    record_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    photo_ref: Optional[str] = None
    summary: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.record_id,
            "categoryId": self.category_id,
            "categoryName": self.category_name,
            "facts": dict(self.facts),
            "result": self.verdict.to_dict(),
            "timestamp": self.timestamp.isoformat(),
            "photoRef": self.photo_ref,
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScanRecord":
        return cls(
            record_id=data["id"],
            category_id=data["categoryId"],
            category_name=data.get("categoryName", data["categoryId"]),
            facts=dict(data.get("facts") or {}),
            verdict=Verdict.from_dict(data["result"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            photo_ref=data.get("photoRef"),
            summary=data.get("summary"),
        )
