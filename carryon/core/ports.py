"""
CarryOn Core Domain Ports (Interfaces)

This module defines the ports (interfaces) of the collaborators that live
outside the core: the item classifier and the scan history.

Principle: The domain defines WHAT needs to be done.
           Adapters define HOW to do it.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from carryon.core.entities import Extraction, ScanRecord


# ============================================
# Classifier Port
# ============================================

@runtime_checkable
class ClassifierPort(Protocol):
    """
    Port for an external item classifier (e.g. a vision model).

    The classifier only extracts facts. Its output is untrusted and goes
    through the ExtractionBridge before the rules engine sees it.
    """

    @abstractmethod
    def classify(self, image: bytes) -> "Extraction":
        """
        Identifies the item in an image and reads its technical data.

        Args:
            image: Encoded image bytes

        Returns:
            Extraction; on failure ``identified`` is False and ``error`` is set
        """
        ...


# ============================================
# History Port
# ============================================

@runtime_checkable
class HistoryPort(Protocol):
    """
    Port for the scan history.

    Implementations:
        - SQLiteHistoryAdapter
    """

    @abstractmethod
    def save_record(self, record: "ScanRecord") -> str:
        """
        Stores a completed check.

        Returns:
            ID of the stored record
        """
        ...

    @abstractmethod
    def get_records(self, limit: int = 50) -> List["ScanRecord"]:
        """Returns the most recent records, newest first."""
        ...

    @abstractmethod
    def clear(self) -> int:
        """Deletes all records and returns how many were removed."""
        ...
