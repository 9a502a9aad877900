"""
Pytest Configuration

Configuration and fixtures for tests.
"""

import pytest
import sys
import os

# Adds the root directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from carryon.adapters.persistence.history import SQLiteHistoryAdapter
from carryon.core.bridge import ExtractionBridge
from carryon.core.entities import Extraction
from carryon.core.rules import RuleEngine


@pytest.fixture
def engine():
    """Rules engine with the default catalog."""
    return RuleEngine()


@pytest.fixture
def bridge():
    """Extraction bridge with the default catalog."""
    return ExtractionBridge()


@pytest.fixture
def power_bank_extraction():
    """Example of a complete classifier extraction."""
    return Extraction(
        identified=True,
        category_id="battery-spare",
        detected_facts={"capacity_mAh": 20000, "voltage_V": 3.7},
        summary="Power bank, 20000 mAh, 3.7 V",
    )


@pytest.fixture
def history(tmp_path):
    """History store in a temporary directory."""
    return SQLiteHistoryAdapter(str(tmp_path / "history.db"), limit=5)


@pytest.fixture
def mock_history(mocker):
    """Mock for the history port."""
    store = mocker.MagicMock()
    store.save_record.side_effect = lambda record: record.record_id
    return store
