"""
CarryOn Persistence Adapters Package

Adapters for data storage:
- Scan History (SQLite)
"""

from carryon.adapters.persistence.history import SQLiteHistoryAdapter

__all__ = [
    "SQLiteHistoryAdapter",
]
