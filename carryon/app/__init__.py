"""
CarryOn application layer.
"""

from carryon.app.checker import BaggageChecker, CheckerConfig, CheckResult, CheckSession

__all__ = [
    "BaggageChecker",
    "CheckerConfig",
    "CheckResult",
    "CheckSession",
]
