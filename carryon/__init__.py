"""CarryOn - hand and checked baggage rules checker."""

__version__ = "0.1.0"
