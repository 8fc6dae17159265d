"""SignalScore: entity confidence scoring from accumulated signals."""

__version__ = "0.1.0"
