"""Adaptive Mirror: a 30-second behavioral observation and archetype classifier."""

__version__ = "3.0.0"
