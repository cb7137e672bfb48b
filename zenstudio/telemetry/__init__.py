"""Telemetry helpers.

This package emits structured studio events for deterministic auditing.
"""

from .logger import StudioLogger

__all__ = ["StudioLogger"]
