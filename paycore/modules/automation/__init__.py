"""Automation exports"""

from .runner import JobAction, PeriodicJob

__all__ = ["JobAction", "PeriodicJob"]
