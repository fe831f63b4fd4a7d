"""Service modules."""
from .monitor import PositionMonitor

__all__ = ["PositionMonitor"]
