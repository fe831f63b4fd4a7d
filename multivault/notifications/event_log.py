"""In-process event sinks."""
from __future__ import annotations

import logging
from dataclasses import fields

from ..models import Event

logger = logging.getLogger(__name__)


def describe_event(event: Event) -> str:
    """One-line rendering, e.g. ``Deposit user=alice asset=WETH amount=10``."""
    parts = [f"{f.name}={getattr(event, f.name)}" for f in fields(event)]
    return " ".join([type(event).__name__, *parts])


class EventLog:
    """Keeps every published record in order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    async def publish(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list[Event]:
        return [e for e in self.events if isinstance(e, kind)]


class LoggingEventSink:
    """Writes every published record to the ``multivault.events`` logger."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._logger = logging.getLogger("multivault.events")
        self._level = level

    async def publish(self, event: Event) -> None:
        self._logger.log(self._level, describe_event(event))
