"""Event sink protocol — consumer of emitted engine records."""
from typing import Protocol

from ..models import Event


class EventSink(Protocol):
    """Abstract interface for publishing engine records."""

    async def publish(self, event: Event) -> None: ...
