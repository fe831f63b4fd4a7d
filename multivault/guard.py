"""Reentrancy guard for mutating engine operations."""
from __future__ import annotations

import asyncio
from contextvars import ContextVar
from types import TracebackType

from .errors import ReentrancyError


class ReentrancyGuard:
    """Exclusive lock held for the whole span of one operation.

    Operations started from unrelated tasks wait for the lock. Re-entry from
    inside a running operation is rejected, including from tasks it spawns
    (a token callback using ``asyncio.gather`` or ``create_task``), since
    those inherit the operation's context.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._held: ContextVar[bool] = ContextVar(f"reentrancy_guard_{id(self)}", default=False)

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    async def __aenter__(self) -> "ReentrancyGuard":
        if self._held.get():
            raise ReentrancyError("Reentrant call")
        await self._lock.acquire()
        self._token = self._held.set(True)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._held.reset(self._token)
        self._lock.release()
