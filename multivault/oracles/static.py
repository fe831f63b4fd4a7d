"""Fixed price source — settable answer, used for tests and replays."""
from __future__ import annotations

import time

from ..models import RoundData


class StaticPriceSource:
    """Price source that reports whatever answer was last set."""

    def __init__(self, answer: int, decimals: int = 8) -> None:
        self._answer = answer
        self._decimals = decimals
        self._round_id = 1
        self._updated_at = int(time.time())

    def set_answer(self, answer: int) -> None:
        self._answer = answer
        self._round_id += 1
        self._updated_at = int(time.time())

    async def latest_round_data(self) -> RoundData:
        return RoundData(
            round_id=self._round_id,
            answer=self._answer,
            started_at=self._updated_at,
            updated_at=self._updated_at,
            answered_in_round=self._round_id,
        )

    async def decimals(self) -> int:
        return self._decimals
