from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterator

from service.ai.types import AnalysisResult

DEFAULT_CAPACITY = 20


@dataclass(frozen=True)
class RiskPoint:
    """One analysed image on the risk trend."""

    timestamp: float
    risk_percent: int

    @property
    def label(self) -> str:
        return time.strftime("%H:%M:%S", time.localtime(self.timestamp))


class RiskHistory:
    """
    Rolling window of recent risk outcomes; the oldest point is dropped once
    ``capacity`` is exceeded.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self._points: deque[RiskPoint] = deque(maxlen=capacity)
        self._clock = clock

    def record(self, result: AnalysisResult) -> RiskPoint:
        """Append the outcome of a rendered analysis."""
        if result.invalid:
            raise ValueError("invalid results are not part of the risk trend")
        point = RiskPoint(timestamp=self._clock(), risk_percent=result.risk_percent)
        self._points.append(point)
        return point

    @property
    def capacity(self) -> int:
        return self._points.maxlen or DEFAULT_CAPACITY

    @property
    def entries(self) -> tuple[RiskPoint, ...]:
        return tuple(self._points)

    def labels(self) -> list[str]:
        return [point.label for point in self._points]

    def values(self) -> list[int]:
        return [point.risk_percent for point in self._points]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[RiskPoint]:
        return iter(tuple(self._points))


__all__ = ["RiskHistory", "RiskPoint", "DEFAULT_CAPACITY"]
