from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Protocol

from service.ai.types import AnalysisError, AnalysisResult

from .prober import ServiceAvailability

logger = logging.getLogger(__name__)

ALERT_SUBJECT = "RockShield ALERT"


class AlertChannel(Protocol):
    def notify(self, subject: str, message: str, timeout: float) -> bool:
        ...


def _or_na(value: object) -> str:
    if value is None or value == "" or value == 0:
        return "n/a"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_alert_message(result: AnalysisResult) -> str:
    return (
        f"Danger detected. Category={_or_na(result.class_name)}, "
        f"Direction={_or_na(result.direction)}, Slope={_or_na(result.slope_angle)}°."
    )


@dataclass
class DangerNotifier:
    """Best-effort control-room alert for dangerous results.

    ``dispatch`` sends on a background thread so rendering never waits for
    the alert endpoint; ``drain`` lets short-lived callers wait for alerts
    still in flight before tearing the transport down.
    """

    channel: AlertChannel
    availability: ServiceAvailability
    timeout: float = 10.0
    subject: str = ALERT_SUBJECT
    _pending: list[threading.Thread] = field(default_factory=list, init=False, repr=False)

    def should_notify(self, result: AnalysisResult) -> bool:
        return not result.invalid and result.danger and self.availability.available

    def notify_if_danger(self, result: AnalysisResult) -> bool:
        if not self.should_notify(result):
            return False
        try:
            delivered = self.channel.notify(
                self.subject, build_alert_message(result), timeout=self.timeout
            )
        except AnalysisError as exc:
            logger.debug("Danger alert not delivered: %s", exc)
            return False
        if not delivered:
            logger.debug("Danger alert rejected by API")
        return delivered

    def dispatch(self, result: AnalysisResult) -> threading.Thread | None:
        """Start sending the alert for ``result`` without waiting for it."""
        if not self.should_notify(result):
            return None
        worker = threading.Thread(
            target=self.notify_if_danger, args=(result,), name="danger-alert", daemon=True
        )
        self._pending = [thread for thread in self._pending if thread.is_alive()]
        self._pending.append(worker)
        worker.start()
        return worker

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for dispatched alerts; returns False if some are still running."""
        deadline = None if timeout is None else time.monotonic() + timeout
        for worker in list(self._pending):
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            worker.join(remaining)
        self._pending = [thread for thread in self._pending if thread.is_alive()]
        if self._pending:
            logger.warning("%d danger alert(s) still in flight", len(self._pending))
        return not self._pending


__all__ = ["AlertChannel", "DangerNotifier", "ALERT_SUBJECT", "build_alert_message"]
