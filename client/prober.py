from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .errors import TransportError
from .transport import Transport

logger = logging.getLogger(__name__)

MESSAGE_CONNECTED = "API connected. Choose an image to start."
MESSAGE_UNAVAILABLE = "API not available. You can still analyze locally on this machine."
MESSAGE_UNKNOWN = "Checking API availability..."


class AvailabilityStatus(str, Enum):
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class ServiceAvailability:
    """Process-wide reachability flag for the analysis service.

    ``available`` is False until a probe succeeds. The prober sets the flag
    once; the orchestrator may only ever downgrade it.
    """

    def __init__(self) -> None:
        self._status = AvailabilityStatus.UNKNOWN
        self._message = MESSAGE_UNKNOWN

    @property
    def status(self) -> AvailabilityStatus:
        return self._status

    @property
    def message(self) -> str:
        return self._message

    @property
    def available(self) -> bool:
        return self._status is AvailabilityStatus.AVAILABLE

    def mark_available(self, message: str = MESSAGE_CONNECTED) -> None:
        self._status = AvailabilityStatus.AVAILABLE
        self._message = message

    def mark_unavailable(self, message: str = MESSAGE_UNAVAILABLE) -> None:
        self._status = AvailabilityStatus.UNAVAILABLE
        self._message = message

    def downgrade(self, reason: str) -> None:
        if self._status is AvailabilityStatus.UNAVAILABLE:
            return
        logger.warning("Marking analysis API unavailable: %s", reason)
        self.mark_unavailable()


@dataclass
class ReachabilityProber:
    base_url: str
    availability: ServiceAvailability
    transport: Transport
    timeout: float = 8.0

    def probe(self) -> AvailabilityStatus:
        url = f"{self.base_url.rstrip('/')}/"
        try:
            response = self.transport.get(url, timeout=self.timeout)
        except TransportError as exc:
            logger.info("API probe failed url=%s error=%s", url, exc)
            self.availability.mark_unavailable()
            return self.availability.status

        if not response.ok:
            logger.info("API probe rejected url=%s status=%d", url, response.status_code)
            self.availability.mark_unavailable()
        elif not response.is_json:
            logger.info(
                "API probe returned non-JSON url=%s content-type=%s",
                url,
                response.content_type or "unknown",
            )
            self.availability.mark_unavailable()
        else:
            logger.info("API reachable url=%s", url)
            self.availability.mark_available()
        return self.availability.status


__all__ = [
    "AvailabilityStatus",
    "ReachabilityProber",
    "ServiceAvailability",
    "MESSAGE_CONNECTED",
    "MESSAGE_UNAVAILABLE",
]
