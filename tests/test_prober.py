from __future__ import annotations

import pytest

from client.errors import NetworkError, TransportTimeout
from client.prober import (
    MESSAGE_CONNECTED,
    MESSAGE_UNAVAILABLE,
    AvailabilityStatus,
    ReachabilityProber,
    ServiceAvailability,
)
from client.transport import TransportResponse


class _StubTransport:
    def __init__(self, outcome) -> None:
        self._outcome = outcome
        self.requests: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float, **kwargs) -> TransportResponse:
        self.requests.append((url, timeout))
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


def _probe(outcome) -> tuple[ServiceAvailability, _StubTransport]:
    availability = ServiceAvailability()
    transport = _StubTransport(outcome)
    ReachabilityProber(
        base_url="http://api.test/base/", availability=availability, transport=transport
    ).probe()
    return availability, transport


def test_availability_starts_unknown_and_unavailable() -> None:
    availability = ServiceAvailability()

    assert availability.status is AvailabilityStatus.UNKNOWN
    assert availability.available is False


def test_json_success_marks_available() -> None:
    availability, transport = _probe(
        TransportResponse(200, {"content-type": "application/json"}, b"{}")
    )

    assert availability.available is True
    assert availability.message == MESSAGE_CONNECTED
    assert transport.requests == [("http://api.test/base/", 8.0)]


@pytest.mark.parametrize(
    "outcome",
    [
        TransportResponse(500, {"content-type": "application/json"}, b'{"error": "boom"}'),
        TransportResponse(200, {"content-type": "text/html"}, b"<html></html>"),
        TransportResponse(200, {}, b""),
        TransportTimeout("probe timed out"),
        NetworkError("connection refused"),
    ],
)
def test_any_probe_failure_marks_unavailable(outcome) -> None:
    availability, _ = _probe(outcome)

    assert availability.status is AvailabilityStatus.UNAVAILABLE
    assert availability.available is False
    assert availability.message == MESSAGE_UNAVAILABLE


def test_downgrade_only_moves_towards_unavailable() -> None:
    availability = ServiceAvailability()
    availability.mark_available()

    availability.downgrade("read timeout")
    availability.downgrade("again")

    assert availability.status is AvailabilityStatus.UNAVAILABLE
