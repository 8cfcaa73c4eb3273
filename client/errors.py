from __future__ import annotations

from service.ai.types import AnalysisError, DecodeError


class TransportError(AnalysisError):
    """The request never produced a usable HTTP response."""


class TransportTimeout(TransportError, TimeoutError):
    """No complete response arrived before the call's deadline."""


class NetworkError(TransportError):
    """DNS failure, refused connection, reset or aborted transfer."""


class ServerError(AnalysisError):
    """The analysis service answered with a non-success status."""

    def __init__(self, status: int, message: str = "") -> None:
        self.status = status
        self.message = message
        reason = f": {message}" if message else ""
        super().__init__(f"Server error {status}{reason}")


class ProtocolError(AnalysisError):
    """The response could not be trusted to have the expected shape."""


__all__ = [
    "AnalysisError",
    "DecodeError",
    "NetworkError",
    "ProtocolError",
    "ServerError",
    "TransportError",
    "TransportTimeout",
]
