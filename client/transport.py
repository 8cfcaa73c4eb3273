from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

import requests
from requests.exceptions import RequestException
from requests.structures import CaseInsensitiveDict

from .errors import NetworkError, ProtocolError, TransportTimeout

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8 * 1024


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    headers: Mapping[str, str]
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return (self.headers.get("content-type") or "").lower()

    @property
    def is_json(self) -> bool:
        return "application/json" in self.content_type

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        try:
            return json.loads(self.content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise ProtocolError(f"Response body is not valid JSON: {exc}") from exc


@dataclass
class Transport:
    """Outbound HTTP with a hard wall-clock deadline per call.

    The request runs on a worker thread; the caller waits at most ``timeout``
    seconds for it. On expiry the streamed response is closed, which aborts
    the worker's body read, and ``TransportTimeout`` is raised at once.
    """

    session: requests.Session = field(default_factory=requests.Session)

    def call(
        self, method: str, url: str, timeout: float, **kwargs: Any
    ) -> TransportResponse:
        """Perform one request and read the whole body before ``timeout`` elapses."""
        deadline = time.monotonic() + timeout
        expired = f"{method} {url} timed out after {timeout:.1f}s"
        state: dict[str, Any] = {}
        done = threading.Event()

        def run() -> None:
            try:
                state["result"] = self._perform(method, url, timeout, deadline, state, **kwargs)
            except Exception as exc:
                state["error"] = exc
            finally:
                done.set()

        worker = threading.Thread(target=run, name="transport-call", daemon=True)
        worker.start()
        if not done.wait(timeout):
            response = state.get("response")
            if response is not None:
                response.close()
            logger.debug("%s %s abandoned after %.1fs", method, url, timeout)
            raise TransportTimeout(expired)
        if "error" in state:
            raise state["error"]
        result: TransportResponse = state["result"]
        logger.debug(
            "%s %s -> %d (%s, %d bytes)",
            method,
            url,
            result.status_code,
            result.content_type or "no content-type",
            len(result.content),
        )
        return result

    def _perform(
        self,
        method: str,
        url: str,
        timeout: float,
        deadline: float,
        state: dict[str, Any],
        **kwargs: Any,
    ) -> TransportResponse:
        expired = f"{method} {url} timed out after {timeout:.1f}s"
        try:
            response = self.session.request(
                method, url, stream=True, timeout=(timeout, timeout), **kwargs
            )
        except requests.Timeout as exc:
            raise TransportTimeout(expired) from exc
        except RequestException as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

        state["response"] = response
        try:
            body = bytearray()
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise TransportTimeout(expired)
                body.extend(chunk)
            if time.monotonic() > deadline:
                raise TransportTimeout(expired)
            return TransportResponse(
                status_code=response.status_code,
                headers=CaseInsensitiveDict(response.headers),
                content=bytes(body),
            )
        except requests.Timeout as exc:
            raise TransportTimeout(expired) from exc
        except RequestException as exc:
            if time.monotonic() > deadline:
                raise TransportTimeout(expired) from exc
            raise NetworkError(f"{method} {url} failed: {exc}") from exc
        finally:
            response.close()

    def get(self, url: str, timeout: float, **kwargs: Any) -> TransportResponse:
        return self.call("GET", url, timeout, **kwargs)

    def post(self, url: str, timeout: float, **kwargs: Any) -> TransportResponse:
        return self.call("POST", url, timeout, **kwargs)

    def close(self) -> None:
        self.session.close()


__all__ = ["Transport", "TransportResponse"]
