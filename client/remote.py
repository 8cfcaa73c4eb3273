from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from service.ai.types import SOURCE_REMOTE, AnalysisResult

from .errors import ProtocolError, ServerError
from .selection import SelectedImage
from .transport import Transport, TransportResponse

logger = logging.getLogger(__name__)


@dataclass
class RemoteAnalysisClient:
    """Client for the ``/analyze`` and ``/notify`` endpoints of the service."""

    base_url: str
    transport: Transport = field(default_factory=Transport)
    analyze_timeout: float = 60.0
    force_timeout: float = 20.0

    def analyze(self, image: SelectedImage, force: bool = False) -> AnalysisResult:
        """Submit ``image`` for classification.

        A result with ``invalid=True`` means the service judged the image out
        of domain; none of its other fields are meaningful.
        """
        timeout = self.force_timeout if force else self.analyze_timeout
        data = self._submit(image, force=force, timeout=timeout)
        return AnalysisResult.from_payload(data, source=SOURCE_REMOTE)

    def force_analyze(self, image: SelectedImage) -> AnalysisResult:
        result = self.analyze(image, force=True)
        if result.invalid:
            raise ProtocolError("API rejected the image even though force was requested.")
        return result

    def notify(self, subject: str, message: str, timeout: float) -> bool:
        response = self.transport.post(
            self._url("/notify"),
            timeout=timeout,
            files={"subject": (None, subject), "message": (None, message)},
        )
        logger.debug("Notify responded status=%d", response.status_code)
        return response.ok

    def _submit(self, image: SelectedImage, force: bool, timeout: float) -> dict[str, Any]:
        form: dict[str, str] = {"force": "true"} if force else {}
        logger.info(
            "Uploading image name=%s bytes=%d force=%s", image.filename, len(image), force
        )
        response = self.transport.post(
            self._url("/analyze"),
            timeout=timeout,
            files={"file": (image.filename, image.data, image.content_type)},
            data=form,
        )
        if not response.ok:
            raise ServerError(response.status_code, _error_detail(response))
        if not response.is_json:
            raise ProtocolError(
                "Unexpected non-JSON response from API "
                f"(content-type: {response.content_type or 'unknown'})."
            )
        data = response.json()
        if not isinstance(data, dict):
            raise ProtocolError("API response was not a JSON object.")
        return data

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"


def _error_detail(response: TransportResponse) -> str:
    if response.is_json:
        try:
            payload = response.json()
        except ProtocolError:
            return response.text.strip()
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return json.dumps(payload)
    return response.text.strip()


__all__ = ["RemoteAnalysisClient"]
