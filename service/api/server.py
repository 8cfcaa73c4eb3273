from __future__ import annotations

import logging
from typing import Optional, Protocol

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse

from ..ai import Classifier, DecodeError, LuminanceHeuristic
from .schemas import AnalyzeResponse, NotifyResponse, ServiceStatus

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


class AlertSink(Protocol):
    def send(self, subject: str, message: str) -> None:
        ...


class LoggingAlertSink:
    """Default alert sink; writes control-room alerts to the service log."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send(self, subject: str, message: str) -> None:
        self.sent.append((subject, message))
        logger.warning("Control room alert subject=%s message=%s", subject, message)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    classifier: Classifier | None = None,
    alert_sink: AlertSink | None = None,
) -> FastAPI:
    selected_classifier = classifier or LuminanceHeuristic()
    sink = alert_sink or LoggingAlertSink()

    app = FastAPI(title="RockShield API", version="0.1.0")
    app.state.classifier = selected_classifier
    app.state.alert_sink = sink

    logger.info(
        "API server initialised classifier=%s alert_sink=%s",
        selected_classifier.__class__.__name__,
        sink.__class__.__name__,
    )

    @app.get("/", response_model=ServiceStatus)
    def service_status() -> ServiceStatus:
        return ServiceStatus()

    @app.post(
        "/analyze", response_model=AnalyzeResponse, response_model_exclude_none=True
    )
    def analyze(
        file: UploadFile = File(...),
        force: Optional[str] = Form(None),
    ):
        image_bytes = file.file.read()
        forced = (force or "").strip().lower() in _TRUTHY
        logger.info(
            "Analyze request filename=%s bytes=%d force=%s",
            file.filename,
            len(image_bytes),
            forced,
        )
        if not image_bytes:
            return _error(400, "Uploaded file is empty")
        try:
            result = selected_classifier.analyze(image_bytes, force=forced)
        except DecodeError as exc:
            logger.info("Rejected undecodable upload filename=%s: %s", file.filename, exc)
            return _error(400, str(exc))
        logger.info(
            "Analysis complete filename=%s danger=%s invalid=%s",
            file.filename,
            result.danger,
            result.invalid,
        )
        return AnalyzeResponse.from_result(result)

    @app.post("/notify", response_model=NotifyResponse)
    def notify(subject: str = Form(...), message: str = Form(...)) -> NotifyResponse:
        sink.send(subject, message)
        return NotifyResponse(status="queued")

    return app


__all__ = ["AlertSink", "LoggingAlertSink", "create_app"]
