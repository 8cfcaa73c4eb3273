from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any, List, Protocol, TextIO

from service.ai.types import AnalysisResult

from .history import RiskHistory

INVALID_IMAGE_MESSAGE = "Uploaded image is not related to rockfall or landslide"
SAFE_MESSAGE = "No immediate rockfall risk detected."
FORCE_HINT = "Re-run with --force-invalid to analyze this image anyway."


class ResultView(Protocol):
    """Presentation side of the pipeline."""

    def show_status(self, message: str) -> None: ...

    def render_result(self, result: AnalysisResult, history: RiskHistory) -> None: ...

    def render_alert(self, message: str, level: str = "danger") -> None: ...

    def set_force_available(self, available: bool) -> None: ...


def danger_banner(result: AnalysisResult) -> str:
    if not result.danger:
        return SAFE_MESSAGE
    if result.direction:
        return f"ALERT: Rockfall detected! Move {result.direction.upper()}."
    return "ALERT: Rockfall detected!"


def detail_lines(result: AnalysisResult) -> list[str]:
    slope = "N/A"
    if result.slope_angle is not None:
        angle = result.slope_angle
        slope = f"{int(angle) if float(angle).is_integer() else angle}°"
    lines = [
        f"Slope Angle: {slope}",
        f"Risk: {'Danger' if result.danger else 'Safe'}",
        f"Direction: {result.direction or 'N/A'}",
    ]
    if result.class_name:
        lines.append(f"Category: {result.class_name} ({(result.class_prob or 0.0) * 100:.1f}%)")
    return lines


class ConsoleView:
    """Plain-text renderer used by the command line client."""

    def __init__(
        self,
        stream: TextIO | None = None,
        show_trend: bool = True,
        force_hint: str | None = FORCE_HINT,
    ) -> None:
        self._stream = stream or sys.stdout
        self._show_trend = show_trend
        self._force_hint = force_hint

    def show_status(self, message: str) -> None:
        if message:
            self._write(f"[status] {message}")

    def render_result(self, result: AnalysisResult, history: RiskHistory) -> None:
        for line in detail_lines(result):
            self._write(f"  {line}")
        level = "danger" if result.danger else "safe"
        self.render_alert(danger_banner(result), level=level)
        if self._show_trend and len(history):
            trend = " ".join(f"{point.label}={point.risk_percent}%" for point in history)
            self._write(f"  Risk trend: {trend}")

    def render_alert(self, message: str, level: str = "danger") -> None:
        self._write(f"[{level.upper()}] {message}")

    def set_force_available(self, available: bool) -> None:
        if available and self._force_hint:
            self._write(f"  {self._force_hint}")

    def _write(self, text: str) -> None:
        print(text, file=self._stream)


class JsonLinesView:
    """Emit one JSON object per event, for scripting."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    def show_status(self, message: str) -> None:
        return None

    def render_result(self, result: AnalysisResult, history: RiskHistory) -> None:
        payload = {"event": "result", "source": result.source, **result.to_payload()}
        payload["risk_trend"] = history.values()
        self._emit(payload)

    def render_alert(self, message: str, level: str = "danger") -> None:
        self._emit({"event": "alert", "level": level, "message": message})

    def set_force_available(self, available: bool) -> None:
        if available:
            self._emit({"event": "force_available"})

    def _emit(self, payload: dict[str, Any]) -> None:
        print(json.dumps(payload, sort_keys=True), file=self._stream)


@dataclass
class RecordingView:
    """Keeps every rendered event in memory."""

    statuses: List[str] = field(default_factory=list)
    results: List[AnalysisResult] = field(default_factory=list)
    alerts: List[tuple[str, str]] = field(default_factory=list)
    force_available: bool = False

    def show_status(self, message: str) -> None:
        self.statuses.append(message)

    def render_result(self, result: AnalysisResult, history: RiskHistory) -> None:
        self.results.append(result)

    def render_alert(self, message: str, level: str = "danger") -> None:
        self.alerts.append((level, message))

    def set_force_available(self, available: bool) -> None:
        self.force_available = available


__all__ = [
    "ConsoleView",
    "JsonLinesView",
    "RecordingView",
    "ResultView",
    "FORCE_HINT",
    "INVALID_IMAGE_MESSAGE",
    "danger_banner",
    "detail_lines",
]
