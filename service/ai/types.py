from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Protocol

# Mean luminance below this value is treated as a rockfall risk.
DANGER_LUMINANCE_THRESHOLD: float = 110.0

SOURCE_REMOTE = "remote"
SOURCE_LOCAL = "local"

_DIRECTIONS = {"left", "right"}


class AnalysisError(Exception):
    """Base class for every failure raised by the analysis pipeline."""


class DecodeError(AnalysisError):
    """The image bytes could not be decoded."""


class Classifier(Protocol):
    def analyze(self, image_bytes: bytes, force: bool = False) -> "AnalysisResult": ...


@dataclass(frozen=True)
class AnalysisResult:
    danger: bool = False
    direction: str | None = None
    confidence: float | None = None
    slope_angle: float | None = None
    class_name: str | None = None
    class_prob: float | None = None
    invalid: bool = False
    source: str = SOURCE_REMOTE

    @property
    def risk_percent(self) -> int:
        return 100 if self.danger else 0

    @classmethod
    def rejected(cls, source: str = SOURCE_REMOTE) -> "AnalysisResult":
        return cls(invalid=True, source=source)

    @classmethod
    def from_payload(
        cls, payload: dict[str, Any], source: str = SOURCE_REMOTE
    ) -> "AnalysisResult":
        if payload.get("invalid") is True:
            return cls.rejected(source=source)

        direction = payload.get("direction")
        if isinstance(direction, str):
            direction = direction.strip().lower()
            if direction not in _DIRECTIONS:
                direction = None
        else:
            direction = None

        class_name = payload.get("class_name")
        if class_name is not None:
            class_name = str(class_name).strip() or None

        return cls(
            danger=bool(payload.get("danger", False)),
            direction=direction,
            confidence=_unit_interval(payload.get("confidence")),
            slope_angle=_number(payload.get("slope_angle")),
            class_name=class_name,
            class_prob=_unit_interval(payload.get("class_prob")),
            invalid=False,
            source=source,
        )

    def to_payload(self) -> dict[str, Any]:
        if self.invalid:
            return {"invalid": True}
        payload: dict[str, Any] = {"danger": self.danger}
        optional = {
            "direction": self.direction,
            "confidence": self.confidence,
            "slope_angle": self.slope_angle,
            "class_name": self.class_name,
            "class_prob": self.class_prob,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _unit_interval(value: Any) -> float | None:
    number = _number(value)
    if number is None:
        return None
    return max(0.0, min(1.0, number))


__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "Classifier",
    "DecodeError",
    "DANGER_LUMINANCE_THRESHOLD",
    "SOURCE_LOCAL",
    "SOURCE_REMOTE",
]
