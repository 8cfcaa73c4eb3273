from __future__ import annotations

from pydantic import BaseModel, Field

from ..ai.types import AnalysisResult


class ServiceStatus(BaseModel):
    service: str = "rockshield"
    status: str = "ok"


class AnalyzeResponse(BaseModel):
    danger: bool | None = Field(None, description="True when a rockfall risk is detected")
    direction: str | None = Field(None, description="Side to move towards: left or right")
    confidence: float | None = Field(None, ge=0.0, le=1.0)
    slope_angle: float | None = Field(None, description="Estimated slope angle in degrees")
    class_name: str | None = None
    class_prob: float | None = Field(None, ge=0.0, le=1.0)
    invalid: bool = Field(False, description="Image is not a rockfall or landslide scene")

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalyzeResponse":
        if result.invalid:
            return cls(invalid=True)
        return cls(
            danger=result.danger,
            direction=result.direction,
            confidence=result.confidence,
            slope_angle=result.slope_angle,
            class_name=result.class_name,
            class_prob=result.class_prob,
        )


class NotifyResponse(BaseModel):
    status: str


__all__ = ["AnalyzeResponse", "NotifyResponse", "ServiceStatus"]
