from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from service.ai.types import SOURCE_REMOTE, AnalysisError, AnalysisResult

from .errors import ProtocolError
from .selection import SelectedImage


@dataclass
class MockAnalysisApi:
    """In-memory stand-in for the analysis service."""

    default_state: str = "safe"
    direction: str = "left"
    class_name: str = "rockfall"
    reject_until_forced: bool = False
    failure: AnalysisError | None = None
    records: List[dict[str, object]] = field(default_factory=list)
    notifications: List[tuple[str, str]] = field(default_factory=list)

    def analyze(self, image: SelectedImage, force: bool = False) -> AnalysisResult:
        self.records.append({"filename": image.filename, "bytes": len(image), "force": force})
        if self.failure is not None:
            raise self.failure
        if self.reject_until_forced and not force:
            return AnalysisResult.rejected(source=SOURCE_REMOTE)
        danger = self.default_state.lower() == "danger"
        return AnalysisResult(
            danger=danger,
            direction=self.direction if danger else None,
            confidence=0.9 if danger else 0.6,
            slope_angle=45.0,
            class_name=self.class_name,
            class_prob=0.9 if danger else 0.6,
            source=SOURCE_REMOTE,
        )

    def force_analyze(self, image: SelectedImage) -> AnalysisResult:
        result = self.analyze(image, force=True)
        if result.invalid:
            raise ProtocolError("API rejected the image even though force was requested.")
        return result

    def notify(self, subject: str, message: str, timeout: float) -> bool:
        self.notifications.append((subject, message))
        return True


__all__ = ["MockAnalysisApi"]
