from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from service.ai.heuristic import LuminanceHeuristic
from service.ai.types import AnalysisError, AnalysisResult, Classifier

from .errors import TransportError
from .history import RiskHistory
from .notifier import DangerNotifier
from .prober import ServiceAvailability
from .selection import SelectedImage
from .view import INVALID_IMAGE_MESSAGE, RecordingView, ResultView

logger = logging.getLogger(__name__)

MESSAGE_NO_FILE = "Please choose an image first."
MESSAGE_BUSY = "An analysis is already running."
MESSAGE_ANALYZING = "Analyzing…"
MESSAGE_COMPLETE = "Analysis complete."
MESSAGE_ERROR_STATUS = "Error analyzing image."
MESSAGE_FAILED = "Failed to analyze image."
MESSAGE_FORCE_UNAVAILABLE = "Force analysis is only offered after the API rejects an image."


class AnalysisApi(Protocol):
    def analyze(self, image: SelectedImage, force: bool = False) -> AnalysisResult: ...

    def force_analyze(self, image: SelectedImage) -> AnalysisResult: ...


class PipelineState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RENDERED = "rendered"
    FAILED = "failed"
    INVALID_IMAGE = "invalid_image"


@dataclass(frozen=True)
class AnalysisOutcome:
    state: PipelineState
    result: AnalysisResult | None = None
    message: str | None = None


@dataclass
class OrchestratorConfig:
    downgrade_on_transport_error: bool = False


class AnalysisOrchestrator:
    """Chooses between remote and local analysis for each submitted image.

    Remote failures of any kind fall back to the local heuristic. An explicit
    "invalid image" verdict from the service is final until the user forces a
    resubmission, which is the only action available from that state.
    """

    def __init__(
        self,
        availability: ServiceAvailability,
        remote: AnalysisApi,
        local: Classifier | None = None,
        history: RiskHistory | None = None,
        notifier: DangerNotifier | None = None,
        view: ResultView | None = None,
        config: OrchestratorConfig | None = None,
    ) -> None:
        self._availability = availability
        self._remote = remote
        self._local: Classifier = local or LuminanceHeuristic()
        self._history = history or RiskHistory()
        self._notifier = notifier
        self._view: ResultView = view or RecordingView()
        self._config = config or OrchestratorConfig()
        self._state = PipelineState.IDLE
        self._selected: SelectedImage | None = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def history(self) -> RiskHistory:
        return self._history

    @property
    def force_available(self) -> bool:
        return self._state is PipelineState.INVALID_IMAGE

    def wait_for_notifications(self, timeout: float | None = None) -> bool:
        if self._notifier is None:
            return True
        return self._notifier.drain(timeout)

    def submit(self, image: SelectedImage | None) -> AnalysisOutcome:
        if image is None:
            self._view.show_status(MESSAGE_NO_FILE)
            return AnalysisOutcome(self._state, message=MESSAGE_NO_FILE)
        if self._state is PipelineState.LOADING:
            return AnalysisOutcome(self._state, message=MESSAGE_BUSY)

        self._selected = image
        self._begin()
        try:
            if not self._availability.available:
                logger.info("API unavailable; analysing %s locally", image.filename)
                return self._analyze_locally(image)

            try:
                result = self._remote.analyze(image)
            except AnalysisError as exc:
                logger.warning(
                    "Remote analysis failed for %s (%s); falling back to local analysis",
                    image.filename,
                    exc,
                )
                if self._config.downgrade_on_transport_error and isinstance(
                    exc, TransportError
                ):
                    self._availability.downgrade(str(exc))
                return self._analyze_locally(image)

            if result.invalid:
                return self._reject()
            return self._render(result)
        finally:
            self._abort_if_loading()

    def force_resubmit(self) -> AnalysisOutcome:
        image = self._selected
        if self._state is not PipelineState.INVALID_IMAGE or image is None:
            return AnalysisOutcome(self._state, message=MESSAGE_FORCE_UNAVAILABLE)

        self._begin()
        try:
            try:
                result = self._remote.force_analyze(image)
            except AnalysisError as exc:
                logger.error("Forced analysis failed for %s: %s", image.filename, exc)
                return self._fail(str(exc) or MESSAGE_FAILED)
            return self._render(result)
        finally:
            self._abort_if_loading()

    def _begin(self) -> None:
        self._state = PipelineState.LOADING
        self._view.set_force_available(False)
        self._view.show_status(MESSAGE_ANALYZING)

    def _abort_if_loading(self) -> None:
        if self._state is PipelineState.LOADING:
            self._state = PipelineState.FAILED

    def _analyze_locally(self, image: SelectedImage) -> AnalysisOutcome:
        try:
            result = self._local.analyze(image.data)
        except AnalysisError as exc:
            logger.error("Local analysis failed for %s: %s", image.filename, exc)
            return self._fail(MESSAGE_FAILED)
        return self._render(result)

    def _render(self, result: AnalysisResult) -> AnalysisOutcome:
        self._history.record(result)
        self._view.render_result(result, self._history)
        self._view.show_status(MESSAGE_COMPLETE)
        self._state = PipelineState.RENDERED
        logger.info(
            "Rendered %s result danger=%s direction=%s",
            result.source,
            result.danger,
            result.direction,
        )
        if self._notifier is not None:
            self._notifier.dispatch(result)
        return AnalysisOutcome(PipelineState.RENDERED, result=result)

    def _reject(self) -> AnalysisOutcome:
        self._state = PipelineState.INVALID_IMAGE
        self._view.render_alert(INVALID_IMAGE_MESSAGE, level="danger")
        self._view.show_status("")
        self._view.set_force_available(True)
        return AnalysisOutcome(
            PipelineState.INVALID_IMAGE,
            result=AnalysisResult.rejected(),
            message=INVALID_IMAGE_MESSAGE,
        )

    def _fail(self, message: str) -> AnalysisOutcome:
        self._state = PipelineState.FAILED
        self._view.show_status(MESSAGE_ERROR_STATUS)
        self._view.render_alert(message, level="danger")
        return AnalysisOutcome(PipelineState.FAILED, message=message)


__all__ = [
    "AnalysisApi",
    "AnalysisOrchestrator",
    "AnalysisOutcome",
    "OrchestratorConfig",
    "PipelineState",
]
