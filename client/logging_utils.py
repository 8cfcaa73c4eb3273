from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"


class SessionLogBufferHandler(logging.Handler):
    """Keep the most recent log lines of a client session and persist them on close."""

    def __init__(self, output_dir: Path, capacity: int = 2000) -> None:
        super().__init__()
        self._output_dir = output_dir
        self._buffer: deque[str] = deque(maxlen=max(1, capacity))
        self._lock = threading.Lock()
        self._file_path: Optional[Path] = None

    @property
    def file_path(self) -> Optional[Path]:
        with self._lock:
            return self._file_path

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return
        with self._lock:
            self._buffer.append(message)

    def flush(self) -> None:
        with self._lock:
            self._flush_locked()

    def close(self) -> None:
        try:
            self.flush()
        finally:
            super().close()

    def _flush_locked(self) -> Optional[Path]:
        if not self._buffer:
            return None
        self._output_dir.mkdir(parents=True, exist_ok=True)
        if self._file_path is None:
            timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
            self._file_path = self._output_dir / f"session_{timestamp}.log"
        with self._file_path.open("a", encoding="utf-8") as handle:
            handle.write("\n".join(self._buffer) + "\n")
        self._buffer.clear()
        return self._file_path


def configure_logging(verbose: bool = False) -> None:
    """Console logging for the CLI; warnings only unless ``verbose``."""
    root = logging.getLogger()
    if root.handlers:
        if verbose:
            root.setLevel(logging.DEBUG)
        return
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def install_session_log_buffer(
    output_dir: Path,
    capacity: int = 2000,
    formatter: logging.Formatter | None = None,
) -> SessionLogBufferHandler:
    handler = SessionLogBufferHandler(output_dir=output_dir, capacity=capacity)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        formatter
        or logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.addHandler(handler)
    if root.getEffectiveLevel() > logging.INFO:
        root.setLevel(logging.INFO)
    logging.getLogger(__name__).info("Session log buffering enabled in %s", output_dir)
    return handler


__all__ = [
    "LOG_FORMAT",
    "SessionLogBufferHandler",
    "configure_logging",
    "install_session_log_buffer",
]
