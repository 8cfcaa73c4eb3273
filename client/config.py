"""Client configuration and API base URL resolution.

The API base URL is resolved, in order, from an explicit override (the
``--api-url`` flag or ``ROCKSHIELD_API_BASE``), the persisted preference in
the client config file, the compiled-in ``PUBLIC_API_BASE`` and finally the
local development server. Only ``http`` and ``https`` URLs are accepted.

Per-call timeouts live here as well; they are seconds, not milliseconds.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "http://127.0.0.1:8000"
# Set to the deployed service URL when publishing, e.g. https://your-domain.com
PUBLIC_API_BASE = ""
API_BASE_ENV = "ROCKSHIELD_API_BASE"
DEFAULT_CONFIG_PATH = Path.home() / ".rockshield" / "client.json"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def sanitize_api_base(raw: str | None) -> str:
    """Normalise an API base URL, falling back to the local default.

    A non-root path is kept without its trailing slash; otherwise only the
    origin survives.
    """
    if raw is None:
        return DEFAULT_API_BASE
    candidate = raw.strip()
    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError:
        return DEFAULT_API_BASE
    if parts.scheme.lower() not in {"http", "https"} or not parts.hostname:
        return DEFAULT_API_BASE

    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    origin = f"{parts.scheme.lower()}://{host}"
    if port is not None and port != _DEFAULT_PORTS[parts.scheme.lower()]:
        origin = f"{origin}:{port}"
    path = parts.path
    if path and path != "/":
        return f"{origin}{path.rstrip('/')}"
    return origin


@dataclass
class ClientConfig:
    """Client settings that persist between runs."""

    api_base: str | None = None
    probe_timeout: float = 8.0
    analyze_timeout: float = 60.0
    force_timeout: float = 20.0
    notify_timeout: float = 10.0
    history_capacity: int = 20

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClientConfig":
        defaults = cls()
        api_base = data.get("api_base")
        if api_base is not None and not isinstance(api_base, str):
            api_base = None
        return cls(
            api_base=api_base or None,
            probe_timeout=_sanitize_timeout(data.get("probe_timeout"), defaults.probe_timeout),
            analyze_timeout=_sanitize_timeout(
                data.get("analyze_timeout"), defaults.analyze_timeout
            ),
            force_timeout=_sanitize_timeout(data.get("force_timeout"), defaults.force_timeout),
            notify_timeout=_sanitize_timeout(
                data.get("notify_timeout"), defaults.notify_timeout
            ),
            history_capacity=_sanitize_capacity(
                data.get("history_capacity"), defaults.history_capacity
            ),
        )


def _sanitize_timeout(value: Any, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return default
    return timeout if timeout > 0 else default


def _sanitize_capacity(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        return default
    return capacity if capacity >= 1 else default


def load_client_config(path: Path | None = None) -> ClientConfig:
    """Load client configuration, returning defaults when the file is unusable."""
    path = path or DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.debug("No client config at %s; using defaults", path)
        return ClientConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to load client config from %s: %s; using defaults", path, exc)
        return ClientConfig()
    if not isinstance(data, dict):
        logger.warning("Client config at %s is not a JSON object; using defaults", path)
        return ClientConfig()
    return ClientConfig.from_dict(data)


def save_client_config(path: Path, config: ClientConfig) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Saved client config to %s api_base=%s", path, config.api_base)


def save_api_base_preference(path: Path, raw: str) -> str:
    """Persist ``raw`` as the preferred API base and return the stored value."""
    config = load_client_config(path)
    config.api_base = sanitize_api_base(raw)
    save_client_config(path, config)
    return config.api_base


def resolve_api_base(
    override: str | None = None,
    config: ClientConfig | None = None,
) -> str:
    candidates = (
        override,
        os.environ.get(API_BASE_ENV),
        config.api_base if config is not None else None,
        PUBLIC_API_BASE,
    )
    for candidate in candidates:
        if candidate:
            return sanitize_api_base(candidate)
    return DEFAULT_API_BASE


__all__ = [
    "API_BASE_ENV",
    "ClientConfig",
    "DEFAULT_API_BASE",
    "DEFAULT_CONFIG_PATH",
    "PUBLIC_API_BASE",
    "load_client_config",
    "resolve_api_base",
    "sanitize_api_base",
    "save_api_base_preference",
    "save_client_config",
]
