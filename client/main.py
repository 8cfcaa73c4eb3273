from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from client.config import (
    DEFAULT_CONFIG_PATH,
    ClientConfig,
    load_client_config,
    resolve_api_base,
    save_api_base_preference,
)
from client.history import RiskHistory
from client.logging_utils import configure_logging, install_session_log_buffer
from client.mock import MockAnalysisApi
from client.notifier import DangerNotifier
from client.orchestrator import (
    AnalysisOrchestrator,
    OrchestratorConfig,
    PipelineState,
)
from client.prober import ReachabilityProber, ServiceAvailability
from client.remote import RemoteAnalysisClient
from client.selection import SelectedImage
from client.transport import Transport
from client.view import FORCE_HINT, ConsoleView, JsonLinesView, ResultView

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Assess rockfall risk in images with the RockShield API or offline"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"client config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Base URL of the analysis API (overrides ROCKSHIELD_API_BASE and the config file)",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="enable verbose client logging"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    analyze = commands.add_parser("analyze", help="analyze one or more images")
    analyze.add_argument("images", nargs="+", type=Path, help="image files to analyze")
    analyze.add_argument(
        "--api",
        choices=["http", "mock"],
        default="http",
        help="API backend to use",
    )
    analyze.add_argument(
        "--offline",
        action="store_true",
        help="skip the API entirely and analyze locally",
    )
    analyze.add_argument(
        "--force-invalid",
        action="store_true",
        help="resubmit with force when the API says an image is not a rockfall scene",
    )
    analyze.add_argument(
        "--mock-state",
        choices=["safe", "danger"],
        default="safe",
        help="verdict returned by the mock API",
    )
    analyze.add_argument(
        "--downgrade-on-failure",
        action="store_true",
        help="stop calling the API for the rest of the run after a network failure",
    )
    analyze.add_argument(
        "--json", action="store_true", help="print results as JSON lines"
    )
    analyze.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="directory to write the session log to",
    )

    commands.add_parser("probe", help="check whether the analysis API is reachable")

    set_base = commands.add_parser(
        "set-api-base", help="remember the API base URL in the client config file"
    )
    set_base.add_argument("url")
    return parser


def build_api_client(
    args: argparse.Namespace,
    api_base: str,
    config: ClientConfig,
    transport: Transport,
) -> MockAnalysisApi | RemoteAnalysisClient:
    if args.api == "mock":
        return MockAnalysisApi(default_state=args.mock_state)
    return RemoteAnalysisClient(
        base_url=api_base,
        transport=transport,
        analyze_timeout=config.analyze_timeout,
        force_timeout=config.force_timeout,
    )


def build_view(args: argparse.Namespace) -> ResultView:
    if args.json:
        return JsonLinesView()
    return ConsoleView(force_hint=None if args.force_invalid else FORCE_HINT)


def run_analyze(args: argparse.Namespace, config: ClientConfig) -> int:
    api_base = resolve_api_base(args.api_url, config)
    transport = Transport()
    availability = ServiceAvailability()
    api = build_api_client(args, api_base, config, transport)
    view = build_view(args)

    if args.offline:
        availability.mark_unavailable("Offline mode. Images are analyzed locally.")
    elif isinstance(api, MockAnalysisApi):
        availability.mark_available("Mock API connected.")
    else:
        ReachabilityProber(
            base_url=api_base,
            availability=availability,
            transport=transport,
            timeout=config.probe_timeout,
        ).probe()
    view.show_status(availability.message)

    orchestrator = AnalysisOrchestrator(
        availability=availability,
        remote=api,
        history=RiskHistory(capacity=config.history_capacity),
        notifier=DangerNotifier(
            channel=api, availability=availability, timeout=config.notify_timeout
        ),
        view=view,
        config=OrchestratorConfig(
            downgrade_on_transport_error=args.downgrade_on_failure
        ),
    )

    unresolved = 0
    try:
        for path in args.images:
            try:
                image = SelectedImage.from_path(path)
            except OSError as exc:
                view.render_alert(f"Cannot read {path}: {exc}", level="danger")
                unresolved += 1
                continue
            view.show_status(f"{path}:")
            outcome = orchestrator.submit(image)
            if outcome.state is PipelineState.INVALID_IMAGE and args.force_invalid:
                outcome = orchestrator.force_resubmit()
            if outcome.state is not PipelineState.RENDERED:
                unresolved += 1
    finally:
        orchestrator.wait_for_notifications(config.notify_timeout)
        transport.close()
    return 1 if unresolved else 0


def run_probe(args: argparse.Namespace, config: ClientConfig) -> int:
    api_base = resolve_api_base(args.api_url, config)
    availability = ServiceAvailability()
    transport = Transport()
    try:
        ReachabilityProber(
            base_url=api_base,
            availability=availability,
            transport=transport,
            timeout=config.probe_timeout,
        ).probe()
    finally:
        transport.close()
    print(f"{api_base}: {availability.message}")
    return 0 if availability.available else 1


def run_set_api_base(args: argparse.Namespace) -> int:
    stored = save_api_base_preference(args.config, args.url)
    print(f"API base set to {stored}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "set-api-base":
        return run_set_api_base(args)

    config = load_client_config(args.config)
    if args.command == "probe":
        return run_probe(args, config)

    log_handler = install_session_log_buffer(args.log_dir) if args.log_dir else None
    try:
        return run_analyze(args, config)
    finally:
        if log_handler is not None:
            logging.getLogger().removeHandler(log_handler)
            log_handler.close()
            logger.debug("Session log written to %s", log_handler.file_path)


if __name__ == "__main__":
    raise SystemExit(main())
