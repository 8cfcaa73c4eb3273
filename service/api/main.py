from __future__ import annotations

import argparse
import logging
import os
from typing import Sequence

import uvicorn
from dotenv import load_dotenv

from .server import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the RockShield development API")
    parser.add_argument(
        "--host",
        default=os.environ.get("ROCKSHIELD_HOST", "127.0.0.1"),
        help="Interface to bind (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("ROCKSHIELD_PORT", "8000")),
        help="Port to listen on (default: 8000)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    load_dotenv()
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s"
        )
    args = build_parser().parse_args(argv)
    logger.info("Server configuration: %s:%d", args.host, args.port)
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
