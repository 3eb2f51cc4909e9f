#!/usr/bin/env python3
"""FastAPI server runner.

Run: python -m updown_core.api [--config config.yaml]
"""

import argparse
import sys
from pathlib import Path

import uvicorn

from updown_core.api.app import create_app
from updown_core.config import ConfigError, load_config
from updown_core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def main(argv=None) -> int:
    """Run the FastAPI server."""
    parser = argparse.ArgumentParser(prog="python -m updown_core.api", description="Up/down replay API server")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    setup_logging(level=config.logging.level, log_format=config.logging.format)

    log_root = Path(config.storage.log_root)
    if not log_root.is_dir():
        print(f"Error: root does not exist: {log_root.resolve()}", file=sys.stderr)
        return 1

    app = create_app(config)
    logger.info(
        "Starting FastAPI server",
        host=config.server.host,
        port=config.server.port,
        log_root=str(log_root.resolve()),
    )

    try:
        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_config=None,  # Use our structlog setup
        )
    except Exception as e:
        logger.error("Failed to start server", error=str(e))
        raise
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
