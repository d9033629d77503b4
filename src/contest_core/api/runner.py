#!/usr/bin/env python3
"""FastAPI server runner.

Run: python -m contest_core.api.runner [--config config.yaml] [--port 8080]
"""

import argparse
import os

import structlog
import uvicorn

logger = structlog.get_logger()


def main():
    """Run the FastAPI server."""
    parser = argparse.ArgumentParser(description="Stock contest API server")
    parser.add_argument("--config", default=None, help="Path to config file")
    parser.add_argument("--host", default=None, help="Bind address (overrides api.host)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (overrides api.port)")
    args = parser.parse_args()

    # the app module reads CONTEST_CONFIG when it is first imported
    if args.config:
        os.environ["CONTEST_CONFIG"] = args.config

    from contest_core.api.app import app, config
    from contest_core.logging.setup import setup_logging

    setup_logging(level=config.logging.level, log_format=config.logging.format)
    host = args.host or config.api.host
    port = args.port or config.api.port
    logger.info(
        "api_starting",
        host=host,
        port=port,
        live_poll_interval_s=config.live.poll_interval_s,
    )

    try:
        uvicorn.run(app, host=host, port=port, log_config=None)
    except Exception as e:
        logger.error("api_start_failed", error=str(e))
        raise


if __name__ == "__main__":
    main()
