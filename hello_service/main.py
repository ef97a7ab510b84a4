"""
Command-line launcher for the hello service.

    hello-service --profile dev
    APP_PROFILE=prod python -m hello_service
"""
import os
import sys
import logging
import argparse
from typing import List, Optional

from dotenv import load_dotenv

from hello_service.app import create_app
from hello_service.config import load_config

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger to stdout. LOG_LEVEL is used when level is omitted."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hello-service",
        description="Serve GET /hello with the message of the active profile.",
    )
    parser.add_argument("--profile", help="Profile to activate (default, dev, prod). Overrides APP_PROFILE.")
    parser.add_argument("--config-dir", help="Directory with application*.env files. Overrides APP_CONFIG_DIR.")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port to listen on. Overrides server.port.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point. Exits with status 1 if configuration cannot be loaded."""
    load_dotenv()  # Local .env, does not override real environment variables
    configure_logging()

    args = create_parser().parse_args(argv)

    logger.info("Starting hello service")
    logger.info("Python version: %s", sys.version.split()[0])

    try:
        config = load_config(profile=args.profile, config_dir=args.config_dir)
    except ValueError as e:  # ConfigMissingError or an unknown profile name
        logger.error(f"Configuration error, refusing to start: {e}")
        raise SystemExit(1)

    app = create_app(config=config)
    port = args.port or config.port
    logger.info(f"Serving on {args.host}:{port} | Profile: {config.profile.value}")
    app.run(host=args.host, port=port, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
