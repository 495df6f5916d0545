#!/usr/bin/env python3
"""
KafePano display - main entry point
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from .config.loader import ConfigLoader
from .controller import DisplayController, create_store
from .utils.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
    logging.getLogger().setLevel(getattr(logging, level))


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point"""
    parser = argparse.ArgumentParser(description="KafePano - café digital signage display")
    parser.add_argument("config", help="Path to YAML configuration file")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: logging.level from the configuration)",
    )

    args = parser.parse_args(argv)

    setup_logging(args.log_level or "INFO")
    logger = logging.getLogger(__name__)

    try:
        config = ConfigLoader().load(args.config)
    except (FileNotFoundError, ValueError, PermissionError, ConfigurationError) as e:
        logger.error(f"Failed to load config: {e}")
        sys.exit(1)

    if not args.log_level:
        setup_logging(config["logging"]["level"])

    try:
        store = create_store(config)
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Cannot connect to content store: {e}")
        sys.exit(1)

    controller = DisplayController(store, config)

    def signal_handler(signum, frame):
        """Handle shutdown signals gracefully"""
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        controller.stop()

    signal.signal(signal.SIGTERM, signal_handler)  # systemd stop
    signal.signal(signal.SIGINT, signal_handler)  # Ctrl+C

    try:
        controller.run()
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
