"""Command-line entry point for the credential cache web server."""

import argparse
import logging
import os
import sys

from .cli import setup_logging
from .config import ConfigurationManager
from .exceptions import ConfigurationError
from .service import CredentialService
from .web import create_app

logger = logging.getLogger(__name__)


def main():
    """Entry point: parse arguments, load config, start the Flask server."""
    parser = argparse.ArgumentParser(
        description="Start the AWS MFA credential cache backend"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to configuration file (YAML format, optional)",
    )
    parser.add_argument(
        "--socket",
        default=None,
        help="Unix socket path (overrides server.socket from the config)",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Listen on server.host/server.port instead of a Unix socket",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()
    setup_logging(args.debug)

    try:
        config = ConfigurationManager.load_config(args.config)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(1)

    app = create_app(service=CredentialService(config))

    socket_path = None if args.tcp else (args.socket or config.server.socket)
    if socket_path:
        # A stale socket from a previous run blocks binding
        if os.path.exists(socket_path):
            os.remove(socket_path)
        logger.info("Backend listening on %s", socket_path)
        app.run(host=f"unix://{socket_path}", debug=args.debug)
    else:
        logger.info("Backend listening on %s:%s", config.server.host, config.server.port)
        app.run(host=config.server.host, port=config.server.port, debug=args.debug)


if __name__ == "__main__":
    main()
