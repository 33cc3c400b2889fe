"""Main application entry point for the bookmarks alive exporter."""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, Optional

import uvicorn
import yaml
from pydantic import ValidationError

from .collectors.prober import HTTPProber
from .collectors.source import BookmarkSource, StoreOpenError
from .config.loader import ConfigLoader
from .config.models import ExporterConfig
from .orchestrator import CollectionOrchestrator
from .server import create_app
from .services.exposition import MetricsExporter
from .services.gauge_store import GaugeStore
from .utils.logger import route_uvicorn_logs, setup_logger


class ExporterApp:
    """
    Main exporter application.

    Builds the long-lived components once (gauge store, prober, source,
    orchestrator, registry), verifies the store, and runs the HTTP server
    until SIGINT/SIGTERM.
    """

    def __init__(self, config: ExporterConfig, logger: Optional[logging.Logger] = None):
        """
        Initialize exporter application.

        Args:
            config: Validated configuration
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or setup_logger("bookmarks_exporter", config.logging.level)

        self.store = GaugeStore(self.logger.getChild("GaugeStore"))
        self.source = BookmarkSource(config.store, self.logger)
        self.prober = HTTPProber(config.probe, self.logger)
        self.orchestrator = CollectionOrchestrator(
            self.source,
            self.prober,
            self.store,
            config.collection,
            self.logger
        )
        self.exporter = MetricsExporter(self.store, config.metric)
        self.app = create_app(config.server, self.orchestrator, self.exporter, self.logger)

    async def verify_store(self) -> None:
        """
        Fail fast if the bookmarks store is unusable at boot.

        Raises:
            SystemExit: If the store cannot be opened
        """
        try:
            await self.source.verify()
        except StoreOpenError as e:
            self.logger.error(f"Error connecting to database: {e}")
            sys.exit(1)

    async def serve(self) -> None:
        """
        Run the HTTP server until a termination signal arrives.

        uvicorn installs the SIGINT/SIGTERM handlers, stops accepting
        connections, and gives in-flight scrapes shutdown_timeout_seconds
        before cancelling them; the app lifespan then closes the orchestrator.

        Raises:
            SystemExit: If the listening socket cannot be bound
        """
        await self.verify_store()

        server_config = self.config.server
        route_uvicorn_logs(self.config.logging.level)

        self.logger.info(f"Starting bookmarks-alive-exporter on {server_config.host}:{server_config.port}")
        self.logger.info(f"Using User-Agent: {self.config.probe.user_agent}")
        self.logger.info(
            f"Workers: {self.config.collection.workers}, "
            f"probe timeout: {self.config.probe.timeout_seconds}s, "
            f"scrape deadline: {self.config.collection.deadline_seconds}s"
        )

        server = uvicorn.Server(uvicorn.Config(
            self.app,
            host=server_config.host,
            port=server_config.port,
            log_config=None,
            timeout_graceful_shutdown=server_config.shutdown_timeout_seconds
        ))
        await server.serve()

        if not server.started:
            self.logger.error(f"Error starting server on port {server_config.port}")
            sys.exit(1)

        self.logger.info("Server exiting")


def build_overrides(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    """
    Translate CLI flags into config overrides, skipping flags left unset.

    Args:
        args: Parsed command-line arguments

    Returns:
        dict: Nested {section: {field: value}}
    """
    mapping = {
        "db": ("store", "path"),
        "host": ("server", "host"),
        "port": ("server", "port"),
        "user_agent": ("probe", "user_agent"),
        "probe_timeout": ("probe", "timeout_seconds"),
        "workers": ("collection", "workers"),
        "scrape_timeout": ("collection", "deadline_seconds"),
        "log_level": ("logging", "level"),
    }

    overrides: Dict[str, Dict[str, Any]] = {}
    for arg_name, (section, key) in mapping.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            overrides.setdefault(section, {})[key] = value
    return overrides


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Prometheus exporter reporting the HTTP status of bookmarked URLs',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve metrics for ./bookmarks.db on port 8000
  python -m bookmarks_exporter.main

  # Custom database, port and User-Agent
  python -m bookmarks_exporter.main --db /data/bookmarks.db --port 9110 --user-agent my-exporter/2.0

  # Settings from a YAML file, CLI flags still win
  python -m bookmarks_exporter.main --config config/config.yaml
        """
    )

    parser.add_argument('--config', help='Optional YAML configuration file')
    parser.add_argument('--db', help='Path to SQLite database (default: ./bookmarks.db)')
    parser.add_argument('--host', help='Address to listen on (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, help='Port to serve metrics on (default: 8000)')
    parser.add_argument(
        '--user-agent',
        help='User-Agent string to use for HTTP requests (default: bookmarks-alive-exporter/1.0)'
    )
    parser.add_argument('--workers', type=int, help='Concurrent probe workers (default: 20)')
    parser.add_argument('--probe-timeout', type=float, help='Per-URL timeout in seconds (default: 5)')
    parser.add_argument('--scrape-timeout', type=float, help='Deadline for one scrape in seconds (default: 30)')
    parser.add_argument(
        '--log-level',
        default=os.getenv('LOG_LEVEL'),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO or LOG_LEVEL env var)'
    )

    return parser.parse_args(argv)


def main(argv=None):
    """
    CLI entry point.

    Parses command-line arguments, loads configuration and runs the exporter.
    """
    args = parse_args(argv)

    try:
        config = ConfigLoader.load(args.config, build_overrides(args))
    except (FileNotFoundError, ValueError, ValidationError, yaml.YAMLError) as e:
        logging.basicConfig()
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    logger = setup_logger("bookmarks_exporter", config.logging.level)

    try:
        app = ExporterApp(config, logger)
        asyncio.run(app.serve())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")


if __name__ == '__main__':
    main()
