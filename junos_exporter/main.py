"""Main application entry point for the Junos exporter."""

import argparse
import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI, Query
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from .collectors.interface_collector import builtin_metric_names
from .config.loader import ConfigLoader
from .config.models import ExporterConfig
from .errors import ConfigError, TransportOpenError
from .exporter import JunosExporter, collector_names, render
from .utils.logger import setup_logger
from .version import VERSION

DEFAULT_LISTEN_ADDRESS = ":9347"
DEFAULT_TELEMETRY_PATH = "/metrics"

LANDING_PAGE = """<html>
<head><title>Junos Exporter</title></head>
<body>
<h1>Junos Exporter</h1>
<p><a href="{path}">Metrics</a></p>
<p>Scrape a device with {path}?config=&lt;profile&gt;&amp;target=&lt;host[:port]&gt;</p>
</body>
</html>
"""


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    Split a listen address such as ":9347" or "127.0.0.1:9347".

    An empty host listens on all interfaces.
    """
    host, _, port = address.rpartition(":")
    if not port.isdigit():
        raise ValueError(f"invalid listen address: {address}")
    return host.strip("[]") or "0.0.0.0", int(port)


def create_app(
    exporter_config: ExporterConfig,
    exporter: JunosExporter,
    logger: logging.Logger,
    telemetry_path: str = DEFAULT_TELEMETRY_PATH
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        exporter_config: Loaded configuration
        exporter: Exporter that performs scrapes
        logger: Logger instance
        telemetry_path: Path serving scrape requests

    Returns:
        FastAPI: Application with the landing page and the scrape endpoint
    """

    @asynccontextmanager
    async def lifespan(app):
        logger.info(f"Serving scrapes on {telemetry_path}")
        yield
        logger.info("Shutting down")

    app = FastAPI(
        title="Junos Exporter",
        description="Prometheus metrics for Junos devices over NETCONF",
        lifespan=lifespan,
    )

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return LANDING_PAGE.format(path=telemetry_path)

    async def metrics(
        config: Optional[str] = Query(default=None),
        target: Optional[str] = Query(default=None)
    ) -> Response:
        try:
            exporter_config.validate_request(config, target)
            target_config = exporter_config.target_config(config, target)
        except ConfigError as e:
            return PlainTextResponse(str(e), status_code=400)

        try:
            result = await exporter.scrape(target_config)
        except TransportOpenError as e:
            logger.error(f"could not start exporter: {e}")
            return PlainTextResponse(str(e), status_code=500)

        return Response(content=render(result.samples), media_type=CONTENT_TYPE_LATEST)

    app.add_api_route(telemetry_path, metrics, methods=["GET"])
    return app


class ExporterApp:
    """
    Main exporter application.

    Loads configuration once at start-up and serves scrapes until stopped.
    """

    def __init__(
        self,
        config_path: str,
        listen_address: str = DEFAULT_LISTEN_ADDRESS,
        telemetry_path: str = DEFAULT_TELEMETRY_PATH,
        log_level: str = "INFO"
    ):
        """
        Initialize exporter application.

        Args:
            config_path: Path to configuration file
            listen_address: host:port to listen on
            telemetry_path: Path serving scrape requests
            log_level: Log level name
        """
        self.config_path = config_path
        self.listen_address = listen_address
        self.telemetry_path = telemetry_path
        self.log_level = log_level
        self.logger = setup_logger("junos_exporter", log_level)

        self.config = self._load_config()
        self.exporter = JunosExporter(self.logger)
        self.app = create_app(self.config, self.exporter, self.logger, telemetry_path)

    def _load_config(self) -> ExporterConfig:
        """
        Load and validate configuration.

        Raises:
            SystemExit: If configuration is invalid
        """
        try:
            self.logger.info(f"Loading configuration from {self.config_path}")
            config = ConfigLoader.load_from_file(self.config_path, collector_names(), builtin_metric_names())
            self.logger.info(f"Loaded {len(config.configs)} configuration profiles")
            return config

        except FileNotFoundError:
            self.logger.error(f"Configuration file not found: {self.config_path}")
            sys.exit(1)

        except Exception as e:
            self.logger.error(f"Failed to load configuration: {e}", exc_info=True)
            sys.exit(1)

    def run(self) -> None:
        host, port = parse_listen_address(self.listen_address)
        self.logger.info(f"Starting junos_exporter {VERSION} on {host}:{port}")
        uvicorn.run(self.app, host=host, port=port, log_level=self.log_level.lower())


def main():
    """
    CLI entry point.

    Parses command-line arguments and starts the HTTP server.
    """
    parser = argparse.ArgumentParser(
        description='Prometheus exporter for Junos devices over NETCONF',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  junos-exporter --config.path config/config.yaml

  curl 'http://localhost:9347/metrics?config=default&target=192.0.2.1'
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'junos_exporter {VERSION}'
    )

    parser.add_argument(
        '--config.path', '--config',
        dest='config_path',
        required=True,
        help='Path of the YAML configuration file'
    )

    parser.add_argument(
        '--web.listen-address',
        dest='listen_address',
        default=DEFAULT_LISTEN_ADDRESS,
        help=f'Address on which to expose metrics and web interface (default: {DEFAULT_LISTEN_ADDRESS})'
    )

    parser.add_argument(
        '--web.telemetry-path',
        dest='telemetry_path',
        default=DEFAULT_TELEMETRY_PATH,
        help=f'Path under which to expose metrics (default: {DEFAULT_TELEMETRY_PATH})'
    )

    parser.add_argument(
        '--log-level',
        default=os.getenv('LOG_LEVEL', 'INFO'),
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO or LOG_LEVEL env var)'
    )

    args = parser.parse_args()

    try:
        app = ExporterApp(
            config_path=args.config_path,
            listen_address=args.listen_address,
            telemetry_path=args.telemetry_path,
            log_level=args.log_level
        )
        app.run()
    except ValueError as e:
        logging.error(f"Application startup failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
