"""
Command-line entry point.

Usage:
    python -m mock_fixture_server --dir tests/fixtures --port 8080
    python -m mock_fixture_server --cors-allowed-headers Authorization,Content-Type

Flags override MOCK_SERVER_* environment variables (see config.py).
"""

import argparse
import sys

import uvicorn
from loguru import logger

from .config import CorsConfig, ServerConfig, _split_csv
from .logging_config import configure_logging
from .server import MockServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mock_fixture_server",
        description="Serve JSON fixtures from a directory tree",
    )
    parser.add_argument("--dir", help="Fixture root directory")
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Listen port")
    parser.add_argument("--name", help="Server name used in logs")
    parser.add_argument("--cors-origin", help="Allowed origin(s), comma separated")
    parser.add_argument("--cors-allowed-headers", help="Allowed request headers, comma separated")
    parser.add_argument("--env-file", default=".env.local", help="dotenv file to load first")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (default: LOG_LEVEL)")
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    config = ServerConfig.from_env(
        env_file=args.env_file,
        dir=args.dir,
        host=args.host,
        port=args.port,
        name=args.name,
    )

    cors_overrides: dict = {}
    origins = _split_csv(args.cors_origin)
    if origins:
        cors_overrides["origin"] = origins[0] if len(origins) == 1 else origins
    allowed_headers = _split_csv(args.cors_allowed_headers)
    if allowed_headers:
        cors_overrides["allowed_headers"] = allowed_headers
    if cors_overrides:
        config.cors = CorsConfig(**{**config.cors.model_dump(), **cors_overrides})

    return config


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    config = config_from_args(args)
    if not config.dir.is_dir():
        logger.error(f"Fixture directory not found: {config.dir}")
        return 1

    server = MockServer(config)
    logger.info(f"[{config.name}] Serving {config.dir.resolve()} on http://{config.host}:{config.port}")
    uvicorn.run(server.app, host=config.host, port=config.port, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
