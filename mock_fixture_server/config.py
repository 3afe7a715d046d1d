"""
Server Configuration

pydantic models for the mock server and its cross-origin policy.

Environment Variables (read by ServerConfig.from_env, after .env.local):
    MOCK_SERVER_DIR: Fixture root directory (default: ./fixtures)
    MOCK_SERVER_HOST: Bind address (default: 127.0.0.1)
    MOCK_SERVER_PORT: Listen port, 0 picks a free one (default: 0)
    MOCK_SERVER_NAME: Name used in logs (default: mock-fixture-server)
    MOCK_SERVER_CORS_ORIGIN: Allowed origin(s), comma separated (default: *)
    MOCK_SERVER_CORS_ALLOWED_HEADERS: Allowed request headers, comma separated
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


DEFAULT_HOST = "127.0.0.1"
DEFAULT_NAME = "mock-fixture-server"


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class CorsConfig(BaseModel):
    """Cross-origin policy applied to every route."""

    origin: str | list[str] = "*"
    credentials: bool = True
    methods: list[str] = Field(default_factory=lambda: ["*"])
    allowed_headers: list[str] = Field(default_factory=list)
    exposed_headers: list[str] = Field(default_factory=list)
    max_age: int = 600

    @property
    def origins(self) -> list[str]:
        return [self.origin] if isinstance(self.origin, str) else list(self.origin)

    @property
    def allow_headers_value(self) -> str | None:
        """Comma-joined allowed headers, or None when none are configured."""
        if not self.allowed_headers:
            return None
        return ",".join(self.allowed_headers)


class ServerConfig(BaseModel):
    """Where fixtures live and where the server listens."""

    name: str = DEFAULT_NAME
    dir: Path
    host: str = DEFAULT_HOST
    port: int = 0
    cors: CorsConfig = Field(default_factory=CorsConfig)

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 <= value <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {value}")
        return value

    @classmethod
    def from_env(cls, env_file: str | None = ".env.local", **overrides) -> "ServerConfig":
        """
        Build a config from MOCK_SERVER_* variables.

        Args:
            env_file: dotenv file loaded first (missing files are ignored)
            **overrides: Values that win over the environment (None is ignored)
        """
        if env_file:
            load_dotenv(env_file)

        values: dict = {
            "name": os.getenv("MOCK_SERVER_NAME", DEFAULT_NAME),
            "dir": os.getenv("MOCK_SERVER_DIR", "./fixtures"),
            "host": os.getenv("MOCK_SERVER_HOST", DEFAULT_HOST),
            "port": int(os.getenv("MOCK_SERVER_PORT", "0")),
        }

        cors: dict = {}
        origins = _split_csv(os.getenv("MOCK_SERVER_CORS_ORIGIN"))
        if origins:
            cors["origin"] = origins[0] if len(origins) == 1 else origins
        allowed_headers = _split_csv(os.getenv("MOCK_SERVER_CORS_ALLOWED_HEADERS"))
        if allowed_headers:
            cors["allowed_headers"] = allowed_headers
        values["cors"] = CorsConfig(**cors)

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
