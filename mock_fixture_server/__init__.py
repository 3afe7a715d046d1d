"""
Mock Fixture Server

Serves JSON fixture files from a directory tree over HTTP, with per-path
JSON-pointer patches, status overrides and a response observer for tests.

Components:
    - MockServer: HTTP listener, lifecycle and registration API
    - MockSession / PathResponder: per-server override registration
    - ResponsePipeline: resolve -> load -> validate -> mutate -> respond
    - MutationRegistry: ordered patches and status overrides
"""

from .config import CorsConfig, ServerConfig
from .errors import (
    FailureKind,
    MockFixtureServerError,
    PipelineFailure,
    RegistrationError,
    ServerLifecycleError,
)
from .fixtures import load_fixture, resolve_fixture
from .logging_config import configure_logging
from .mutations import MutationEntry, MutationRegistry, StatusEntry, set_pointer
from .pipeline import PipelineOutcome, ResponsePipeline, encode_outcome, render_response
from .result import Error, Ok, Result
from .server import MockServer, create_app
from .session import MockSession, PathResponder
from .validation import decode_fixture, looks_like_json, validate_fixture


__all__ = [
    "CorsConfig",
    "Error",
    "FailureKind",
    "MockFixtureServerError",
    "MockServer",
    "MockSession",
    "MutationEntry",
    "MutationRegistry",
    "Ok",
    "PathResponder",
    "PipelineFailure",
    "PipelineOutcome",
    "RegistrationError",
    "ResponsePipeline",
    "Result",
    "ServerConfig",
    "ServerLifecycleError",
    "StatusEntry",
    "configure_logging",
    "create_app",
    "decode_fixture",
    "encode_outcome",
    "load_fixture",
    "looks_like_json",
    "render_response",
    "resolve_fixture",
    "set_pointer",
    "validate_fixture",
]
