"""
Error types for the mock fixture server.

Request handling never raises: every pipeline stage returns
``Error(PipelineFailure)`` and the pipeline maps it to an HTTP response.
Exceptions are reserved for misuse of the in-process registration and
lifecycle API.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FailureKind(str, Enum):
    """Why a request could not be served from its fixture."""

    NOT_FOUND = "not_found"
    IO_ERROR = "io_error"
    MALFORMED_FIXTURE = "malformed_fixture"
    INVALID_MUTATION = "invalid_mutation"


@dataclass(frozen=True)
class PipelineFailure:
    """Status/payload pair produced by a failed pipeline stage.

    ``status`` and ``payload`` may be None; the pipeline substitutes 500 and
    "unknown error" before anything is observed or written.
    """

    kind: FailureKind
    status: int | None
    payload: Any = None


class MockFixtureServerError(Exception):
    """Base class for errors raised by the mock fixture server API."""


class RegistrationError(MockFixtureServerError, ValueError):
    """Raised when a mutation or status override is registered incorrectly."""


class ServerLifecycleError(MockFixtureServerError, RuntimeError):
    """Raised when the HTTP listener cannot be started."""
