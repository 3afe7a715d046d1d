"""
Response Pipeline

Runs one request through the fixture stages:

    Resolving -> Loading -> Validating -> Mutating -> Responding
        \\          \\          \\            \\
         +----------+----------+------------+--> Failed

Each stage returns Ok(input for the next stage) or Error(PipelineFailure).
The first Error short-circuits to a single failure mapping. The body is
encoded before the observer is called, so the observer and the client always
see the same (status, body) pair, exactly once. For statuses that carry no
body (1xx, 204, 304) the observer receives None.
"""

import json
import mimetypes
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from fastapi.responses import Response
from loguru import logger

from .errors import FailureKind, PipelineFailure
from .fixtures import load_fixture, resolve_fixture
from .result import Error, Ok, Result
from .session import MockSession
from .validation import decode_fixture, validate_fixture


UNKNOWN_ERROR = "unknown error"
DEFAULT_ERROR_STATUS = 500
DEFAULT_TEXT_MEDIA_TYPE = "text/plain"

# Statuses that must not carry a body on the wire
_BODYLESS_STATUSES = {204, 304}


@dataclass(frozen=True)
class PipelineOutcome:
    """Final status and body of a handled request."""

    status: int
    body: Any
    is_json: bool
    media_type: str = "application/json"
    failure: FailureKind | None = None
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return self.failure is None


class ResponsePipeline:
    """
    Serves fixtures from root, applying the overrides registered on session.

    The pipeline holds no per-request state; concurrent requests only share
    the (read-only while serving) session.
    """

    def __init__(self, root: Path, session: MockSession) -> None:
        self.root = Path(root)
        self.session = session

    async def run(self, request_path: str) -> PipelineOutcome:
        """
        Handle one request path and notify the observer.

        Args:
            request_path: Raw URL path, without query string

        Returns:
            PipelineOutcome to be written to the client
        """
        match await self._serve(request_path):
            case Ok(outcome):
                logger.debug(f"[ResponsePipeline] {request_path} -> {outcome.status}")
            case Error(failure):
                outcome = self._failed(request_path, failure)

        match encode_outcome(outcome):
            case Ok(encoded):
                outcome = encoded
            case Error(reason):
                failed = self._failed(
                    request_path,
                    PipelineFailure(
                        kind=FailureKind.INVALID_MUTATION,
                        status=500,
                        payload=f"Response body for {request_path} is not JSON serializable: {reason}",
                    ),
                )
                outcome = replace(failed, content=failed.body.encode("utf-8"))

        self._notify(outcome)
        return outcome

    async def _serve(self, request_path: str) -> Result[PipelineOutcome, PipelineFailure]:
        match await resolve_fixture(self.root, request_path):
            case Error(failure):
                return Error(failure)
            case Ok(file_path):
                pass

        match await load_fixture(file_path):
            case Error(failure):
                return Error(failure)
            case Ok(text):
                pass

        match validate_fixture(text, request_path, file_path):
            case Error(failure):
                return Error(failure)
            case Ok(text):
                pass

        return self._mutate(text, request_path, file_path)

    def _mutate(self, text: str, request_path: str, file_path: Path) -> Result[PipelineOutcome, PipelineFailure]:
        registry = self.session.registry

        match decode_fixture(text):
            case Ok(document):
                match registry.apply_mutations(document, request_path):
                    case Error(failure):
                        return Error(failure)
                    case Ok(mutated):
                        return Ok(
                            PipelineOutcome(
                                status=registry.resolve_status(request_path),
                                body=mutated,
                                is_json=True,
                            )
                        )
            case Error(_):
                # Opaque text (HTML, plain text...) is served as-is.
                if registry.mutations_for(request_path):
                    return Error(
                        PipelineFailure(
                            kind=FailureKind.INVALID_MUTATION,
                            status=500,
                            payload=f"Cannot apply JSON mutations to non-JSON fixture {file_path}",
                        )
                    )
                media_type, _ = mimetypes.guess_type(file_path.name)
                return Ok(
                    PipelineOutcome(
                        status=registry.resolve_status(request_path),
                        body=text,
                        is_json=False,
                        media_type=media_type or DEFAULT_TEXT_MEDIA_TYPE,
                    )
                )

    def _failed(self, request_path: str, failure: PipelineFailure) -> PipelineOutcome:
        status = failure.status or DEFAULT_ERROR_STATUS
        payload = failure.payload or UNKNOWN_ERROR
        is_json = isinstance(payload, dict | list)
        logger.warning(f"[ResponsePipeline] {request_path} failed ({failure.kind.value}) -> {status}")
        return PipelineOutcome(
            status=status,
            body=payload,
            is_json=is_json,
            media_type="application/json" if is_json else DEFAULT_TEXT_MEDIA_TYPE,
            failure=failure.kind,
        )

    def _notify(self, outcome: PipelineOutcome) -> None:
        try:  # nosemgrep: forbid-try-except
            self.session.observer(outcome.status, outcome.body)
        except Exception:
            logger.exception(f"[ResponsePipeline] Observer raised for status {outcome.status}")


def _is_bodyless(status: int) -> bool:
    return status < 200 or status in _BODYLESS_STATUSES


def encode_outcome(outcome: PipelineOutcome) -> Result[PipelineOutcome, str]:
    """
    Serialize the outcome body into the bytes written to the client.

    JSON bodies are encoded the way JSONResponse does (compact, NaN rejected).

    Returns:
        Ok(outcome with content set), or Error(reason) when the body is not JSON
    """
    if _is_bodyless(outcome.status):
        return Ok(replace(outcome, body=None, content=b""))

    if not outcome.is_json:
        return Ok(replace(outcome, content=str(outcome.body).encode("utf-8")))

    try:  # nosemgrep: forbid-try-except
        content = json.dumps(
            outcome.body,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        return Error(str(e))
    return Ok(replace(outcome, content=content))


def render_response(outcome: PipelineOutcome, headers: dict[str, str] | None = None) -> Response:
    """Build the HTTP response for an encoded outcome."""
    if _is_bodyless(outcome.status):
        return Response(status_code=outcome.status, headers=headers)

    return Response(
        content=outcome.content,
        status_code=outcome.status,
        media_type=outcome.media_type,
        headers=headers,
    )
