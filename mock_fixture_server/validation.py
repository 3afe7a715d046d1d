"""
JSON Validator

Fixtures that look like JSON objects are parsed up front so a corrupted file
fails with a clear diagnostic instead of surfacing later in the mutation
stage. Anything else (arrays, numbers, HTML, plain text) passes through.
"""

from pathlib import Path
from typing import Any

from loguru import logger

from .errors import FailureKind, PipelineFailure
from .result import Error, Ok, Result
from .utils import _first_significant_char, _parse_json_safely


def looks_like_json(text: str) -> bool:
    """Cheap check: the first non-whitespace character opens an object."""
    return _first_significant_char(text) == "{"


def validate_fixture(text: str, request_path: str, file_path: Path) -> Result[str, PipelineFailure]:
    """
    Confirm that object-shaped fixture text parses.

    Parsing here is only a check; the original text is returned unchanged.

    Args:
        text: Raw fixture content
        request_path: URL path of the request (reported back on failure)
        file_path: Resolved fixture file (reported back on failure)

    Returns:
        Ok(text), or Error(PipelineFailure) with a {message, url, file} payload
    """
    if not looks_like_json(text):
        return Ok(text)

    match _parse_json_safely(text):
        case Ok(_):
            return Ok(text)
        case Error(reason):
            logger.error(f"[JsonValidator] Could not parse JSON in {file_path}: {reason}")
            return Error(
                PipelineFailure(
                    kind=FailureKind.MALFORMED_FIXTURE,
                    status=500,
                    payload={
                        "message": f"File looks like JSON, but could not be parsed ({reason})",
                        "url": request_path,
                        "file": str(file_path),
                    },
                )
            )


def decode_fixture(text: str) -> Result[Any, str]:
    """
    Decode validated fixture text into a fresh document.

    Returns:
        Ok(document) for any JSON value, Error(reason) for opaque text
    """
    return _parse_json_safely(text)
