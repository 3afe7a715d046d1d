import json
from typing import Any

from .result import Error, Ok, Result


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are accepted by json.loads but are not JSON.
    raise ValueError(f"Invalid JSON constant: {name}")


def _parse_json_safely(json_str: str) -> Result[Any, str]:
    """
    Safely parse JSON string, returning Result instead of raising.

    Args:
        json_str: JSON string to parse

    Returns:
        Ok(document) if parsing succeeds, Error(str) with the parser message otherwise
    """
    try:  # nosemgrep: forbid-try-except
        parsed = json.loads(json_str, parse_constant=_reject_constant)
        return Ok(parsed)
    except ValueError as e:
        # JSONDecodeError is a ValueError, as is _reject_constant's error
        return Error(str(e))


def _first_significant_char(text: str) -> str:
    """Return the first non-whitespace character of text, or "" if there is none."""
    stripped = text.lstrip()
    return stripped[:1]
