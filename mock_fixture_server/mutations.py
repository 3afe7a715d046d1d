"""
Mutation Engine

Holds the ordered JSON-pointer patches and status overrides registered for
literal request paths, and applies them to a decoded fixture document.

Matching is exact string equality against the raw request path: no globbing,
no query string, no trailing-slash normalization.

Ordering:
    - Patches: every entry for the path is applied, in registration order,
      to the same document.
    - Status overrides: the first entry registered for the path wins.
"""

import copy
import json
import re
from dataclasses import dataclass
from typing import Any

from jsonpointer import JsonPointer, JsonPointerException
from loguru import logger

from .errors import FailureKind, PipelineFailure, RegistrationError
from .result import Error, Ok, Result


DEFAULT_STATUS = 200

_ARRAY_INDEX = re.compile(r"^(0|[1-9][0-9]*)$")
_END_OF_ARRAY = "-"


@dataclass(frozen=True)
class MutationEntry:
    """One scheduled patch for a request path."""

    path: str
    pointer: str
    value: Any


@dataclass(frozen=True)
class StatusEntry:
    """One scheduled status override for a request path."""

    path: str
    status: int


# ========== Pointer-set ==========


def _is_array_token(token: str) -> bool:
    return token == _END_OF_ARRAY or _ARRAY_INDEX.match(token) is not None


def _list_index(container: list, token: str) -> Result[int, str]:
    if token == _END_OF_ARRAY:
        return Ok(len(container))
    if _ARRAY_INDEX.match(token):
        return Ok(int(token))
    return Error(f"'{token}' is not an array index")


def _place(container: list, index: int, item: Any) -> None:
    if index < len(container):
        container[index] = item
        return
    # Indices past the end leave null holes, as JSON.stringify does for sparse arrays.
    container.extend([None] * (index - len(container)))
    container.append(item)


def _step_into(container: Any, token: str, next_token: str) -> Result[Any, str]:
    """Return the child at token, creating it when missing."""
    if isinstance(container, dict):
        if token not in container:
            container[token] = [] if _is_array_token(next_token) else {}
        return Ok(container[token])

    if isinstance(container, list):
        match _list_index(container, token):
            case Error(reason):
                return Error(reason)
            case Ok(index):
                if index >= len(container):
                    _place(container, index, [] if _is_array_token(next_token) else {})
                return Ok(container[index])

    return Error(f"cannot descend into {type(container).__name__} at '{token}'")


def _assign(container: Any, token: str, value: Any) -> Result[None, str]:
    if isinstance(container, dict):
        container[token] = value
        return Ok(None)

    if isinstance(container, list):
        match _list_index(container, token):
            case Error(reason):
                return Error(reason)
            case Ok(index):
                _place(container, index, value)
                return Ok(None)

    return Error(f"cannot set '{token}' on {type(container).__name__}")


def parse_pointer(pointer: str) -> Result[list[str], str]:
    """Split a JSON pointer into unescaped reference tokens."""
    try:  # nosemgrep: forbid-try-except
        return Ok(JsonPointer(pointer).parts)
    except JsonPointerException as e:
        return Error(str(e))


def set_pointer(document: Any, pointer: str, value: Any) -> Result[Any, str]:
    """
    Set value at pointer inside document, creating missing containers.

    A missing member becomes a list when the next token is an array index
    (or "-"), otherwise a dict. The empty pointer replaces the whole document.

    Args:
        document: Decoded JSON document (mutated in place)
        pointer: JSON pointer, e.g. "/items/0/name"
        value: Value to store

    Returns:
        Ok(document) with the change applied (a new value for the empty
        pointer), or Error(reason) when the pointer crosses a scalar or uses a
        non-numeric token on a list
    """
    match parse_pointer(pointer):
        case Error(reason):
            return Error(reason)
        case Ok(tokens):
            pass

    if not tokens:
        return Ok(value)

    target = document
    for position, token in enumerate(tokens[:-1]):
        match _step_into(target, token, tokens[position + 1]):
            case Error(reason):
                return Error(reason)
            case Ok(child):
                target = child

    match _assign(target, tokens[-1], value):
        case Error(reason):
            return Error(reason)

    return Ok(document)


# ========== Registry ==========


class MutationRegistry:
    """
    Ordered store of patches and status overrides for one server.

    Thread-safety: NOT thread-safe. Entries are expected to be registered
    between test scenarios, not while requests are in flight.
    """

    def __init__(self) -> None:
        self._mutations: list[MutationEntry] = []
        self._statuses: list[StatusEntry] = []

    @property
    def mutations(self) -> tuple[MutationEntry, ...]:
        return tuple(self._mutations)

    @property
    def statuses(self) -> tuple[StatusEntry, ...]:
        return tuple(self._statuses)

    def add_mutation(self, path: str, pointer: str, value: Any) -> MutationEntry:
        """
        Append a patch for path.

        Raises:
            RegistrationError: If path is not a URL path, pointer is not a JSON pointer
                or value cannot be serialized as JSON
        """
        _check_path(path)
        if not isinstance(pointer, str):
            raise RegistrationError(f"JSON pointer must be a string, got {pointer!r}")
        match parse_pointer(pointer):
            case Error(reason):
                raise RegistrationError(f"Invalid JSON pointer {pointer!r}: {reason}")
        try:  # nosemgrep: forbid-try-except
            json.dumps(value, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise RegistrationError(f"Replacement value for {pointer!r} is not JSON: {e}") from e

        entry = MutationEntry(path=path, pointer=pointer, value=value)
        self._mutations.append(entry)
        logger.debug(f"[MutationRegistry] {path}: replace {pointer} -> {value!r}")
        return entry

    def add_status(self, path: str, status: int) -> StatusEntry:
        """
        Append a status override for path.

        Raises:
            RegistrationError: If path is not a URL path or status is not an HTTP status code
        """
        _check_path(path)
        if isinstance(status, bool) or not isinstance(status, int) or not 100 <= status <= 599:
            raise RegistrationError(f"Status must be an HTTP status code (100-599), got {status!r}")

        entry = StatusEntry(path=path, status=status)
        self._statuses.append(entry)
        logger.debug(f"[MutationRegistry] {path}: status {status}")
        return entry

    def mutations_for(self, request_path: str) -> list[MutationEntry]:
        return [entry for entry in self._mutations if entry.path == request_path]

    def apply_mutations(self, document: Any, request_path: str) -> Result[Any, PipelineFailure]:
        """
        Apply every patch registered for request_path, in registration order.

        Registered values are deep-copied so a request can never alter them.

        Returns:
            Ok(mutated document), or Error(PipelineFailure) with status 500
            when a pointer cannot be set
        """
        for entry in self.mutations_for(request_path):
            match set_pointer(document, entry.pointer, copy.deepcopy(entry.value)):
                case Ok(mutated):
                    document = mutated
                case Error(reason):
                    logger.warning(
                        f"[MutationRegistry] Could not apply {entry.pointer} to {request_path}: {reason}"
                    )
                    return Error(
                        PipelineFailure(
                            kind=FailureKind.INVALID_MUTATION,
                            status=500,
                            payload=f"Could not apply mutation {entry.pointer} to {request_path}: {reason}",
                        )
                    )
        return Ok(document)

    def resolve_status(self, request_path: str) -> int:
        """Status of the first override registered for request_path, else 200."""
        for entry in self._statuses:
            if entry.path == request_path:
                return entry.status
        return DEFAULT_STATUS

    def clear(self) -> None:
        self._mutations.clear()
        self._statuses.clear()


def _check_path(path: str) -> None:
    if not isinstance(path, str) or not path.startswith("/"):
        raise RegistrationError(f"Request path must be a string starting with '/', got {path!r}")
