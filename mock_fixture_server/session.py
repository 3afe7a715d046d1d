"""
Mock Session

Per-server registration state: the mutation registry, the pending path
cursor used by the fluent API, and the response observer.

Usage:
    session = MockSession()
    session.respond_to("/users").and_replace("/name", "b").with_status(201)
    session.on_response(lambda status, body: seen.append((status, body)))
    session.reset()
"""

from collections.abc import Callable
from typing import Any

from loguru import logger

from .errors import RegistrationError
from .mutations import MutationRegistry


Observer = Callable[[int, Any], None]


def _noop_observer(status: int, body: Any) -> None:
    pass


class PathResponder:
    """Builder bound to one request path, returned by respond_to()."""

    def __init__(self, registry: MutationRegistry, path: str) -> None:
        self._registry = registry
        self.path = path

    def and_replace(self, pointer: str, value: Any) -> "PathResponder":
        """Replace the value at pointer in this path's response body."""
        self._registry.add_mutation(self.path, pointer, value)
        return self

    def with_status(self, status: int) -> "PathResponder":
        """Respond to this path with status instead of 200."""
        self._registry.add_status(self.path, status)
        return self

    def __repr__(self) -> str:
        return f"PathResponder({self.path!r})"


class MockSession:
    """
    Registration state owned by a single MockServer.

    Each server has its own session, so servers running side by side never
    see each other's overrides.
    """

    def __init__(self) -> None:
        self.registry = MutationRegistry()
        self.pending_path: str | None = None
        self._observer: Observer = _noop_observer

    @property
    def observer(self) -> Observer:
        return self._observer

    def respond_to(self, path: str) -> PathResponder:
        """Make path the target of subsequent registrations."""
        responder = PathResponder(self.registry, path)
        self.pending_path = path
        return responder

    def _pending(self, operation: str) -> PathResponder:
        if self.pending_path is None:
            raise RegistrationError(f"{operation}() called before respond_to(path)")
        return PathResponder(self.registry, self.pending_path)

    def and_replace(self, pointer: str, value: Any) -> PathResponder:
        """Patch the response of the pending path."""
        return self._pending("and_replace").and_replace(pointer, value)

    def with_status(self, status: int) -> PathResponder:
        """Override the status of the pending path."""
        return self._pending("with_status").with_status(status)

    def on_response(self, observer: Observer) -> None:
        """Replace the observer called with (status, body) for every response."""
        if not callable(observer):
            raise RegistrationError(f"Observer must be callable, got {observer!r}")
        self._observer = observer

    def reset(self) -> None:
        """Drop all overrides, the pending path and the observer."""
        self.registry.clear()
        self.pending_path = None
        self._observer = _noop_observer
        logger.debug("[MockSession] Reset")
