"""
Mock Fixture Server

FastAPI application that answers every path from a fixture directory, plus
the in-process API a test harness uses to steer it.

Usage:
    server = MockServer(dir="tests/fixtures", port=0).start()
    server.respond_to("/users").and_replace("/name", "b").with_status(201)
    server.on_response(lambda status, body: print(status, body))
    ...
    server.reset()
    server.stop()

The listener runs uvicorn in a daemon thread with its own event loop, so the
owning test can stay synchronous.
"""

import threading
import time
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger

from .config import CorsConfig, ServerConfig
from .errors import ServerLifecycleError
from .pipeline import ResponsePipeline, render_response
from .session import MockSession, Observer, PathResponder


FIXTURE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Seconds to wait for the listener to bind or shut down
STARTUP_TIMEOUT = 10.0
SHUTDOWN_TIMEOUT = 10.0


def raw_request_path(request: Request) -> str:
    """
    URL path exactly as sent (still percent-encoded), without the query string.

    Falls back to the decoded path for ASGI servers that omit raw_path.
    """
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path
    return raw_path.split(b"?", 1)[0].decode("utf-8", errors="replace")


def create_app(pipeline: ResponsePipeline, cors: CorsConfig, title: str = "Mock Fixture Server") -> FastAPI:
    """
    Build the catch-all fixture app.

    Args:
        pipeline: Pipeline every request is routed through
        cors: Cross-origin policy
        title: Application title
    """
    # No docs routes: every path belongs to the fixture tree.
    app = FastAPI(title=title, docs_url=None, redoc_url=None, openapi_url=None)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.credentials,
        allow_methods=cors.methods,
        allow_headers=cors.allowed_headers or ["*"],
        expose_headers=cors.exposed_headers,
        max_age=cors.max_age,
    )

    allow_headers_value = cors.allow_headers_value

    @app.api_route("/{path:path}", methods=FIXTURE_METHODS)
    async def serve_fixture(request: Request) -> Response:
        """Serve the fixture for any path"""
        outcome = await pipeline.run(raw_request_path(request))

        headers = {}
        # Some clients (jsdom) look for Access-Control-Allow-Headers on the GET itself.
        if allow_headers_value and request.method == "GET":
            headers["Access-Control-Allow-Headers"] = allow_headers_value

        return render_response(outcome, headers)

    return app


class MockServer:
    """
    Fixture-backed HTTP server with per-path overrides.

    Every instance owns its own session, so several servers can run side by
    side with isolated overrides.
    """

    def __init__(self, config: ServerConfig | None = None, **options: Any) -> None:
        """
        Args:
            config: Full configuration. When omitted, options are passed to ServerConfig
                (dir, port, host, name, cors).
        """
        self.config = config if config is not None else ServerConfig(**options)
        self.session = MockSession()
        self.pipeline = ResponsePipeline(self.config.dir, self.session)
        self.app = create_app(self.pipeline, self.config.cors, title=self.config.name)

        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._bound_port: int | None = None

    # ========== Registration ==========

    def respond_to(self, path: str) -> PathResponder:
        """Start registering overrides for the literal request path."""
        return self.session.respond_to(path)

    def and_replace(self, pointer: str, value: Any) -> PathResponder:
        """Patch the response of the path given to the last respond_to()."""
        return self.session.and_replace(pointer, value)

    def with_status(self, status: int) -> PathResponder:
        """Override the status of the path given to the last respond_to()."""
        return self.session.with_status(status)

    def on_response(self, observer: Observer) -> "MockServer":
        """Call observer(status, body) once per response, before it is sent."""
        self.session.on_response(observer)
        return self

    def reset(self) -> "MockServer":
        """Forget every override and the observer."""
        self.session.reset()
        return self

    # ========== Lifecycle ==========

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int:
        """Bound port while running, configured port otherwise."""
        return self._bound_port if self._bound_port is not None else self.config.port

    @property
    def base_url(self) -> str:
        return f"http://{self.config.host}:{self.port}"

    def start(self) -> "MockServer":
        """
        Start listening. No-op if already running.

        Blocks until the socket is bound.

        Raises:
            ServerLifecycleError: If the listener does not come up
        """
        if self._server is not None:
            return self

        uvicorn_config = uvicorn.Config(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level="warning",
            access_log=False,
            lifespan="off",
        )
        server = uvicorn.Server(uvicorn_config)
        thread = threading.Thread(target=server.run, name=f"{self.config.name}-uvicorn", daemon=True)
        thread.start()

        deadline = time.monotonic() + STARTUP_TIMEOUT
        while not server.started:
            if not thread.is_alive() or time.monotonic() > deadline:
                server.should_exit = True
                thread.join(timeout=SHUTDOWN_TIMEOUT)
                raise ServerLifecycleError(
                    f"[{self.config.name}] Could not listen on {self.config.host}:{self.config.port}"
                )
            time.sleep(0.01)

        self._server = server
        self._thread = thread
        self._bound_port = server.servers[0].sockets[0].getsockname()[1]
        logger.info(f"[MockServer] {self.config.name} serving {self.config.dir} at {self.base_url}")
        return self

    def stop(self) -> None:
        """Stop listening. No-op if not running."""
        if self._server is None:
            return

        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=SHUTDOWN_TIMEOUT)

        logger.info(f"[MockServer] {self.config.name} stopped")
        self._server = None
        self._thread = None
        self._bound_port = None

    def __enter__(self) -> "MockServer":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
