"""
Unit tests for ResponsePipeline.

Covers the stage sequence, the failure mapping and the observer contract
(exactly once, with the values that are written to the client).
"""

from pathlib import Path
from typing import Any

import pytest

from mock_fixture_server import (
    FailureKind,
    MockSession,
    MutationEntry,
    PipelineFailure,
    PipelineOutcome,
    ResponsePipeline,
    encode_outcome,
    render_response,
)
from tests.utils.result_assertions import assert_error, assert_ok


@pytest.fixture
def session() -> MockSession:
    return MockSession()


@pytest.fixture
def pipeline(fixture_dir: Path, session: MockSession) -> ResponsePipeline:
    return ResponsePipeline(fixture_dir, session)


@pytest.fixture
def observed(session: MockSession) -> list[tuple[int, Any]]:
    calls: list[tuple[int, Any]] = []
    session.on_response(lambda status, body: calls.append((status, body)))
    return calls


@pytest.mark.asyncio
async def test_serves_fixture_unchanged(pipeline: ResponsePipeline, observed: list) -> None:
    outcome = await pipeline.run("/users")

    assert outcome.ok
    assert outcome.status == 200
    assert outcome.body == {"id": 1, "name": "a"}
    assert observed == [(200, {"id": 1, "name": "a"})]


@pytest.mark.asyncio
async def test_applies_mutations_and_status(
    pipeline: ResponsePipeline, session: MockSession, observed: list
) -> None:
    # given
    session.respond_to("/users").and_replace("/name", "b").with_status(201)

    # when
    outcome = await pipeline.run("/users")

    # then
    assert (outcome.status, outcome.body) == (201, {"id": 1, "name": "b"})
    assert observed == [(201, {"id": 1, "name": "b"})]


@pytest.mark.asyncio
async def test_mutations_never_touch_fixture_file(
    pipeline: ResponsePipeline, session: MockSession, fixture_dir: Path
) -> None:
    session.respond_to("/users").and_replace("/name", "b")

    first = await pipeline.run("/users")
    second = await pipeline.run("/users")

    assert first.body == second.body == {"id": 1, "name": "b"}
    assert (fixture_dir / "users.json").read_text() == '{"id": 1, "name": "a"}'


@pytest.mark.asyncio
async def test_status_override_keeps_fixture_body(pipeline: ResponsePipeline, session: MockSession) -> None:
    session.respond_to("/users").with_status(500)

    outcome = await pipeline.run("/users")

    assert outcome.status == 500
    assert outcome.body == {"id": 1, "name": "a"}


@pytest.mark.asyncio
async def test_not_found(pipeline: ResponsePipeline, session: MockSession, observed: list) -> None:
    # status overrides only apply to fixtures that exist
    session.respond_to("/missing").with_status(200)

    outcome = await pipeline.run("/missing")

    assert outcome.status == 404
    assert outcome.failure == FailureKind.NOT_FOUND
    assert not outcome.is_json
    assert observed == [(404, "No fixture found for /missing")]


@pytest.mark.asyncio
async def test_malformed_fixture(pipeline: ResponsePipeline, fixture_dir: Path, observed: list) -> None:
    outcome = await pipeline.run("/broken")

    assert outcome.status == 500
    assert outcome.is_json
    assert outcome.body["url"] == "/broken"
    assert outcome.body["file"] == str(fixture_dir / "broken.json")
    assert "could not be parsed" in outcome.body["message"]
    assert observed == [(500, outcome.body)]


@pytest.mark.asyncio
async def test_invalid_mutation(pipeline: ResponsePipeline, session: MockSession, observed: list) -> None:
    session.respond_to("/users").and_replace("/id/nested", 1)

    outcome = await pipeline.run("/users")

    assert outcome.status == 500
    assert outcome.failure == FailureKind.INVALID_MUTATION
    assert len(observed) == 1


@pytest.mark.asyncio
async def test_array_fixture_can_be_mutated(pipeline: ResponsePipeline, session: MockSession) -> None:
    session.respond_to("/list").and_replace("/-", 4)

    outcome = await pipeline.run("/list")

    assert outcome.body == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_opaque_text_passes_through(pipeline: ResponsePipeline, observed: list) -> None:
    outcome = await pipeline.run("/page.html")

    assert outcome.status == 200
    assert not outcome.is_json
    assert outcome.media_type == "text/html"
    assert outcome.body == "<html><body>hello</body></html>"
    assert observed == [(200, "<html><body>hello</body></html>")]


@pytest.mark.asyncio
async def test_opaque_text_without_extension_is_plain_text(pipeline: ResponsePipeline) -> None:
    outcome = await pipeline.run("/notes")

    assert outcome.media_type == "text/plain"
    assert outcome.body == "just some notes"


@pytest.mark.asyncio
async def test_mutating_opaque_text_fails(pipeline: ResponsePipeline, session: MockSession) -> None:
    session.respond_to("/notes").and_replace("/a", 1)

    outcome = await pipeline.run("/notes")

    assert outcome.status == 500
    assert outcome.failure == FailureKind.INVALID_MUTATION


def test_failure_defaults(pipeline: ResponsePipeline) -> None:
    """Missing status/payload become 500 / "unknown error"."""
    outcome = pipeline._failed("/x", PipelineFailure(kind=FailureKind.IO_ERROR, status=None, payload=None))

    assert outcome.status == 500
    assert outcome.body == "unknown error"


@pytest.mark.asyncio
async def test_observer_exception_does_not_change_response(
    pipeline: ResponsePipeline, session: MockSession
) -> None:
    def explode(status: int, body: Any) -> None:
        raise RuntimeError("observer bug")

    session.on_response(explode)

    outcome = await pipeline.run("/users")

    assert outcome.status == 200


@pytest.mark.asyncio
async def test_unserializable_body_fails_before_observer(
    pipeline: ResponsePipeline, session: MockSession, observed: list
) -> None:
    """A body that cannot be written as JSON becomes a 500 that the observer also sees."""
    # given: an entry that bypassed registration checks
    session.registry._mutations.append(MutationEntry(path="/users", pointer="/tags", value={1, 2}))

    # when
    outcome = await pipeline.run("/users")

    # then
    assert outcome.status == 500
    assert outcome.failure == FailureKind.INVALID_MUTATION
    assert outcome.content == outcome.body.encode("utf-8")
    assert observed == [(500, outcome.body)]


@pytest.mark.asyncio
async def test_bodyless_status_reports_no_body(
    pipeline: ResponsePipeline, session: MockSession, observed: list
) -> None:
    session.respond_to("/users").with_status(204)

    outcome = await pipeline.run("/users")

    assert outcome.status == 204
    assert outcome.body is None
    assert outcome.content == b""
    assert observed == [(204, None)]


def test_render_json_and_text() -> None:
    json_outcome = assert_ok(encode_outcome(PipelineOutcome(status=201, body={"a": 1}, is_json=True)))
    text_outcome = assert_ok(
        encode_outcome(PipelineOutcome(status=404, body="nope", is_json=False, media_type="text/plain"))
    )
    empty_outcome = assert_ok(encode_outcome(PipelineOutcome(status=204, body={"a": 1}, is_json=True)))

    json_response = render_response(json_outcome)
    text_response = render_response(text_outcome, headers={"X-Test": "1"})
    empty_response = render_response(empty_outcome)

    assert (json_response.status_code, json_response.body) == (201, b'{"a":1}')
    assert (text_response.status_code, text_response.body) == (404, b"nope")
    assert text_response.headers["x-test"] == "1"
    assert empty_response.body == b""


def test_encode_rejects_non_json_body() -> None:
    reason = assert_error(encode_outcome(PipelineOutcome(status=200, body={"a": float("nan")}, is_json=True)))

    assert "not JSON compliant" in reason
