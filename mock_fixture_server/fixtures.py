"""
Fixture Resolver and Loader

Maps a request path onto the fixture directory and reads the file it names.

Resolution order for a request path ``/users/1``:
    1. <root>/users/1        (must be a regular file)
    2. <root>/users/1.json   (must exist)

Filesystem calls run in a worker thread via asyncio.to_thread so a slow disk
suspends only the request that is waiting on it.
"""

import asyncio
import os
from pathlib import Path

from loguru import logger

from .errors import FailureKind, PipelineFailure
from .result import Error, Ok, Result


JSON_SUFFIX = ".json"


def _candidate_path(root: Path, request_path: str) -> Path:
    # Plain concatenation, then normalization of "." and ".." segments.
    return Path(os.path.abspath(f"{root}{request_path}"))


def _is_within_root(root: Path, candidate: Path) -> bool:
    return candidate == root or root in candidate.parents


def _not_found(request_path: str) -> Error[PipelineFailure]:
    return Error(
        PipelineFailure(
            kind=FailureKind.NOT_FOUND,
            status=404,
            payload=f"No fixture found for {request_path}",
        )
    )


async def resolve_fixture(root: Path, request_path: str) -> Result[Path, PipelineFailure]:
    """
    Resolve a request path to a fixture file under root.

    Args:
        root: Absolute fixture directory
        request_path: Raw URL path of the request (leading slash, no query string)

    Returns:
        Ok(path) of the fixture file, or Error(PipelineFailure) with status 404
    """
    root = Path(os.path.abspath(root))
    exact = _candidate_path(root, request_path)
    fallback = Path(f"{exact}{JSON_SUFFIX}")

    if not _is_within_root(root, exact) or not _is_within_root(root, fallback):
        logger.warning(f"[FixtureResolver] Rejected path outside fixture root: {request_path}")
        return _not_found(request_path)

    try:
        if await asyncio.to_thread(exact.is_file):
            logger.debug(f"[FixtureResolver] {request_path} -> {exact}")
            return Ok(exact)
    except (OSError, ValueError) as e:
        # Unusable exact candidate (name too long, NUL byte...): try the fallback.
        logger.debug(f"[FixtureResolver] Could not stat {exact}: {e}")

    try:
        await asyncio.to_thread(fallback.stat)
    except FileNotFoundError:
        logger.debug(f"[FixtureResolver] No fixture for {request_path} (tried {exact}, {fallback})")
        return _not_found(request_path)
    except (OSError, ValueError) as e:
        # Only not-found is distinguished; other stat failures are still a 404.
        logger.warning(f"[FixtureResolver] Could not stat {fallback}: {e}")
        return Error(PipelineFailure(kind=FailureKind.IO_ERROR, status=404, payload=str(e)))

    logger.debug(f"[FixtureResolver] {request_path} -> {fallback}")
    return Ok(fallback)


async def load_fixture(file_path: Path) -> Result[str, PipelineFailure]:
    """
    Read a resolved fixture file as UTF-8 text.

    Nothing is cached; edits to a fixture are visible on the next request.

    Returns:
        Ok(text), or Error(PipelineFailure) with status 500 carrying the cause
    """
    try:
        text = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
    except (OSError, ValueError) as e:
        logger.warning(f"[FixtureLoader] Could not read {file_path}: {e}")
        return Error(
            PipelineFailure(
                kind=FailureKind.IO_ERROR,
                status=500,
                payload=f"Could not read fixture {file_path}: {e}",
            )
        )
    return Ok(text)
