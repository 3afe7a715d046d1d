"""Shared test utilities for unit and integration tests."""

from tests.utils.result_assertions import assert_error, assert_ok

__all__ = ["assert_error", "assert_ok"]
