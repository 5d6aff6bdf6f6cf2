import os
from datetime import datetime, timezone
from uuid import UUID

import pytest

# Set test env vars before importing package modules
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["NUMBER_DECIMAL_SEPARATOR"] = "."
os.environ["NUMBER_GROUPING_SEPARATOR"] = ","

from telemetry_core.core.numbers import NumberFormat  # noqa: E402
from telemetry_core.schemas.signal import SignalQuery  # noqa: E402

# Thursday, October 21, 2021 12:00:00 UTC
REFERENCE_DATE = datetime(2021, 10, 21, 12, 0, 0, tzinfo=timezone.utc)


class FakeQueryExecutor:
    """Stands in for the signal store: records queries, replays one payload."""

    def __init__(self, payload: bytes):
        self.payload = payload
        self.queries: list[SignalQuery] = []

    async def execute(self, query: SignalQuery) -> bytes:
        self.queries.append(query)
        return self.payload


@pytest.fixture
def reference_date() -> datetime:
    return REFERENCE_DATE


@pytest.fixture
def group_id() -> UUID:
    return UUID("7c1b0bb1-3c3e-4f2b-9a51-2d3f7d1a0c11")


@pytest.fixture
def number_format() -> NumberFormat:
    """en-US style: comma grouping, dot decimals."""
    return NumberFormat()


@pytest.fixture
def german_number_format() -> NumberFormat:
    return NumberFormat(decimal_separator=",", grouping_separator=".")


@pytest.fixture
def make_executor():
    def _make(payload: bytes | str) -> FakeQueryExecutor:
        return FakeQueryExecutor(payload.encode() if isinstance(payload, str) else payload)

    return _make
