"""Encode/decode query results to and from their JSON wire form.

The ``type`` tag is authoritative: there is no fallback variant and no shape
sniffing. Unknown fields are ignored so newer servers stay readable.
"""

import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from telemetry_core.core.exceptions import (
    BadTimestampError,
    DecodeError,
    MalformedJSONError,
    MissingFieldError,
    UnknownVariantError,
)
from telemetry_core.schemas.query_result import (
    GroupByResult,
    QueryResult,
    TimeSeriesResult,
    TimeSeriesRow,
)

logger = logging.getLogger(__name__)

_query_result_adapter: TypeAdapter[TimeSeriesResult | GroupByResult] = TypeAdapter(QueryResult)
_row_adapter = TypeAdapter(TimeSeriesRow)

# When a payload has several problems, report the most fundamental one
_ERROR_PRIORITY = (
    "json_invalid",
    "union_tag_not_found",
    "union_tag_invalid",
    "missing",
    "bad_timestamp",
)


def encode(result: TimeSeriesResult | GroupByResult) -> bytes:
    """Serialize to compact JSON with the ``type`` tag first."""
    return _query_result_adapter.dump_json(result)


def decode(data: bytes | str) -> TimeSeriesResult | GroupByResult:
    """Decode a tagged query result.

    Raises a ``DecodeError`` subclass naming the first fatal problem.
    """
    try:
        return _query_result_adapter.validate_json(data)
    except ValidationError as exc:
        raise _rejected(exc) from exc


def decode_time_series_row(data: bytes | str) -> TimeSeriesRow:
    """Decode a single untagged time-series row."""
    try:
        return _row_adapter.validate_json(data)
    except ValidationError as exc:
        raise _rejected(exc) from exc


def _rejected(exc: ValidationError) -> DecodeError:
    error = _translate(exc.errors())
    logger.debug("Rejected query result payload: %s", error.message)
    return error


def _translate(errors: list[Any]) -> DecodeError:
    ranked = sorted(
        errors,
        key=lambda e: _ERROR_PRIORITY.index(e["type"])
        if e["type"] in _ERROR_PRIORITY
        else len(_ERROR_PRIORITY),
    )
    first = ranked[0]
    kind = first["type"]
    ctx = first.get("ctx") or {}

    if kind == "json_invalid":
        return MalformedJSONError(first["msg"])
    if kind == "union_tag_not_found":
        return MissingFieldError("type")
    if kind == "union_tag_invalid":
        return UnknownVariantError(str(ctx.get("tag", first.get("input"))))
    if kind == "missing":
        return MissingFieldError(_field_name(first["loc"]))
    if kind == "bad_timestamp":
        return BadTimestampError(ctx.get("value", first.get("input")))

    location = ".".join(str(part) for part in first["loc"])
    return MalformedJSONError(f"{location}: {first['msg']}" if location else first["msg"])


def _field_name(loc: tuple[int | str, ...]) -> str:
    for part in reversed(loc):
        if isinstance(part, str):
            return part
    return "<root>"
