"""Wire models for aggregation query results.

Field declaration order is the serialization order, and downstream consumers
depend on it: ``type`` always comes first.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import (
    AllowInfNan,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    Strict,
    StrictInt,
    StrictStr,
)
from pydantic_core import PydanticCustomError

_FRACTIONAL_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
_WHOLE_SECOND_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_OUTPUT_FORMAT = "%Y-%m-%dT%H:%M:%S+0000"


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 instant with or without fractional seconds."""
    for fmt in (_FRACTIONAL_FORMAT, _WHOLE_SECOND_FORMAT):
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return normalize_timestamp(parsed)
    return None


def normalize_timestamp(value: datetime) -> datetime:
    """UTC, whole seconds. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    return normalize_timestamp(value).strftime(_OUTPUT_FORMAT)


def _validate_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return normalize_timestamp(value)
    if isinstance(value, str):
        parsed = parse_timestamp(value)
        if parsed is not None:
            return parsed
    raise PydanticCustomError(
        "bad_timestamp",
        "Timestamp is not ISO-8601: {value}",
        {"value": value},
    )


Timestamp = Annotated[
    datetime,
    BeforeValidator(_validate_timestamp),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]

# JSON types are kept as sent: no bool-to-int or string-to-number coercion.
# Non-finite floats have no JSON form, so they are rejected.
MetricValue = Union[StrictInt, Annotated[float, Strict(), AllowInfNan(False)]]
GroupByValue = Union[StrictStr, MetricValue]


class TimeSeriesRow(BaseModel):
    """One bucket of a time-series aggregation."""

    model_config = ConfigDict(frozen=True)

    result: dict[str, MetricValue]
    timestamp: Timestamp


class TimeSeriesResult(BaseModel):
    """Time-series aggregation, rows in server (chronological) order."""

    model_config = ConfigDict(frozen=True)

    type: Literal["timeSeriesResult"] = "timeSeriesResult"
    rows: list[TimeSeriesRow]


class GroupByResult(BaseModel):
    """Group-by aggregation; values keep their JSON type per key."""

    model_config = ConfigDict(frozen=True)

    type: Literal["groupByResult"] = "groupByResult"
    result: dict[str, GroupByValue]
    timestamp: Timestamp


QueryResult = Annotated[
    Union[TimeSeriesResult, GroupByResult],
    Field(discriminator="type"),
]
