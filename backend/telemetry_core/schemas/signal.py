import json
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field

from telemetry_core.schemas.common import FrozenWireModel
from telemetry_core.schemas.insight import InsightGroupByInterval
from telemetry_core.schemas.query_result import Timestamp


class Signal(FrozenWireModel):
    """A single telemetry event sent by a client app."""

    app_id: UUID | None = Field(default=None, alias="appID")
    count: int | None = None
    received_at: datetime
    client_user: str
    session_id: str | None = Field(default=None, alias="sessionID")
    type: str
    payload: dict[str, str] | None = None

    def matches(self, signal_type: str | None, filters: dict[str, str]) -> bool:
        """Apply an insight's filter predicate to this signal."""
        if signal_type is not None and self.type != signal_type:
            return False
        payload = self.payload or {}
        return all(payload.get(key) == value for key, value in filters.items())


class SignalDruidStructure(FrozenWireModel):
    """A signal as the store returns it, with the payload flattened.

    ``payload`` is a JSON array of ``"key:value"`` strings, sometimes with
    escaped quotes.
    """

    app_id: UUID | None = Field(default=None, alias="appID")
    count: int | None = None
    received_at: datetime
    client_user: str
    session_id: str | None = Field(default=None, alias="sessionID")
    type: str
    payload: str

    def to_signal(self) -> Signal:
        return Signal(
            app_id=self.app_id,
            count=self.count,
            received_at=self.received_at,
            client_user=self.client_user,
            session_id=self.session_id,
            type=self.type,
            payload=_parse_flat_payload(self.payload),
        )


def _parse_flat_payload(raw: str) -> dict[str, str]:
    try:
        entries = json.loads(raw.replace("\\", ""))
    except ValueError:
        return {}
    if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
        return {}

    payload: dict[str, str] = {}
    for entry in entries:
        # Empty pieces are dropped, so "platform" alone maps to itself
        parts = [part for part in entry.split(":", 1) if part]
        if parts:
            payload[parts[0]] = parts[-1]
    return payload


class QueryType(str, Enum):
    TIMESERIES = "timeseries"
    GROUP_BY = "groupBy"
    SCALAR = "scalar"


class Aggregation(str, Enum):
    COUNT = "count"
    UNIQUE_USER_COUNT = "uniqueUserCount"


class SignalQuery(FrozenWireModel):
    """Aggregation an execution engine runs against the signal store."""

    query_type: QueryType
    aggregation: Aggregation
    interval_start: Timestamp
    interval_end: Timestamp
    signal_type: str | None = None
    filters: dict[str, str] = Field(default_factory=dict)
    granularity: InsightGroupByInterval | None = None
    dimension: str | None = None
    use_druid: bool = False

    @property
    def aggregation_name(self) -> str:
        """Key under which each result row carries the aggregated value."""
        return self.aggregation.value
