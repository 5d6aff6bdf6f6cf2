import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Protocol

from telemetry_core.core.exceptions import (
    DecodeError,
    InsufficientDataError,
    WindowOutOfRangeError,
)
from telemetry_core.core.numbers import NumberFormat, get_number_format
from telemetry_core.schemas.chart import ChartDataSet
from telemetry_core.schemas.common import AggregateDTO
from telemetry_core.schemas.insight import (
    InsightData,
    InsightDataTransferObject,
    InsightDefinition,
)
from telemetry_core.schemas.query_result import (
    GroupByResult,
    TimeSeriesResult,
    format_timestamp,
    normalize_timestamp,
)
from telemetry_core.schemas.signal import Aggregation, QueryType, SignalQuery
from telemetry_core.services import query_result_codec
from telemetry_core.services.chart_service import derive_chart_data

logger = logging.getLogger(__name__)


class QueryExecutor(Protocol):
    """Runs a ``SignalQuery`` against the signal store.

    Returns the encoded query result. Timeouts and retries are the executor's
    business.
    """

    async def execute(self, query: SignalQuery) -> bytes: ...


def build_signal_query(definition: InsightDefinition, now: datetime) -> SignalQuery:
    """Derive the aggregation query an insight describes, relative to ``now``."""
    if definition.breakdown_key is not None:
        query_type = QueryType.GROUP_BY
    elif definition.group_by is not None:
        query_type = QueryType.TIMESERIES
    else:
        query_type = QueryType.SCALAR

    now = normalize_timestamp(now)
    try:
        edge = now + timedelta(seconds=definition.rolling_window_size)
    except OverflowError as exc:
        raise WindowOutOfRangeError(definition.rolling_window_size) from exc
    start, end = sorted((now, edge))

    return SignalQuery(
        query_type=query_type,
        aggregation=Aggregation.UNIQUE_USER_COUNT if definition.unique_user else Aggregation.COUNT,
        interval_start=start,
        interval_end=end,
        signal_type=definition.signal_type,
        filters=dict(definition.filters),
        granularity=definition.group_by,
        dimension=definition.breakdown_key,
        use_druid=definition.should_use_druid,
    )


def query_result_to_insight_data(
    result: TimeSeriesResult | GroupByResult,
    aggregation_name: str,
    number_format: NumberFormat,
) -> list[InsightData]:
    """Flatten a query result into x/y data in server order.

    Time-series rows become one datum per bucket, labelled with the bucket
    timestamp; a bucket without the aggregated value gets no y value.
    Group-by results become one datum per key. Text values are kept as-is.
    """
    if isinstance(result, TimeSeriesResult):
        data = []
        for row in result.rows:
            value = row.result.get(aggregation_name)
            data.append(
                InsightData(
                    x_axis_value=format_timestamp(row.timestamp),
                    y_axis_value=None if value is None else number_format.format(value),
                )
            )
        return data

    return [
        InsightData(
            x_axis_value=key,
            y_axis_value=value if isinstance(value, str) else number_format.format(value),
        )
        for key, value in result.result.items()
    ]


class InsightCalculationService:
    """Computes insight data through an external query executor."""

    def __init__(self, executor: QueryExecutor, number_format: NumberFormat | None = None):
        self.executor = executor
        self.number_format = number_format or get_number_format()

    async def calculate(
        self, definition: InsightDefinition, now: datetime | None = None
    ) -> tuple[InsightDataTransferObject, InsightDefinition]:
        """Run an insight's query and bundle the result.

        Returns (dto, definition) where the definition is a replacement copy
        carrying this run's diagnostics.
        """
        calculated_at = normalize_timestamp(now or datetime.now(timezone.utc))
        query = build_signal_query(definition, calculated_at)

        started = time.perf_counter()
        payload = await self.executor.execute(query)
        try:
            result = query_result_codec.decode(payload)
        except DecodeError as exc:
            logger.warning("Query result for insight %s could not be decoded: %s", definition.id, exc)
            raise
        duration = time.perf_counter() - started

        data = query_result_to_insight_data(result, query.aggregation_name, self.number_format)
        dto = InsightDataTransferObject.from_definition(definition, data, calculated_at, duration)
        updated = definition.model_copy(
            update={
                "last_run_time": duration,
                "last_run_at": calculated_at,
                "last_query": query.model_dump_json(by_alias=True),
            }
        )

        logger.info(
            "Calculated insight %s (%s, %d data points) in %.3fs",
            definition.id,
            query.query_type.value,
            len(data),
            duration,
        )
        return dto, updated

    async def calculate_many(
        self, definitions: list[InsightDefinition], now: datetime | None = None
    ) -> list[tuple[InsightDataTransferObject, InsightDefinition]]:
        """Calculate several insights concurrently, all relative to the same instant."""
        now = now or datetime.now(timezone.utc)
        return list(await asyncio.gather(*(self.calculate(d, now) for d in definitions)))

    def chart_data(self, dto: InsightDataTransferObject) -> ChartDataSet:
        try:
            return derive_chart_data(dto.data, self.number_format)
        except InsufficientDataError as exc:
            logger.warning("Insight %s has non-numeric data: %s", dto.id, exc)
            raise

    @staticmethod
    def run_time_summary(definitions: list[InsightDefinition]) -> AggregateDTO:
        """Min/avg/max of the last run times of insights that have run."""
        return AggregateDTO.from_durations(
            [d.last_run_time for d in definitions if d.last_run_time is not None]
        )
