from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import Field, model_validator

from telemetry_core.core.exceptions import ConflictingGroupingError
from telemetry_core.core.numbers import NumberFormat
from telemetry_core.schemas.common import FrozenWireModel, WireModel
from telemetry_core.schemas.query_result import parse_timestamp

# Presets look back 30 days
DEFAULT_ROLLING_WINDOW_SIZE = -2_592_000.0


class InsightDisplayMode(str, Enum):
    NUMBER = "number"  # Deprecated, use RAW instead
    RAW = "raw"
    BAR_CHART = "barChart"
    LINE_CHART = "lineChart"
    PIE_CHART = "pieChart"


class InsightGroupByInterval(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class InsightDefinitionRequestBody(WireModel):
    """Create/update payload for an insight.

    ``id`` is absent when creating and present when updating; ``group_id`` is
    the insight group the insight belongs to.
    """

    order: float | None = None
    title: str
    subtitle: str | None = None
    signal_type: str | None = None
    unique_user: bool
    filters: dict[str, str] = Field(default_factory=dict)
    rolling_window_size: float = Field(allow_inf_nan=False)
    breakdown_key: str | None = None
    group_by: InsightGroupByInterval | None = None
    display_mode: InsightDisplayMode
    group_id: UUID | None = Field(default=None, alias="groupID")
    id: UUID | None = None
    is_expanded: bool = False
    should_use_druid: bool = False

    @classmethod
    def _preset(cls, group_id: UUID, **fields) -> "InsightDefinitionRequestBody":
        defaults = {
            "order": None,
            "subtitle": None,
            "signal_type": None,
            "filters": {},
            "rolling_window_size": DEFAULT_ROLLING_WINDOW_SIZE,
            "breakdown_key": None,
            "group_by": None,
            "group_id": group_id,
            "id": None,
            "is_expanded": False,
            "should_use_druid": False,
        }
        return cls(**{**defaults, **fields})

    @classmethod
    def new_time_series_insight(cls, group_id: UUID) -> "InsightDefinitionRequestBody":
        return cls._preset(
            group_id,
            title="New Time Series Insight",
            unique_user=False,
            group_by=InsightGroupByInterval.DAY,
            display_mode=InsightDisplayMode.LINE_CHART,
        )

    @classmethod
    def new_breakdown_insight(
        cls, group_id: UUID, title: str | None = None, breakdown_key: str | None = None
    ) -> "InsightDefinitionRequestBody":
        return cls._preset(
            group_id,
            title=title if title is not None else "New Breakdown Insight",
            unique_user=False,
            breakdown_key=breakdown_key if breakdown_key is not None else "systemVersion",
            display_mode=InsightDisplayMode.PIE_CHART,
        )

    @classmethod
    def new_daily_user_count_insight(cls, group_id: UUID) -> "InsightDefinitionRequestBody":
        return cls._preset(
            group_id,
            title="Daily Active Users",
            unique_user=True,
            group_by=InsightGroupByInterval.DAY,
            display_mode=InsightDisplayMode.LINE_CHART,
        )

    @classmethod
    def new_weekly_user_count_insight(cls, group_id: UUID) -> "InsightDefinitionRequestBody":
        return cls._preset(
            group_id,
            title="Weekly Active Users",
            unique_user=True,
            group_by=InsightGroupByInterval.WEEK,
            display_mode=InsightDisplayMode.BAR_CHART,
        )

    @classmethod
    def new_monthly_user_count_insight(cls, group_id: UUID) -> "InsightDefinitionRequestBody":
        return cls._preset(
            group_id,
            title="Active Users this Month",
            unique_user=True,
            group_by=InsightGroupByInterval.MONTH,
            display_mode=InsightDisplayMode.RAW,
        )

    @classmethod
    def new_signal_insight(cls, group_id: UUID) -> "InsightDefinitionRequestBody":
        return cls._preset(
            group_id,
            title="Signals by Day",
            unique_user=False,
            group_by=InsightGroupByInterval.DAY,
            display_mode=InsightDisplayMode.LINE_CHART,
        )


class InsightDefinition(FrozenWireModel):
    """What to aggregate for one insight, plus diagnostics of its last run.

    At most one of ``breakdown_key`` and ``group_by`` is set. With neither,
    the insight is a single scalar count.
    """

    id: UUID
    group_id: UUID | None = Field(default=None, alias="groupID")

    order: float | None = None
    title: str
    subtitle: str | None = None

    # If None, do not filter by signal type
    signal_type: str | None = None
    # Count distinct client users instead of raw signals
    unique_user: bool
    # Only include signals whose payload matches all of these key-values
    filters: dict[str, str] = Field(default_factory=dict)
    # Seconds relative to now; negative looks back
    rolling_window_size: float = Field(allow_inf_nan=False)
    breakdown_key: str | None = None
    group_by: InsightGroupByInterval | None = None

    display_mode: InsightDisplayMode
    is_expanded: bool = False
    should_use_druid: bool = False

    last_run_time: float | None = None
    last_query: str | None = None
    last_run_at: datetime | None = None

    @model_validator(mode="after")
    def check_grouping(self) -> "InsightDefinition":
        if self.breakdown_key is not None and self.group_by is not None:
            raise ConflictingGroupingError(self.breakdown_key, self.group_by.value)
        return self

    @classmethod
    def from_request_body(cls, body: InsightDefinitionRequestBody) -> "InsightDefinition":
        return cls(
            id=body.id or uuid4(),
            group_id=body.group_id,
            order=body.order,
            title=body.title,
            subtitle=body.subtitle,
            signal_type=body.signal_type,
            unique_user=body.unique_user,
            filters=dict(body.filters),
            rolling_window_size=body.rolling_window_size,
            breakdown_key=body.breakdown_key,
            group_by=body.group_by,
            display_mode=body.display_mode,
            is_expanded=body.is_expanded,
            should_use_druid=body.should_use_druid,
        )

    def to_request_body(self) -> InsightDefinitionRequestBody:
        return InsightDefinitionRequestBody(
            order=self.order,
            title=self.title,
            subtitle=self.subtitle,
            signal_type=self.signal_type,
            unique_user=self.unique_user,
            filters=dict(self.filters),
            rolling_window_size=self.rolling_window_size,
            breakdown_key=self.breakdown_key,
            group_by=self.group_by,
            display_mode=self.display_mode,
            group_id=self.group_id,
            id=self.id,
            is_expanded=self.is_expanded,
            should_use_druid=self.should_use_druid,
        )


class InsightData(FrozenWireModel):
    """One computed datum; ``y_axis_value`` is None when the bucket had no value."""

    x_axis_value: str
    y_axis_value: str | None = None

    @property
    def x_axis_date(self) -> datetime | None:
        return parse_timestamp(self.x_axis_value)

    def y_axis_number(self, number_format: NumberFormat) -> Decimal | None:
        if self.y_axis_value is None:
            return None
        return number_format.parse(self.y_axis_value)

    def y_axis_string(self, number_format: NumberFormat) -> str:
        if self.y_axis_value is None:
            return "0"
        number = number_format.parse(self.y_axis_value)
        if number is None:
            return self.y_axis_value
        return number_format.format(number)


class InsightDataTransferObject(FrozenWireModel):
    """Read-only snapshot of an insight together with freshly calculated data."""

    id: UUID
    order: float | None = None
    title: str
    subtitle: str | None = None
    signal_type: str | None = None
    unique_user: bool
    filters: dict[str, str]
    rolling_window_size: float
    breakdown_key: str | None = None
    group_by: InsightGroupByInterval | None = None
    display_mode: InsightDisplayMode

    data: list[InsightData]
    calculated_at: datetime
    # Seconds
    calculation_duration: float
    should_use_druid: bool | None = None

    @property
    def is_empty(self) -> bool:
        return all(datum.y_axis_value is None for datum in self.data)

    @classmethod
    def from_definition(
        cls,
        definition: InsightDefinition,
        data: list[InsightData],
        calculated_at: datetime,
        calculation_duration: float,
    ) -> "InsightDataTransferObject":
        return cls(
            id=definition.id,
            order=definition.order,
            title=definition.title,
            subtitle=definition.subtitle,
            signal_type=definition.signal_type,
            unique_user=definition.unique_user,
            filters=dict(definition.filters),
            rolling_window_size=definition.rolling_window_size,
            breakdown_key=definition.breakdown_key,
            group_by=definition.group_by,
            display_mode=definition.display_mode,
            data=data,
            calculated_at=calculated_at,
            calculation_duration=calculation_duration,
            should_use_druid=definition.should_use_druid,
        )


class InsightGroupDTO(FrozenWireModel):
    id: UUID
    title: str
    order: float | None = None


class InsightGroup(WireModel):
    """An ordered collection of insights shown together. Identity is ``id``."""

    id: UUID
    title: str
    order: float | None = None
    insights: list[InsightDefinition] = Field(default_factory=list)

    def to_dto(self) -> InsightGroupDTO:
        return InsightGroupDTO(id=self.id, title=self.title, order=self.order)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InsightGroup):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
