from pydantic import BaseModel, ConfigDict


class ChartPoint(BaseModel):
    """A single plotted value."""

    model_config = ConfigDict(frozen=True)

    x_axis_label: str
    y_value: float

    @property
    def id(self) -> str:
        return self.x_axis_label


class ChartDataSet(BaseModel):
    """Chart-ready points with the y-axis range.

    The y axis always starts at zero; negative values are not supported.
    """

    model_config = ConfigDict(frozen=True)

    points: list[ChartPoint]
    lowest_value: float = 0.0
    highest_value: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.points
