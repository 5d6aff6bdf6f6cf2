"""Turn computed insight data into chart points.

Derivation is all-or-nothing: either every present value parses and the whole
data set is returned, or ``InsufficientDataError`` is raised and no chart is
produced. Data without a value is skipped, not treated as a failure.
"""

from collections.abc import Iterable

from telemetry_core.core.exceptions import InsufficientDataError
from telemetry_core.core.numbers import NumberFormat, get_number_format
from telemetry_core.schemas.chart import ChartDataSet, ChartPoint
from telemetry_core.schemas.insight import InsightData


def derive_chart_data(
    rows: Iterable[InsightData], number_format: NumberFormat | None = None
) -> ChartDataSet:
    number_format = number_format or get_number_format()

    points: list[ChartPoint] = []
    for row in rows:
        if row.y_axis_value is None:
            continue
        number = number_format.parse(row.y_axis_value)
        if number is None:
            raise InsufficientDataError(row.x_axis_value, row.y_axis_value)
        points.append(ChartPoint(x_axis_label=row.x_axis_value, y_value=float(number)))

    highest_value = max((point.y_value for point in points), default=0.0)
    return ChartDataSet(points=points, lowest_value=0.0, highest_value=max(0.0, highest_value))
