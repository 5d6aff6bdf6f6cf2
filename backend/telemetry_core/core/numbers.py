"""Locale-aware parsing and formatting of decimal chart values."""

import re
from decimal import ROUND_HALF_EVEN, Context, Decimal
from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from telemetry_core.core.config import Settings, get_settings


@lru_cache(maxsize=16)
def _number_pattern(decimal_separator: str, grouping_separator: str | None) -> re.Pattern[str]:
    d = re.escape(decimal_separator)
    if grouping_separator is None:
        integer = r"\d+"
    else:
        g = re.escape(grouping_separator)
        integer = rf"(?:\d{{1,3}}(?:{g}\d{{3}})+|\d+)"
    return re.compile(rf"[+-]?(?:{integer}(?:{d}\d+)?|{d}\d+)")


class NumberFormat(BaseModel):
    """Decimal number style shared by chart parsing and display.

    Parsing accepts values with or without grouping separators, so under the
    default en-US style ``"1,234.5"`` and ``"1234.5"`` are the same number.
    Formatting rounds half-even to ``maximum_fraction_digits`` and drops
    trailing zeros.
    """

    model_config = ConfigDict(frozen=True)

    decimal_separator: str = "."
    grouping_separator: str = ","
    uses_grouping: bool = True
    maximum_fraction_digits: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> "NumberFormat":
        return cls(
            decimal_separator=settings.NUMBER_DECIMAL_SEPARATOR,
            grouping_separator=settings.NUMBER_GROUPING_SEPARATOR,
            uses_grouping=settings.NUMBER_USES_GROUPING,
            maximum_fraction_digits=settings.NUMBER_MAX_FRACTION_DIGITS,
        )

    def parse(self, text: str) -> Decimal | None:
        """Return the number ``text`` spells, or None if it is not a number."""
        candidate = text.strip()
        grouping = self.grouping_separator if self.uses_grouping else None
        if not _number_pattern(self.decimal_separator, grouping).fullmatch(candidate):
            return None
        if grouping is not None:
            candidate = candidate.replace(grouping, "")
        return Decimal(candidate.replace(self.decimal_separator, "."))

    def format(self, value: Decimal | float | int) -> str:
        number = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
        if not number.is_finite():
            return str(value)

        digits = self.maximum_fraction_digits
        context = Context(prec=max(28, number.adjusted() + digits + 2))
        rounded = number.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_EVEN, context=context)

        integer, _, fraction = f"{abs(rounded):f}".partition(".")
        fraction = fraction.rstrip("0")
        if self.uses_grouping:
            integer = f"{int(integer):,}".replace(",", self.grouping_separator)

        text = f"-{integer}" if rounded < 0 else integer
        if fraction:
            text = f"{text}{self.decimal_separator}{fraction}"
        return text


@lru_cache
def get_number_format() -> NumberFormat:
    """Process-wide number format, built once from settings."""
    return NumberFormat.from_settings(get_settings())
