from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base schema for camelCase wire payloads with snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenWireModel(WireModel):
    """Immutable wire schema."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ServerErrorDetailMessage(BaseModel):
    """Error body of the form ``{"detail": "..."}``."""

    detail: str

    @property
    def text(self) -> str:
        return self.detail


class ServerErrorReasonMessage(BaseModel):
    """Error body of the form ``{"reason": "..."}``."""

    reason: str

    @property
    def text(self) -> str:
        return self.reason


class AggregateDTO(BaseModel):
    """Min/avg/max of a duration series, in seconds."""

    model_config = ConfigDict(frozen=True)

    min: float
    avg: float
    max: float

    @classmethod
    def from_durations(cls, durations: list[float]) -> "AggregateDTO":
        if not durations:
            return cls(min=0, avg=0, max=0)
        return cls(min=min(durations), avg=sum(durations) / len(durations), max=max(durations))
