"""Error taxonomy for the insight analytics core.

None of these subclass ``ValueError``: pydantic only wraps ``ValueError`` and
``AssertionError`` raised inside validators, so these propagate to callers as-is.
"""

from pydantic import ValidationError

from telemetry_core.schemas.common import ServerErrorDetailMessage, ServerErrorReasonMessage


class TelemetryCoreError(Exception):
    """Base class for every error raised by the core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- Query result decoding ---


class DecodeError(TelemetryCoreError):
    """A query result payload could not be decoded."""


class MissingFieldError(DecodeError):
    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class UnknownVariantError(DecodeError):
    def __init__(self, tag: str):
        super().__init__(f"Unknown query result type: {tag!r}")
        self.tag = tag


class BadTimestampError(DecodeError):
    def __init__(self, value: object):
        super().__init__(f"Timestamp is not ISO-8601: {value!r}")
        self.value = value


class MalformedJSONError(DecodeError):
    def __init__(self, detail: str):
        super().__init__(f"Malformed query result: {detail}")
        self.detail = detail


# --- Insight configuration ---


class ConfigError(TelemetryCoreError):
    """An insight definition violates a configuration invariant."""


class ConflictingGroupingError(ConfigError):
    def __init__(self, breakdown_key: str, group_by: str):
        super().__init__(
            f"breakdownKey ({breakdown_key!r}) and groupBy ({group_by!r}) are mutually exclusive"
        )
        self.breakdown_key = breakdown_key
        self.group_by = group_by


class WindowOutOfRangeError(ConfigError):
    def __init__(self, rolling_window_size: float):
        super().__init__(
            f"Rolling window of {rolling_window_size}s reaches outside the representable date range"
        )
        self.rolling_window_size = rolling_window_size


# --- Chart derivation ---


class DerivationError(TelemetryCoreError):
    """Chart data could not be derived from insight data."""


class InsufficientDataError(DerivationError):
    def __init__(self, x_axis_value: str, raw_value: str):
        super().__init__(f"Value {raw_value!r} at {x_axis_value!r} is not a number")
        self.x_axis_value = x_axis_value
        self.raw_value = raw_value


# --- Transfer (raised by the network layer, described here) ---


class TransferError(TelemetryCoreError):
    """A request to the telemetry server failed."""

    @property
    def localized_description(self) -> str:
        return self.message

    @classmethod
    def from_server_payload(cls, body: bytes | str) -> "TransferError":
        """Build a ``ServerError`` from an error body, or ``DecodeFailedError``.

        The server reports failures either as ``{"detail": ...}`` or as
        ``{"reason": ...}``.
        """
        for schema in (ServerErrorDetailMessage, ServerErrorReasonMessage):
            try:
                parsed = schema.model_validate_json(body)
            except ValidationError:
                continue
            return ServerError(parsed.text)
        return DecodeFailedError()


class TransferFailedError(TransferError):
    def __init__(self):
        super().__init__(
            "There was a communication error with the server. Please check your "
            "internet connection and try again later."
        )


class DecodeFailedError(TransferError):
    def __init__(self):
        super().__init__(
            "The server returned a message that this version of the app could not "
            "decode. Please check if there is an update to the app, or contact the "
            "developer."
        )


class ServerError(TransferError):
    def __init__(self, message: str):
        super().__init__(f"The server returned this error message: {message}")
        self.server_message = message
