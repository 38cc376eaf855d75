"""
Error taxonomy for the periodization engine.

All errors are local validation failures raised synchronously to the caller.
They subclass ValueError so callers that already guard numeric input with
``except ValueError`` keep working.
"""


class EngineError(ValueError):
    """Base class for every error raised by the engine."""


class ConfigNotFound(EngineError):
    """Unknown periodization type requested from the catalog."""

    def __init__(self, periodization_type):
        self.periodization_type = periodization_type
        super().__init__(f"No periodization config for type '{periodization_type}'")


class InvalidDuration(EngineError):
    """Program duration or weekly frequency outside the accepted range."""


class MalformedLog(EngineError):
    """Workout log missing a required identifying field."""

    def __init__(self, message: str, field_name: str = ""):
        self.field_name = field_name
        super().__init__(message)
