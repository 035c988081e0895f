"""
Exceptions raised by the activity logger.
"""


class ActivityLoggerError(Exception):
    """Base class for errors raised by this package."""
    pass


class ConfigurationError(ActivityLoggerError):
    """Raised when configuration values are missing or invalid."""
    pass


class EventSinkError(ActivityLoggerError):
    """Raised when an event record could not be written to its sink."""
    pass
