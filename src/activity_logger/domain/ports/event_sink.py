from abc import ABC, abstractmethod

from activity_logger.domain.models.activity_event import ActivityEvent

class EventSinkPort(ABC):
    """Interface for the destination of emitted activity records."""

    @abstractmethod
    def emit(self, event: ActivityEvent) -> None:
        """
        Writes one record.

        Args:
            event: The record to write.

        Raises:
            EventSinkError: If the record could not be written.
        """
        pass

    def close(self) -> None:
        """Releases any resources held by the sink."""
        pass
