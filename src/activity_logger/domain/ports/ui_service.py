"""
Domain interfaces for console output of the CLI.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import List


class LogLevel(Enum):
    """Levels for UI messages."""
    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class TablePort(ABC):
    """Interface for tables."""

    @abstractmethod
    def add_row(self, *values, **kwargs) -> None:
        """
        Add a row to the table.

        Args:
            *values: The values for the row
            **kwargs: Additional arguments for the specific implementation
        """
        pass

    @abstractmethod
    def render(self, **kwargs) -> None:
        """Render the table."""
        pass


class UIServicePort(ABC):
    """Interface for UI services."""

    @abstractmethod
    def log(self, message: str, level: LogLevel = LogLevel.INFO, **kwargs) -> None:
        """
        Show a message with the specified level.

        Args:
            message: The message to show
            level: The message level
            **kwargs: Additional arguments for the specific implementation
        """
        pass

    @abstractmethod
    def table(self, columns: List[str], **kwargs) -> TablePort:
        """
        Create a table with the specified columns.

        Args:
            columns: The column headers
            **kwargs: Additional arguments for the specific implementation

        Returns:
            A table object that can be populated
        """
        pass
