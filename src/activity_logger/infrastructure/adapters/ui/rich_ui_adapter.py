"""
Rich-based implementation of the UI service.
"""
import logging
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from activity_logger.domain.ports.ui_service import LogLevel, TablePort, UIServicePort

THEME = Theme({
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "critical": "red bold",
    "debug": "dim",
})


class RichTable(TablePort):
    """Rich implementation of a table."""

    def __init__(self, table: Table, console: Console):
        """
        Initialize the table.

        Args:
            table: The Rich Table object
            console: The Rich Console object
        """
        self.table = table
        self.console = console

    def add_row(self, *values, **kwargs) -> None:
        self.table.add_row(*[str(value) for value in values], **kwargs)

    def render(self, **kwargs) -> None:
        self.console.print(self.table, **kwargs)


class RichUIAdapter(UIServicePort):
    """Rich implementation of the UI service."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, console: Optional[Console] = None):
        """
        Initialize the Rich UI adapter.

        Args:
            config: Application configuration; `ui.color` toggles colour output.
            console: Console to print to, mainly for capturing output in tests.
        """
        ui_config = (config or {}).get('ui') or {}
        self.console = console or Console(theme=THEME, no_color=not ui_config.get('color', True))

    def log(self, message: str, level: LogLevel = LogLevel.INFO, **kwargs) -> None:
        style = level.value
        self.console.print(f"[{style}]{message}[/{style}]", **kwargs)

    def table(self, columns: List[str], **kwargs) -> RichTable:
        table = Table(**kwargs)
        for column in columns:
            table.add_column(column)
        return RichTable(table, self.console)


def level_style(levelno: int) -> str:
    """Maps a logging level number to a theme style name."""
    if levelno >= logging.CRITICAL:
        return "critical"
    elif levelno >= logging.ERROR:
        return "error"
    elif levelno >= logging.WARNING:
        return "warning"
    elif levelno >= logging.INFO:
        return "info"
    return "debug"


class RichLoggingHandler(RichHandler):
    """Rich logging handler that colours the level name with the UI theme."""

    def get_level_text(self, record: logging.LogRecord) -> Text:
        """
        Render the level column.

        Args:
            record: The log record
        """
        return Text(record.levelname.ljust(8), style=level_style(record.levelno))
