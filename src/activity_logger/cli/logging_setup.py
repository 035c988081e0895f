import logging
import sys
from typing import Dict, Any

from rich.console import Console

from activity_logger.infrastructure.adapters.event_sink.json_lines_sink import EVENTS_LOGGER_NAME
from activity_logger.infrastructure.adapters.ui.rich_ui_adapter import THEME, RichLoggingHandler


def setup_logging(config: Dict[str, Any]):
    """Configures logging based on the application configuration."""
    log_config = config.get('logging') or {}
    level_name = log_config.get('level', 'INFO').upper()
    level = getattr(logging, level_name, logging.INFO)
    log_format = log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    log_file = log_config.get('log_file') # Path is already resolved

    ui_config = config.get('ui') or {}
    enhanced_logging = ui_config.get('enhanced_logging', True)

    if enhanced_logging:
        # Diagnostics go to stderr so stdout stays free for NDJSON output
        console = Console(theme=THEME, stderr=True)
        handlers = [RichLoggingHandler(
            console=console,
            show_time=True,
            show_level=True,
            show_path=False,
        )]
        # Rich renders time and level itself
        console_format = "%(message)s"
    else:
        handlers = [logging.StreamHandler(sys.stderr)]
        console_format = log_format

    for handler in handlers:
        handler.setFormatter(logging.Formatter(console_format))

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(logging.Formatter(log_format))
            handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not configure file logging to {log_file}: {e}", file=sys.stderr)

    # Use force=True to allow reconfiguration if called multiple times (e.g., in tests)
    logging.basicConfig(level=level, handlers=handlers, force=True)

    # Activity records are data, not diagnostics; keep them out of the console handlers
    events_logger = logging.getLogger(EVENTS_LOGGER_NAME)
    events_logger.propagate = False
    events_logger.setLevel(logging.INFO)

    # Suppress verbose logs from dependencies
    dependencies_to_silence = {
        "markdown_it": logging.WARNING,
        "asyncio": logging.WARNING,
    }
    for name, lvl in dependencies_to_silence.items():
        logging.getLogger(name).setLevel(lvl)

    logging.info(f"Logging configured. Level: {level_name}, File: {log_file or 'None'}")
