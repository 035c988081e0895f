import argparse
import logging
from pathlib import Path
from typing import Any, Dict

from activity_logger.cli.adapter_factory import create_console_parser, create_normalizer, create_ui_service
from activity_logger.domain.ports.ui_service import LogLevel

logger = logging.getLogger(__name__)

def handle_parse_console(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Handles the 'parse-console' command logic."""
    ui = create_ui_service(config)
    console_file = Path(args.file)

    try:
        console_output = console_file.read_text(encoding='utf-8', errors='replace')
        parser = create_console_parser(config)
        normalizer = create_normalizer(config)
        exceptions = parser.parse_console_output(console_output)
    except Exception as e:
        ui.log(f"Could not parse {console_file}: {e}", LogLevel.ERROR)
        logger.critical(f"Could not parse {console_file}: {e}", exc_info=True)
        return 1

    if not exceptions:
        ui.log(f"No runtime exceptions found in {console_file}.", LogLevel.INFO)
        return 0

    table = ui.table(["#", "Category", "Exception", "Location", "Depth", "Message"], title=str(console_file))
    for number, exception in enumerate(exceptions, start=1):
        location = f"{exception.file_name}:{exception.line}" if exception.file_name else "-"
        table.add_row(
            number,
            normalizer.normalize_exception(exception.exception_class),
            exception.exception_class,
            location,
            exception.stack_trace_depth,
            exception.detail_message or "",
        )
    table.render()
    ui.log(f"Found {len(exceptions)} runtime exception(s).", LogLevel.SUCCESS)
    return 0
