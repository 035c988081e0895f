import logging
import sys
from pathlib import Path
from typing import List, Optional

from activity_logger.cli.commands.argument_parser import parse_arguments
from activity_logger.cli.commands.config_loader import ensure_app_directories, load_and_resolve_config
from activity_logger.cli.commands.normalize_command import handle_normalize
from activity_logger.cli.commands.parse_console_command import handle_parse_console
from activity_logger.cli.commands.replay_command import handle_replay
from activity_logger.cli.logging_setup import setup_logging

COMMAND_HANDLERS = {
    "normalize": handle_normalize,
    "parse-console": handle_parse_console,
    "replay": handle_replay,
}


def main(argv: Optional[List[str]] = None, project_root: Optional[Path] = None) -> int:
    """Entry point of the activity-logger command."""
    args = parse_arguments(argv)
    root = project_root or Path.cwd()

    config = load_and_resolve_config(root, args.config)
    ensure_app_directories(config)
    setup_logging(config)
    logger = logging.getLogger(__name__)

    logger.debug(f"Running command '{args.command}'")
    return COMMAND_HANDLERS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
