import argparse
from typing import List, Optional

from activity_logger.cli.commands.config_loader import DEFAULT_CONFIG_PATH


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Configures and parses command line arguments for the application.

    Args:
        argv: Arguments to parse; defaults to sys.argv[1:].

    Returns:
        argparse.Namespace: An object containing the parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Activity logger: normalize compiler errors and runtime exceptions into structured events",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path of the YAML configuration file, relative to the project root."
    )
    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        help="Available commands"
    )

    # --- Normalize Command Arguments ---
    parser_normalize = subparsers.add_parser(
        "normalize",
        help="Print the category of a compiler message.",
        description="Applies the ordered rule table to a compiler diagnostic and prints the category, "
                    "or strips the package from an exception class name with --exception."
    )
    parser_normalize.add_argument(
        "message",
        help="The compiler message, e.g. \"';' expected\", or an exception class name."
    )
    parser_normalize.add_argument(
        "--exception",
        action="store_true",
        help="Treat MESSAGE as a fully qualified exception class name."
    )

    # --- Parse-Console Command Arguments ---
    parser_console = subparsers.add_parser(
        "parse-console",
        help="Extract runtime exceptions from a captured console output file.",
        description="Scans a console capture for Java exception blocks and lists each occurrence "
                    "with its category, best-effort location and stack depth."
    )
    parser_console.add_argument(
        "file",
        help="Path to a text file containing program console output."
    )

    # --- Replay Command Arguments ---
    parser_replay = subparsers.add_parser(
        "replay",
        help="Replay a script of host notifications and write the activity log.",
        description="Reads newline-delimited JSON notifications (compilation_finished, run_starting, "
                    "console_text, run_terminated, editor events...) and emits the resulting records."
    )
    parser_replay.add_argument(
        "script",
        help="Path to the NDJSON notification script."
    )
    parser_replay.add_argument(
        "--output",
        help="Write records to this file instead of the configured event log. Use '-' for stdout."
    )

    return parser.parse_args(argv)
