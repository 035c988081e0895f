import argparse
import logging
from typing import Any, Dict

from activity_logger.cli.adapter_factory import create_normalizer, create_ui_service
from activity_logger.domain.errors import ConfigurationError
from activity_logger.domain.ports.ui_service import LogLevel

logger = logging.getLogger(__name__)

def handle_normalize(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Handles the 'normalize' command logic."""
    ui = create_ui_service(config)
    try:
        normalizer = create_normalizer(config)
    except ConfigurationError as e:
        ui.log(f"Invalid normalizer configuration: {e}", LogLevel.ERROR)
        logger.critical(f"Invalid normalizer configuration: {e}", exc_info=True)
        return 1

    if args.exception:
        result = normalizer.normalize_exception(args.message)
    else:
        result = normalizer.normalize(args.message)
    logger.debug(f"Normalized {args.message!r} -> {result}")
    ui.log(result, LogLevel.SUCCESS if result != "other" else LogLevel.WARNING)
    return 0
