import logging
import sys
from typing import Dict, Any, Optional

from activity_logger.application.services.activity_recorder import ActivityRecorder
from activity_logger.application.services.error_category_normalizer import ErrorCategoryNormalizer
from activity_logger.application.services.lifecycle_controller import LifecycleController
from activity_logger.domain.errors import ConfigurationError
from activity_logger.domain.models.console_buffer import DEFAULT_MAX_CHARS
from activity_logger.domain.ports.error_parser import ConsoleParserPort
from activity_logger.domain.ports.event_sink import EventSinkPort
from activity_logger.domain.ports.ui_service import UIServicePort
from activity_logger.infrastructure.adapters.error_parsing.java_console_parser_adapter import JavaConsoleParserAdapter
from activity_logger.infrastructure.adapters.event_sink.json_lines_sink import (
    EVENTS_LOGGER_NAME, JsonLinesFileSink, LoggingEventSink, StreamEventSink
)
from activity_logger.infrastructure.adapters.ui.rich_ui_adapter import RichUIAdapter
from activity_logger.infrastructure.tools.capability_registry import JAVA_LIFECYCLE, CapabilityRegistry

logger = logging.getLogger(__name__)

def create_ui_service(config: Dict[str, Any]) -> UIServicePort:
    logger.debug("Creating RichUIAdapter")
    return RichUIAdapter(config)

def create_normalizer(config: Dict[str, Any]) -> ErrorCategoryNormalizer:
    logger.debug("Creating ErrorCategoryNormalizer")
    return ErrorCategoryNormalizer.from_config(config)

def create_console_parser(config: Dict[str, Any]) -> ConsoleParserPort:
    lang = (config.get('normalizer') or {}).get('lang', 'java')
    logger.debug(f"Creating console parser for language: {lang}")
    if lang == 'java':
        return JavaConsoleParserAdapter.from_config(config)
    else:
        raise ConfigurationError(f"Unsupported console parser language: {lang}")

def create_event_sink(config: Dict[str, Any], output: Optional[str] = None) -> EventSinkPort:
    """
    Creates the sink for activity records.

    Args:
        config: The application configuration.
        output: Overrides the configured destination; '-' means stdout.
    """
    if output == '-':
        return StreamEventSink(sys.stdout)
    if output:
        return JsonLinesFileSink(output)

    event_config = config.get('event_log') or {}
    kind = event_config.get('sink', 'file')
    logger.debug(f"Creating event sink of kind: {kind}")
    if kind == 'file':
        return JsonLinesFileSink(event_config['path'])
    elif kind == 'stdout':
        return StreamEventSink(sys.stdout)
    elif kind == 'logging':
        return LoggingEventSink(EVENTS_LOGGER_NAME, event_config['path'])
    else:
        raise ConfigurationError(f"Unsupported event sink: {kind}")

def create_lifecycle_controller(config: Dict[str, Any], event_sink: EventSinkPort) -> LifecycleController:
    buffer_config = config.get('console_buffer') or {}
    return LifecycleController(
        event_sink=event_sink,
        normalizer=create_normalizer(config),
        console_parser=create_console_parser(config),
        max_buffer_chars=int(buffer_config.get('max_chars', DEFAULT_MAX_CHARS)),
        lang=(config.get('normalizer') or {}).get('lang', 'java'),
    )

def create_activity_recorder(event_sink: EventSinkPort,
                             controller: Optional[LifecycleController] = None) -> ActivityRecorder:
    """
    Creates the recorder and registers the lifecycle controller, if any, as
    the provider of run tracking.
    """
    registry = CapabilityRegistry()
    if controller is not None:
        registry.register(JAVA_LIFECYCLE, controller)
    logger.debug(f"Available capabilities: {registry.list_capabilities()}")
    return ActivityRecorder(event_sink, registry)
