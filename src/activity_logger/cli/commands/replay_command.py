import argparse
import logging
from typing import Any, Dict

from activity_logger.application.use_cases.replay_session import ReplaySessionUseCase
from activity_logger.cli.adapter_factory import (
    create_activity_recorder,
    create_event_sink,
    create_lifecycle_controller,
    create_ui_service,
)
from activity_logger.domain.models.activity_event import EventSequence
from activity_logger.domain.ports.ui_service import LogLevel
from activity_logger.infrastructure.adapters.event_sink.json_lines_sink import FanOutEventSink, SequenceCountingSink

logger = logging.getLogger(__name__)

def handle_replay(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Handles the 'replay' command logic."""
    ui = create_ui_service(config)
    to_stdout = args.output == '-'

    counter = SequenceCountingSink()
    event_sink = None
    try:
        event_sink = FanOutEventSink([create_event_sink(config, args.output), counter])
        controller = create_lifecycle_controller(config, event_sink)
        recorder = create_activity_recorder(event_sink, controller)
        result = ReplaySessionUseCase(recorder, controller).execute_file(args.script)
    except Exception as e:
        if not to_stdout:
            ui.log(f"An error occurred during replay: {e}", LogLevel.ERROR)
        logger.critical(f"An error occurred during replay: {e}", exc_info=True)
        return 1
    finally:
        if event_sink is not None:
            event_sink.close()

    if to_stdout:
        # Keep stdout valid NDJSON
        return 0 if result['status'] == 'success' else 2

    table = ui.table(["Sequence", "Records"], title="Replay summary")
    for sequence in EventSequence:
        count = counter.counts[sequence.value]
        if count:
            table.add_row(sequence.value, count)
    table.render()

    level = LogLevel.SUCCESS if result['status'] == 'success' else LogLevel.WARNING
    ui.log(f"Processed {result['processed']} notifications ({result['skipped']} skipped), "
           f"emitted {result['events_emitted']} records.", level)
    return 0 if result['status'] == 'success' else 2
