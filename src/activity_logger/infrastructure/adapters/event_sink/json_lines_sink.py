"""
Event sinks writing records as newline-delimited JSON.
"""
import logging
import threading
from collections import Counter
from pathlib import Path
from typing import IO, Dict, List, Optional, Tuple, Union

from activity_logger.domain.errors import EventSinkError
from activity_logger.domain.models.activity_event import ActivityEvent
from activity_logger.domain.ports.event_sink import EventSinkPort

logger = logging.getLogger(__name__)

EVENTS_LOGGER_NAME = "activity_logger.events"


class JsonLinesFileSink(EventSinkPort):
    """Appends one JSON object per line to a file."""

    def __init__(self, path: Union[str, Path]):
        """
        Args:
            path: The log file. Parent directories are created on first write.
        """
        self.path = Path(path)
        self._file: Optional[IO[str]] = None
        self._lock = threading.Lock()

    def _open(self) -> IO[str]:
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, 'a', encoding='utf-8')
            logger.info(f"Writing activity records to {self.path}")
        return self._file

    def emit(self, event: ActivityEvent) -> None:
        line = event.to_json()
        with self._lock:
            try:
                handle = self._open()
                handle.write(line + "\n")
                handle.flush()
            except OSError as e:
                raise EventSinkError(f"Could not write to {self.path}: {e}") from e

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None


class StreamEventSink(EventSinkPort):
    """Writes records to an already open text stream such as stdout."""

    def __init__(self, stream: IO[str]):
        self.stream = stream

    def emit(self, event: ActivityEvent) -> None:
        try:
            self.stream.write(event.to_json() + "\n")
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise EventSinkError(f"Could not write record to stream: {e}") from e


class LoggingEventSink(EventSinkPort):
    """
    Routes each serialized record through a dedicated logger.

    Handlers attached to that logger decide where the lines end up. Given a
    path, the sink attaches a '%(message)s' file handler itself. Sinks writing
    the same file through the same logger share one handler, which is removed
    and closed when the last of them is closed.
    """

    # (logger name, resolved path) -> [handler, number of open sinks using it]
    _file_handlers: Dict[Tuple[str, str], list] = {}
    _file_handlers_lock = threading.Lock()

    def __init__(self, logger_name: str = EVENTS_LOGGER_NAME, path: Optional[Union[str, Path]] = None):
        """
        Args:
            logger_name: The logger records are written to.
            path: File the records should end up in, if any.

        Raises:
            EventSinkError: If the file cannot be opened.
        """
        self.events_logger = logging.getLogger(logger_name)
        self._handler_key: Optional[Tuple[str, str]] = None
        if path is not None:
            self._attach_file_handler(Path(path))

    def _attach_file_handler(self, path: Path) -> None:
        key = (self.events_logger.name, str(path.resolve()))
        with self._file_handlers_lock:
            entry = self._file_handlers.get(key)
            if entry is None:
                try:
                    path.parent.mkdir(parents=True, exist_ok=True)
                    handler = logging.FileHandler(path, encoding='utf-8')
                except OSError as e:
                    raise EventSinkError(f"Could not open {path}: {e}") from e
                handler.setFormatter(logging.Formatter('%(message)s'))
                self.events_logger.addHandler(handler)
                self.events_logger.setLevel(logging.INFO)
                entry = self._file_handlers[key] = [handler, 0]
                logger.info(f"Routing activity records through '{self.events_logger.name}' to {path}")
            entry[1] += 1
        self._handler_key = key

    def emit(self, event: ActivityEvent) -> None:
        self.events_logger.info(event.to_json())

    def close(self) -> None:
        with self._file_handlers_lock:
            key, self._handler_key = self._handler_key, None
            entry = self._file_handlers.get(key) if key else None
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] == 0:
                del self._file_handlers[key]
                self.events_logger.removeHandler(entry[0])
                entry[0].close()


class CollectingEventSink(EventSinkPort):
    """Keeps records in memory."""

    def __init__(self):
        self.events: List[ActivityEvent] = []

    def emit(self, event: ActivityEvent) -> None:
        self.events.append(event)

    def by_sequence(self, sequence) -> List[ActivityEvent]:
        tag = getattr(sequence, "value", sequence)
        return [event for event in self.events if event.sequence_tag == tag]


class SequenceCountingSink(EventSinkPort):
    """Counts records per sequence tag without keeping them."""

    def __init__(self):
        self.counts: Counter = Counter()

    def emit(self, event: ActivityEvent) -> None:
        self.counts[event.sequence_tag] += 1


class FanOutEventSink(EventSinkPort):
    """Forwards each record to several sinks; a failing sink does not starve the others."""

    def __init__(self, sinks: List[EventSinkPort]):
        self.sinks = list(sinks)

    def emit(self, event: ActivityEvent) -> None:
        failures = []
        for sink in self.sinks:
            try:
                sink.emit(event)
            except EventSinkError as e:
                failures.append(str(e))
        if failures:
            raise EventSinkError("; ".join(failures))

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()
