import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from activity_logger.application.services.activity_recorder import ActivityRecorder
from activity_logger.application.services.lifecycle_controller import LifecycleController
from activity_logger.domain.models.host_notifications import (
    CompilationResult, CompilerDiagnostic, OpenFile, ProcessStart
)

logger = logging.getLogger(__name__)

_REQUIRED = object()


def _string(payload: Dict[str, Any], key: str, default: Any = _REQUIRED) -> Optional[str]:
    """
    Reads a string field of a notification payload.

    Raises:
        KeyError: If a required field is missing.
        ValueError: If the field holds anything but a string (or null, when optional).
    """
    if key not in payload:
        if default is _REQUIRED:
            raise KeyError(key)
        return default
    value = payload[key]
    if value is None and default is not _REQUIRED:
        return default
    if not isinstance(value, str):
        raise ValueError(f"field '{key}' must be a string, got {type(value).__name__}")
    return value


def _list(payload: Dict[str, Any], key: str) -> List[Any]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field '{key}' must be a list, got {type(value).__name__}")
    return value


def _position(payload: Dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValueError(f"field '{key}' must be an integer, got {type(value).__name__}")
    return value


def _diagnostics(raw: List[Any]) -> List[CompilerDiagnostic]:
    result = []
    for item in raw:
        if isinstance(item, str):
            result.append(CompilerDiagnostic(message=item))
        elif isinstance(item, dict):
            result.append(CompilerDiagnostic(
                message=_string(item, 'message', ''),
                file_path=_string(item, 'file_path', None),
                line=_position(item, 'line'),
                column=_position(item, 'column'),
            ))
        else:
            raise ValueError(f"diagnostic must be a string or an object, got {type(item).__name__}")
    return result


class ReplaySessionUseCase:
    """
    Replays a recorded script of host notifications.

    The script is newline-delimited JSON; each object has a `type` naming the
    notification plus its payload, e.g.

        {"type": "run_starting", "executor_id": "Run", "program_name": "Main.java"}
        {"type": "console_text", "chunk": "Exception in thread ..."}
        {"type": "run_terminated", "exit_code": 1}

    Malformed lines and unknown types are skipped with a warning.
    """

    def __init__(self, recorder: ActivityRecorder, controller: LifecycleController):
        self.recorder = recorder
        self.controller = controller
        self.handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            "compilation_started": lambda n: self.controller.on_compilation_started(),
            "compilation_finished": self._compilation_finished,
            "run_starting": self._run_starting,
            "console_text": lambda n: self.controller.on_run_output(_string(n, 'chunk', '')),
            "run_terminated": lambda n: self.controller.on_run_terminated(int(n.get('exit_code', 0))),
            "process_starting": self._process_starting,
            "text_inserted": lambda n: self.recorder.text_inserted(
                _string(n, 'text'), _string(n, 'index', ''), _string(n, 'document_url', None)),
            "text_deleted": lambda n: self.recorder.text_deleted(
                _string(n, 'index1', ''), _string(n, 'index2', ''), _string(n, 'document_url', None)),
            "pasted": lambda n: self.recorder.pasted(_string(n, 'document_url', None)),
            "file_opened": lambda n: self.recorder.file_opened(
                _string(n, 'url'), _string(n, 'name'), _string(n, 'content', None)),
            "file_closed": lambda n: self.recorder.file_closed(_string(n, 'url'), _string(n, 'name')),
            "file_created": lambda n: self.recorder.file_created(_string(n, 'url'), _string(n, 'name')),
            "file_deleted": lambda n: self.recorder.file_deleted(_string(n, 'url'), _string(n, 'name')),
            "selection_changed": lambda n: self.recorder.selection_changed(_string(n, 'url', None)),
            "project_opened": self._project_opened,
        }

    def _compilation_finished(self, notification: Dict[str, Any]) -> None:
        self.controller.on_compilation_finished(CompilationResult(
            aborted=bool(notification.get('aborted', False)),
            errors=_diagnostics(_list(notification, 'errors')),
            warnings=_diagnostics(_list(notification, 'warnings')),
        ))

    @staticmethod
    def _process_start(notification: Dict[str, Any]) -> ProcessStart:
        return ProcessStart(
            executor_id=_string(notification, 'executor_id', 'Run'),
            program_name=_string(notification, 'program_name', None),
        )

    def _run_starting(self, notification: Dict[str, Any]) -> None:
        start = self._process_start(notification)
        self.controller.on_run_starting(start.executor_id, start.program_name)

    def _process_starting(self, notification: Dict[str, Any]) -> None:
        start = self._process_start(notification)
        self.recorder.process_starting(start.executor_id, start.program_name)

    def _project_opened(self, notification: Dict[str, Any]) -> None:
        open_files = []
        for entry in _list(notification, 'files'):
            if not isinstance(entry, dict):
                raise ValueError(f"open file must be an object, got {type(entry).__name__}")
            open_files.append(OpenFile(url=_string(entry, 'url'), name=_string(entry, 'name'),
                                       content=_string(entry, 'content', None)))
        # Validated up front so a bad entry records nothing
        self.recorder.project_opened(open_files)

    def execute(self, script_lines: Iterable[str]) -> Dict[str, Any]:
        """
        Feeds every notification of the script to the recorder or controller.

        Args:
            script_lines: Lines of the NDJSON script.

        Returns:
            Summary with the counts of processed and skipped notifications and
            of the records emitted.
        """
        start_time = time.time()
        emitted_before = self.controller.events_emitted + self.recorder.events_emitted
        processed = 0
        skipped = 0

        for line_number, raw_line in enumerate(script_lines, start=1):
            line = raw_line.strip()
            if not line or line.startswith('#'):
                continue
            try:
                notification = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Line {line_number}: not valid JSON ({e}); skipped.")
                skipped += 1
                continue
            if not isinstance(notification, dict):
                logger.warning(f"Line {line_number}: expected a JSON object; skipped.")
                skipped += 1
                continue

            notification_type = notification.get('type')
            handler = self.handlers.get(notification_type) if isinstance(notification_type, str) else None
            if handler is None:
                logger.warning(f"Line {line_number}: unknown notification type {notification_type!r}; skipped.")
                skipped += 1
                continue
            try:
                handler(notification)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Line {line_number}: malformed '{notification_type}' notification ({e}); skipped.")
                skipped += 1
                continue
            processed += 1

        emitted = self.controller.events_emitted + self.recorder.events_emitted - emitted_before
        logger.info(f"Replay finished: {processed} notifications, {skipped} skipped, {emitted} records "
                    f"in {time.time() - start_time:.2f}s.")
        return {
            "status": "success" if skipped == 0 else "partial",
            "processed": processed,
            "skipped": skipped,
            "events_emitted": emitted,
        }

    def execute_file(self, script_path: Union[str, Path]) -> Dict[str, Any]:
        """Replays a script stored on disk."""
        with open(script_path, 'r', encoding='utf-8') as f:
            return self.execute(f)
