# src/activity_logger/application/services/lifecycle_controller.py
"""
Build and run lifecycle tracking.

The controller turns host notifications (compilation finished, process
starting, console text, process terminated) into activity records. It owns
two independent state machines:

    Build: IDLE --compilation--> OPEN --finished--> IDLE
    Run:   IDLE --starting--> RUNNING --terminated--> IDLE

Every record emitted while a build (run) is open carries that build's (run's)
id. Compile errors are reported by the host as structured diagnostics and
only need categorizing; runtime errors are not, so console output is buffered
for the whole run and parsed once when the process exits.
"""
import logging
import re
import threading
from enum import Enum
from typing import Iterable, Optional

from activity_logger.application.services.error_category_normalizer import ErrorCategoryNormalizer
from activity_logger.application.services.session_id_generator import SessionIdGenerator, default_generator
from activity_logger.domain.errors import EventSinkError
from activity_logger.domain.models.activity_event import ActivityEvent, EventSequence, Phase, Severity
from activity_logger.domain.models.console_buffer import DEFAULT_MAX_CHARS, BoundedConsoleBuffer
from activity_logger.domain.models.host_notifications import CompilationResult, CompilerDiagnostic
from activity_logger.domain.ports.error_parser import ConsoleParserPort, ParsedException
from activity_logger.domain.ports.event_sink import EventSinkPort
from activity_logger.domain.ports.process_handle import ProcessHandlePort, ProcessListenerPort

logger = logging.getLogger(__name__)

PARSE_FAILURE_CATEGORY = "parse_failure"

_WHITESPACE = re.compile(r"\s+")


class BuildState(Enum):
    IDLE = "idle"
    OPEN = "open"


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class _RunOutputListener(ProcessListenerPort):
    """Feeds a host process's output into the controller."""

    def __init__(self, controller: "LifecycleController"):
        self.controller = controller

    def on_text_available(self, text: str) -> None:
        self.controller.on_run_output(text)

    def process_terminated(self, exit_code: int) -> None:
        self.controller.on_run_terminated(exit_code)


class LifecycleController:
    """
    Correlates compiler and process notifications into build/run sessions.

    One instance per project. All public methods take the same lock, so a
    console callback can never interleave with the termination of its run.
    """

    def __init__(self,
                 event_sink: EventSinkPort,
                 normalizer: ErrorCategoryNormalizer,
                 console_parser: ConsoleParserPort,
                 id_generator: Optional[SessionIdGenerator] = None,
                 max_buffer_chars: int = DEFAULT_MAX_CHARS,
                 lang: str = "java"):
        """
        Initializes the controller.

        Args:
            event_sink: Destination of the emitted records.
            normalizer: Categorizes compiler messages and exception classes.
            console_parser: Extracts runtime exceptions from console output.
            id_generator: Source of build/run ids; the process-wide one by default.
            max_buffer_chars: Cap on buffered console output per run.
            lang: Language tag written on ErrorNormalized records.
        """
        self.event_sink = event_sink
        self.normalizer = normalizer
        self.console_parser = console_parser
        self.id_generator = id_generator or default_generator()
        self.lang = lang

        self._lock = threading.RLock()
        self._build_state = BuildState.IDLE
        self._build_id: Optional[str] = None
        self._build_errors = 0
        self._build_warnings = 0

        self._run_state = RunState.IDLE
        self._run_id: Optional[str] = None
        self._console_buffer = BoundedConsoleBuffer(max_buffer_chars)

        self.events_emitted = 0

    # --- state (read-only) ---

    @property
    def build_state(self) -> BuildState:
        return self._build_state

    @property
    def run_state(self) -> RunState:
        return self._run_state

    @property
    def current_build_id(self) -> Optional[str]:
        return self._build_id

    @property
    def current_run_id(self) -> Optional[str]:
        return self._run_id

    @property
    def build_error_count(self) -> int:
        return self._build_errors

    @property
    def build_warning_count(self) -> int:
        return self._build_warnings

    @property
    def buffered_console_chars(self) -> int:
        return len(self._console_buffer)

    def _emit(self, event: ActivityEvent) -> None:
        try:
            self.event_sink.emit(event)
            self.events_emitted += 1
        except EventSinkError as e:
            logger.error(f"Failed to write {event.sequence_tag} record: {e}", exc_info=True)

    # --- build lifecycle ---

    def on_compilation_started(self) -> str:
        """
        Opens a build if none is open.

        Returns:
            The id of the open build. Calling this again while the build is
            open returns the same id and emits nothing.
        """
        with self._lock:
            if self._build_state is BuildState.OPEN:
                return self._build_id

            self._build_id = self.id_generator.new_build_id()
            self._build_errors = 0
            self._build_warnings = 0
            self._build_state = BuildState.OPEN
            logger.debug(f"Build {self._build_id} started.")
            self._emit(ActivityEvent.now(EventSequence.BUILD_START, build_id=self._build_id))
            return self._build_id

    def on_compilation_finished(self, result: CompilationResult) -> None:
        """
        Records all diagnostics of a finished compilation and closes the build.

        A build is opened on the fly when the host did not announce one.
        """
        with self._lock:
            self.on_compilation_started()

            self._record_diagnostics(result.errors, Severity.ERROR)
            self._record_diagnostics(result.warnings, Severity.WARNING)

            errors, warnings = self._build_errors, self._build_warnings
            outcome = "aborted" if result.aborted else "completed"
            self._emit(ActivityEvent.now(
                EventSequence.BUILD_END,
                build_id=self._build_id,
                success=errors == 0,
                error_count=errors,
                warning_count=warnings,
                message=f"Build {outcome} ({errors} errors, {warnings} warnings)",
            ))
            logger.info(f"Build {self._build_id} {outcome}: {errors} errors, {warnings} warnings.")

            self._build_id = None
            self._build_state = BuildState.IDLE

    def _record_diagnostics(self, diagnostics: Iterable[CompilerDiagnostic], severity: Severity) -> None:
        for diagnostic in diagnostics:
            message = _WHITESPACE.sub(" ", diagnostic.message or "").strip()
            if not message:
                logger.debug("Dropping compiler %s with blank message.", severity.value)
                continue

            self._emit(ActivityEvent.now(
                EventSequence.ERROR_NORMALIZED,
                build_id=self._build_id,
                lang=self.lang,
                phase=Phase.COMPILE,
                severity=severity,
                file_path=diagnostic.file_path,
                line=diagnostic.line if diagnostic.line and diagnostic.line > 0 else None,
                column=diagnostic.column if diagnostic.column and diagnostic.column > 0 else None,
                error_category=self.normalizer.normalize(message),
                error_type=message,
                full_message=message,
            ))
            if severity is Severity.ERROR:
                self._build_errors += 1
            else:
                self._build_warnings += 1

    # --- run lifecycle ---

    def on_run_starting(self, executor_id: str, program_name: Optional[str] = None) -> str:
        """
        Starts a new run with an empty console buffer.

        A run that is still open is abandoned: it gets no RunEnd record and
        its buffered output is discarded.

        Returns:
            The new run id.
        """
        with self._lock:
            if self._run_state is RunState.RUNNING:
                logger.warning(f"Run {self._run_id} abandoned without termination; "
                               f"{len(self._console_buffer)} buffered characters discarded.")

            self._run_id = self.id_generator.new_run_id()
            self._console_buffer.clear()
            self._run_state = RunState.RUNNING
            logger.debug(f"Run {self._run_id} started by executor '{executor_id}'.")
            self._emit(ActivityEvent.now(
                EventSequence.RUN_START,
                run_id=self._run_id,
                filename=program_name,
                message=f"executor={executor_id}",
            ))
            return self._run_id

    def on_run_output(self, chunk: str) -> None:
        """Buffers a chunk of console output of the current run."""
        with self._lock:
            if self._run_state is not RunState.RUNNING:
                logger.debug("Ignoring %d characters of console output outside a run.", len(chunk or ""))
                return
            was_full = self._console_buffer.is_full
            self._console_buffer.append(chunk)
            if self._console_buffer.is_full and not was_full:
                logger.info(f"Console buffer for run {self._run_id} reached "
                            f"{self._console_buffer.max_chars} characters; further output is dropped.")

    def on_run_terminated(self, exit_code: int) -> None:
        """
        Parses the buffered output, records each exception and closes the run.

        Parsing errors never prevent the RunEnd record.
        """
        with self._lock:
            if self._run_state is not RunState.RUNNING:
                logger.warning(f"Process terminated (exit code {exit_code}) without an open run.")

            if self._console_buffer.dropped_chars:
                logger.warning(f"Run {self._run_id}: {self._console_buffer.dropped_chars} characters "
                               f"of console output were truncated before parsing.")

            try:
                exceptions = self.console_parser.parse_console_output(self._console_buffer.getvalue())
            except Exception as e:
                logger.error(f"Failed to parse console output of run {self._run_id}: {e}", exc_info=True)
                self._emit(ActivityEvent.now(
                    EventSequence.ERROR_NORMALIZED,
                    run_id=self._run_id,
                    phase=Phase.RUNTIME,
                    severity=Severity.ERROR,
                    error_category=PARSE_FAILURE_CATEGORY,
                    full_message=f"Failed to parse console output: {e}",
                ))
            else:
                for exception in exceptions:
                    self._record_runtime_exception(exception)

            self._console_buffer.clear()
            self._emit(ActivityEvent.now(
                EventSequence.RUN_END,
                run_id=self._run_id,
                message=f"exitCode={exit_code}",
            ))
            logger.info(f"Run {self._run_id} ended with exit code {exit_code}.")

            self._run_id = None
            self._run_state = RunState.IDLE

    def _record_runtime_exception(self, exception: ParsedException) -> None:
        self._emit(ActivityEvent.now(
            EventSequence.ERROR_NORMALIZED,
            run_id=self._run_id,
            lang=self.lang,
            phase=Phase.RUNTIME,
            severity=Severity.ERROR,
            file_path=exception.file_name,
            line=exception.line,
            error_category=self.normalizer.normalize_exception(exception.exception_class),
            error_type=exception.full_message,
            full_message=exception.full_message,
            stack_trace_depth=exception.stack_trace_depth,
            stack_trace=exception.full_stack_trace,
        ))

    def attach_to_process(self, process: ProcessHandlePort) -> ProcessListenerPort:
        """
        Subscribes to a host process so its output and exit drive the run.

        Returns:
            The listener that was registered.
        """
        listener = _RunOutputListener(self)
        process.add_process_listener(listener)
        return listener
