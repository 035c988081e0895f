"""
Tests for build and run session tracking.
"""
import logging
import threading
from unittest.mock import MagicMock

import pytest

from activity_logger.application.services.error_category_normalizer import ErrorCategoryNormalizer
from activity_logger.application.services.lifecycle_controller import (
    PARSE_FAILURE_CATEGORY, BuildState, LifecycleController, RunState
)
from activity_logger.application.services.session_id_generator import SessionIdGenerator
from activity_logger.domain.errors import EventSinkError
from activity_logger.domain.models.activity_event import EventSequence
from activity_logger.domain.models.host_notifications import CompilationResult, CompilerDiagnostic
from activity_logger.domain.ports.error_parser import ConsoleParserPort
from activity_logger.domain.ports.process_handle import ProcessHandlePort
from activity_logger.infrastructure.adapters.error_parsing.java_console_parser_adapter import (
    JavaConsoleParserAdapter
)
from activity_logger.infrastructure.adapters.event_sink.json_lines_sink import CollectingEventSink


@pytest.fixture
def sink():
    return CollectingEventSink()


@pytest.fixture
def controller(sink):
    return LifecycleController(
        event_sink=sink,
        normalizer=ErrorCategoryNormalizer(),
        console_parser=JavaConsoleParserAdapter(),
        id_generator=SessionIdGenerator(clock=lambda: 1000),
    )


def sequences(sink):
    return [event.sequence_tag for event in sink.events]


# --- build lifecycle ---

def test_compilation_started_is_idempotent_while_open(controller, sink):
    first = controller.on_compilation_started()
    second = controller.on_compilation_started()

    assert first == second == "build-1000-1"
    assert sequences(sink) == ["BuildStart"]
    assert controller.build_state is BuildState.OPEN


def test_clean_build_reports_success_and_returns_to_idle(controller, sink):
    build_id = controller.on_compilation_started()
    controller.on_compilation_finished(CompilationResult())

    assert sequences(sink) == ["BuildStart", "BuildEnd"]
    end = sink.events[-1]
    assert end.build_id == build_id
    assert end.success is True
    assert end.error_count == 0
    assert end.warning_count == 0
    assert end.message == "Build completed (0 errors, 0 warnings)"
    assert controller.build_state is BuildState.IDLE
    assert controller.current_build_id is None


def test_finish_without_start_synthesizes_a_build(controller, sink):
    controller.on_compilation_finished(CompilationResult())

    assert sequences(sink) == ["BuildStart", "BuildEnd"]
    assert sink.events[0].build_id == sink.events[1].build_id == "build-1000-1"


def test_diagnostics_are_recorded_errors_first_then_warnings(controller, sink):
    result = CompilationResult(
        errors=[
            CompilerDiagnostic("';' expected", "/p/Main.java", 5, 18),
            CompilerDiagnostic("cannot find symbol\n  symbol:   variable count\n  location: class Main",
                               "/p/Main.java", 9, 3),
        ],
        warnings=[CompilerDiagnostic("unchecked call to add(E)", "/p/Util.java", 2, 1)],
    )

    controller.on_compilation_finished(result)

    assert sequences(sink) == ["BuildStart", "ErrorNormalized", "ErrorNormalized", "ErrorNormalized", "BuildEnd"]
    first, second, warning = sink.by_sequence(EventSequence.ERROR_NORMALIZED)
    assert first.error_category == "semicolon_expected"
    assert (first.file_path, first.line, first.column) == ("/p/Main.java", 5, 18)
    assert first.to_dict()["phase"] == "compile"
    assert first.to_dict()["severity"] == "error"
    assert first.lang == "java"
    assert second.full_message == "cannot find symbol symbol: variable count location: class Main"
    assert second.error_type == second.full_message
    assert second.error_category == "cannot_find_symbol_variable"
    assert warning.to_dict()["severity"] == "warning"
    assert {e.build_id for e in sink.events} == {"build-1000-1"}

    end = sink.events[-1]
    assert end.success is False
    assert (end.error_count, end.warning_count) == (2, 1)
    assert end.message == "Build completed (2 errors, 1 warnings)"


def test_warnings_alone_keep_build_successful(controller, sink):
    controller.on_compilation_finished(CompilationResult(warnings=[CompilerDiagnostic("deprecated API")]))

    end = sink.events[-1]
    assert end.success is True
    assert end.warning_count == 1


def test_blank_diagnostics_are_dropped_and_not_counted(controller, sink):
    result = CompilationResult(errors=[CompilerDiagnostic("  \n\t "), CompilerDiagnostic(""),
                                       CompilerDiagnostic("not a statement")])

    controller.on_compilation_finished(result)

    assert len(sink.by_sequence(EventSequence.ERROR_NORMALIZED)) == 1
    assert sink.events[-1].error_count == 1


def test_unknown_line_and_column_are_omitted(controller, sink):
    controller.on_compilation_finished(CompilationResult(errors=[
        CompilerDiagnostic("illegal start of expression", "/p/A.java", 0, -1),
    ]))

    data = sink.by_sequence(EventSequence.ERROR_NORMALIZED)[0].to_dict()
    assert "line" not in data
    assert "column" not in data
    assert data["file_path"] == "/p/A.java"


def test_aborted_build_is_reported_as_aborted(controller, sink):
    controller.on_compilation_finished(CompilationResult(aborted=True))

    assert sink.events[-1].message == "Build aborted (0 errors, 0 warnings)"


def test_each_build_gets_a_fresh_id_and_counters(controller, sink):
    controller.on_compilation_finished(CompilationResult(errors=[CompilerDiagnostic("not a statement")]))
    controller.on_compilation_finished(CompilationResult())

    ends = sink.by_sequence(EventSequence.BUILD_END)
    assert ends[0].build_id != ends[1].build_id
    assert ends[1].error_count == 0
    assert ends[1].success is True


# --- run lifecycle ---

NUMBER_FORMAT_OUTPUT = [
    'Exception in thread "main" java.lang.NumberFormatException: For input string: "abc"\n',
    "\tat java.base/java.lang.Integer.parseInt(Integer.java:662)\n",
    "\tat Main.main(Main.java:3)\n",
]


def test_run_with_runtime_exception(controller, sink):
    run_id = controller.on_run_starting("Run", "Main")
    for chunk in NUMBER_FORMAT_OUTPUT:
        controller.on_run_output(chunk)
    controller.on_run_terminated(1)

    assert sequences(sink) == ["RunStart", "ErrorNormalized", "RunEnd"]
    start, error, end = sink.events
    assert start.run_id == run_id
    assert start.filename == "Main"
    assert start.message == "executor=Run"

    assert error.run_id == run_id
    assert error.error_category == "NumberFormatException"
    assert error.to_dict()["phase"] == "runtime"
    assert error.file_path == "Main.java"
    assert error.line == 3
    assert error.stack_trace_depth == 2
    assert error.full_message.startswith('Exception in thread "main" java.lang.NumberFormatException')
    assert error.stack_trace.endswith("\tat Main.main(Main.java:3)")
    assert error.build_id is None

    assert end.run_id == run_id
    assert end.message == "exitCode=1"
    assert controller.run_state is RunState.IDLE
    assert controller.buffered_console_chars == 0


def test_clean_run_emits_only_start_and_end(controller, sink):
    controller.on_run_starting("Run")
    controller.on_run_output("Hello\n")
    controller.on_run_terminated(0)

    assert sequences(sink) == ["RunStart", "RunEnd"]
    assert sink.events[-1].message == "exitCode=0"
    assert "filename" not in sink.events[0].to_dict()


def test_exception_split_across_chunks_is_parsed_once(controller, sink):
    text = "".join(NUMBER_FORMAT_OUTPUT)
    controller.on_run_starting("Run", "Main")
    for i in range(0, len(text), 7):
        controller.on_run_output(text[i:i + 7])
    controller.on_run_terminated(1)

    assert len(sink.by_sequence(EventSequence.ERROR_NORMALIZED)) == 1


def test_output_outside_a_run_is_ignored(controller, sink):
    controller.on_run_output("stray text")

    assert controller.buffered_console_chars == 0
    assert sink.events == []


def test_parser_failure_still_closes_the_run(sink):
    parser = MagicMock(spec=ConsoleParserPort)
    parser.parse_console_output.side_effect = RuntimeError("regex exploded")
    controller = LifecycleController(sink, ErrorCategoryNormalizer(), parser,
                                     id_generator=SessionIdGenerator(clock=lambda: 1))

    run_id = controller.on_run_starting("Run", "Main")
    controller.on_run_output("whatever")
    controller.on_run_terminated(3)

    assert sequences(sink) == ["RunStart", "ErrorNormalized", "RunEnd"]
    failure = sink.events[1]
    assert failure.error_category == PARSE_FAILURE_CATEGORY
    assert failure.run_id == run_id
    assert "regex exploded" in failure.full_message
    assert sink.events[-1].message == "exitCode=3"
    assert controller.run_state is RunState.IDLE


def test_console_buffer_is_capped(sink):
    parser = MagicMock(spec=ConsoleParserPort)
    parser.parse_console_output.return_value = []
    controller = LifecycleController(sink, ErrorCategoryNormalizer(), parser, max_buffer_chars=10)

    controller.on_run_starting("Run")
    controller.on_run_output("0123456789abcdef")
    controller.on_run_output("more")

    assert controller.buffered_console_chars == 10
    controller.on_run_terminated(0)
    parser.parse_console_output.assert_called_once_with("0123456789")


def test_new_run_abandons_the_open_one(controller, sink, caplog):
    first = controller.on_run_starting("Run", "A")
    controller.on_run_output("".join(NUMBER_FORMAT_OUTPUT))

    with caplog.at_level(logging.WARNING):
        second = controller.on_run_starting("Run", "B")
    controller.on_run_terminated(0)

    assert first != second
    assert sequences(sink) == ["RunStart", "RunStart", "RunEnd"]
    assert sink.events[-1].run_id == second
    assert "abandoned" in caplog.text


def test_termination_without_run_emits_run_end_without_id(controller, sink, caplog):
    with caplog.at_level(logging.WARNING):
        controller.on_run_terminated(0)

    assert sequences(sink) == ["RunEnd"]
    assert "run_id" not in sink.events[0].to_dict()
    assert "without an open run" in caplog.text


def test_build_and_run_ids_are_independent(controller, sink):
    build_id = controller.on_compilation_started()
    run_id = controller.on_run_starting("Run", "Main")
    controller.on_run_terminated(0)
    controller.on_compilation_finished(CompilationResult())

    assert build_id.startswith("build-")
    assert run_id.startswith("run-")
    for event in sink.events:
        assert not (event.build_id and event.run_id)
    assert sink.by_sequence(EventSequence.BUILD_END)[0].build_id == build_id


# --- sink errors and process attachment ---

def test_sink_failures_do_not_break_state_machine(caplog):
    failing_sink = MagicMock()
    failing_sink.emit.side_effect = EventSinkError("disk full")
    controller = LifecycleController(failing_sink, ErrorCategoryNormalizer(), JavaConsoleParserAdapter())

    with caplog.at_level(logging.ERROR):
        controller.on_compilation_started()
        controller.on_compilation_finished(CompilationResult())

    assert controller.build_state is BuildState.IDLE
    assert controller.events_emitted == 0
    assert failing_sink.emit.call_count == 2
    assert "disk full" in caplog.text


def test_events_emitted_counts_successful_writes(controller):
    controller.on_compilation_finished(CompilationResult())

    assert controller.events_emitted == 2


class FakeProcess(ProcessHandlePort):
    def __init__(self):
        self.listeners = []

    def add_process_listener(self, listener):
        self.listeners.append(listener)

    def print(self, text):
        for listener in self.listeners:
            listener.on_text_available(text)

    def exit(self, code):
        for listener in self.listeners:
            listener.process_terminated(code)


def test_attached_process_drives_the_run(controller, sink):
    process = FakeProcess()
    controller.on_run_starting("Debug", "Main")

    listener = controller.attach_to_process(process)
    listener.start_notified()
    for chunk in NUMBER_FORMAT_OUTPUT:
        process.print(chunk)
    process.exit(1)

    assert process.listeners == [listener]
    assert sequences(sink) == ["RunStart", "ErrorNormalized", "RunEnd"]
    assert sink.events[-1].message == "exitCode=1"


# --- concurrent notifications ---

def run_in_threads(targets):
    barrier = threading.Barrier(len(targets))

    def wait_then(target):
        barrier.wait()
        target()

    threads = [threading.Thread(target=wait_then, args=(target,)) for target in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    assert not any(thread.is_alive() for thread in threads)


def test_concurrent_builds_keep_their_own_ids_and_counts(controller, sink):
    def finish_with(error_count):
        errors = [CompilerDiagnostic(f"error {n}") for n in range(error_count)]
        return lambda: controller.on_compilation_finished(CompilationResult(errors=errors))

    run_in_threads([finish_with(n) for n in range(8)])

    starts = [i for i, event in enumerate(sink.events) if event.sequence_tag == "BuildStart"]
    assert len(starts) == 8
    seen_counts = []
    for i in starts:
        build_id = sink.events[i].build_id
        errors = 0
        j = i + 1
        while sink.events[j].sequence_tag == "ErrorNormalized":
            assert sink.events[j].build_id == build_id
            errors += 1
            j += 1
        end = sink.events[j]
        assert end.sequence_tag == "BuildEnd"
        assert end.build_id == build_id
        assert end.error_count == errors
        seen_counts.append(errors)
    assert sorted(seen_counts) == list(range(8))
    assert len({sink.events[i].build_id for i in starts}) == 8
    assert controller.build_state is BuildState.IDLE


def test_concurrent_output_and_terminations_close_the_run_once(controller, sink):
    run_id = controller.on_run_starting("Run", "Main")
    outputs = [lambda: controller.on_run_output("tick\n") for _ in range(6)]
    terminations = [lambda: controller.on_run_terminated(0) for _ in range(3)]

    run_in_threads(outputs + terminations)

    run_ends = sink.by_sequence(EventSequence.RUN_END)
    assert [event.run_id for event in run_ends].count(run_id) == 1
    assert all(event.run_id is None for event in run_ends if event.run_id != run_id)
    assert controller.run_state is RunState.IDLE
    assert controller.buffered_console_chars == 0
