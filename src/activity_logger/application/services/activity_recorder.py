# src/activity_logger/application/services/activity_recorder.py
"""
Records editor activity handed over by the host.

The host detects edits, pastes, file and selection changes itself; this
service only turns those already-classified notifications into records.
Process starts are also routed through here: they are logged as a shell
command and, when a lifecycle provider is registered, forwarded to it.
"""
import logging
from typing import Iterable, Optional

from activity_logger.domain.errors import EventSinkError
from activity_logger.domain.models.activity_event import ActivityEvent, EventSequence, WidgetClass, widget_id_for
from activity_logger.domain.models.host_notifications import OpenFile
from activity_logger.domain.ports.event_sink import EventSinkPort
from activity_logger.domain.ports.process_handle import ProcessHandlePort
from activity_logger.infrastructure.tools.capability_registry import JAVA_LIFECYCLE, CapabilityRegistry

logger = logging.getLogger(__name__)

# Dummy identifier the IDE inserts while computing completions.
COMPLETION_PLACEHOLDER = "IntellijIdeaRulezzz"
REMOTE_URL_PREFIX = "https:"
MOCK_URL_PREFIX = "mock:"


class ActivityRecorder:
    """Turns editor notifications into activity records."""

    def __init__(self, event_sink: EventSinkPort, registry: Optional[CapabilityRegistry] = None):
        """
        Args:
            event_sink: Destination of the emitted records.
            registry: Looked up for the optional run lifecycle provider.
        """
        self.event_sink = event_sink
        self.registry = registry or CapabilityRegistry()
        self.events_emitted = 0

    def _emit(self, event: ActivityEvent) -> None:
        try:
            self.event_sink.emit(event)
            self.events_emitted += 1
        except EventSinkError as e:
            logger.error(f"Failed to write {event.sequence_tag} record: {e}", exc_info=True)

    @staticmethod
    def _widget(document_url: Optional[str]):
        """Returns (widget_class, widget_id) or None when the document is not tracked."""
        if document_url is None:
            return WidgetClass.SHELL, None
        if document_url.startswith(MOCK_URL_PREFIX):
            return None
        return WidgetClass.CODE_VIEW, widget_id_for(document_url)

    def text_inserted(self, text: str, index: str, document_url: Optional[str] = None) -> None:
        """
        Records typed or inserted text.

        Args:
            text: The inserted fragment.
            index: Position of the insertion as 'line.column'.
            document_url: URL of the edited file; None for the shell.
        """
        if document_url and document_url.startswith(REMOTE_URL_PREFIX):
            return
        if text.startswith(COMPLETION_PLACEHOLDER):
            return
        widget = self._widget(document_url)
        if widget is None:
            return
        widget_class, widget_id = widget
        self._emit(ActivityEvent.now(
            EventSequence.TEXT_INSERT,
            text=text,
            text_widget_class=widget_class,
            text_widget_id=widget_id,
            index=index,
        ))

    def text_deleted(self, index1: str, index2: str, document_url: Optional[str] = None) -> None:
        """Records a deletion between two 'line.column' positions."""
        if document_url and document_url.startswith(REMOTE_URL_PREFIX):
            return
        widget = self._widget(document_url)
        if widget is None:
            return
        widget_class, widget_id = widget
        self._emit(ActivityEvent.now(
            EventSequence.TEXT_DELETE,
            text_widget_class=widget_class,
            text_widget_id=widget_id,
            index1=index1,
            index2=index2,
        ))

    def pasted(self, document_url: Optional[str] = None) -> None:
        self._emit(ActivityEvent.now(
            EventSequence.PASTE,
            text_widget_class=WidgetClass.CODE_VIEW,
            text_widget_id=widget_id_for(document_url) if document_url else "",
        ))

    def file_opened(self, url: str, name: str, content: Optional[str] = None) -> None:
        """Records an opened file, plus its full text when an editor shows it."""
        widget_id = widget_id_for(url)
        self._emit(ActivityEvent.now(
            EventSequence.OPEN,
            text_widget_class=WidgetClass.CODE_VIEW,
            text_widget_id=widget_id,
            filename=name,
        ))
        if content is not None:
            self._emit(ActivityEvent.now(
                EventSequence.FILE_CONTENT,
                text=content,
                text_widget_class=WidgetClass.CODE_VIEW,
                text_widget_id=widget_id,
                index="1.0",
            ))

    def project_opened(self, open_files: Iterable[OpenFile]) -> None:
        """Records the files that were already open when the project loaded."""
        for open_file in open_files:
            self.file_opened(open_file.url, open_file.name, open_file.content)

    def file_closed(self, url: str, name: str) -> None:
        self._emit(ActivityEvent.now(
            EventSequence.CLOSE,
            text_widget_class=WidgetClass.CODE_VIEW,
            text_widget_id=widget_id_for(url),
            filename=name,
        ))

    def file_created(self, url: str, name: str) -> None:
        self._emit(ActivityEvent.now(EventSequence.FILE_CREATED, text_widget_id=widget_id_for(url), filename=name))

    def file_deleted(self, url: str, name: str) -> None:
        self._emit(ActivityEvent.now(EventSequence.FILE_DELETED, text_widget_id=widget_id_for(url), filename=name))

    def selection_changed(self, url: Optional[str] = None) -> None:
        self._emit(ActivityEvent.now(
            EventSequence.SELECTION,
            text_widget_class=WidgetClass.CODE_VIEW,
            text_widget_id=widget_id_for(url) if url else None,
        ))

    def process_starting(self,
                         executor_id: str,
                         program_name: Optional[str] = None,
                         process: Optional[ProcessHandlePort] = None) -> Optional[str]:
        """
        Records a program launch and hands it to the lifecycle provider.

        Args:
            executor_id: The host executor, e.g. 'Run' or 'Debug'.
            program_name: Name of the file being run, if known.
            process: Handle to subscribe to for output and termination.

        Returns:
            The run id assigned by the provider, or None when no provider is registered.
        """
        command = f"%{executor_id} {program_name}" if program_name else f"%{executor_id}"
        self._emit(ActivityEvent.now(EventSequence.SHELL_COMMAND, command_text=command))

        lifecycle = self.registry.get(JAVA_LIFECYCLE)
        if lifecycle is None:
            logger.debug("No lifecycle provider registered; run of '%s' is not tracked.", program_name)
            return None

        run_id = lifecycle.on_run_starting(executor_id, program_name)
        if process is not None:
            lifecycle.attach_to_process(process)
        return run_id
