# src/activity_logger/domain/models/activity_event.py
"""
Domain model for one logged activity record.

Every observed activity (an edit, a file open, a build, a run, a normalized
error) becomes exactly one ActivityEvent. Records are serialized as one JSON
object per line; fields that are None are left out of the output entirely.
"""
import hashlib
import json
import uuid
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class EventSequence(Enum):
    """Tags for the `sequence` field of a record."""
    TEXT_INSERT = "TextInsert"
    TEXT_DELETE = "TextDelete"
    PASTE = "<<Paste>>"
    OPEN = "Open"
    CLOSE = "Close"
    FILE_CONTENT = "FileContent"
    FILE_CREATED = "fileCreated"
    FILE_DELETED = "fileDeleted"
    SELECTION = "<Button-1>"
    SHELL_COMMAND = "ShellCommand"
    BUILD_START = "BuildStart"
    BUILD_END = "BuildEnd"
    RUN_START = "RunStart"
    RUN_END = "RunEnd"
    ERROR_NORMALIZED = "ErrorNormalized"


class Phase(Enum):
    """When an error was observed."""
    COMPILE = "compile"
    RUNTIME = "runtime"


class Severity(Enum):
    """Severity of a normalized error."""
    ERROR = "error"
    WARNING = "warning"


class WidgetClass(Enum):
    """Which editor surface produced a text event."""
    CODE_VIEW = "CodeViewText"
    SHELL = "ShellText"


def current_timestamp() -> str:
    """Returns the local time as an ISO-8601 string with millisecond resolution."""
    return datetime.now().isoformat(timespec="milliseconds")


def widget_id_for(url: str) -> str:
    """
    Derives a stable widget id from a document URL.

    The id is a name-based (MD5, version 3) UUID of the raw URL bytes, so the
    same document always maps to the same id across sessions.
    """
    digest = bytearray(hashlib.md5(url.encode("utf-8")).digest())
    digest[6] = (digest[6] & 0x0F) | 0x30
    digest[8] = (digest[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(digest)))


def _wire_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class ActivityEvent:
    """
    Structured, immutable representation of one logged activity.

    Field names are the wire names; declaration order is the serialized
    key order.
    """
    time: str
    sequence: Union[EventSequence, str]

    # editor
    text_widget_id: Optional[str] = None
    text_widget_class: Optional[Union[WidgetClass, str]] = None
    filename: Optional[str] = None
    index: Optional[str] = None
    index1: Optional[str] = None
    index2: Optional[str] = None
    text: Optional[str] = None
    command_text: Optional[str] = None

    # build/run
    message: Optional[str] = None
    build_id: Optional[str] = None
    run_id: Optional[str] = None
    success: Optional[bool] = None
    error_count: Optional[int] = None
    warning_count: Optional[int] = None

    # errors
    lang: Optional[str] = None
    phase: Optional[Union[Phase, str]] = None
    severity: Optional[Union[Severity, str]] = None
    file_path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    error_category: Optional[str] = None
    error_type: Optional[str] = None
    full_message: Optional[str] = None
    stack_trace_depth: Optional[int] = None
    stack_trace: Optional[str] = None

    @classmethod
    def now(cls, sequence: Union[EventSequence, str], **values: Any) -> "ActivityEvent":
        """Creates a record stamped with the current local time."""
        return cls(time=current_timestamp(), sequence=sequence, **values)

    @property
    def sequence_tag(self) -> str:
        return _wire_value(self.sequence)

    def to_dict(self) -> Dict[str, Any]:
        """Returns the wire representation, omitting absent fields."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = _wire_value(value)
        return result

    def to_json(self) -> str:
        """Serializes the record as a single compact JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))
