"""
Regex-based parser for Java runtime exceptions in console output.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from activity_logger.domain.ports.error_parser import ConsoleParserPort, ParsedException

logger = logging.getLogger(__name__)

# Module prefixes the JVM prints in front of platform frames.
DEFAULT_SYSTEM_MARKERS = ("java.base/", "java.desktop/", "jdk.internal/", "jdk.proxy")
DEFAULT_SYSTEM_PREFIXES = ("java.", "javax.", "jdk.", "sun.", "com.sun.")


@dataclass(frozen=True)
class _Header:
    exception_class: str
    detail_message: Optional[str]


class JavaConsoleParserAdapter(ConsoleParserPort):
    """
    Finds exception blocks (header line plus stack frames) in console output.

    A block starts with either 'Exception in thread "<name>" <Class>[: msg]'
    or a line consisting only of '<Class>[: msg]', where the class name ends
    in Exception, Error or Throwable. A header that is not followed by at
    least one 'at ...' frame is ignored.
    """

    THREAD_HEADER_REGEX = re.compile(
        r'Exception in thread\s+"[^"]+"\s+([a-zA-Z_][\w.]*(?:Exception|Error|Throwable))(?::\s*(.*))?'
    )
    BARE_HEADER_REGEX = re.compile(
        r"^([a-zA-Z_][\w.]*(?:Exception|Error|Throwable))(?::\s*(.*))?$"
    )
    FRAME_REGEX = re.compile(r"at\s+(.+)\(([^():]+\.java):(\d+)\)")
    MORE_REGEX = re.compile(r"^\.\.\. \d+ more$")
    LINE_BREAK_REGEX = re.compile(r"\r\n|\r|\n")
    WHITESPACE_REGEX = re.compile(r"\s+")

    def __init__(self,
                 system_markers: Sequence[str] = DEFAULT_SYSTEM_MARKERS,
                 system_prefixes: Sequence[str] = DEFAULT_SYSTEM_PREFIXES):
        """
        Args:
            system_markers: Substrings that mark a frame as JDK code.
            system_prefixes: Package prefixes of JDK classes.
        """
        self.system_markers = tuple(system_markers)
        self.system_prefixes = tuple(system_prefixes)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "JavaConsoleParserAdapter":
        parser_config = config.get('runtime_parser') or {}
        return cls(
            system_markers=parser_config.get('system_markers') or DEFAULT_SYSTEM_MARKERS,
            system_prefixes=parser_config.get('system_prefixes') or DEFAULT_SYSTEM_PREFIXES,
        )

    def parse_console_output(self, full_output: str) -> List[ParsedException]:
        """Parses the complete output of one run for exception blocks."""
        results: List[ParsedException] = []
        lines = self.LINE_BREAK_REGEX.split(full_output)

        i = 0
        while i < len(lines):
            header = self._try_parse_header(lines[i])
            if header is None:
                i += 1
                continue

            trace_lines = []
            j = i + 1
            while j < len(lines) and self._is_trace_line(lines[j]):
                trace_lines.append(lines[j])
                j += 1

            if any(self._is_frame_line(line) for line in trace_lines):
                results.append(self._build_exception(header, lines[i], trace_lines))
            else:
                logger.debug("Ignoring exception-like line without stack frames: %s", lines[i].strip())
            i = j

        logger.debug("Parsed %d runtime exceptions from %d lines of console output.", len(results), len(lines))
        return results

    def _try_parse_header(self, line: str) -> Optional[_Header]:
        trimmed = line.strip()
        match = self.THREAD_HEADER_REGEX.search(trimmed) or self.BARE_HEADER_REGEX.search(trimmed)
        if not match:
            return None
        detail = match.group(2)
        return _Header(match.group(1), detail if detail and detail.strip() else None)

    @staticmethod
    def _is_frame_line(line: str) -> bool:
        return line.strip().startswith("at ")

    def _is_trace_line(self, line: str) -> bool:
        trimmed = line.strip()
        return (trimmed.startswith("at ")
                or trimmed.startswith("Caused by:")
                or bool(self.MORE_REGEX.match(trimmed)))

    def is_system_frame(self, frame_line: str, method_ref: str) -> bool:
        """
        Tells whether a stack frame belongs to JDK code rather than user code.

        Args:
            frame_line: The raw 'at ...' line.
            method_ref: The method reference before the parenthesis,
                e.g. 'java.base/java.lang.Integer.parseInt'.
        """
        if any(marker in frame_line for marker in self.system_markers):
            return True
        without_module = method_ref.split("/", 1)[-1]
        class_name, dot, _ = without_module.rpartition(".")
        if not dot:
            class_name = without_module
        return class_name.startswith(self.system_prefixes)

    def _find_location(self, trace_lines: List[str]) -> Tuple[Optional[str], Optional[int]]:
        first_with_location: Optional[Tuple[str, int]] = None
        for frame_line in trace_lines:
            match = self.FRAME_REGEX.search(frame_line)
            if not match:
                continue
            location = (match.group(2), int(match.group(3)))
            if not self.is_system_frame(frame_line, match.group(1)):
                return location
            if first_with_location is None:
                first_with_location = location
        # Thrown entirely inside JDK code: report the innermost frame instead.
        if first_with_location is not None:
            return first_with_location
        return None, None

    def _build_exception(self, header: _Header, header_line: str, trace_lines: List[str]) -> ParsedException:
        file_name, line_number = self._find_location(trace_lines)
        return ParsedException(
            exception_class=header.exception_class,
            detail_message=header.detail_message,
            full_message=self.WHITESPACE_REGEX.sub(" ", header_line.strip()),
            file_name=file_name,
            line=line_number,
            stack_trace_depth=sum(1 for line in trace_lines if self._is_frame_line(line)),
            full_stack_trace="\n".join([header_line] + trace_lines),
        )
