from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

@dataclass(frozen=True)
class ParsedException:
    """Structured representation of one runtime exception found in console output."""
    exception_class: str # Fully qualified, e.g. 'java.lang.NullPointerException'
    detail_message: Optional[str]
    full_message: str # Header line, whitespace collapsed
    file_name: Optional[str] # Best-effort user-code location
    line: Optional[int]
    stack_trace_depth: int # Number of 'at ...' frames
    full_stack_trace: str # Header plus all consumed trace lines

class ConsoleParserPort(ABC):
    """Interface for extracting runtime exceptions from console output."""

    @abstractmethod
    def parse_console_output(self, full_output: str) -> List[ParsedException]:
        """
        Parses the complete console output of one program run.

        Args:
            full_output: Everything the program wrote to stdout/stderr.

        Returns:
            The exceptions found, in order of appearance.
        """
        pass
