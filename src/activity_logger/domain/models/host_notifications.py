# src/activity_logger/domain/models/host_notifications.py
"""
Notifications the host environment hands to the lifecycle controller.
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CompilerDiagnostic:
    """A single compiler-reported error or warning."""
    message: str
    file_path: Optional[str] = None
    line: Optional[int] = None  # 1-based; values <= 0 mean "unknown"
    column: Optional[int] = None


@dataclass
class CompilationResult:
    """Payload of a compilation-finished notification."""
    aborted: bool = False
    errors: List[CompilerDiagnostic] = field(default_factory=list)
    warnings: List[CompilerDiagnostic] = field(default_factory=list)


@dataclass
class ProcessStart:
    """Payload of a process-starting notification."""
    executor_id: str
    program_name: Optional[str] = None


@dataclass
class OpenFile:
    """A document open in the editor."""
    url: str
    name: str
    content: Optional[str] = None  # None when no text editor is attached
