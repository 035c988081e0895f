"""
Ports for attaching to a process started by the host environment.
"""
from abc import ABC, abstractmethod


class ProcessListenerPort(ABC):
    """Receives console output and termination of a running process."""

    def start_notified(self) -> None:
        """Called once the process has started."""
        pass

    @abstractmethod
    def on_text_available(self, text: str) -> None:
        """
        Called for each chunk of console output, in arrival order.

        Args:
            text: The chunk of stdout/stderr text.
        """
        pass

    @abstractmethod
    def process_terminated(self, exit_code: int) -> None:
        """
        Called once when the process has exited.

        Args:
            exit_code: The process exit code.
        """
        pass


class ProcessHandlePort(ABC):
    """Host-side handle of a running process."""

    @abstractmethod
    def add_process_listener(self, listener: ProcessListenerPort) -> None:
        """
        Registers a listener for this process.

        Args:
            listener: The listener to notify.
        """
        pass
