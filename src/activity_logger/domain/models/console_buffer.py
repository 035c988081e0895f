# src/activity_logger/domain/models/console_buffer.py
"""
Size-capped accumulator for console output of a single run.
"""
from typing import List

DEFAULT_MAX_CHARS = 5 * 1024 * 1024


class BoundedConsoleBuffer:
    """
    Collects console text up to a fixed number of characters.

    Once the cap is reached further text is dropped silently. The earliest
    output is kept because that is where the first exception usually shows up.
    """

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS):
        if max_chars < 0:
            raise ValueError(f"max_chars must be non-negative, got {max_chars}")
        self.max_chars = max_chars
        self._chunks: List[str] = []
        self._length = 0
        self.dropped_chars = 0

    def __len__(self) -> int:
        return self._length

    @property
    def is_full(self) -> bool:
        return self._length >= self.max_chars

    def append(self, chunk: str) -> int:
        """
        Appends as much of `chunk` as still fits.

        Args:
            chunk: Console text in arrival order.

        Returns:
            The number of characters actually stored.
        """
        if not chunk:
            return 0
        remaining = self.max_chars - self._length
        if remaining <= 0:
            self.dropped_chars += len(chunk)
            return 0
        if len(chunk) > remaining:
            self.dropped_chars += len(chunk) - remaining
            chunk = chunk[:remaining]
        self._chunks.append(chunk)
        self._length += len(chunk)
        return len(chunk)

    def getvalue(self) -> str:
        text = "".join(self._chunks)
        # Collapse so repeated reads stay cheap.
        self._chunks = [text] if text else []
        return text

    def clear(self) -> None:
        self._chunks = []
        self._length = 0
        self.dropped_chars = 0
