"""Text surfaces: where a selection is read from and written back to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from mstodo_sync.logging import get_logger

__all__ = ["BufferSurface", "FileSurface", "TextSurface", "parse_line_range"]

logger = get_logger("surface")


class TextSurface(ABC):
    @abstractmethod
    def has_selection(self) -> bool: ...

    @abstractmethod
    def get_selection(self) -> str: ...

    @abstractmethod
    def replace_selection(self, text: str) -> None: ...


class BufferSurface(TextSurface):
    """An in-memory document with a ``[start, end)`` character selection."""

    def __init__(self, text: str, start: int = 0, end: int | None = None):
        self.text = text
        self.start = max(0, start)
        self.end = len(text) if end is None else min(end, len(text))

    def has_selection(self) -> bool:
        return self.end > self.start

    def get_selection(self) -> str:
        return self.text[self.start : self.end]

    def replace_selection(self, text: str) -> None:
        self.text = self.text[: self.start] + text + self.text[self.end :]
        self.end = self.start + len(text)


class FileSurface(BufferSurface):
    """A 1-based inclusive line range of a file; the whole file by default.

    The newline ending the last selected line is not part of the selection,
    so a replacement keeps the line structure around it.
    """

    def __init__(self, path: str | Path, start_line: int | None = None, end_line: int | None = None):
        self.path = Path(path)
        text = self.path.read_text(encoding="utf-8")
        lines = text.splitlines(keepends=True)
        first = max(1, start_line or 1)
        last = min(len(lines), end_line or len(lines))
        if first > last:
            super().__init__(text, 0, 0)
            return
        start = sum(len(line) for line in lines[: first - 1])
        end = start + sum(len(line) for line in lines[first - 1 : last])
        tail = lines[last - 1]
        end -= len(tail) - len(tail.rstrip("\r\n"))
        super().__init__(text, start, end)

    def replace_selection(self, text: str) -> None:
        super().replace_selection(text)
        self.path.write_text(self.text, encoding="utf-8")
        logger.info("Replaced selection", path=str(self.path), chars=len(text))


def parse_line_range(value: str | None) -> tuple[int | None, int | None]:
    """``"3:8"`` -> (3, 8); ``"5"`` -> (5, 5); ``"4:"`` -> (4, None); None -> (None, None)."""
    if not value:
        return None, None
    if ":" not in value:
        line = int(value)
        return line, line
    first, _, last = value.partition(":")
    return (int(first) if first else None, int(last) if last else None)
