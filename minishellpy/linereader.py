"""Buffered line reading from raw file descriptors."""

from __future__ import annotations

import os
from collections.abc import Iterator

BUFFER_SIZE = 42


class LineReader:
    """Read newline-terminated lines from a file descriptor.

    Each returned line keeps its trailing newline; the last line of the
    input may lack one. Bytes past the current line stay buffered for the
    next call.
    """

    def __init__(self, fd: int, buffer_size: int = BUFFER_SIZE) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.fd = fd
        self.buffer_size = buffer_size
        self._storage = b""

    def read_line(self) -> str | None:
        """Return the next line, or None at end of input or on a read error."""
        if self.fd < 0:
            self._storage = b""
            return None
        while b"\n" not in self._storage:
            try:
                chunk = os.read(self.fd, self.buffer_size)
            except OSError:
                self._storage = b""
                return None
            if not chunk:
                break
            self._storage += chunk
        if not self._storage:
            return None
        line, newline, rest = self._storage.partition(b"\n")
        self._storage = rest
        return (line + newline).decode("utf-8", "replace")

    def __iter__(self) -> Iterator[str]:
        while (line := self.read_line()) is not None:
            yield line


_readers: dict[int, LineReader] = {}


def get_next_line(fd: int) -> str | None:
    """Return the next line of ``fd``, keeping leftover input per descriptor."""
    if fd < 0:
        return None
    reader = _readers.get(fd)
    if reader is None:
        reader = _readers[fd] = LineReader(fd)
    line = reader.read_line()
    if line is None:
        _readers.pop(fd, None)
    return line