"""Redirection handling: finding, removing and opening redirection targets."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import BinaryIO

from .tokenize import is_redirection

PIPE = "|"
ERRFILE = "minishell: syntax error near unexpected token `{}`"

ReadLine = Callable[[str], "str | None"]


class RedirectionError(Exception):
    """Raised when a redirection cannot be set up."""


def _read_terminal_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def find_pipe_position(words: Sequence[str]) -> int:
    """Return the index of the first pipe, or the length of ``words``."""
    words = list(words)
    return words.index(PIPE) if PIPE in words else len(words)


def get_cmd(words: Sequence[str]) -> list[str]:
    """Return the words of the first command, up to the first pipe."""
    words = list(words)
    return words[: find_pipe_position(words)]


def has_redirection(words: Sequence[str], op: str) -> bool:
    """Return whether ``op`` appears among ``words``."""
    return op in words


def get_filename(words: Sequence[str], op: str) -> str | None:
    """Return the word after the first ``op``, or None when ``op`` is absent.

    Raises RedirectionError when ``op`` is the last word.
    """
    words = list(words)
    if op not in words:
        return None
    position = words.index(op)
    if position + 1 >= len(words):
        raise RedirectionError(ERRFILE.format(op))
    return words[position + 1]


def remove_redirections(words: Sequence[str]) -> list[str]:
    """Drop every redirection and its target before the first pipe."""
    words = list(words)
    end = find_pipe_position(words)
    kept: list[str] = []
    head = iter(words[:end])
    for word in head:
        if is_redirection(word):
            next(head, None)
        else:
            kept.append(word)
    return kept + words[end:]


def read_heredoc(delimiter: str, read_line: ReadLine | None = None) -> str:
    """Collect lines until ``delimiter`` or end of input, each ending in a newline."""
    read_line = read_line or _read_terminal_line
    lines: list[str] = []
    while (line := read_line("> ")) is not None and line != delimiter:
        lines.append(line + "\n")
    return "".join(lines)


@dataclass
class Redirections:
    """Files that replace standard input and output of a command."""

    stdin: BinaryIO | None = None
    stdout: BinaryIO | None = None

    def _set_stdin(self, stream: BinaryIO) -> None:
        if self.stdin is not None:
            self.stdin.close()
        self.stdin = stream

    def _set_stdout(self, stream: BinaryIO) -> None:
        if self.stdout is not None:
            self.stdout.close()
        self.stdout = stream

    def close(self) -> None:
        """Close every file held."""
        for stream in (self.stdin, self.stdout):
            if stream is not None:
                stream.close()

    def __enter__(self) -> "Redirections":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _redirection_pairs(words: Sequence[str]) -> Iterator[tuple[str, str]]:
    items = iter(words)
    for word in items:
        if is_redirection(word):
            target = next(items, None)
            if target is None:
                raise RedirectionError(ERRFILE.format(word))
            yield word, target


def _open_output(op: str, filename: str) -> BinaryIO:
    flags = os.O_WRONLY | os.O_CREAT
    flags |= os.O_APPEND if op == ">>" else os.O_TRUNC
    try:
        fd = os.open(filename, flags, 0o644)
    except OSError as exc:
        raise RedirectionError(f"cannot create or modify: {filename}") from exc
    return os.fdopen(fd, "ab" if op == ">>" else "wb")


def _heredoc_file(content: str) -> BinaryIO:
    stream = tempfile.TemporaryFile("w+b")
    stream.write(content.encode("utf-8", "surrogateescape"))
    stream.seek(0)
    return stream


def setup_redirections(
    words: Sequence[str], read_line: ReadLine | None = None
) -> Redirections:
    """Open the targets of every redirection among ``words``.

    Input files are opened first, then here-documents are read, then
    output files are created in order. The last input (a here-document
    taking precedence over ``<``) and the last output win. Raises
    RedirectionError when a file cannot be opened.
    """
    pairs = list(_redirection_pairs(words))
    redirs = Redirections()
    try:
        for op, target in pairs:
            if op == "<":
                try:
                    stream = open(target, "rb")
                except OSError as exc:
                    raise RedirectionError(
                        f"{target}: no such file or directory"
                    ) from exc
                redirs._set_stdin(stream)
        for op, target in pairs:
            if op == "<<":
                redirs._set_stdin(_heredoc_file(read_heredoc(target, read_line)))
        for op, target in pairs:
            if op in (">", ">>"):
                redirs._set_stdout(_open_output(op, target))
    except BaseException:
        redirs.close()
        raise
    return redirs