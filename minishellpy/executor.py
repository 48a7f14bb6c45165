"""Running parsed command lines: builtins, external programs and pipelines."""

from __future__ import annotations

import contextlib
import io
import os
import signal
import subprocess
import sys
import tempfile
from collections.abc import Iterator, Sequence
from typing import IO, TextIO

from .builtins import has_builtin, is_builtin, run_builtin
from .env import Environment
from .redirect import (
    PIPE,
    ReadLine,
    RedirectionError,
    remove_redirections,
    setup_redirections,
)
from .tokenize import is_redirection, is_special

SYNTAX_ERROR = "minishell: syntax error near unexpected token {}\n"
COMMAND_NOT_FOUND = 127


def get_path(env: Environment, name: str) -> str | None:
    """Return the program that ``name`` refers to, or None.

    ``name`` itself is used when it is readable and executable; otherwise
    each directory of ``PATH`` is tried in order.
    """
    mode = os.F_OK | os.X_OK | os.R_OK
    if os.access(name, mode):
        return name
    search = env.lookup("PATH")
    if search is None:
        return None
    for directory in (part for part in search.split(":") if part):
        candidate = f"{directory}/{name}"
        if os.access(candidate, mode):
            return candidate
    return None


def syntax_ok(words: Sequence[str], out: TextIO) -> bool:
    """Reject an operator repeated twice in a row or two adjacent redirections."""
    for current, following in zip(words, words[1:]):
        if not is_special(current):
            continue
        if current == following or (
            is_redirection(current) and is_redirection(following)
        ):
            out.write(SYNTAX_ERROR.format(following))
            return False
    return True


def split_pipeline(words: Sequence[str]) -> list[list[str]]:
    """Split ``words`` at every pipe into the words of each command."""
    commands: list[list[str]] = [[]]
    for word in words:
        if word == PIPE:
            commands.append([])
        else:
            commands[-1].append(word)
    return commands


def _child_signals() -> None:
    for name in ("SIGINT", "SIGQUIT", "SIGTSTP"):
        signum = getattr(signal, name, None)
        if signum is not None:
            signal.signal(signum, signal.SIG_DFL)


def _fileno(stream: IO) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _exit_code(returncode: int) -> int:
    return 128 - returncode if returncode < 0 else returncode


def _copy_env(env: Environment) -> Environment:
    copy = Environment()
    for key, value in env:
        copy.assign(key, value)
    return copy


def _close(stream: object) -> None:
    if hasattr(stream, "close"):
        stream.close()


@contextlib.contextmanager
def _preserved_cwd() -> Iterator[None]:
    cwd = os.getcwd()
    try:
        yield
    finally:
        os.chdir(cwd)


class _Sink:
    """Where a child's output goes: the stream's descriptor or a capture file."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self._capture: IO[bytes] | None = None
        fd = _fileno(stream)
        if fd is None:
            self._capture = tempfile.TemporaryFile()
            self.target: int | IO[bytes] = self._capture
        else:
            stream.flush()
            self.target = fd

    def drain(self) -> None:
        """Copy captured output to the stream and release the capture file."""
        if self._capture is None:
            return
        self._capture.seek(0)
        self.stream.write(self._capture.read().decode("utf-8", "replace"))
        self._capture.close()
        self._capture = None


class Executor:
    """Runs command lines against one environment."""

    def __init__(
        self,
        env: Environment,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        read_line: ReadLine | None = None,
    ) -> None:
        self.env = env
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.read_line = read_line
        self.status = 0

    def run(self, words: Sequence[str]) -> int:
        """Run one command line and return its exit status."""
        words = list(words)
        if not words:
            return self.status
        if not syntax_ok(words, self.stdout):
            return 2
        if PIPE in words:
            self.status = self.run_pipeline(words)
        else:
            self.status = self.run_simple(words)
        return self.status

    def _finish(self, code: int) -> int:
        self.env.assign("?", str(code))
        return code

    def _start(
        self,
        argv: list[str],
        stdin: object,
        stdout: object,
        stderr: object,
    ) -> subprocess.Popen | int:
        """Start ``argv``; return the process, or a status when it cannot run."""
        if not argv:
            return COMMAND_NOT_FOUND
        path = get_path(self.env, argv[0])
        if path is None or path == "/":
            self.stderr.write(f"{argv[0]}: command not found\n")
            return COMMAND_NOT_FOUND
        try:
            return subprocess.Popen(
                argv,
                executable=path,
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
                env=dict(self.env),
                preexec_fn=_child_signals,
            )
        except OSError as exc:
            self.stderr.write(f"{argv[0]}: {exc.strerror}\n")
            return 1

    def _run_builtin_here(self, words: list[str]) -> int:
        try:
            redirs = setup_redirections(words, self.read_line)
        except RedirectionError as exc:
            self.stderr.write(f"{exc}\n")
            return 1
        with redirs:
            argv = remove_redirections(words)
            if redirs.stdout is None:
                return run_builtin(argv, self.env, self.stdout, self.stderr)
            buffer = io.StringIO()
            code = run_builtin(argv, self.env, buffer, self.stderr)
            redirs.stdout.write(buffer.getvalue().encode("utf-8", "surrogateescape"))
            return code

    def run_simple(self, words: Sequence[str]) -> int:
        """Run a command without pipes; builtins run in this process."""
        words = list(words)
        if has_builtin(words):
            return self._run_builtin_here(words)
        try:
            redirs = setup_redirections(words, self.read_line)
        except RedirectionError as exc:
            self.stderr.write(f"{exc}\n")
            return self._finish(1)
        with redirs:
            argv = remove_redirections(words)
            out = _Sink(self.stdout) if redirs.stdout is None else None
            err = _Sink(self.stderr)
            target = redirs.stdout if out is None else out.target
            started = self._start(argv, redirs.stdin, target, err.target)
            if isinstance(started, int):
                code = started
            else:
                code = _exit_code(started.wait())
            if out is not None:
                out.drain()
            err.drain()
        return self._finish(code)

    def run_pipeline(self, words: Sequence[str]) -> int:
        """Run commands joined by pipes; the last command gives the status.

        Builtins inside a pipeline run on a copy of the environment, so
        their changes do not last.
        """
        commands = split_pipeline(words)
        out = _Sink(self.stdout)
        err = _Sink(self.stderr)
        processes: list[subprocess.Popen] = []
        last: subprocess.Popen | int = 0
        previous: object = None
        for index, command in enumerate(commands):
            is_last = index == len(commands) - 1
            stdin, previous = previous, subprocess.DEVNULL
            try:
                redirs = setup_redirections(command, self.read_line)
            except RedirectionError as exc:
                self.stderr.write(f"{exc}\n")
                _close(stdin)
                last = 1
                continue
            with redirs:
                if redirs.stdin is not None:
                    _close(stdin)
                    stdin = redirs.stdin
                argv = remove_redirections(command)
                if argv and is_builtin(argv[0]):
                    last, previous = self._pipeline_builtin(argv, redirs.stdout, is_last)
                else:
                    if redirs.stdout is not None:
                        target: object = redirs.stdout
                    elif is_last:
                        target = out.target
                    else:
                        target = subprocess.PIPE
                    last = self._start(argv, stdin, target, err.target)
                    if not isinstance(last, int):
                        processes.append(last)
                        if last.stdout is not None:
                            previous = last.stdout
                _close(stdin)
        for process in processes:
            process.wait()
        out.drain()
        err.drain()
        code = last if isinstance(last, int) else _exit_code(last.returncode)
        return self._finish(code)

    def _pipeline_builtin(
        self, argv: list[str], redirected: IO[bytes] | None, is_last: bool
    ) -> tuple[int, object]:
        buffer = io.StringIO()
        with _preserved_cwd():
            code = run_builtin(argv, _copy_env(self.env), buffer, self.stderr) & 0xFF
        data = buffer.getvalue()
        if redirected is not None:
            redirected.write(data.encode("utf-8", "surrogateescape"))
            return code, subprocess.DEVNULL
        if is_last:
            self.stdout.write(data)
            return code, subprocess.DEVNULL
        feed = tempfile.TemporaryFile()
        feed.write(data.encode("utf-8", "surrogateescape"))
        feed.seek(0)
        return code, feed