"""Commands that the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
from collections.abc import Sequence
from itertools import dropwhile
from typing import TextIO

from .env import Environment

BUILTINS = frozenset({"echo", "env", "cd", "exit", "export", "pwd", "unset", "debug"})
EXIT_NUMERIC_ERROR = "minishell: exit: {}: numeric argument required\n"
INVALID_IDENTIFIER = "Not valid identifier\n"
_DIGITS = "0123456789"


class ShellExit(Exception):
    """Raised when the shell is asked to terminate with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def is_builtin(name: str | None) -> bool:
    """Return whether ``name`` is a command the shell handles itself."""
    return bool(name) and name in BUILTINS


def has_builtin(words: Sequence[str]) -> bool:
    """Return whether any of ``words`` names a builtin."""
    return any(is_builtin(word) for word in words)


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


def check_key(arg: str) -> bool:
    """Return whether ``arg`` starts with a valid variable name.

    The name runs up to the first ``=``; it must start with a letter or
    ``_`` and hold only letters, digits and ``_``.
    """
    if not arg:
        return False
    first = arg[0]
    if not (first.isascii() and (first.isalpha() or first == "_")):
        return False
    name = arg.partition("=")[0]
    return all(_is_name_char(char) for char in name)


def _is_n_flag(word: str) -> bool:
    return word.startswith("-n") and set(word[1:]) == {"n"}


def echo(argv: Sequence[str], out: TextIO) -> int:
    """Print the arguments separated by spaces.

    A leading ``-n`` (or ``-nnn``) suppresses the newline, and further
    such flags right after it are skipped.
    """
    if not argv:
        return 0
    args = list(argv[1:])
    newline = True
    if args and _is_n_flag(args[0]):
        newline = False
        args = list(dropwhile(_is_n_flag, args))
    out.write(" ".join(args))
    if newline:
        out.write("\n")
    return 0


def cd(argv: Sequence[str], env: Environment, err: TextIO) -> int:
    """Change directory to the argument, or to ``HOME`` without one.

    On success ``OLDPWD`` takes the old ``PWD`` and ``PWD`` the new
    working directory.
    """
    if len(argv) > 1:
        path = argv[1]
    else:
        home = env.lookup("HOME")
        if home is None:
            err.write("cd: HOME not set\n")
            return 1
        path = home
    try:
        os.chdir(path)
    except OSError as exc:
        err.write(f"cd: {exc.strerror}\n")
        return 1
    env.assign("OLDPWD", env.lookup("PWD"))
    env.assign("PWD", os.getcwd())
    return 0


def pwd(out: TextIO, err: TextIO) -> int:
    """Print the current working directory."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        err.write(f"pwd: {exc.strerror}\n")
        return 1
    out.write(f"{cwd}\n")
    return 0


def _print_exported(env: Environment, out: TextIO) -> int:
    for key, value in env:
        if value:
            out.write(f'declare -x {key}="{value}"\n')
        else:
            out.write(f"declare -x {key}\n")
    return 0


def export(argv: Sequence[str], env: Environment, out: TextIO, err: TextIO) -> int:
    """Set variables from ``KEY=VALUE`` arguments, or list them without any.

    An argument without ``=`` sets the variable to the empty string. The
    first invalid name stops processing and gives status 1.
    """
    if len(argv) < 2:
        return _print_exported(env, out)
    for arg in argv[1:]:
        if not check_key(arg):
            err.write(INVALID_IDENTIFIER)
            return 1
        key, sep, value = arg.partition("=")
        env.assign(key, value if sep else "")
    return 0


def unset(argv: Sequence[str], env: Environment, out: TextIO) -> int:
    """Remove the named variables."""
    if len(argv) < 2:
        out.write("unset: not enough arguments\n")
        return 1
    for key in argv[1:]:
        env.delete(key)
    return 0


def print_env(env: Environment, out: TextIO) -> int:
    """Print every variable as ``KEY=VALUE``."""
    for key, value in env:
        out.write(f"{key}={value}\n")
    return 0


def run_builtin(
    argv: Sequence[str], env: Environment, out: TextIO, err: TextIO
) -> int:
    """Run the builtin named by ``argv[0]``; return -1 for any other name."""
    name = argv[0] if argv else ""
    if name == "echo":
        return echo(argv, out)
    if name == "env":
        return print_env(env, out)
    if name == "cd":
        return cd(argv, env, err)
    if name == "export":
        return export(argv, env, out, err)
    if name == "pwd":
        return pwd(out, err)
    if name == "unset":
        return unset(argv, env, out)
    return -1


def check_exit_args(argv: Sequence[str], status: int, out: TextIO) -> int:
    """Handle ``exit``: raise ShellExit with the status to leave with.

    Too many arguments leave the shell running and return 1. A
    non-numeric argument exits with status 2; otherwise the argument, or
    ``status`` without one, is the exit status.
    """
    if len(argv) > 1:
        if len(argv) > 2:
            out.write("exit: too many arguments\n")
            return 1
        arg = argv[1]
        if not all(char in _DIGITS for char in arg):
            out.write(EXIT_NUMERIC_ERROR.format(arg))
            out.write("exit\n")
            raise ShellExit(2)
        status = int(arg) if arg else 0
    out.write("exit\n")
    raise ShellExit(status & 0xFF)