"""Hashed store of shell environment variables."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping

HASH_LEN = 300


def hash_function(key: str) -> int:
    """Return the bucket index of ``key``.

    Each byte is taken as a signed char and folded into a 32-bit
    unsigned accumulator as ``h * 31 + c``.
    """
    h = 0
    for byte in key.encode("utf-8", "surrogateescape"):
        if byte > 127:
            byte -= 256
        h = (h * 31 + byte) & 0xFFFFFFFF
    return h % HASH_LEN


class Environment:
    """Environment variables kept in fixed hash buckets.

    Iteration yields ``(key, value)`` pairs bucket by bucket, and within a
    bucket in insertion order; reassigning a key moves it to the end of
    its bucket.
    """

    def __init__(self) -> None:
        self._slots: list[list[tuple[str, str]]] = [[] for _ in range(HASH_LEN)]

    @classmethod
    def from_environ(
        cls, environ: Mapping[str, str] | Iterable[str] | None
    ) -> "Environment":
        """Build an environment from a mapping or from ``KEY=VALUE`` strings.

        The special variable ``?`` is seeded first. Strings without ``=``
        are skipped.
        """
        env = cls()
        env.assign("?", "?=0")
        if environ is None:
            environ = os.environ
        if isinstance(environ, Mapping):
            pairs: Iterable[tuple[str, str]] = environ.items()
        else:
            pairs = (
                (key, value)
                for key, sep, value in (entry.partition("=") for entry in environ)
                if sep
            )
        for key, value in pairs:
            env.assign(key, value)
        return env

    def lookup(self, key: str) -> str | None:
        """Return the value of ``key``, or None when it is not set."""
        for name, value in self._slots[hash_function(key)]:
            if name == key:
                return value
        return None

    def assign(self, key: str, value: str | None) -> None:
        """Set ``key`` to ``value``; None is stored as an empty string."""
        self.delete(key)
        self._slots[hash_function(key)].append((key, "" if value is None else value))

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        bucket = self._slots[hash_function(key)]
        for position, (name, _) in enumerate(bucket):
            if name == key:
                del bucket[position]
                return True
        return False

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None

    def __iter__(self) -> Iterator[tuple[str, str]]:
        for bucket in self._slots:
            yield from bucket

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._slots)

    def to_envp(self) -> list[str]:
        """Return the variables as ``KEY=VALUE`` strings in iteration order."""
        return [f"{key}={value}" for key, value in self]