"""Splitting of a command line into words and operators, and quote checks."""

from __future__ import annotations

import re
from collections.abc import Iterable

SEPARATORS = " ><|"
SPECIAL_OPERATORS = frozenset({">>", "<<", ">", "<", "|"})
REDIRECTIONS = frozenset({">>", "<<", ">", "<"})

# Operators first, then words: runs of plain characters and quoted spans.
# A quote that never closes runs to the end of the line.
_LEXEME_PATTERN = re.compile(
    r""">>|<<|[><|]|(?:[^ ><|'"]|'[^']*'?|"[^"]*"?)+"""
)


class UnclosedQuoteError(ValueError):
    """Raised when a word holds a quote that is never closed."""

    def __init__(self, word: str) -> None:
        super().__init__(f"unclosed quotes are not accepted: {word}")
        self.word = word


def is_separator(char: str) -> bool:
    """Return whether ``char`` ends a word: a space, ``>``, ``<`` or ``|``."""
    return len(char) == 1 and char in SEPARATORS


def is_special(token: str) -> bool:
    """Return whether ``token`` is a redirection operator or a pipe."""
    return token in SPECIAL_OPERATORS


def is_redirection(token: str) -> bool:
    """Return whether ``token`` is one of ``<``, ``<<``, ``>``, ``>>``."""
    return token in REDIRECTIONS


def split_input(text: str) -> list[str]:
    """Split ``text`` into words and operators.

    Spaces separate words and are dropped. ``>``, ``<``, ``|``, ``>>`` and
    ``<<`` are tokens of their own, except inside quotes, which are kept in
    the word they belong to.
    """
    return [match.group() for match in _LEXEME_PATTERN.finditer(text)]


def quotes_closed(word: str) -> bool:
    """Return whether every quote opened in ``word`` is closed again."""
    rest = word
    while True:
        first = next((char for char in rest if char in "'\""), None)
        if first is None:
            return True
        start = rest.index(first)
        end = rest.find(first, start + 1)
        if end == -1:
            return False
        rest = rest[end + 1:]
        if not rest:
            return True


def check_all_quotes(words: Iterable[str]) -> None:
    """Raise UnclosedQuoteError for the first word with an open quote."""
    for word in words:
        if not quotes_closed(word):
            raise UnclosedQuoteError(word)