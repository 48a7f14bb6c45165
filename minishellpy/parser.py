"""Quote-aware splitting of a command line and argument post-processing."""

from __future__ import annotations

from collections.abc import Iterable

from .env import Environment
from .expand import extract_key
from .tokenize import is_redirection, is_special

QUOTES = "'\""
BLANKS = " \t"
_OPERATOR_CHARS = "><|"


class ParseError(ValueError):
    """Raised when a command line cannot be split into valid words."""


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char == "_")


def check_quote(text: str) -> bool:
    """Return whether the single and double quotes of ``text`` balance.

    A quote of one kind may be nested inside a quote of the other kind.
    """
    single_closed = True
    double_closed = True
    last = ""
    for char in text:
        if char == "'":
            if last == '"':
                if not double_closed and not single_closed:
                    return False
                if double_closed and not single_closed:
                    single_closed = True
                elif single_closed:
                    single_closed = False
            elif last == "'":
                single_closed = not single_closed
            else:
                single_closed = False
            last = "'"
        elif char == '"':
            if last == "'":
                if not single_closed and not double_closed:
                    return False
                if single_closed and not double_closed:
                    double_closed = True
                elif double_closed:
                    double_closed = False
            elif last == '"':
                double_closed = not double_closed
            else:
                double_closed = False
            last = '"'
    return single_closed and double_closed


def is_ordinary(char: str) -> bool:
    """Return whether ``char`` is neither a blank, an operator nor a quote."""
    return char not in BLANKS and char not in _OPERATOR_CHARS and char not in QUOTES


def _compliance_error(tokens: list[str]) -> str | None:
    if not tokens:
        return None
    if is_special(tokens[-1]):
        return "Illegal shell command"
    for before, after in zip(tokens, tokens[1:]):
        if is_redirection(before) and is_special(after):
            return f"Token next to another {after}"
    return None


def is_compliant(tokens: Iterable[str]) -> bool:
    """Return whether no line ends in an operator and no redirection is
    directly followed by another operator."""
    return _compliance_error(list(tokens)) is None


def _dollar(text: str, pos: int, env: Environment, quote: str) -> tuple[str, int]:
    """Handle the character at ``pos``; expand it when it starts a reference.

    ``quote`` is ``"`` inside double quotes and a space outside quotes.
    Returns the text to append and the position to continue from.
    """
    char = text[pos]
    following = text[pos + 1:pos + 2]
    expands = char == "$" and (
        quote == " " or (quote == '"' and following not in (" ", '"'))
    )
    if not expands:
        return char, pos + 1
    pos += 1
    key = extract_key(text[pos:])
    value = ""
    if key is not None:
        value = env.lookup(key) or ""
    while pos < len(text) and _is_name_char(text[pos]):
        pos += 1
    return value, pos


class _Splitter:
    """Cursor over one command line that collects its words."""

    def __init__(self, text: str, env: Environment) -> None:
        self.text = text
        self.env = env
        self.pos = 0
        self.words: list[str] = []
        self.current = ""

    def _char(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if 0 <= index < len(self.text) else ""

    def _store(self) -> None:
        if self.current:
            self.words.append(self.current)
        self.current = ""

    def _break_on_blank(self) -> None:
        if self._char() and self._char() in BLANKS and self.current:
            self._store()
            while self._char() and self._char() in BLANKS:
                self.pos += 1

    def _operator(self) -> None:
        char = self._char()
        if not char or char not in _OPERATOR_CHARS:
            return
        self._store()
        if char in "><" and self._char(1) == char:
            self.words.append(char * 2)
            self.pos += 1
            return
        self.words.append(char)

    def _quoted(self) -> None:
        quote = self._char()
        if not quote or quote not in QUOTES:
            return
        if self.pos == 0 or self.text[self.pos - 1] == " ":
            self._store()
        self.current += quote
        self.pos += 1
        while self._char() and self._char() != quote:
            piece, self.pos = _dollar(self.text, self.pos, self.env, quote)
            self.current += piece
        if self._char():
            self.current += self._char()
            self.pos += 1
        if self._char() == " ":
            self._store()

    def split(self) -> list[str]:
        while self.pos < len(self.text):
            self._break_on_blank()
            self._operator()
            self._quoted()
            char = self._char()
            if char and is_ordinary(char):
                self.current += char
            if char and char not in QUOTES:
                self.pos += 1
        self._store()
        return self.words


def split_av(text: str, env: Environment) -> list[str]:
    """Split ``text`` into words, keeping quotes and expanding ``$`` inside
    double quotes.

    Raises ParseError when the quotes do not balance or the operators are
    misplaced. An empty line gives an empty list.
    """
    if not text:
        return []
    if not check_quote(text):
        raise ParseError("These quotes don't match.")
    words = _Splitter(text.strip(BLANKS), env).split()
    error = _compliance_error(words)
    if error is not None:
        raise ParseError(error)
    return words


def _analyze(word: str, env: Environment) -> str:
    out: list[str] = []
    pos = 0
    while pos < len(word):
        char = word[pos]
        if char in QUOTES:
            pos += 1
            while pos < len(word) and word[pos] not in QUOTES:
                out.append(word[pos])
                pos += 1
            if pos < len(word):
                pos += 1
            continue
        if char == "$" and pos + 1 < len(word) and word[pos + 1] != "$":
            piece, pos = _dollar(word, pos, env, " ")
            out.append(piece)
        else:
            out.append(char)
        if pos < len(word):
            pos += 1
    return "".join(out)


def process_av(words: Iterable[str], env: Environment) -> list[str]:
    """Strip the quotes of split words and expand unquoted ``$`` references.

    A word that is only a pair of empty quotes becomes an empty argument.
    """
    return [
        "" if word in ("''", '""') else _analyze(word, env) for word in words
    ]