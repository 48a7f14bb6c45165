"""Variable expansion, quote removal and word splitting of parsed words."""

from __future__ import annotations

from collections.abc import Iterable

from .env import Environment
from .tokenize import check_all_quotes

# Marks a place where an expanded value held a space.
WORD_BREAK = "^"


def _is_key_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char in "_?")


def extract_key(text: str) -> str | None:
    """Return the variable name at the start of ``text``.

    A name starts with a letter, ``_`` or ``?`` and runs over letters,
    digits, ``_`` and ``?``. None is returned when no name starts there.
    """
    if not text:
        return None
    first = text[0]
    if not (first.isascii() and (first.isalpha() or first in "_?")):
        return None
    length = 0
    for char in text:
        if not _is_key_char(char):
            break
        length += 1
    return text[:length]


def get_word(text: str, env: Environment) -> str:
    """Return the value that the ``$`` at the start of ``text`` stands for.

    A lone ``$`` (or ``$"``) stands for itself; an unknown or invalid
    name expands to the empty string.
    """
    name_part = text[1:].split(" ", 1)[0]
    if not name_part or text == '$"':
        return "$"
    key = extract_key(name_part)
    if key is None:
        return ""
    value = env.lookup(key)
    return value if value is not None else ""


def _swap_word(value: str, text: str, position: int) -> str:
    """Replace the ``$`` reference at ``position`` with ``value``.

    The text kept before the value ends at the first ``$`` of ``text``;
    the reference runs up to the next space. Spaces in the value become
    word breaks.
    """
    prefix = text[: text.index("$")]
    end = text.find(" ", position)
    suffix = "" if end == -1 else text[end:]
    return prefix + value.replace(" ", WORD_BREAK) + suffix


def expand_word(word: str, env: Environment) -> str:
    """Expand the ``$`` references of ``word`` outside single quotes."""
    text = word
    in_single_quote = False
    position = 0
    while position < len(text):
        char = text[position]
        if char == "'":
            in_single_quote = not in_single_quote
        if char == "$" and not in_single_quote:
            text = _swap_word(get_word(text[position:], env), text, position)
        position += 1
    return text


def expand_dollars(words: Iterable[str], env: Environment) -> list[str]:
    """Return ``words`` with every word holding a ``$`` expanded."""
    return [expand_word(word, env) if "$" in word else word for word in words]


def remove_quotes(word: str) -> str:
    """Drop the quote characters that open and close quoted spans."""
    kept: list[str] = []
    open_quote = ""
    for char in word:
        if char in "'\"" and open_quote in ("", char):
            open_quote = "" if open_quote else char
            continue
        kept.append(char)
    return "".join(kept)


def split_words(words: Iterable[str]) -> list[str]:
    """Split every word at its word-break marks, keeping empty pieces."""
    return [piece for word in words for piece in word.split(WORD_BREAK)]


def process(words: Iterable[str], env: Environment) -> list[str]:
    """Turn the words of a split command line into final arguments.

    Checks quotes, expands variables, removes quotes, drops words that
    end up empty and splits at word breaks. Raises UnclosedQuoteError
    when a word has an open quote.
    """
    words = list(words)
    check_all_quotes(words)
    expanded = expand_dollars(words, env)
    unquoted = [remove_quotes(word) for word in expanded]
    return split_words(word for word in unquoted if word)