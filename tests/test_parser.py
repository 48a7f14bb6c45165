import pytest

from minishellpy.env import Environment
from minishellpy.parser import (
    ParseError,
    check_quote,
    is_compliant,
    is_ordinary,
    process_av,
    split_av,
)


@pytest.fixture
def env():
    return Environment.from_environ({"HOME": "/home/u", "USER": "alice"})


@pytest.mark.parametrize(
    "text, expected",
    [
        ("'a'", True),
        ('"a"', True),
        ("'a", False),
        ('"a', False),
        ("\"a'b'\"", True),
        ("'a\"b", False),
        ("plain", True),
    ],
)
def test_check_quote(text, expected):
    assert check_quote(text) is expected


@pytest.mark.parametrize("char", [" ", "\t", ">", "<", "|", "'", '"'])
def test_is_ordinary_rejects_specials(char):
    assert is_ordinary(char) is False


@pytest.mark.parametrize("char", ["a", "$", "-", "1"])
def test_is_ordinary_accepts_plain(char):
    assert is_ordinary(char) is True


@pytest.mark.parametrize(
    "tokens, expected",
    [
        ([], True),
        (["echo", "hi"], True),
        (["echo", "|"], False),
        (["cat", ">"], False),
        (["cat", "<", ">", "f"], False),
        (["a", ">>", "|", "b"], False),
        (["a", "|", "|", "b"], True),
    ],
)
def test_is_compliant(tokens, expected):
    assert is_compliant(tokens) is expected


def test_split_simple_words(env):
    assert split_av("echo hello world", env) == ["echo", "hello", "world"]


def test_split_trims_blanks(env):
    assert split_av("  \tls -l \t ", env) == ["ls", "-l"]


def test_split_operators_without_spaces(env):
    assert split_av("ls>out", env) == ["ls", ">", "out"]
    assert split_av("cat<<EOF", env) == ["cat", "<<", "EOF"]
    assert split_av("a|b", env) == ["a", "|", "b"]
    assert split_av("a >> b", env) == ["a", ">>", "b"]


def test_split_keeps_quoted_spaces(env):
    assert split_av("echo 'a b'", env) == ["echo", "'a b'"]


def test_split_expands_in_double_quotes(env):
    assert split_av('echo "$HOME"', env) == ["echo", '"/home/u"']


def test_split_no_expansion_in_single_quotes(env):
    assert split_av("echo '$HOME'", env) == ["echo", "'$HOME'"]


def test_split_leaves_unquoted_dollar(env):
    assert split_av("echo $HOME", env) == ["echo", "$HOME"]


def test_split_joins_quote_and_following_text(env):
    assert split_av('echo "a"b', env) == ["echo", '"a"b']


def test_split_empty_line(env):
    assert split_av("", env) == []


def test_split_unbalanced_quotes(env):
    with pytest.raises(ParseError, match="quotes"):
        split_av("echo 'a", env)


def test_split_trailing_operator(env):
    with pytest.raises(ParseError, match="Illegal shell command"):
        split_av("echo |", env)


def test_split_redirection_next_to_operator(env):
    with pytest.raises(ParseError, match="Token next to another >"):
        split_av("cat < > f", env)


def test_process_strips_quotes(env):
    assert process_av(['"a b"', "'c'"], env) == ["a b", "c"]


def test_process_empty_quotes(env):
    assert process_av(["''", '""'], env) == ["", ""]


def test_process_expands_unquoted(env):
    assert process_av(["$USER"], env) == ["alice"]


def test_process_unknown_variable(env):
    assert process_av(["$NOPE"], env) == [""]


def test_process_lone_dollar(env):
    assert process_av(["$", "a$"], env) == ["$", "a$"]


def test_process_status_variable(env):
    assert process_av(["$?"], env) == ["?=0"]


def test_process_no_input(env):
    assert process_av([], env) == []


def test_split_then_process(env):
    words = split_av("echo 'hello world' \"$USER\" x", env)
    assert process_av(words, env) == ["echo", "hello world", "alice", "x"]


def test_process_preserves_count(env):
    words = ["a", "'b'", "$HOME", "''"]
    assert len(process_av(words, env)) == len(words)