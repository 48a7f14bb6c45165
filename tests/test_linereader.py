import os

import pytest

from minishellpy.linereader import LineReader, get_next_line


@pytest.fixture
def make_pipe():
    opened = []

    def _make(data: bytes) -> int:
        read_fd, write_fd = os.pipe()
        os.write(write_fd, data)
        os.close(write_fd)
        opened.append(read_fd)
        return read_fd

    yield _make
    for fd in opened:
        try:
            os.close(fd)
        except OSError:
            pass


def test_lines_keep_newline_and_last_line_without(make_pipe):
    fd = make_pipe(b"first\nsecond\nlast")
    reader = LineReader(fd)
    assert reader.read_line() == "first\n"
    assert reader.read_line() == "second\n"
    assert reader.read_line() == "last"
    assert reader.read_line() is None


def test_empty_input_gives_none(make_pipe):
    reader = LineReader(make_pipe(b""))
    assert reader.read_line() is None


@pytest.mark.parametrize("size", [1, 2, 3, 42, 1000])
def test_buffer_size_does_not_change_result(make_pipe, size):
    data = b"alpha\nbeta\n\ngamma delta\n"
    reader = LineReader(make_pipe(data), size)
    lines = list(reader)
    assert "".join(lines).encode() == data
    assert all(line.endswith("\n") for line in lines)
    assert len(lines) == data.count(b"\n")


def test_long_line_over_buffer(make_pipe):
    text = "x" * 500 + "\n"
    reader = LineReader(make_pipe(text.encode()))
    assert reader.read_line() == text
    assert reader.read_line() is None


def test_invalid_buffer_size():
    with pytest.raises(ValueError):
        LineReader(0, 0)


def test_negative_fd_returns_none():
    assert LineReader(-1).read_line() is None
    assert get_next_line(-1) is None


def test_closed_fd_returns_none():
    read_fd, write_fd = os.pipe()
    os.close(read_fd)
    os.close(write_fd)
    assert LineReader(read_fd).read_line() is None


def test_get_next_line_keeps_state_per_fd(make_pipe):
    fd_a = make_pipe(b"a1\na2\n")
    fd_b = make_pipe(b"b1\n")
    assert get_next_line(fd_a) == "a1\n"
    assert get_next_line(fd_b) == "b1\n"
    assert get_next_line(fd_a) == "a2\n"
    assert get_next_line(fd_b) is None
    assert get_next_line(fd_a) is None


def test_get_next_line_from_file(tmp_path):
    path = tmp_path / "input.txt"
    path.write_bytes(b"one\ntwo")
    fd = os.open(path, os.O_RDONLY)
    try:
        assert get_next_line(fd) == "one\n"
        assert get_next_line(fd) == "two"
        assert get_next_line(fd) is None
    finally:
        os.close(fd)