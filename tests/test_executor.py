import io
import os

import pytest

from minishellpy.env import Environment
from minishellpy.executor import Executor, get_path, split_pipeline, syntax_ok


def _script(directory, name, body):
    path = directory / name
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def bin_dir(tmp_path):
    directory = tmp_path / "bin"
    directory.mkdir()
    _script(directory, "writer", "echo from writer")
    _script(directory, "reader", 'read line\necho "got $line"')
    _script(directory, "fail", "exit 3")
    _script(directory, "greet", 'echo "external $1"')
    return directory


@pytest.fixture
def executor(bin_dir):
    env = Environment.from_environ({"PATH": str(bin_dir)})
    return Executor(env, io.StringIO(), io.StringIO())


def test_get_path_uses_name_when_executable(bin_dir):
    target = str(bin_dir / "writer")
    assert get_path(Environment(), target) == target


def test_get_path_searches_path(bin_dir):
    env = Environment.from_environ({"PATH": f"::{bin_dir}"})
    assert get_path(env, "writer") == f"{bin_dir}/writer"


def test_get_path_without_path_variable():
    assert get_path(Environment(), "surely-not-a-command") is None


def test_syntax_ok_rejects_double_pipe():
    out = io.StringIO()
    assert syntax_ok(["ls", "|", "|", "wc"], out) is False
    assert out.getvalue() == "minishell: syntax error near unexpected token |\n"


def test_syntax_ok_rejects_adjacent_redirections():
    out = io.StringIO()
    assert syntax_ok(["<", ">", "f"], out) is False
    assert out.getvalue().endswith("token >\n")


def test_syntax_ok_accepts_plain_redirection():
    out = io.StringIO()
    assert syntax_ok(["ls", ">", "f", "|", "wc"], out) is True
    assert out.getvalue() == ""


def test_split_pipeline():
    assert split_pipeline(["a", "b", "|", "c"]) == [["a", "b"], ["c"]]


def test_builtin_echo(executor):
    assert executor.run(["echo", "hi"]) == 0
    assert executor.stdout.getvalue() == "hi\n"


def test_builtin_output_redirection(executor, tmp_path):
    target = tmp_path / "out.txt"
    assert executor.run(["echo", "hi", ">", str(target)]) == 0
    assert target.read_text() == "hi\n"
    assert executor.stdout.getvalue() == ""


def test_export_persists_in_simple_command(executor):
    executor.run(["export", "A=1"])
    assert executor.env.lookup("A") == "1"


def test_external_command(executor):
    assert executor.run(["greet", "x"]) == 0
    assert executor.stdout.getvalue() == "external x\n"
    assert executor.env.lookup("?") == "0"


def test_external_exit_status(executor):
    assert executor.run(["fail"]) == 3
    assert executor.env.lookup("?") == "3"


def test_command_not_found(executor):
    assert executor.run(["surely-not-a-command"]) == 127
    assert "command not found" in executor.stderr.getvalue()


def test_input_redirection(executor, tmp_path):
    source = tmp_path / "in.txt"
    source.write_text("data\n")
    executor.run(["reader", "<", str(source)])
    assert executor.stdout.getvalue() == "got data\n"


def test_missing_input_file(executor, tmp_path):
    missing = str(tmp_path / "missing")
    assert executor.run(["reader", "<", missing]) == 1
    assert "no such file or directory" in executor.stderr.getvalue()


def test_pipeline_of_programs(executor):
    assert executor.run(["writer", "|", "reader"]) == 0
    assert executor.stdout.getvalue() == "got from writer\n"


def test_pipeline_from_builtin(executor):
    executor.run(["echo", "hello", "|", "reader"])
    assert executor.stdout.getvalue() == "got hello\n"


def test_pipeline_status_is_last(executor):
    assert executor.run(["writer", "|", "fail"]) == 3
    assert executor.env.lookup("?") == "3"


def test_builtin_in_pipeline_does_not_persist(executor, tmp_path):
    before = os.getcwd()
    executor.run(["export", "B=2", "|", "cd", str(tmp_path)])
    assert executor.env.lookup("B") is None
    assert os.getcwd() == before


def test_run_reports_syntax_error(executor):
    assert executor.run([">", ">"]) == 2