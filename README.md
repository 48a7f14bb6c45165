# minishellpy

The pieces of a small Unix-style shell, usable from Python: splitting a
command line into words and operators, expanding `$VARIABLES`, removing
quotes, setting up redirections and running commands alone or joined with
`|` into pipelines.

## Modules

- `minishellpy.env` – `Environment`, the shell's variables kept in fixed
  hash buckets. `Environment.from_environ()` builds one from a mapping, from
  `KEY=VALUE` strings, or from `os.environ` when given `None`; it seeds the
  special variable `?`. `to_envp()` returns `KEY=VALUE` strings.
- `minishellpy.tokenize` – `split_input()` splits a line into words and the
  operators `<`, `<<`, `>`, `>>` and `|`, keeping quoted spans inside their
  word. `check_all_quotes()` raises `UnclosedQuoteError` for a word with an
  open quote.
- `minishellpy.expand` – `process()` checks quotes, expands `$NAME` outside
  single quotes, removes quotes, drops words left empty and splits words
  where an expanded value held a space.
- `minishellpy.parser` – another splitter, `split_av()`, which keeps quotes,
  expands `$` inside double quotes and raises `ParseError` for unbalanced
  quotes or misplaced operators; `process_av()` then strips the quotes and
  expands unquoted references.
- `minishellpy.builtins` – `echo` (with `-n`), `cd`, `pwd`, `export`,
  `unset` and `env`, dispatched by `run_builtin()`, which returns -1 for any
  other name. `check_exit_args()` handles the arguments of `exit` and raises
  `ShellExit` with the status to leave with.
- `minishellpy.redirect` – `setup_redirections()` opens the targets of
  `<`, `>`, `>>` and reads here-documents for `<<`, returning a
  `Redirections` context manager; `remove_redirections()` drops the
  redirections from a command's words. Here-document lines come from a
  `read_line(prompt)` callable, by default `input()`.
- `minishellpy.executor` – `Executor.run()` checks the syntax of a list of
  words and runs it. Builtins run in-process; other programs are looked up
  with `get_path()` (the name itself, then each directory of `PATH`) and
  started as child processes. In a pipeline the last command gives the
  status, and builtins run on a copy of the environment so their changes do
  not last. The variable `?` is set to the status of external commands and
  pipelines.
- `minishellpy.linereader` – `LineReader` reads newline-terminated lines from
  a raw file descriptor; `get_next_line()` keeps one reader per descriptor.

## Example

```python
from minishellpy.env import Environment
from minishellpy.executor import Executor
from minishellpy.expand import process
from minishellpy.tokenize import split_input

env = Environment.from_environ(None)
executor = Executor(env)

words = process(split_input('echo "$HOME" | tr a-z A-Z > out.txt'), env)
status = executor.run(words)
```

## What it does not do

The package has no interactive prompt and installs no command: there is no
read–evaluate loop, no line history and no handling of Ctrl-C or Ctrl-D.
A caller that wants an interactive shell reads lines itself, passes them
through `split_input()` and `process()`, handles `exit` with
`check_exit_args()`, and hands the words to `Executor.run()`.

## Installation

```
pip install .
```

## Running the tests

```
pip install .[test]
pytest
```