"""Shell building blocks: tokenizing, expansion, redirections, built-ins and command execution."""

__version__ = "0.1.0"
__all__ = [
    "builtins",
    "env",
    "executor",
    "expand",
    "linereader",
    "parser",
    "redirect",
    "tokenize",
]