from .extraction import command_extract
from .lint import command_lint_docs, command_lint_makefile
from .verification import command_check

__all__ = [
    "command_check",
    "command_extract",
    "command_lint_docs",
    "command_lint_makefile",
]
