from .core import *  # noqa: F401,F403
from .cli import build_parser, main
from .commands import (
    command_check,
    command_extract,
    command_lint_docs,
    command_lint_makefile,
)
