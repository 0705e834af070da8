"""Suite runner exports."""
from .base import SuiteRunner
from .command import CommandSuiteRunner, render_command

__all__ = [
    "CommandSuiteRunner",
    "SuiteRunner",
    "render_command",
]
