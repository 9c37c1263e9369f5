"""
Labeled, colored output for several containers sharing one terminal.
"""
import itertools
import threading
import click
from typing import Optional

from ..MODELS.run_specification import RunLogOptions

COLORS = ["cyan", "magenta", "yellow", "blue", "green", "bright_cyan", "bright_magenta", "bright_yellow"]


class LogAggregator:
    """
    Prints container output lines prefixed with their container label.
    """
    def __init__(self, color: bool = True):
        """
        :param color: Whether prefixes are colored.
        """
        self.color = color
        self._lock = threading.Lock()
        self._colors = itertools.cycle(COLORS)

    def log_options(self, label: str) -> RunLogOptions:
        """
        Returns log options for a new container, taking the next palette color.
        """
        with self._lock:
            color = next(self._colors) if self.color else None
        return RunLogOptions(line_prefix=f"[{label}] ", color=color)

    def print_line(self, options: RunLogOptions, line: str, err: Optional[bool] = False):
        prefix = options.line_prefix
        if options.color:
            prefix = click.style(prefix, fg=options.color)
        # One writer at a time so lines from different containers never interleave
        with self._lock:
            click.echo(f"{prefix}{line}", err=err)

    __call__ = print_line
