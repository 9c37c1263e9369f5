"""
Turns operator interrupts (SIGINT/SIGTERM) into cancellation of a run context.
"""
import signal
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple

import click

from ..RUNNERS.task_group import RunContext

WATCHED_SIGNALS: Tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class CancellationWatcher:
    """
    Listens for interrupt signals while a run is in progress.

    On the first signal it records that the cancellation was operator
    initiated, restores the previous handlers so a second interrupt is not
    intercepted, prints a notice and cancels the watched context. Cleanup is
    left to whoever owns the context.
    """
    def __init__(self,
                 signals: Tuple[signal.Signals, ...] = WATCHED_SIGNALS,
                 notice: str = "\nStopping containers...\n"):
        self.signals = signals
        self.notice = notice
        self._interrupted = threading.Event()
        self._originals: Dict[signal.Signals, object] = {}
        self._ctx: Optional[RunContext] = None
        self._lock = threading.RLock()

    @property
    def interrupted(self) -> bool:
        """True once an operator interrupt has been received."""
        return self._interrupted.is_set()

    @contextmanager
    def watch(self, ctx: RunContext) -> Iterator["CancellationWatcher"]:
        """
        Installs the signal handlers for the duration of the block. Each
        block starts with the interrupted flag cleared.

        Signal handlers can only be installed from the main thread; elsewhere
        the watcher stays passive and `interrupt()` is the only trigger.
        """
        self._interrupted.clear()
        self._ctx = ctx
        if threading.current_thread() is threading.main_thread():
            for sig in self.signals:
                self._originals[sig] = signal.signal(sig, self._handle)
        try:
            yield self
        finally:
            self._restore()
            self._ctx = None

    def _handle(self, signum, frame):
        self.interrupt()

    def interrupt(self):
        """
        Reacts to an operator interrupt. Only the first call has an effect.
        """
        with self._lock:
            if self._interrupted.is_set():
                return
            self._interrupted.set()
            self._restore()
        click.echo(self.notice)
        if self._ctx is not None:
            self._ctx.cancel()

    def _restore(self):
        # signal.signal only works on the main thread; watch() restores on exit otherwise
        if threading.current_thread() is not threading.main_thread():
            return
        with self._lock:
            originals, self._originals = self._originals, {}
        for sig, handler in originals.items():
            signal.signal(sig, handler)
