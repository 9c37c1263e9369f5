# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Cooperative cancellation and thread-backed task groups.

A `RunContext` is a cancellation token that can be chained to a parent:
cancelling the parent cancels every child. A `TaskGroup` runs callables on
threads bound to its own child context; the first failing task cancels that
context so its siblings can unwind, and `wait()` re-raises that first failure.
"""
import threading
from typing import Any, Callable, List, Optional


class RunContext:
    """
    A cancellation token shared by the tasks of one phase.
    """
    def __init__(self, parent: Optional["RunContext"] = None):
        """
        Initializes the context.

        :param parent: Context whose cancellation propagates to this one.
        """
        self._event = threading.Event()
        # Reentrant: cancel() may run from a signal handler on a thread holding it
        self._lock = threading.RLock()
        self._children: List["RunContext"] = []
        self._callbacks: List[Callable[[], None]] = []
        if parent is not None:
            parent._add_child(self)

    def _add_child(self, child: "RunContext"):
        with self._lock:
            if not self._event.is_set():
                self._children.append(child)
                return
        child.cancel()

    def cancel(self):
        """
        Cancels this context and every context derived from it.
        Safe to call more than once and from a signal handler.
        """
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            children, self._children = self._children, []
            callbacks, self._callbacks = self._callbacks, []
        for child in children:
            child.cancel()
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]):
        """
        Registers a callback run once when the context is cancelled.
        Runs immediately if the context is already cancelled.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Blocks until the context is cancelled or the timeout expires.

        :return: True if cancelled.
        """
        return self._event.wait(timeout)


class TaskGroup:
    """
    Runs tasks concurrently and cancels the siblings on the first failure.
    """
    def __init__(self, parent: Optional[RunContext] = None, name: str = "task"):
        """
        Initializes the group.

        :param parent: Context the group's own context derives from.
        :param name: Prefix for worker thread names.
        """
        self.context = RunContext(parent)
        self.name = name
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None

    def go(self, fn: Callable[..., Any], *args: Any):
        """
        Starts `fn(context, *args)` on a new thread.
        """
        thread = threading.Thread(
            target=self._run,
            args=(fn, args),
            name=f"{self.name}-{len(self._threads)}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    def _run(self, fn: Callable[..., Any], args: tuple):
        try:
            fn(self.context, *args)
        except BaseException as e:
            with self._lock:
                if self._error is None:
                    self._error = e
            self.context.cancel()

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error

    def wait(self, poll: float = 0.1):
        """
        Waits for every task, then cancels the group context and re-raises the
        first failure, if any.

        Joins with a timeout so the calling thread keeps handling signals.
        """
        for thread in self._threads:
            while thread.is_alive():
                thread.join(poll)
        self.context.cancel()
        error = self.error
        if error is not None:
            raise error
