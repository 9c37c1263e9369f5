"""
Shared fakes for the container engine and the secret stores.
"""
import threading

import pytest

from runlocal.errors import ContainerCancelledError, ContainerRuntimeError
from runlocal.MODELS.environment import Credentials
from runlocal.MODELS.run_config import RunIdentity


class FakeRuntime:
    """
    Records every call. The pause container and any name in `blocking`
    run until their context is cancelled; other containers exit at once,
    or raise the error registered for them in `run_errors`.
    """
    def __init__(self, blocking=(), run_errors=None, stop_errors=None, rm_errors=None,
                 running_check_error=None):
        self.blocking = set(blocking)
        self.run_errors = run_errors or {}
        self.stop_errors = stop_errors or {}
        self.rm_errors = rm_errors or {}
        self.running_check_error = running_check_error
        self.calls = []
        self.specs = {}
        self._lock = threading.Lock()
        self._started = set()
        self.apps_started = threading.Event()
        self.expected_apps = 0
        self._app_runs = 0

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    def names(self, op):
        with self._lock:
            return [c[1] for c in self.calls if c[0] == op]

    def run(self, ctx, spec):
        name = spec.container_name
        self._record("run", name)
        with self._lock:
            self.specs[name] = spec
            self._started.add(name)
            if spec.network:
                self._app_runs += 1
                if self._app_runs >= self.expected_apps:
                    self.apps_started.set()
        if name in self.run_errors:
            raise self.run_errors[name]
        if name.startswith("pause-") or name in self.blocking:
            ctx.wait()
            raise ContainerCancelledError(name)

    def is_running(self, name):
        self._record("is_running", name)
        if self.running_check_error:
            raise self.running_check_error
        with self._lock:
            return name in self._started

    def stop(self, name):
        self._record("stop", name)
        if name in self.stop_errors:
            raise self.stop_errors[name]

    def rm(self, name):
        self._record("rm", name)
        if name in self.rm_errors:
            raise self.rm_errors[name]


class CountingGetter:
    """
    Secret getter returning `value-of:<reference>` and counting calls per reference.
    """
    def __init__(self, errors=None):
        self.errors = errors or {}
        self.calls = {}
        self._lock = threading.Lock()

    def get_value(self, ctx, reference):
        with self._lock:
            self.calls[reference] = self.calls.get(reference, 0) + 1
        if reference in self.errors:
            raise self.errors[reference]
        return f"value-of:{reference}"

    @property
    def total_calls(self):
        return sum(self.calls.values())


@pytest.fixture
def identity():
    return RunIdentity(app="shop", env="test", workload="api")


@pytest.fixture
def credentials():
    return Credentials(access_key="AKID", secret_key="SECRET", session_token="TOKEN", region="us-west-2")


@pytest.fixture
def fake_runtime_cls():
    return FakeRuntime


@pytest.fixture
def counting_getter_cls():
    return CountingGetter


def not_found(name):
    return ContainerRuntimeError(name, f"docker rm: Error: No such container: {name}")


@pytest.fixture
def not_found_error():
    return not_found
