import threading

import pytest

from runlocal.RUNNERS.task_group import RunContext, TaskGroup


class TestRunContext:
    """Tests for RunContext."""

    def test_cancel_propagates_to_children(self):
        parent = RunContext()
        child = RunContext(parent)
        grandchild = RunContext(child)
        parent.cancel()
        assert child.cancelled()
        assert grandchild.cancelled()

    def test_child_cancel_does_not_touch_parent(self):
        parent = RunContext()
        child = RunContext(parent)
        child.cancel()
        assert not parent.cancelled()

    def test_child_of_cancelled_parent_starts_cancelled(self):
        parent = RunContext()
        parent.cancel()
        assert RunContext(parent).cancelled()

    def test_on_cancel_runs_once(self):
        ctx = RunContext()
        calls = []
        ctx.on_cancel(lambda: calls.append(1))
        ctx.cancel()
        ctx.cancel()
        assert calls == [1]
        ctx.on_cancel(lambda: calls.append(2))
        assert calls == [1, 2]


class TestTaskGroup:
    """Tests for TaskGroup."""

    def test_all_tasks_succeed(self):
        results = []
        lock = threading.Lock()

        def task(ctx, n):
            with lock:
                results.append(n)

        group = TaskGroup()
        for n in range(5):
            group.go(task, n)
        group.wait()
        assert sorted(results) == [0, 1, 2, 3, 4]
        assert group.context.cancelled()

    def test_first_error_cancels_siblings_and_is_raised(self):
        sibling_cancelled = threading.Event()

        def waits(ctx):
            if ctx.wait(5):
                sibling_cancelled.set()

        def fails(ctx):
            raise ValueError("first")

        group = TaskGroup()
        group.go(waits)
        group.go(fails)
        with pytest.raises(ValueError, match="first"):
            group.wait()
        assert sibling_cancelled.is_set()

    def test_only_first_error_is_kept(self):
        first_failed = threading.Event()

        def fails_first(ctx):
            first_failed.set()
            raise ValueError("first")

        def fails_later(ctx):
            ctx.wait(5)
            raise RuntimeError("second")

        group = TaskGroup()
        group.go(fails_later)
        group.go(fails_first)
        with pytest.raises(ValueError):
            group.wait()

    def test_parent_cancellation_reaches_tasks(self):
        parent = RunContext()
        started = threading.Event()

        def waits(ctx):
            started.set()
            assert ctx.wait(5)

        group = TaskGroup(parent)
        group.go(waits)
        started.wait(5)
        parent.cancel()
        group.wait()
