"""Tests for the worker pool."""

import asyncio
import threading
import time

import pytest

from fanout.domain.exceptions import ConfigurationError
from fanout.domain.models.work_unit import ExecutionContext, WorkUnit
from fanout.infrastructure.invokers import TargetRegistry
from fanout.infrastructure.parallel import PoolConfig, WorkerPool


def _units(values, target="work", param="item"):
    return [WorkUnit(target, param, value) for value in values]


class _SlowInvoker:
    """Invoker that never finishes within the timeout."""

    def has_target(self, target_name):
        return True

    async def invoke(self, target_name, bindings, context):
        if bindings["item"] == "slow":
            await asyncio.sleep(5)


class _OverlapCounter:
    """Counts how many worker threads are inside the block at once."""

    def __init__(self):
        self._lock = threading.Lock()
        self.running = 0
        self.peak = 0

    def __enter__(self):
        with self._lock:
            self.running += 1
            self.peak = max(self.peak, self.running)

    def __exit__(self, *exc_info):
        with self._lock:
            self.running -= 1


class TestPoolConfig:
    """Pool configuration validation."""

    def test_defaults(self):
        config = PoolConfig()
        assert config.max_concurrency == 2
        assert config.unit_timeout is None

    @pytest.mark.parametrize("bad", [0, -1])
    def test_rejects_non_positive_concurrency(self, bad):
        with pytest.raises(ConfigurationError, match="positive integer"):
            PoolConfig(max_concurrency=bad)

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ConfigurationError):
            PoolConfig(unit_timeout=0)


class TestWorkerPool:
    """Bounded parallel execution."""

    async def test_runs_every_unit_exactly_once(self, make_invoker):
        invoker = make_invoker()
        pool = WorkerPool(PoolConfig(max_concurrency=3), invoker)
        values = [f"v{i}" for i in range(10)]
        for unit in _units(values):
            pool.submit(unit)

        result = await pool.run_to_completion()

        assert sorted(invoker.bound_values) == sorted(values)
        assert len(result.outcomes) == 10
        assert not result.failed

    async def test_concurrency_never_exceeds_limit(self, make_invoker):
        invoker = make_invoker(delay=0.05)
        pool = WorkerPool(PoolConfig(max_concurrency=2), invoker)
        for unit in _units([str(i) for i in range(6)]):
            pool.submit(unit)

        result = await pool.run_to_completion()

        assert invoker.max_running == 2
        assert result.peak_concurrency == 2

    async def test_fewer_units_than_slots(self, make_invoker):
        invoker = make_invoker(delay=0.02)
        pool = WorkerPool(PoolConfig(max_concurrency=8), invoker)
        for unit in _units(["a", "b"]):
            pool.submit(unit)

        result = await pool.run_to_completion()

        assert result.peak_concurrency <= 2
        assert len(result.outcomes) == 2

    async def test_sequential_with_single_slot(self, make_invoker):
        invoker = make_invoker()
        pool = WorkerPool(PoolConfig(max_concurrency=1), invoker)
        for unit in _units(["a", "b", "c"]):
            pool.submit(unit)

        await pool.run_to_completion()

        assert invoker.max_running == 1
        assert invoker.bound_values == ["a", "b", "c"]

    async def test_empty_pool_completes(self, make_invoker):
        pool = WorkerPool(PoolConfig(), make_invoker())
        result = await pool.run_to_completion()
        assert result.outcomes == []
        assert result.peak_concurrency == 0

    async def test_failure_does_not_cancel_siblings(self, make_invoker):
        invoker = make_invoker(fail_values={"b"})
        pool = WorkerPool(PoolConfig(max_concurrency=2), invoker)
        for unit in _units(["a", "b", "c", "d"]):
            pool.submit(unit)

        result = await pool.run_to_completion()

        assert len(invoker.calls) == 4
        assert result.failed
        assert [o.unit.parameter_value for o in result.failures] == ["b"]
        assert result.failures[0].error == "boom: b"

    async def test_each_unit_gets_own_context(self, make_invoker):
        invoker = make_invoker()
        parent = ExecutionContext(properties={"env": "prod"})
        pool = WorkerPool(PoolConfig(max_concurrency=2), invoker, context=parent)
        for unit in _units(["a", "b"]):
            pool.submit(unit)

        await pool.run_to_completion()

        first, second = invoker.contexts
        assert first is not second
        assert {first.properties["item"], second.properties["item"]} == {"a", "b"}
        assert first.properties["env"] == "prod"
        assert "item" not in parent.properties

    async def test_timeout_fails_only_slow_unit(self):
        pool = WorkerPool(PoolConfig(max_concurrency=2, unit_timeout=0.05), _SlowInvoker())
        for unit in _units(["fast", "slow"]):
            pool.submit(unit)

        result = await pool.run_to_completion()

        assert len(result.failures) == 1
        assert result.failures[0].unit.parameter_value == "slow"
        assert "timed out" in result.failures[0].error

    async def test_callbacks_receive_every_unit(self, make_invoker):
        started, completed = [], []
        pool = WorkerPool(PoolConfig(max_concurrency=2), make_invoker(fail_values={"c"}))
        pool.set_callbacks(on_unit_start=started.append, on_unit_complete=completed.append)
        for unit in _units(["a", "b", "c"]):
            pool.submit(unit)

        await pool.run_to_completion()

        assert sorted(u.parameter_value for u in started) == ["a", "b", "c"]
        assert sorted(o.unit.parameter_value for o in completed) == ["a", "b", "c"]

    async def test_failing_callback_is_ignored(self, make_invoker):
        def explode(_):
            raise RuntimeError("callback bug")

        pool = WorkerPool(PoolConfig(), make_invoker())
        pool.set_callbacks(on_unit_complete=explode)
        pool.submit(WorkUnit("work", "item", "a"))

        result = await pool.run_to_completion()

        assert not result.failed

    async def test_submit_while_running(self, make_invoker):
        invoker = make_invoker(delay=0.02)
        pool = WorkerPool(PoolConfig(max_concurrency=2), invoker)
        extra = iter(_units(["late1", "late2"]))

        def add_more(outcome):
            unit = next(extra, None)
            if unit is not None:
                pool.submit(unit)

        pool.set_callbacks(on_unit_complete=add_more)
        pool.submit(WorkUnit("work", "item", "first"))

        result = await pool.run_to_completion()

        assert sorted(invoker.bound_values) == ["first", "late1", "late2"]
        assert len(result.outcomes) == 3
        assert pool.pending == 0
        assert pool.active == 0

    async def test_stats(self, make_invoker):
        pool = WorkerPool(PoolConfig(), make_invoker(fail_values={"x"}))
        for unit in _units(["x", "y"]):
            pool.submit(unit)

        await pool.run_to_completion()
        stats = pool.get_stats()

        assert stats["units_submitted"] == 2
        assert stats["units_succeeded"] == 1
        assert stats["units_failed"] == 1


class TestSyncTargets:
    """Plain-function targets run on the pool's own worker threads."""

    async def test_overlap_reaches_max_concurrency(self):
        width = 40
        barrier = threading.Barrier(width, timeout=5)
        registry = TargetRegistry()

        @registry.target("meet")
        def meet(bindings, context):
            barrier.wait()

        pool = WorkerPool(PoolConfig(max_concurrency=width), registry)
        for unit in _units([str(i) for i in range(width)], target="meet"):
            pool.submit(unit)

        result = await pool.run_to_completion()

        assert not result.failed, result.failures[:1]
        assert result.peak_concurrency == width

    async def test_concurrency_bound_holds(self):
        counter = _OverlapCounter()
        registry = TargetRegistry()

        @registry.target("work")
        def work(bindings, context):
            with counter:
                time.sleep(0.02)

        pool = WorkerPool(PoolConfig(max_concurrency=3), registry)
        for unit in _units([str(i) for i in range(12)]):
            pool.submit(unit)

        result = await pool.run_to_completion()

        assert len(result.outcomes) == 12
        assert counter.peak <= 3

    @pytest.mark.parametrize("limit,count", [(1, 3), (2, 4)])
    async def test_timed_out_target_keeps_its_slot(self, limit, count):
        counter = _OverlapCounter()
        registry = TargetRegistry()

        @registry.target("work")
        def slow(bindings, context):
            with counter:
                time.sleep(0.2)

        pool = WorkerPool(PoolConfig(max_concurrency=limit, unit_timeout=0.05), registry)
        for unit in _units([str(i) for i in range(count)]):
            pool.submit(unit)

        result = await pool.run_to_completion()

        assert counter.peak <= limit
        assert len(result.failures) == count
        assert all("timed out" in o.error for o in result.failures)
