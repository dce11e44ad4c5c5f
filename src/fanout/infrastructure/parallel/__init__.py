"""Parallel execution infrastructure for work unit fan-out."""

from .worker_pool import (
    WorkerPool,
    PoolConfig,
    PoolResult,
    unit_executor,
)

__all__ = [
    "WorkerPool",
    "PoolConfig",
    "PoolResult",
    "unit_executor",
]
