"""Pytest configuration and fixtures for fanout tests."""

import asyncio
import tempfile
import shutil
from pathlib import Path
from typing import Callable, Dict, Generator, Iterable, List, Tuple
import pytest

from fanout.domain.exceptions import UnitExecutionFailure
from fanout.domain.models.work_unit import ExecutionContext
from fanout.domain.services.invoker import Invokable
from fanout.infrastructure.logging import FanoutLogger


class RecordingInvoker(Invokable):
    """
    Instrumented invoker: records every call and the peak number of
    invocations running at the same time.
    """

    def __init__(self, delay: float = 0.01, fail_values: Iterable[str] = ()):
        self.delay = delay
        self.fail_values = set(fail_values)
        self.calls: List[Tuple[str, Dict[str, str]]] = []
        self.contexts: List[ExecutionContext] = []
        self.running = 0
        self.max_running = 0

    async def invoke(self, target_name, bindings, context):
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        self.calls.append((target_name, dict(bindings)))
        self.contexts.append(context)
        try:
            await asyncio.sleep(self.delay)
            failing = self.fail_values.intersection(bindings.values())
            if failing:
                raise UnitExecutionFailure(f"boom: {sorted(failing)[0]}")
        finally:
            self.running -= 1

    @property
    def bound_values(self) -> List[str]:
        """Every bound value of every call, flattened."""
        return [value for _, bindings in self.calls for value in bindings.values()]


@pytest.fixture(autouse=True)
def reset_logger():
    """Detach handlers installed by earlier tests so caplog sees records."""
    FanoutLogger.get_instance().configure(level="DEBUG", console=False)
    yield
    FanoutLogger.get_instance().configure(level="DEBUG", console=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Provide a temporary directory for test files.

    Automatically cleaned up after the test completes.
    """
    temp_path = Path(tempfile.mkdtemp(prefix="fanout_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path)


@pytest.fixture
def make_invoker() -> Callable[..., RecordingInvoker]:
    """Factory for RecordingInvoker instances."""
    return RecordingInvoker


@pytest.fixture
def sample_tree(temp_dir: Path) -> Path:
    """
    A small directory tree:

        project/
            README.md
            src/app.py
            src/util.py
            src/__pycache__/app.cpython-311.pyc
            docs/guide.txt
            .git/HEAD
    """
    root = temp_dir / "project"
    (root / "src" / "__pycache__").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / ".git").mkdir()
    (root / "README.md").write_text("# project\n")
    (root / "src" / "app.py").write_text("print('app')\n")
    (root / "src" / "util.py").write_text("print('util')\n")
    (root / "src" / "__pycache__" / "app.cpython-311.pyc").write_bytes(b"\x00")
    (root / "docs" / "guide.txt").write_text("guide\n")
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    return root
