"""Targets executed as shell commands."""

import asyncio
import os
import shlex
from string import Template
from typing import Dict, List, Optional

from ...domain.exceptions import UnitExecutionFailure
from ...domain.models.work_unit import ExecutionContext
from ...domain.services.invoker import Invokable
from ..config.config_models import TargetConfig
from ..logging import FanoutLogger


class CommandInvoker(Invokable):
    """
    Runs configured command templates in a subprocess per unit.

    `${name}` placeholders are filled from the unit's context properties
    (inherited properties overridden by the unit's bindings). Substituted
    values are shell-quoted; unknown placeholders are left untouched.
    A non-zero exit status fails the unit.
    """

    def __init__(self, targets: Dict[str, TargetConfig], stderr_tail_lines: int = 20):
        """
        Initialize the invoker.

        Args:
            targets: Target name -> command configuration
            stderr_tail_lines: Lines of stderr kept in failure messages
        """
        self.targets = targets
        self.stderr_tail_lines = stderr_tail_lines
        self.logger = FanoutLogger.get_instance()

    def has_target(self, target_name: str) -> bool:
        return target_name in self.targets

    def target_names(self) -> List[str]:
        return sorted(self.targets)

    def render_command(self, target: TargetConfig, context: ExecutionContext) -> str:
        """Fill the command template from the context properties."""
        quoted = {key: shlex.quote(value) for key, value in context.properties.items()}
        return Template(target.command).safe_substitute(quoted)

    async def invoke(
        self,
        target_name: str,
        bindings: Dict[str, str],
        context: ExecutionContext,
    ) -> None:
        target = self.targets.get(target_name)
        if target is None:
            raise UnitExecutionFailure(f"Unknown target '{target_name}'")

        command = self.render_command(target, context)
        env = {**os.environ, **target.env}

        self.logger.debug(f"Running: {command}", extra={"target": target_name})

        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=target.cwd,
            env=env,
        )
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            # Timed out or interrupted: do not leave the child running
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        output = stdout.decode(errors="replace").strip()
        if output:
            self.logger.debug(output, extra={"target": target_name})

        if process.returncode != 0:
            raise UnitExecutionFailure(
                self._failure_message(process.returncode, stderr)
            )

    def _failure_message(self, returncode: Optional[int], stderr: bytes) -> str:
        message = f"Command exited with status {returncode}"
        lines = stderr.decode(errors="replace").strip().splitlines()
        if lines:
            tail = "\n".join(lines[-self.stderr_tail_lines:])
            message += f": {tail}"
        return message
