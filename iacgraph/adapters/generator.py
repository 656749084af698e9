"""
Generator adapter — run one generator program as an external process.

Generators are silent on success.  Anything on stderr is a failure even
when the exit code is zero; stdout is diagnostic and only logged.
Output is decoded as UTF-8 with undecodable bytes replaced.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from iacgraph.adapters.base import Adapter
from iacgraph.core.models.generation import GenerationStep
from iacgraph.core.models.receipt import Receipt
from iacgraph.core.observability.logging_config import GENERATOR_LOGGER

logger = logging.getLogger(__name__)
output_logger = logging.getLogger(GENERATOR_LOGGER)


class GeneratorAdapter(Adapter):
    """Launch generator programs with a fixed runner prefix.

    Args:
        runner: argv prefix, e.g. ``["bun", "run"]``. Empty means the
            program is executed directly.
        timeout: Seconds a single step may run before it is killed.
    """

    def __init__(self, runner: list[str] | None = None, timeout: float | None = 300.0):
        self._runner = list(runner or [])
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "generator"

    @property
    def runner(self) -> list[str]:
        return list(self._runner)

    def is_available(self) -> bool:
        if not self._runner:
            return True
        return shutil.which(self._runner[0]) is not None

    def command_for(self, step: GenerationStep) -> list[str]:
        return step.argv(self._runner)

    def execute(self, step: GenerationStep) -> Receipt:
        command = self.command_for(step)
        logger.debug("Step %d: %s", step.index, " ".join(command))
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                cwd=step.output_dir,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                step_index=step.index,
                command=command,
                error=f"Generator timed out after {self._timeout}s",
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        except OSError as e:
            # Runner or program could not be launched at all
            return Receipt.failure(
                adapter=self.name,
                step_index=step.index,
                command=command,
                error=f"Cannot launch generator: {e}",
            )
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                step_index=step.index,
                command=command,
                error=f"Generator execution error: {e}",
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = result.stdout.strip()
        stderr = result.stderr.strip()

        for line in stdout.splitlines():
            output_logger.info("[%s] %s", step.label, line)

        if result.returncode != 0:
            return Receipt.failure(
                adapter=self.name,
                step_index=step.index,
                command=command,
                error=stderr or f"Generator exited with code {result.returncode}",
                output=stdout,
                return_code=result.returncode,
                duration_ms=elapsed_ms,
            )

        if stderr:
            return Receipt.failure(
                adapter=self.name,
                step_index=step.index,
                command=command,
                error=stderr,
                output=stdout,
                return_code=result.returncode,
                duration_ms=elapsed_ms,
                metadata={"stderr_only": True},
            )

        return Receipt.success(
            adapter=self.name,
            step_index=step.index,
            command=command,
            output=stdout,
            return_code=result.returncode,
            duration_ms=elapsed_ms,
        )
