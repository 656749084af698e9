"""
Mock adapter — stand-in for real generators.

Used by ``serve --mock`` and by tests.  Records every step it receives
and, by default, writes a marker line per step into the merged file
so the rest of the pipeline has something to read back.
"""

from __future__ import annotations

from pathlib import Path

from iacgraph.adapters.base import Adapter
from iacgraph.core.models.generation import GenerationStep
from iacgraph.core.models.receipt import Receipt


class MockAdapter(Adapter):
    """Configurable fake generator.

    Args:
        merged_file: File name to append markers to inside the step's
            output directory. None disables writing.
    """

    def __init__(self, merged_file: str | None = "generatedFile.tf", available: bool = True):
        self._merged_file = merged_file
        self._available = available
        self._failures: dict[int, str] = {}
        self._call_log: list[GenerationStep] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[GenerationStep]:
        """All steps this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_failure(self, step_index: int, error: str = "Mock failure") -> None:
        """Make the step at ``step_index`` fail."""
        self._failures[step_index] = error

    def command_for(self, step: GenerationStep) -> list[str]:
        return step.argv()

    def execute(self, step: GenerationStep) -> Receipt:
        self._call_log.append(step)
        command = self.command_for(step)

        if step.index in self._failures:
            return Receipt.failure(
                adapter=self.name,
                step_index=step.index,
                command=command,
                error=self._failures[step.index],
            )

        if self._merged_file:
            target = Path(step.output_dir) / self._merged_file
            # The provider step starts the file, like a real provider generator
            mode = "w" if step.index == 0 else "a"
            with open(target, mode, encoding="utf-8") as f:
                f.write(f"# {step.label} {' '.join(step.arguments)}".rstrip() + "\n")

        return Receipt.success(
            adapter=self.name,
            step_index=step.index,
            command=command,
            output="[mock] executed",
            metadata={"mock": True},
        )
