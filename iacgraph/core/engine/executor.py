"""
Generation executor — run a plan one step at a time.

A plain fold over the steps with early exit: each step's process is
awaited before the next starts, and the first failed receipt ends the
run.  When every step succeeds the merged output file is read back
from the working directory.

Flow:
    plan → step 0 → step 1 → ... → read merged file → report
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from iacgraph.adapters.base import Adapter
from iacgraph.core.errors import ExecutionError, GenerationError, OutputMissing
from iacgraph.core.models.generation import GenerationPlan
from iacgraph.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    provider: str = ""
    planned: int = 0
    receipts: list[Receipt] = field(default_factory=list)
    config: str | None = None
    error: GenerationError | None = None

    @property
    def executed(self) -> int:
        return len(self.receipts)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed_step(self) -> int | None:
        if isinstance(self.error, ExecutionError):
            return self.error.step_index
        return None

    @property
    def status(self) -> str:
        return "ok" if self.error is None else "failed"

    def to_dict(self) -> dict:
        result: dict = {
            "provider": self.provider,
            "status": self.status,
            "planned": self.planned,
            "executed": self.executed,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


def execute_plan(
    plan: GenerationPlan,
    adapter: Adapter,
    merged_file: str = "generatedFile.tf",
) -> ExecutionReport:
    """Run every step of ``plan`` in order, stopping at the first failure.

    Args:
        plan: Steps produced by the planner.
        adapter: Runs each step and returns a receipt.
        merged_file: File every generator appends to, relative to the
            working directory.

    Returns:
        ExecutionReport. ``config`` holds the merged file on success;
        ``error`` is an ExecutionError or OutputMissing otherwise.
    """
    report = ExecutionReport(provider=plan.provider, planned=plan.total_steps)

    for step in plan.steps:
        receipt = adapter.execute(step)
        report.receipts.append(receipt)

        status_marker = "✓" if receipt.ok else "✗"
        logger.info(
            "%s [%d/%d] %s (%dms)",
            status_marker,
            step.index + 1,
            plan.total_steps,
            step.label,
            receipt.duration_ms,
        )

        if receipt.failed:
            report.error = ExecutionError(
                step.index,
                receipt.command or adapter.command_for(step),
                receipt.error or "unknown error",
            )
            logger.error("Generation stopped at step %d (%s): %s", step.index, step.label, receipt.error)
            return report

    merged = Path(plan.working_dir) / merged_file
    try:
        report.config = merged.read_text(encoding="utf-8")
    except FileNotFoundError:
        report.error = OutputMissing(str(merged))
        logger.error("Generators succeeded but %s is missing", merged)
    except OSError as e:
        report.error = GenerationError(f"Cannot read {merged}: {e}", path=str(merged))
        logger.error("Cannot read %s: %s", merged, e)

    return report
