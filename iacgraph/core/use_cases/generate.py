"""
Generate use case — from request to merged Terraform.

Gets the working directory from the watcher, plans, executes, and lets
the watcher mirror the new artifacts into the output directory.
Background mirroring is paused during a run, and a failed run's files
are discarded rather than mirrored.  One run at a time per process:
generators share the working directory and the merged file, so
overlapping runs would interleave their output.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from iacgraph.adapters.base import Adapter
from iacgraph.core.engine.executor import ExecutionReport, execute_plan
from iacgraph.core.engine.planner import GeneratorCatalog, plan_generation
from iacgraph.core.errors import GenerationError
from iacgraph.core.models.generation import GenerationRequest
from iacgraph.core.models.settings import Settings
from iacgraph.core.services.watch_service import DirectoryWatcher

logger = logging.getLogger(__name__)

_run_lock = threading.Lock()


@dataclass
class GenerateResult:
    """Result of one generation request."""

    request: GenerationRequest | None = None
    working_dir: Path | None = None
    report: ExecutionReport | None = None
    synced: list[str] | None = None
    error: GenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def config(self) -> str | None:
        return self.report.config if self.report else None

    def to_dict(self) -> dict:
        if self.error is not None:
            result = self.error.to_dict()
            if self.report is not None:
                result["report"] = self.report.to_dict()
            return result

        return {
            "message": "File generation completed successfully",
            "config": self.config,
            "working_dir": str(self.working_dir),
            "artifacts": self.synced or [],
            "report": self.report.to_dict() if self.report else None,
        }


def run_generation(
    request: GenerationRequest,
    settings: Settings,
    watcher: DirectoryWatcher,
    adapter: Adapter,
    catalog: GeneratorCatalog | None = None,
) -> GenerateResult:
    """Generate Terraform for ``request``.

    Args:
        request: Provider plus ordered modules.
        settings: Generator locations, merged file name, timeouts.
        watcher: Owner of the working directory.
        adapter: Runs each generator step.
        catalog: Generator lookup; built from ``settings`` when omitted.

    Returns:
        GenerateResult; ``error`` is set for every failure (watcher,
        planning, generator, missing output).
    """
    result = GenerateResult(request=request)

    with _run_lock:
        try:
            result.working_dir = watcher.start(timeout=settings.start_timeout)
            plan = plan_generation(
                request,
                result.working_dir,
                catalog or GeneratorCatalog.from_settings(settings),
            )
        except GenerationError as e:
            logger.warning("Generation rejected: %s", e)
            result.error = e
            return result

        logger.info(
            "Generating %s with %d module(s) in %s",
            request.provider, len(request.modules), result.working_dir,
        )
        with watcher.paused():
            result.report = execute_plan(plan, adapter, merged_file=settings.merged_file)
            result.error = result.report.error

            if result.ok:
                result.synced = watcher.sync()
            else:
                # Partial output from a failed run never reaches output_dir
                watcher.sync(discard=True)

    return result
