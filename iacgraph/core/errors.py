"""
Error taxonomy for generation and artifact operations.

Every failure the service can report has its own class, a stable
``kind`` string for JSON responses, and the HTTP status the web layer
maps it to.  Callers can tell a bad request apart from a crashed
generator apart from "nothing to delete" without parsing messages.
"""

from __future__ import annotations

from typing import Any


class GenerationError(Exception):
    """Base class for every reported generation/artifact failure."""

    kind = "generation_error"
    http_status = 500

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"error": self.message, "kind": self.kind}
        if self.detail:
            result["detail"] = self.detail
        return result


# ── Planning ────────────────────────────────────────────────────


class PlanningError(GenerationError):
    """The request cannot be turned into a plan. Raised before any process starts."""

    kind = "planning_error"
    http_status = 400


class UnknownProvider(PlanningError):
    kind = "unknown_provider"

    def __init__(self, provider: str) -> None:
        super().__init__(f"No generator found for provider '{provider}'", provider=provider)
        self.provider = provider


class UnknownModule(PlanningError):
    kind = "unknown_module"

    def __init__(self, provider: str, module: str) -> None:
        super().__init__(
            f"No generator found for module '{module}' (provider '{provider}')",
            provider=provider,
            module=module,
        )
        self.provider = provider
        self.module = module


# ── Execution ───────────────────────────────────────────────────


class ExecutionError(GenerationError):
    """A generator step failed: non-zero exit, stderr output, or timeout."""

    kind = "generator_failed"
    http_status = 502

    def __init__(self, step_index: int, command: list[str], reason: str) -> None:
        super().__init__(
            f"Step {step_index} failed: {reason}",
            step_index=step_index,
            command=command,
        )
        self.step_index = step_index
        self.command = command
        self.reason = reason


class OutputMissing(GenerationError):
    """All steps succeeded but the merged output file was never written."""

    kind = "output_missing"

    def __init__(self, path: str) -> None:
        super().__init__(f"Generators finished but {path} was not written", path=path)
        self.path = path


# ── Watcher ─────────────────────────────────────────────────────


class WatcherError(GenerationError):
    kind = "watcher_error"
    http_status = 503


# ── Artifacts ───────────────────────────────────────────────────


class ArtifactIOError(GenerationError):
    kind = "io_error"


class ArtifactNotFound(GenerationError):
    kind = "not_found"
    http_status = 404
