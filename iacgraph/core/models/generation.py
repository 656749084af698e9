"""
Generation models — what the editor asks for and what the planner produces.

A GenerationRequest names a provider and an ordered list of modules.
The planner expands it into GenerationSteps, one external invocation
each.  Module order is preserved end to end: later generators append to
the same merged file and may reference resources emitted earlier.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ModuleSpec(BaseModel):
    """One module the user placed on the canvas."""

    name: str
    args: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("module name must not be empty")
        return v

    @field_validator("args", mode="before")
    @classmethod
    def _args_as_strings(cls, v: object) -> object:
        # The editor sends numbers and booleans as-is
        if v is None:
            return []
        if isinstance(v, list):
            return [str(a) for a in v]
        return v


class GenerationRequest(BaseModel):
    """A single "generate" action from the editor.

    The module list is accepted under ``modules`` or the older
    ``module`` key that existing clients still send.
    """

    model_config = ConfigDict(populate_by_name=True)

    provider: str
    modules: list[ModuleSpec] = Field(
        default_factory=list,
        validation_alias=AliasChoices("modules", "module"),
    )

    @field_validator("provider")
    @classmethod
    def _provider_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("provider must not be empty")
        return v

    @field_validator("modules", mode="before")
    @classmethod
    def _modules_default(cls, v: object) -> object:
        return [] if v is None else v


class GenerationStep(BaseModel):
    """One external generator invocation. Immutable once planned."""

    model_config = ConfigDict(frozen=True)

    index: int
    label: str                      # "provider:aws" or "module:VPC"
    program: Path
    arguments: tuple[str, ...] = ()
    output_dir: Path

    def argv(self, runner: list[str] | tuple[str, ...] = ()) -> list[str]:
        """Full command line: runner prefix, program, arguments, output flag."""
        return [
            *runner,
            str(self.program),
            *self.arguments,
            "-o",
            str(self.output_dir),
        ]


class GenerationPlan(BaseModel):
    """Ordered steps for one request: the provider first, then each module."""

    provider: str
    working_dir: Path
    steps: list[GenerationStep] = Field(default_factory=list)

    @property
    def total_steps(self) -> int:
        return len(self.steps)
