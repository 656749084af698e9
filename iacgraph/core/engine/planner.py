"""
Generation planner — request in, ordered steps out.

Step 0 is always the provider generator; steps 1..N are the module
generators in exactly the order the request lists them.  Every program
is resolved up front, so an unknown module fails the whole request
before a single process starts.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from iacgraph.core.errors import UnknownModule, UnknownProvider
from iacgraph.core.models.generation import GenerationPlan, GenerationRequest, GenerationStep
from iacgraph.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Names become path segments; anything else is rejected outright
_SAFE_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


class GeneratorCatalog:
    """Map (provider, module) names to generator program paths.

    Paths come from two templates relative to ``root``:
    ``provider_template`` may use ``{provider}``; ``module_template``
    may use ``{provider}`` and ``{name}``.  With ``must_exist=False``
    (mock mode) the paths are returned without checking the disk.
    """

    def __init__(
        self,
        root: Path,
        provider_template: str,
        module_template: str,
        must_exist: bool = True,
    ):
        self.root = Path(root)
        self.provider_template = provider_template
        self.module_template = module_template
        self.must_exist = must_exist

    @classmethod
    def from_settings(cls, settings: Settings, must_exist: bool = True) -> GeneratorCatalog:
        return cls(
            settings.generators_dir,
            settings.provider_generator,
            settings.module_generator,
            must_exist=must_exist,
        )

    def provider_program(self, provider: str) -> Path | None:
        if not _SAFE_NAME.match(provider):
            return None
        return self._existing(self.root / self.provider_template.format(provider=provider))

    def module_program(self, provider: str, name: str) -> Path | None:
        if not (_SAFE_NAME.match(provider) and _SAFE_NAME.match(name)):
            return None
        return self._existing(
            self.root / self.module_template.format(provider=provider, name=name)
        )

    def _existing(self, path: Path) -> Path | None:
        if self.must_exist and not path.is_file():
            return None
        return path


def plan_generation(
    request: GenerationRequest,
    working_dir: Path,
    catalog: GeneratorCatalog,
) -> GenerationPlan:
    """Expand a request into its ordered generation steps.

    Args:
        request: Provider and ordered modules.
        working_dir: Directory every step writes into.
        catalog: Resolves generator program paths.

    Returns:
        GenerationPlan with ``len(request.modules) + 1`` steps.

    Raises:
        UnknownProvider: No provider generator exists.
        UnknownModule: Some module has no generator for this provider.
    """
    provider = request.provider

    provider_program = catalog.provider_program(provider)
    if provider_program is None:
        raise UnknownProvider(provider)

    steps = [
        GenerationStep(
            index=0,
            label=f"provider:{provider}",
            program=provider_program,
            arguments=("-p", provider),
            output_dir=working_dir,
        )
    ]

    for i, module in enumerate(request.modules, start=1):
        program = catalog.module_program(provider, module.name)
        if program is None:
            raise UnknownModule(provider, module.name)
        steps.append(
            GenerationStep(
                index=i,
                label=f"module:{module.name}",
                program=program,
                arguments=tuple(module.args),
                output_dir=working_dir,
            )
        )

    logger.debug("Planned %d step(s) for provider '%s'", len(steps), provider)
    return GenerationPlan(provider=provider, working_dir=working_dir, steps=steps)
