"""
Adapter base — the contract between the executor and generator programs.

The executor only talks to generators through this interface.  An
adapter runs one GenerationStep and returns a Receipt; it never raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from iacgraph.core.models.generation import GenerationStep
from iacgraph.core.models.receipt import Receipt


class Adapter(ABC):
    """Abstract base class for step adapters.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, command_for, execute
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'generator', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying runner can be launched. Fast, never raises."""

    @abstractmethod
    def command_for(self, step: GenerationStep) -> list[str]:
        """The argv this adapter would run for ``step``."""

    @abstractmethod
    def execute(self, step: GenerationStep) -> Receipt:
        """Run the step and return a receipt.

        MUST never raise. All failures are captured in the Receipt
        with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
