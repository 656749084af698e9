"""
Adapters — the only code that launches generator programs.

    from iacgraph.adapters import GeneratorAdapter, MockAdapter
"""

from iacgraph.adapters.base import Adapter
from iacgraph.adapters.generator import GeneratorAdapter
from iacgraph.adapters.mock import MockAdapter

__all__ = ["Adapter", "GeneratorAdapter", "MockAdapter"]
