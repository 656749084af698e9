"""
Domain models — Pydantic types for generation.

Re-exported here for convenient access:

    from iacgraph.core.models import GenerationRequest, ModuleSpec, Graph, Receipt
"""

from iacgraph.core.models.generation import (
    GenerationPlan,
    GenerationRequest,
    GenerationStep,
    ModuleSpec,
)
from iacgraph.core.models.graph import Graph, GraphEdge, GraphNode, NodeData
from iacgraph.core.models.receipt import Receipt
from iacgraph.core.models.settings import ServerSettings, Settings

__all__ = [
    # generation.py
    "GenerationPlan",
    "GenerationRequest",
    "GenerationStep",
    "ModuleSpec",
    # graph.py
    "Graph",
    "GraphEdge",
    "GraphNode",
    "NodeData",
    # receipt.py
    "Receipt",
    # settings.py
    "ServerSettings",
    "Settings",
]
