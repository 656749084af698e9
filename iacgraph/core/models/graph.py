"""
Graph model — the canvas the user draws in the editor.

Group nodes are modules dropped from the palette (VPC, EC2, ...).
Service nodes live inside a group and contribute extra arguments to
their group's generator.  Edges are visual wiring only: they are
checked for dangling endpoints but never reorder generation.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from iacgraph.core.models.generation import GenerationRequest, ModuleSpec


class NodeData(BaseModel):
    """Payload the editor attaches to a node."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    info: str = ""
    args: list[str] = Field(default_factory=list)

    @field_validator("args", mode="before")
    @classmethod
    def _args_as_strings(cls, v: object) -> object:
        if v is None:
            return []
        if isinstance(v, list):
            return [str(a) for a in v]
        return v


class GraphNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: Literal["GroupNode", "ServiceNode"] = "GroupNode"
    parent_id: str | None = Field(default=None, alias="parentId")
    data: NodeData = Field(default_factory=NodeData)

    @property
    def is_group(self) -> bool:
        return self.type == "GroupNode"


class GraphEdge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    source: str
    target: str


class Graph(BaseModel):
    """A provider plus the nodes and edges authored under it."""

    provider: str
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> Graph:
        ids = [n.id for n in self.nodes]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate node id in graph")

        groups = {n.id for n in self.nodes if n.is_group}
        for node in self.nodes:
            if node.is_group and node.parent_id:
                raise ValueError(f"group node '{node.id}' cannot have a parent")
            if not node.is_group and node.parent_id not in groups:
                raise ValueError(
                    f"service node '{node.id}' must belong to a group node"
                )

        known = set(ids)
        for edge in self.edges:
            for end in (edge.source, edge.target):
                if end not in known:
                    raise ValueError(f"edge '{edge.id or '?'}' references unknown node '{end}'")
        return self

    def children_of(self, node_id: str) -> list[GraphNode]:
        """Service nodes inside a group, in canvas order."""
        return [n for n in self.nodes if n.parent_id == node_id]

    def to_request(self) -> GenerationRequest:
        """Convert the canvas into a generation request.

        One module per group node, in the order the nodes were placed.
        A group's arguments are its own followed by each child's.
        """
        modules: list[ModuleSpec] = []
        for node in self.nodes:
            if not node.is_group:
                continue
            args = list(node.data.args)
            for child in self.children_of(node.id):
                args.extend(child.data.args)
            modules.append(ModuleSpec(name=node.data.name, args=args))
        return GenerationRequest(provider=self.provider, modules=modules)

    @classmethod
    def from_editor(cls, payload: dict[str, Any]) -> Graph:
        """Build a graph from the editor's JSON (``provider``, ``nodes``, ``edges``)."""
        return cls.model_validate(payload)
