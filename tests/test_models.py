"""
Tests for domain models — requests, steps, graph conversion, receipts.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from iacgraph.core.models import (
    GenerationRequest,
    GenerationStep,
    Graph,
    ModuleSpec,
    Receipt,
)


class TestGenerationRequest:
    def test_provider_only(self):
        req = GenerationRequest(provider="aws")
        assert req.provider == "aws"
        assert req.modules == []

    def test_blank_provider_rejected(self):
        with pytest.raises(ValidationError):
            GenerationRequest(provider="   ")

    def test_legacy_module_key(self):
        """Existing editor clients send the list under 'module'."""
        req = GenerationRequest.model_validate({
            "provider": "aws",
            "module": [{"name": "VPC", "args": ["--cidr", "10.0.0.0/16"]}],
        })
        assert [m.name for m in req.modules] == ["VPC"]
        assert req.modules[0].args == ["--cidr", "10.0.0.0/16"]

    def test_modules_key(self):
        req = GenerationRequest.model_validate({
            "provider": "gcp",
            "modules": [{"name": "Network"}, {"name": "GKE", "args": None}],
        })
        assert [m.name for m in req.modules] == ["Network", "GKE"]
        assert req.modules[1].args == []

    def test_null_modules(self):
        req = GenerationRequest.model_validate({"provider": "aws", "module": None})
        assert req.modules == []

    def test_args_are_stringified(self):
        module = ModuleSpec.model_validate({"name": "EC2", "args": ["--count", 3, True]})
        assert module.args == ["--count", "3", "True"]

    def test_blank_module_name_rejected(self):
        with pytest.raises(ValidationError):
            ModuleSpec(name="")


class TestGenerationStep:
    def _step(self, **kw) -> GenerationStep:
        defaults = dict(
            index=1,
            label="module:VPC",
            program=Path("/gen/module/aws/generateVPCTerraform.ts"),
            arguments=("--cidr", "10.0.0.0/16"),
            output_dir=Path("/work"),
        )
        defaults.update(kw)
        return GenerationStep(**defaults)

    def test_argv_with_runner(self):
        argv = self._step().argv(["bun", "run"])
        assert argv == [
            "bun", "run",
            "/gen/module/aws/generateVPCTerraform.ts",
            "--cidr", "10.0.0.0/16",
            "-o", "/work",
        ]

    def test_argv_without_runner(self):
        argv = self._step(arguments=()).argv()
        assert argv == ["/gen/module/aws/generateVPCTerraform.ts", "-o", "/work"]

    def test_frozen(self):
        step = self._step()
        with pytest.raises(ValidationError):
            step.index = 5


class TestGraph:
    def _payload(self) -> dict:
        return {
            "provider": "aws",
            "nodes": [
                {"id": "a", "type": "GroupNode", "data": {"name": "VPC", "args": ["--cidr", "10.0.0.0/16"]}},
                {"id": "a1", "type": "ServiceNode", "parentId": "a", "data": {"name": "Subnet", "args": ["--subnets", 2]}},
                {"id": "b", "type": "GroupNode", "data": {"name": "EC2"}},
            ],
            "edges": [{"id": "a->b", "source": "a", "target": "b"}],
        }

    def test_to_request_preserves_node_order(self):
        req = Graph.from_editor(self._payload()).to_request()
        assert req.provider == "aws"
        assert [m.name for m in req.modules] == ["VPC", "EC2"]

    def test_child_args_follow_group_args(self):
        req = Graph.from_editor(self._payload()).to_request()
        assert req.modules[0].args == ["--cidr", "10.0.0.0/16", "--subnets", "2"]
        assert req.modules[1].args == []

    def test_edges_do_not_reorder(self):
        payload = self._payload()
        payload["edges"] = [{"source": "b", "target": "a"}]
        req = Graph.from_editor(payload).to_request()
        assert [m.name for m in req.modules] == ["VPC", "EC2"]

    def test_dangling_edge_rejected(self):
        payload = self._payload()
        payload["edges"].append({"id": "x", "source": "a", "target": "ghost"})
        with pytest.raises(ValidationError, match="ghost"):
            Graph.from_editor(payload)

    def test_orphan_service_node_rejected(self):
        payload = self._payload()
        payload["nodes"].append({"id": "z", "type": "ServiceNode", "data": {"name": "Lonely"}})
        with pytest.raises(ValidationError):
            Graph.from_editor(payload)

    def test_duplicate_ids_rejected(self):
        payload = self._payload()
        payload["nodes"].append({"id": "a", "type": "GroupNode", "data": {"name": "Dup"}})
        with pytest.raises(ValidationError):
            Graph.from_editor(payload)

    def test_empty_graph_is_provider_only(self):
        req = Graph(provider="gcp").to_request()
        assert req.modules == []

    def test_editor_extras_ignored(self):
        payload = self._payload()
        payload["nodes"][0]["position"] = {"x": 10, "y": 20}
        payload["nodes"][0]["data"]["children"] = []
        graph = Graph.from_editor(payload)
        assert graph.nodes[0].data.name == "VPC"


class TestReceipt:
    def test_success(self):
        r = Receipt.success(adapter="generator", step_index=0, output="done")
        assert r.ok
        assert not r.failed
        assert r.error is None

    def test_failure(self):
        r = Receipt.failure(adapter="generator", step_index=2, error="boom", return_code=1)
        assert r.failed
        assert r.step_index == 2
        assert r.return_code == 1

    def test_serializes(self):
        r = Receipt.success(adapter="mock", step_index=0, command=["gen", "-o", "/w"])
        d = r.model_dump(mode="json")
        assert d["command"] == ["gen", "-o", "/w"]
        assert d["status"] == "ok"
