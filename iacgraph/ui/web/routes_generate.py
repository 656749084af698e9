"""
Generation routes — turn an editor request or graph into Terraform.

Blueprint: generate_bp

Endpoints:
    POST /generate-files   — {provider, modules|module: [{name, args}]}
    POST /generate-graph   — {provider, nodes, edges} as drawn in the editor
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from iacgraph.core.models.generation import GenerationRequest
from iacgraph.core.models.graph import Graph
from iacgraph.core.use_cases.generate import run_generation
from iacgraph.ui.web import helpers

generate_bp = Blueprint("generate", __name__)


def _generate(gen_request: GenerationRequest):  # type: ignore[no-untyped-def]
    result = run_generation(
        gen_request,
        helpers.settings(),
        helpers.watcher(),
        helpers.adapter(),
        catalog=helpers.catalog(),
    )
    if result.error is not None:
        extra = {"report": result.report.to_dict()} if result.report else {}
        return helpers.error_response(result.error, **extra)
    return jsonify(result.to_dict())


@generate_bp.route("/generate-files", methods=["POST"])
def generate_files():  # type: ignore[no-untyped-def]
    """Run the provider generator, then each module generator in order."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return helpers.invalid_request("Expected a JSON object body")

    try:
        gen_request = GenerationRequest.model_validate(data)
    except ValidationError as e:
        return helpers.invalid_request(
            "Invalid generation request",
            e.errors(include_url=False, include_context=False),
        )

    return _generate(gen_request)


@generate_bp.route("/generate-graph", methods=["POST"])
def generate_graph():  # type: ignore[no-untyped-def]
    """Generate from the editor's graph; group nodes become modules."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return helpers.invalid_request("Expected a JSON object body")

    try:
        graph = Graph.from_editor(data)
        gen_request = graph.to_request()
    except ValidationError as e:
        return helpers.invalid_request(
            "Invalid graph",
            e.errors(include_url=False, include_context=False),
        )

    return _generate(gen_request)
