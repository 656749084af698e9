"""
Shared helpers for the route blueprints.

Every route reaches the app's collaborators through these accessors
rather than module globals, so tests can hand ``create_app`` their own.
"""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify

from iacgraph.adapters.base import Adapter
from iacgraph.core.engine.planner import GeneratorCatalog
from iacgraph.core.errors import GenerationError
from iacgraph.core.models.settings import Settings
from iacgraph.core.services.artifact_store import ArtifactStore
from iacgraph.core.services.watch_service import DirectoryWatcher


def _ext() -> dict[str, Any]:
    return current_app.extensions["iacgraph"]


def settings() -> Settings:
    return _ext()["settings"]


def watcher() -> DirectoryWatcher:
    return _ext()["watcher"]


def adapter() -> Adapter:
    return _ext()["adapter"]


def catalog() -> GeneratorCatalog:
    return _ext()["catalog"]


def store() -> ArtifactStore:
    return _ext()["store"]


def error_response(error: GenerationError, **extra: Any):  # type: ignore[no-untyped-def]
    """JSON body and status code for a reported failure."""
    body = error.to_dict()
    body.update(extra)
    return jsonify(body), error.http_status


def invalid_request(message: str, errors: list | None = None):  # type: ignore[no-untyped-def]
    body: dict[str, Any] = {"error": message, "kind": "invalid_request"}
    if errors:
        body["errors"] = errors
    return jsonify(body), 400
