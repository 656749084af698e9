"""
Watcher routes — start, stop and inspect the directory watcher.

Blueprint: watcher_bp

Endpoints:
    POST /start-watcher    — start (or join) the watcher, return its directory
    GET  /stop-watcher     — stop it; safe when already stopped
    GET  /watcher/status   — state, working directory, launch count
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from iacgraph.core.errors import WatcherError
from iacgraph.ui.web import helpers

watcher_bp = Blueprint("watcher", __name__)


@watcher_bp.route("/start-watcher", methods=["GET", "POST"])
def start_watcher():  # type: ignore[no-untyped-def]
    try:
        path = helpers.watcher().start(timeout=helpers.settings().start_timeout)
    except WatcherError as e:
        return helpers.error_response(e)
    return jsonify({"message": "File watcher started", "working_dir": str(path)})


@watcher_bp.route("/stop-watcher", methods=["GET", "POST"])
def stop_watcher():  # type: ignore[no-untyped-def]
    was_running = helpers.watcher().stop()
    message = "File watcher stopped" if was_running else "File watcher was not running"
    return jsonify({"message": message, "was_running": was_running})


@watcher_bp.route("/watcher/status")
def watcher_status():  # type: ignore[no-untyped-def]
    return jsonify(helpers.watcher().status())
