"""
Web server — Flask app factory.

Creates the HTTP service the graph editor talks to: watcher control,
generation, artifact listing/download/deletion, and an SSE stream of
watcher events.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask
from flask_cors import CORS

from iacgraph.adapters import Adapter, GeneratorAdapter, MockAdapter
from iacgraph.core.config.loader import load_settings
from iacgraph.core.engine.planner import GeneratorCatalog
from iacgraph.core.models.settings import Settings
from iacgraph.core.services.artifact_store import ArtifactStore
from iacgraph.core.services.watch_service import DirectoryWatcher, init_watcher

logger = logging.getLogger(__name__)

EXTENSION_KEY = "iacgraph"


def create_app(
    settings: Settings | None = None,
    config_path: Path | None = None,
    mock_mode: bool = False,
    watcher: DirectoryWatcher | None = None,
    adapter: Adapter | None = None,
    start_watcher: bool = True,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Pre-built settings; loaded from ``config_path`` otherwise.
        config_path: Path to iacgraph.yml (default: search upward).
        mock_mode: Use the mock adapter instead of real generators.
        watcher: Directory watcher to use; the process-wide one otherwise.
        adapter: Step adapter override.
        start_watcher: Launch the watcher in the background right away.

    Returns:
        Configured Flask application.
    """
    if settings is None:
        settings = load_settings(config_path)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024  # editor graphs can be large

    CORS(
        app,
        origins=settings.server.cors_origins,
        methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type"],
    )

    if adapter is None:
        if mock_mode:
            adapter = MockAdapter(merged_file=settings.merged_file)
        else:
            adapter = GeneratorAdapter(settings.runner, timeout=settings.step_timeout)
    if watcher is None:
        watcher = init_watcher(settings)

    app.extensions[EXTENSION_KEY] = {
        "settings": settings,
        "watcher": watcher,
        "adapter": adapter,
        "catalog": GeneratorCatalog.from_settings(settings, must_exist=not mock_mode),
        "store": ArtifactStore(settings.output_dir, settings.artifact_extension),
    }

    from iacgraph.ui.web.routes_events import events_bp
    from iacgraph.ui.web.routes_generate import generate_bp
    from iacgraph.ui.web.routes_output import output_bp
    from iacgraph.ui.web.routes_watcher import watcher_bp

    app.register_blueprint(watcher_bp)
    app.register_blueprint(generate_bp)
    app.register_blueprint(output_bp)
    app.register_blueprint(events_bp)

    if start_watcher:
        watcher.launch()

    logger.info(
        "Web app created (generators=%s, output=%s, mock=%s)",
        settings.generators_dir, settings.output_dir, mock_mode,
    )
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting server on %s:%d", host, port)
    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
    finally:
        app.extensions[EXTENSION_KEY]["watcher"].stop()
