"""
Watcher event stream.

Blueprint: events_bp

Endpoints:
    GET /events   — Server-Sent Events; one frame per event-bus event

The editor listens here to learn when the working directory is ready
and when new artifacts land in the output directory, instead of
polling ``/output/files``.  A reconnecting client resumes after the
sequence number it last saw (``?since=`` or ``Last-Event-Id``).
"""

from __future__ import annotations

import json

from flask import Blueprint, Response, request

from iacgraph.core.services.event_bus import bus

events_bp = Blueprint("events", __name__)

_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "X-Accel-Buffering": "no",
}


def _resume_point() -> int:
    """Highest sequence number the client reports having seen."""
    since = request.args.get("since", 0, type=int)
    header = request.headers.get("Last-Event-Id", "")
    if header.isdigit():
        since = max(since, int(header))
    return since


def _frame(event: dict) -> str:
    return f"event: {event['type']}\nid: {event['seq']}\ndata: {json.dumps(event, default=str)}\n\n"


@events_bp.route("/events")
def watcher_events():  # type: ignore[no-untyped-def]
    since = _resume_point()
    frames = (_frame(event) for event in bus.subscribe(since=since))
    return Response(frames, mimetype="text/event-stream", headers=_STREAM_HEADERS)
