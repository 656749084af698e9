"""
Output routes — list, download and delete generated artifacts.

Blueprint: output_bp

Endpoints:
    GET    /output/files       — artifact names
    GET    /output/<name>      — download <name>.tf
    DELETE /output/<fragment>  — delete every file whose name contains <fragment>
    DELETE /output             — delete everything
"""

from __future__ import annotations

from flask import Blueprint, jsonify, send_file

from iacgraph.core.errors import ArtifactIOError, ArtifactNotFound
from iacgraph.core.services.artifact_store import DeleteReport
from iacgraph.ui.web import helpers

output_bp = Blueprint("output", __name__)


def _delete_response(report: DeleteReport, ok_message: str):  # type: ignore[no-untyped-def]
    body = report.to_dict()
    if report.status == "not_found":
        return helpers.error_response(
            ArtifactNotFound("No files found matching the given name"), **body,
        )
    if report.failed:
        body["error"] = f"Error deleting some files: {', '.join(report.failed)}"
        body["kind"] = "partial_delete"
        return jsonify(body), 500
    body["message"] = ok_message
    return jsonify(body)


@output_bp.route("/output/files")
def list_files():  # type: ignore[no-untyped-def]
    try:
        names = helpers.store().list_names()
    except ArtifactIOError as e:
        return helpers.error_response(e)
    return jsonify({"files": names})


@output_bp.route("/output/<name>")
def download(name: str):  # type: ignore[no-untyped-def]
    artifact = helpers.store().get(name)
    if artifact is None:
        return helpers.error_response(ArtifactNotFound("File not found", name=name))
    return send_file(
        artifact.path,
        mimetype=artifact.content_type,
        download_name=artifact.filename,
    )


@output_bp.route("/output/<fragment>", methods=["DELETE"])
def delete_matching(fragment: str):  # type: ignore[no-untyped-def]
    try:
        report = helpers.store().delete_matching(fragment)
    except ArtifactIOError as e:
        return helpers.error_response(e)
    return _delete_response(
        report, f'All files containing "{fragment}" were deleted successfully',
    )


@output_bp.route("/output", methods=["DELETE"])
def delete_all():  # type: ignore[no-untyped-def]
    try:
        report = helpers.store().delete_all()
    except ArtifactIOError as e:
        return helpers.error_response(e)
    return _delete_response(report, "All files were deleted successfully")
