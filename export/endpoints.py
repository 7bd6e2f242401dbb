# SPDX-License-Identifier: AGPL-3.0-only

"""
Flask endpoints for the export pipeline and the Markdown preview.
"""
import io
import logging
from flask import request, jsonify, send_file
from marshmallow import ValidationError

from common.config import AppConfig
from common.errors import ExportError
from export.artifact import ExportArtifact
from export.docx_export import DocxExporter
from export.markdown_render import render_markdown
from export.pdf_export import PdfExporter
from validators import ExportRequestSchema, PreviewRequestSchema, first_error

logger = logging.getLogger(__name__)

EXPORT_FIELD_ORDER = ["markdown", "fileName", "taskType"]


def _send_artifact(artifact: ExportArtifact):
    logger.info("Sending %s (%d bytes, %s)", artifact.filename, artifact.size, artifact.mimetype)
    return send_file(
        io.BytesIO(artifact.data),
        as_attachment=True,
        download_name=artifact.filename,
        mimetype=artifact.mimetype
    )


def register_export_endpoints(app, settings: AppConfig):
    """Register export and preview endpoints with Flask app."""

    def _run_export(exporter):
        try:
            params = ExportRequestSchema().load(request.get_json(silent=True) or {})
        except ValidationError as e:
            return jsonify({"error": first_error(e.messages, EXPORT_FIELD_ORDER)}), 400

        try:
            artifact = exporter.export(params["markdown"], params["file_name"], params["task_type"])
        except ExportError as e:
            return jsonify(e.to_dict()), e.status_code

        return _send_artifact(artifact)

    @app.post("/api/export/pdf")
    def export_pdf():
        """Page-image PDF of the analysis Markdown."""
        return _run_export(PdfExporter(settings))

    @app.post("/api/export/docx")
    def export_docx():
        """Word document of the analysis Markdown."""
        return _run_export(DocxExporter(settings))

    @app.post("/api/preview")
    def preview_markdown():
        """Render Markdown with typeset math for display in the browser."""
        try:
            params = PreviewRequestSchema().load(request.get_json(silent=True) or {})
        except ValidationError as e:
            return jsonify({"error": first_error(e.messages, ["markdown"])}), 400

        try:
            rendered = render_markdown(params["markdown"], scale=settings.render_scale, image_mode="inline")
        except Exception as e:
            logger.exception("Error rendering preview")
            return jsonify({"error": f"Preview failed: {e}"}), 500

        return jsonify({"html": rendered.html})
