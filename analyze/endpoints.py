# SPDX-License-Identifier: AGPL-3.0-only

"""
Flask endpoints for the analysis proxy.
"""
import logging
from flask import request, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from common.config import AppConfig
from common.errors import ServiceError
from analyze.service import AnalysisService
from validators import AnalyzeRequestSchema, first_error

logger = logging.getLogger(__name__)

GET_ADVISORY = "This endpoint requires a POST request with PDF data"


def register_analyze_endpoints(app, settings: AppConfig):
    """Register analysis endpoints with Flask app."""

    @app.post("/api/analyze")
    def analyze_pdf():
        """Upload a PDF to the configured agent and return its Markdown answer."""
        try:
            # Validate required fields, in order, before touching Mistral
            pdf_file = request.files.get("pdf")
            if pdf_file is None or pdf_file.filename == "":
                return jsonify({"error": "PDF file is required"}), 400

            try:
                fields = AnalyzeRequestSchema().load(request.form)
            except ValidationError as e:
                return jsonify({"error": first_error(e.messages, ["instructions", "taskType"])}), 400

            if not settings.validate_api_config():
                return jsonify({"error": "Mistral API key is not configured"}), 500

            filename = secure_filename(pdf_file.filename)
            if not filename.lower().endswith(".pdf"):
                # Non-ASCII names can sanitize down to a bare "pdf"
                filename = "document.pdf"
            data = pdf_file.read()
            content_type = pdf_file.mimetype or "application/pdf"
            logger.info("Processing file: %s Size: %d Type: %s", filename, len(data), content_type)
            logger.info("Task type: %s", fields["task_type"])

            service = AnalysisService(settings)
            markdown = service.process(filename, data, content_type, fields["instructions"], fields["task_type"])

            return jsonify({"markdown": markdown})

        except ServiceError as e:
            return jsonify(e.to_dict()), e.status_code
        except HTTPException:
            raise
        except Exception as e:
            logger.exception("Error handling form data")
            return jsonify({"error": f"Server error: {e}"}), 500

    @app.get("/api/analyze")
    def analyze_pdf_get():
        """Page loads and refreshes hit this with GET; point them at POST."""
        return jsonify({"message": GET_ADVISORY}), 405
