"""
Study Better – API back-end

Endpoints
─────────
GET  /health              → {"status": "ok"}
POST /api/analyze         → {"markdown": ...} from the Mistral agent
GET  /api/analyze         → 405 with a usage hint
POST /api/export/pdf      → streams page-image PDF
POST /api/export/docx     → streams Word document
POST /api/preview         → {"html": ...} with typeset math
(no HTML pages rendered; UI lives in the front-end)
"""

# SPDX-License-Identifier: AGPL-3.0-only

# ── imports ──────────────────────────────────────────────────────
import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS                 # allow front-end origin

from common.config import AppConfig, config
from analyze.endpoints import register_analyze_endpoints
from export.endpoints import register_export_endpoints

logger = logging.getLogger(__name__)


def configure_logging(settings: AppConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )


def create_app(settings: Optional[AppConfig] = None) -> Flask:
    """Build the Flask app; settings default to the environment-backed config."""
    settings = settings or config
    configure_logging(settings)

    app = Flask(__name__)

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.cors_origins}}
    )

    # ── config & housekeeping ───────────────────────────────────
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes
    app.config["SETTINGS"] = settings

    logger.info("MISTRAL_API_KEY: %s", "SET" if settings.validate_api_config() else "NOT SET")
    logger.info("MISTRAL_BASE_URL: %s", settings.mistral_base_url)

    # ── ROUTES ──────────────────────────────────────────────────
    @app.get("/")
    def root():
        """Simple root for anyone hitting the API directly."""
        return {"service": "Study Better API", "docs": "/health"}, 200

    @app.get("/health")
    def health():
        """Used by the front-end (and uptime checks) to verify API is alive."""
        return jsonify(status="ok"), 200

    @app.errorhandler(405)
    def method_not_allowed(e):
        logger.info("Rejected %s %s", request.method, request.path)
        return jsonify(error="Method not allowed"), 405

    @app.errorhandler(413)
    def file_too_large(e):
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        return jsonify(error=f"File too large (max {limit_mb} MB)"), 413

    register_analyze_endpoints(app, settings)
    register_export_endpoints(app, settings)

    return app


app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000, debug=True)
