# SPDX-License-Identifier: AGPL-3.0-only

"""
Pytest configuration and fixtures.

This module provides shared fixtures and configuration for all tests.
"""

import io
import json
import pytest
import requests
from datetime import date
from unittest.mock import Mock

from app import create_app
from common.config import AppConfig


TEST_API_KEY = "test-mistral-key"


@pytest.fixture
def settings():
    """Settings with a credential and deterministic agent ids."""
    return AppConfig(
        mistral_api_key=TEST_API_KEY,
        mistral_base_url="https://mistral.test/v1",
        summary_agent_id="agent-summary",
        explain_agent_id="agent-explain",
        max_tokens=4000,
        request_timeout=5,
        render_scale=1,
    )


@pytest.fixture
def settings_without_key(settings):
    """Same settings, but no Mistral credential."""
    return settings.model_copy(update={"mistral_api_key": None})


@pytest.fixture
def app(settings):
    flask_app = create_app(settings)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sample_pdf_bytes():
    """Minimal PDF header; the proxy never parses the document itself."""
    return b'%PDF-1.4\n1 0 obj\n<<\n/Type /Catalog\n/Pages 2 0 R\n>>\nendobj\n'


@pytest.fixture
def analyze_form(sample_pdf_bytes):
    """Factory for a complete multipart form; pass overrides or drop keys."""
    def _form(drop=(), **overrides):
        form = {
            "pdf": (io.BytesIO(sample_pdf_bytes), "lecture-notes.pdf"),
            "instructions": "Focus on the key theorems",
            "taskType": "summarize",
        }
        form.update(overrides)
        for key in drop:
            form.pop(key, None)
        return form
    return _form


@pytest.fixture
def sample_markdown():
    """Typical agent output: headings, a list, inline and block math, code."""
    return (
        "# Linear Algebra Notes\n"
        "\n"
        "## Key Ideas\n"
        "\n"
        "- Vectors form a space\n"
        "- Matrices are linear maps\n"
        "\n"
        "The norm is $\\|x\\|$ and the square is $x^2$.\n"
        "\n"
        "$$\\frac{a}{b}$$\n"
        "\n"
        "```\n"
        "price = $5\n"
        "```\n"
        "\n"
        "### Summary\n"
        "Everything is **linear**.\n"
    )


@pytest.fixture
def fixed_date():
    return date(2025, 5, 7)


def make_response(status_code=200, json_data=None, text=None):
    """Build a stand-in for requests.Response."""
    resp = Mock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    if text is None:
        text = json.dumps(json_data) if json_data is not None else ""
    resp.text = text
    resp.json.return_value = json_data
    if resp.ok:
        resp.raise_for_status.return_value = None
    else:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return resp


def completion_body(content="# Summary\n\nAll good."):
    return {
        "id": "cmpl-1",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
    }


@pytest.fixture
def response_factory():
    """Expose make_response to tests."""
    return make_response


@pytest.fixture
def completion_factory():
    """Expose completion_body to tests."""
    return completion_body


@pytest.fixture
def mistral_responses():
    """Default happy-path responses for the four Mistral calls."""
    return {
        "upload": make_response(200, {"id": "file-123", "purpose": "ocr"}),
        "signed_url": make_response(200, {"url": "https://files.mistral.test/signed/file-123"}),
        "completion": make_response(200, completion_body()),
        "delete": make_response(200, {"id": "file-123", "deleted": True}),
    }


@pytest.fixture
def mock_requests(monkeypatch, mistral_responses):
    """Patch the requests module used by the Mistral client."""
    fake = Mock()
    fake.post.side_effect = lambda url, **kwargs: (
        mistral_responses["upload"] if url.endswith("/files") else mistral_responses["completion"]
    )
    fake.get.side_effect = lambda url, **kwargs: mistral_responses["signed_url"]
    fake.delete.side_effect = lambda url, **kwargs: mistral_responses["delete"]
    monkeypatch.setattr("common.mistral_client.requests", fake)
    return fake


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    # Add markers based on test names
    for item in items:
        if "test_" in item.name:
            if "integration" in item.name:
                item.add_marker(pytest.mark.integration)
            else:
                item.add_marker(pytest.mark.unit)  # Default to unit test
