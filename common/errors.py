# SPDX-License-Identifier: AGPL-3.0-only

"""
Error types shared by the analysis proxy and the export pipeline.

Each error knows the HTTP status it maps to and how to render itself as the
`{"error": ..., "details": ...}` payload returned to the front-end.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base error carrying a client-facing message and an HTTP status."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class UpstreamError(ServiceError):
    """The Mistral API answered with a failure or with a body we cannot use."""

    def __init__(self, message: str, step: str, status: Optional[int] = None, details: Optional[str] = None):
        super().__init__(message, details=details)
        self.step = step
        self.status = status


class ExportError(ServiceError):
    """Rendering, rasterizing or packing an export failed."""

    def __init__(self, title: str, description: str):
        super().__init__(title, details=description)
