# SPDX-License-Identifier: AGPL-3.0-only

"""
Mistral REST client: file upload, signed URLs, agent completions and cleanup.
"""
import logging
import requests
from typing import Any, Dict

from common.errors import UpstreamError

logger = logging.getLogger(__name__)


class MistralClient:
    """Thin wrapper over the four Mistral endpoints used by the analysis proxy."""

    def __init__(self, api_key: str, base_url: str = "https://api.mistral.ai/v1", timeout: int = 120):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def upload_file(self, filename: str, data: bytes, content_type: str = "application/pdf") -> str:
        """
        Upload a document for OCR use.
        Returns: the file id assigned by Mistral.
        """
        resp = requests.post(
            f"{self.base_url}/files",
            headers=self._headers(),
            files={"file": (filename, data, content_type)},
            data={"purpose": "ocr"},
            timeout=self.timeout
        )
        if not resp.ok:
            logger.error("File upload error: %s", resp.text)
            raise UpstreamError(f"Failed to upload PDF file: {resp.text}", step="upload", status=resp.status_code)

        file_id = resp.json()["id"]
        logger.info("File uploaded successfully with ID: %s", file_id)
        return file_id

    def get_signed_url(self, file_id: str) -> str:
        """Get a time-limited retrieval URL for an uploaded file."""
        resp = requests.get(
            f"{self.base_url}/files/{file_id}/url",
            headers=self._headers(),
            timeout=self.timeout
        )
        if not resp.ok:
            logger.error("Signed URL error: %s", resp.text)
            raise UpstreamError(f"Failed to get signed URL: {resp.text}", step="signed_url", status=resp.status_code)

        return resp.json()["url"]

    def agent_completion(self, payload: Dict[str, Any]) -> requests.Response:
        """
        Submit an agent completion request.

        The raw response is returned unchecked; status mapping and body parsing
        belong to the caller, which reports both with upstream excerpts.
        """
        headers = self._headers()
        headers["Content-Type"] = "application/json"
        return requests.post(
            f"{self.base_url}/agents/completions",
            headers=headers,
            json=payload,
            timeout=self.timeout
        )

    def delete_file(self, file_id: str) -> None:
        """Delete an uploaded file. Raises on failure; callers decide whether it matters."""
        resp = requests.delete(
            f"{self.base_url}/files/{file_id}",
            headers=self._headers(),
            timeout=self.timeout
        )
        resp.raise_for_status()

    def check_connection(self) -> bool:
        """Return True when the API is reachable and accepts the key."""
        resp = requests.get(f"{self.base_url}/models", headers=self._headers(), timeout=5)
        return resp.status_code == 200
