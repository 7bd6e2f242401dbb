# SPDX-License-Identifier: AGPL-3.0-only

"""
Analysis service orchestrator: upload → signed URL → agent completion → cleanup.
"""
import json
import logging
from typing import Any, Optional

import requests

from common.config import AppConfig
from common.errors import UpstreamError
from common.metrics import RequestMetrics
from common.mistral_client import MistralClient
from analyze.prompt_pack import build_agent_payload, resolve_task, select_agent

logger = logging.getLogger(__name__)


class AnalysisService:
    """Proxy a PDF to a Mistral agent and return the generated Markdown."""

    def __init__(self, settings: AppConfig, client: Optional[MistralClient] = None):
        self.settings = settings
        self.agent_config = settings.get_agent_config()
        self.client = client or MistralClient(
            api_key=settings.mistral_api_key,
            base_url=settings.mistral_base_url,
            timeout=self.agent_config["timeout"]
        )

    def process(self, filename: str, data: bytes, content_type: str, instructions: str, task_type: str) -> str:
        """
        Main processing sequence. Every step depends on the previous one.

        Args:
            filename: Original upload name, forwarded to Mistral
            data: PDF bytes
            content_type: MIME type reported by the client
            instructions: Free-text user instructions
            task_type: "summarize" or anything else (explain)

        Returns:
            Markdown text from the first completion choice

        Raises:
            UpstreamError: any step failed; carries the upstream detail
        """
        metrics = RequestMetrics()
        task = resolve_task(task_type)
        file_id = None

        try:
            # Stage 1: Upload
            logger.info("Uploading file to Mistral API")
            file_id = self.client.upload_file(filename, data, content_type)
            metrics.mark_stage("upload_done")

            # Stage 2: Signed URL
            logger.info("Getting signed URL for file")
            signed_url = self.client.get_signed_url(file_id)
            metrics.mark_stage("signed_url_done")

            # Stage 3: Build agent payload
            agent_id = select_agent(task, self.settings)
            logger.info("Using agent ID %s for task type: %s", agent_id, task)
            payload = build_agent_payload(agent_id, task, instructions, signed_url, self.agent_config["max_tokens"])

            # Stage 4: Agent completion
            logger.info("Sending %s request to agent %s", task, agent_id)
            response = self.client.agent_completion(payload)
            metrics.mark_stage("completion_done")
            markdown = self._extract_markdown(response, metrics)

        except UpstreamError as e:
            logger.error("Analysis failed at %s step (upstream status %s): %s", e.step, e.status, e.message)
            metrics.add_error(f"{e.step}: {e.message}")
            raise
        except requests.RequestException as e:
            logger.error("Error processing request: %s", e)
            metrics.add_error(str(e))
            raise UpstreamError(f"Failed to process request: {e}", step="transport") from e
        finally:
            # Stage 5: Cleanup, whatever happened above
            if file_id is not None:
                self._cleanup(file_id)
                metrics.mark_stage("cleanup_done")
            metrics.finish()
            logger.info("Analysis metrics: %s", metrics.to_dict())

        return markdown

    def _extract_markdown(self, response: requests.Response, metrics: RequestMetrics) -> str:
        """Map the completion response onto Markdown or an UpstreamError."""
        excerpt = self.settings.detail_excerpt_chars
        response_text = response.text

        logger.info("Agent API response status: %s", response.status_code)
        logger.info("Agent API response preview: %s", response_text[:self.settings.log_preview_chars])

        if not response.ok:
            logger.error("Agent completion error response: %s", response_text)
            raise UpstreamError(
                f"Failed to process request: HTTP error {response.status_code}",
                step="completion",
                status=response.status_code,
                details=response_text[:excerpt]
            )

        try:
            agent_data = json.loads(response_text)
        except ValueError as e:
            logger.error("Failed to parse agent response: %s", e)
            raise UpstreamError(
                "Failed to parse response from agent API",
                step="completion",
                status=response.status_code,
                details=response_text[:excerpt]
            ) from e

        try:
            content = agent_data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Agent response has no completion choice: %s", e)
            raise UpstreamError(
                "Unexpected response format from agent API",
                step="completion",
                status=response.status_code,
                details=response_text[:excerpt]
            ) from e

        usage = agent_data.get("usage") or {}
        metrics.add_tokens(usage.get("total_tokens", 0))
        logger.info("Agent completion successful")
        return _content_to_text(content)

    def _cleanup(self, file_id: str) -> None:
        """Delete the uploaded file; failures are logged and never raised."""
        logger.info("Deleting uploaded file")
        try:
            self.client.delete_file(file_id)
        except Exception as e:
            logger.error("Error deleting file %s: %s", file_id, e)


def _content_to_text(content: Any) -> str:
    """Message content is either a string or a list of typed chunks."""
    if isinstance(content, list):
        parts = []
        for chunk in content:
            if isinstance(chunk, dict) and chunk.get("type", "text") == "text":
                parts.append(chunk.get("text", ""))
        return "".join(parts)
    if content is None:
        return ""
    return str(content)
