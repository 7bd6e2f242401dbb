# SPDX-License-Identifier: AGPL-3.0-only

"""
Configuration service for the Study Better API.

This module centralizes the settings for the analysis proxy and the export
pipeline, supporting environment variable overrides and a local `.env` file.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class AppConfig(BaseSettings):
    """Configuration settings for the analysis and export services."""

    # Mistral settings
    mistral_api_key: Optional[str] = Field(default=None, description="Mistral API key")
    mistral_base_url: str = Field(default="https://api.mistral.ai/v1", description="Mistral REST API base URL")
    summary_agent_id: str = Field(
        default="ag:ab291cb7:20250507:untitled-agent:64806fa7",
        description="Agent used for the summarize task"
    )
    explain_agent_id: str = Field(
        default="ag:ab291cb7:20250510:explain:9b572715",
        description="Agent used for the explain task"
    )
    max_tokens: int = Field(default=4000, description="Max tokens requested from the agent")
    request_timeout: int = Field(default=120, description="Timeout in seconds for each upstream call")

    # Diagnostics
    detail_excerpt_chars: int = Field(default=500, description="Upstream body excerpt returned in error details")
    log_preview_chars: int = Field(default=200, description="Upstream body preview written to the log")
    log_level: str = Field(default="INFO", description="Root log level")

    # Export settings
    brand_name: str = Field(default="Study Better", description="Brand shown in export headers")
    copyright_notice: str = Field(
        default="© 2025 Study Better. All rights reserved.",
        description="Footer line for exported documents"
    )
    render_width_px: int = Field(default=800, description="Content width of the page-image layout")
    render_padding_px: int = Field(default=40, description="Padding around the page-image layout")
    render_scale: int = Field(default=3, description="Pixel density multiplier for rasterization")

    # Upload / HTTP settings
    max_upload_bytes: int = Field(default=100 * 1024 * 1024, description="Max request size in bytes (100MB)")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"],
        description="Origins allowed to call /api/*"
    )

    class Config:
        case_sensitive = False

    def get_agent_config(self) -> dict:
        """Get agent selection and completion limits."""
        return {
            "agents": {
                "summarize": self.summary_agent_id,
                "explain": self.explain_agent_id,
            },
            "max_tokens": self.max_tokens,
            "timeout": self.request_timeout,
        }

    def get_render_config(self) -> dict:
        """Get page-image export configuration."""
        return {
            "width_px": self.render_width_px,
            "padding_px": self.render_padding_px,
            "scale": self.render_scale,
        }

    def validate_api_config(self) -> bool:
        """Validate that a Mistral credential is configured."""
        return bool(self.mistral_api_key and self.mistral_api_key.strip())


# Global configuration instance
config = AppConfig()
