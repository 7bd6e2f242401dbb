# SPDX-License-Identifier: AGPL-3.0-only

"""
Task-specific prompt packs and agent selection for the analysis proxy.
"""
from typing import Dict, Any, List

from common.config import AppConfig


SUMMARIZE = "summarize"
EXPLAIN = "explain"

# Task prompt templates; the agent itself carries the detailed persona
TASK_PROMPTS = {
    SUMMARIZE: {"verb": "summarize"},
    EXPLAIN: {"verb": "explain in detail"},
}


def resolve_task(task_type: str) -> str:
    """Map a raw taskType field onto one of the two known tasks."""
    return SUMMARIZE if task_type == SUMMARIZE else EXPLAIN


def select_agent(task_type: str, settings: AppConfig) -> str:
    """Pick the agent id for a task from the fixed two-entry table."""
    agents = settings.get_agent_config()["agents"]
    return agents[resolve_task(task_type)]


def build_system_prompt(task_type: str) -> str:
    """Build the system instruction sent ahead of the user's message."""
    verb = TASK_PROMPTS[resolve_task(task_type)]["verb"]
    return f"""You are an expert at analyzing PDF documents. 
Your task is to {verb} the content of the PDF according to your system prompt.
Format your response in Markdown, including proper headings, lists, and emphasis.
If the content contains mathematical expressions, format them using LaTeX notation with $ for inline math and $$ for block math.
Be thorough and accurate in your analysis."""


def build_user_content(instructions: str, signed_url: str) -> List[Dict[str, Any]]:
    """User message parts: free-text instructions plus the document attachment."""
    return [
        {
            "type": "text",
            "text": f"Here are my instructions: {instructions}",
        },
        {
            "type": "document_url",
            "document_url": signed_url,
        },
    ]


def build_agent_payload(agent_id: str, task_type: str, instructions: str, signed_url: str,
                        max_tokens: int = 4000) -> Dict[str, Any]:
    """Assemble the agent completion request body."""
    return {
        "agent_id": agent_id,
        "max_tokens": max_tokens,
        "messages": [
            {
                "role": "system",
                "content": build_system_prompt(task_type),
            },
            {
                "role": "user",
                "content": build_user_content(instructions, signed_url),
            },
        ],
    }
