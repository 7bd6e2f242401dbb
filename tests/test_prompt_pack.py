# SPDX-License-Identifier: AGPL-3.0-only

import pytest

from analyze.prompt_pack import (
    EXPLAIN,
    SUMMARIZE,
    build_agent_payload,
    build_system_prompt,
    build_user_content,
    resolve_task,
    select_agent,
)


class TestTaskSelection:

    @pytest.mark.parametrize("raw, expected", [
        ("summarize", SUMMARIZE),
        ("explain", EXPLAIN),
        ("translate", EXPLAIN),
        ("Summarize", EXPLAIN),
    ])
    def test_resolve_task(self, raw, expected):
        assert resolve_task(raw) == expected

    def test_select_agent(self, settings):
        assert select_agent("summarize", settings) == "agent-summary"
        assert select_agent("explain", settings) == "agent-explain"
        assert select_agent("anything-else", settings) == "agent-explain"


class TestPayload:

    def test_system_prompt_wording(self):
        summary = build_system_prompt("summarize")
        explain = build_system_prompt("explain")

        assert "Your task is to summarize the content of the PDF" in summary
        assert "Your task is to explain in detail the content of the PDF" in explain
        assert "$ for inline math and $$ for block math" in summary

    def test_user_content_parts(self):
        parts = build_user_content("Be brief", "https://signed/url")

        assert parts == [
            {"type": "text", "text": "Here are my instructions: Be brief"},
            {"type": "document_url", "document_url": "https://signed/url"},
        ]

    def test_agent_payload_shape(self):
        payload = build_agent_payload("agent-x", "summarize", "Be brief", "https://signed/url", max_tokens=123)

        assert payload["agent_id"] == "agent-x"
        assert payload["max_tokens"] == 123
        assert [m["role"] for m in payload["messages"]] == ["system", "user"]
        assert payload["messages"][0]["content"] == build_system_prompt("summarize")
