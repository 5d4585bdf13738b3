"""
Tests for the Anthropic fix adapter: response parsing and error mapping.
No network: the SDK client is replaced by a fake with the same shape.
"""
import os
import sys
from types import SimpleNamespace

import anthropic
import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from aethr.core.anthropic_adapter import (
    AnthropicFixAdapter, SYSTEM_PROMPT, build_user_message, parse_fix_response,
)
from aethr.core.errors import LLMTransportError
from aethr.core.llm_adapter import FixAdapter
from aethr.core.types import ProjectContext

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class FakeMessages:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


def _adapter(text=None, error=None):
    messages = FakeMessages(text=text, error=error)
    client = SimpleNamespace(messages=messages)
    return AnthropicFixAdapter(api_key="test-key", client=client), messages


# ─── Parsing ─────────────────────────────────────────────────────────────────

def test_parse_command_explanation_lines():
    fix = parse_fix_response("COMMAND: npm install express\nEXPLANATION: The package is missing.")
    assert fix.command == "npm install express"
    assert fix.explanation == "The package is missing."
    print("  PASS: parse_command_explanation_lines")


def test_parse_strips_fences_and_backticks():
    fix = parse_fix_response("```\nCOMMAND: `pip install requests`\nEXPLANATION: Install it.\n```")
    assert fix.command == "pip install requests"
    print("  PASS: parse_strips_fences_and_backticks")


def test_parse_json_body():
    fix = parse_fix_response('Here you go: {"command": "cargo update", "explanation": "Refresh the lockfile."}')
    assert fix.command == "cargo update"
    assert fix.explanation == "Refresh the lockfile."
    print("  PASS: parse_json_body")


def test_parse_malformed_becomes_explanation():
    text = "I am not sure what caused this error."
    fix = parse_fix_response(text)
    assert fix.command == ""
    assert fix.explanation == text
    print("  PASS: parse_malformed_becomes_explanation")


def test_parse_broken_json_becomes_explanation():
    fix = parse_fix_response('{"command": "oops"')
    assert fix.command == ""
    assert fix.explanation == '{"command": "oops"'
    print("  PASS: parse_broken_json_becomes_explanation")


def test_parse_empty():
    fix = parse_fix_response("")
    assert fix.command == "" and fix.explanation == ""
    print("  PASS: parse_empty")


def test_user_message_includes_context():
    ctx = ProjectContext.from_tags(["nodejs", "docker"])
    assert build_user_message("boom", ctx) == "Error: boom\n\nProject context: docker, nodejs"
    assert build_user_message("boom", ProjectContext()).endswith("Project context: unknown")
    print("  PASS: user_message_includes_context")


# ─── Calls ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_fix_sends_prompt_and_parses():
    adapter, messages = _adapter(text="COMMAND: docker system prune -a\nEXPLANATION: Free space.")
    assert isinstance(adapter, FixAdapter)
    assert adapter.enabled
    fix = await adapter.get_fix("no space left on device", ProjectContext.from_tags(["docker"]))
    assert fix.command == "docker system prune -a"
    call = messages.calls[0]
    assert call["system"] == SYSTEM_PROMPT
    assert call["max_tokens"] == 300
    assert "no space left on device" in call["messages"][0]["content"]
    print("  PASS: get_fix_sends_prompt_and_parses")


@pytest.mark.asyncio
async def test_status_error_becomes_transport_error():
    error = anthropic.InternalServerError(
        "overloaded", response=httpx.Response(529, request=REQUEST), body=None,
    )
    adapter, _ = _adapter(error=error)
    with pytest.raises(LLMTransportError) as info:
        await adapter.get_fix("boom", ProjectContext())
    assert info.value.status_code == 529
    print("  PASS: status_error_becomes_transport_error")


@pytest.mark.asyncio
async def test_connection_error_becomes_transport_error():
    adapter, _ = _adapter(error=anthropic.APIConnectionError(request=REQUEST))
    with pytest.raises(LLMTransportError):
        await adapter.get_fix("boom", ProjectContext())
    print("  PASS: connection_error_becomes_transport_error")


@pytest.mark.asyncio
async def test_timeout_becomes_transport_error():
    adapter, _ = _adapter(error=anthropic.APITimeoutError(request=REQUEST))
    with pytest.raises(LLMTransportError) as info:
        await adapter.get_fix("boom", ProjectContext())
    assert "timed out" in str(info.value)
    print("  PASS: timeout_becomes_transport_error")


def test_real_client_is_bounded():
    adapter = AnthropicFixAdapter(api_key="test-key", timeout=12.0)
    assert adapter.client.timeout == 12.0
    assert adapter.client.max_retries == 1
    print("  PASS: real_client_is_bounded")
