"""
Aethr — Anthropic Fix Adapter

Concrete FixAdapter backed by the Anthropic API. Asks Claude Haiku for a
single shell command that fixes an error, plus a one-line explanation.

This is the "last resort" path. Without it, Aethr stops at the rule and
community layers.
"""
import json
import re
from typing import Optional

import anthropic
import structlog

from .errors import LLMTransportError
from .types import FixSuggestion, ProjectContext

logger = structlog.get_logger()

DEFAULT_MODEL = "claude-haiku-4-5-20251001"

SYSTEM_PROMPT = (
    "You are a terminal error fixer. Given an error message and project "
    "context, reply with exactly one shell command that fixes the error "
    "and a one-sentence explanation, in this format:\n"
    "COMMAND: <shell command>\n"
    "EXPLANATION: <why it works>\n"
    "No markdown, no extra lines."
)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class AnthropicFixAdapter:
    """
    FixAdapter implementation backed by Anthropic's Claude API.
    Every call is bounded by `timeout` seconds with one retry.
    """

    enabled = True

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        max_tokens: int = 300,
        client=None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=1,
        )

    async def get_fix(
        self,
        error: str,
        context: ProjectContext,
    ) -> FixSuggestion:
        """
        Ask the model for a fix. Malformed bodies degrade to an
        explanation-only suggestion; transport failures raise
        LLMTransportError.
        """
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{
                    "role": "user",
                    "content": build_user_message(error, context),
                }],
            )
        except anthropic.APIStatusError as e:
            raise LLMTransportError(
                f"Model API returned {e.status_code}", status_code=e.status_code
            ) from e
        except anthropic.APITimeoutError as e:
            raise LLMTransportError("Model API timed out") from e
        except anthropic.APIConnectionError as e:
            raise LLMTransportError(f"Model API unreachable: {e}") from e
        except anthropic.APIError as e:
            raise LLMTransportError(f"Model API error: {e}") from e

        text = _response_text(response)
        logger.debug("llm_fix_received", model=self.model, chars=len(text))
        return parse_fix_response(text)


def build_user_message(error: str, context: ProjectContext) -> str:
    ctx = ", ".join(context.sorted_tags()) if context else "unknown"
    return f"Error: {error}\n\nProject context: {ctx}"


def _response_text(response) -> str:
    parts = []
    for block in getattr(response, "content", None) or []:
        text = getattr(block, "text", None)
        if text:
            parts.append(text)
    return "\n".join(parts).strip()


def parse_fix_response(text: str) -> FixSuggestion:
    """
    Parse a model reply, most specific format first:
    1. `COMMAND:` / `EXPLANATION:` lines
    2. A JSON object with "command" / "explanation"
    3. Anything else: the whole text is the explanation, no command
    """
    text = _strip_fences(text or "")
    if not text:
        return FixSuggestion()

    command: Optional[str] = None
    explanation: Optional[str] = None
    for line in text.splitlines():
        stripped = line.strip()
        upper = stripped.upper()
        if upper.startswith("COMMAND:") and command is None:
            command = stripped[len("COMMAND:"):].strip().strip("`")
        elif upper.startswith("EXPLANATION:") and explanation is None:
            explanation = stripped[len("EXPLANATION:"):].strip()
    if command:
        return FixSuggestion(command=command, explanation=explanation or "")

    match = _JSON_OBJECT.search(text)
    if match:
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict) and str(data.get("command") or "").strip():
            return FixSuggestion(
                command=str(data["command"]).strip(),
                explanation=str(data.get("explanation") or "").strip(),
            )

    return FixSuggestion(command="", explanation=explanation or text)


def _strip_fences(text: str) -> str:
    text = text.strip()
    # Handle ```json / ```sh wrapping
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text
