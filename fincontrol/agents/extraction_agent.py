"""ExtractionAgent: multimodal LLM extraction of transactions from documents.

This module defines the ExtractionAgent class, which sends a bank statement
PDF or receipt image to an OpenAI-compatible chat completion endpoint together
with a fixed instruction, and the helpers that repair and parse the model's
JSON answer.
"""

import json

import groq

from fincontrol.agents.base import BaseAgent
from fincontrol.agents.prompts import PROMPT_LOG_LABEL, build_extraction_prompt
from fincontrol.core.errors import AIGatewayError
from fincontrol.core.settings import Settings
from fincontrol.core.utils import get_color, get_logger, truncate

MAX_OUTPUT_LOG_LEN = 300

logger = get_logger("fincontrol.agent")


def strip_code_fence(raw_output: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    cleaned = raw_output.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json") :]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```") :]
    if cleaned.endswith("```"):
        cleaned = cleaned[: -len("```")]
    return cleaned.strip()


def parse_extraction_response(raw_output: str | None) -> list[dict]:
    """Parse the model answer into the list under ``transactions``.

    Raises ``ValueError`` for empty output, invalid JSON or a missing array.
    """
    if not raw_output or not raw_output.strip():
        msg = "No content returned from AI"
        raise ValueError(msg)
    try:
        data = json.loads(strip_code_fence(raw_output))
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse AI response as JSON: {exc}"
        raise ValueError(msg) from exc
    if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
        msg = "Invalid response structure from AI: missing 'transactions' array"
        raise ValueError(msg)
    return [item for item in data["transactions"] if isinstance(item, dict)]


class ExtractionAgent(BaseAgent):
    """Agent responsible for the LLM call that reads a financial document."""

    def __init__(self, llm_client: object, settings: Settings) -> None:
        """Initialize the ExtractionAgent with an LLM client and settings."""
        self.llm_client = llm_client
        self.settings = settings

    def build_messages(self, content_b64: str, mime_type: str, kind: str) -> list[dict]:
        """Single user message: instruction text plus the document as a data URL."""
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": build_extraction_prompt(kind)},
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{content_b64}"}},
                ],
            }
        ]

    def extract(self, content_b64: str, mime_type: str, kind: str) -> str:
        """Call the completion endpoint and return the assistant text."""
        cyan = get_color("cyan")
        yellow = get_color("yellow")
        green = get_color("green")
        reset = get_color("reset")
        logger.info(f"{cyan}INPUT: {kind} ({mime_type}, {len(content_b64)} base64 chars){reset}")
        logger.info(f"{yellow}PROMPT: {PROMPT_LOG_LABEL}{reset}")
        try:
            logger.info(f"{yellow}AGENT: Calling LLM ({self.settings.extraction_model})...{reset}")
            completion = self.llm_client.chat.completions.create(
                model=self.settings.extraction_model,
                messages=self.build_messages(content_b64, mime_type, kind),
                temperature=self.settings.extraction_temperature,
                max_completion_tokens=self.settings.max_completion_tokens,
            )
        except groq.APIStatusError as exc:
            logger.exception(f"AI gateway returned {exc.status_code}")
            raise AIGatewayError(exc.status_code, str(exc)) from exc
        except groq.APIConnectionError as exc:
            logger.exception("AI gateway unreachable or timed out")
            raise AIGatewayError(None, str(exc)) from exc
        raw_output = completion.choices[0].message.content or ""
        logger.info(f"{green}OUTPUT: {truncate(raw_output, MAX_OUTPUT_LOG_LEN)}{reset}")
        return raw_output


def build_llm_client(settings: Settings) -> groq.Groq:
    """Groq client pointed at the configured gateway; retries are left to the caller."""
    return groq.Groq(
        api_key=settings.groq_api_key,
        base_url=settings.ai_base_url,
        timeout=settings.ai_timeout_seconds,
        max_retries=0,
    )
