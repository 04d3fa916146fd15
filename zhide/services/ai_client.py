"""
AI Model Client

DeepSeek uses OpenAI-compatible API, so we use the openai library.
Any other OpenAI-compatible endpoint works by changing ai_base_url / ai_model.

RESOURCE POLICY:
- One attempt per call (max_retries=0), bounded by ai_timeout_seconds
- Low temperature and JSON response format for consistent structured output
- Failures surface as AIClientError; the gateway decides how to degrade
"""
import json
from typing import Any, Optional

import openai
from openai import OpenAI

from zhide.core.config import Settings
from zhide.core.errors import AIError
from zhide.core.logging import get_logger

logger = get_logger(__name__)


class AIClientError(AIError):
    """Transport-level failure: timeout, connection error, API error, empty reply."""
    default_detail = "AI model call failed"


class AIClient:
    """
    Wrapper for an OpenAI-compatible chat completion API.
    """

    def __init__(self, settings: Settings):
        self.configured = settings.ai_configured
        self.model = settings.ai_model
        self.client: Optional[OpenAI] = None
        if self.configured:
            self.client = OpenAI(
                api_key=settings.ai_api_key,
                base_url=settings.ai_base_url,
                timeout=settings.ai_timeout_seconds,
                max_retries=0
            )

    def complete(self, system_prompt: str, user_content: str, max_tokens: int = 1000) -> str:
        """
        Call the model and return the raw text reply.
        Raises AIClientError on any failure or an empty reply.
        """
        if self.client is None:
            raise AIClientError("AI model not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content}
                ],
                max_tokens=max_tokens,
                temperature=0.1,  # Low temp for consistent structured output
                response_format={"type": "json_object"}
            )
        except openai.APITimeoutError as e:
            raise AIClientError(f"AI model call timed out: {e}")
        except openai.OpenAIError as e:
            raise AIClientError(f"AI model call failed: {e}")

        if not response.choices:
            raise AIClientError("AI model returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise AIClientError("AI model returned an empty response")
        return content

    def test_connection(self) -> bool:
        """Test if the AI endpoint is reachable"""
        try:
            reply = self.complete(
                "You are a test assistant. Reply in JSON.",
                'Reply with exactly: {"status": "OK"}',
                max_tokens=10
            )
            return "OK" in reply.upper()
        except AIClientError as e:
            logger.warning("AI connection failed: %s", e)
            return False


def extract_json(text: str) -> Any:
    """
    Extract JSON from a model response.
    Handles cases where model wraps JSON in markdown code blocks.

    Raises json.JSONDecodeError (a ValueError) on malformed JSON.
    """
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]

    return json.loads(text.strip())
