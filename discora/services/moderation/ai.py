"""
Discora - AI Moderation
=======================

Gemini-backed message classifier.

The classifier fails closed to "OK": a model error, timeout, or
unexpected reply never removes a message.
"""

import asyncio
from typing import Any, Optional

from google import genai
from google.genai import types as genai_types

from discora.core.constants import AI_VERDICT_FLAG, AI_VERDICT_OK
from discora.core.logger import logger


SYSTEM_INSTRUCTION = (
    "You are an AI moderator for a Discord server. Your task is to determine if a "
    "message violates community guidelines (e.g., contains hate speech, spam, explicit "
    "content, or excessive toxicity). Respond with only one of two words: 'FLAG' if the "
    "message is inappropriate, or 'OK' if the message is acceptable. Do not provide any "
    "explanation or other text."
)

CLASSIFY_TIMEOUT = 15.0  # seconds


class GeminiModerator:
    """Classifies message text as FLAG or OK."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        client: Any = None,
        timeout: float = CLASSIFY_TIMEOUT,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self._client = client if client is not None else (genai.Client(api_key=api_key) if api_key else None)

    @property
    def available(self) -> bool:
        return self._client is not None

    def _generate_sync(self, content: str) -> Any:
        config = genai_types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            temperature=0,
        )
        return self._client.models.generate_content(model=self.model, contents=content, config=config)

    async def classify(self, content: str) -> str:
        """Return ``FLAG`` or ``OK`` for a message."""
        if not self.available or not content.strip():
            return AI_VERDICT_OK

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(self._generate_sync, content),
                timeout=self.timeout,
            )
            verdict = (getattr(response, "text", None) or "").strip().upper()
        except Exception as e:
            logger.error_tree("AI Moderation Call Failed", e, [
                ("Content", content[:50]),
            ])
            return AI_VERDICT_OK

        return AI_VERDICT_FLAG if verdict.startswith(AI_VERDICT_FLAG) else AI_VERDICT_OK
