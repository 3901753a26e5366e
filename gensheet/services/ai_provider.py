"""AI Provider abstraction layer.

Google Gemini behind a small provider interface so the generator can be
exercised with a stub in tests.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from gensheet.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    """A single message in a conversation."""

    role: str  # 'system', 'user', 'assistant'
    content: str


@dataclass
class ChatResponse:
    """Response from an AI provider."""

    content: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    model: str


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    @abstractmethod
    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ) -> ChatResponse:
        """
        Send a chat completion request.

        Raises:
            httpx.HTTPStatusError: non-2xx from the provider (429 = quota)
            httpx.HTTPError: transport failure or timeout
        """
        pass


class GeminiProvider(AIProvider):
    """Google Gemini generative-language API provider."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "gemini-2.0-flash-exp",
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout
        self.base_url = "https://generativelanguage.googleapis.com/v1beta"

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ) -> ChatResponse:
        model = model or self.default_model

        # Convert messages to Gemini format
        # Gemini uses 'user' and 'model' roles, system goes in systemInstruction
        system_instruction = None
        contents = []

        for msg in messages:
            if msg.role == "system":
                system_instruction = msg.content
            else:
                role = "model" if msg.role == "assistant" else "user"
                contents.append({"role": role, "parts": [{"text": msg.content}]})

        request_body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": temperature,
                "topP": 0.8,
                "topK": 40,
                "maxOutputTokens": max_tokens,
            },
        }

        if system_instruction:
            request_body["systemInstruction"] = {
                "parts": [{"text": system_instruction}]
            }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/models/{model}:generateContent",
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=request_body,
            )
            response.raise_for_status()
            data = response.json()

        # Extract response content
        content = data["candidates"][0]["content"]["parts"][0]["text"]

        usage = data.get("usageMetadata", {})
        prompt_tokens = usage.get("promptTokenCount", 0)
        completion_tokens = usage.get("candidatesTokenCount", 0)

        return ChatResponse(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            model=model,
        )


def get_provider(api_key: str | None = None, model: str | None = None) -> AIProvider:
    """Factory for the configured provider."""
    return GeminiProvider(
        api_key or settings.GEMINI_API_KEY,
        default_model=model or settings.GEMINI_MODEL,
        timeout=settings.AI_TIMEOUT_SECONDS,
    )
