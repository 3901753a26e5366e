"""AI checksheet generation.

Turns a free-text request into a checksheet structure through Gemini,
and reviews existing checksheets for improvements. One provider call per
user action; no retries.
"""

import json
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from gensheet.core.config import settings
from gensheet.schemas.ai import GeneratedChecksheet, Suggestion
from gensheet.services import ai_provider
from gensheet.services.ai_provider import ChatMessage

logger = logging.getLogger(__name__)


QUOTA_EXCEEDED_MESSAGE = (
    "AI quota exceeded. Please wait a moment and try again, or create checksheet manually."
)
INVALID_RESPONSE_MESSAGE = (
    "AI returned an invalid checksheet. Please try again or create checksheet manually."
)


class AIGenerationError(Exception):
    """Base exception for AI generation failures; `status_code` is the HTTP mapping."""

    status_code = 502
    default_message = "Failed to generate checksheet"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AINotConfiguredError(AIGenerationError):
    status_code = 503
    default_message = "AI generation is not configured"


class AIQuotaExceededError(AIGenerationError):
    status_code = 429
    default_message = QUOTA_EXCEEDED_MESSAGE


class AIInvalidResponseError(AIGenerationError):
    status_code = 502
    default_message = INVALID_RESPONSE_MESSAGE


class AIProviderError(AIGenerationError):
    status_code = 502
    default_message = "Failed to generate checksheet"


# =============================================================================
# Prompts
# =============================================================================

CHECKSHEET_GENERATION_PROMPT = """You are an expert in creating comprehensive checksheets for various industries.
Generate a detailed checksheet based on the user's requirements.

Return ONLY a valid JSON object with this exact structure:
{
  "title": "Checksheet Title",
  "description": "Brief description",
  "category": "manufacturing|construction|healthcare|IT|safety|etc",
  "industry": "specific industry",
  "checkpoints": [
    {
      "title": "Checkpoint title",
      "description": "Detailed description",
      "fieldType": "CHECKBOX|NUMBER|TEXT|TEXTAREA|PHOTO|FILE|DROPDOWN|MULTISELECT|GPS|SIGNATURE|DATE|TIME|DATETIME|RATING",
      "section": "Section name for grouping",
      "isRequired": true,
      "config": {}
    }
  ],
  "tags": ["tag1", "tag2"]
}

Config by field type:
- NUMBER: {"min": 0, "max": 100, "unit": "C"}
- DROPDOWN / MULTISELECT: {"options": ["Option 1", "Option 2"]}
- RATING: {"max": 5}
- every other type: {}

Available field types:
- CHECKBOX: Simple yes/no
- NUMBER: Numeric input (temperature, pressure, count, etc.)
- TEXT: Short text input
- TEXTAREA: Long text
- PHOTO: Photo upload requirement
- FILE: Document upload
- DROPDOWN: Single selection
- MULTISELECT: Multiple selection
- GPS: Location tracking
- SIGNATURE: Digital signature
- DATE: Date picker
- TIME: Time picker
- DATETIME: Date and time
- RATING: Star rating

Guidelines:
1. Create 10-20 relevant checkpoints based on best practices
2. Group checkpoints into logical sections
3. Include appropriate field types for each checkpoint
4. Add validation rules where necessary
5. Make critical items required
6. Include photo requirements for visual verification
7. Add GPS for location-based checks if relevant"""

SUGGESTIONS_PROMPT = """Analyze this checksheet and suggest improvements based on industry best practices.

Current checksheet:
{checksheet}

Provide suggestions for:
1. Missing critical checkpoints
2. Better field types for specific checks
3. Additional validation rules
4. Grouping improvements
5. Industry-specific enhancements

Return ONLY a JSON array of suggestions:
[
  {{
    "type": "add|modify|remove",
    "checkpoint": "checkpoint title or new checkpoint",
    "suggestion": "detailed suggestion",
    "priority": "high|medium|low"
  }}
]"""

_suggestions_adapter = TypeAdapter(list[Suggestion])


# =============================================================================
# Parsing
# =============================================================================

def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` or ``` ... ``` markdown fence."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_json_payload(content: str) -> Any:
    """
    Parse the model output as JSON after stripping fences.

    Raises:
        AIInvalidResponseError: not valid JSON
    """
    try:
        return json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse AI response as JSON: {e}")
        raise AIInvalidResponseError() from e


def parse_generated_checksheet(content: str) -> dict[str, Any]:
    """
    Parse and validate a generated checksheet.

    The returned object is exactly what the model produced; validation
    only decides whether it is usable.
    """
    data = parse_json_payload(content)
    if not isinstance(data, dict):
        raise AIInvalidResponseError()
    try:
        GeneratedChecksheet.model_validate(data)
    except ValidationError as e:
        logger.warning(f"AI checksheet failed schema validation ({e.error_count()} errors)")
        raise AIInvalidResponseError() from e
    return data


# =============================================================================
# Provider calls
# =============================================================================

async def _call_provider(prompt: str, temperature: float) -> str:
    if not settings.ai_configured:
        raise AINotConfiguredError()

    provider = ai_provider.get_provider()
    try:
        response = await provider.chat(
            [ChatMessage(role="user", content=prompt)],
            temperature=temperature,
        )
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 429:
            logger.warning("Gemini quota exceeded")
            raise AIQuotaExceededError() from e
        logger.error(f"Gemini request failed with status {e.response.status_code}")
        raise AIProviderError() from e
    except httpx.HTTPError as e:
        logger.error(f"Gemini request failed: {type(e).__name__}")
        raise AIProviderError() from e
    except (KeyError, IndexError, TypeError) as e:
        logger.error(f"Unexpected Gemini response shape: {e}")
        raise AIProviderError() from e
    return response.content


async def generate_checksheet(prompt: str, category: str | None = None) -> dict[str, Any]:
    """
    Generate a checksheet structure from a natural-language request.

    Raises:
        AIGenerationError subclass: see module error classes
    """
    full_prompt = f"{CHECKSHEET_GENERATION_PROMPT}\n\nUser request: {prompt}"
    if category:
        full_prompt += f"\nCategory: {category}"

    content = await _call_provider(full_prompt, temperature=0.7)
    data = parse_generated_checksheet(content)
    logger.info(f"AI generated checksheet with {len(data['checkpoints'])} checkpoints")
    return data


async def suggest_improvements(checksheet: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Ask the model for improvement suggestions on an existing checksheet.

    Raises:
        AIGenerationError subclass: see module error classes
    """
    prompt = SUGGESTIONS_PROMPT.format(checksheet=json.dumps(checksheet, indent=2, default=str))
    content = await _call_provider(prompt, temperature=0.4)

    data = parse_json_payload(content)
    if not isinstance(data, list):
        raise AIInvalidResponseError("AI returned invalid suggestions. Please try again.")
    try:
        _suggestions_adapter.validate_python(data)
    except ValidationError as e:
        raise AIInvalidResponseError("AI returned invalid suggestions. Please try again.") from e
    return data
