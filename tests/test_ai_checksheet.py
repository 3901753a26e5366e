"""AI checksheet generation with a stubbed provider."""

import json

import httpx
import pytest

from gensheet.core.config import settings
from gensheet.services import ai_checksheet_service, ai_provider
from gensheet.services.ai_checksheet_service import (
    QUOTA_EXCEEDED_MESSAGE,
    AIInvalidResponseError,
    parse_generated_checksheet,
    strip_code_fences,
)
from gensheet.services.ai_provider import ChatResponse


GENERATED = {
    "title": "Cold Storage Inspection",
    "description": "Daily walk-in freezer checks",
    "category": "food",
    "industry": "hospitality",
    "checkpoints": [
        {
            "title": "Freezer temperature",
            "fieldType": "NUMBER",
            "section": "Temperature",
            "isRequired": True,
            "config": {"min": -30, "max": -15, "unit": "C"},
            "hint": "Read the outside display",
        },
        {"title": "Door seal", "fieldType": "CHECKBOX", "section": "Equipment", "isRequired": True, "config": {}},
    ],
    "tags": ["food", "cold-chain"],
}


class StubProvider:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.prompts = []

    async def chat(self, messages, model=None, temperature=0.7, max_tokens=8192):
        self.prompts.append(messages[-1].content)
        if self.error is not None:
            raise self.error
        return ChatResponse(
            content=self.content, prompt_tokens=10, completion_tokens=20, total_tokens=30, model="stub"
        )


@pytest.fixture
def stub_provider(monkeypatch):
    """Install a provider stub and pretend the API key is configured."""
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")

    def _install(content=None, error=None):
        provider = StubProvider(content=content, error=error)
        monkeypatch.setattr(ai_provider, "get_provider", lambda *args, **kwargs: provider)
        return provider

    return _install


def _http_status_error(status_code):
    request = httpx.Request("POST", "https://generativelanguage.googleapis.com/v1beta/models/x:generateContent")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


# =============================================================================
# Parsing
# =============================================================================

def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n[1]\n```') == "[1]"
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_parsed_checksheet_is_returned_unchanged():
    content = f"```json\n{json.dumps(GENERATED)}\n```"
    assert parse_generated_checksheet(content) == GENERATED


@pytest.mark.parametrize(
    "content",
    [
        "Sure! Here is your checksheet.",
        json.dumps([GENERATED]),
        json.dumps({**GENERATED, "checkpoints": []}),
        json.dumps({**GENERATED, "checkpoints": [{"title": "X", "fieldType": "SLIDER"}]}),
    ],
)
def test_unusable_output_is_rejected(content):
    with pytest.raises(AIInvalidResponseError):
        parse_generated_checksheet(content)


# =============================================================================
# Service
# =============================================================================

@pytest.mark.asyncio
async def test_generate_includes_request_and_category(stub_provider):
    provider = stub_provider(content=json.dumps(GENERATED))
    data = await ai_checksheet_service.generate_checksheet("freezer checks", category="food")

    assert data == GENERATED
    assert "User request: freezer checks" in provider.prompts[0]
    assert "Category: food" in provider.prompts[0]


@pytest.mark.asyncio
async def test_not_configured_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    with pytest.raises(ai_checksheet_service.AINotConfiguredError):
        await ai_checksheet_service.generate_checksheet("anything")


# =============================================================================
# Endpoints
# =============================================================================

@pytest.mark.asyncio
async def test_generate_endpoint_returns_raw_object(inspector_client, stub_provider):
    stub_provider(content=f"```json\n{json.dumps(GENERATED)}\n```")

    resp = await inspector_client.post("/ai/generate", json={"prompt": "cold storage"})
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"success": True, "data": GENERATED}


@pytest.mark.asyncio
async def test_quota_exceeded_maps_to_429(inspector_client, stub_provider):
    stub_provider(error=_http_status_error(429))

    resp = await inspector_client.post("/ai/generate", json={"prompt": "cold storage"})
    assert resp.status_code == 429
    assert resp.json()["detail"] == QUOTA_EXCEEDED_MESSAGE


@pytest.mark.asyncio
async def test_provider_failure_maps_to_502(inspector_client, stub_provider):
    stub_provider(error=_http_status_error(500))

    resp = await inspector_client.post("/ai/generate", json={"prompt": "cold storage"})
    assert resp.status_code == 502


@pytest.mark.asyncio
async def test_invalid_output_maps_to_502(inspector_client, stub_provider):
    stub_provider(content="I cannot help with that")

    resp = await inspector_client.post("/ai/generate", json={"prompt": "cold storage"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == ai_checksheet_service.INVALID_RESPONSE_MESSAGE


@pytest.mark.asyncio
async def test_unconfigured_endpoint_is_503(inspector_client, monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    resp = await inspector_client.post("/ai/generate", json={"prompt": "cold storage"})
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_viewer_cannot_generate(viewer_client, stub_provider):
    stub_provider(content=json.dumps(GENERATED))
    resp = await viewer_client.post("/ai/generate", json={"prompt": "cold storage"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_suggestions_for_saved_checksheet(inspector_client, inspector, make_checksheet, stub_provider):
    checksheet = make_checksheet(
        inspector,
        title="Freezer Check",
        checkpoints=[{"title": "Temperature", "field_type": "NUMBER"}],
    )
    suggestions = [
        {"type": "add", "checkpoint": "Door seal", "suggestion": "Check the seal daily", "priority": "high"},
    ]
    provider = stub_provider(content=json.dumps(suggestions))

    resp = await inspector_client.post("/ai/suggestions", json={"checksheet_id": str(checksheet.id)})
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"success": True, "suggestions": suggestions}
    assert "Freezer Check" in provider.prompts[0]
    assert "Temperature" in provider.prompts[0]


@pytest.mark.asyncio
async def test_suggestions_need_a_checksheet(inspector_client, stub_provider):
    stub_provider(content="[]")
    resp = await inspector_client.post("/ai/suggestions", json={})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_malformed_suggestions_are_rejected(inspector_client, stub_provider):
    stub_provider(content=json.dumps([{"type": "rename", "checkpoint": "x", "suggestion": "y"}]))
    resp = await inspector_client.post(
        "/ai/suggestions", json={"checksheet": {"title": "Draft", "checkpoints": []}}
    )
    assert resp.status_code == 502
