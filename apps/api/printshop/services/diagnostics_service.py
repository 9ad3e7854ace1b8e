"""AI-assisted error diagnosis for the owner.

Purely advisory: any failure reaching the model returns a fixed fallback
instead of raising, so a broken assistant never hides the original error.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from printshop.core.config import settings
from printshop.core.errors import JobActionError
from printshop.core.job_access import is_owner
from printshop.db.models import User
from printshop.schemas.error import Diagnosis

logger = logging.getLogger(__name__)


FALLBACK_DIAGNOSIS = Diagnosis(
    diagnosis="Could not reach the AI assistant.",
    suggestion=(
        "No diagnosis could be obtained from the AI assistant. "
        "Check the connection or the AI service configuration."
    ),
)

SYSTEM_PROMPT = (
    "You are a senior software engineer supporting a print-shop job tracking "
    "service (FastAPI, SQLAlchemy, S3 object storage). Diagnose the root cause "
    "of the failure you are given and propose a clear, actionable fix. "
    'Reply with JSON only: {"diagnosis": "...", "suggestion": "..."}'
)


@dataclass
class GeminiClient:
    """Minimal Gemini generateContent client."""

    api_key: str
    model: str = "gemini-1.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    async def generate(self, system: str, prompt: str) -> str:
        request_body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "systemInstruction": {"parts": [{"text": system}]},
            "generationConfig": {
                "temperature": 0.2,
                "maxOutputTokens": 1024,
                "responseMimeType": "application/json",
            },
        }
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=request_body,
            )
            response.raise_for_status()
            data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]


def get_client() -> GeminiClient | None:
    if not settings.AI_DIAGNOSIS_ENABLED or not settings.GEMINI_API_KEY:
        return None
    return GeminiClient(api_key=settings.GEMINI_API_KEY, model=settings.GEMINI_MODEL)


def build_prompt(error_message: str, code_context: str | None = None) -> str:
    prompt = f"Error: {error_message}"
    if code_context:
        prompt += f"\nCode context:\n```\n{code_context}\n```"
    return prompt + "\nGive a precise diagnosis and an executable fix."


async def diagnose_error(
    error_message: str,
    code_context: str | None = None,
    *,
    client: GeminiClient | None = None,
) -> Diagnosis:
    client = client or get_client()
    if client is None:
        return FALLBACK_DIAGNOSIS
    try:
        raw = await client.generate(SYSTEM_PROMPT, build_prompt(error_message, code_context))
        return Diagnosis.model_validate(json.loads(raw))
    except (httpx.HTTPError, KeyError, IndexError, ValueError, ValidationError) as e:
        logger.warning(f"AI diagnosis failed: {type(e).__name__}: {e}")
        return FALLBACK_DIAGNOSIS


def action_context(profile: User, component: str, action: str) -> str:
    """Code context string attached to a diagnosis request (identifiers only)."""
    return (
        f"Component: {component}, Action: {action}, User: {profile.email}, "
        f"Role: {profile.role}, Department: {profile.department_id}"
    )


async def diagnose_for(
    profile: User | None,
    error: JobActionError,
    *,
    component: str,
    action: str,
    client: GeminiClient | None = None,
) -> Diagnosis | None:
    """Diagnosis for the owner only; everyone else gets None."""
    if not is_owner(profile):
        return None
    if client is None and get_client() is None:
        return None
    return await diagnose_error(
        error.description,
        action_context(profile, component, action),
        client=client,
    )
