"""
TEFA AI — Model Transport
=========================
The assistant talks to a model through an AssistantTransport.
GeminiTransport is the production one: a single generateContent
call over HTTPS.
"""

from __future__ import annotations

from typing import Optional, Protocol

import httpx

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class TransportError(Exception):
    """The model could not produce an answer."""


class AssistantTransport(Protocol):
    def generate(self, system_prompt: str, user_prompt: str) -> str:
        ...


class GeminiTransport:
    """Client for the Gemini generateContent REST endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        *,
        max_output_tokens: int = 250,
        timeout: float = 15.0,
        base_url: str = GEMINI_BASE_URL,
        client: Optional[httpx.Client] = None,
    ):
        if not api_key:
            raise TransportError("AI API key is required")
        self.api_key = api_key
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self._client = client

    def _body(self, system_prompt: str, user_prompt: str) -> dict:
        return {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {"maxOutputTokens": self.max_output_tokens},
        }

    def _post(self, client: httpx.Client, body: dict) -> dict:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        response = client.post(
            url,
            json=body,
            headers={"x-goog-api-key": self.api_key},
        )
        response.raise_for_status()
        return response.json()

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        body = self._body(system_prompt, user_prompt)
        try:
            if self._client is not None:
                data = self._post(self._client, body)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    data = self._post(client, body)
        except httpx.HTTPError as exc:
            raise TransportError(f"Gemini request failed: {exc}") from exc
        return extract_text(data)


def extract_text(data: dict) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = data.get("candidates") or []
    if not candidates:
        raise TransportError("Gemini returned no candidates")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts)
    if not text:
        raise TransportError("Gemini returned an empty answer")
    return text
