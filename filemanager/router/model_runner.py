# filemanager/router/model_runner.py
"""
AI completion gateway
- complete(prompt) -> text. 실패(타임아웃, 쿼터, 네트워크, 빈 응답)는 UpstreamUnavailable로 통일합니다.
"""
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from filemanager.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class CompletionGateway(Protocol):
    provider: str

    async def complete(self, prompt: str) -> str: ...


class GeminiGateway:
    """Google Generative Language REST API (``models/{model}:generateContent``)."""

    def __init__(self, api_key: str, model: str = "gemini-1.5-flash",
                 base_url: str = "https://generativelanguage.googleapis.com",
                 timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def provider(self) -> str:
        return f"gemini:{self.model}"

    def _payload(self, prompt: str) -> Dict[str, Any]:
        return {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
            raise UpstreamUnavailable(f"Gemini returned no completion ({reason})")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        if not text.strip():
            raise UpstreamUnavailable("Gemini returned an empty completion")
        return text

    async def complete(self, prompt: str) -> str:
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}
        logger.info(f"[Gateway] Requesting completion from {self.provider} ({len(prompt)} chars)")

        try:
            if self._client is not None:
                response = await self._client.post(url, json=self._payload(prompt), headers=headers,
                                                   timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=self._payload(prompt), headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"[Gateway] {self.provider} answered HTTP {e.response.status_code}")
            raise UpstreamUnavailable(f"AI gateway HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"[Gateway] {self.provider} request failed: {e!r}")
            raise UpstreamUnavailable(f"AI gateway unreachable: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailable("AI gateway returned a non-JSON body") from e

        if not isinstance(data, dict):
            raise UpstreamUnavailable("AI gateway returned an unexpected body")
        return self._extract_text(data)
