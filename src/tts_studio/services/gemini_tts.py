"""Gemini audio generation adapter returning raw PCM for one chunk of text."""

import base64
import binascii
import logging
from typing import Any, Optional

import httpx

from ..config import Settings
from ..errors import MissingCredentialError, UpstreamError

logger = logging.getLogger(__name__)


class GeminiTTSClient:
    """
    Client for Gemini audio generation via the ``generateContent`` endpoint.

    Gemini returns 24 kHz mono 16-bit PCM as base64 inline data. One call is
    made per chunk; no retries are attempted here.

    Uses a singleton httpx.AsyncClient for connection pooling across requests.
    """

    _http_client: Optional[httpx.AsyncClient] = None

    def __init__(self, settings: Settings):
        self._settings = settings

    @classmethod
    def get_http_client(cls, timeout: float = 120.0) -> httpx.AsyncClient:
        """Get singleton HTTP client for connection pooling."""
        if cls._http_client is None:
            cls._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(timeout, connect=10.0)
            )
            logger.info("Created singleton httpx.AsyncClient for Gemini TTS")
        return cls._http_client

    @classmethod
    async def close_http_client(cls) -> None:
        """Close the singleton HTTP client. Call on app shutdown."""
        if cls._http_client is not None:
            await cls._http_client.aclose()
            cls._http_client = None
            logger.info("Closed Gemini TTS HTTP client")

    @property
    def _base_url(self) -> str:
        return str(self._settings.gemini_base_url).rstrip("/")

    def _api_key(self) -> str:
        key = self._settings.gemini_api_key
        if key is None:
            raise MissingCredentialError()
        value = key.get_secret_value().strip()
        if not value:
            raise MissingCredentialError()
        return value

    @staticmethod
    def build_payload(text: str, voice_id: str) -> dict[str, Any]:
        config: dict[str, Any] = {"responseModalities": ["AUDIO"]}
        if voice_id:
            config["speechConfig"] = {
                "voiceConfig": {
                    "prebuiltVoiceConfig": {
                        "voiceName": voice_id[:1].upper() + voice_id[1:],
                    }
                }
            }
        return {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": config,
        }

    @staticmethod
    def extract_audio(body: dict[str, Any]) -> bytes:
        """Return decoded PCM from the first inline audio part of a response."""
        candidates = body.get("candidates") or []
        if candidates:
            content = candidates[0].get("content") or {}
            for part in content.get("parts") or []:
                inline = part.get("inlineData") or {}
                data = inline.get("data")
                if data:
                    try:
                        return base64.b64decode(data, validate=True)
                    except (binascii.Error, ValueError) as exc:
                        raise UpstreamError(
                            f"Malformed audio content in Gemini response: {exc}"
                        ) from exc
        raise UpstreamError("No audio content in Gemini response")

    async def synthesize(
        self, text: str, voice_id: str, model_id: Optional[str] = None
    ) -> bytes:
        """Synthesize one chunk and return its raw PCM bytes."""
        model = model_id or self._settings.default_model
        url = f"{self._base_url}/models/{model}:generateContent"
        payload = self.build_payload(text, voice_id)

        client = self.get_http_client(self._settings.request_timeout)
        try:
            response = await client.post(
                url,
                params={"key": self._api_key()},
                headers={"Content-Type": "application/json"},
                json=payload,
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Gemini API request failed: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamError(
                f"Gemini API Error: {response.text}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Invalid JSON from Gemini API: {exc}") from exc

        audio = self.extract_audio(body)
        logger.info(
            f"Gemini TTS synthesized {len(audio)} bytes for text: {text[:50]}..."
        )
        return audio


__all__ = ["GeminiTTSClient"]
