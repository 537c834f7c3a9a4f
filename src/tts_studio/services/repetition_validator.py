"""Client for the optional post-synthesis repetition check."""

from __future__ import annotations

import base64
import logging
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..errors import UpstreamError
from ..schemas.synthesis import ValidationReport

logger = logging.getLogger(__name__)


class AudioValidator(Protocol):
    async def validate(self, audio: bytes, threshold: float) -> ValidationReport: ...


class RepetitionValidatorClient:
    """POST the synthesized audio to an ASR service that scores repetition."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self._settings = settings
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._settings.validator_url is not None

    async def validate(self, audio: bytes, threshold: float) -> ValidationReport:
        if self._settings.validator_url is None:
            raise UpstreamError("Repetition validator URL is not configured")

        payload = {
            "audioBase64": base64.b64encode(audio).decode("ascii"),
            "threshold": threshold,
        }
        url = str(self._settings.validator_url)

        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload)
            else:
                async with httpx.AsyncClient(
                    timeout=self._settings.validator_timeout
                ) as client:
                    response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Validation request failed: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamError(
                f"Validation failed: {response.text}", status_code=response.status_code
            )

        try:
            return ValidationReport.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise UpstreamError(f"Unexpected validation response: {exc}") from exc


__all__ = ["AudioValidator", "RepetitionValidatorClient"]
