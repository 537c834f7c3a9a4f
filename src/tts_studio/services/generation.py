"""End-to-end generation flow: compose, synthesize, validate, record."""

from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..config import Settings
from ..errors import EmptyInputError, MissingCredentialError
from ..schemas.history import HistoryItem, HistoryRecord
from ..schemas.preferences import PreferencesUpdate
from ..schemas.synthesis import (
    AssetPayload,
    Notice,
    SynthesisRequest,
    SynthesisResponse,
    ValidationReport,
)
from ..schemas.voices import filter_voices, find_voice, resolve_model
from .history import HistoryStore
from .preferences import PreferencesService
from .prompt import compose_text
from .repetition_validator import AudioValidator
from .tts.synthesizer import Progress, ProgressCallback, SynthesisOrchestrator
from .tts.wav import AudioAsset

logger = logging.getLogger(__name__)

DEFAULT_REPETITION_THRESHOLD = 0.3
DEFAULT_SPEED_CONTROL = "moderate"


def _asset_payload(asset: AudioAsset) -> AssetPayload:
    return AssetPayload(
        file_name=asset.file_name,
        format=asset.format,
        media_type=asset.media_type,
        size_bytes=asset.size,
        audio_base64=asset.to_base64(),
    )


def _timestamped_file_name(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    stamp = moment.strftime("%Y-%m-%dT%H-%M-%S.") + f"{moment.microsecond // 1000:03d}Z"
    return f"tts-{stamp}.wav"


class GenerationService:
    """
    Run one synthesis request the way the UI does.

    Unset request fields fall back to saved preferences. After a successful
    single-asset synthesis the optional repetition check runs, a history
    record is appended, and the preferences used are saved. The ``separate``
    outcome saves preferences but creates no history record.
    """

    def __init__(
        self,
        settings: Settings,
        orchestrator: SynthesisOrchestrator,
        history: HistoryStore,
        preferences: PreferencesService,
        validator: Optional[AudioValidator] = None,
    ):
        self._settings = settings
        self._orchestrator = orchestrator
        self._history = history
        self._preferences = preferences
        self._validator = validator

    def _resolve_voice(self, request: SynthesisRequest, fallback: Optional[str]) -> str:
        candidates = filter_voices(request.gender_filter)
        voice_id = request.voice_id or fallback
        if voice_id and any(v.id == voice_id for v in candidates):
            return voice_id
        return candidates[0].id if candidates else (voice_id or "")

    async def _validate(
        self, asset: AudioAsset, threshold: float, notices: List[Notice]
    ) -> Optional[ValidationReport]:
        if self._validator is None:
            return None
        try:
            report = await self._validator.validate(asset.data, threshold)
        except Exception as exc:
            logger.warning(f"Repetition validation skipped: {exc}")
            return None

        if report.has_repetition:
            notices.append(
                Notice(
                    type="error",
                    message=(
                        "Repetition detected "
                        f"(score: {report.repetition_score * 100:.0f}%)"
                    ),
                )
            )
            logger.warning(f"Repeated phrases: {report.repeated_phrases}")
        else:
            notices.append(Notice(type="success", message="No repetition detected"))
        return report

    async def generate(
        self,
        request: SynthesisRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SynthesisResponse:
        if not request.text.strip():
            raise EmptyInputError()
        if not self._settings.has_api_key:
            raise MissingCredentialError()

        prefs = self._preferences.get_preferences()
        prompt = request.prompt if request.prompt is not None else (prefs.prompt or "")
        speed_control = (
            request.speed_control or prefs.speed_control or DEFAULT_SPEED_CONTROL
        )
        voice_id = self._resolve_voice(request, prefs.last_voice_id)
        model = resolve_model(request.model or prefs.model, self._settings.default_model)
        max_chars = (
            request.max_chars or prefs.max_chars or self._settings.default_max_chars
        )
        merge_audio = _first_set(request.merge_audio, prefs.merge_audio, True)
        validate = _first_set(
            request.validate_repetition, prefs.validate_repetition, True
        )
        threshold = _first_set(
            request.repetition_threshold,
            prefs.repetition_threshold,
            DEFAULT_REPETITION_THRESHOLD,
        )

        final_text = compose_text(request.text, prompt, speed_control)
        if not final_text:
            raise EmptyInputError("The text to send is empty.")

        chunk_total = 0

        async def _track(progress: Progress) -> None:
            nonlocal chunk_total
            chunk_total = progress.total
            if on_progress is not None:
                outcome = on_progress(progress)
                if inspect.isawaitable(outcome):
                    await outcome

        file_name = _timestamped_file_name()
        result = await self._orchestrator.synthesize(
            final_text,
            max_chars=max_chars,
            voice_id=voice_id,
            merge_strategy="merge" if merge_audio else "separate",
            on_progress=_track,
            model_id=model,
            file_name=file_name,
        )

        used = PreferencesUpdate(
            last_voice_id=voice_id,
            last_gender=request.gender_filter,
            model=model,
            prompt=prompt,
            speed_control=speed_control,
            max_chars=max_chars,
            merge_audio=merge_audio,
            validate_repetition=validate,
            repetition_threshold=threshold,
        )

        notices: List[Notice] = []
        if isinstance(result, list):
            # Separate parts are returned for download only; no history entry.
            self._preferences.update_preferences(used)
            notices.append(
                Notice(type="success", message=f"Generated {len(result)} files")
            )
            return SynthesisResponse(
                chunks=len(result),
                parts=[_asset_payload(asset) for asset in result],
                notices=notices,
            )

        validation = None
        if validate:
            validation = await self._validate(result, threshold, notices)

        voice = find_voice(voice_id)
        record = HistoryRecord(
            file_name=result.file_name,
            prompt=prompt or None,
            text=request.text,
            format=result.format,
            voice_id=voice_id or None,
            voice_label=voice.label if voice else None,
            audio_base64=result.to_base64(),
        )
        await self._history.append(record)
        self._preferences.update_preferences(used)

        notices.append(Notice(type="success", message="Audio generated"))
        return SynthesisResponse(
            chunks=chunk_total,
            asset=_asset_payload(result),
            history_item=HistoryItem.from_record(record, size_bytes=result.size),
            validation=validation,
            notices=notices,
        )


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


__all__ = ["GenerationService"]
