"""API routes for user preferences and prompt presets."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ..errors import PresetError
from ..schemas.preferences import (
    Preferences,
    PreferencesUpdate,
    PresetCreatePayload,
    PresetDeletePayload,
    PresetList,
)
from ..services.preferences import PreferencesService, PromptPresetsService

router = APIRouter(prefix="/api", tags=["preferences"])


def get_preferences_service(request: Request) -> PreferencesService:
    service = getattr(request.app.state, "preferences_service", None)
    if service is None:  # pragma: no cover
        raise RuntimeError("Preferences service is not configured")
    return service


def get_presets_service(request: Request) -> PromptPresetsService:
    service = getattr(request.app.state, "presets_service", None)
    if service is None:  # pragma: no cover
        raise RuntimeError("Presets service is not configured")
    return service


def _preset_http_error(exc: PresetError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code,
        detail={"type": "error", "message": exc.user_message},
    )


@router.get("/preferences", response_model=Preferences)
async def read_preferences(
    service: PreferencesService = Depends(get_preferences_service),
) -> Preferences:
    return service.get_preferences()


@router.patch("/preferences", response_model=Preferences)
async def update_preferences(
    payload: PreferencesUpdate,
    service: PreferencesService = Depends(get_preferences_service),
) -> Preferences:
    return service.update_preferences(payload)


@router.get("/presets", response_model=PresetList)
async def list_presets(
    service: PromptPresetsService = Depends(get_presets_service),
) -> PresetList:
    return PresetList(presets=service.list_presets(), limit=service.limit)


@router.post("/presets", response_model=PresetList)
async def add_preset(
    payload: PresetCreatePayload,
    service: PromptPresetsService = Depends(get_presets_service),
) -> PresetList:
    try:
        presets = service.add_preset(payload.prompt)
    except PresetError as exc:
        raise _preset_http_error(exc) from exc
    return PresetList(presets=presets, limit=service.limit)


@router.delete("/presets", response_model=PresetList)
async def delete_preset(
    payload: PresetDeletePayload,
    service: PromptPresetsService = Depends(get_presets_service),
) -> PresetList:
    try:
        presets = service.delete_preset(payload.value)
    except PresetError as exc:
        raise _preset_http_error(exc) from exc
    return PresetList(presets=presets, limit=service.limit)


__all__ = ["router"]
