"""Synthesis API routes, including SSE progress streaming."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sse_starlette.sse import EventSourceResponse

from ..errors import SynthesisError, TTSStudioError
from ..schemas.synthesis import SynthesisRequest, SynthesisResponse
from ..schemas.voices import MODELS, ModelOption, Voice, filter_voices
from ..services.generation import GenerationService
from ..services.tts.synthesizer import Progress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tts", tags=["tts"])

# Chunk loops are not cancelled when a stream client disconnects.
_background_tasks: set[asyncio.Task] = set()


def get_generation_service(request: Request) -> GenerationService:
    service = getattr(request.app.state, "generation_service", None)
    if service is None:  # pragma: no cover
        raise RuntimeError("Generation service is not configured")
    return service


def error_body(exc: TTSStudioError) -> dict[str, Any]:
    """Notification payload for a user-facing failure."""
    body: dict[str, Any] = {"type": "error", "message": exc.user_message}
    if isinstance(exc, SynthesisError):
        body["chunkIndex"] = exc.chunk_index
        body["totalChunks"] = exc.total_chunks
    return body


@router.get("/voices", response_model=List[Voice])
async def list_voices(
    gender: Optional[str] = Query(default=None),
) -> List[Voice]:
    return filter_voices(gender)


@router.get("/models", response_model=List[ModelOption])
async def list_models() -> List[ModelOption]:
    return list(MODELS)


@router.post("/synthesize", response_model=SynthesisResponse)
async def synthesize(
    payload: SynthesisRequest,
    service: GenerationService = Depends(get_generation_service),
) -> SynthesisResponse:
    """Synthesize text and return the audio inline as base64."""
    try:
        return await service.generate(payload)
    except TTSStudioError as exc:
        raise HTTPException(status_code=exc.status_code, detail=error_body(exc)) from exc


@router.post("/synthesize/stream", response_model=None)
async def synthesize_stream(
    payload: SynthesisRequest,
    service: GenerationService = Depends(get_generation_service),
) -> EventSourceResponse:
    """Stream ``progress`` events, then a final ``result`` or ``error`` event."""

    queue: asyncio.Queue = asyncio.Queue()

    async def on_progress(progress: Progress) -> None:
        await queue.put(
            ("progress", {"current": progress.current, "total": progress.total})
        )

    async def run() -> None:
        try:
            response = await service.generate(payload, on_progress)
            await queue.put(("result", response.model_dump(by_alias=True, mode="json")))
        except TTSStudioError as exc:
            await queue.put(("error", error_body(exc)))
        except Exception as exc:
            logger.error(f"Synthesis stream failed: {exc}", exc_info=True)
            await queue.put(("error", {"type": "error", "message": str(exc)}))
        finally:
            await queue.put(None)

    task = asyncio.create_task(run())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    async def event_publisher():
        while True:
            item = await queue.get()
            if item is None:
                break
            event, data = item
            yield {"event": event, "data": json.dumps(data)}

    return EventSourceResponse(event_publisher())


__all__ = ["router"]
