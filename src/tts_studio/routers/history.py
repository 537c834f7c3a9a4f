"""API routes for browsing and managing synthesis history."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response

from ..schemas.history import HistoryImportResult, HistoryPage
from ..services.history import HistoryStore

router = APIRouter(prefix="/api/history", tags=["history"])


def get_history_store(request: Request) -> HistoryStore:
    store = getattr(request.app.state, "history_store", None)
    if store is None:  # pragma: no cover
        raise RuntimeError("History store is not configured")
    return store


@router.get("", response_model=HistoryPage)
async def list_history(
    page: int = Query(default=1, ge=1),
    store: HistoryStore = Depends(get_history_store),
) -> HistoryPage:
    """Newest-first history, ten entries per page."""
    return store.list_page(page)


@router.get("/export")
async def export_history(
    store: HistoryStore = Depends(get_history_store),
) -> Response:
    return Response(
        content=store.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="tts-history.json"'},
    )


@router.post("/import", response_model=HistoryImportResult)
async def import_history(
    document: dict[str, Any] = Body(...),
    store: HistoryStore = Depends(get_history_store),
) -> HistoryImportResult:
    items = document.get("items")
    if not isinstance(items, list):
        raise HTTPException(status_code=400, detail="History export has no 'items' list")
    records = await store.import_items(items)
    return HistoryImportResult(
        imported=len(items),
        stored=len(records),
    )


@router.get("/{record_id}/audio")
async def download_audio(
    record_id: str,
    store: HistoryStore = Depends(get_history_store),
) -> Response:
    record = store.get(record_id)
    handle = store.handle_for(record_id)
    if record is None or handle is None:
        raise HTTPException(status_code=404, detail="History entry not found")
    return Response(
        content=handle.data,
        media_type=handle.media_type,
        headers={"Content-Disposition": f'attachment; filename="{record.file_name}"'},
    )


@router.delete("/{record_id}", response_model=dict)
async def delete_entry(
    record_id: str,
    store: HistoryStore = Depends(get_history_store),
) -> dict:
    if store.get(record_id) is None:
        raise HTTPException(status_code=404, detail="History entry not found")
    remaining = await store.remove(record_id)
    return {"deleted": True, "remaining": len(remaining)}


@router.delete("", response_model=dict)
async def clear_history(
    store: HistoryStore = Depends(get_history_store),
) -> dict:
    await store.clear()
    return {"type": "success", "message": "History cleared"}


__all__ = ["router"]
