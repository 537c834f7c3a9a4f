"""Service for persisting synthesis history under a capacity-bounded slot."""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..errors import DecodeError, StorageCapacityError
from ..schemas.history import HistoryItem, HistoryPage, HistoryRecord
from .slot_store import HISTORY_KEY, SlotStore

logger = logging.getLogger(__name__)

HISTORY_PAGE_SIZE = 10
MAX_HISTORY_PAGES = 3
EXPORT_VERSION = 1

_MEDIA_TYPES = {"wav": "audio/wav", "mp3": "audio/mpeg"}


def decode_audio(audio_base64: str) -> bytes:
    """Decode a stored payload, raising :class:`DecodeError` when unusable."""
    try:
        data = base64.b64decode(audio_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 audio payload: {exc}") from exc
    if not data:
        raise DecodeError("Audio payload is empty")
    return data


@dataclass
class PlaybackHandle:
    """Decoded audio owned by one history record until released."""

    record_id: str
    media_type: str
    data: bytes = field(repr=False)
    released: bool = False

    def release(self) -> None:
        self.data = b""
        self.released = True


class HistoryStore:
    """
    Bounded history of generated audio.

    The whole collection is stored as one JSON array (oldest first) under
    ``HISTORY_KEY``. Every mutation rewrites the full array. When the slot
    reports it is full, the oldest records are evicted one at a time until
    the write succeeds.

    A :class:`PlaybackHandle` exists for exactly the records currently in the
    collection; handles are released as records leave it.
    """

    def __init__(self, store: SlotStore):
        self._store = store
        self._lock = asyncio.Lock()
        self._records: List[HistoryRecord] = []
        self._handles: Dict[str, PlaybackHandle] = {}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse_items(self, items: List[Any]) -> List[tuple[HistoryRecord, bytes]]:
        """Validate raw entries, silently dropping the ones that fail."""
        parsed: List[tuple[HistoryRecord, bytes]] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            payload = item.get("audioBase64")
            if not isinstance(payload, str) or not payload:
                continue
            try:
                record = HistoryRecord.model_validate(item)
                audio = decode_audio(record.audio_base64)
            except (ValidationError, DecodeError) as exc:
                logger.debug(f"Dropping unreadable history entry: {exc}")
                continue
            parsed.append((record, audio))
        return parsed

    def _sync_handles(self, decoded: Optional[Dict[str, bytes]] = None) -> None:
        """Release handles of departed records and create missing ones."""
        live_ids = {record.id for record in self._records}
        for record_id in list(self._handles):
            if record_id not in live_ids:
                self._handles.pop(record_id).release()

        for record in self._records:
            if record.id in self._handles:
                continue
            if decoded is not None and record.id in decoded:
                audio = decoded[record.id]
            else:
                audio = decode_audio(record.audio_base64)
            self._handles[record.id] = PlaybackHandle(
                record_id=record.id,
                media_type=_MEDIA_TYPES[record.format],
                data=audio,
            )

    def _serialize(self, records: List[HistoryRecord]) -> str:
        return json.dumps([record.to_storage() for record in records])

    def _persist(self, records: List[HistoryRecord]) -> List[HistoryRecord]:
        """
        Write ``records``, evicting the oldest entries while the slot is full.

        Returns the collection that should be held in memory: what was
        written on success, or the unmodified input when nothing could be
        written. Eviction stops at the newest record; an empty array is
        never written in its place, so the last stored state survives.
        """
        trimmed = list(records)
        while True:
            try:
                self._store.set(HISTORY_KEY, self._serialize(trimmed))
            except StorageCapacityError as exc:
                if len(trimmed) <= 1:
                    break
                evicted = trimmed.pop(0)
                logger.warning(
                    f"History storage full ({exc.required}/{exc.capacity} bytes); "
                    f"evicting oldest entry {evicted.id}"
                )
                continue
            except OSError as exc:
                logger.error(f"Failed to persist history: {exc}")
                return list(records)
            return trimmed

        logger.warning("History storage is full; new entries will not be persisted.")
        return list(records)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load(self) -> List[HistoryRecord]:
        """Read the stored collection, dropping entries that fail validation."""
        async with self._lock:
            try:
                raw = self._store.get(HISTORY_KEY)
            except OSError as exc:
                logger.warning(f"Failed to read history: {exc}")
                raw = None

            items: List[Any] = []
            if raw:
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError as exc:
                    logger.warning(f"Stored history is not valid JSON: {exc}")
                    data = []
                if isinstance(data, list):
                    items = data

            parsed = self._parse_items(items)
            self._records = [record for record, _ in parsed]
            self._sync_handles({record.id: audio for record, audio in parsed})
            logger.info(f"Loaded {len(self._records)} history entries")
            return list(self._records)

    async def append(self, record: HistoryRecord) -> List[HistoryRecord]:
        """Add ``record`` as the newest entry and persist the collection."""
        async with self._lock:
            decoded = {record.id: decode_audio(record.audio_base64)}
            self._records = self._persist(self._records + [record])
            self._sync_handles(decoded)
            return list(self._records)

    async def remove(self, record_id: str) -> List[HistoryRecord]:
        """Remove one entry by id and release its playback handle."""
        async with self._lock:
            remaining = [r for r in self._records if r.id != record_id]
            self._records = self._persist(remaining)
            self._sync_handles()
            return list(self._records)

    async def clear(self) -> List[HistoryRecord]:
        """Empty the stored collection and release every handle."""
        async with self._lock:
            self._store.remove(HISTORY_KEY)
            self._records = []
            self._sync_handles()
            logger.info("Cleared history")
            return []

    @property
    def records(self) -> List[HistoryRecord]:
        """Current collection, oldest first."""
        return list(self._records)

    def newest_first(self) -> List[HistoryRecord]:
        # Ties on created_at keep the later append first
        return sorted(
            reversed(self._records), key=lambda r: r.created_at, reverse=True
        )

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def handle_for(self, record_id: str) -> Optional[PlaybackHandle]:
        return self._handles.get(record_id)

    @property
    def handle_ids(self) -> set[str]:
        return set(self._handles)

    def list_page(
        self,
        page: int = 1,
        page_size: int = HISTORY_PAGE_SIZE,
        max_pages: int = MAX_HISTORY_PAGES,
    ) -> HistoryPage:
        """Return one newest-first page; the page number is clamped."""
        ordered = self.newest_first()
        total_pages = max(1, math.ceil(len(ordered) / page_size))
        visible_pages = min(total_pages, max_pages)
        current = max(1, min(page, visible_pages))
        start = (current - 1) * page_size
        items = [
            HistoryItem.from_record(
                record,
                size_bytes=len(self._handles[record.id].data)
                if record.id in self._handles
                else 0,
            )
            for record in ordered[start : start + page_size]
        ]
        return HistoryPage(
            items=items,
            page=current,
            total_pages=visible_pages,
            total_items=len(ordered),
        )

    def export_json(self) -> str:
        payload = {
            "version": EXPORT_VERSION,
            "items": [record.to_storage() for record in self._records],
        }
        return json.dumps(payload, indent=2)

    async def import_json(self, raw: str) -> List[HistoryRecord]:
        """Replace the collection with the ``items`` of an export document."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid history export: {exc}") from exc

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ValueError("History export has no 'items' list")

        return await self.import_items(items)

    async def import_items(self, items: List[Any]) -> List[HistoryRecord]:
        """Replace the collection with ``items``, skipping unreadable entries."""
        async with self._lock:
            parsed = self._parse_items(items)
            self._records = self._persist([record for record, _ in parsed])
            self._sync_handles({record.id: audio for record, audio in parsed})
            logger.info(f"Imported {len(parsed)} history entries")
            return list(self._records)


__all__ = ["HistoryStore", "PlaybackHandle", "decode_audio"]
