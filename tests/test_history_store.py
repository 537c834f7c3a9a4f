import base64
import json
import logging

import pytest

from tts_studio.errors import DecodeError
from tts_studio.schemas.history import HistoryRecord
from tts_studio.services.history import HistoryStore, decode_audio
from tts_studio.services.slot_store import HISTORY_KEY, MemorySlotStore


def make_record(index: int, audio_size: int = 8) -> HistoryRecord:
    audio = bytes([index % 256]) * audio_size
    return HistoryRecord(
        id=f"rec-{index}",
        file_name=f"tts-{index}.wav",
        created_at=1_000 + index,
        text=f"text {index}",
        voice_id="kore",
        audio_base64=base64.b64encode(audio).decode("ascii"),
    )


class BrokenStore(MemorySlotStore):
    def set(self, key: str, value: str) -> None:
        raise OSError("disk unavailable")


def stored_ids(store: MemorySlotStore) -> list[str]:
    raw = store.get(HISTORY_KEY)
    return [item["id"] for item in json.loads(raw)] if raw else []


@pytest.mark.anyio
async def test_append_persists_and_creates_handle() -> None:
    slots = MemorySlotStore()
    history = HistoryStore(slots)

    await history.append(make_record(1))

    assert stored_ids(slots) == ["rec-1"]
    handle = history.handle_for("rec-1")
    assert handle is not None
    assert handle.data == b"\x01" * 8
    assert handle.media_type == "audio/wav"


@pytest.mark.anyio
async def test_load_round_trips_stored_collection() -> None:
    slots = MemorySlotStore()
    writer = HistoryStore(slots)
    await writer.append(make_record(1))
    await writer.append(make_record(2))

    reader = HistoryStore(slots)
    records = await reader.load()

    assert [r.id for r in records] == ["rec-1", "rec-2"]
    assert records[0].voice_id == "kore"
    assert reader.handle_ids == {"rec-1", "rec-2"}


@pytest.mark.anyio
async def test_load_drops_unreadable_entries() -> None:
    slots = MemorySlotStore()
    valid = make_record(1).to_storage()
    slots.set(
        HISTORY_KEY,
        json.dumps(
            [
                valid,
                {"id": "no-audio", "fileName": "a.wav", "createdAt": 1},
                {"id": "empty", "fileName": "b.wav", "createdAt": 1, "audioBase64": ""},
                {"id": "bad", "fileName": "c.wav", "createdAt": 1, "audioBase64": "!!!"},
                {"id": "no-name", "createdAt": 1, "audioBase64": "AAAA"},
                "not a record",
            ]
        ),
    )
    history = HistoryStore(slots)

    records = await history.load()

    assert [r.id for r in records] == ["rec-1"]
    assert history.handle_ids == {"rec-1"}


@pytest.mark.anyio
async def test_load_treats_missing_format_as_wav() -> None:
    slots = MemorySlotStore()
    item = make_record(1).to_storage()
    item.pop("format")
    slots.set(HISTORY_KEY, json.dumps([item]))

    records = await HistoryStore(slots).load()

    assert records[0].format == "wav"


@pytest.mark.anyio
async def test_load_ignores_corrupt_json() -> None:
    slots = MemorySlotStore()
    slots.set(HISTORY_KEY, "{not json")

    assert await HistoryStore(slots).load() == []


@pytest.mark.anyio
async def test_overflow_evicts_oldest_and_keeps_newest() -> None:
    slots = MemorySlotStore(capacity=1200)
    history = HistoryStore(slots)

    for index in range(1, 6):
        await history.append(make_record(index, audio_size=300))

    ids = [r.id for r in history.records]
    assert ids[-1] == "rec-5"
    assert 0 < len(ids) < 5
    assert ids == [f"rec-{i}" for i in range(6 - len(ids), 6)]
    assert stored_ids(slots) == ids
    assert slots.used_bytes() <= slots.capacity
    assert history.handle_ids == set(ids)


@pytest.mark.anyio
async def test_evicted_handles_are_released() -> None:
    slots = MemorySlotStore(capacity=1200)
    history = HistoryStore(slots)
    await history.append(make_record(1, audio_size=300))
    first = history.handle_for("rec-1")

    for index in range(2, 6):
        await history.append(make_record(index, audio_size=300))

    assert first is not None
    assert first.released
    assert first.data == b""


@pytest.mark.anyio
async def test_oversized_record_stays_in_memory_and_disk_is_untouched() -> None:
    slots = MemorySlotStore(capacity=600)
    history = HistoryStore(slots)
    await history.append(make_record(1))
    await history.append(make_record(2))
    stored_before = slots.get(HISTORY_KEY)

    records = await history.append(make_record(3, audio_size=1000))

    assert [r.id for r in records] == ["rec-1", "rec-2", "rec-3"]
    assert slots.get(HISTORY_KEY) == stored_before
    assert stored_ids(slots) == ["rec-1", "rec-2"]
    handle = history.handle_for("rec-3")
    assert handle is not None
    assert not handle.released
    assert handle.data == b"\x03" * 1000


@pytest.mark.anyio
async def test_removing_last_record_writes_empty_collection() -> None:
    slots = MemorySlotStore()
    history = HistoryStore(slots)
    await history.append(make_record(1))

    remaining = await history.remove("rec-1")

    assert remaining == []
    assert slots.get(HISTORY_KEY) == "[]"


@pytest.mark.anyio
async def test_unwritable_slot_keeps_records_in_memory(caplog) -> None:
    slots = MemorySlotStore(capacity=10)
    history = HistoryStore(slots)

    with caplog.at_level(logging.WARNING, logger="tts_studio.services.history"):
        records = await history.append(make_record(1))

    assert [r.id for r in records] == ["rec-1"]
    assert slots.get(HISTORY_KEY) is None
    assert "new entries will not be persisted" in caplog.text
    assert history.handle_ids == {"rec-1"}


@pytest.mark.anyio
async def test_storage_failure_keeps_records_in_memory() -> None:
    history = HistoryStore(BrokenStore())

    records = await history.append(make_record(1))

    assert [r.id for r in records] == ["rec-1"]


@pytest.mark.anyio
async def test_remove_releases_only_that_handle() -> None:
    slots = MemorySlotStore()
    history = HistoryStore(slots)
    await history.append(make_record(1))
    await history.append(make_record(2))
    removed = history.handle_for("rec-1")

    remaining = await history.remove("rec-1")

    assert [r.id for r in remaining] == ["rec-2"]
    assert removed is not None and removed.released
    assert history.handle_ids == {"rec-2"}
    assert stored_ids(slots) == ["rec-2"]


@pytest.mark.anyio
async def test_clear_removes_slot_and_releases_handles() -> None:
    slots = MemorySlotStore()
    history = HistoryStore(slots)
    await history.append(make_record(1))
    handle = history.handle_for("rec-1")

    await history.clear()

    assert history.records == []
    assert history.handle_ids == set()
    assert handle is not None and handle.released
    assert slots.get(HISTORY_KEY) is None


@pytest.mark.anyio
async def test_list_page_is_newest_first_and_clamped() -> None:
    history = HistoryStore(MemorySlotStore())
    for index in range(1, 36):
        await history.append(make_record(index))

    first = history.list_page(1)
    clamped = history.list_page(5)

    assert first.items[0].id == "rec-35"
    assert len(first.items) == 10
    assert first.total_items == 35
    assert first.total_pages == 3
    assert clamped.page == 3
    assert clamped.items[0].id == "rec-15"
    assert first.items[0].size_bytes == 8


@pytest.mark.anyio
async def test_list_page_on_empty_history() -> None:
    page = HistoryStore(MemorySlotStore()).list_page(2)

    assert page.items == []
    assert page.page == 1
    assert page.total_pages == 1


@pytest.mark.anyio
async def test_export_then_import_restores_collection() -> None:
    source = HistoryStore(MemorySlotStore())
    await source.append(make_record(1))
    await source.append(make_record(2))
    exported = source.export_json()

    target = HistoryStore(MemorySlotStore())
    records = await target.import_json(exported)

    assert json.loads(exported)["version"] == 1
    assert [r.id for r in records] == ["rec-1", "rec-2"]
    assert target.handle_for("rec-2") is not None


@pytest.mark.anyio
async def test_import_rejects_documents_without_items() -> None:
    history = HistoryStore(MemorySlotStore())

    with pytest.raises(ValueError):
        await history.import_json("not json")
    with pytest.raises(ValueError):
        await history.import_json(json.dumps({"version": 1}))


def test_decode_audio_rejects_bad_payloads() -> None:
    assert decode_audio("AAEC") == b"\x00\x01\x02"
    with pytest.raises(DecodeError):
        decode_audio("###")
    with pytest.raises(DecodeError):
        decode_audio("")
