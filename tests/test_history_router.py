import pytest
from fastapi.testclient import TestClient

from conftest import FakeSynthesizer, make_app


@pytest.fixture
def client(tmp_path) -> TestClient:
    return TestClient(make_app(FakeSynthesizer(), tmp_path / "storage"))


def generate(client: TestClient, text: str) -> dict:
    response = client.post(
        "/api/tts/synthesize", json={"text": text, "speedControl": "auto"}
    )
    assert response.status_code == 200
    return response.json()["historyItem"]


def test_history_lists_newest_first(client) -> None:
    first = generate(client, "First")
    second = generate(client, "Second")

    body = client.get("/api/history").json()

    assert [item["id"] for item in body["items"]] == [second["id"], first["id"]]
    assert body["page"] == 1
    assert body["totalPages"] == 1


def test_history_page_is_clamped(client) -> None:
    generate(client, "Only")

    body = client.get("/api/history", params={"page": 9}).json()

    assert body["page"] == 1
    assert len(body["items"]) == 1


def test_download_audio_returns_wav(client) -> None:
    item = generate(client, "Hello")

    response = client.get(f"/api/history/{item['id']}/audio")

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.content[:4] == b"RIFF"
    assert item["fileName"] in response.headers["content-disposition"]


def test_unknown_entry_is_not_found(client) -> None:
    assert client.get("/api/history/missing/audio").status_code == 404
    assert client.delete("/api/history/missing").status_code == 404


def test_delete_entry(client) -> None:
    first = generate(client, "First")
    generate(client, "Second")

    response = client.delete(f"/api/history/{first['id']}")

    assert response.json() == {"deleted": True, "remaining": 1}
    assert client.get(f"/api/history/{first['id']}/audio").status_code == 404


def test_clear_history(client) -> None:
    generate(client, "Hello")

    response = client.delete("/api/history")

    assert response.json() == {"type": "success", "message": "History cleared"}
    assert client.get("/api/history").json()["totalItems"] == 0


def test_export_and_import_round_trip(tmp_path, client) -> None:
    item = generate(client, "Hello")
    exported = client.get("/api/history/export")
    assert "attachment" in exported.headers["content-disposition"]

    other = TestClient(make_app(FakeSynthesizer(), tmp_path / "other"))
    response = other.post("/api/history/import", json=exported.json())

    assert response.json() == {"imported": 1, "stored": 1}
    assert other.get("/api/history").json()["items"][0]["id"] == item["id"]


def test_import_requires_items_list(client) -> None:
    response = client.post("/api/history/import", json={"version": 1})

    assert response.status_code == 400
