import pathlib
import sys
from typing import Iterable, List, Optional

import pytest
from fastapi import FastAPI
from pydantic import SecretStr

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from tts_studio.config import Settings  # noqa: E402
from tts_studio.routers.history import router as history_router  # noqa: E402
from tts_studio.routers.preferences import router as preferences_router  # noqa: E402
from tts_studio.routers.tts import router as tts_router  # noqa: E402
from tts_studio.services.generation import GenerationService  # noqa: E402
from tts_studio.services.history import HistoryStore  # noqa: E402
from tts_studio.services.preferences import (  # noqa: E402
    PreferencesService,
    PromptPresetsService,
)
from tts_studio.services.slot_store import FileSlotStore  # noqa: E402
from tts_studio.services.tts import SynthesisOrchestrator  # noqa: E402


class FakeSynthesizer:
    """Records every call and returns two bytes of PCM per input character."""

    def __init__(self, fail_on: Iterable[int] = (), pcm: Optional[bytes] = None):
        self.calls: List[tuple[str, str, Optional[str]]] = []
        self._fail_on = set(fail_on)
        self._pcm = pcm

    async def synthesize(
        self, text: str, voice_id: str, model_id: Optional[str] = None
    ) -> bytes:
        self.calls.append((text, voice_id, model_id))
        if len(self.calls) in self._fail_on:
            raise RuntimeError(f"backend rejected call {len(self.calls)}")
        if self._pcm is not None:
            return self._pcm
        return bytes([len(self.calls), 0]) * len(text)


def make_app(synthesizer, storage_dir, api_key: Optional[str] = "test-key") -> FastAPI:
    """Assemble the routers around a fake synthesizer and on-disk slots."""
    settings = Settings(
        gemini_api_key=SecretStr(api_key) if api_key else None,
        storage_dir=storage_dir,
        validator_url=None,
    )
    slots = FileSlotStore(storage_dir, capacity=settings.storage_capacity_bytes)
    history = HistoryStore(slots)
    preferences = PreferencesService(slots)

    app = FastAPI()
    app.state.settings = settings
    app.state.history_store = history
    app.state.preferences_service = preferences
    app.state.presets_service = PromptPresetsService(slots)
    app.state.generation_service = GenerationService(
        settings, SynthesisOrchestrator(synthesizer), history, preferences
    )
    app.include_router(tts_router)
    app.include_router(history_router)
    app.include_router(preferences_router)
    return app


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()
