"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .routers.history import router as history_router
from .routers.preferences import router as preferences_router
from .routers.tts import router as tts_router
from .services.gemini_tts import GeminiTTSClient
from .services.generation import GenerationService
from .services.history import HistoryStore
from .services.preferences import PreferencesService, PromptPresetsService
from .services.repetition_validator import RepetitionValidatorClient
from .services.slot_store import FileSlotStore
from .services.tts.synthesizer import SynthesisOrchestrator
from .services.tts.wav import PcmFormat


def _configure_logging() -> None:
    """Configure logging based on LOG_LEVEL environment variable."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Always add console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    logging.getLogger("tts_studio").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Quiet down noisy third-party libraries
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(settings: Settings | None = None) -> FastAPI:
    # Configure logging first thing
    _configure_logging()

    settings = settings or get_settings()

    project_root = Path(__file__).resolve().parent.parent.parent

    def _resolve_under(base: Path, p: Path) -> Path:
        # Absolute paths are used as-is
        if p.is_absolute():
            return p.resolve()
        resolved = (base / p).resolve()
        if not resolved.is_relative_to(base):
            raise ValueError(f"Configured path {resolved} escapes project root {base}")
        return resolved

    slot_store = FileSlotStore(
        _resolve_under(project_root, settings.storage_dir),
        capacity=settings.storage_capacity_bytes,
    )
    history_store = HistoryStore(slot_store)
    preferences_service = PreferencesService(slot_store)
    presets_service = PromptPresetsService(slot_store)

    orchestrator = SynthesisOrchestrator(
        GeminiTTSClient(settings),
        pcm_format=PcmFormat(sample_rate=settings.sample_rate),
    )
    validator = (
        RepetitionValidatorClient(settings) if settings.validator_url else None
    )
    generation_service = GenerationService(
        settings,
        orchestrator,
        history_store,
        preferences_service,
        validator=validator,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        preferences_service.get_preferences()
        await history_store.load()
        if not settings.has_api_key:
            logging.warning("No Gemini API key configured. Synthesis will fail.")
        try:
            yield
        finally:
            await GeminiTTSClient.close_http_client()

    app = FastAPI(
        title="TTS Studio",
        version="0.1.0",
        description="Chunked Gemini text-to-speech with bounded local history.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.history_store = history_store
    app.state.preferences_service = preferences_service
    app.state.presets_service = presets_service
    app.state.generation_service = generation_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(tts_router)
    app.include_router(history_router)
    app.include_router(preferences_router)

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str | int | bool]:
        return {
            "status": "ok",
            "default_model": settings.default_model,
            "api_key_configured": settings.has_api_key,
            "history_entries": len(history_store.records),
        }

    return app


__all__ = ["create_app"]
