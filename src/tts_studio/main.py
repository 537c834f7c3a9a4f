"""Console entrypoint: serve the TTS Studio app with uvicorn."""

from __future__ import annotations

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "tts_studio.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=None,
    )


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
