"""Services for user preferences and saved prompt presets."""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..errors import PresetError, StorageCapacityError
from ..schemas.preferences import MAX_PRESETS, Preferences, PreferencesUpdate
from .prompt import normalise_prompt
from .slot_store import PREFS_KEY, PROMPT_PRESETS_KEY, SlotStore

logger = logging.getLogger(__name__)

DEFAULT_PRESETS = [
    "Read at steady moderate pace with clear pronunciation",
    "Speak slowly and clearly with consistent speed",
    "Read at natural conversational pace with good enunciation",
    "Narrate at even tempo with precise articulation",
    "Speak cheerfully at steady pace",
    "Explain calmly with consistent speed",
    "Use [short pause] for clarity and [laughing] for amusement",
    "Narrate with a [sigh] of relief",
]


class PreferencesService:
    """Load-at-start, save-on-change preference context."""

    def __init__(self, store: SlotStore):
        self._store = store
        self._cached: Optional[Preferences] = None

    def get_preferences(self) -> Preferences:
        """Load preferences from storage or return defaults."""
        if self._cached is not None:
            return self._cached

        raw = self._store.get(PREFS_KEY)
        if raw:
            try:
                self._cached = Preferences.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"Failed to load preferences: {e}, using defaults")
                self._cached = Preferences()
        else:
            self._cached = Preferences()
        return self._cached

    def update_preferences(self, update: PreferencesUpdate) -> Preferences:
        """Merge non-None values into the stored preferences and persist."""
        current = self.get_preferences()
        update_data = update.model_dump(exclude_none=True)
        merged = current.model_copy(update=update_data)
        self._save(merged)
        return merged

    def _save(self, preferences: Preferences) -> None:
        try:
            self._store.set(PREFS_KEY, json.dumps(preferences.to_storage()))
        except StorageCapacityError as exc:
            # In-memory preferences stay usable for this session
            logger.warning(f"Preferences not persisted: {exc}")
        self._cached = preferences


class PromptPresetsService:
    """Ordered list of saved prompt presets, capped at ``MAX_PRESETS``."""

    def __init__(self, store: SlotStore, limit: int = MAX_PRESETS):
        self._store = store
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def list_presets(self) -> List[str]:
        raw = self._store.get(PROMPT_PRESETS_KEY)
        if raw:
            try:
                stored = json.loads(raw)
            except json.JSONDecodeError as exc:
                logger.warning(f"Stored presets are not valid JSON: {exc}")
                stored = []
            if isinstance(stored, list):
                cleaned = [
                    item.strip()
                    for item in stored
                    if isinstance(item, str) and item.strip()
                ]
                if cleaned:
                    return cleaned
        return list(DEFAULT_PRESETS)

    def _save(self, presets: List[str]) -> None:
        try:
            self._store.set(PROMPT_PRESETS_KEY, json.dumps(presets))
        except StorageCapacityError as exc:
            logger.warning(f"Presets not persisted: {exc}")
            raise PresetError(
                "Storage is full; the preset list could not be saved."
            ) from exc

    def add_preset(self, prompt: str) -> List[str]:
        normalized = normalise_prompt(prompt)
        if not normalized:
            raise PresetError("Enter a prompt before saving it as a preset.")

        presets = self.list_presets()
        if normalized in presets:
            raise PresetError("This preset already exists.")
        if len(presets) >= self._limit:
            raise PresetError(
                f"Presets are limited to {self._limit}; delete one you no longer use."
            )

        presets.append(normalized)
        self._save(presets)
        logger.info(f"Saved prompt preset ({len(presets)}/{self._limit})")
        return presets

    def delete_preset(self, value: str) -> List[str]:
        """Remove ``value``; removing the last preset restores the defaults."""
        presets = [p for p in self.list_presets() if p != value]
        if not presets:
            presets = list(DEFAULT_PRESETS)
        self._save(presets)
        return presets


__all__ = ["DEFAULT_PRESETS", "PreferencesService", "PromptPresetsService"]
