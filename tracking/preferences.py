"""User preferences persisted in the key-value store."""

import logging

import config
from tracking.store import KeyValueStore

logger = logging.getLogger(__name__)


def load_sound_profile(store: KeyValueStore) -> str:
    """Stored alert sound profile, or the default if unset or unknown."""
    try:
        saved = store.get(config.SOUND_STORAGE_KEY)
    except Exception as e:
        logger.warning(f"Failed to read sound preference: {e}")
        return config.DEFAULT_SOUND_PROFILE
    if saved in config.SOUND_PROFILES:
        return saved
    if saved is not None:
        logger.debug(f"Ignoring unknown sound profile {saved!r}")
    return config.DEFAULT_SOUND_PROFILE


def save_sound_profile(store: KeyValueStore, profile: str) -> None:
    try:
        store.set(config.SOUND_STORAGE_KEY, profile)
    except Exception as e:
        logger.warning(f"Failed to save sound preference: {e}")
