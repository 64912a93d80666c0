from __future__ import annotations

from ..collections import SETTINGS
from ..constants import DEFAULT_APP_SETTINGS, SETTINGS_DOCUMENT_ID
from . import document_store
from .actions import action_boundary


def load_app_settings() -> dict:
    """
    Current settings with defaults filled in.

    The settings row is created with the defaults on first read.
    """
    snapshot = document_store.get_one(SETTINGS, SETTINGS_DOCUMENT_ID)
    if not snapshot.exists:
        document_store.upsert(SETTINGS, SETTINGS_DOCUMENT_ID, dict(DEFAULT_APP_SETTINGS))
        return dict(DEFAULT_APP_SETTINGS)

    settings = {}
    for key, default in DEFAULT_APP_SETTINGS.items():
        value = snapshot.get(key)
        settings[key] = default if value is None else value
    return settings


def current_exchange_rate() -> float:
    return load_app_settings()["exchangeRate"]


@action_boundary(failure=lambda: dict(DEFAULT_APP_SETTINGS))
def get_app_settings() -> dict:
    return load_app_settings()


@action_boundary(failure=dict)
def get_raw_app_settings() -> dict:
    snapshot = document_store.get_one(SETTINGS, SETTINGS_DOCUMENT_ID)
    return dict(snapshot.data) if snapshot.exists else {}


@action_boundary(failure=False)
def update_app_settings(data: dict) -> bool:
    document_store.upsert(SETTINGS, SETTINGS_DOCUMENT_ID, data, merge=True)
    return True
