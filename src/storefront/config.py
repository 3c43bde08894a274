"""Runtime settings for the storefront bag, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[2]


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_float(*keys: str, default: float) -> float:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return float(v)


@dataclass(frozen=True)
class Settings:
    slot_key: str = "bag"
    slot_backend: str = "memory"  # "memory" or "file"
    storage_dir: str = str(ROOT_DIR / "data")
    rebroadcast_delay: float = 0.05
    badge_poll_interval: float = 1.0
    panel_poll_interval: float = 0.2
    api_base_url: str = ""  # empty selects the in-memory order service
    api_timeout: float = 30.0
    api_token: str | None = None


def load_settings() -> Settings:
    """Build settings from ``STOREFRONT_*`` environment variables."""
    return Settings(
        slot_key=_get_env("STOREFRONT_SLOT_KEY", default="bag") or "bag",
        slot_backend=(_get_env("STOREFRONT_SLOT_BACKEND", default="memory") or "memory").lower(),
        storage_dir=_get_env("STOREFRONT_STORAGE_DIR", default=str(ROOT_DIR / "data")) or str(ROOT_DIR / "data"),
        rebroadcast_delay=_get_float("STOREFRONT_REBROADCAST_DELAY", default=0.05),
        badge_poll_interval=_get_float("STOREFRONT_BADGE_POLL_INTERVAL", default=1.0),
        panel_poll_interval=_get_float("STOREFRONT_PANEL_POLL_INTERVAL", default=0.2),
        api_base_url=_get_env("STOREFRONT_API_BASE", "API_BASE", default="") or "",
        api_timeout=_get_float("STOREFRONT_API_TIMEOUT", default=30.0),
        api_token=_get_env("STOREFRONT_API_TOKEN", "TOKEN", default=None),
    )
