from __future__ import annotations

import os
import warnings
from dataclasses import dataclass

from .warnings import MutArithPerformanceWarning


_ENV_NUMPY_FAST_PATH = "MUTARITH_NUMPY_FAST_PATH"
_ENV_WARN_ON_FALLBACK = "MUTARITH_WARN_ON_FALLBACK"
_ENV_EDGE_ITEMS = "MUTARITH_EDGE_ITEMS"

_FALSE_TOKENS = ("0", "false", "no", "off")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in _FALSE_TOKENS


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass
class Settings:
    numpy_fast_path: bool
    warn_on_fallback: bool
    edge_items: int


def _from_env() -> Settings:
    return Settings(
        numpy_fast_path=_env_flag(_ENV_NUMPY_FAST_PATH, True),
        warn_on_fallback=_env_flag(_ENV_WARN_ON_FALLBACK, True),
        edge_items=_env_int(_ENV_EDGE_ITEMS, 4),
    )


settings: Settings = _from_env()


def configure(
    *,
    numpy_fast_path: bool | None = None,
    warn_on_fallback: bool | None = None,
    edge_items: int | None = None,
) -> Settings:
    """Override process-wide settings. ``None`` leaves a setting unchanged."""
    if numpy_fast_path is not None:
        if settings.numpy_fast_path and not numpy_fast_path:
            warnings.warn(
                "NumPy fast path disabled: fixed-size numeric containers use the generic element loops.",
                MutArithPerformanceWarning,
                stacklevel=2,
            )
        settings.numpy_fast_path = bool(numpy_fast_path)
    if warn_on_fallback is not None:
        settings.warn_on_fallback = bool(warn_on_fallback)
    if edge_items is not None:
        if int(edge_items) <= 0:
            raise ValueError("edge_items must be positive")
        settings.edge_items = int(edge_items)
    return settings


def reset() -> Settings:
    """Re-read every setting from the environment."""
    fresh = _from_env()
    settings.numpy_fast_path = fresh.numpy_fast_path
    settings.warn_on_fallback = fresh.warn_on_fallback
    settings.edge_items = fresh.edge_items
    return settings
