"""Lazy access to process-wide services.

Importing :mod:`services` does not read ``.env`` or touch the network; the
first attribute access loads :mod:`services.base`.
"""

from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Any

__all__ = ["get_bot", "get_program_config", "get_storage_settings"]

_BASE_MODULE: ModuleType | None = None


def _load_base() -> ModuleType:
    global _BASE_MODULE
    if _BASE_MODULE is None:
        _BASE_MODULE = import_module(".base", __name__)
    return _BASE_MODULE


def __getattr__(name: str) -> Any:
    if name not in __all__:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(_load_base(), name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(__all__))
