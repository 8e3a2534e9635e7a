# noqa: D104
"""Top-level package for schoolnet."""
from __future__ import annotations

__version__ = "0.1.0"
__all__ = ["SchoolnetClient", "SchoolnetConfig"]


def __getattr__(name):  # type: ignore[override]
    if name == "SchoolnetClient":
        from .client import SchoolnetClient

        return SchoolnetClient
    if name == "SchoolnetConfig":
        from .config import SchoolnetConfig

        return SchoolnetConfig
    raise AttributeError(name)
