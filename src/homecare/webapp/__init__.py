"""HomeCare web application package.

``homecare.webapp:app`` is built on first access so importing the package
does not open the configured database.
"""
from __future__ import annotations

from typing import Any, List

from fastapi import FastAPI

from .application import create_app, default_repository

_APP: FastAPI | None = None

__all__: List[str] = ["app", "create_app", "default_repository"]


def __getattr__(name: str) -> Any:
    global _APP
    if name == "app":
        if _APP is None:
            _APP = create_app()
        return _APP
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
