# src/xconvert/adapters/http/__init__.py
"""
HTTP Adapter - FastAPI Routes and WebSocket

This package exposes the application services over HTTP.
"""

from xconvert.adapters.http.api import Services, create_app

__all__ = ["Services", "create_app"]
