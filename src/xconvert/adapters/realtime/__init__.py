# src/xconvert/adapters/realtime/__init__.py
"""
Realtime Adapters - Live Subscribers

This package contains the in-process publish/subscribe hub behind the
WebSocket room.
"""

from xconvert.adapters.realtime.hub import CONVERSIONS_TOPIC, LiveHub

__all__ = ["LiveHub", "CONVERSIONS_TOPIC"]
