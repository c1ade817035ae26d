# src/xconvert/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Providers (rate APIs)
- Persistence (store)
- Messaging (RabbitMQ)
- Realtime (live subscribers)
- Reporting (PDF/CSV output)
- HTTP (FastAPI surface)
"""

__all__ = []
