# src/xconvert/adapters/persistence/__init__.py
"""
Persistence Adapters - Data Storage

This package contains adapters for persisting data:
- SQLAlchemy store client (connection lifecycle and sessions)
- Table mappings for the rate store and conversion log
- Repositories with queries and aggregations
"""

from xconvert.adapters.persistence.database import Database
from xconvert.adapters.persistence.repositories import (
    ConversionFilter,
    ConversionRepository,
    RateRepository,
)
from xconvert.adapters.persistence.tables import Base, ConversionRecord, RateRecord

__all__ = [
    "Database",
    "Base",
    "RateRecord",
    "ConversionRecord",
    "RateRepository",
    "ConversionRepository",
    "ConversionFilter",
]
