# src/__init__.py — v1
"""livequery: cached, observable access to a remote document store."""

from __future__ import annotations

from livequery.api.facade import DataAccessLayer
from livequery.config.settings import Settings, load_settings
from livequery.logging.logger import setup_logging
from livequery.query.constraints import ConstraintSet, create_query

__version__ = "0.1.0"

__all__ = [
    "ConstraintSet",
    "DataAccessLayer",
    "Settings",
    "create_query",
    "load_settings",
    "setup_logging",
    "__version__",
]
