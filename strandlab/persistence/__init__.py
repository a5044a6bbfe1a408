"""
Response persistence.

Modules:
- records: ResponseRecord, ResponseFilter and the repository contract
- json_store: one JSON file per learner
- sql_store: SQLAlchemy-backed storage
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from .json_store import JsonResponseRepository
from .records import (
    DEFAULT_LEARNER,
    NullResponseRepository,
    ResponseFilter,
    ResponseRecord,
    ResponseRepository,
)
from .sql_store import SqlResponseRepository

if TYPE_CHECKING:
    from config import Settings


def create_repository(settings: "Settings") -> ResponseRepository:
    """Build the repository named by ``settings.persistence_backend``."""
    backend = settings.persistence_backend.lower()
    if backend == "json":
        return JsonResponseRepository(settings.responses_dir)
    if backend == "sql":
        repository = SqlResponseRepository(settings.database_url, echo=settings.log_level == "DEBUG")
        repository.init_db()
        return repository
    if backend == "none":
        return NullResponseRepository()
    raise ValueError(f"Unknown persistence backend: {settings.persistence_backend}")


__all__ = [
    "DEFAULT_LEARNER",
    "JsonResponseRepository",
    "NullResponseRepository",
    "ResponseFilter",
    "ResponseRecord",
    "ResponseRepository",
    "SqlResponseRepository",
    "create_repository",
]
