# src/core/models.py — v3
"""Shared Pydantic domain models used across modules.

Other modules import these types from here rather than redefining them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from livequery.core.errors import QueryError


# === DOCUMENTS ===


class Record(BaseModel):
    """One document returned by the remote store. Field values are opaque."""

    model_config = ConfigDict(frozen=True)

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)

    def as_document(self) -> dict[str, Any]:
        """Flatten to the ``{"id": ..., **fields}`` shape used by views."""
        return {"id": self.id, **self.fields}


# === QUERY RESULTS ===


class QueryResult(BaseModel):
    """Outcome of a one-shot execution: records or a classified error."""

    records: list[Record] = Field(default_factory=list)
    error: QueryError | None = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


# === CONSUMER STATE ===


class ConsumerState(BaseModel):
    """Mutable view state owned by a single StateController."""

    records: list[Record] = Field(default_factory=list)
    loading: bool = True
    error: str | None = None
    last_error_signature: str | None = None
    last_error_at: int | None = None


class LiveResult(BaseModel):
    """Immutable snapshot of the consumer contract."""

    model_config = ConfigDict(frozen=True)

    data: tuple[Record, ...] = ()
    loading: bool = True
    error: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.loading and len(self.data) == 0

    @property
    def documents(self) -> list[dict[str, Any]]:
        return [record.as_document() for record in self.data]
