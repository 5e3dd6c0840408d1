# src/query/constraints.py — v1
"""Immutable query description: collection, filters, ordering, cap.

Builder methods return new instances, so a ConstraintSet can be shared
between consumers and its canonical key computed once. No schema
validation happens here; the remote store rejects bad fields/operators.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Literal

Direction = Literal["asc", "desc"]

KEY_SEPARATOR = "::"


@dataclass(frozen=True)
class Filter:
    """Single ``field <operator> value`` condition."""

    field: str
    operator: str
    value: Any

    def sort_key(self) -> tuple[str, str, str]:
        return (self.field, self.operator, _dump(self.value))


@dataclass(frozen=True)
class Ordering:
    field: str
    direction: Direction = "asc"


@dataclass(frozen=True, eq=False)
class ConstraintSet:
    """Query against a named collection.

    Equality and hashing follow canonical_key(), so two sets built with the
    same filters in a different order are interchangeable.
    """

    collection: str
    filters: tuple[Filter, ...] = ()
    ordering: Ordering | None = None
    cap: int | None = None
    _key: str = field(init=False, repr=False, compare=False, default="")

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))
        object.__setattr__(self, "_key", self._serialize())

    # --- Builder ---

    def with_filter(self, field_name: str, operator: str, value: Any) -> ConstraintSet:
        return replace(self, filters=self.filters + (Filter(field_name, operator, value),))

    def with_ordering(self, field_name: str, direction: Direction = "asc") -> ConstraintSet:
        if direction not in ("asc", "desc"):
            raise ValueError(f"Unsupported ordering direction: {direction!r}")
        return replace(self, ordering=Ordering(field_name, direction))

    def with_cap(self, n: int) -> ConstraintSet:
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise ValueError(f"cap must be a positive integer, got {n!r}")
        return replace(self, cap=n)

    # --- Identity ---

    def canonical_key(self) -> str:
        """Deterministic cache key: ``<collection>::<sorted constraints JSON>``."""
        return self._key

    def _serialize(self) -> str:
        body = {
            "filters": [
                [f.field, f.operator, json.loads(_dump(f.value))]
                for f in sorted(self.filters, key=Filter.sort_key)
            ],
            "ordering": (
                [self.ordering.field, self.ordering.direction] if self.ordering else None
            ),
            "cap": self.cap,
        }
        return f"{self.collection}{KEY_SEPARATOR}{json.dumps(body, sort_keys=True, separators=(',', ':'))}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConstraintSet):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)


FilterBuilder = Callable[[ConstraintSet], ConstraintSet]


def create_query(collection: str, filter_builder: FilterBuilder | None = None) -> ConstraintSet:
    """Start a ConstraintSet for ``collection``, optionally refined by a builder."""
    query = ConstraintSet(collection=collection)
    if filter_builder is not None:
        query = filter_builder(query)
    return query


def collection_of(key: str) -> str:
    """Collection segment of a canonical key."""
    return key.partition(KEY_SEPARATOR)[0]


def _dump(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)
