"""Value types shared by document store adapters."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class _ServerTimestamp:
    """Sentinel replaced by the store's own clock at write time."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class FilterOp(Enum):
    """Supported query filter operators."""

    EQUAL = "=="
    ARRAY_CONTAINS = "array_contains"


class SortDirection(Enum):
    """Sort direction for ordered queries."""

    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"


@dataclass(frozen=True)
class FieldFilter:
    """A single filter clause of a store query."""

    field: str
    op: FilterOp
    value: Any

    def matches(self, data: dict[str, Any]) -> bool:
        """Evaluate the filter against a document's data."""
        actual = data.get(self.field)
        if self.op is FilterOp.EQUAL:
            return bool(actual == self.value)
        if self.op is FilterOp.ARRAY_CONTAINS:
            return isinstance(actual, (list, tuple)) and self.value in actual
        raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    """Ordering clause of a store query."""

    field: str
    direction: SortDirection = SortDirection.ASCENDING


@dataclass(frozen=True)
class Document:
    """A stored document: its id plus a copy of its fields."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)
