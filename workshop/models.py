"""
Records for the projects schema.

Field names follow the column names, so a result row maps onto a record
with `extract()` without a per-table mapping.
"""
from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass, field, fields
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Type, TypeVar

from .errors import DatabaseError

T = TypeVar("T")


def to_decimal(value: Any) -> Optional[Decimal]:
    """DECIMAL columns come back from SQLite as int, float or text."""
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass
class Category:
    category_id: Optional[int] = None
    category_name: Optional[str] = None


@dataclass
class Step:
    step_id: Optional[int] = None
    project_id: Optional[int] = None
    step_text: Optional[str] = None
    step_order: Optional[int] = None


@dataclass
class Material:
    material_id: Optional[int] = None
    project_id: Optional[int] = None
    material_name: Optional[str] = None
    num_required: Optional[int] = None
    cost: Optional[Decimal] = None

    def __post_init__(self):
        self.cost = to_decimal(self.cost)


@dataclass
class Project:
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    estimated_hours: Optional[Decimal] = None
    actual_hours: Optional[Decimal] = None
    difficulty: Optional[int] = None
    notes: Optional[str] = None
    # filled only by a single-project fetch
    materials: List[Material] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)

    def __post_init__(self):
        self.estimated_hours = to_decimal(self.estimated_hours)
        self.actual_hours = to_decimal(self.actual_hours)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def extract(row: sqlite3.Row, cls: Type[T]) -> T:
    """Build a `cls` record from a result row, matching columns to fields by name.

    Columns without a matching field are ignored; fields without a column keep
    their defaults.
    """
    names = {f.name for f in fields(cls) if f.init}
    try:
        return cls(**{k: row[k] for k in row.keys() if k in names})
    except InvalidOperation as e:
        raise DatabaseError(f"unreadable {cls.__name__} row: {dict(row)}") from e
