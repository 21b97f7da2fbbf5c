"""
Schema Module - Defines column definitions and naming rules

Supports:
- Column definitions with one of the six RecDB types
- A single optional auto-increment column (integer only)
- Identifier checks for database and table names, which double as
  directory and file names on disk
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union
import re

from .errors import (
    BadAutoIncrementTypeError,
    InvalidIdentifierError,
    MultipleAutoIncrementError,
    SchemaViolationError,
)
from .types import DataType, TypeValidator


IDENTIFIER_PATTERN = re.compile(r'[A-Za-z0-9_-]+')


def validate_identifier(name: Any, kind: str) -> str:
    """Return name unchanged if it is a legal identifier, raise otherwise"""
    if not isinstance(name, str) or IDENTIFIER_PATTERN.fullmatch(name) is None:
        raise InvalidIdentifierError(kind, str(name))
    return name


@dataclass(frozen=True)
class Column:
    """Represents a column in a table"""
    name: str
    dtype: DataType
    auto_increment: bool = False

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise SchemaViolationError("Column name must be a non-empty string")
        if not isinstance(self.dtype, DataType):
            # Accept plain type names such as 'integer'
            try:
                dtype = TypeValidator.parse_type(self.dtype)
            except ValueError as e:
                raise SchemaViolationError(
                    f"Column '{self.name}': {e}"
                ) from None
            object.__setattr__(self, 'dtype', dtype)

    def validate(self, value: Any) -> bool:
        return TypeValidator.validate(value, self.dtype)

    def to_dict(self) -> dict:
        data = {'name': self.name, 'type': self.dtype.value}
        if self.auto_increment:
            data['autoIncrement'] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Column':
        """Build a column from its persisted / wire form"""
        if not isinstance(data, dict):
            raise SchemaViolationError(f"Column definition must be an object, got {data!r}")
        if 'name' not in data or 'type' not in data:
            raise SchemaViolationError("Column definition needs 'name' and 'type'")
        return cls(
            name=data['name'],
            dtype=data['type'],
            auto_increment=bool(data.get('autoIncrement', False)),
        )


ColumnSpec = Union[Column, Dict[str, Any]]


def build_columns(columns: Sequence[ColumnSpec]) -> List[Column]:
    """
    Normalize a column list and check the schema-level rules.

    Raises SchemaViolationError for duplicate names, and the auto-increment
    specific errors when more than one column (or a non-integer column)
    is marked auto-increment.
    """
    result = [c if isinstance(c, Column) else Column.from_dict(c) for c in columns]

    seen = set()
    for col in result:
        if col.name in seen:
            raise SchemaViolationError(f"Column '{col.name}' already exists")
        seen.add(col.name)

    auto = [col for col in result if col.auto_increment]
    if len(auto) > 1:
        raise MultipleAutoIncrementError(col.name for col in auto)
    if auto and auto[0].dtype != DataType.INTEGER:
        raise BadAutoIncrementTypeError(auto[0].name, auto[0].dtype.value)

    return result


def find_auto_increment(columns: Sequence[Column]) -> Optional[Column]:
    for col in columns:
        if col.auto_increment:
            return col
    return None
