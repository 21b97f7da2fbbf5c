"""
Table - a fixed column schema plus an ordered list of rows

Every mutation is validated against the schema before anything is
changed, so a failed insert or update leaves the table exactly as it was.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import math

from .errors import (
    EmptyFilterError,
    ExtraFieldsError,
    InvalidTypeError,
    MissingValueError,
    ProjectionColumnMissingError,
    RecDBError,
    SchemaViolationError,
    UnknownColumnError,
)
from .row import Row
from .schema import Column, ColumnSpec, build_columns, find_auto_increment, validate_identifier
from .types import TypeValidator


def _to_number(value: str) -> float:
    text = value.strip()
    if text == '':
        return 0.0
    if '_' in text or not text.isascii():
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def loose_equals(stored: Any, expected: Any) -> bool:
    """
    Compare a stored value with a filter value, coercing across types.

    Filters usually arrive as query-string text, so the string "1" matches
    a stored integer 1 and "2.50" matches 2.5. Booleans compare as 1/0.
    None only matches None (a missing key reads as None).
    """
    if stored is None or expected is None:
        return stored is None and expected is None
    if isinstance(stored, bool):
        stored = int(stored)
    if isinstance(expected, bool):
        expected = int(expected)

    stored_is_num = isinstance(stored, (int, float))
    expected_is_num = isinstance(expected, (int, float))
    if stored_is_num and isinstance(expected, str):
        return stored == _to_number(expected)
    if expected_is_num and isinstance(stored, str):
        return _to_number(stored) == expected
    return stored == expected


def _counter_value(value: Any) -> Optional[int]:
    """Integer reading of a value supplied for the auto-increment column"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, str) and TypeValidator.validate_integer(value):
        return int(value)
    return None


@dataclass
class Page:
    """One page of rows plus the numbers needed to render a pager"""
    rows: List[Dict[str, Any]]
    meta: Dict[str, int] = field(default_factory=dict)


class Table:
    """
    A named table with an immutable schema.

    Usage:
        table = Table("students", [
            {"name": "id", "type": "integer", "autoIncrement": True},
            {"name": "name", "type": "string"},
        ])
        table.insert_row({"name": "Alice"})      # id -> 1
        table.update_rows({"id": 1}, {"name": "Alicia"})
        names = table.projection("name")
    """

    def __init__(self, name: str, columns: Sequence[ColumnSpec]):
        self.name = validate_identifier(name, 'table')
        self._columns: Tuple[Column, ...] = tuple(build_columns(columns))
        self._column_map: Dict[str, Column] = {col.name: col for col in self._columns}
        self._auto_column: Optional[Column] = find_auto_increment(self._columns)
        self._rows: List[Row] = []
        self._next_id = 1

    @property
    def columns(self) -> Tuple[Column, ...]:
        return self._columns

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self._columns]

    @property
    def auto_increment_column(self) -> Optional[Column]:
        return self._auto_column

    @property
    def next_id(self) -> int:
        """Value the next omitted auto-increment field will receive"""
        return self._next_id

    @property
    def row_count(self) -> int:
        return len(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def get_column(self, name: str) -> Optional[Column]:
        return self._column_map.get(name)

    def get_rows(self) -> List[Row]:
        """Return copies of all rows in insertion order"""
        return [row.copy() for row in self._rows]

    def insert_row(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and append a row.

        Args:
            values: Mapping of column name to raw value. The auto-increment
                column may be omitted and is then filled in by the table.

        Returns:
            A copy of the stored row, including any assigned id.

        Raises:
            MissingValueError, InvalidTypeError, ExtraFieldsError
        """
        if not isinstance(values, dict):
            raise SchemaViolationError(f"Row must be a mapping, got {type(values).__name__}")

        data = dict(values)
        next_id = self._next_id

        if self._auto_column is not None:
            auto_name = self._auto_column.name
            if data.get(auto_name) is None:
                data[auto_name] = next_id
                next_id += 1
            else:
                supplied = self._supplied_id(data[auto_name])
                if supplied is not None and supplied >= next_id:
                    next_id = supplied + 1

        validated = {}
        for col in self._columns:
            if col.name not in data:
                raise MissingValueError(col.name)
            value = data[col.name]
            if not col.validate(value):
                raise InvalidTypeError(col.name, col.dtype.value)
            validated[col.name] = value

        extra = [key for key in values if key not in self._column_map]
        if extra:
            raise ExtraFieldsError(extra)

        row = Row(validated)
        self._rows.append(row)
        self._next_id = next_id
        return row.to_dict()

    def _supplied_id(self, value: Any) -> Optional[int]:
        """Counter reading of a value written to the auto-increment column"""
        try:
            return _counter_value(value)
        except ValueError:
            # integer text too long for int()
            col = self._auto_column
            raise InvalidTypeError(col.name, col.dtype.value) from None

    def _matches(self, row: Row, criteria: Dict[str, Any]) -> bool:
        return all(loose_equals(row.get_value(key), value) for key, value in criteria.items())

    def find_rows(self, criteria: Dict[str, Any]) -> List[Row]:
        """Return copies of every row matching all criteria"""
        return [row.copy() for row in self._rows if self._matches(row, criteria)]

    def delete_row(self, criteria: Dict[str, Any]) -> bool:
        """Delete the first row (in insertion order) matching all criteria"""
        if not criteria:
            raise EmptyFilterError('delete')

        for idx, row in enumerate(self._rows):
            if self._matches(row, criteria):
                del self._rows[idx]
                return True
        return False

    def update_rows(self, criteria: Dict[str, Any], new_values: Dict[str, Any]) -> int:
        """
        Apply new_values to every row matching all criteria.

        All new values are checked against the schema first; a single bad
        key or value aborts the update with no row changed.

        Returns:
            Number of rows updated (0 when nothing matched).
        """
        if not criteria:
            raise EmptyFilterError('update')

        for key, value in new_values.items():
            col = self._column_map.get(key)
            if col is None:
                raise UnknownColumnError(key)
            if not col.validate(value):
                raise InvalidTypeError(col.name, col.dtype.value)

        supplied = None
        if self._auto_column is not None and self._auto_column.name in new_values:
            supplied = self._supplied_id(new_values[self._auto_column.name])

        matched = [row for row in self._rows if self._matches(row, criteria)]
        for row in matched:
            for key, value in new_values.items():
                row.set_value(key, value)

        # keep later auto-assigned ids clear of values written by hand
        if matched and supplied is not None and supplied >= self._next_id:
            self._next_id = supplied + 1

        return len(matched)

    def projection(self, *column_names: str, name: Optional[str] = None) -> 'Table':
        """
        Build a new, independent table holding only the requested columns.

        Columns appear in the order requested. The new table is named
        '<name>_projection' unless name is given.
        """
        if not column_names:
            raise SchemaViolationError("Projection needs at least one column")

        missing = [col for col in column_names if col not in self._column_map]
        if missing:
            raise ProjectionColumnMissingError(missing)

        if len(set(column_names)) != len(column_names):
            raise SchemaViolationError("Projection lists the same column more than once")

        columns = [self._column_map[col] for col in column_names]
        rows = [{col: row.get_value(col) for col in column_names} for row in self._rows]
        return Table.from_data(name or f"{self.name}_projection", columns, rows)

    def paginate(self, page: int, size: int) -> Page:
        """Return rows of a 1-based page without touching the table"""
        if page < 1:
            raise ValueError(f"Page number must be >= 1, got {page}")
        if size < 1:
            raise ValueError(f"Page size must be >= 1, got {size}")

        total = len(self._rows)
        offset = (page - 1) * size
        rows = [row.to_dict() for row in self._rows[offset:offset + size]]
        return Page(
            rows=rows,
            meta={
                'total_items': total,
                'item_count': len(rows),
                'items_per_page': size,
                'total_pages': math.ceil(total / size),
                'current_page': page,
            },
        )

    @classmethod
    def from_data(cls, name: str, columns: Sequence[ColumnSpec],
                  rows: Sequence[Dict[str, Any]], next_id: Optional[int] = None) -> 'Table':
        """
        Rebuild a table from previously validated data.

        Rows are taken as-is. Without an explicit next_id the counter
        continues after the largest stored auto-increment value.
        """
        table = cls(name, columns)
        table._rows = [Row(data) for data in rows]

        if next_id:
            table._next_id = int(next_id)
        elif table._auto_column is not None:
            auto_name = table._auto_column.name
            observed = [_counter_value(row.get_value(auto_name)) or 0 for row in table._rows]
            table._next_id = max(observed) + 1 if observed else 1

        return table

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Table':
        """Deserialize a table from its persisted record"""
        try:
            return cls.from_data(
                data['name'],
                data['columns'],
                data.get('rows', []),
                data.get('nextId'),
            )
        except RecDBError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise SchemaViolationError(f"Malformed table record: {e!r}") from e

    def to_dict(self) -> dict:
        """Serialize table to its persisted record"""
        return {
            'name': self.name,
            'columns': [col.to_dict() for col in self._columns],
            'rows': [row.to_dict() for row in self._rows],
            'nextId': self._next_id,
        }

    def __repr__(self) -> str:
        return f"Table({self.name!r}, columns={self.column_names}, rows={len(self._rows)})"
