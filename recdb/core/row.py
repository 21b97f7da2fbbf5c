"""Row - an ordered mapping of column name to scalar value"""

from typing import Any, Dict, Iterator, Optional


class Row:
    """
    A single table row.

    The row keeps its own copy of the data it was built from, and
    to_dict() hands out copies, so nobody outside the owning Table can
    change stored values by accident.
    """

    __slots__ = ('_data',)

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def get_value(self, column: str, default: Any = None) -> Any:
        return self._data.get(column, default)

    def set_value(self, column: str, value: Any) -> None:
        self._data[column] = value

    def has(self, column: str) -> bool:
        return column in self._data

    def keys(self) -> Iterator[str]:
        return iter(self._data.keys())

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the row data"""
        return dict(self._data)

    def copy(self) -> 'Row':
        return Row(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self._data == other._data

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Row({self._data!r})"
