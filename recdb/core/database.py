"""
Database - a named collection of tables

The database owns its tables: they are created and dropped only through
it, and table names are unique within one database. Persisting a database
is the job of recdb.storage.engine.StorageEngine.
"""

from typing import Dict, List, Optional, Sequence
import logging

from .errors import AlreadyExistsError, NotFoundError
from .schema import ColumnSpec, validate_identifier
from .table import Table

logger = logging.getLogger(__name__)


class Database:
    """
    RecDB database instance.

    Usage:
        db = Database("university")
        students = db.create_table("students", [
            {"name": "id", "type": "integer", "autoIncrement": True},
            {"name": "full_name", "type": "string"},
        ])
        students.insert_row({"full_name": "Alice"})
        db.list_tables()   # ['students']
    """

    def __init__(self, name: str):
        """
        Args:
            name: Database name; letters, digits, '_' and '-' only, since
                it becomes a directory name on disk.
        """
        self.name = validate_identifier(name, 'database')
        self._tables: Dict[str, Table] = {}

    def create_table(self, name: str, columns: Sequence[ColumnSpec]) -> Table:
        """Create, register and return a new empty table"""
        if name in self._tables:
            raise AlreadyExistsError(
                f"Table '{name}' already exists in database '{self.name}'"
            )
        table = Table(name, columns)
        self._tables[name] = table
        return table

    def drop_table(self, name: str) -> None:
        if name not in self._tables:
            raise NotFoundError(
                f"Cannot drop: table '{name}' not found in database '{self.name}'"
            )
        del self._tables[name]

    def get_table(self, name: str) -> Optional[Table]:
        return self._tables.get(name)

    def require_table(self, name: str) -> Table:
        """Like get_table, but raise NotFoundError for an unknown name"""
        table = self._tables.get(name)
        if table is None:
            raise NotFoundError(
                f"Table '{name}' not found in database '{self.name}'"
            )
        return table

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def list_tables(self) -> List[str]:
        """Table names in creation (or load) order"""
        return list(self._tables.keys())

    def add_table(self, table: Table) -> bool:
        """
        Attach an already built table, as done while loading from disk.

        A table whose name is already taken is skipped with a warning.
        Returns True if the table was attached.
        """
        if table.name in self._tables:
            logger.warning(
                "Skipping duplicate table '%s' while loading database '%s'",
                table.name, self.name,
            )
            return False
        self._tables[table.name] = table
        return True

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'tables': {name: table.to_dict() for name, table in self._tables.items()},
        }

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"Database({self.name!r}, tables={self.list_tables()})"
