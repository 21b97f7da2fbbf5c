"""
Database Service - Executes requested operations against stored databases

Every operation is one load-mutate-save cycle: the database is rebuilt from
disk, a single change is applied in memory, and the whole database is
written back. Pure reads only load.

Cycles touching the same database name run one at a time under a per-name
lock, so two concurrent writers cannot overwrite each other's save.
"""

from contextlib import contextmanager
from threading import Lock
from typing import Any, Dict, Iterator, List, Optional, Sequence
import logging
import weakref

from ..storage.engine import StorageEngine
from .database import Database
from .errors import AlreadyExistsError, EmptyFilterError, NotFoundError
from .schema import ColumnSpec, validate_identifier

logger = logging.getLogger(__name__)


class DatabaseService:
    """
    Operation surface used by the CLI shell and the web adapter.

    Usage:
        service = DatabaseService("./databases")
        service.create_database("shop")
        service.create_table("shop", "items", [
            {"name": "id", "type": "integer", "autoIncrement": True},
            {"name": "title", "type": "string"},
        ])
        service.insert_row("shop", "items", {"title": "Lamp"})
        service.get_rows_paginated("shop", "items", page=1, size=10)
    """

    def __init__(self, data_dir: Optional[str] = None, storage: Optional[StorageEngine] = None):
        self.storage = storage or StorageEngine(data_dir)
        # an entry lives only while some cycle holds its lock
        self._locks: "weakref.WeakValueDictionary[str, Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = Lock()

    def _lock_for(self, db_name: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(db_name)
            if lock is None:
                lock = self._locks[db_name] = Lock()
            return lock

    @contextmanager
    def _session(self, db_name: str, save: bool = True) -> Iterator[Database]:
        """
        Run one load-mutate-save cycle under the database's lock.

        The database is saved only if the block finishes without raising,
        so a rejected mutation never reaches the disk.
        """
        validate_identifier(db_name, 'database')
        with self._lock_for(db_name):
            db = self.storage.load(db_name)
            yield db
            if save:
                self.storage.save(db)

    # Databases

    def create_database(self, db_name: str) -> None:
        with self._session(db_name) as db:
            if len(db) > 0:
                raise AlreadyExistsError(
                    f"Database '{db_name}' already exists and is not empty"
                )
        logger.info("Created database '%s'", db_name)

    def drop_database(self, db_name: str) -> None:
        validate_identifier(db_name, 'database')
        with self._lock_for(db_name):
            self.storage.drop_database(db_name)

    def list_databases(self) -> List[Dict[str, Any]]:
        """Every stored database with its size in bytes and table count"""
        result = []
        for name in self.storage.list_databases():
            stats = self.storage.database_stats(name)
            result.append({'name': name, **stats})
        return result

    # Tables

    def list_tables(self, db_name: str) -> List[Dict[str, Any]]:
        """Tables of a database with their file size and row count"""
        with self._session(db_name, save=False) as db:
            return [
                {
                    'name': name,
                    'size_bytes': self.storage.table_size(db_name, name),
                    'row_count': db.get_table(name).row_count,
                }
                for name in db.list_tables()
            ]

    def create_table(self, db_name: str, table_name: str,
                     columns: Sequence[ColumnSpec]) -> None:
        with self._session(db_name) as db:
            db.create_table(table_name, columns)
        logger.info("Created table '%s' in database '%s'", table_name, db_name)

    def drop_table(self, db_name: str, table_name: str) -> None:
        with self._session(db_name) as db:
            db.drop_table(table_name)
        logger.info("Dropped table '%s' from database '%s'", table_name, db_name)

    def describe_table(self, db_name: str, table_name: str) -> Dict[str, Any]:
        """Table schema plus row count and auto-increment state"""
        with self._session(db_name, save=False) as db:
            table = db.require_table(table_name)
            return {
                'name': table.name,
                'columns': [col.to_dict() for col in table.columns],
                'row_count': table.row_count,
                'next_id': table.next_id,
            }

    # Rows

    def get_rows_paginated(self, db_name: str, table_name: str,
                           page: int = 1, size: int = 10) -> Dict[str, Any]:
        with self._session(db_name, save=False) as db:
            table = db.require_table(table_name)
            result = table.paginate(page, size)
            return {
                'columns': [col.to_dict() for col in table.columns],
                'rows': result.rows,
                'meta': result.meta,
            }

    def insert_row(self, db_name: str, table_name: str,
                   values: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row and return it as stored (with any assigned id)"""
        with self._session(db_name) as db:
            return db.require_table(table_name).insert_row(values)

    def delete_rows(self, db_name: str, table_name: str,
                    criteria: Dict[str, Any]) -> Dict[str, int]:
        """Delete the first row matching criteria"""
        if not criteria:
            raise EmptyFilterError('delete')

        with self._session(db_name) as db:
            if not db.require_table(table_name).delete_row(criteria):
                raise NotFoundError("No row matches the given criteria")
        return {'deleted_count': 1}

    def update_rows(self, db_name: str, table_name: str,
                    criteria: Dict[str, Any], values: Dict[str, Any]) -> Dict[str, int]:
        """Update every row matching criteria; saves only when something changed"""
        if not criteria:
            raise EmptyFilterError('update')

        validate_identifier(db_name, 'database')
        with self._lock_for(db_name):
            db = self.storage.load(db_name)
            updated = db.require_table(table_name).update_rows(criteria, values)
            if updated > 0:
                self.storage.save(db)
        return {'updated_count': updated}

    def project_table(self, db_name: str, table_name: str,
                      column_names: Sequence[str]) -> Dict[str, Any]:
        """Projection of a table onto column_names, as a table record"""
        with self._session(db_name, save=False) as db:
            return db.require_table(table_name).projection(*column_names).to_dict()
