"""
Storage Engine - Handles persistence of databases to disk

Features:
- Directory-per-database, file-per-table storage model
- JSON-based serialization of {name, columns, rows, nextId}
- Full reconciliation on save: every live table is rewritten and files
  of dropped tables are removed
- File size helpers for database/table statistics

Layout:
    <data_dir>/<database>/<table>.json
"""

from typing import Dict, List, Optional
import json
import logging
import os
import shutil

from ..core.database import Database
from ..core.errors import NotFoundError, RecDBError, StorageError
from ..core.schema import IDENTIFIER_PATTERN, validate_identifier
from ..core.table import Table

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = './databases'
DATA_DIR_ENV = 'RECDB_DATA_DIR'


class StorageEngine:
    """
    Reads and writes whole databases.

    The engine keeps no database in memory: load() builds a fresh
    Database from disk and save() writes one back.
    """

    FILE_EXTENSION = '.json'

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = data_dir or os.environ.get(DATA_DIR_ENV, DEFAULT_DATA_DIR)

        # Ensure data directory exists
        os.makedirs(self.data_dir, exist_ok=True)

    def database_path(self, name: str) -> str:
        """Directory holding the table files of a database"""
        return os.path.join(self.data_dir, validate_identifier(name, 'database'))

    def table_path(self, db_name: str, table_name: str) -> str:
        """File holding a single table"""
        table_name = validate_identifier(table_name, 'table')
        return os.path.join(self.database_path(db_name), table_name + self.FILE_EXTENSION)

    def _table_files(self, db_path: str) -> List[str]:
        return sorted(
            filename for filename in os.listdir(db_path)
            if filename.endswith(self.FILE_EXTENSION)
        )

    def save(self, database: Database) -> None:
        """Write every table of the database and remove files of dropped tables"""
        db_path = self.database_path(database.name)
        live_tables = database.list_tables()

        try:
            os.makedirs(db_path, exist_ok=True)

            for filename in self._table_files(db_path):
                table_name = filename[:-len(self.FILE_EXTENSION)]
                if table_name not in live_tables:
                    os.remove(os.path.join(db_path, filename))
                    logger.info("Removed file of dropped table '%s' from '%s'",
                                table_name, database.name)

            for table_name in live_tables:
                table = database.get_table(table_name)
                self._write_table(os.path.join(db_path, table_name + self.FILE_EXTENSION), table)
        except OSError as e:
            raise StorageError(
                f"Failed to save database '{database.name}': {e}", path=db_path
            ) from e

        logger.debug("Saved database '%s' (%d tables)", database.name, len(live_tables))

    def _write_table(self, file_path: str, table: Table) -> None:
        # Write beside the target, then swap it in so readers never see half a file
        tmp_path = file_path + '.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(table.to_dict(), f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, file_path)
        logger.debug("Wrote table file %s", file_path)

    def load(self, name: str) -> Database:
        """
        Rebuild a database from disk.

        A missing database directory is not an error: it yields an empty
        database that has simply not been saved yet.
        """
        database = Database(name)
        db_path = self.database_path(name)

        try:
            filenames = self._table_files(db_path)
        except FileNotFoundError:
            logger.info("Database '%s' not found on disk, starting empty", name)
            return database
        except OSError as e:
            raise StorageError(f"Failed to read database '{name}': {e}", path=db_path) from e

        for filename in filenames:
            file_path = os.path.join(db_path, filename)
            database.add_table(self._read_table(file_path))

        return database

    def _read_table(self, file_path: str) -> Table:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read table file '{file_path}': {e}", path=file_path) from e

        try:
            table = Table.from_dict(data)
        except RecDBError as e:
            raise StorageError(f"Corrupt table file '{file_path}': {e}", path=file_path) from e

        logger.debug("Loaded table '%s' (%d rows) from %s", table.name, table.row_count, file_path)
        return table

    def drop_database(self, name: str) -> None:
        """Remove a database directory and everything in it"""
        db_path = self.database_path(name)
        try:
            shutil.rmtree(db_path)
        except FileNotFoundError:
            logger.debug("Database '%s' already absent", name)
            return
        except OSError as e:
            logger.error("Error deleting database '%s': %s", name, e)
            raise StorageError(f"Failed to delete database '{name}'", path=db_path) from e
        logger.info("Dropped database '%s'", name)

    def database_exists(self, name: str) -> bool:
        return os.path.isdir(self.database_path(name))

    def list_databases(self) -> List[str]:
        """Names of all database directories under the data directory"""
        try:
            entries = os.listdir(self.data_dir)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to list databases: {e}", path=self.data_dir) from e

        names = []
        for entry in sorted(entries):
            if not os.path.isdir(os.path.join(self.data_dir, entry)):
                continue
            if IDENTIFIER_PATTERN.fullmatch(entry) is None:
                logger.warning("Ignoring directory with invalid database name: %s", entry)
                continue
            names.append(entry)
        return names

    def table_size(self, db_name: str, table_name: str) -> int:
        """Size in bytes of a table file"""
        try:
            return os.path.getsize(self.table_path(db_name, table_name))
        except FileNotFoundError:
            raise NotFoundError(
                f"Table '{table_name}' or database '{db_name}' not found"
            ) from None

    def database_stats(self, name: str) -> Dict[str, int]:
        """Total size in bytes and number of table files of a database"""
        db_path = self.database_path(name)
        try:
            filenames = self._table_files(db_path)
            size = sum(os.path.getsize(os.path.join(db_path, f)) for f in filenames)
        except FileNotFoundError:
            raise NotFoundError(f"Database '{name}' not found") from None
        except OSError as e:
            raise StorageError(f"Failed to stat database '{name}': {e}", path=db_path) from e
        return {'size_bytes': size, 'table_count': len(filenames)}
