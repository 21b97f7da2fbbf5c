"""
RecDB - A minimal record store

Named databases hold named tables with a fixed, typed column schema.
Each table is persisted as one JSON file per table.
"""

__version__ = "1.0.0"

from .core.database import Database
from .core.table import Table
from .core.service import DatabaseService
from .core.repl import REPL
from .storage.engine import StorageEngine

__all__ = ["Database", "Table", "DatabaseService", "StorageEngine", "REPL"]
