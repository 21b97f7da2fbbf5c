"""Core module - Types, Schema, Row, Table, Database, Service, REPL"""

from .errors import (
    RecDBError, InvalidIdentifierError, AlreadyExistsError, NotFoundError,
    SchemaViolationError, MissingValueError, InvalidTypeError, ExtraFieldsError,
    UnknownColumnError, MultipleAutoIncrementError, BadAutoIncrementTypeError,
    EmptyFilterError, ProjectionColumnMissingError, StorageError,
)
from .types import DataType, TypeValidator
from .row import Row
from .schema import Column
from .table import Table, Page
from .database import Database
from .service import DatabaseService
from .repl import REPL

__all__ = [
    'Database', 'Table', 'Page', 'Row', 'Column',
    'DataType', 'TypeValidator',
    'DatabaseService', 'REPL',
    'RecDBError', 'InvalidIdentifierError', 'AlreadyExistsError', 'NotFoundError',
    'SchemaViolationError', 'MissingValueError', 'InvalidTypeError', 'ExtraFieldsError',
    'UnknownColumnError', 'MultipleAutoIncrementError', 'BadAutoIncrementTypeError',
    'EmptyFilterError', 'ProjectionColumnMissingError', 'StorageError',
]
