"""
Errors raised by RecDB.

Data-level failures also derive from ValueError, so callers that only
catch ValueError keep working.
"""

from typing import Iterable, List, Optional


class RecDBError(Exception):
    """Base class for every RecDB failure"""


class InvalidIdentifierError(RecDBError, ValueError):
    """A database or table name contains characters outside [A-Za-z0-9_-]"""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(
            f"Invalid {kind} name '{name}'. "
            "Only letters, digits, '_' and '-' are allowed."
        )


class AlreadyExistsError(RecDBError, ValueError):
    pass


class NotFoundError(RecDBError, ValueError):
    pass


class SchemaViolationError(RecDBError, ValueError):
    """A row or schema does not fit the declared columns"""


class MissingValueError(SchemaViolationError):

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Missing value for column '{column}'")


class InvalidTypeError(SchemaViolationError):

    def __init__(self, column: str, expected_type: str):
        self.column = column
        self.expected_type = expected_type
        super().__init__(
            f"Invalid data type for column '{column}'. Expected {expected_type}."
        )


class ExtraFieldsError(SchemaViolationError):

    def __init__(self, fields: Iterable[str]):
        self.fields: List[str] = list(fields)
        super().__init__(f"Extra fields found: {', '.join(self.fields)}")


class UnknownColumnError(SchemaViolationError):

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"Cannot update non-existent column '{column}'")


class MultipleAutoIncrementError(SchemaViolationError):

    def __init__(self, columns: Iterable[str]):
        self.columns: List[str] = list(columns)
        super().__init__(
            "A table can have only one auto-increment column "
            f"(got: {', '.join(self.columns)})"
        )


class BadAutoIncrementTypeError(SchemaViolationError):

    def __init__(self, column: str, actual_type: str):
        self.column = column
        self.actual_type = actual_type
        super().__init__(
            f"Auto-increment column '{column}' must be of type 'integer', "
            f"not '{actual_type}'"
        )


class EmptyFilterError(RecDBError, ValueError):

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"No filter criteria given for {operation}; "
            "refusing to touch every row of the table"
        )


class ProjectionColumnMissingError(RecDBError, ValueError):

    def __init__(self, missing: Iterable[str]):
        self.missing: List[str] = list(missing)
        super().__init__(
            f"Projection impossible. Column(s) not found: {', '.join(self.missing)}"
        )


class StorageError(RecDBError):
    """Reading, writing or removing persisted data failed"""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
