"""
Data Types Module - Defines supported column data types for RecDB

Supports: integer, real, char, string, complexInteger, complexReal

Complex numbers have no native scalar in the stored JSON, so they are kept
as text in one of three shapes:

    full form       "1+2i", "-10-5i", "1.5-2.25i"
    real only       "5", "-0.5"
    imaginary only  "-8i", "3.14i"
"""

from enum import Enum
from typing import Any, Callable, Dict
import math
import re


class DataType(Enum):
    """Supported data types in RecDB"""
    INTEGER = 'integer'
    REAL = 'real'
    CHAR = 'char'
    STRING = 'string'
    COMPLEX_INTEGER = 'complexInteger'
    COMPLEX_REAL = 'complexReal'

    def __str__(self) -> str:
        return self.value


_INTEGER_RE = re.compile(r'-?[0-9]+')

_INT_PART = r'-?[0-9]+'
_COMPLEX_INTEGER_RES = (
    re.compile(rf'{_INT_PART}[+-][0-9]+i'),
    re.compile(rf'{_INT_PART}'),
    re.compile(rf'{_INT_PART}i'),
)

_UNSIGNED_REAL = r'[0-9]+(?:\.[0-9]+)?'
_REAL_PART = rf'-?{_UNSIGNED_REAL}'
_COMPLEX_REAL_RES = (
    re.compile(rf'{_REAL_PART}[+-]{_UNSIGNED_REAL}i'),
    re.compile(rf'{_REAL_PART}'),
    re.compile(rf'{_REAL_PART}i'),
)


class TypeValidator:
    """Pure predicates deciding whether a raw value fits a column type"""

    @staticmethod
    def parse_type(type_str: str) -> DataType:
        """Map a type name such as 'complexReal' to its DataType"""
        try:
            return DataType(type_str)
        except ValueError:
            raise ValueError(f"Unknown data type: {type_str}") from None

    @staticmethod
    def validate_integer(value: Any) -> bool:
        # bool is an int subclass, but JSON true/false are not numbers
        if isinstance(value, int) and not isinstance(value, bool):
            return True
        if isinstance(value, float):
            return math.isfinite(value) and value.is_integer()
        if isinstance(value, str) and value.strip() != '':
            return _INTEGER_RE.fullmatch(value) is not None
        return False

    @staticmethod
    def validate_real(value: Any) -> bool:
        if isinstance(value, float):
            return math.isfinite(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return True
        if isinstance(value, str) and value.strip() != '':
            # float() also takes '_' separators and non-ASCII digits
            if '_' in value or not value.isascii():
                return False
            try:
                return math.isfinite(float(value))
            except ValueError:
                return False
        return False

    @staticmethod
    def validate_char(value: Any) -> bool:
        return isinstance(value, str) and len(value) == 1

    @staticmethod
    def validate_string(value: Any) -> bool:
        return isinstance(value, str)

    @staticmethod
    def validate_complex_integer(value: Any) -> bool:
        if not isinstance(value, str):
            return False
        return any(regex.fullmatch(value) for regex in _COMPLEX_INTEGER_RES)

    @staticmethod
    def validate_complex_real(value: Any) -> bool:
        if not isinstance(value, str):
            return False
        return any(regex.fullmatch(value) for regex in _COMPLEX_REAL_RES)

    @classmethod
    def validate(cls, value: Any, dtype: DataType) -> bool:
        """Check a raw value against the validator registered for dtype"""
        return _VALIDATORS[dtype](value)


_VALIDATORS: Dict[DataType, Callable[[Any], bool]] = {
    DataType.INTEGER: TypeValidator.validate_integer,
    DataType.REAL: TypeValidator.validate_real,
    DataType.CHAR: TypeValidator.validate_char,
    DataType.STRING: TypeValidator.validate_string,
    DataType.COMPLEX_INTEGER: TypeValidator.validate_complex_integer,
    DataType.COMPLEX_REAL: TypeValidator.validate_complex_real,
}
