"""Storage module - Persistence layer"""

from .engine import StorageEngine

__all__ = ['StorageEngine']
