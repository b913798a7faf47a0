"""
Storage Package

The repository contract the engines read and write through, plus two
implementations: an in-memory store and a JSON snapshot file.
"""

from .json_store import JsonFileRepository
from .memory import InMemoryRepository
from .repository import BudgetRepository, DateRange

__all__ = ["BudgetRepository", "DateRange", "InMemoryRepository", "JsonFileRepository"]
