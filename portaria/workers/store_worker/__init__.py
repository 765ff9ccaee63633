"""
Store Worker module for local persistence

Provides the JSON-file key-value store and the visitor/visit repositories
"""

from .local_store import LocalStore
from .visitor_repo import VisitorRepository
from .visit_repo import VisitRepository

__all__ = [
    "LocalStore",
    "VisitorRepository",
    "VisitRepository",
]
