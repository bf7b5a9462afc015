# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Persistence collaborator contract.

Managers only talk to storage through this interface. Every call is
atomic on its own; multi-entity commands wrap their calls in
with_transaction so all writes commit together or not at all.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from pymongo import ASCENDING, DESCENDING

from ..models.enums import Collections

T = TypeVar('T')

SortSpec = Sequence[Tuple[str, int]]

# Unique indexes shared by every backend
UNIQUE_INDEXES: Dict[str, List[Tuple[str, ...]]] = {
    Collections.VOLUNTEERS: [("user_id",)],
    Collections.VOLUNTEER_CALL_APPLICATIONS: [("call_id", "volunteer_id")],
}

NEWEST_FIRST: SortSpec = [("created_at", DESCENDING)]
OLDEST_FIRST: SortSpec = [("created_at", ASCENDING)]


class Repository(ABC):
    """Document store used by the relief managers."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a document by ID, None when missing."""

    @abstractmethod
    def find_one(self, collection: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Fetch the first document matching filters."""

    @abstractmethod
    def list(self, collection: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[SortSpec] = None) -> List[Dict[str, Any]]:
        """List documents matching filters in the requested order."""

    @abstractmethod
    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count documents matching filters."""

    @abstractmethod
    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a document.

        Raises:
            UniqueConstraintError: a unique index rejected the document
        """

    @abstractmethod
    def update(self, collection: str, doc_id: str, changes: Optional[Dict[str, Any]] = None,
               guard: Optional[Dict[str, Any]] = None,
               increments: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        Conditionally update one document.

        The update applies only if the document also matches guard
        (compare-and-swap). Increments are applied atomically.

        Returns:
            The updated document, or None when nothing matched
        """

    @abstractmethod
    def with_transaction(self, fn: Callable[["Repository"], T]) -> T:
        """
        Run fn(repository) as one atomic unit.

        Nested calls join the running transaction. Any exception raised by
        fn aborts every write made inside it and propagates unchanged.
        """

    @abstractmethod
    def create_indexes(self) -> None:
        """Declare unique constraints and lookup indexes."""

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Report backend connectivity."""
