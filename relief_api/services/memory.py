# SPDX-License-Identifier: Apache-2.0

"""
In-memory repository for local development and tests.

This module keeps documents in process memory with the same contract as
the MongoDB repository: unique indexes, conditional updates and
all-or-nothing transactions.
"""

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from opentelemetry import trace
from pymongo import DESCENDING

from ..domain.errors import UniqueConstraintError
from ..models.base import generate_object_id, utc_now
from .repository import Repository, SortSpec, UNIQUE_INDEXES

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

T = TypeVar('T')


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(value, operand):
        if value is None or operand is None:
            return False
        return op(value, operand)
    return check


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "$gt": _compare(lambda v, o: v > o),
    "$gte": _compare(lambda v, o: v >= o),
    "$lt": _compare(lambda v, o: v < o),
    "$lte": _compare(lambda v, o: v <= o),
    "$ne": lambda v, o: v != o,
    "$in": lambda v, o: v in o,
    "$nin": lambda v, o: v not in o,
}


def matches(document: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    """Evaluate the supported MongoDB query subset against a document."""
    for key, condition in (filters or {}).items():
        value = document.get(key)
        if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
            for op, operand in condition.items():
                if op not in _OPERATORS:
                    raise ValueError(f"Unsupported query operator: {op}")
                if not _OPERATORS[op](value, operand):
                    return False
        elif value != condition:
            return False
    return True


def _sort(documents: List[Dict[str, Any]], order_by: Optional[SortSpec]) -> List[Dict[str, Any]]:
    # Stable sorts applied from the last key to the first
    for field, direction in reversed(list(order_by or [])):
        documents.sort(
            key=lambda d: (d.get(field) is not None, d.get(field)),
            reverse=direction == DESCENDING
        )
    return documents


class InMemoryRepository(Repository):
    """
    Process-local document store.

    Transactions serialize on a re-entrant lock and restore a snapshot
    when the transaction function raises.
    """

    def __init__(self, unique_indexes: Optional[Dict[str, List[Tuple[str, ...]]]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._unique_indexes: Dict[str, List[Tuple[str, ...]]] = {}
        self._lock = threading.RLock()
        self._local = threading.local()
        if unique_indexes:
            self._unique_indexes.update(unique_indexes)
        logger.info("In-memory repository initialized")

    def _store(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _in_transaction(self) -> bool:
        return getattr(self._local, "depth", 0) > 0

    def _check_unique(self, collection: str, document: Dict[str, Any]) -> None:
        for fields in self._unique_indexes.get(collection, []):
            key = tuple(document.get(f) for f in fields)
            for other in self._store(collection).values():
                if other["id"] == document["id"]:
                    continue
                if tuple(other.get(f) for f in fields) == key:
                    logger.warning(f"Unique index violation in {collection} on {fields}")
                    raise UniqueConstraintError(
                        collection,
                        f"Duplicate key in {collection} for {', '.join(fields)}"
                    )

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._store(collection).get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    def find_one(self, collection: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            for document in self._store(collection).values():
                if matches(document, filters):
                    return copy.deepcopy(document)
            return None

    def list(self, collection: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[SortSpec] = None) -> List[Dict[str, Any]]:
        with self._lock:
            documents = [
                copy.deepcopy(d) for d in self._store(collection).values() if matches(d, filters)
            ]
        logger.debug(f"Found {len(documents)} documents in {collection}")
        return _sort(documents, order_by)

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        with self._lock:
            return sum(1 for d in self._store(collection).values() if matches(d, filters))

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            document = copy.deepcopy(document)
            document.setdefault("id", generate_object_id())
            now = utc_now()
            document.setdefault("created_at", now)
            document.setdefault("updated_at", now)

            if document["id"] in self._store(collection):
                raise UniqueConstraintError(collection, f"Document {document['id']} already exists in {collection}")
            self._check_unique(collection, document)

            self._store(collection)[document["id"]] = document
            logger.debug(f"Created document in {collection}: {document['id']}")
            return copy.deepcopy(document)

    def update(self, collection: str, doc_id: str, changes: Optional[Dict[str, Any]] = None,
               guard: Optional[Dict[str, Any]] = None,
               increments: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        with self._lock:
            current = self._store(collection).get(doc_id)
            if current is None or not matches(current, guard):
                logger.debug(f"No document updated for {doc_id} in {collection}")
                return None

            updated = copy.deepcopy(current)
            updated.update(copy.deepcopy(changes or {}))
            for field, amount in (increments or {}).items():
                updated[field] = (updated.get(field) or 0) + amount
            updated["updated_at"] = utc_now()

            self._check_unique(collection, updated)
            self._store(collection)[doc_id] = updated
            return copy.deepcopy(updated)

    def with_transaction(self, fn: Callable[[Repository], T]) -> T:
        with self._lock:
            if self._in_transaction():
                return fn(self)

            with tracer.start_as_current_span("memory.transaction"):
                snapshot = copy.deepcopy(self._collections)
                self._local.depth = 1
                try:
                    return fn(self)
                except BaseException:
                    self._collections = snapshot
                    logger.debug("In-memory transaction rolled back")
                    raise
                finally:
                    self._local.depth = 0

    def create_indexes(self) -> None:
        with self._lock:
            for collection, indexes in UNIQUE_INDEXES.items():
                existing = self._unique_indexes.setdefault(collection, [])
                for fields in indexes:
                    if fields not in existing:
                        existing.append(fields)
        logger.info("In-memory unique indexes registered")

    def health_check(self) -> Dict[str, Any]:
        with self._lock:
            counts = {name: len(docs) for name, docs in self._collections.items()}
        return {
            'status': 'healthy',
            'backend': 'memory',
            'collections': counts
        }

    def clear(self) -> None:
        """Drop every stored document."""
        with self._lock:
            self._collections = {}
