# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB repository with connection pooling, unique indexes and transactions.
"""

import os
import logging
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar

from bson.codec_options import CodecOptions, TypeCodec, TypeRegistry
from bson.decimal128 import Decimal128
from opentelemetry import trace
from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError,
    PyMongoError
)
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from ..domain.errors import PersistenceError, UniqueConstraintError
from ..models.base import generate_object_id, utc_now
from ..models.enums import Collections
from .repository import Repository, SortSpec, UNIQUE_INDEXES

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

T = TypeVar('T')


class DecimalCodec(TypeCodec):
    """Store monetary Decimal values as BSON Decimal128."""

    python_type = Decimal
    bson_type = Decimal128

    def transform_python(self, value):
        return Decimal128(value)

    def transform_bson(self, value):
        return value.to_decimal()


CODEC_OPTIONS = CodecOptions(type_registry=TypeRegistry([DecimalCodec()]), tz_aware=True)

# Lookup indexes besides the unique constraints
LOOKUP_INDEXES: Dict[str, List[List[Tuple[str, int]]]] = {
    Collections.VICTIM_REQUESTS: [
        [("user_id", ASCENDING), ("created_at", DESCENDING)],
        [("status", ASCENDING), ("created_at", DESCENDING)],
    ],
    Collections.VOLUNTEER_CALLS: [[("status", ASCENDING), ("created_at", DESCENDING)]],
    Collections.VOLUNTEER_CALL_APPLICATIONS: [[("call_id", ASCENDING), ("status", ASCENDING)]],
    Collections.RESOURCE_ALLOCATIONS: [
        [("resource_id", ASCENDING)],
        [("request_id", ASCENDING)],
    ],
    Collections.DONATIONS: [
        [("fundraiser_id", ASCENDING)],
        [("donor_user_id", ASCENDING), ("donation_date", DESCENDING)],
    ],
    Collections.REPORTS: [[("request_id", ASCENDING), ("report_date", DESCENDING)]],
}


def _to_mongo_query(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Translate the public id field to MongoDB's _id."""
    query = dict(filters or {})
    if "id" in query:
        query["_id"] = query.pop("id")
    return query


def _from_mongo(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if document is not None and "_id" in document:
        document["id"] = str(document.pop("_id"))
    return document


class MongoRepository(Repository):
    """
    MongoDB repository with connection pooling.

    Multi-document transactions require a replica set or sharded cluster.
    They are not retried: a write conflict aborts the transaction and
    surfaces as PersistenceError.
    """

    def __init__(self, connection_string: str = None, database_name: str = None,
                 client: Optional[MongoClient] = None):
        """Initialize the repository; the connection is opened lazily."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/relief_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'relief_dev')
        self._client: Optional[MongoClient] = client
        self._database: Optional[Database] = None
        self._local = threading.local()

        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))

        logger.info(f"MongoDB repository initialized for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True,
                    tz_aware=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                self._client = None
                raise PersistenceError("Database is unavailable", details={'reason': str(e)})

        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database with the Decimal codec registered."""
        if self._database is None:
            self._database = self.client.get_database(self.database_name, codec_options=CODEC_OPTIONS)
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._database = None
            logger.info("MongoDB connection closed")

    def _session(self) -> Optional[ClientSession]:
        return getattr(self._local, "session", None)

    @contextmanager
    def _errors(self, action: str, collection: str) -> Iterator[None]:
        try:
            yield
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key error in {collection}: {e}")
            raise UniqueConstraintError(collection)
        except PyMongoError as e:
            logger.error(f"Failed to {action} in {collection}: {e}")
            raise PersistenceError(f"Failed to {action} in {collection}", details={'reason': str(e)})

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._errors("find document", collection):
            document = self.get_collection(collection).find_one({"_id": doc_id}, session=self._session())

        if document is None:
            logger.debug(f"Document {doc_id} not found in {collection}")
        return _from_mongo(dict(document))

    def find_one(self, collection: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._errors("find document", collection):
            document = self.get_collection(collection).find_one(
                _to_mongo_query(filters), session=self._session()
            )
        return _from_mongo(dict(document))

    def list(self, collection: str, filters: Optional[Dict[str, Any]] = None,
             order_by: Optional[SortSpec] = None) -> List[Dict[str, Any]]:
        with self._errors("find documents", collection):
            cursor = self.get_collection(collection).find(_to_mongo_query(filters), session=self._session())
            if order_by:
                cursor = cursor.sort(list(order_by))
            documents = [_from_mongo(doc) for doc in cursor]

        logger.debug(f"Found {len(documents)} documents in {collection}")
        return documents

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        with self._errors("count documents", collection):
            return self.get_collection(collection).count_documents(
                _to_mongo_query(filters), session=self._session()
            )

    def insert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(document)
        document["_id"] = document.pop("id", None) or generate_object_id()
        now = utc_now()
        document.setdefault("created_at", now)
        document.setdefault("updated_at", now)

        with self._errors("create document", collection):
            result = self.get_collection(collection).insert_one(document, session=self._session())

        logger.info(f"Created document in {collection}: {result.inserted_id}")
        return _from_mongo(dict(document))

    def update(self, collection: str, doc_id: str, changes: Optional[Dict[str, Any]] = None,
               guard: Optional[Dict[str, Any]] = None,
               increments: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        query = _to_mongo_query(guard)
        query["_id"] = doc_id

        operations: Dict[str, Any] = {"$set": {**(changes or {}), "updated_at": utc_now()}}
        if increments:
            operations["$inc"] = dict(increments)

        with self._errors("update document", collection):
            document = self.get_collection(collection).find_one_and_update(
                query,
                operations,
                return_document=ReturnDocument.AFTER,
                session=self._session()
            )

        if document is None:
            logger.warning(f"No document updated for {doc_id} in {collection}")
        return _from_mongo(dict(document))

    def with_transaction(self, fn: Callable[[Repository], T]) -> T:
        if self._session() is not None:
            return fn(self)

        with tracer.start_as_current_span("mongodb.transaction"):
            try:
                with self.client.start_session() as session:
                    with session.start_transaction(
                        read_concern=ReadConcern("majority"),
                        write_concern=WriteConcern("majority")
                    ):
                        self._local.session = session
                        try:
                            return fn(self)
                        finally:
                            self._local.session = None
            except DuplicateKeyError as e:
                logger.warning(f"Duplicate key error during transaction: {e}")
                raise UniqueConstraintError("transaction")
            except PyMongoError as e:
                logger.error(f"Transaction aborted: {e}")
                raise PersistenceError("Transaction aborted, try again", details={'reason': str(e)})

    # Index Management

    def create_indexes(self) -> None:
        """Create unique constraints and lookup indexes for all collections."""
        with self._errors("create indexes", "database"):
            logger.info("Creating MongoDB indexes...")

            for collection, indexes in UNIQUE_INDEXES.items():
                for fields in indexes:
                    self.get_collection(collection).create_index(
                        [(field, ASCENDING) for field in fields], unique=True
                    )

            for collection, indexes in LOOKUP_INDEXES.items():
                for keys in indexes:
                    self.get_collection(collection).create_index(keys)

            logger.info("MongoDB indexes created successfully")

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.client.admin.command('ping')
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'backend': 'mongodb',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name
            }
        except (PyMongoError, PersistenceError) as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'backend': 'mongodb',
                'error': str(e),
                'database': self.database_name
            }
