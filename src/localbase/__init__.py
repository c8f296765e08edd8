"""
Localbase
Embedded persistence and query layer standing in for a hosted database client

Features:
- Chainable, deferred queries over named collections stored as one blob each
- Insert/update/delete serialized per collection so concurrent writes are never lost
- Password sign-in sessions, synthetic RPC and edge-function dispatch
- Uniform {data, error} response envelope and an optional TTL response cache
"""

from .cache import ResponseCache
from .client import CollectionRef, LocalClient, create_client
from .collection import CollectionStore
from .config import Settings
from .crypto import BlobCipher, EncryptedStorageBackend, generate_key
from .errors import (
    LocalbaseError, NotFoundError, NotImplementedFunctionError,
    StorageError, UserNotFoundError, ValidationError
)
from .query import Condition, Operator, OrderBy, QueryBuilder, QuerySpec, execute_query
from .response import Response
from .rpc import FunctionRegistry, edge_registry, rpc_registry
from .schema import Column, DataType, TableSchema
from .storage import FileStorageBackend, MemoryStorageBackend, StorageBackend

__all__ = [
    'LocalClient',
    'CollectionRef',
    'create_client',
    'Settings',
    'Response',
    'ResponseCache',
    'CollectionStore',
    'QueryBuilder',
    'QuerySpec',
    'Condition',
    'Operator',
    'OrderBy',
    'execute_query',
    'StorageBackend',
    'MemoryStorageBackend',
    'FileStorageBackend',
    'EncryptedStorageBackend',
    'BlobCipher',
    'generate_key',
    'FunctionRegistry',
    'rpc_registry',
    'edge_registry',
    'Column',
    'DataType',
    'TableSchema',
    'LocalbaseError',
    'StorageError',
    'NotFoundError',
    'UserNotFoundError',
    'NotImplementedFunctionError',
    'ValidationError',
]

__version__ = '1.0.0'
