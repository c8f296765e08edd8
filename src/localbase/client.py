"""
Localbase Client
Entry point that ties storage, queries, mutations, sessions, RPC and caching together
"""

import copy
import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .auth import SessionManager
from .cache import ResponseCache, collection_pattern, make_query_key
from .collection import CollectionStore, Record
from .config import Settings
from .crypto import EncryptedStorageBackend
from .crud import CrudExecutor, MutationBuilder
from .mutation import MutationQueue
from .query import Condition, QueryBuilder, QuerySpec, execute_query, parse_columns
from .response import Response, respond
from .rpc import Dispatcher, FunctionRegistry
from .schema import TableSchema
from .storage import FileStorageBackend, MemoryStorageBackend, StorageBackend

logger = logging.getLogger('localbase.client')


class CollectionRef:
    def __init__(self, client: 'LocalClient', name: str):
        self._client = client
        self.name = name

    def select(self, columns: Union[str, Iterable[str]] = '*') -> QueryBuilder:
        """Start a deferred query; chain filters and await the builder to run it."""
        spec = QuerySpec(collection=self.name, columns=parse_columns(columns))
        return QueryBuilder(spec, self._client._run_query)

    async def insert(self, values: Union[Record, Sequence[Record]]) -> Response:
        """Insert one record or a list of them; data is the inserted records with ids and timestamps."""
        return await respond(
            f"insert into {self.name}",
            lambda: self._client.crud.insert(self.name, values)
        )

    def update(self, patch: Record) -> MutationBuilder:
        """Merge ``patch`` into every record matching the filters chained on the result."""
        async def run(filters: Tuple[Condition, ...]) -> Response:
            return await respond(
                f"update {self.name}",
                lambda: self._client.crud.update(self.name, patch, filters)
            )
        return MutationBuilder(run)

    def delete(self) -> MutationBuilder:
        """Remove every record matching the filters chained on the result; data is the removed records."""
        async def run(filters: Tuple[Condition, ...]) -> Response:
            return await respond(
                f"delete from {self.name}",
                lambda: self._client.crud.delete(self.name, filters)
            )
        return MutationBuilder(run)

    async def truncate(self) -> Response:
        """Remove the whole collection; data is the number of records dropped."""
        return await respond(
            f"truncate {self.name}",
            lambda: self._client.crud.truncate(self.name)
        )


class FunctionsClient:
    def __init__(self, dispatcher: Dispatcher):
        self._dispatcher = dispatcher

    async def invoke(self, name: str, body: Any = None) -> Response:
        return await self._dispatcher.invoke(name, body)


class LocalClient:
    """
    Local stand-in for a hosted database client.

    Each instance owns its storage backend, mutation queue and optional cache;
    nothing is shared between instances except what the backend itself shares.
    Every public operation is a coroutine resolving to a Response.

    Args:
        storage: backend holding the blobs; an in-memory one when omitted
        key_prefix: prefix for every storage key
        id_strategy: 'serial' or 'token' id assignment
        cache: response cache for select queries; caching is off when None
        cache_ttl_minutes: lifetime of cached select results
        schemas: optional per-collection TableSchema checks
    """

    def __init__(
        self,
        storage: Optional[StorageBackend] = None,
        key_prefix: str = 'cheforg_',
        id_strategy: str = 'serial',
        cache: Optional[ResponseCache] = None,
        cache_ttl_minutes: Optional[float] = None,
        schemas: Optional[Dict[str, TableSchema]] = None,
        rpcs: Optional[FunctionRegistry] = None,
        functions: Optional[FunctionRegistry] = None
    ):
        self.storage = storage if storage is not None else MemoryStorageBackend()
        self.store = CollectionStore(self.storage, key_prefix=key_prefix, id_strategy=id_strategy)
        self.queue = MutationQueue()
        self.cache = cache
        self.cache_ttl_minutes = cache_ttl_minutes
        self.crud = CrudExecutor(self.store, self.queue, schemas, on_change=self._invalidate)
        self.auth = SessionManager(self.store)
        self.dispatcher = Dispatcher(self.store, rpcs, functions)
        self.functions = FunctionsClient(self.dispatcher)

    def from_(self, name: str) -> CollectionRef:
        """Reference a collection by name. Nothing is read until a query is awaited."""
        return CollectionRef(self, name)

    table = from_

    async def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> Response:
        """Call a registered RPC; unknown names fail with NotImplementedFunctionError."""
        return await self.dispatcher.rpc(name, params)

    async def invoke_function(self, name: str, body: Any = None) -> Response:
        return await self.dispatcher.invoke(name, body)

    def collections(self) -> List[str]:
        """Names of every collection that currently has stored data."""
        return self.store.list_collections()

    def _invalidate(self, collection: str):
        if self.cache is not None:
            removed = self.cache.clear(collection_pattern(collection))
            if removed:
                logger.debug(f"Invalidated {removed} cached quer(ies) for {collection}")

    async def _select(self, spec: QuerySpec) -> Any:
        key = None
        if self.cache is not None:
            key = make_query_key(spec.collection, spec.signature())
            cached = self.cache.get(key)
            if cached is not None:
                return copy.deepcopy(cached)

        result = execute_query(spec, self.store.load(spec.collection))

        if key is not None:
            self.cache.set(key, copy.deepcopy(result), self.cache_ttl_minutes)
        return result

    async def _run_query(self, spec: QuerySpec) -> Response:
        return await respond(f"select from {spec.collection}", lambda: self._select(spec))


def create_storage(settings: Settings) -> StorageBackend:
    if settings.backend == 'memory':
        storage: StorageBackend = MemoryStorageBackend()
    else:
        storage = FileStorageBackend(os.path.abspath(settings.data_dir))

    if settings.encryption_key:
        storage = EncryptedStorageBackend(storage, settings.encryption_key)
    return storage


def create_client(
    settings: Optional[Settings] = None,
    schemas: Optional[Dict[str, TableSchema]] = None
) -> LocalClient:
    if settings is None:
        settings = Settings.from_env()

    cache = None
    if settings.cache_enabled:
        cache = ResponseCache(
            max_size=settings.cache_max_size,
            default_ttl_minutes=settings.cache_ttl_minutes
        )

    client = LocalClient(
        storage=create_storage(settings),
        key_prefix=settings.key_prefix,
        id_strategy=settings.id_strategy,
        cache=cache,
        cache_ttl_minutes=settings.cache_ttl_minutes if cache is not None else None,
        schemas=schemas
    )
    logger.info(
        f"Localbase client ready (backend={settings.backend}, "
        f"cache={'on' if cache is not None else 'off'}, "
        f"encrypted={'yes' if settings.encryption_key else 'no'})"
    )
    return client
