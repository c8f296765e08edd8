"""
CRUD Executor
Insert/update/delete against the Collection Store, each run as one queued load -> mutate -> save unit
"""

import copy
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .collection import CollectionStore, Record
from .errors import ValidationError
from .mutation import MutationQueue, OperationType
from .query import Condition, FilterMixin
from .schema import TableSchema

logger = logging.getLogger('localbase.crud')

ID_TYPES = (str, int)


def _check_record(record: Any, position: Optional[int] = None) -> Record:
    where = f" at index {position}" if position is not None else ""
    if not isinstance(record, dict):
        raise ValidationError(f"Expected a record (dict){where}, got {type(record).__name__}")
    for key in record:
        if not isinstance(key, str):
            raise ValidationError(f"Record field names must be strings{where}, got {key!r}")
    if 'id' in record and record['id'] is not None:
        if isinstance(record['id'], bool) or not isinstance(record['id'], ID_TYPES):
            raise ValidationError(f"Record id must be a string or integer{where}")
    return record


def normalize_records(values: Any) -> List[Record]:
    if isinstance(values, dict):
        return [_check_record(values)]
    if isinstance(values, (list, tuple)):
        return [_check_record(r, i) for i, r in enumerate(values)]
    raise ValidationError(
        f"insert expects a record or a list of records, got {type(values).__name__}"
    )


class CrudExecutor:
    def __init__(
        self,
        store: CollectionStore,
        queue: MutationQueue,
        schemas: Optional[Dict[str, TableSchema]] = None,
        on_change: Optional[Callable[[str], None]] = None
    ):
        self.store = store
        self.queue = queue
        self.schemas: Dict[str, TableSchema] = dict(schemas or {})
        self._on_change = on_change

    def _changed(self, collection: str):
        if self._on_change is not None:
            self._on_change(collection)

    async def insert(self, collection: str, values: Union[Record, Sequence[Record]]) -> List[Record]:
        """
        Append records, assigning ids and timestamps.

        Raises:
            ValidationError: malformed input, a duplicate id, or a schema violation
            StorageError: the save failed; the collection keeps its previous contents
        """
        self.store.key_for(collection)
        incoming = [copy.deepcopy(r) for r in normalize_records(values)]
        if not incoming:
            return []

        schema = self.schemas.get(collection)

        def apply() -> List[Record]:
            existing = self.store.load(collection)
            used = {r.get('id') for r in existing}
            now = self.store.now()
            inserted: List[Record] = []
            batch_ids: set = set()

            for record in incoming:
                if schema is not None:
                    record = schema.apply(record)
                record_id = record.get('id')
                if record_id is None:
                    record_id = self.store.next_id(existing, batch_ids)
                elif record_id in used or record_id in batch_ids:
                    raise ValidationError(
                        f"Duplicate id {record_id!r} in {collection}",
                        {'collection': collection, 'id': record_id}
                    )
                batch_ids.add(record_id)
                record['id'] = record_id
                if not record.get('created_at'):
                    record['created_at'] = now
                record['updated_at'] = now
                inserted.append(record)

            self.store.save(collection, existing + inserted)
            return inserted

        inserted = await self.queue.submit(OperationType.INSERT, collection, apply)
        self._changed(collection)
        logger.debug(f"Inserted {len(inserted)} record(s) into {collection}")
        return copy.deepcopy(inserted)

    async def update(self, collection: str, patch: Record, filters: Tuple[Condition, ...]) -> List[Record]:
        """
        Shallow-merge ``patch`` into every record matching ``filters``.

        A patch may rename one record's id but never clear it or give the same
        id to more than one record.
        """
        self.store.key_for(collection)
        if not isinstance(patch, dict):
            raise ValidationError(f"update expects a dict patch, got {type(patch).__name__}")
        patch = copy.deepcopy(_check_record(patch))
        if 'id' in patch and patch['id'] is None:
            raise ValidationError(f"update cannot clear the id of records in {collection}")
        if not filters:
            raise ValidationError("update requires at least one filter")

        schema = self.schemas.get(collection)
        if schema is not None:
            schema.check_patch(patch)

        def apply() -> List[Record]:
            records = self.store.load(collection)
            targets = [i for i, r in enumerate(records) if all(c.evaluate(r) for c in filters)]
            if not targets:
                return []

            if 'id' in patch:
                others = {r.get('id') for i, r in enumerate(records) if i not in targets}
                if patch['id'] in others or len(targets) > 1:
                    raise ValidationError(
                        f"Update would duplicate id {patch['id']!r} in {collection}",
                        {'collection': collection, 'id': patch['id']}
                    )

            now = self.store.now()
            updated: List[Record] = []
            for i in targets:
                merged = dict(records[i])
                merged.update(copy.deepcopy(patch))
                merged['updated_at'] = now
                records[i] = merged
                updated.append(merged)

            self.store.save(collection, records)
            return updated

        updated = await self.queue.submit(OperationType.UPDATE, collection, apply)
        if updated:
            self._changed(collection)
        logger.debug(f"Updated {len(updated)} record(s) in {collection}")
        return copy.deepcopy(updated)

    async def delete(self, collection: str, filters: Tuple[Condition, ...]) -> List[Record]:
        """Remove the records matching ``filters`` and return them."""
        self.store.key_for(collection)
        if not filters:
            raise ValidationError("delete requires at least one filter")

        def apply() -> List[Record]:
            records = self.store.load(collection)
            kept: List[Record] = []
            removed: List[Record] = []
            for r in records:
                if all(c.evaluate(r) for c in filters):
                    removed.append(r)
                else:
                    kept.append(r)
            if removed:
                self.store.save(collection, kept)
            return removed

        removed = await self.queue.submit(OperationType.DELETE, collection, apply)
        if removed:
            self._changed(collection)
        logger.debug(f"Deleted {len(removed)} record(s) from {collection}")
        return removed

    async def truncate(self, collection: str) -> int:
        self.store.key_for(collection)

        def apply() -> int:
            count = len(self.store.load(collection))
            self.store.drop(collection)
            return count

        count = await self.queue.submit(OperationType.DELETE, collection, apply)
        self._changed(collection)
        logger.info(f"Truncated {collection} ({count} record(s))")
        return count


MutationRunner = Callable[[Tuple[Condition, ...]], Awaitable[Any]]


class MutationBuilder(FilterMixin):
    """Collects filters for an update or delete; awaiting it runs the mutation."""

    def __init__(self, runner: MutationRunner, filters: Tuple[Condition, ...] = ()):
        self._runner = runner
        self.filters = filters

    def _with_filter(self, condition: Condition) -> 'MutationBuilder':
        return MutationBuilder(self._runner, self.filters + (condition,))

    async def execute(self):
        return await self._runner(self.filters)

    def __await__(self):
        return self.execute().__await__()
