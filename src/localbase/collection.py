"""
Collection Store
Typed load/save of a named collection's record list with id and timestamp bookkeeping
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from .errors import StorageError, ValidationError
from .storage import StorageBackend

logger = logging.getLogger('localbase.collection')

Record = Dict[str, Any]

COLLECTION_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
SESSION_KEY = 'auth_session'
CURRENT_USER_KEY = 'current_user'
RESERVED_NAMES = frozenset({SESSION_KEY, CURRENT_USER_KEY})

ID_STRATEGIES = ('serial', 'token')


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def encode_json(value: Any) -> bytes:
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Value is not JSON serializable: {e}") from e


def decode_json(data: bytes, key: str) -> Any:
    try:
        return json.loads(data.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StorageError(f"Corrupt data under {key}: {e}", {'key': key}) from e


class CollectionStore:
    def __init__(
        self,
        backend: StorageBackend,
        key_prefix: str = 'cheforg_',
        id_strategy: str = 'serial',
        clock: Callable[[], str] = utc_now
    ):
        if id_strategy not in ID_STRATEGIES:
            raise ValueError(f"Unknown id strategy {id_strategy!r}, expected one of {ID_STRATEGIES}")
        self.backend = backend
        self.key_prefix = key_prefix
        self.id_strategy = id_strategy
        self.now = clock

    def key_for(self, name: str) -> str:
        """Storage key for a collection; rejects malformed and reserved names."""
        if not isinstance(name, str) or not COLLECTION_NAME_PATTERN.match(name):
            raise ValidationError(f"Invalid collection name: {name!r}")
        if name in RESERVED_NAMES:
            raise ValidationError(f"Collection name {name!r} is reserved")
        return f"{self.key_prefix}{name}"

    def reserved_key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    def load(self, name: str) -> List[Record]:
        """
        Read a collection's records.

        An absent collection is empty. A blob that does not decode to a list of
        records raises StorageError instead of reading as empty.
        """
        key = self.key_for(name)
        data = self.backend.read(key)
        if data is None:
            return []
        records = decode_json(data, key)
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise StorageError(f"Data under {key} is not a list of records", {'key': key})
        return records

    def save(self, name: str, records: List[Record]):
        """Replace the collection with ``records`` in a single backend write."""
        key = self.key_for(name)
        payload = encode_json(records)
        self.backend.write(key, payload)
        logger.debug(f"Saved {len(records)} record(s) to {name}")

    def drop(self, name: str):
        self.backend.remove(self.key_for(name))

    def list_collections(self) -> List[str]:
        """Collection names under this prefix, excluding the session keys."""
        reserved = {self.reserved_key(n) for n in RESERVED_NAMES}
        names = []
        for key in self.backend.keys():
            if key.startswith(self.key_prefix) and key not in reserved:
                names.append(key[len(self.key_prefix):])
        return names

    def read_value(self, name: str) -> Optional[Any]:
        key = self.reserved_key(name)
        data = self.backend.read(key)
        if data is None:
            return None
        return decode_json(data, key)

    def write_value(self, name: str, value: Any):
        self.backend.write(self.reserved_key(name), encode_json(value))

    def remove_value(self, name: str):
        self.backend.remove(self.reserved_key(name))

    def next_id(self, records: Iterable[Record], taken: Optional[Set[Any]] = None) -> Any:
        """
        Generate an id unique among ``records`` and ``taken``.

        ``taken`` carries ids already handed out in the same batch so that one
        load/save cycle never assigns the same id twice.
        """
        existing = {r.get('id') for r in records}
        if taken:
            existing |= taken

        if self.id_strategy == 'serial':
            numeric = [
                i for i in existing
                if isinstance(i, int) and not isinstance(i, bool)
            ]
            return max(numeric, default=0) + 1

        while True:
            candidate = uuid.uuid4().hex[:12]
            if candidate not in existing:
                return candidate
