"""
Mutation Queue for Localbase
Serializes load -> mutate -> save cycles per collection, in submission order
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger('localbase.mutation')


class OperationType(Enum):
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'


class OperationState(Enum):
    PENDING = 'pending'
    COMMITTED = 'committed'
    ABORTED = 'aborted'


@dataclass
class Operation:
    seq: int
    op_type: OperationType
    collection: str
    state: OperationState = OperationState.PENDING
    submitted_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    error: Optional[str] = None

    def mark_committed(self):
        self.state = OperationState.COMMITTED
        self.finished_at = time.time()

    def mark_aborted(self, error: BaseException):
        self.state = OperationState.ABORTED
        self.finished_at = time.time()
        self.error = str(error)


class MutationQueue:
    """
    One FIFO lane per collection.

    asyncio.Lock wakes waiters in the order they started waiting, so operations
    on a collection run strictly in submission order while different
    collections never wait on each other. ``history_size`` bounds the log of
    finished operations kept for inspection.
    """

    def __init__(self, history_size: int = 100):
        self._lanes: Dict[str, asyncio.Lock] = {}
        self._pending: Dict[str, int] = {}
        self._seq = 0
        self._history: List[Operation] = []
        self.history_size = history_size

    def _get_lane(self, collection: str) -> asyncio.Lock:
        if collection not in self._lanes:
            self._lanes[collection] = asyncio.Lock()
        return self._lanes[collection]

    async def submit(self, op_type: OperationType, collection: str, apply: Callable[[], Any]) -> Any:
        """
        Run ``apply`` once every earlier operation on ``collection`` has finished.

        Returns what ``apply`` returns. An exception from ``apply`` marks the
        operation aborted and is re-raised to the caller.
        """
        self._seq += 1
        operation = Operation(seq=self._seq, op_type=op_type, collection=collection)
        self._pending[collection] = self._pending.get(collection, 0) + 1

        lane = self._get_lane(collection)
        try:
            async with lane:
                logger.debug(f"Running {op_type.value} #{operation.seq} on {collection}")
                try:
                    result = apply()
                except Exception as e:
                    operation.mark_aborted(e)
                    raise
                operation.mark_committed()
                return result
        finally:
            self._pending[collection] -= 1
            self._record(operation)

    def _record(self, operation: Operation):
        self._history.append(operation)
        if len(self._history) > self.history_size:
            del self._history[:len(self._history) - self.history_size]

    def pending(self, collection: str) -> int:
        """Operations on ``collection`` that are queued or running."""
        return self._pending.get(collection, 0)

    def history(self, collection: Optional[str] = None) -> List[Operation]:
        """Finished operations, oldest first, optionally for one collection."""
        if collection is None:
            return list(self._history)
        return [op for op in self._history if op.collection == collection]
