"""
Response Envelope
Uniform {data, error} result returned by every client operation
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .errors import LocalbaseError

logger = logging.getLogger('localbase.response')


@dataclass(frozen=True)
class Response:
    data: Any = None
    error: Optional[LocalbaseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> Any:
        """Return ``data`` or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.data

    def to_dict(self) -> Dict[str, Any]:
        return {
            'data': self.data,
            'error': self.error.to_dict() if self.error is not None else None
        }

    @classmethod
    def success(cls, data: Any) -> 'Response':
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, error: LocalbaseError) -> 'Response':
        return cls(data=None, error=error)


async def respond(operation: str, call: Callable[[], Awaitable[Any]]) -> Response:
    try:
        data = await call()
    except LocalbaseError as e:
        logger.warning(f"{operation} failed: {e.code}: {e.message}")
        return Response.failure(e)
    return Response.success(data)
