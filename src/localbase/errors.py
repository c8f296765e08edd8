"""
Error Taxonomy for Localbase
Every failure the client reports travels inside a Response envelope as one of these
"""

from typing import Any, Dict, Optional


class LocalbaseError(Exception):
    code = 'localbase_error'

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'code': self.code,
            'message': self.message
        }
        if self.details:
            result['details'] = dict(self.details)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class StorageError(LocalbaseError):
    code = 'storage_error'


class NotFoundError(LocalbaseError):
    code = 'not_found'


class UserNotFoundError(NotFoundError):
    code = 'user_not_found'


class NotImplementedFunctionError(LocalbaseError, NotImplementedError):
    code = 'not_implemented'


class ValidationError(LocalbaseError):
    code = 'validation_error'
