"""
Optional Record Schemas
Column typing for collections that want structural checks on insert/update
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import ValidationError

SYSTEM_FIELDS = ('id', 'created_at', 'updated_at')


class DataType(Enum):
    INT = 'int'
    FLOAT = 'float'
    STRING = 'string'
    BOOL = 'bool'
    TIMESTAMP = 'timestamp'
    JSON = 'json'
    ARRAY = 'array'
    ANY = 'any'

    def accepts(self, value: Any) -> bool:
        if self == DataType.ANY:
            return True
        if self == DataType.BOOL:
            return isinstance(value, bool)
        if isinstance(value, bool):
            return False
        if self == DataType.INT:
            return isinstance(value, int)
        if self == DataType.FLOAT:
            return isinstance(value, (int, float))
        if self in (DataType.STRING, DataType.TIMESTAMP):
            return isinstance(value, str)
        if self == DataType.JSON:
            return isinstance(value, dict)
        if self == DataType.ARRAY:
            return isinstance(value, list)
        return False


@dataclass
class Column:
    name: str
    data_type: DataType = DataType.ANY
    nullable: bool = True
    default: Any = None


@dataclass
class TableSchema:
    name: str
    columns: List[Column]
    extra_fields: bool = True
    _by_name: Dict[str, Column] = field(init=False, repr=False)

    def __post_init__(self):
        self._by_name = {col.name: col for col in self.columns}

    def get_column(self, name: str) -> Optional[Column]:
        return self._by_name.get(name)

    def _check_value(self, column: Column, value: Any):
        if value is None:
            if not column.nullable:
                raise ValidationError(
                    f"Column {self.name}.{column.name} is not nullable",
                    {'column': column.name}
                )
            return
        if not column.data_type.accepts(value):
            raise ValidationError(
                f"Column {self.name}.{column.name} expects {column.data_type.value}, "
                f"got {type(value).__name__}",
                {'column': column.name, 'expected': column.data_type.value}
            )

    def _check_unknown(self, record: Dict[str, Any]):
        if self.extra_fields:
            return
        unknown = [k for k in record if k not in self._by_name and k not in SYSTEM_FIELDS]
        if unknown:
            raise ValidationError(
                f"Unknown columns for {self.name}: {', '.join(sorted(unknown))}",
                {'columns': sorted(unknown)}
            )

    def apply(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Fill defaults and validate a full record about to be inserted."""
        self._check_unknown(record)
        result = dict(record)
        for col in self.columns:
            if col.name not in result:
                result[col.name] = copy.deepcopy(col.default)
            self._check_value(col, result[col.name])
        return result

    def check_patch(self, patch: Dict[str, Any]):
        self._check_unknown(patch)
        for key, value in patch.items():
            col = self._by_name.get(key)
            if col is not None:
                self._check_value(col, value)
