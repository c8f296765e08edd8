"""
Localbase Configuration
Settings read from environment variables (a .env file is loaded by the entry point)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .collection import ID_STRATEGIES

BACKENDS = ('file', 'memory')


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    backend: str = 'file'
    data_dir: str = 'data/localbase'
    key_prefix: str = 'cheforg_'
    id_strategy: str = 'serial'
    cache_ttl_minutes: float = 0
    cache_max_size: int = 500
    encryption_key: Optional[str] = None
    log_level: str = 'INFO'

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValueError(f"LOCALBASE_BACKEND must be one of {BACKENDS}, got {self.backend!r}")
        if self.id_strategy not in ID_STRATEGIES:
            raise ValueError(
                f"LOCALBASE_ID_STRATEGY must be one of {ID_STRATEGIES}, got {self.id_strategy!r}"
            )

    @property
    def cache_enabled(self) -> bool:
        return self.cache_ttl_minutes > 0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'Settings':
        if env is None:
            env = os.environ
        return cls(
            backend=env.get('LOCALBASE_BACKEND', 'file').strip().lower(),
            data_dir=env.get('LOCALBASE_DATA_DIR', 'data/localbase'),
            key_prefix=env.get('LOCALBASE_KEY_PREFIX', 'cheforg_'),
            id_strategy=env.get('LOCALBASE_ID_STRATEGY', 'serial').strip().lower(),
            cache_ttl_minutes=_get_float(env, 'LOCALBASE_CACHE_TTL_MINUTES', 0),
            cache_max_size=_get_int(env, 'LOCALBASE_CACHE_MAX_SIZE', 500),
            encryption_key=env.get('LOCALBASE_ENCRYPTION_KEY') or None,
            log_level=env.get('LOCALBASE_LOG_LEVEL', 'INFO').strip().upper()
        )
