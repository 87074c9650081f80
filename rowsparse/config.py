"""
Scratch-Pool Configuration

Start-up settings for the process-wide scratch-buffer pool,
optionally read from a YAML file of the form

    buffers: 10
    buffer_len: 100

The file is found via an explicit path, else the `ROWSPARSE_CONFIG` environment variable.
Without either, the built-in defaults apply.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import ruamel.yaml
from ruamel.yaml.error import YAMLError

from .errors import ConfigError

logger = logging.getLogger(__name__)

yaml = ruamel.yaml.YAML(typ="safe", pure=True)

CONFIG_ENV_VAR = "ROWSPARSE_CONFIG"
BUFFERS = 10
BUFFER_LEN = 100


class PoolConfig(object):
    def __init__(self, buffers: int = BUFFERS, buffer_len: int = BUFFER_LEN):
        if isinstance(buffers, bool) or not isinstance(buffers, int) or buffers < 1:
            raise ConfigError(f"buffers must be a positive integer, got {buffers!r}")
        if isinstance(buffer_len, bool) or not isinstance(buffer_len, int) or buffer_len < 0:
            raise ConfigError(f"buffer_len must be a non-negative integer, got {buffer_len!r}")
        self.buffers = buffers
        self.buffer_len = buffer_len

    def __repr__(self):
        return f"<{self.__class__.__name__}(buffers={self.buffers}, buffer_len={self.buffer_len})>"

    def __eq__(self, other):
        if not isinstance(other, PoolConfig):
            return NotImplemented
        return self.buffers == other.buffers and self.buffer_len == other.buffer_len

    def to_dict(self):
        return dict(buffers=self.buffers, buffer_len=self.buffer_len)

    @classmethod
    def from_dict(cls, d: Optional[dict]):
        if d is None:
            d = {}
        if not isinstance(d, dict):
            raise ConfigError(f"Pool configuration must be a mapping, got {type(d).__name__}")
        unknown = set(d) - {"buffers", "buffer_len"}
        if unknown:
            raise ConfigError(f"Unknown pool configuration keys: {sorted(unknown)}")
        return cls(
            buffers=d.get("buffers", BUFFERS),
            buffer_len=d.get("buffer_len", BUFFER_LEN),
        )

    @classmethod
    def load(cls, file: Union[str, Path]):
        p = Path(file)
        if not p.exists():
            raise FileNotFoundError(f"Pool configuration file not found: {p}")
        try:
            d = yaml.load(p)
        except YAMLError as e:
            raise ConfigError(f"Invalid YAML in {p}: {e}") from e
        logger.info("Loaded pool configuration from %s", p)
        return cls.from_dict(d)


def load_config(path: Union[str, Path, None] = None) -> PoolConfig:
    """ Resolve the pool configuration.
    Explicit `path` first, then the environment variable, then defaults. """
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR) or None
    if path is None:
        return PoolConfig()
    return PoolConfig.load(path)
