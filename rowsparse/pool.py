"""
Scratch-Buffer Pool

A fixed set of reusable `SparseRow` buffers, borrowed and returned around
matrix products so the hot loop does not allocate a new column-vector per call.
Borrowing blocks while every buffer is out, so the pool doubles as a throttle
on the number of concurrent products.

The process-wide pool is set up explicitly:

    from rowsparse import pool
    pool.initialize(buffers=10, buffer_len=100)
    ...
    pool.teardown()
"""

import logging
import queue
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Set

from .config import PoolConfig, load_config
from .errors import PoolError
from .row import SparseRow

logger = logging.getLogger(__name__)


class ScratchBufferPool(object):
    """ Bounded pool of `buffers` scratch rows.
    Buffers outstanding plus buffers resting always equals `capacity`. """

    def __init__(self, buffers: int, buffer_len: int):
        cfg = PoolConfig(buffers=buffers, buffer_len=buffer_len)
        self.capacity = cfg.buffers
        # Expected number of stored elements per buffer; Python lists grow on demand.
        self.buffer_len = cfg.buffer_len
        self._queue: "queue.Queue[SparseRow]" = queue.Queue(maxsize=self.capacity)
        self._outstanding: Set[int] = set()
        self._lock = threading.Lock()
        for _ in range(self.capacity):
            self._queue.put_nowait(SparseRow())

    def __repr__(self):
        return f"<{self.__class__.__name__}(available={self.available}, capacity={self.capacity})>"

    @property
    def available(self) -> int:
        """ Number of buffers resting in the pool """
        return self._queue.qsize()

    @property
    def outstanding(self) -> int:
        """ Number of buffers currently borrowed """
        with self._lock:
            return len(self._outstanding)

    def borrow(self) -> SparseRow:
        """ Take a buffer, blocking until one is available. """
        buf = self._queue.get()
        with self._lock:
            self._outstanding.add(id(buf))
        logger.debug("Borrowed scratch buffer, %d of %d left", self.available, self.capacity)
        return buf

    def release(self, buf: SparseRow) -> None:
        """ Truncate `buf` and return it to the pool. """
        if not isinstance(buf, SparseRow):
            raise PoolError(f"Cannot release {type(buf).__name__} into a scratch pool")
        with self._lock:
            if id(buf) not in self._outstanding:
                raise PoolError("Released buffer was not borrowed from this pool")
            self._outstanding.discard(id(buf))
        buf.clear()
        self._queue.put_nowait(buf)
        logger.debug("Released scratch buffer, %d of %d available", self.available, self.capacity)

    @contextmanager
    def borrowed(self) -> Iterator[SparseRow]:
        """ Borrow a buffer for the duration of a `with` block.
        Released on every exit path, including exceptions. """
        buf = self.borrow()
        try:
            yield buf
        finally:
            self.release(buf)


_pool: Optional[ScratchBufferPool] = None
_pool_lock = threading.Lock()


def initialize(buffers: Optional[int] = None,
               buffer_len: Optional[int] = None,
               config: Optional[PoolConfig] = None) -> ScratchBufferPool:
    """ Create the process-wide pool.
    Arguments left as None are taken from `config`, else from `load_config()`. """
    global _pool
    if config is None and (buffers is None or buffer_len is None):
        config = load_config()
    if buffers is None:
        buffers = config.buffers
    if buffer_len is None:
        buffer_len = config.buffer_len

    with _pool_lock:
        if _pool is not None and _pool.outstanding:
            raise PoolError(f"Cannot re-initialize with {_pool.outstanding} buffer(s) outstanding")
        _pool = ScratchBufferPool(buffers=buffers, buffer_len=buffer_len)
        logger.info("Initialized scratch pool: %d buffers of length %d", buffers, buffer_len)
        return _pool


def teardown() -> None:
    """ Discard the process-wide pool. """
    global _pool
    with _pool_lock:
        if _pool is None:
            return
        if _pool.outstanding:
            raise PoolError(f"Cannot tear down with {_pool.outstanding} buffer(s) outstanding")
        _pool = None
        logger.info("Tore down scratch pool")


def is_initialized() -> bool:
    return _pool is not None


def get_pool() -> ScratchBufferPool:
    pool = _pool
    if pool is None:
        raise PoolError("Scratch pool not initialized; call rowsparse.pool.initialize() first")
    return pool


@contextmanager
def borrowed() -> Iterator[SparseRow]:
    """ Borrow a buffer from the process-wide pool. """
    with get_pool().borrowed() as buf:
        yield buf
