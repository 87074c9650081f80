"""
rowsparse

Row-sparse matrix algebra: per-row sorted storage of stored entries,
merge-fold arithmetic, and a pooled-scratch matrix product.

The scratch pool used by `SparseMatrix.dot` must be set up first:

    import rowsparse
    rowsparse.pool.initialize()
    m = rowsparse.new_sparse([[1, 0], [0, 2]])
    m.dot(rowsparse.identity_sparse(2))
"""

from . import pool
from .config import PoolConfig, load_config
from .errors import (
    ColumnLengthError,
    ConfigError,
    IndexOutOfRangeError,
    MatrixError,
    NormOrderError,
    PoolError,
    RowLengthError,
    ShapeError,
    SquareError,
    ZeroLengthError,
)
from .matrix import (
    Fro,
    Inf,
    Kind,
    Matrix,
    SparseMatrix,
    elements_sparse,
    func_sparse,
    identity_sparse,
    kind_of,
    maybe_sparse,
    must_sparse,
    new_sparse,
    zero_sparse,
)
from .pool import ScratchBufferPool
from .row import SparseElement, SparseRow

__version__ = "0.1.0"
