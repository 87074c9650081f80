"""
Row-Sparse Matrices

`SparseMatrix` keeps one `SparseRow` per matrix row.
Most matrix operations decompose into row-pair merge-folds;
the matrix product additionally borrows a column buffer from the scratch pool.
"""

import math
import numbers
from enum import Enum, auto
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from . import pool
from .errors import (
    ColumnLengthError,
    IndexOutOfRangeError,
    MatrixError,
    NormOrderError,
    RowLengthError,
    ShapeError,
    SquareError,
    ZeroLengthError,
)
from .row import SparseElement, SparseRow

# Norm orders, following numpy's `ord` conventions
Inf = math.inf
Fro = "fro"

FilterFunc = Callable[[int, int, float], bool]
ApplyFunc = Callable[[int, int, float], float]
DenseLike = Union[np.ndarray, Sequence[Sequence[float]]]


class Kind(Enum):
    SPARSE = auto()
    DENSE = auto()
    PIVOT = auto()


def kind_of(m) -> Optional[Kind]:
    """ Representation variant of `m`, or None if it is not a matrix at all. """
    if isinstance(m, Matrix): return m.kind
    if isinstance(m, np.ndarray): return Kind.DENSE
    return None


class Matrix(object):
    """ Capability surface shared by matrix representations.
    Only the sparse variant is implemented; pairings with any other variant raise. """

    kind: Optional[Kind] = None

    def dims(self) -> Tuple[int, int]:
        raise NotImplementedError

    def at(self, r: int, c: int) -> float:
        raise NotImplementedError

    def to_dense(self) -> np.ndarray:
        raise NotImplementedError

    def add(self, b: "Matrix") -> "Matrix":
        raise NotImplementedError

    def subtract(self, b: "Matrix") -> "Matrix":
        raise NotImplementedError

    def multiply_elementwise(self, b: "Matrix") -> "Matrix":
        raise NotImplementedError

    def equals(self, b: "Matrix") -> bool:
        raise NotImplementedError

    def approx_equals(self, b: "Matrix", epsilon: float) -> bool:
        raise NotImplementedError

    def inner_product(self, b: "Matrix") -> float:
        raise NotImplementedError

    def dot(self, b: "Matrix") -> "Matrix":
        raise NotImplementedError

    def augment(self, b: "Matrix") -> "Matrix":
        raise NotImplementedError

    def stack(self, b: "Matrix") -> "Matrix":
        raise NotImplementedError

    def transpose(self) -> "Matrix":
        raise NotImplementedError


class SparseMatrix(Matrix):
    """ Row-sparse matrix.

    Each row stores its entries ascending by column index, without duplicates.
    Rows are owned exclusively: no `SparseRow` is ever shared between two matrices.
    Binary operations return new matrices; only `set` mutates the receiver. """

    kind = Kind.SPARSE

    def __init__(self, rows: int, cols: int, data: Optional[List[SparseRow]] = None):
        """ A `rows` x `cols` matrix.
        With no `data`, all-zero. Otherwise `data` holds one row per matrix row;
        each is copied, and must be in bounds and strictly ascending. """
        ZeroLengthError.assert_true(rows >= 1 and cols >= 1, f"Invalid dimensions {rows}x{cols}")
        if data is None:
            data = [SparseRow() for _ in range(rows)]
        else:
            data = [row.copy() if isinstance(row, SparseRow) else row for row in data]
        self._rows = rows
        self._cols = cols
        self.data: List[SparseRow] = data
        self._checkup()

    @classmethod
    def _from_rows(cls, rows: int, cols: int, data: List[SparseRow]) -> "SparseMatrix":
        """ Wrap freshly built rows, unchecked and uncopied. """
        m = cls.__new__(cls)
        m._rows = rows
        m._cols = cols
        m.data = data
        return m

    # Construction

    @classmethod
    def from_dense(cls, a: DenseLike) -> "SparseMatrix":
        """ Sparse copy of dense 2-D data. Only non-zero cells are stored. """
        if isinstance(a, np.ndarray):
            if a.ndim != 2:
                raise ShapeError(f"Dense data must be 2-D, got {a.ndim}-D")
            a = a.tolist()
        if len(a) == 0:
            raise ZeroLengthError("Dense data has an empty dimension")
        if not all(isinstance(row, (list, tuple, np.ndarray)) for row in a):
            raise ShapeError("Dense data must be a sequence of row sequences")
        cols = len(a[0])
        if cols == 0:
            raise ZeroLengthError("Dense data has an empty dimension")
        data = []
        for r, row in enumerate(a):
            if len(row) != cols:
                raise RowLengthError(f"Row {r} has length {len(row)}, expected {cols}")
            data.append(SparseRow.from_dense(row))
        return cls._from_rows(len(a), cols, data)

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "SparseMatrix":
        return cls(rows, cols)

    @classmethod
    def identity(cls, size: int) -> "SparseMatrix":
        ZeroLengthError.assert_true(size >= 1, f"Invalid identity size {size}")
        return cls._from_rows(size, size, [SparseRow([SparseElement(k, 1.0)]) for k in range(size)])

    @classmethod
    def from_func(cls, rows: int, cols: int, density: float, fn: Callable[[], float],
                  rng: Optional[np.random.Generator] = None) -> "SparseMatrix":
        """ Random matrix. Each cell is independently populated with probability `density`,
        with value `fn()`. """
        m = cls(rows, cols)
        if rng is None:
            rng = np.random.default_rng()
        for r in range(rows):
            for c in range(cols):
                if rng.random() < density:
                    m.set(r, c, fn())
        return m

    @classmethod
    def from_elements(cls, *mats: "SparseMatrix") -> "SparseMatrix":
        """ Row vector of the stored non-zero values of `mats`, concatenated row-major. """
        vals = []
        for m in mats:
            if not isinstance(m, SparseMatrix):
                raise NotImplementedError(f"Element concatenation of {_variant_name(m)} matrices is not implemented")
            vals.extend(m.elements_vector())
        if not vals:
            raise ZeroLengthError("No non-zero elements to concatenate")
        return cls._from_rows(1, len(vals), [SparseRow([SparseElement(i, v) for i, v in enumerate(vals)])])

    def clone(self) -> "SparseMatrix":
        """ Deep copy """
        return SparseMatrix._from_rows(self._rows, self._cols, [row.copy() for row in self.data])

    # Read access

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def shape(self) -> Tuple[int, int]:
        return self._rows, self._cols

    def dims(self) -> Tuple[int, int]:
        return self._rows, self._cols

    @property
    def nnz(self) -> int:
        """ Number of stored elements, explicit zeros included """
        return sum(len(row) for row in self.data)

    def row(self, r: int) -> SparseRow:
        """ Stored row `r`. Callers must not mutate it. """
        if not 0 <= r < self._rows:
            raise IndexOutOfRangeError(f"Row {r} out of range for {self._rows} rows")
        return self.data[r]

    def iter_rows(self) -> Iterator[Tuple[int, SparseRow]]:
        return enumerate(self.data)

    def __repr__(self):
        return f"<{self.__class__.__name__}(rows={self._rows}, cols={self._cols}, nnz={self.nnz})>"

    def _check_index(self, r: int, c: int):
        if not (0 <= r < self._rows and 0 <= c < self._cols):
            raise IndexOutOfRangeError(f"Index ({r}, {c}) out of range for {self._rows}x{self._cols} matrix")

    def at(self, r: int, c: int) -> float:
        self._check_index(r, c)
        return self.data[r].at(c)

    def set(self, r: int, c: int, v: float) -> None:
        self._check_index(r, c)
        self.data[r].set(c, v)

    def to_dense(self) -> np.ndarray:
        d = np.zeros((self._rows, self._cols), dtype=np.float64)
        for r, row in enumerate(self.data):
            for e in row:
                d[r, e.index] = e.value
        return d

    def elements_vector(self) -> List[float]:
        """ Stored non-zero values, row-major. """
        return [e.value for row in self.data for e in row if e.value != 0]

    def reshape(self, rows: int, cols: int) -> "SparseMatrix":
        ShapeError.assert_eq(rows * cols, self._rows * self._cols, f"Cannot reshape {self._rows}x{self._cols} to {rows}x{cols}")
        raise NotImplementedError("Sparse reshape is not implemented")

    def det(self) -> float:
        raise NotImplementedError("Sparse determinant is not implemented")

    # Reductions

    def trace(self) -> float:
        SquareError.assert_eq(self._rows, self._cols, f"Trace of non-square {self._rows}x{self._cols} matrix")
        return sum((row.at(i) for i, row in enumerate(self.data)), 0.0)

    def _row_min(self, row: SparseRow) -> float:
        # Under-populated rows hold implicit zeros
        if len(row) < self._cols:
            return min(row.min(), 0.0)
        return row.min()

    def _row_max(self, row: SparseRow) -> float:
        if len(row) < self._cols:
            return max(row.max(), 0.0)
        return row.max()

    def min(self) -> float:
        return min(self._row_min(row) for row in self.data)

    def max(self) -> float:
        return max(self._row_max(row) for row in self.data)

    def min_nonzero(self) -> float:
        """ Smallest non-zero value, or 0.0 if there is none. """
        found = [v for v, ok in (row.min_nonzero() for row in self.data) if ok]
        return min(found) if found else 0.0

    def max_nonzero(self) -> float:
        """ Largest non-zero value, or 0.0 if there is none. """
        found = [v for v, ok in (row.max_nonzero() for row in self.data) if ok]
        return max(found) if found else 0.0

    def sum(self) -> float:
        return sum((row.sum() for row in self.data), 0.0)

    def _col_abs_sums(self) -> List[float]:
        sums = [0.0] * self._cols
        for row in self.data:
            for e in row:
                sums[e.index] += abs(e.value)
        return sums

    def _row_abs_sums(self) -> List[float]:
        return [sum((abs(e.value) for e in row), 0.0) for row in self.data]

    def norm(self, order: Union[int, float, str, None] = Fro) -> float:
        """ Matrix norm of the given order:

        *  1   : max over columns of the sum of absolute values
        * -1   : min over columns of the sum of absolute values
        *  Inf : max over rows of the sum of absolute values
        * -Inf : min over rows of the sum of absolute values
        *  Fro : Frobenius norm. 0 and None are aliases.

        The 2-norms are not implemented. """
        if isinstance(order, str):
            if order != Fro:
                raise NormOrderError(f"Invalid norm order {order!r}")
            order = 0
        if order is None or order == 0:
            return math.sqrt(sum((e.value * e.value for row in self.data for e in row), 0.0))
        if order in (2, -2):
            raise NotImplementedError("Singular-value norms are not implemented")
        if order == 1:
            return max(self._col_abs_sums())
        if order == -1:
            return min(self._col_abs_sums())
        if order == Inf:
            return max(self._row_abs_sums())
        if order == -Inf:
            return min(self._row_abs_sums())
        raise NormOrderError(f"Invalid norm order {order!r}")

    def _axis_vector(self, vals: List[float], cols: bool) -> "SparseMatrix":
        """ Vector-matrix of reduction results: 1 x cols if reducing along columns, else rows x 1. """
        if cols:
            return SparseMatrix._from_rows(1, len(vals), [SparseRow([SparseElement(i, v) for i, v in enumerate(vals)])])
        return SparseMatrix._from_rows(len(vals), 1, [SparseRow([SparseElement(0, v)]) for v in vals])

    def sum_axis(self, cols: bool) -> "SparseMatrix":
        """ Column sums (`cols=True`, a row vector) or row sums (a column vector). """
        if not cols:
            return self._axis_vector([row.sum() for row in self.data], cols)
        sums = [0.0] * self._cols
        for row in self.data:
            for e in row:
                sums[e.index] += e.value
        return self._axis_vector(sums, cols)

    def _col_extrema(self, pick: Callable[[float, float], float], start: float) -> List[float]:
        vals = [start] * self._cols
        counts = [0] * self._cols
        for row in self.data:
            for e in row:
                vals[e.index] = pick(vals[e.index], e.value)
                counts[e.index] += 1
        for c in range(self._cols):
            if counts[c] < self._rows:
                vals[c] = pick(vals[c], 0.0)
        return vals

    def min_axis(self, cols: bool) -> "SparseMatrix":
        if not cols:
            return self._axis_vector([self._row_min(row) for row in self.data], cols)
        return self._axis_vector(self._col_extrema(min, math.inf), cols)

    def max_axis(self, cols: bool) -> "SparseMatrix":
        if not cols:
            return self._axis_vector([self._row_max(row) for row in self.data], cols)
        return self._axis_vector(self._col_extrema(max, -math.inf), cols)

    # Structural transforms

    def transpose(self) -> "SparseMatrix":
        """ Swap rows and columns.
        Source rows are walked in ascending order, so each target row is appended to in order. """
        data = [SparseRow() for _ in range(self._cols)]
        for r, row in enumerate(self.data):
            for e in row:
                data[e.index].elems.append(SparseElement(r, e.value))
        return SparseMatrix._from_rows(self._cols, self._rows, data)

    @property
    def T(self) -> "SparseMatrix":
        return self.transpose()

    def upper_triangular(self) -> "SparseMatrix":
        SquareError.assert_eq(self._rows, self._cols, "Upper-triangle of non-square matrix")
        return SparseMatrix._from_rows(self._rows, self._cols, [row.upper(i) for i, row in enumerate(self.data)])

    def lower_triangular(self) -> "SparseMatrix":
        SquareError.assert_eq(self._rows, self._cols, "Lower-triangle of non-square matrix")
        return SparseMatrix._from_rows(self._rows, self._cols, [row.lower(i) for i, row in enumerate(self.data)])

    def augment(self, b: Matrix) -> "SparseMatrix":
        """ Horizontal concatenation [self | b] """
        b = self._sparse_operand(b, "augment")
        ColumnLengthError.assert_eq(self._rows, b._rows, f"Cannot augment {self._rows} rows with {b._rows} rows")
        data = [SparseRow(row.elems[:] + brow.shifted(self._cols)) for row, brow in zip(self.data, b.data)]
        return SparseMatrix._from_rows(self._rows, self._cols + b._cols, data)

    def stack(self, b: Matrix) -> "SparseMatrix":
        """ Vertical concatenation of self over b """
        b = self._sparse_operand(b, "stack")
        RowLengthError.assert_eq(self._cols, b._cols, f"Cannot stack {self._cols} columns on {b._cols} columns")
        data = [row.copy() for row in self.data] + [row.copy() for row in b.data]
        return SparseMatrix._from_rows(self._rows + b._rows, self._cols, data)

    def filter(self, pred: FilterFunc) -> "SparseMatrix":
        """ Keep only the stored elements for which `pred(row, col, value)` holds. """
        data = [SparseRow([e for e in row if pred(r, e.index, e.value)]) for r, row in enumerate(self.data)]
        return SparseMatrix._from_rows(self._rows, self._cols, data)

    def apply(self, fn: ApplyFunc) -> "SparseMatrix":
        """ Map stored elements through `fn(row, col, value)`. Implicit zeros are not visited. """
        data = [
            SparseRow([SparseElement(e.index, fn(r, e.index, e.value)) for e in row])
            for r, row in enumerate(self.data)
        ]
        return SparseMatrix._from_rows(self._rows, self._cols, data)

    def apply_all(self, fn: ApplyFunc) -> "SparseMatrix":
        """ Map every cell through `fn(row, col, value)`, implicit zeros included.
        Changed values are written back with `set`, so zeros may fill in. """
        m = self.clone()
        for r, row in enumerate(self.data):
            target = m.data[r]
            for c in range(self._cols):
                old = row.at(c)
                v = fn(r, c, old)
                if v != old:
                    target.set(c, v)
        return m

    def clean(self) -> "SparseMatrix":
        """ Copy without stored zeros """
        return SparseMatrix._from_rows(self._rows, self._cols, [row.compact() for row in self.data])

    def clean_with_tolerance(self, epsilon: float) -> "SparseMatrix":
        """ Copy without stored values within `epsilon` of zero """
        return SparseMatrix._from_rows(self._rows, self._cols, [row.compact(epsilon) for row in self.data])

    # Arithmetic

    def _sparse_operand(self, b, op: str) -> "SparseMatrix":
        if isinstance(b, SparseMatrix):
            return b
        raise NotImplementedError(f"{op} between sparse and {_variant_name(b)} matrices is not implemented")

    def _check_same_shape(self, b: "SparseMatrix", op: str):
        if self.shape != b.shape:
            raise ShapeError(f"Cannot {op} {self._rows}x{self._cols} and {b._rows}x{b._cols} matrices")

    def add(self, b: Matrix) -> "SparseMatrix":
        b = self._sparse_operand(b, "add")
        self._check_same_shape(b, "add")
        return SparseMatrix._from_rows(self._rows, self._cols, [x.fold_add(y) for x, y in zip(self.data, b.data)])

    def subtract(self, b: Matrix) -> "SparseMatrix":
        b = self._sparse_operand(b, "subtract")
        self._check_same_shape(b, "subtract")
        return SparseMatrix._from_rows(self._rows, self._cols, [x.fold_sub(y) for x, y in zip(self.data, b.data)])

    def multiply_elementwise(self, b: Matrix) -> "SparseMatrix":
        b = self._sparse_operand(b, "multiply_elementwise")
        self._check_same_shape(b, "multiply")
        return SparseMatrix._from_rows(self._rows, self._cols, [x.fold_mul(y) for x, y in zip(self.data, b.data)])

    def equals(self, b: Matrix) -> bool:
        """ Logical equality. Stored zeros equal implicit zeros; mismatched shapes are unequal. """
        b = self._sparse_operand(b, "equals")
        if self.shape != b.shape:
            return False
        return all(x.fold_equal(y) for x, y in zip(self.data, b.data))

    def approx_equals(self, b: Matrix, epsilon: float) -> bool:
        b = self._sparse_operand(b, "approx_equals")
        if self.shape != b.shape:
            return False
        return all(x.fold_approx(y, epsilon) for x, y in zip(self.data, b.data))

    def scalar_multiply(self, f: float) -> "SparseMatrix":
        return SparseMatrix._from_rows(self._rows, self._cols, [row.scale(f) for row in self.data])

    def inner_product(self, b: Matrix) -> float:
        """ Sum of the element-wise product """
        b = self._sparse_operand(b, "inner_product")
        self._check_same_shape(b, "take the inner product of")
        return sum((x.fold_mul_sum(y) for x, y in zip(self.data, b.data)), 0.0)

    def dot(self, b: Matrix) -> "SparseMatrix":
        """ Matrix product self*b

        Column `i` of `b` is gathered into a pooled scratch row,
        then dotted against every row of `self`. Only non-zero products are stored. """
        b = self._sparse_operand(b, "dot")
        if self._cols != b._rows:
            raise ShapeError(f"Cannot multiply {self._rows}x{self._cols} by {b._rows}x{b._cols}")

        out = [SparseRow() for _ in range(self._rows)]
        with pool.borrowed() as col:
            for i in range(b._cols):
                for j, brow in enumerate(b.data):
                    v = brow.at(i)
                    if v != 0:
                        col.elems.append(SparseElement(j, v))
                for j, row in enumerate(self.data):
                    v = row.fold_mul_sum(col)
                    if v != 0:
                        out[j].elems.append(SparseElement(i, v))
                col.clear()
        return SparseMatrix._from_rows(self._rows, b._cols, out)

    # Operators

    def __eq__(self, other):
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def __add__(self, other):
        return self.add(other)

    def __sub__(self, other):
        return self.subtract(other)

    def __matmul__(self, other):
        return self.dot(other)

    def __mul__(self, other):
        if isinstance(other, numbers.Real) and not isinstance(other, bool):
            return self.scalar_multiply(float(other))
        return NotImplemented

    __rmul__ = __mul__

    def __neg__(self):
        return self.scalar_multiply(-1.0)

    def _checkup(self):
        """ Internal consistency tests: dimensions, index bounds, strict ordering, and row ownership. """
        MatrixError.assert_eq(len(self.data), self._rows)
        seen = set()
        for row in self.data:
            MatrixError.assert_true(isinstance(row, SparseRow), f"Expected SparseRow, got {type(row).__name__}")
            MatrixError.assert_true(id(row) not in seen, "Row shared within matrix")
            seen.add(id(row))
            prev = -1
            for e in row:
                MatrixError.assert_true(0 <= e.index < self._cols, f"Index {e.index} out of bounds")
                MatrixError.assert_true(e.index > prev, f"Index {e.index} out of order")
                prev = e.index


def _variant_name(m) -> str:
    kind = kind_of(m)
    if kind is not None:
        return kind.name.lower()
    return type(m).__name__


def maybe_sparse(fn: Callable[..., SparseMatrix], *args, **kwargs) -> Tuple[Optional[SparseMatrix], Optional[MatrixError]]:
    """ Call a matrix-building `fn`, returning `(matrix, None)`,
    or `(None, err)` if it raised a `MatrixError`.
    Any other exception propagates. """
    try:
        return fn(*args, **kwargs), None
    except MatrixError as err:
        return None, err


def must_sparse(result: Tuple[Optional[SparseMatrix], Optional[MatrixError]]) -> SparseMatrix:
    """ Unwrap a `(matrix, err)` pair, raising `err` if set. """
    m, err = result
    if err is not None:
        raise err
    return m


new_sparse = SparseMatrix.from_dense
zero_sparse = SparseMatrix.zeros
identity_sparse = SparseMatrix.identity
func_sparse = SparseMatrix.from_func
elements_sparse = SparseMatrix.from_elements
