"""
Sparse Rows

A `SparseRow` holds only the stored entries of one matrix row,
as `SparseElement`s strictly ascending by column index.
Any index not stored is an implicit zero.
Stored zeros are allowed, and are only removed by `compact`.
"""

import math
from typing import Callable, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from .errors import MatrixError


class SparseElement(NamedTuple):
    index: int
    value: float


class SparseRow(object):
    """ Index-sorted sequence of `SparseElement`s.
    The row does not know its logical width; bounds are the matrix's business. """

    def __init__(self, elems: Optional[List[SparseElement]] = None):
        self.elems: List[SparseElement] = elems if elems is not None else []

    @classmethod
    def from_dense(cls, values: Iterable[float]) -> "SparseRow":
        """ Store only the non-zero entries of dense sequence `values`. """
        return cls([SparseElement(i, float(v)) for i, v in enumerate(values) if v != 0])

    def __len__(self):
        return len(self.elems)

    def __iter__(self) -> Iterator[SparseElement]:
        return iter(self.elems)

    def __eq__(self, other):
        if not isinstance(other, SparseRow):
            return NotImplemented
        return self.fold_equal(other)

    __hash__ = None

    def __repr__(self):
        body = ", ".join(f"{e.index}: {e.value}" for e in self.elems)
        return f"<{self.__class__.__name__}({{{body}}})>"

    def copy(self) -> "SparseRow":
        return SparseRow(self.elems[:])

    def clear(self) -> None:
        """ Truncate to zero length, in place. """
        del self.elems[:]

    def last_index(self) -> int:
        """ Largest stored index, or -1 for an empty row. """
        return self.elems[-1].index if self.elems else -1

    def append(self, index: int, value: float) -> None:
        """ Append an element past the current last index. """
        MatrixError.assert_true(index > self.last_index(), f"append of index {index} out of order")
        self.elems.append(SparseElement(index, float(value)))

    def search(self, index: int) -> Tuple[int, bool]:
        """ Binary search for `index`.
        Returns its position and True if stored,
        or the position it would be inserted at and False. """
        lo, hi = 0, len(self.elems) - 1
        while lo <= hi:
            mid = (lo + hi) // 2
            found = self.elems[mid].index
            if found == index:
                return mid, True
            if index < found:
                hi = mid - 1
            else:
                lo = mid + 1
        return lo, False

    def at(self, index: int) -> float:
        """ Value at `index`, 0.0 if not stored. """
        pos, found = self.search(index)
        return self.elems[pos].value if found else 0.0

    def set(self, index: int, value: float) -> None:
        """ Store `value` at `index`.
        Existing entries are overwritten, even with zero. """
        value = float(value)
        if not self.elems or index > self.elems[-1].index:
            self.elems.append(SparseElement(index, value))
            return
        pos, found = self.search(index)
        if found:
            self.elems[pos] = SparseElement(index, value)
        else:
            self.elems.insert(pos, SparseElement(index, value))

    # Reductions, over stored values only

    def min(self) -> float:
        """ Minimum stored value. `inf` for an empty row. """
        return min((e.value for e in self.elems), default=math.inf)

    def max(self) -> float:
        """ Maximum stored value. `-inf` for an empty row. """
        return max((e.value for e in self.elems), default=-math.inf)

    def min_nonzero(self) -> Tuple[float, bool]:
        """ Minimum stored non-zero value, and whether one exists. """
        vals = [e.value for e in self.elems if e.value != 0]
        if not vals:
            return 0.0, False
        return min(vals), True

    def max_nonzero(self) -> Tuple[float, bool]:
        """ Maximum stored non-zero value, and whether one exists. """
        vals = [e.value for e in self.elems if e.value != 0]
        if not vals:
            return 0.0, False
        return max(vals), True

    def sum(self) -> float:
        return sum((e.value for e in self.elems), 0.0)

    # Merge-folds
    # Each is a single ascending pass over both rows, like the merge step of merge-sort.

    def _fold_union(self, other: "SparseRow", sign: float) -> "SparseRow":
        a, b = self.elems, other.elems
        out = []
        i = j = 0
        while i < len(a) and j < len(b):
            ea, eb = a[i], b[j]
            if ea.index < eb.index:
                out.append(ea)
                i += 1
            elif eb.index < ea.index:
                out.append(SparseElement(eb.index, sign * eb.value))
                j += 1
            else:
                out.append(SparseElement(ea.index, ea.value + sign * eb.value))
                i += 1
                j += 1
        out.extend(a[i:])
        out.extend(SparseElement(e.index, sign * e.value) for e in b[j:])
        return SparseRow(out)

    def fold_add(self, other: "SparseRow") -> "SparseRow":
        """ Element-wise sum. Indices present in both rows may sum to a stored zero. """
        return self._fold_union(other, 1.0)

    def fold_sub(self, other: "SparseRow") -> "SparseRow":
        """ Element-wise difference `self - other`. """
        return self._fold_union(other, -1.0)

    def fold_mul(self, other: "SparseRow") -> "SparseRow":
        """ Element-wise product. Only indices stored in both rows are emitted. """
        a, b = self.elems, other.elems
        out = []
        i = j = 0
        while i < len(a) and j < len(b):
            ea, eb = a[i], b[j]
            if ea.index < eb.index:
                i += 1
            elif eb.index < ea.index:
                j += 1
            else:
                out.append(SparseElement(ea.index, ea.value * eb.value))
                i += 1
                j += 1
        return SparseRow(out)

    def fold_mul_sum(self, other: "SparseRow") -> float:
        """ Sparse dot-product of two rows. """
        a, b = self.elems, other.elems
        total = 0.0
        i = j = 0
        while i < len(a) and j < len(b):
            ea, eb = a[i], b[j]
            if ea.index < eb.index:
                i += 1
            elif eb.index < ea.index:
                j += 1
            else:
                total += ea.value * eb.value
                i += 1
                j += 1
        return total

    def _fold_compare(self, other: "SparseRow", same: Callable[[float, float], bool]) -> bool:
        a, b = self.elems, other.elems
        i = j = 0
        while i < len(a) and j < len(b):
            ea, eb = a[i], b[j]
            if ea.index < eb.index:
                if not same(ea.value, 0.0): return False
                i += 1
            elif eb.index < ea.index:
                if not same(0.0, eb.value): return False
                j += 1
            else:
                if not same(ea.value, eb.value): return False
                i += 1
                j += 1
        for e in a[i:]:
            if not same(e.value, 0.0): return False
        for e in b[j:]:
            if not same(0.0, e.value): return False
        return True

    def fold_equal(self, other: "SparseRow") -> bool:
        """ Logical equality, with absent entries read as zero. """
        return self._fold_compare(other, lambda x, y: x == y)

    def fold_approx(self, other: "SparseRow", epsilon: float) -> bool:
        """ Logical equality to within `epsilon`, per element. """
        return self._fold_compare(other, lambda x, y: abs(x - y) <= epsilon)

    def scale(self, f: float) -> "SparseRow":
        """ Multiply every stored value by `f`. Scaling by zero leaves stored zeros. """
        return SparseRow([SparseElement(e.index, e.value * f) for e in self.elems])

    # Structural

    def upper(self, index: int) -> "SparseRow":
        """ Copy of the elements at or after `index`. """
        for pos, e in enumerate(self.elems):
            if e.index >= index:
                return SparseRow(self.elems[pos:])
        return SparseRow()

    def lower(self, index: int) -> "SparseRow":
        """ Copy of the elements at or before `index`. """
        for pos in range(len(self.elems) - 1, -1, -1):
            if self.elems[pos].index <= index:
                return SparseRow(self.elems[:pos + 1])
        return SparseRow()

    def shifted(self, by: int) -> List[SparseElement]:
        """ Elements with indices offset by `by`. """
        return [SparseElement(e.index + by, e.value) for e in self.elems]

    def compact(self, epsilon: Optional[float] = None) -> "SparseRow":
        """ Copy without stored zeros,
        or without values within `epsilon` of zero if provided. """
        if epsilon is None:
            return SparseRow([e for e in self.elems if e.value != 0])
        return SparseRow([e for e in self.elems if abs(e.value) > epsilon])
