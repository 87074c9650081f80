import math

import pytest

from ..errors import MatrixError
from ..row import SparseElement, SparseRow


def row_of(d: dict) -> SparseRow:
    """ Helper function.  (Not a test!)
    Build a row from an {index: value} dict. """
    return SparseRow([SparseElement(i, float(v)) for i, v in sorted(d.items())])


def indices(row: SparseRow) -> list:
    return [e.index for e in row]


def test_create_element():
    e = SparseElement(index=3, value=1.5)
    assert e.index == 3
    assert e.value == 1.5
    assert e == SparseElement(3, 1.5)


def test_from_dense():
    r = SparseRow.from_dense([0, 2, 0, 0, -1])
    assert indices(r) == [1, 4]
    assert [e.value for e in r] == [2.0, -1.0]
    assert len(SparseRow.from_dense([0, 0])) == 0


def test_at():
    r = row_of({1: 10, 5: 50, 9: 90})
    assert r.at(1) == 10
    assert r.at(5) == 50
    assert r.at(9) == 90
    assert r.at(0) == 0.0
    assert r.at(6) == 0.0
    assert r.at(1000) == 0.0
    assert SparseRow().at(0) == 0.0


def test_set_insert_keeps_order():
    r = SparseRow()
    for i in (7, 2, 9, 0, 4):
        r.set(i, float(i + 1))
    assert indices(r) == [0, 2, 4, 7, 9]
    assert r.at(7) == 8.0


def test_set_overwrites_without_pruning():
    r = row_of({1: 1, 3: 3})
    r.set(3, 0.0)
    assert indices(r) == [1, 3]
    assert r.at(3) == 0.0
    r.set(1, -2.0)
    assert r.at(1) == -2.0
    assert len(r) == 2


def test_set_appends_past_end():
    r = row_of({1: 1})
    r.set(5, 5.0)
    assert indices(r) == [1, 5]


def test_append():
    r = SparseRow()
    r.append(2, 1.0)
    r.append(4, 1.0)
    with pytest.raises(MatrixError):
        r.append(4, 2.0)
    with pytest.raises(MatrixError):
        r.append(0, 2.0)


def test_search():
    r = row_of({2: 1, 4: 1, 6: 1})
    assert r.search(4) == (1, True)
    assert r.search(3) == (1, False)
    assert r.search(0) == (0, False)
    assert r.search(7) == (3, False)


def test_min_max():
    r = row_of({0: 3, 2: -1, 4: 7})
    assert r.min() == -1
    assert r.max() == 7
    assert SparseRow().min() == math.inf
    assert SparseRow().max() == -math.inf


def test_nonzero_extrema():
    r = row_of({0: 0, 2: -4, 4: 2})
    assert r.min_nonzero() == (-4, True)
    assert r.max_nonzero() == (2, True)

    zeros = row_of({0: 0, 1: 0})
    assert zeros.min_nonzero() == (0.0, False)
    assert zeros.max_nonzero() == (0.0, False)
    assert SparseRow().max_nonzero() == (0.0, False)


def test_sum():
    assert row_of({0: 1, 3: 2.5, 8: -0.5}).sum() == 3.0
    assert SparseRow().sum() == 0.0


def test_fold_add():
    a = row_of({0: 1, 2: 2, 5: 5})
    b = row_of({1: 10, 2: -2, 6: 6})
    c = a.fold_add(b)
    assert indices(c) == [0, 1, 2, 5, 6]
    assert [e.value for e in c] == [1, 10, 0, 5, 6]
    # Inputs untouched
    assert indices(a) == [0, 2, 5]


def test_fold_sub():
    a = row_of({0: 1, 2: 2})
    b = row_of({2: 2, 3: 3})
    c = a.fold_sub(b)
    assert indices(c) == [0, 2, 3]
    assert [e.value for e in c] == [1, 0, -3]


def test_fold_mul_intersection():
    a = row_of({0: 2, 2: 3, 4: 4})
    b = row_of({2: 5, 3: 7, 4: 0.5})
    c = a.fold_mul(b)
    assert indices(c) == [2, 4]
    assert [e.value for e in c] == [15, 2]
    assert len(a.fold_mul(SparseRow())) == 0


def test_fold_mul_sum():
    a = row_of({0: 2, 2: 3, 4: 4})
    b = row_of({2: 5, 3: 7, 4: 0.5})
    assert a.fold_mul_sum(b) == 17
    assert a.fold_mul_sum(SparseRow()) == 0.0


def test_fold_equal():
    a = row_of({1: 1, 3: 0})
    b = row_of({1: 1})
    assert a.fold_equal(b)
    assert b.fold_equal(a)
    assert a == b
    assert not a.fold_equal(row_of({1: 1, 2: 1}))
    assert not a.fold_equal(row_of({1: 2}))
    assert SparseRow().fold_equal(row_of({4: 0}))


def test_fold_approx():
    a = row_of({1: 1.0, 2: 2.0})
    b = row_of({1: 1.05, 2: 1.98, 3: 0.01})
    assert a.fold_approx(b, 0.1)
    assert not a.fold_approx(b, 0.01)


def test_scale():
    r = row_of({1: 2, 3: -4})
    assert [e.value for e in r.scale(0.5)] == [1, -2]
    z = r.scale(0)
    assert indices(z) == [1, 3]
    assert [e.value for e in z] == [0, 0]


def test_upper_lower():
    r = row_of({0: 1, 2: 2, 4: 4, 6: 6})
    assert indices(r.upper(2)) == [2, 4, 6]
    assert indices(r.upper(3)) == [4, 6]
    assert indices(r.upper(7)) == []
    assert indices(r.lower(4)) == [0, 2, 4]
    assert indices(r.lower(3)) == [0, 2]
    assert indices(SparseRow().lower(3)) == []
    assert indices(row_of({5: 1}).lower(3)) == []


def test_compact():
    r = row_of({0: 0, 1: 1e-9, 2: 2, 3: -0.0})
    assert indices(r.compact()) == [1, 2]
    assert indices(r.compact(1e-6)) == [2]


def test_copy_is_independent():
    r = row_of({0: 1})
    cp = r.copy()
    cp.set(1, 2.0)
    assert indices(r) == [0]
    assert indices(cp) == [0, 1]


def test_clear():
    r = row_of({0: 1, 4: 4})
    r.clear()
    assert len(r) == 0


def test_stored_values_are_floats():
    r = SparseRow()
    r.append(0, 3)
    r.set(2, 4)
    r.set(0, 7)
    assert [type(e.value) for e in r] == [float, float]
    assert r.at(0) == 7.0
