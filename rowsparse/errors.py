"""
Matrix Error Types
"""


class MatrixError(Exception):
    """ Root of all errors raised by `rowsparse`.
    The classmethod guards raise the class they are called on,
    e.g. `ShapeError.assert_eq(a.cols, b.rows)`. """

    @classmethod
    def assert_true(cls, cond, msg: str = ""):
        if not cond:
            raise cls(msg)

    @classmethod
    def assert_eq(cls, x, y, msg: str = ""):
        if x != y:
            raise cls(msg or f"{x!r} != {y!r}")

    @classmethod
    def assert_not_eq(cls, x, y, msg: str = ""):
        if x == y:
            raise cls(msg or f"{x!r} == {y!r}")

    @classmethod
    def assert_is(cls, x, y, msg: str = ""):
        if x is not y:
            raise cls(msg)

    @classmethod
    def assert_is_not(cls, x, y, msg: str = ""):
        if x is y:
            raise cls(msg)


class ZeroLengthError(MatrixError): pass


class RowLengthError(MatrixError): pass


class ColumnLengthError(MatrixError): pass


class ShapeError(MatrixError): pass


class SquareError(MatrixError): pass


class IndexOutOfRangeError(MatrixError, IndexError): pass


class NormOrderError(MatrixError, ValueError): pass


class PoolError(MatrixError): pass


class ConfigError(MatrixError, ValueError): pass
