import pytest

from .. import pool


@pytest.fixture(autouse=True, scope="session")
def scratch_pool():
    """ Process-wide scratch pool, shared by every test that takes a matrix product. """
    pool.initialize(buffers=4, buffer_len=16)
    yield
    pool.teardown()
