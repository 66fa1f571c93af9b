"""
Coarse lock helper shared by the stores.
"""
from contextlib import contextmanager

from .errors import InternalError


@contextmanager
def hold(lock, timeout: float, owner: str):
    """Acquire lock or fail hard. Contention is never retried."""
    if not lock.acquire(timeout=timeout):
        raise InternalError(f'could not acquire {owner} lock within {timeout}s')
    try:
        yield
    finally:
        lock.release()
