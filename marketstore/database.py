import asyncio
from typing import Dict, Any, List

# This file holds all the in-memory collections and concurrency locks.

PRODUCTS: Dict[str, Dict[str, Any]] = {}
USERS: Dict[str, Dict[str, Any]] = {}       # keyed by normalised email
COMMENTS: Dict[str, Dict[str, Any]] = {}    # keyed by product id
ORDERS: Dict[str, Dict[str, Any]] = {}
BLOGS: Dict[str, Dict[str, Any]] = {}
IDEMPOTENCY: Dict[str, Dict[str, Any]] = {}
_LOCKS: Dict[str, asyncio.Lock] = {}

COLLECTIONS: List[Dict[str, Any]] = [PRODUCTS, USERS, COMMENTS, ORDERS, BLOGS, IDEMPOTENCY]


def _get_lock(key: str) -> asyncio.Lock:
    if key not in _LOCKS:
        _LOCKS[key] = asyncio.Lock()
    return _LOCKS[key]


async def acquire_all(keys: List[str]) -> List[asyncio.Lock]:
    """Acquire the locks for ``keys`` in sorted order and return them."""
    locks = [_get_lock(k) for k in sorted(set(keys))]
    acquired = []
    try:
        for l in locks:
            await l.acquire()
            acquired.append(l)
    except BaseException:
        release_all(acquired)
        raise
    return locks


def release_all(locks: List[asyncio.Lock]):
    for l in reversed(locks):
        if l.locked():
            l.release()


def clear_all():
    for collection in COLLECTIONS:
        collection.clear()
    _LOCKS.clear()
