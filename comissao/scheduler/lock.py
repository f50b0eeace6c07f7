"""Order recomputation lock using threading.Lock.

Prevents two recomputations (scheduled or manual) from writing positions at
the same time.  Uses a non-blocking acquire -- if the lock is already held,
the caller gets False and can skip or return 409.
"""

from __future__ import annotations

import threading

_order_lock = threading.Lock()
_current_trigger: str | None = None


def acquire_order_lock(trigger: str) -> bool:
    """Try to acquire the lock on behalf of *trigger*.

    Returns True if the lock was acquired, False if already held.
    """
    global _current_trigger
    if _order_lock.acquire(blocking=False):
        _current_trigger = trigger
        return True
    return False


def release_order_lock() -> None:
    """Release the lock.  Safe to call even if it is not held."""
    global _current_trigger
    _current_trigger = None
    try:
        _order_lock.release()
    except RuntimeError:
        pass  # Already released


def get_current_trigger() -> str | None:
    return _current_trigger


def is_recompute_running() -> bool:
    return _current_trigger is not None
