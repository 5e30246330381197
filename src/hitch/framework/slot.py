"""
Process-wide container slot.

Manifesto:
    Exactly one container is live at a time, and a reader must never see a
    container that is half-replaced or already disconnected.  The slot is a
    guarded reference cell: writers swap under a lock, readers hold a
    *lease* on the container they got, and the lifecycle only disconnects
    an old container after its leases have drained.

State machine::

    Absent ──swap──▶ Active ──swap──▶ Active
       ▲                │
       └─────clear──────┘

Example::

    slot = ContainerSlot()
    old = slot.swap(new_container)      # install
    with slot.lease() as container:     # read
        container.relation("users")
    slot.drain(old, timeout=30)         # wait for readers of the old one
    old.disconnect()

Tags:
    hitch, lifecycle, concurrency, container, lease

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from hitch.core.errors import ContainerNotReadyError


class ContainerSlot:
    """Guarded reference to the live container, with read leases."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._current: Any | None = None
        self._leases: dict[int, int] = {}

    @property
    def current(self) -> Any | None:
        with self._cond:
            return self._current

    @property
    def active(self) -> bool:
        return self.current is not None

    # ── Writers ──────────────────────────────────────────────────

    def swap(self, container: Any) -> Any | None:
        """Install *container*; return the previously installed one."""
        with self._cond:
            old, self._current = self._current, container
            return old

    def clear(self) -> Any | None:
        """Uninstall the current container and return it (``None`` if Absent)."""
        with self._cond:
            old, self._current = self._current, None
            return old

    # ── Readers ──────────────────────────────────────────────────

    @contextmanager
    def lease(self) -> Iterator[Any]:
        """Yield the current container, keeping it from being disconnected.

        Raises :class:`~hitch.core.errors.ContainerNotReadyError` when no
        container is installed.
        """
        with self._cond:
            container = self._current
            if container is None:
                raise ContainerNotReadyError()
            key = id(container)
            self._leases[key] = self._leases.get(key, 0) + 1
        try:
            yield container
        finally:
            with self._cond:
                # may already be gone after reset_after_fork()
                remaining = self._leases.get(key, 0) - 1
                if remaining > 0:
                    self._leases[key] = remaining
                else:
                    self._leases.pop(key, None)
                    self._cond.notify_all()

    def leases(self, container: Any) -> int:
        with self._cond:
            return self._leases.get(id(container), 0)

    def drain(self, container: Any, timeout: float | None = None) -> bool:
        """Block until nobody holds a lease on *container*.

        Returns ``False`` if *timeout* elapsed first.
        """
        key = id(container)
        with self._cond:
            return self._cond.wait_for(lambda: key not in self._leases, timeout)

    # ── Fork safety ──────────────────────────────────────────────

    def reset_after_fork(self) -> Any | None:
        """Forget locks and leases inherited from the parent; return its container."""
        self._cond = threading.Condition(threading.Lock())
        self._leases = {}
        old, self._current = self._current, None
        return old
