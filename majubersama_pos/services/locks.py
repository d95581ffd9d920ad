"""In-process per-entity locks for read-modify-write sequences"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from sqlalchemy.orm import Session


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class EntityLocks:
    """
    Registry of one lock per entity key, e.g. "customer:12" or "product:3".

    Keys are always acquired in sorted order so two callers locking the same
    set of entities cannot deadlock. A key's lock is dropped from the registry
    once no caller holds or waits on it.

    Example:
        with locks.hold("customer:12", "product:3"):
            ...  # mutate and commit
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._slots: Dict[str, _Slot] = {}

    def __len__(self) -> int:
        """Keys currently held or waited on"""
        with self._guard:
            return len(self._slots)

    def _checkout(self, keys: List[str]) -> List[_Slot]:
        with self._guard:
            slots = []
            for key in keys:
                slot = self._slots.get(key)
                if slot is None:
                    slot = self._slots[key] = _Slot()
                slot.users += 1
                slots.append(slot)
            return slots

    def _checkin(self, keys: List[str]) -> None:
        with self._guard:
            for key in keys:
                slot = self._slots[key]
                slot.users -= 1
                if slot.users == 0:
                    del self._slots[key]

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        ordered = sorted(set(keys))
        slots = self._checkout(ordered)
        acquired = []
        try:
            for slot in slots:
                slot.lock.acquire()
                acquired.append(slot)
            yield
        finally:
            for slot in reversed(acquired):
                slot.lock.release()
            self._checkin(ordered)


def customer_key(customer_id: int) -> str:
    return f"customer:{customer_id}"


def product_key(product_id: int) -> str:
    return f"product:{product_id}"


def supplier_key(supplier_id: int) -> str:
    return f"supplier:{supplier_id}"


@contextmanager
def unit_of_work(db: Session, locks: EntityLocks, *keys: str) -> Iterator[Session]:
    """
    Hold entity locks across a unit of work and its commit.

    Commits when the block exits cleanly; rolls back and re-raises otherwise,
    so a rejected operation leaves nothing applied.
    """
    with locks.hold(*keys):
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
