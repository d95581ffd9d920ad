"""Unit tests for entity locks and the unit of work"""

import threading
import time
import pytest
from sqlalchemy.orm import Session
from majubersama_pos.infrastructure.database.models import Customer
from majubersama_pos.services.locks import EntityLocks, customer_key, product_key, unit_of_work


def test_same_key_is_serialized():
    locks = EntityLocks()
    events = []

    def worker(name: str):
        with locks.hold(customer_key(1)):
            events.append(f"{name}-in")
            time.sleep(0.05)
            events.append(f"{name}-out")

    threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # No interleaving: each worker leaves before the other enters
    assert events[0][0] == events[1][0]
    assert events[2][0] == events[3][0]


def test_opposite_order_does_not_deadlock():
    locks = EntityLocks()
    done = []

    def worker(keys):
        for _ in range(50):
            with locks.hold(*keys):
                pass
        done.append(True)

    threads = [
        threading.Thread(target=worker, args=((customer_key(1), product_key(2)),)),
        threading.Thread(target=worker, args=((product_key(2), customer_key(1)),)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(done) == 2


def test_duplicate_keys_do_not_self_deadlock():
    locks = EntityLocks()
    with locks.hold(product_key(1), product_key(1)):
        pass


def test_unit_of_work_rolls_back_on_error(db: Session, customer: Customer):
    locks = EntityLocks()

    with pytest.raises(RuntimeError):
        with unit_of_work(db, locks, customer_key(customer.id)):
            customer.current_debt = 123
            db.flush()
            raise RuntimeError("boom")

    db.refresh(customer)
    assert customer.current_debt == 0

    # Lock was released
    with locks.hold(customer_key(customer.id)):
        pass


def test_unit_of_work_commits(db: Session, customer: Customer):
    with unit_of_work(db, EntityLocks(), customer_key(customer.id)):
        customer.phone = "0811"

    db.expire_all()
    assert db.get(Customer, customer.id).phone == "0811"


def test_released_keys_leave_the_registry():
    locks = EntityLocks()
    for customer_id in range(100):
        with locks.hold(customer_key(customer_id), product_key(customer_id)):
            assert len(locks) == 2

    assert len(locks) == 0


def test_waiter_shares_lock_with_holder():
    locks = EntityLocks()
    entered = threading.Event()
    release = threading.Event()
    events = []

    def holder():
        with locks.hold(customer_key(7)):
            entered.set()
            release.wait(timeout=5)
            events.append("holder-out")

    def waiter():
        entered.wait(timeout=5)
        with locks.hold(customer_key(7)):
            events.append("waiter-in")

    threads = [threading.Thread(target=holder), threading.Thread(target=waiter)]
    for thread in threads:
        thread.start()
    entered.wait(timeout=5)
    time.sleep(0.05)
    assert events == []
    assert len(locks) == 1

    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert events == ["holder-out", "waiter-in"]
    assert len(locks) == 0
