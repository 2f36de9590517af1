"""
Unit tests for the local nullifier replay guard.
"""

import threading

import pytest

from starkmoat.protocol.exceptions import (
    FeltError,
    NullifierAlreadyUsed,
    NullifierInFlight,
    ReplayError,
)
from starkmoat.protocol.replay import ReplayGuard


def test_fresh_nullifier_reserves():
    guard = ReplayGuard()
    reservation = guard.check_and_reserve(0xAA)
    assert guard.is_pending(0xAA)
    assert not guard.is_used(0xAA)
    assert not reservation.settled


def test_commit_marks_used():
    guard = ReplayGuard()
    guard.check_and_reserve(0xAA).commit()
    assert guard.is_used(0xAA)
    assert not guard.is_pending(0xAA)
    assert 0xAA in guard
    assert len(guard) == 1


def test_used_nullifier_rejected():
    guard = ReplayGuard()
    guard.record(0xAA)
    with pytest.raises(NullifierAlreadyUsed) as excinfo:
        guard.check_and_reserve(0xAA)
    assert excinfo.value.nullifier == 0xAA
    assert not isinstance(excinfo.value, NullifierInFlight)


def test_pending_nullifier_rejected_as_in_flight():
    guard = ReplayGuard()
    guard.check_and_reserve(0xAA)
    with pytest.raises(NullifierInFlight):
        guard.check_and_reserve(0xAA)


def test_in_flight_is_an_already_used_error():
    guard = ReplayGuard()
    guard.check_and_reserve(0xAA)
    with pytest.raises(NullifierAlreadyUsed):
        guard.check_and_reserve(0xAA)


def test_release_allows_retry():
    guard = ReplayGuard()
    guard.check_and_reserve(0xAA).release()
    assert not guard.is_pending(0xAA)
    assert not guard.is_used(0xAA)
    guard.check_and_reserve(0xAA).commit()
    assert guard.is_used(0xAA)


def test_release_is_idempotent():
    guard = ReplayGuard()
    reservation = guard.check_and_reserve(0xAA)
    reservation.release()
    reservation.release()
    assert reservation.settled


def test_release_after_commit_keeps_used():
    guard = ReplayGuard()
    reservation = guard.check_and_reserve(0xAA)
    reservation.commit()
    reservation.release()
    assert guard.is_used(0xAA)


def test_double_commit_rejected():
    guard = ReplayGuard()
    reservation = guard.check_and_reserve(0xAA)
    reservation.commit()
    with pytest.raises(ReplayError):
        reservation.commit()


def test_context_manager_releases_on_error():
    guard = ReplayGuard()
    with pytest.raises(RuntimeError):
        with guard.check_and_reserve(0xAA):
            raise RuntimeError("submission failed")
    assert not guard.is_pending(0xAA)
    assert not guard.is_used(0xAA)


def test_context_manager_keeps_commit():
    guard = ReplayGuard()
    with guard.check_and_reserve(0xAA) as reservation:
        reservation.commit()
    assert guard.is_used(0xAA)


def test_hex_and_int_are_same_nullifier():
    guard = ReplayGuard()
    guard.record("0xAA")
    assert guard.is_used(0xAA)
    with pytest.raises(NullifierAlreadyUsed):
        guard.check_and_reserve("aa")


def test_initial_used_set():
    guard = ReplayGuard(used=[0x1, "0x2"])
    assert guard.used_nullifiers() == frozenset({1, 2})
    with pytest.raises(NullifierAlreadyUsed):
        guard.check_and_reserve(2)


def test_malformed_nullifier_rejected():
    guard = ReplayGuard()
    with pytest.raises(FeltError):
        guard.check_and_reserve("xyz")
    assert "xyz" not in guard
    assert None not in guard


def test_used_set_only_grows():
    guard = ReplayGuard()
    seen = set()
    for value in range(1, 30):
        guard.record(value)
        seen.add(value)
        assert guard.used_nullifiers() == frozenset(seen)


def test_concurrent_reservations_single_winner():
    guard = ReplayGuard()
    barrier = threading.Barrier(16)
    winners = []
    losers = []

    def attempt():
        barrier.wait()
        try:
            winners.append(guard.check_and_reserve(0xBEEF))
        except NullifierAlreadyUsed:
            losers.append(1)

    threads = [threading.Thread(target=attempt) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(winners) == 1
    assert len(losers) == 15
