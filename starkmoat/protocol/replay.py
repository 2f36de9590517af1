"""
Local replay guard for nullifiers.

Advisory and best-effort: the used set lives in memory for one process and
is not a substitute for an on-chain spent-nullifier check.

A nullifier moves through three states:

    unseen --check_and_reserve--> reserved --commit--> used
                                     |
                                     +----release----> unseen

Only a confirmed submission commits. A failed, rejected or cancelled
submission releases its reservation, so the same nullifier can be retried.
"""

from __future__ import annotations

import threading
from typing import FrozenSet, Iterable, Optional, Set

from .exceptions import FeltError, NullifierAlreadyUsed, NullifierInFlight, ReplayError
from .felt import FeltLike, parse_felt


class Reservation:
    """
    Claim on a nullifier held while its action is being submitted.

    Use as a context manager: leaving the block without commit() (because
    of an error or cancellation) releases the claim.
    """

    def __init__(self, guard: "ReplayGuard", nullifier: int) -> None:
        self._guard = guard
        self.nullifier = nullifier
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def commit(self) -> None:
        if self._settled:
            raise ReplayError("reservation already settled")
        self._guard._commit(self.nullifier)
        self._settled = True

    def release(self) -> None:
        if self._settled:
            return
        self._guard._release(self.nullifier)
        self._settled = True

    def __enter__(self) -> "Reservation":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "settled" if self._settled else "pending"
        return f"Reservation({hex(self.nullifier)}, {state})"


class ReplayGuard:
    """
    Set of nullifiers spent by this process.

    Insertion is the only mutation of the used set; there is no removal.
    The internal lock is held only for set operations, never across the
    submission itself.
    """

    def __init__(self, used: Optional[Iterable[FeltLike]] = None) -> None:
        self._lock = threading.Lock()
        self._used: Set[int] = set()
        self._pending: Set[int] = set()
        for nullifier in used or ():
            self._used.add(parse_felt(nullifier))

    def check_and_reserve(self, nullifier: FeltLike) -> Reservation:
        """
        Atomically check a nullifier and reserve it for one submission.

        Raises:
            NullifierAlreadyUsed: If the nullifier was already committed
            NullifierInFlight: If another submission holds it
        """
        value = parse_felt(nullifier)
        with self._lock:
            if value in self._used:
                raise NullifierAlreadyUsed(value)
            if value in self._pending:
                raise NullifierInFlight(value)
            self._pending.add(value)
        return Reservation(self, value)

    def record(self, nullifier: FeltLike) -> None:
        """Reserve and commit in one step (for already-confirmed actions)."""
        self.check_and_reserve(nullifier).commit()

    def _commit(self, value: int) -> None:
        with self._lock:
            self._pending.discard(value)
            if value in self._used:
                raise NullifierAlreadyUsed(value)
            self._used.add(value)

    def _release(self, value: int) -> None:
        with self._lock:
            self._pending.discard(value)

    def is_used(self, nullifier: FeltLike) -> bool:
        with self._lock:
            return parse_felt(nullifier) in self._used

    def is_pending(self, nullifier: FeltLike) -> bool:
        with self._lock:
            return parse_felt(nullifier) in self._pending

    def used_nullifiers(self) -> FrozenSet[int]:
        with self._lock:
            return frozenset(self._used)

    def __contains__(self, nullifier: object) -> bool:
        try:
            return self.is_used(nullifier)  # type: ignore[arg-type]
        except (FeltError, TypeError):
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._used)
