"""Action-submission transport seam and a dry-run implementation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

import trio

from ..protocol.exceptions import SubmissionError
from ..protocol.felt import FeltLike, parse_felt, to_hex_felt
from ..protocol.security import hash_to_field

_CALLDATA_SPLIT = re.compile(r"[\n,]")


@dataclass(frozen=True)
class Call:
    contract_address: str
    entrypoint: str
    calldata: Tuple[str, ...] = ()

    def validate(self) -> None:
        if not self.contract_address:
            raise SubmissionError("contract_address required")
        if not self.entrypoint:
            raise SubmissionError("entrypoint required")


class ActionTransport(Protocol):
    @property
    def account_address(self) -> str:
        ...

    async def submit(self, call: Call) -> str:
        ...


def parse_calldata_input(raw: str) -> List[str]:
    """Split comma/newline separated calldata, dropping blanks."""
    items = (item.strip() for item in _CALLDATA_SPLIT.split(raw or ""))
    return [item for item in items if item]


def build_call(
    contract_address: str,
    entrypoint: str,
    calldata: Sequence[str],
    nullifier: FeltLike,
    append_nullifier: bool = True,
) -> Call:
    items = [str(item) for item in calldata]
    if append_nullifier:
        items.append(to_hex_felt(parse_felt(nullifier)))
    call = Call(
        contract_address=contract_address,
        entrypoint=entrypoint,
        calldata=tuple(items),
    )
    call.validate()
    return call


@dataclass
class DryRunTransport:
    """
    Transport that never leaves the process.

    Transaction hashes are hash_to_field over the account, call and a
    per-transport nonce, so runs are reproducible. ``fail_next`` makes the
    next N submissions raise SubmissionError; ``delay`` sleeps before
    answering so callers can exercise timeouts and cancellation.
    """

    account_address: str
    delay: float = 0.0
    fail_next: int = 0
    submitted: List[Call] = field(default_factory=list)
    attempts: int = 0
    _nonce: int = field(default=0, init=False, repr=False)

    async def submit(self, call: Call) -> str:
        call.validate()
        self.attempts += 1
        await trio.sleep(self.delay)
        if self.fail_next > 0:
            self.fail_next -= 1
            raise SubmissionError("dry-run transport rejected the transaction")

        tx_hash = hash_to_field(
            [
                "tx",
                self.account_address,
                call.contract_address,
                call.entrypoint,
                *call.calldata,
                str(self._nonce),
            ]
        )
        self._nonce += 1
        self.submitted.append(call)
        return to_hex_felt(tx_hash)

    @property
    def last_call(self) -> Optional[Call]:
        return self.submitted[-1] if self.submitted else None
