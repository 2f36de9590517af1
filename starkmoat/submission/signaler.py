"""Anonymous action submission: derive nullifier, guard, submit, commit."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import trio

from ..protocol.config import DEFAULT_DOMAIN, DEFAULT_ENTRYPOINT
from ..protocol.exceptions import InvalidRoot, RegistryNotInitialized, RootNotAccepted
from ..protocol.felt import FeltLike, parse_felt, to_hex_felt
from ..protocol.nullifier import ActionContext, MemberCredential
from ..protocol.registry import RootRegistry
from ..protocol.replay import ReplayGuard
from .explorer import tx_link
from .transport import ActionTransport, build_call


@dataclass(frozen=True)
class SignalConfig:
    target_contract: str
    domain: str = DEFAULT_DOMAIN
    root: Optional[FeltLike] = None
    entrypoint: str = DEFAULT_ENTRYPOINT
    append_nullifier: bool = True
    chain_id: Optional[str] = None
    timeout: Optional[float] = None


@dataclass(frozen=True)
class SignalEvent:
    action: str
    nullifier: int
    tx_hash: str
    created_at: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "action": self.action,
            "nullifier": to_hex_felt(self.nullifier),
            "tx_hash": self.tx_hash,
            "created_at": self.created_at,
        }


class AnonymousSignaler:
    """
    Submits actions under a member credential.

    The actor part of the action context is the transport's account
    address. Root and actor enter the context as canonical hex, so every
    spelling of the same felt yields the same nullifier. The nullifier is committed to the guard only after the
    transport returns a transaction hash; failures, timeouts and
    cancellation leave it retryable and propagate unchanged.

    When a registry is supplied, ``config.root`` may be omitted (the
    registry's current root is used) and an explicit root must be one the
    registry has accepted. An uninitialized registry has no root to sign
    against and raises RegistryNotInitialized; the zero root is never used.
    """

    def __init__(
        self,
        transport: ActionTransport,
        credential: MemberCredential,
        config: SignalConfig,
        guard: Optional[ReplayGuard] = None,
        registry: Optional[RootRegistry] = None,
    ) -> None:
        if config.root is None and registry is None:
            raise ValueError("SignalConfig.root is required without a registry")
        self._transport = transport
        self._credential = credential
        self._config = config
        self._guard = guard if guard is not None else ReplayGuard()
        self._registry = registry
        self._history: List[SignalEvent] = []

    @property
    def guard(self) -> ReplayGuard:
        return self._guard

    @property
    def history(self) -> List[SignalEvent]:
        """Accepted signals, newest first."""
        return list(self._history)

    @property
    def signal_count(self) -> int:
        return len(self._history)

    def _resolve_root(self) -> str:
        if self._registry is not None and not self._registry.is_initialized:
            raise RegistryNotInitialized("Registry has not been initialized")

        if self._config.root is None:
            return to_hex_felt(self._registry.get_current_root())

        root = parse_felt(self._config.root)
        if root == 0:
            raise InvalidRoot("Root cannot be zero")
        if self._registry is not None and not self._registry.is_root_accepted(root):
            raise RootNotAccepted(
                f"Root {to_hex_felt(root)} was never accepted by the registry"
            )
        return to_hex_felt(root)

    def context_for(self, action: str) -> ActionContext:
        return ActionContext(
            domain=self._config.domain,
            action=action,
            root=self._resolve_root(),
            actor=to_hex_felt(parse_felt(self._transport.account_address)),
        )

    def nullifier_for(self, action: str) -> int:
        return self._credential.nullifier_for(self.context_for(action))

    async def signal(self, action: str, calldata: Sequence[str] = ()) -> SignalEvent:
        nullifier = self.nullifier_for(action)

        with self._guard.check_and_reserve(nullifier) as reservation:
            call = build_call(
                self._config.target_contract,
                self._config.entrypoint,
                calldata,
                nullifier,
                append_nullifier=self._config.append_nullifier,
            )
            if self._config.timeout is None:
                tx_hash = await self._transport.submit(call)
            else:
                with trio.fail_after(self._config.timeout):
                    tx_hash = await self._transport.submit(call)
            reservation.commit()

        event = SignalEvent(action=action, nullifier=nullifier, tx_hash=tx_hash)
        self._history.insert(0, event)
        return event

    def tx_link(self, event: SignalEvent) -> str:
        return tx_link(self._config.chain_id, event.tx_hash)
