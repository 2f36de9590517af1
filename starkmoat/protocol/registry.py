"""
⚠️ DRAFT — requires crypto review before production use

Group-root registry.

Tracks the currently accepted membership root and every root ever
accepted, under the control of a single admin identity.

History is append-only: a superseded root stays accepted, so actions
computed against the previous root still validate after a rotation that
races ahead of them.

Persistence and event logging are injected:
    RegistryStorage - durable {admin, current_root, accepted_roots}
    EventSink       - append-only log of RootTransition records

Both ship with in-memory and CBOR file implementations.
"""

import io
import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Protocol, Set, Union

try:
    import cbor2
except ImportError:
    raise ImportError(
        "cbor2 is required for registry persistence. "
        "Install with: pip install cbor2"
    )

from .config import REGISTRY_EVENT_VERSION, REGISTRY_STATE_VERSION
from .exceptions import (
    FeltError,
    InvalidRoot,
    NoOpRoot,
    RegistryAlreadyInitialized,
    RegistryNotInitialized,
    RegistryStateError,
    Unauthorized,
)
from .felt import FeltLike, is_felt, parse_felt, to_hex_felt
from .security import constant_time_compare

# ============================================================================
# TRANSITION RECORD
# ============================================================================


@dataclass(frozen=True)
class RootTransition:
    """
    One root change, as written to the event sink.

    Attributes:
        previous_root: Root before the change (0 for initialization)
        new_root: Root after the change
        updated_by: Identity that made the change
        timestamp: Unix timestamp of the change
    """

    previous_root: int
    new_root: int
    updated_by: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible view with hex-encoded roots."""
        return {
            "previous_root": to_hex_felt(self.previous_root),
            "new_root": to_hex_felt(self.new_root),
            "updated_by": self.updated_by,
            "timestamp": self.timestamp,
        }


# ============================================================================
# REGISTRY STATE (with CBOR serialization)
# ============================================================================


@dataclass
class RegistryState:
    """
    Persisted registry layout.

    Attributes:
        admin: Admin identity (None before initialization)
        current_root: Currently accepted root (0 before initialization)
        accepted_roots: Every root ever accepted
    """

    admin: Optional[str] = None
    current_root: int = 0
    accepted_roots: Set[int] = field(default_factory=set)

    @property
    def initialized(self) -> bool:
        return self.admin is not None

    def check_invariants(self) -> None:
        """
        Raise RegistryStateError if the state is inconsistent.

        Pre-initialization: no admin, zero root, empty history.
        Post-initialization: admin set, non-zero current root that is in
        the history, and no zero root anywhere.
        """
        if not self.initialized:
            if self.current_root != 0 or self.accepted_roots:
                raise RegistryStateError("roots present without an admin")
            return

        if not isinstance(self.admin, str) or not self.admin:
            raise RegistryStateError("admin identity must be a non-empty string")
        if not is_felt(self.current_root) or self.current_root == 0:
            raise RegistryStateError(f"invalid current root: {self.current_root!r}")
        if self.current_root not in self.accepted_roots:
            raise RegistryStateError("current root missing from accepted roots")
        for root in self.accepted_roots:
            if not is_felt(root) or root == 0:
                raise RegistryStateError(f"invalid accepted root: {root!r}")

    def copy(self) -> "RegistryState":
        return RegistryState(
            admin=self.admin,
            current_root=self.current_root,
            accepted_roots=set(self.accepted_roots),
        )

    def serialize(self) -> bytes:
        """
        Serialize state to bytes using CBOR.

        Accepted roots are written in ascending order so equal states
        produce equal bytes.

        Raises:
            RegistryStateError: If serialization fails
        """
        try:
            data = {
                "v": REGISTRY_STATE_VERSION,
                "admin": self.admin,
                "current_root": self.current_root,
                "accepted_roots": sorted(self.accepted_roots),
            }
            return cbor2.dumps(data)
        except Exception as e:
            raise RegistryStateError(f"Failed to serialize registry state: {e}") from e

    @classmethod
    def deserialize(cls, data: bytes) -> "RegistryState":
        """
        Deserialize state from CBOR bytes.

        Raises:
            RegistryStateError: If data is invalid, has an unsupported
                version, or violates the registry invariants
        """
        try:
            obj = cbor2.loads(data)
        except Exception as e:
            raise RegistryStateError(f"Failed to deserialize registry state: {e}") from e

        if not isinstance(obj, dict):
            raise RegistryStateError("Invalid registry state: expected a map")

        version = obj.get("v", 1)
        if version != REGISTRY_STATE_VERSION:
            raise RegistryStateError(
                f"Unsupported registry state version: {version} "
                f"(expected {REGISTRY_STATE_VERSION})"
            )

        for key in ("admin", "current_root", "accepted_roots"):
            if key not in obj:
                raise RegistryStateError(f"Invalid registry state: missing {key!r}")

        if not isinstance(obj["accepted_roots"], list):
            raise RegistryStateError("Invalid registry state: accepted_roots must be a list")

        state = cls(
            admin=obj["admin"],
            current_root=obj["current_root"],
            accepted_roots=set(obj["accepted_roots"]),
        )
        state.check_invariants()
        return state


# ============================================================================
# STORAGE
# ============================================================================


class RegistryStorage(Protocol):
    def load(self) -> RegistryState:
        ...

    def save(self, state: RegistryState) -> None:
        ...


class InMemoryRegistryStorage:
    """Process-local storage; state is lost when the object goes away."""

    def __init__(self, state: Optional[RegistryState] = None) -> None:
        self._state = state.copy() if state is not None else RegistryState()

    def load(self) -> RegistryState:
        return self._state.copy()

    def save(self, state: RegistryState) -> None:
        self._state = state.copy()


class FileRegistryStorage:
    """
    CBOR file storage.

    A missing file loads as an uninitialized registry. Writes go to a
    temporary sibling file that replaces the target in one rename.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> RegistryState:
        if not self.path.exists():
            return RegistryState()
        try:
            data = self.path.read_bytes()
        except OSError as e:
            raise RegistryStateError(f"Failed to read {self.path}: {e}") from e
        return RegistryState.deserialize(data)

    def save(self, state: RegistryState) -> None:
        blob = state.serialize()
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(blob)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise RegistryStateError(f"Failed to write {self.path}: {e}") from e


# ============================================================================
# EVENT SINKS
# ============================================================================


class EventSink(Protocol):
    def emit(self, transition: RootTransition) -> None:
        ...

    def transitions(self) -> List[RootTransition]:
        ...


class InMemoryEventLog:
    def __init__(self) -> None:
        self._records: List[RootTransition] = []

    def emit(self, transition: RootTransition) -> None:
        self._records.append(transition)

    def transitions(self) -> List[RootTransition]:
        return list(self._records)


class FileEventLog:
    """Append-only CBOR sequence, one map per transition."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def emit(self, transition: RootTransition) -> None:
        record = {
            "v": REGISTRY_EVENT_VERSION,
            "previous_root": transition.previous_root,
            "new_root": transition.new_root,
            "updated_by": transition.updated_by,
            "ts": transition.timestamp,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("ab") as handle:
                handle.write(cbor2.dumps(record))
        except OSError as e:
            raise RegistryStateError(f"Failed to append to {self.path}: {e}") from e

    def transitions(self) -> List[RootTransition]:
        if not self.path.exists():
            return []

        data = self.path.read_bytes()
        stream = io.BytesIO(data)
        records: List[RootTransition] = []
        while stream.tell() < len(data):
            try:
                obj = cbor2.load(stream)
            except Exception as e:
                raise RegistryStateError(f"Corrupt event log {self.path}: {e}") from e
            if not isinstance(obj, dict) or obj.get("v") != REGISTRY_EVENT_VERSION:
                raise RegistryStateError(f"Unsupported event record in {self.path}")
            records.append(
                RootTransition(
                    previous_root=obj["previous_root"],
                    new_root=obj["new_root"],
                    updated_by=obj["updated_by"],
                    timestamp=obj["ts"],
                )
            )
        return records


# ============================================================================
# ROOT REGISTRY
# ============================================================================


def _require_nonzero_root(value: FeltLike) -> int:
    root = parse_felt(value)
    if root == 0:
        raise InvalidRoot("Root cannot be zero")
    return root


def _require_identity(caller: str) -> str:
    if not isinstance(caller, str) or not caller:
        raise ValueError(f"caller identity must be a non-empty string, got {caller!r}")
    return caller


class RootRegistry:
    """
    Admin-controlled registry of accepted membership roots.

    Writers (initialize, set_root) are serialized with a mutex; readers see
    the last committed state. Storage is written before the transition is
    emitted. If either step fails, storage is restored and the in-memory
    state is left unchanged.

    Example:
        >>> registry = RootRegistry()
        >>> admin = registry.initialize(0x11, caller="0xadmin")
        >>> registry.set_root(admin, 0x22)
        >>> registry.get_current_root()
        34
        >>> registry.is_root_accepted(0x11)
        True
    """

    def __init__(
        self,
        storage: Optional[RegistryStorage] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        self._storage = storage if storage is not None else InMemoryRegistryStorage()
        self._events = events if events is not None else InMemoryEventLog()
        self._lock = threading.Lock()
        self._state = self._storage.load()
        self._state.check_invariants()

    @property
    def is_initialized(self) -> bool:
        return self._state.initialized

    def initialize(self, initial_root: FeltLike, caller: str) -> str:
        """
        Accept the first root and make the caller admin.

        Args:
            initial_root: Non-zero root
            caller: Identity attested by the host environment

        Returns:
            The admin identity

        Raises:
            InvalidRoot: If initial_root is zero
            RegistryAlreadyInitialized: If called a second time
        """
        root = _require_nonzero_root(initial_root)
        admin = _require_identity(caller)

        with self._lock:
            if self._state.initialized:
                raise RegistryAlreadyInitialized(
                    f"Registry already initialized by {self._state.admin}"
                )
            self._commit(
                RegistryState(admin=admin, current_root=root, accepted_roots={root}),
                RootTransition(previous_root=0, new_root=root, updated_by=admin),
            )
        return admin

    def set_root(self, caller: str, new_root: FeltLike) -> None:
        """
        Rotate the current root.

        Re-accepting a root from history succeeds; only the zero root and
        the unchanged current root are rejected.

        Raises:
            RegistryNotInitialized: If initialize() has not run
            Unauthorized: If caller is not the admin
            InvalidRoot: If new_root is zero
            NoOpRoot: If new_root equals the current root
        """
        _require_identity(caller)

        with self._lock:
            state = self._state
            if not state.initialized:
                raise RegistryNotInitialized("Registry has not been initialized")
            if not constant_time_compare(caller, state.admin):
                raise Unauthorized(f"{caller} is not the registry admin")

            root = _require_nonzero_root(new_root)
            if root == state.current_root:
                raise NoOpRoot(f"Root {to_hex_felt(root)} is already current")

            next_state = state.copy()
            next_state.current_root = root
            next_state.accepted_roots.add(root)
            self._commit(
                next_state,
                RootTransition(
                    previous_root=state.current_root, new_root=root, updated_by=caller
                ),
            )

    def _commit(self, next_state: RegistryState, transition: RootTransition) -> None:
        # A transition is applied only once it is both stored and recorded
        next_state.check_invariants()
        previous = self._state
        self._storage.save(next_state)
        try:
            self._events.emit(transition)
        except Exception:
            self._storage.save(previous)
            raise
        self._state = next_state

    def get_current_root(self) -> int:
        return self._state.current_root

    def is_root_accepted(self, root: FeltLike) -> bool:
        """True for the current root and every root it superseded."""
        try:
            value = parse_felt(root)
        except FeltError:
            return False
        return value != 0 and value in self._state.accepted_roots

    def get_admin(self) -> Optional[str]:
        return self._state.admin

    def accepted_roots(self) -> FrozenSet[int]:
        return frozenset(self._state.accepted_roots)

    def history(self) -> List[RootTransition]:
        return self._events.transitions()
