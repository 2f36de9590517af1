"""Public API for starkmoat.protocol (root registry + nullifier engine)."""
from __future__ import annotations

from .config import STARK_FIELD_PRIME
from .exceptions import (
    ConfigurationError,
    FeltError,
    InvalidRoot,
    NoOpRoot,
    NullifierAlreadyUsed,
    NullifierInFlight,
    RegistryAlreadyInitialized,
    RegistryError,
    RegistryNotInitialized,
    RegistryStateError,
    RootNotAccepted,
    ReplayError,
    StarkmoatError,
    SubmissionError,
    Unauthorized,
)
from .feature_flags import get_hash_encoding, set_hash_encoding
from .felt import is_felt, parse_felt, short_hex, to_hex_felt
from .merkle import MembershipSet
from .nullifier import (
    ActionContext,
    MemberCredential,
    derive_action_hash,
    derive_leaf,
    derive_nullifier,
    generate_secret,
)
from .registry import (
    FileEventLog,
    FileRegistryStorage,
    InMemoryEventLog,
    InMemoryRegistryStorage,
    RegistryState,
    RootRegistry,
    RootTransition,
)
from .replay import ReplayGuard, Reservation
from .security import RandomnessSource, SeededRandomnessSource, hash_to_field

__all__ = [
    "STARK_FIELD_PRIME",
    "ActionContext",
    "ConfigurationError",
    "FeltError",
    "FileEventLog",
    "FileRegistryStorage",
    "InMemoryEventLog",
    "InMemoryRegistryStorage",
    "InvalidRoot",
    "MemberCredential",
    "MembershipSet",
    "NoOpRoot",
    "NullifierAlreadyUsed",
    "NullifierInFlight",
    "RandomnessSource",
    "RegistryAlreadyInitialized",
    "RegistryError",
    "RegistryNotInitialized",
    "RegistryState",
    "RegistryStateError",
    "ReplayError",
    "ReplayGuard",
    "Reservation",
    "RootNotAccepted",
    "RootRegistry",
    "RootTransition",
    "SeededRandomnessSource",
    "StarkmoatError",
    "SubmissionError",
    "Unauthorized",
    "derive_action_hash",
    "derive_leaf",
    "derive_nullifier",
    "generate_secret",
    "get_hash_encoding",
    "hash_to_field",
    "is_felt",
    "parse_felt",
    "set_hash_encoding",
    "short_hex",
    "to_hex_felt",
]
