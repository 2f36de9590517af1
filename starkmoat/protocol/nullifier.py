"""
⚠️ DRAFT — requires crypto review before production use

Member commitments and per-action nullifiers.

Derivations:
    leaf        = H(secret)
    action_hash = H(domain, action, root, actor)
    nullifier   = H(secret, action_hash)

where H is hash_to_field. Same secret + same context -> same nullifier, so
reuse is detectable. Different context -> unrelated nullifier, so two
actions by one member cannot be linked without the secret.

Zero-knowledge proof that the leaf belongs to the root is NOT implemented
here; these are the client-side derivations only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Tuple

from .config import FELT_SEPARATOR, SECRET_BYTES, STARK_FIELD_PRIME
from .felt import FeltLike, to_hex_felt
from .security import RandomnessSource, hash_to_field


class ByteSource(Protocol):
    def get_random_bytes(self, n: int) -> bytes:
        ...


def _as_part(value: FeltLike) -> str:
    # Field elements hash as canonical hex; strings are used verbatim
    if isinstance(value, int) and not isinstance(value, bool):
        return to_hex_felt(value)
    if isinstance(value, str):
        return value
    raise TypeError(f"Expected int or str, got {type(value)}")


def generate_secret(rng: Optional[ByteSource] = None) -> int:
    """
    Generate a member secret.

    Args:
        rng: Byte source (default: fresh RandomnessSource)

    Returns:
        Field element drawn from 32 random bytes, big-endian, reduced mod P
    """
    source = rng if rng is not None else RandomnessSource()
    draw = source.get_random_bytes(SECRET_BYTES)
    if len(draw) != SECRET_BYTES:
        raise ValueError(f"Randomness source returned {len(draw)} bytes")
    return int.from_bytes(draw, "big") % STARK_FIELD_PRIME


def derive_leaf(secret: FeltLike, encoding: Optional[str] = None) -> int:
    """Public commitment to a secret, safe to share for enrollment."""
    return hash_to_field([_as_part(secret)], encoding)


def derive_action_hash(
    domain: str,
    action: str,
    root: FeltLike,
    actor: FeltLike,
    encoding: Optional[str] = None,
) -> int:
    """
    Hash the public action context.

    Args:
        domain: Domain separator (network, account, registry)
        action: Action label / transaction intent
        root: Accepted membership root the action is made against
        actor: On-chain identifier submitting the action
        encoding: Optional HashToField encoding override

    Returns:
        Action hash field element

    Note:
        With the default "joined" encoding, parts that contain "|" can
        collide with a different split of the same characters. See
        ActionContext.has_separator_ambiguity().
    """
    parts = [_as_part(domain), _as_part(action), _as_part(root), _as_part(actor)]
    return hash_to_field(parts, encoding)


def derive_nullifier(
    secret: FeltLike, action_hash: FeltLike, encoding: Optional[str] = None
) -> int:
    """Single-use token binding a secret to one action context."""
    return hash_to_field([_as_part(secret), _as_part(action_hash)], encoding)


@dataclass(frozen=True)
class ActionContext:
    """
    Public tuple describing what is authorized, under which root, by whom.

    Attributes:
        domain: Domain separator string
        action: Action label
        root: Membership root (int or hex string)
        actor: Actor identifier (int or hex string)
    """

    domain: str
    action: str
    root: FeltLike
    actor: FeltLike

    def parts(self) -> Tuple[str, str, str, str]:
        return (
            _as_part(self.domain),
            _as_part(self.action),
            _as_part(self.root),
            _as_part(self.actor),
        )

    def action_hash(self, encoding: Optional[str] = None) -> int:
        return derive_action_hash(
            self.domain, self.action, self.root, self.actor, encoding
        )

    def has_separator_ambiguity(self) -> bool:
        """True if any part after the domain contains the join separator."""
        # The domain is conventionally "chain|account|registry"; only a
        # separator in a later part can shift the split point.
        return any(FELT_SEPARATOR in part for part in self.parts()[1:])


@dataclass(frozen=True)
class MemberCredential:
    """
    A member's private secret together with its public leaf.

    The secret never appears in repr().
    """

    secret: int = field(repr=False)
    leaf: int

    @classmethod
    def create(cls, rng: Optional[ByteSource] = None) -> "MemberCredential":
        secret = generate_secret(rng)
        return cls(secret=secret, leaf=derive_leaf(secret))

    @classmethod
    def from_secret(cls, secret: int) -> "MemberCredential":
        return cls(secret=secret, leaf=derive_leaf(secret))

    def nullifier_for(
        self, context: ActionContext, encoding: Optional[str] = None
    ) -> int:
        return derive_nullifier(self.secret, context.action_hash(encoding), encoding)
