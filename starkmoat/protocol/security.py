"""
⚠️ DRAFT — requires crypto review before production use

Security utilities for field hashing and secret generation.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.

HashToField is the single primitive behind leaves, action hashes and
nullifiers. It must stay bit-for-bit identical across all three.
"""

import os
import secrets
import hashlib
import hmac
from typing import Optional, Sequence

from .config import (
    FELT_SEPARATOR,
    HASH_FUNCTION,
    LENGTH_PREFIX_BYTES,
    STARK_FIELD_PRIME,
)
from .feature_flags import get_hash_encoding


# ============================================================================
# RANDOMNESS SOURCE (Fork-Safe)
# ============================================================================


class RandomnessSource:
    """
    Cryptographically secure randomness with fork detection.

    Prevents catastrophic randomness reuse if process forks.

    Example:
        >>> rng = RandomnessSource()
        >>> draw = rng.get_random_bytes(32)
        >>> # After fork, RNG automatically reinitializes
    """

    def __init__(self):
        """Initialize randomness source with fork detection."""
        self._pid = os.getpid()

    def get_random_bytes(self, n: int) -> bytes:
        """
        Get n cryptographically secure random bytes.

        Args:
            n: Number of bytes to generate

        Returns:
            n random bytes
        """
        if os.getpid() != self._pid:
            self.__init__()
        return secrets.token_bytes(n)


class SeededRandomnessSource:
    """
    Deterministic byte stream for tests.

    ⚠️ NOT RANDOM. Output is SHA-256(seed || counter) blocks, so equal seeds
    produce equal secrets. Never use outside of tests and fixtures.
    """

    def __init__(self, seed: bytes):
        if not isinstance(seed, bytes):
            raise TypeError(f"seed must be bytes, got {type(seed)}")
        self._seed = seed
        self._counter = 0

    def get_random_bytes(self, n: int) -> bytes:
        out = bytearray()
        while len(out) < n:
            block = self._seed + self._counter.to_bytes(8, "big")
            out.extend(hashlib.sha256(block).digest())
            self._counter += 1
        return bytes(out[:n])


# ============================================================================
# HASH TO FIELD
# ============================================================================


def encode_parts(parts: Sequence[str], encoding: Optional[str] = None) -> bytes:
    """
    Encode ordered string parts into the byte string that gets hashed.

    Args:
        parts: Ordered parts (must be non-empty, all str)
        encoding: "joined" or "length_prefixed" (default: feature flag)

    Returns:
        Encoded bytes

    Raises:
        TypeError: If a part is not a string
        ValueError: If parts is empty or encoding is unknown

    Security Note:
        "joined" is ``"|".join(parts)``. Two tuples whose parts contain the
        separator can encode to the same bytes. "length_prefixed" writes
        ``len(part) || part`` per part and has no such collision.
    """
    if not parts:
        raise ValueError("parts cannot be empty")

    for part in parts:
        if not isinstance(part, str):
            raise TypeError(f"hash parts must be str, got {type(part)}")

    resolved = get_hash_encoding(encoding)

    if resolved == "joined":
        return FELT_SEPARATOR.join(parts).encode("utf-8")

    encoded = bytearray()
    for part in parts:
        raw = part.encode("utf-8")
        encoded.extend(len(raw).to_bytes(LENGTH_PREFIX_BYTES, "big"))
        encoded.extend(raw)
    return bytes(encoded)


def hash_to_field(parts: Sequence[str], encoding: Optional[str] = None) -> int:
    """
    Hash ordered string parts to a STARK field element.

    Args:
        parts: Ordered parts to hash
        encoding: Optional encoding override (see encode_parts)

    Returns:
        Field element in [0, STARK_FIELD_PRIME)

    Example:
        >>> leaf = hash_to_field(["0x1234abcd"])
        >>> assert 0 <= leaf < STARK_FIELD_PRIME
    """
    data = encode_parts(parts, encoding)

    if HASH_FUNCTION == "SHA256":
        digest = hashlib.sha256(data).digest()
    else:
        raise ValueError(f"Unsupported hash function: {HASH_FUNCTION}")

    # Modulo reduction (slight bias acceptable for prototype)
    return int.from_bytes(digest, "big") % STARK_FIELD_PRIME


# ============================================================================
# CONSTANT-TIME OPERATIONS
# ============================================================================


def constant_time_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison of two identities or encoded secrets.

    Args:
        a: First string
        b: Second string

    Returns:
        True if a == b, False otherwise
    """
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
