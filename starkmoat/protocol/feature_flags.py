"""
Prototype feature flags for selecting the HashToField input encoding.

WARNING: Changing the encoding changes every derived leaf, action hash and
nullifier. Members and verifiers must agree on it.
"""

from __future__ import annotations

import os
from typing import Final

from .config import DEFAULT_HASH_ENCODING, HASH_ENCODINGS

_VALID_ENCODINGS: Final[tuple[str, ...]] = HASH_ENCODINGS
_DEFAULT_ENCODING: Final[str] = DEFAULT_HASH_ENCODING
_ENV_VAR_NAME: Final[str] = "STARKMOAT_HASH_ENCODING"

_encoding_override: str | None = None


def _format_valid_options() -> str:
    return ", ".join(_VALID_ENCODINGS)


def _normalize_encoding(value: str | None) -> str | None:
    if value is None:
        return None

    if not isinstance(value, str):
        raise ValueError(
            f"Invalid hash encoding: {value!r}. Valid options: {_format_valid_options()}"
        )

    if value == "":
        return None

    if value not in _VALID_ENCODINGS:
        raise ValueError(
            f"Invalid hash encoding: {value!r}. Valid options: {_format_valid_options()}"
        )

    return value


def get_hash_encoding(prefer: str | None = None) -> str:
    """
    Resolve hash encoding in precedence order.

    Args:
        prefer: Optional preferred encoding.

    Returns:
        Encoding name ("joined" or "length_prefixed").

    Raises:
        ValueError: If a provided encoding value is invalid.
    """
    preferred = _normalize_encoding(prefer)
    if preferred is not None:
        return preferred

    if _encoding_override is not None:
        return _encoding_override

    env_value = os.getenv(_ENV_VAR_NAME)
    env_encoding = _normalize_encoding(env_value)
    if env_encoding is not None:
        return env_encoding

    return _DEFAULT_ENCODING


def set_hash_encoding(value: str | None) -> None:
    """
    Set in-memory encoding override (testing only).

    Args:
        value: Encoding to force, or None to clear the override.

    Raises:
        ValueError: If the value is invalid.
    """
    global _encoding_override
    _encoding_override = _normalize_encoding(value)
