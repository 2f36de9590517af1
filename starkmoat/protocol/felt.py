"""STARK field element encoding helpers."""

from __future__ import annotations

from typing import Union

from .config import STARK_FIELD_PRIME
from .exceptions import FeltError

FeltLike = Union[int, str]

_HEX_DIGITS = frozenset("0123456789abcdef")


def _check_range(value: int) -> int:
    if value < 0:
        raise FeltError(f"field element must be non-negative, got {value}")
    if value >= STARK_FIELD_PRIME:
        raise FeltError(f"field element out of range: {hex(value)}")
    return value


def is_felt(value: object) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < STARK_FIELD_PRIME
    )


def to_hex_felt(value: int) -> str:
    """Render a field element as 0x-prefixed lowercase hex without padding."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise FeltError(f"field element must be int, got {type(value).__name__}")
    return hex(_check_range(value))


def parse_felt(value: FeltLike) -> int:
    """
    Parse an int or hex string into a field element.

    Hex strings may omit the 0x prefix and use either case. Decimal strings
    are not accepted.

    Raises:
        FeltError: If the value is malformed or not in [0, P)
    """
    if isinstance(value, bool):
        raise FeltError("field element must be int or hex string, got bool")
    if isinstance(value, int):
        return _check_range(value)
    if not isinstance(value, str):
        raise FeltError(
            f"field element must be int or hex string, got {type(value).__name__}"
        )

    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text or not set(text) <= _HEX_DIGITS:
        raise FeltError(f"invalid hex field element: {value!r}")
    return _check_range(int(text, 16))


def short_hex(value: FeltLike) -> str:
    text = to_hex_felt(value) if isinstance(value, int) else value
    if len(text) <= 14:
        return text
    return f"{text[:8]}...{text[-6:]}"
