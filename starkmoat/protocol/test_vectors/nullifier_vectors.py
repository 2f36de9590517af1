# -*- coding: utf-8 -*-
from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, List

STARK_FIELD_PRIME = 0x800000000000011000000000000000000000000000000000000000000000001

VECTOR_FILE = Path(__file__).with_name("nullifier_vectors.json")


def load_vectors(path: Path = VECTOR_FILE) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def compute_expected(vectors: Dict[str, Any]) -> Dict[str, Dict[str, str]]:
    leaf = vectors["leaf"]
    action = vectors["action_hash"]
    nullifier = vectors["nullifier"]
    length_prefixed = vectors["length_prefixed"]

    secret = _require_felt_hex(leaf.get("secret"), "leaf.secret")
    leaf_hex = _joined_to_felt_hex([secret])

    action_parts = [
        _require_string(action.get("domain"), "action_hash.domain"),
        _require_string(action.get("action"), "action_hash.action"),
        _require_felt_hex(action.get("root"), "action_hash.root"),
        _require_felt_hex(action.get("actor"), "action_hash.actor"),
    ]
    action_hash_hex = _joined_to_felt_hex(action_parts)

    nullifier_hex = _joined_to_felt_hex(
        [
            _require_felt_hex(nullifier.get("secret"), "nullifier.secret"),
            _require_felt_hex(nullifier.get("action_hash"), "nullifier.action_hash"),
        ]
    )

    lp_parts = length_prefixed.get("action_parts")
    if not isinstance(lp_parts, list) or not all(isinstance(p, str) for p in lp_parts):
        raise ValueError("length_prefixed.action_parts must be a list of strings")
    lp_leaf_hex = _length_prefixed_to_felt_hex(
        [_require_felt_hex(length_prefixed.get("leaf_secret"), "length_prefixed.leaf_secret")]
    )
    lp_action_hex = _length_prefixed_to_felt_hex(lp_parts)

    return {
        "leaf": {"expected_leaf": leaf_hex},
        "action_hash": {"expected_action_hash": action_hash_hex},
        "nullifier": {"expected_nullifier": nullifier_hex},
        "length_prefixed": {
            "expected_leaf": lp_leaf_hex,
            "expected_action_hash": lp_action_hex,
        },
    }


def validate_vectors(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []

    if data.get("version") != 1:
        errors.append("version must be 1")

    try:
        expected = compute_expected(data)
    except (KeyError, ValueError) as exc:
        errors.append(str(exc))
        return errors

    for section, values in expected.items():
        for key, value in values.items():
            actual = data.get(section, {}).get(key)
            if actual != value:
                errors.append(f"{section}.{key} mismatch: expected {value}, got {actual}")

    # The nullifier vector must chain from the action hash vector
    chained = data.get("nullifier", {}).get("action_hash")
    if chained != data.get("action_hash", {}).get("expected_action_hash"):
        errors.append("nullifier.action_hash must equal action_hash.expected_action_hash")

    return errors


def _joined_to_felt_hex(parts: List[str]) -> str:
    digest = hashlib.sha256("|".join(parts).encode("utf-8")).digest()
    return hex(int.from_bytes(digest, "big") % STARK_FIELD_PRIME)


def _length_prefixed_to_felt_hex(parts: List[str]) -> str:
    encoded = b"".join(
        len(raw).to_bytes(4, "big") + raw for raw in (p.encode("utf-8") for p in parts)
    )
    digest = hashlib.sha256(encoded).digest()
    return hex(int.from_bytes(digest, "big") % STARK_FIELD_PRIME)


def _require_string(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{label} must be a non-empty string")
    return value


def _require_felt_hex(value: Any, label: str) -> str:
    text = _require_string(value, label)
    if not text.startswith("0x"):
        raise ValueError(f"{label} must be 0x-prefixed hex")
    try:
        number = int(text, 16)
    except ValueError as exc:
        raise ValueError(f"{label} must be hex") from exc
    if hex(number) != text:
        raise ValueError(f"{label} must be canonical lowercase hex without padding")
    if number >= STARK_FIELD_PRIME:
        raise ValueError(f"{label} must be below the STARK prime")
    return text
