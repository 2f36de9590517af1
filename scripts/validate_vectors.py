from __future__ import annotations

from starkmoat.protocol.test_vectors import nullifier_vectors


def main() -> int:
    data = nullifier_vectors.load_vectors()
    errors = nullifier_vectors.validate_vectors(data)
    if errors:
        for error in errors:
            print(f"nullifier_vectors.json: {error}")
        return 1
    print("nullifier_vectors.json: OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
