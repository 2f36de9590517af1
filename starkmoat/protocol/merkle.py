"""
Merkle tree over member leaves, producing registry roots.
Interior nodes use hash_to_field with a node tag, so roots are field elements.

This is a plain authenticated tree for building snapshots. It does NOT
produce zero-knowledge inclusion proofs.
"""

from typing import Dict, List, Optional, Tuple

from .config import MERKLE_NODE_TAG
from .felt import FeltLike, parse_felt, to_hex_felt
from .security import hash_to_field

AuthPath = List[Tuple[int, bool]]


def hash_node(left: int, right: int, encoding: Optional[str] = None) -> int:
    """
    Hash two child nodes.

    Args:
        left: Left child field element
        right: Right child field element

    Returns:
        Parent field element

    Note:
        Uses fixed left||right ordering (no sorting).
        Node tag applied as the first part.
    """
    return hash_to_field(
        [MERKLE_NODE_TAG, to_hex_felt(left), to_hex_felt(right)], encoding
    )


def build_tree(
    leaves: List[int], encoding: Optional[str] = None
) -> Tuple[int, Dict[int, AuthPath]]:
    """
    Build a Merkle tree and generate authentication paths.

    Args:
        leaves: List of leaf field elements

    Returns:
        (root, auth_paths)
        - root: Root field element
        - auth_paths: Dict mapping leaf_index -> [(sibling, is_left), ...]

    Algorithm:
        - If odd number of nodes at any level, duplicate the last node
        - Build tree bottom-up
        - Track sibling positions for authentication paths
    """
    if not leaves:
        raise ValueError("Cannot build tree with zero leaves")

    if len(leaves) == 1:
        # Single leaf, root = leaf
        return leaves[0], {0: []}

    auth_paths: Dict[int, AuthPath] = {i: [] for i in range(len(leaves))}

    current_level: List[Tuple[int, List[int]]] = [
        (leaf, [i]) for i, leaf in enumerate(leaves)
    ]

    while len(current_level) > 1:
        next_level: List[Tuple[int, List[int]]] = []

        for i in range(0, len(current_level), 2):
            left_node, left_indices = current_level[i]

            if i + 1 < len(current_level):
                right_node, right_indices = current_level[i + 1]
                duplicated = False
            else:
                # Odd number, duplicate last
                right_node, right_indices = left_node, left_indices
                duplicated = True

            parent = hash_node(left_node, right_node, encoding)

            # Left child's sibling sits on the right (is_left=False) and
            # vice versa
            for leaf_idx in left_indices:
                auth_paths[leaf_idx].append((right_node, False))
            if not duplicated:
                for leaf_idx in right_indices:
                    auth_paths[leaf_idx].append((left_node, True))

            if duplicated:
                combined_indices = list(left_indices)
            else:
                combined_indices = left_indices + right_indices
            next_level.append((parent, combined_indices))

        current_level = next_level

    root = current_level[0][0]
    return root, auth_paths


def verify_path(
    leaf: int, path: AuthPath, root: int, encoding: Optional[str] = None
) -> bool:
    """
    Verify a Merkle authentication path.

    Args:
        leaf: Leaf field element
        path: Authentication path [(sibling, is_left), ...]
        root: Expected root

    Returns:
        True if path is valid, False otherwise
    """
    current = leaf

    for sibling, is_left in path:
        if is_left:
            current = hash_node(sibling, current, encoding)
        else:
            current = hash_node(current, sibling, encoding)

    return current == root


class MembershipSet:
    """
    Ordered set of enrolled leaves.

    Example:
        >>> members = MembershipSet()
        >>> members.add(derive_leaf(secret))
        >>> registry.set_root(admin, members.root())
    """

    def __init__(self, leaves: Optional[List[FeltLike]] = None) -> None:
        self._leaves: List[int] = []
        for leaf in leaves or []:
            self.add(leaf)

    def add(self, leaf: FeltLike) -> int:
        """Enroll a leaf; returns its index. Duplicates are rejected."""
        value = parse_felt(leaf)
        if value in self._leaves:
            raise ValueError(f"Leaf already enrolled: {to_hex_felt(value)}")
        self._leaves.append(value)
        return len(self._leaves) - 1

    def __len__(self) -> int:
        return len(self._leaves)

    def __contains__(self, leaf: object) -> bool:
        return leaf in self._leaves

    @property
    def leaves(self) -> List[int]:
        return list(self._leaves)

    def root(self) -> int:
        root, _ = build_tree(self._leaves)
        return root

    def proof(self, leaf: FeltLike) -> AuthPath:
        value = parse_felt(leaf)
        if value not in self._leaves:
            raise ValueError(f"Leaf not enrolled: {to_hex_felt(value)}")
        _, paths = build_tree(self._leaves)
        return paths[self._leaves.index(value)]
