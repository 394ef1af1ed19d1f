"""
Membership set for participant key leaves

The multisig only needs an authenticated set with insert/remove/prove/root.
`CartesianMerkleTree` provides one: a treap ordered by key, heap-ordered by a
Poseidon-derived priority, where every node commits to its key and the sorted
pair of child hashes. The tree shape is a pure function of the key set, so the
root does not depend on insertion order.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from primitives import FIELD_PRIME, poseidon_hash

from .errors import MembershipError

logger = logging.getLogger(__name__)

DEFAULT_PROOF_SIZE = 40


@dataclass
class MembershipProof:
    """Inclusion (or exclusion) witness for a leaf"""
    root: int
    siblings: List[int]
    siblings_length: int
    direction_bits: int
    existence: bool
    key: int
    non_existence_key: int = 0


class MembershipOracle(ABC):
    """Authenticated set interface consumed by the participant registry"""

    @abstractmethod
    def insert(self, leaf: int) -> bool:
        """Insert a leaf; returns False if it was already present"""

    @abstractmethod
    def remove(self, leaf: int) -> bool:
        """Remove a leaf; returns False if it was absent"""

    @abstractmethod
    def contains(self, leaf: int) -> bool:
        ...

    @abstractmethod
    def root(self) -> int:
        ...

    @abstractmethod
    def prove(self, leaf: int, max_depth: int = DEFAULT_PROOF_SIZE) -> MembershipProof:
        ...


# ============================================================================
# CARTESIAN MERKLE TREE
# ============================================================================

def _node_hash(key: int, left_hash: int, right_hash: int) -> int:
    lo, hi = sorted((left_hash, right_hash))
    return poseidon_hash([key, lo, hi])


@dataclass
class _Node:
    key: int
    priority: Tuple[int, int]
    left: Optional['_Node'] = None
    right: Optional['_Node'] = None
    merkle_hash: int = 0

    def rehash(self):
        self.merkle_hash = _node_hash(self.key, _hash_of(self.left), _hash_of(self.right))


def _hash_of(node: Optional[_Node]) -> int:
    return node.merkle_hash if node is not None else 0


def _rotate_right(node: _Node) -> _Node:
    pivot = node.left
    node.left = pivot.right
    node.rehash()
    pivot.right = node
    pivot.rehash()
    return pivot


def _rotate_left(node: _Node) -> _Node:
    pivot = node.right
    node.right = pivot.left
    node.rehash()
    pivot.left = node
    pivot.rehash()
    return pivot


@dataclass
class CartesianMerkleTree(MembershipOracle):
    """Treap-shaped Merkle tree keyed by field elements"""
    _root: Optional[_Node] = None
    _size: int = 0
    _keys: set = field(default_factory=set)

    @staticmethod
    def _priority(key: int) -> Tuple[int, int]:
        return (poseidon_hash([key]), key)

    @staticmethod
    def _validate_key(key: int):
        if key < 0 or key >= FIELD_PRIME:
            raise MembershipError(f"Key {key} outside field bounds")

    def __len__(self) -> int:
        return self._size

    def contains(self, leaf: int) -> bool:
        return leaf in self._keys

    def root(self) -> int:
        return _hash_of(self._root)

    def insert(self, leaf: int) -> bool:
        self._validate_key(leaf)
        if leaf in self._keys:
            return False

        self._root = self._insert(self._root, leaf)
        self._keys.add(leaf)
        self._size += 1
        return True

    def _insert(self, node: Optional[_Node], key: int) -> _Node:
        if node is None:
            new_node = _Node(key=key, priority=self._priority(key))
            new_node.rehash()
            return new_node

        if key < node.key:
            node.left = self._insert(node.left, key)
            if node.left.priority > node.priority:
                return _rotate_right(node)
        else:
            node.right = self._insert(node.right, key)
            if node.right.priority > node.priority:
                return _rotate_left(node)

        node.rehash()
        return node

    def remove(self, leaf: int) -> bool:
        if leaf not in self._keys:
            return False

        self._root = self._remove(self._root, leaf)
        self._keys.discard(leaf)
        self._size -= 1
        return True

    def _remove(self, node: Optional[_Node], key: int) -> Optional[_Node]:
        if key < node.key:
            node.left = self._remove(node.left, key)
        elif key > node.key:
            node.right = self._remove(node.right, key)
        else:
            if node.left is None and node.right is None:
                return None

            # Sink the node by lifting its higher-priority child
            if node.right is None or (node.left is not None and node.left.priority > node.right.priority):
                pivot = _rotate_right(node)
                pivot.right = self._remove(pivot.right, key)
            else:
                pivot = _rotate_left(node)
                pivot.left = self._remove(pivot.left, key)
            pivot.rehash()
            return pivot

        node.rehash()
        return node

    def prove(self, leaf: int, max_depth: int = DEFAULT_PROOF_SIZE) -> MembershipProof:
        """
        Build a proof for `leaf`.

        Siblings are laid out as the two child hashes of the reached node
        followed by (ancestor key, sibling hash) pairs from the bottom up,
        zero-padded to `max_depth` entries. For an absent leaf the reached node
        is the last node on the search path and its key is reported as
        `non_existence_key`.
        """
        path: List[Tuple[_Node, bool]] = []
        node = self._root
        while node is not None and node.key != leaf:
            went_right = leaf > node.key
            path.append((node, went_right))
            nxt = node.right if went_right else node.left
            if nxt is None:
                break
            node = nxt

        if self._root is None:
            return MembershipProof(root=0, siblings=[0] * max_depth, siblings_length=0,
                                   direction_bits=0, existence=False, key=leaf)

        existence = node is not None and node.key == leaf
        if not existence:
            # Search fell off the tree below the last visited node
            node, _ = path.pop()

        siblings = [_hash_of(node.left), _hash_of(node.right)]
        direction_bits = 0
        for ancestor, went_right in reversed(path):
            sibling = ancestor.left if went_right else ancestor.right
            siblings.extend([ancestor.key, _hash_of(sibling)])
            direction_bits = (direction_bits << 1) | int(went_right)

        if len(siblings) > max_depth:
            raise MembershipError(
                f"Proof needs {len(siblings)} siblings but max depth is {max_depth}")

        siblings_length = len(siblings)
        siblings.extend([0] * (max_depth - siblings_length))

        return MembershipProof(
            root=self.root(),
            siblings=siblings,
            siblings_length=siblings_length,
            direction_bits=direction_bits,
            existence=existence,
            key=leaf if existence else node.key,
            non_existence_key=0 if existence else leaf,
        )


def verify_membership_proof(proof: MembershipProof, leaf: int) -> bool:
    """Recompute the root from an existence proof"""
    if not proof.existence or proof.key != leaf:
        return False
    if proof.siblings_length < 2 or proof.siblings_length % 2 != 0:
        return False

    siblings = proof.siblings[:proof.siblings_length]
    acc = _node_hash(leaf, siblings[0], siblings[1])
    for i in range(2, len(siblings), 2):
        acc = _node_hash(siblings[i], acc, siblings[i + 1])
    return acc == proof.root
