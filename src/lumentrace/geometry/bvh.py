"""Bounding volume hierarchy built on the host as a flat index arena.

Nodes live in parallel NumPy arrays so they can be copied straight into
Taichi fields; children refer to each other by index, never by reference:

    node_min[i], node_max[i]   bounds of node i
    left[i], right[i]          child indices, or -1 for a leaf
    first[i], count[i]         leaf range into prim_indices

Node 0 is the root. Construction splits on the axis with the largest spread
of box centroids and partitions at the median (stable ordering, so the same
input always yields the same tree). Nodes holding BVH_LEAF_SIZE primitives
or fewer become leaves. An empty input yields a single empty leaf, which
traversal treats as "nothing to hit".

Example:
    >>> from lumentrace.geometry.aabb import AABB
    >>> from lumentrace.core.vector import Vector3
    >>> boxes = [AABB(Vector3(i, 0, 0), Vector3(i + 1, 1, 1)) for i in range(5)]
    >>> arena = build_bvh(boxes)
    >>> arena.node_count, arena.leaf_count
    (5, 3)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from lumentrace.geometry.aabb import AABB

logger = logging.getLogger(__name__)

# Maximum primitives in a leaf
BVH_LEAF_SIZE = 2

# Capacity of the device traversal stack (a local ti.Vector); bounds the depth
BVH_STACK_SIZE = 64


@dataclass(frozen=True)
class BVHArena:
    """Flat BVH storage.

    Attributes:
        node_min: (N, 3) float32 lower corners.
        node_max: (N, 3) float32 upper corners.
        left: (N,) int32 left child index, -1 for leaves.
        right: (N,) int32 right child index, -1 for leaves.
        first: (N,) int32 offset of a leaf's range in prim_indices.
        count: (N,) int32 number of primitives in a leaf (0 for interior
            nodes).
        prim_indices: (M,) int32 primitive indices, grouped by leaf.
        depth: Number of levels (a lone root leaf has depth 1).
        leaf_size: Maximum primitives per leaf used when building.
    """

    node_min: np.ndarray
    node_max: np.ndarray
    left: np.ndarray
    right: np.ndarray
    first: np.ndarray
    count: np.ndarray
    prim_indices: np.ndarray
    depth: int
    leaf_size: int = BVH_LEAF_SIZE

    @property
    def node_count(self) -> int:
        return int(self.left.shape[0])

    @property
    def leaf_count(self) -> int:
        return int(np.count_nonzero(self.left < 0))

    def is_leaf(self, node: int) -> bool:
        return bool(self.left[node] < 0)

    def leaf_primitives(self, node: int) -> np.ndarray:
        start = int(self.first[node])
        return self.prim_indices[start : start + int(self.count[node])]

    def check(self) -> None:
        """Verify the structural invariants of the arena.

        Every primitive appears in exactly one leaf, no leaf holds more than
        leaf_size primitives, and each interior box equals the union of
        its children's boxes.

        Raises:
            AssertionError: If an invariant is violated.
        """
        seen = np.sort(self.prim_indices)
        assert np.array_equal(seen, np.arange(seen.shape[0])), "primitive missing or duplicated"

        for node in range(self.node_count):
            if self.is_leaf(node):
                assert self.count[node] <= self.leaf_size, f"leaf {node} is too large"
                continue
            lhs = int(self.left[node])
            rhs = int(self.right[node])
            assert np.array_equal(
                self.node_min[node], np.minimum(self.node_min[lhs], self.node_min[rhs])
            ), f"node {node} min is not the union of its children"
            assert np.array_equal(
                self.node_max[node], np.maximum(self.node_max[lhs], self.node_max[rhs])
            ), f"node {node} max is not the union of its children"


class _Builder:
    """Accumulates nodes while recursively partitioning primitives."""

    def __init__(self, lows: np.ndarray, highs: np.ndarray, leaf_size: int):
        self.lows = lows
        self.highs = highs
        self.centroids = 0.5 * (lows + highs)
        self.leaf_size = leaf_size

        self.node_min: list[np.ndarray] = []
        self.node_max: list[np.ndarray] = []
        self.left: list[int] = []
        self.right: list[int] = []
        self.first: list[int] = []
        self.count: list[int] = []
        self.prim_indices: list[int] = []
        self.depth = 0

    def _new_node(self) -> int:
        self.node_min.append(np.zeros(3))
        self.node_max.append(np.zeros(3))
        self.left.append(-1)
        self.right.append(-1)
        self.first.append(0)
        self.count.append(0)
        return len(self.left) - 1

    def build(self, indices: np.ndarray, level: int) -> int:
        node = self._new_node()
        self.depth = max(self.depth, level)

        if indices.shape[0] <= self.leaf_size:
            self.first[node] = len(self.prim_indices)
            self.count[node] = int(indices.shape[0])
            self.prim_indices.extend(int(i) for i in indices)
            if indices.shape[0] > 0:
                self.node_min[node] = self.lows[indices].min(axis=0)
                self.node_max[node] = self.highs[indices].max(axis=0)
            return node

        centroids = self.centroids[indices]
        spread = centroids.max(axis=0) - centroids.min(axis=0)
        axis = int(np.argmax(spread))

        order = np.argsort(centroids[:, axis], kind="stable")
        ordered = indices[order]
        mid = ordered.shape[0] // 2

        lhs = self.build(ordered[:mid], level + 1)
        rhs = self.build(ordered[mid:], level + 1)

        self.left[node] = lhs
        self.right[node] = rhs
        self.node_min[node] = np.minimum(self.node_min[lhs], self.node_min[rhs])
        self.node_max[node] = np.maximum(self.node_max[lhs], self.node_max[rhs])
        return node

    def finish(self) -> BVHArena:
        return BVHArena(
            node_min=np.asarray(self.node_min, dtype=np.float32).reshape(-1, 3),
            node_max=np.asarray(self.node_max, dtype=np.float32).reshape(-1, 3),
            left=np.asarray(self.left, dtype=np.int32),
            right=np.asarray(self.right, dtype=np.int32),
            first=np.asarray(self.first, dtype=np.int32),
            count=np.asarray(self.count, dtype=np.int32),
            prim_indices=np.asarray(self.prim_indices, dtype=np.int32),
            depth=self.depth,
            leaf_size=self.leaf_size,
        )


def build_bvh(boxes: Sequence[AABB], leaf_size: int = BVH_LEAF_SIZE) -> BVHArena:
    """Build a BVH over a list of primitive bounding boxes.

    Args:
        boxes: One box per primitive; primitive i is referred to by index i.
        leaf_size: Maximum primitives per leaf.

    Returns:
        The finished BVHArena.

    Raises:
        ValueError: If leaf_size is not positive, or the tree would be deeper
            than the device traversal stack allows.
    """
    if leaf_size < 1:
        raise ValueError(f"leaf_size must be positive, got {leaf_size}")

    lows = np.array([list(box.minimum) for box in boxes], dtype=np.float64).reshape(-1, 3)
    highs = np.array([list(box.maximum) for box in boxes], dtype=np.float64).reshape(-1, 3)

    builder = _Builder(lows, highs, leaf_size)
    builder.build(np.arange(len(boxes), dtype=np.int64), level=1)
    arena = builder.finish()

    # A tree of depth d needs at most d stack slots during traversal
    if arena.depth >= BVH_STACK_SIZE:
        raise ValueError(
            f"BVH depth {arena.depth} exceeds traversal stack size {BVH_STACK_SIZE}"
        )

    logger.debug(
        "Built BVH: %d primitives, %d nodes, %d leaves, depth %d",
        len(boxes),
        arena.node_count,
        arena.leaf_count,
        arena.depth,
    )
    return arena
