import numpy as np
from dataclasses import dataclass, field
from typing import Tuple, Dict, Optional


class Node:
    def __init__(self, id, x, y):
        self.x = x
        self.y = y
        self.id = id

    def __repr__(self):
        return f"Node {self.id}({self.x:.3f}, {self.y:.3f})"


@dataclass(slots=True)
class Edge:
    """A mesh face. Interior faces carry both adjacent cells."""
    gid: int
    nodes: Tuple[int, int]      # Global node indices of the edge's endpoints
    left: int                   # Cell whose CCW corner loop traverses (nodes[0] -> nodes[1])
    right: Optional[int]        # Cell on the other side, None on the boundary
    normal: np.ndarray          # Unit normal, pointing outward from the left cell
    diameter: float = 0.0
    lid_left: Optional[int] = None   # Local face index within the left cell
    lid_right: Optional[int] = None  # Local face index within the right cell

    @property
    def at_boundary(self) -> bool:
        return self.right is None

    def other(self, elem_id: int) -> Optional[int]:
        """The cell across this face as seen from ``elem_id``."""
        if elem_id == self.left:
            return self.right
        if elem_id == self.right:
            return self.left
        raise KeyError(f"Cell {elem_id} is not adjacent to edge {self.gid}.")

    def local_index(self, elem_id: int) -> int:
        if elem_id == self.left:
            return self.lid_left
        if elem_id == self.right:
            return self.lid_right
        raise KeyError(f"Cell {elem_id} is not adjacent to edge {self.gid}.")


@dataclass(slots=True)
class Element:
    id: int                     # Stable cell identifier, also the visiting order
    nodes: Tuple[int, ...]      # Geometry nodes in reference-element order
    corner_nodes: Tuple[int, ...] = field(default_factory=tuple)  # CCW corners
    edges: Tuple[int, ...] = field(default_factory=tuple)  # Edge gids by local face index
    neighbors: Dict[int, Optional[int]] = field(default_factory=dict)
    centroid_x: float = None
    centroid_y: float = None
