"""pyldgfem.utils.meshgen
Structured mesh generators for the unit-square refinement studies.
"""
import logging
from typing import List, Tuple, Optional

import numba
import numpy as np

from pyldgfem.core.mesh import Mesh
from pyldgfem.core.topology import Node
from pyldgfem.errors import InvalidInputError

__all__ = ["structured_quad", "structured_triangles", "unit_square"]

logger = logging.getLogger(__name__)


@numba.jit(nopython=True, cache=True)
def _structured_q1_numba(Lx: float, Ly: float, nx: int, ny: int):
    """
    Raw arrays of an nx-by-ny grid of bilinear quads.

    Element connectivity follows the reference node order (eta outer, xi
    inner): [bl, br, tl, tr]. Corners are stored CCW: [bl, br, tr, tl].
    """
    n_x = nx + 1
    n_y = ny + 1
    coords = np.zeros((n_x * n_y, 2), dtype=np.float64)
    for j in range(n_y):
        for i in range(n_x):
            k = j * n_x + i
            coords[k, 0] = Lx * i / nx
            coords[k, 1] = Ly * j / ny

    elements = np.empty((nx * ny, 4), dtype=np.int64)
    corners = np.empty((nx * ny, 4), dtype=np.int64)
    for e in range(nx * ny):
        ej = e // nx
        ei = e % nx
        bl = ej * n_x + ei
        br = bl + 1
        tl = bl + n_x
        tr = tl + 1
        elements[e, 0] = bl
        elements[e, 1] = br
        elements[e, 2] = tl
        elements[e, 3] = tr
        corners[e, 0] = bl
        corners[e, 1] = br
        corners[e, 2] = tr
        corners[e, 3] = tl
    return coords, elements, corners


def structured_quad(Lx: float, Ly: float, *, nx: int, ny: int,
                    offset: Optional[Tuple[float, float]] = None):
    """
    Structured grid of bilinear quadrilaterals.

    Returns raw data: node objects, element connectivity and corner node
    connectivity for each element.
    """
    if nx < 1 or ny < 1:
        raise InvalidInputError(f"Need at least one cell per direction, got nx={nx}, ny={ny}.")
    coords, elements, corners = _structured_q1_numba(float(Lx), float(Ly), int(nx), int(ny))
    if offset is not None:
        coords = coords + np.asarray(offset, dtype=float)[None, :]
    nodes = [Node(id=i, x=float(c[0]), y=float(c[1])) for i, c in enumerate(coords)]
    return nodes, elements, corners


def structured_triangles(Lx: float, Ly: float, *, nx_quads: int, ny_quads: int,
                         offset: Optional[Tuple[float, float]] = None):
    """
    Structured grid of linear triangles, two per quad cell (split along the
    bottom-left/top-right diagonal).
    """
    nodes, _, quad_corners = structured_quad(Lx, Ly, nx=nx_quads, ny=ny_quads, offset=offset)
    tris: List[List[int]] = []
    for bl, br, tr, tl in quad_corners:
        tris.append([bl, br, tr])
        tris.append([bl, tr, tl])
    elements = np.array(tris, dtype=int)
    return nodes, elements, elements.copy()


def unit_square(n_refinements: int, element_type: str = "quad") -> Mesh:
    """Unit square refined ``n_refinements`` times: 2^n cells per direction."""
    if n_refinements < 0:
        raise InvalidInputError(f"n_refinements must be non-negative, got {n_refinements}.")
    n = 2 ** n_refinements
    if element_type == "quad":
        nodes, elems, corners = structured_quad(1.0, 1.0, nx=n, ny=n)
    elif element_type == "tri":
        nodes, elems, corners = structured_triangles(1.0, 1.0, nx_quads=n, ny_quads=n)
    else:
        raise InvalidInputError(f"Unsupported element type '{element_type}'.")
    mesh = Mesh(nodes, element_connectivity=elems,
                elements_corner_nodes=corners, element_type=element_type, poly_order=1)
    logger.info("Number of active cells: %d", len(mesh.elements_list))
    return mesh
