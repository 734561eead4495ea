"""pyldgfem.fem.values
Basis functions sampled at the quadrature points of a cell or of a face.

Arrays are basis-first: values (n_loc, nq), gradients (n_loc, nq, 2),
Hessians (n_loc, nq, 2, 2). Face values seen from the neighbour are taken
at the *same physical points* as the face values of the cell, so the two
sides can be combined point by point.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from pyldgfem.fem import transform
from pyldgfem.fem.reference import Ref
from pyldgfem.integration import volume, edge


@dataclass(slots=True)
class CellValues:
    cell: int
    points: np.ndarray          # (nq, 2) physical quadrature points
    JxW: np.ndarray             # (nq,)
    values: np.ndarray
    gradients: np.ndarray
    hessians: np.ndarray

    @property
    def n_points(self) -> int:
        return len(self.JxW)


@dataclass(slots=True)
class FaceValues:
    cell: int
    local_face: int
    points: np.ndarray          # (nq, 2) physical quadrature points
    JxW: np.ndarray             # (nq,)
    normal: np.ndarray          # (2,) unit normal, outward from ``cell``
    values: np.ndarray
    gradients: np.ndarray
    ref_points: Optional[np.ndarray] = None

    @property
    def n_points(self) -> int:
        return len(self.JxW)


def cell_values(mesh, ref: Ref, elem_id: int, quad_order: int) -> CellValues:
    pts, wts = volume(mesh.element_type, quad_order)
    x, F = transform.map_points(mesh, elem_id, pts)
    N, dN, d2N = ref.tabulate(pts)
    grad, hess = transform.push_forward(F, dN, d2N)
    JxW = wts * np.abs(np.linalg.det(F))
    return CellValues(elem_id, x, JxW, N, grad, hess)


def face_values(mesh, ref: Ref, elem_id: int, local_face: int, quad_order: int) -> FaceValues:
    pts, wts, tangent = edge(mesh.element_type, local_face, quad_order)
    x, F = transform.map_points(mesh, elem_id, pts)
    N, dN, d2N = ref.tabulate(pts)
    grad, _ = transform.push_forward(F, dN, d2N)
    JxW = wts * np.linalg.norm(F @ tangent, axis=1)
    return FaceValues(elem_id, local_face, x, JxW, mesh.outward_normal(elem_id, local_face),
                      N, grad, ref_points=pts)


def neighbor_face_values(mesh, ref: Ref, fv: FaceValues, neighbor: int, neighbor_face: int) -> FaceValues:
    """Basis of ``neighbor`` traced at the quadrature points of ``fv``."""
    pts = np.array([transform.inverse_mapping(mesh, neighbor, x) for x in fv.points])
    _, F = transform.map_points(mesh, neighbor, pts)
    N, dN, d2N = ref.tabulate(pts)
    grad, _ = transform.push_forward(F, dN, d2N)
    return FaceValues(neighbor, neighbor_face, fv.points, fv.JxW,
                      mesh.outward_normal(neighbor, neighbor_face), N, grad, ref_points=pts)
