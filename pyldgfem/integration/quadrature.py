"""pyldgfem.integration.quadrature
Gauss quadrature for quads, triangles and their edges (reference domain).

``order`` is the number of Gauss–Legendre points per direction, so
``order = k + 1`` integrates polynomials of degree ``2k + 1`` exactly on
quads and edges.
"""
import numpy as np
from functools import lru_cache
from numpy.polynomial.legendre import leggauss


# -------------------------------------------------------------------------
# 1‑D Gauss–Legendre
# -------------------------------------------------------------------------
def gauss_legendre(order: int):
    if order < 1:
        raise ValueError(order)
    return leggauss(order)  # (points, weights)


def _gl01(order: int):
    """Gauss–Legendre nodes and weights mapped to [0,1]."""
    xi, w = gauss_legendre(int(order))
    return 0.5 * (xi + 1.0), 0.5 * w


# -------------------------------------------------------------------------
# Cell rules
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def quad_rule(order: int):
    xi, wi = gauss_legendre(order)
    pts = np.array([[x, y] for y in xi for x in xi])
    wts = np.array([wx * wy for wy in wi for wx in wi])
    return pts, wts


@lru_cache(maxsize=None)
def tri_rule(order: int):
    """Collapsed (Duffy) Gauss rule on the reference triangle (0,0)-(1,0)-(0,1)."""
    u, w_u = _gl01(order + 1)
    pts, wts = [], []
    for i, ui in enumerate(u):
        for j, vj in enumerate(u):
            pts.append([ui, vj * (1.0 - ui)])
            wts.append(w_u[i] * w_u[j] * (1.0 - ui))
    return np.array(pts), np.array(wts)


def volume(element_type: str, order: int = 2):
    if element_type == 'tri':
        return tri_rule(order)
    if element_type == 'quad':
        return quad_rule(order)
    raise KeyError(element_type)


# -------------------------------------------------------------------------
# Edge / facet rules
# -------------------------------------------------------------------------
# (start corner, reference tangent) of each local edge; the edge is
# parametrised as start + t * tangent with t in [0, 1].
_EDGE_PARAM = {
    'quad': (((-1.0, -1.0), (2.0, 0.0)),    # bottom
             ((1.0, -1.0), (0.0, 2.0)),     # right
             ((1.0, 1.0), (-2.0, 0.0)),     # top
             ((-1.0, 1.0), (0.0, -2.0))),   # left
    'tri':  (((0.0, 0.0), (1.0, 0.0)),      # (0,0)-(1,0)
             ((1.0, 0.0), (-1.0, 1.0)),     # (1,0)-(0,1)
             ((0.0, 1.0), (0.0, -1.0))),    # (0,1)-(0,0)
}


@lru_cache(maxsize=None)
def edge(element_type: str, edge_index: int, order: int = 2):
    """
    Gauss points on a reference edge.

    Returns ``(pts, wts, tangent)``: reference points (nq, 2), weights of the
    parameter t in [0, 1], and d(xi, eta)/dt. The physical line element at a
    point is ``wts * |F @ tangent|`` with F the Jacobian of the cell map.
    """
    try:
        start, tangent = _EDGE_PARAM[element_type][edge_index]
    except KeyError:
        raise KeyError(element_type)
    except IndexError:
        raise IndexError(edge_index)
    t, wt = _gl01(order)
    start, tangent = np.asarray(start), np.asarray(tangent)
    pts = start[None, :] + t[:, None] * tangent[None, :]
    return pts, wt, tangent

