"""pyldgfem.fem.transform
Reference → physical mapping for straight-sided cells.
"""
import numpy as np
from pyldgfem.fem.reference import get_reference
from pyldgfem.errors import InvalidInputError


def _geometry(mesh, elem_id):
    ref = get_reference(mesh.element_type, mesh.poly_order)
    X = mesh.nodes_x_y_pos[mesh.elements_connectivity[elem_id]]   # (n_geo, 2)
    return ref, X


def x_mapping(mesh, elem_id, xi_eta):
    ref, X = _geometry(mesh, elem_id)
    return ref.shape(float(xi_eta[0]), float(xi_eta[1])) @ X      # (2,)


def jacobian(mesh, elem_id, xi_eta):
    """F[b, a] = ∂x_b / ∂ξ_a at one reference point."""
    ref, X = _geometry(mesh, elem_id)
    dN = ref.grad(float(xi_eta[0]), float(xi_eta[1]))             # (n_geo, 2)
    return X.T @ dN


def det_jacobian(mesh, elem_id, xi_eta):
    return np.linalg.det(jacobian(mesh, elem_id, xi_eta))


def map_points(mesh, elem_id, points):
    """Physical coordinates and Jacobians at reference ``points`` (nq, 2)."""
    ref, X = _geometry(mesh, elem_id)
    N, dN, _ = ref.tabulate(points)                               # (n_geo, nq), (n_geo, nq, 2)
    x = N.T @ X                                                   # (nq, 2)
    F = np.einsum('nb,nqa->qba', X, dN)                           # (nq, 2, 2)
    return x, F


def push_forward(F, dN_ref, d2N_ref):
    """
    Map reference gradients/Hessians (basis-first layout) to physical ones.

    The cell map is assumed affine on the element, so second derivatives of
    the map are dropped; this is exact for triangles and parallelograms.
    """
    invF = np.linalg.inv(F)                                       # (nq, 2, 2)
    grad = np.einsum('nqa,qai->nqi', dN_ref, invF)
    hess = np.einsum('nqab,qai,qbj->nqij', d2N_ref, invF, invF)
    return grad, hess


def inverse_mapping(mesh, elem_id, x, tol=1e-12, maxiter=50):
    """Newton iteration for the reference coordinates of a physical point."""
    x = np.asarray(x, dtype=float)
    xi = np.array([0.0, 0.0]) if mesh.element_type == 'quad' else np.array([1/3, 1/3])
    for it in range(maxiter):
        X = x_mapping(mesh, elem_id, xi)
        J = jacobian(mesh, elem_id, xi)
        try:
            delta = np.linalg.solve(J, x - X)
        except np.linalg.LinAlgError:
            raise InvalidInputError(f"Jacobian singular at iteration {it} for elem {elem_id}, x={x}")
        xi = xi + delta
        if np.linalg.norm(delta) < tol:
            break
    else:
        raise InvalidInputError(f"Inverse mapping did not converge after {maxiter} iterations "
                                f"for elem {elem_id}, x={x}, residual={np.linalg.norm(x - X)}")
    return xi
