"""pyldgfem: lifted local discontinuous Galerkin solver for the bi-Laplacian."""
__version__ = "0.1.0"
