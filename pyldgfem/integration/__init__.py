from .quadrature import volume, edge, gauss_legendre
__all__ = ['volume', 'edge', 'gauss_legendre']
