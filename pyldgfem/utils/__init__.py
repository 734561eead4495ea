from .meshgen import structured_quad, structured_triangles, unit_square
__all__ = ["structured_quad", "structured_triangles", "unit_square"]
