from .mesh import Mesh
from .topology import Edge, Element, Node
from .dofhandler import DGDofHandler
__all__=['Mesh','Edge','Element','Node','DGDofHandler']
