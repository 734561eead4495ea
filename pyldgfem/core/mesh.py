import numpy as np
from typing import Tuple, List, Dict, Optional

from pyldgfem.core.topology import Edge, Node, Element
from pyldgfem.errors import InvalidInputError


class Mesh:
    """
    Manages mesh topology, including nodes, elements, and edges.

    This class builds the full connectivity graph from basic node and element
    definitions. It identifies shared edges, assigns "left" and "right"
    elements, computes outward-pointing normal vectors and diameters for each
    edge, and records on each edge the local face index it has inside both
    adjacent cells. All cross references are integer indices into
    ``elements_list`` / ``edges_list``, so a cell reached twice through two
    different faces is simply the same index twice.
    """
    # Defines the local-corner indices that form each edge, in CCW order.
    _EDGE_TABLE = {
        'tri':  ((0, 1), (1, 2), (2, 0)),
        'quad': ((0, 1), (1, 2), (2, 3), (3, 0)),
    }

    def __init__(self,
                 nodes: List['Node'],
                 element_connectivity: np.ndarray,
                 elements_corner_nodes: np.ndarray = None,
                 *,
                 element_type: str = 'quad',
                 poly_order: int = 1):
        """
        Initializes the mesh and builds its topology.

        ``poly_order`` is the order of the geometry map, not of the finite
        element space living on the mesh.
        """
        if element_type not in self._EDGE_TABLE:
            raise InvalidInputError(f"Unsupported element type '{element_type}'.")
        self.element_type = element_type
        self.poly_order = poly_order
        self.spatial_dim = 2
        self.nodes_list: List['Node'] = list(nodes)
        self.nodes_x_y_pos = np.array([[n.x, n.y] for n in self.nodes_list], dtype=float)
        self.elements_connectivity: np.ndarray = np.asarray(element_connectivity, dtype=int)
        if elements_corner_nodes is None:
            elements_corner_nodes = self.elements_connectivity
        self.corner_connectivity: np.ndarray = np.asarray(elements_corner_nodes, dtype=int)
        self.elements_list: List['Element'] = []
        self.edges_list: List['Edge'] = []
        self._edge_dict: Dict[Tuple[int, int], 'Edge'] = {}
        self._build_topology()
        self.n_elements = len(self.elements_list)

    def _build_topology(self):
        """
        Builds the full mesh topology: Elements, Edges, and Neighbors.
        """
        edge_defs = self._EDGE_TABLE[self.element_type]

        # Step 1: Create basic Element objects
        for eid, elem_nodes in enumerate(self.elements_connectivity):
            corners = self.nodes_x_y_pos[self.corner_connectivity[eid]]
            self.elements_list.append(Element(
                id=eid,
                nodes=tuple(int(n) for n in elem_nodes),
                corner_nodes=tuple(int(n) for n in self.corner_connectivity[eid]),
                centroid_x=float(corners[:, 0].mean()),
                centroid_y=float(corners[:, 1].mean()),
            ))

        # Step 2: Build map from each edge to the elements that share it
        edge_incidences: Dict[Tuple[int, int], List[int]] = {}
        for eid, corners in enumerate(self.corner_connectivity):
            for c1, c2 in edge_defs:
                key = tuple(sorted((int(corners[c1]), int(corners[c2]))))
                edge_incidences.setdefault(key, []).append(eid)

        # Step 3: Create unique Edge objects
        for edge_gid, ((n_min, n_max), shared_eids) in enumerate(edge_incidences.items()):
            if len(shared_eids) > 2:
                raise InvalidInputError(
                    f"Edge ({n_min}, {n_max}) is shared by {len(shared_eids)} cells; "
                    f"only conforming meshes are supported.")
            left_eid = shared_eids[0]
            vA, vB = -1, -1
            left_corners = self.corner_connectivity[left_eid]
            for c1, c2 in edge_defs:
                if {int(left_corners[c1]), int(left_corners[c2])} == {n_min, n_max}:
                    vA, vB = int(left_corners[c1]), int(left_corners[c2])
                    break
            right_eid = shared_eids[1] if len(shared_eids) > 1 else None
            edge_obj = Edge(gid=edge_gid, nodes=(vA, vB), left=left_eid, right=right_eid,
                            normal=self._compute_normal((vA, vB)),
                            diameter=float(np.linalg.norm(self.nodes_x_y_pos[vB] - self.nodes_x_y_pos[vA])))
            self.edges_list.append(edge_obj)
            self._edge_dict[(n_min, n_max)] = edge_obj

        # Step 4: Populate each Element's list of its edge GIDs and the
        # local face index of every edge on both of its sides
        for elem in self.elements_list:
            local_edge_gids = []
            for lid, (c1, c2) in enumerate(edge_defs):
                edge = self._edge_dict[tuple(sorted((elem.corner_nodes[c1], elem.corner_nodes[c2])))]
                if edge.left == elem.id:
                    edge.lid_left = lid
                else:
                    edge.lid_right = lid
                local_edge_gids.append(edge.gid)
            elem.edges = tuple(local_edge_gids)

        # Step 5: Populate neighbor info on each element
        for elem in self.elements_list:
            for local_edge_idx, edge_gid in enumerate(elem.edges):
                elem.neighbors[local_edge_idx] = self.edge(edge_gid).other(elem.id)

    def _compute_normal(self, directed_edge_nodes: Tuple[int, int]) -> np.ndarray:
        """Computes an outward-pointing unit normal for a CCW-directed edge."""
        v_start, v_end = self.nodes_x_y_pos[directed_edge_nodes[0]], self.nodes_x_y_pos[directed_edge_nodes[1]]
        directed_vec = v_end - v_start
        raw_normal = np.array([directed_vec[1], -directed_vec[0]], dtype=float)
        length = np.linalg.norm(raw_normal)
        if length <= 1e-14:
            raise InvalidInputError(f"Zero-length edge between nodes {directed_edge_nodes}.")
        return raw_normal / length

    # --- Public API ---
    def cell_ids(self) -> range:
        """Active cells, in increasing identifier order."""
        return range(len(self.elements_list))

    def n_faces(self, elem_id: int) -> int:
        return len(self.elements_list[elem_id].edges)

    def face(self, elem_id: int, local_face: int) -> 'Edge':
        return self.edges_list[self.elements_list[elem_id].edges[local_face]]

    def at_boundary(self, elem_id: int, local_face: int) -> bool:
        return self.face(elem_id, local_face).right is None

    def neighbor(self, elem_id: int, local_face: int) -> Optional[int]:
        return self.elements_list[elem_id].neighbors[local_face]

    def neighbor_of_neighbor(self, elem_id: int, local_face: int) -> int:
        """Local index of the shared face as seen from the neighbour cell."""
        edge = self.face(elem_id, local_face)
        if edge.right is None:
            raise InvalidInputError(f"Face {local_face} of cell {elem_id} lies on the boundary.")
        return edge.local_index(edge.other(elem_id))

    def face_diameter(self, elem_id: int, local_face: int) -> float:
        return self.face(elem_id, local_face).diameter

    def outward_normal(self, elem_id: int, local_face: int) -> np.ndarray:
        edge = self.face(elem_id, local_face)
        return edge.normal if edge.left == elem_id else -edge.normal

    def edge(self, edge_id: int) -> 'Edge':
        """Return the Edge object corresponding to a global `edge_id`."""
        if not 0 <= edge_id < len(self.edges_list):
            raise IndexError(f"Edge ID {edge_id} out of range.")
        return self.edges_list[edge_id]

    def areas(self) -> np.ndarray:
        """Calculates the geometric area of each element."""
        element_areas = np.zeros(len(self.elements_list))
        for elem in self.elements_list:
            corner_coords = self.nodes_x_y_pos[list(elem.corner_nodes)]
            x, y = corner_coords[:, 0], corner_coords[:, 1]
            element_areas[elem.id] = 0.5 * np.abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))
        return element_areas

    def max_diameter(self) -> float:
        """Largest face diameter, the usual ``h`` of a refinement study."""
        return max(e.diameter for e in self.edges_list)

    def __repr__(self):
        return (f"<Mesh n_nodes={len(self.nodes_list)}, "
                f"n_elems={len(self.elements_list)}, "
                f"n_edges={len(self.edges_list)}, "
                f"elem_type='{self.element_type}', "
                f"poly_order={self.poly_order}>")
