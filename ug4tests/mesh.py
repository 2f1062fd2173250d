"""
Uniform refinement of tetrahedral grids and the resulting multigrid hierarchy.

Refinement is the regular (red) subdivision: every tetrahedron is split into
eight children using the edge midpoints, subset triangles into four and
subset edges into two. Vertices of the coarse grid keep their indices; the
new midpoint vertices are appended in lexicographic order of their (sorted)
parent edge, so the numbering is reproducible for golden-output tests.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple
import numpy as np
from .io import Grid, Subset

logger = logging.getLogger(__name__)

# local vertex pairs of the six tetrahedron edges
_TET_EDGES = np.array([[0, 1], [0, 2], [0, 3], [1, 2], [1, 3], [2, 3]], dtype=int)

# children in terms of local ids: 0..3 corners, 4..9 midpoints of _TET_EDGES
# (4=01, 5=02, 6=03, 7=12, 8=13, 9=23); inner octahedron cut along 02-13
_TET_CHILDREN = np.array([
    [0, 4, 5, 6],
    [4, 1, 7, 8],
    [5, 7, 2, 9],
    [6, 8, 9, 3],
    [4, 5, 6, 8],
    [4, 5, 7, 8],
    [5, 6, 8, 9],
    [5, 7, 8, 9],
], dtype=int)

# triangle: 0..2 corners, 3=01, 4=02, 5=12
_TRI_EDGES = np.array([[0, 1], [0, 2], [1, 2]], dtype=int)
_TRI_CHILDREN = np.array([
    [0, 3, 4],
    [3, 1, 5],
    [4, 5, 2],
    [3, 5, 4],
], dtype=int)


def _edge_keys(pairs: np.ndarray, nv: int) -> np.ndarray:
    lo = np.minimum(pairs[..., 0], pairs[..., 1]).astype(np.int64)
    hi = np.maximum(pairs[..., 0], pairs[..., 1]).astype(np.int64)
    return lo * nv + hi


def _lookup_midpoints(pairs: np.ndarray, unique_keys: np.ndarray, nv: int) -> np.ndarray:
    """Map vertex pairs to the index of their midpoint vertex on the fine grid."""
    keys = _edge_keys(pairs, nv)
    pos = np.searchsorted(unique_keys, keys)
    pos = np.minimum(pos, unique_keys.size - 1)
    if keys.size and not np.array_equal(unique_keys[pos], keys):
        raise ValueError("Subset edge is not an edge of any tetrahedron")
    return nv + pos


def refine_grid(grid: Grid) -> Tuple[Grid, np.ndarray]:
    """
    Refine a grid once.

    Returns:
        fine: the refined Grid
        parent_edges: (n_new, 2) coarse vertex pairs of the new vertices;
            fine vertex `grid.num_vertices + k` is the midpoint of parent_edges[k]
    """
    nv = grid.num_vertices
    tets = np.asarray(grid.tetrahedra, dtype=int)
    nt = tets.shape[0]

    local_pairs = tets[:, _TET_EDGES]                      # (nt, 6, 2)
    keys = _edge_keys(local_pairs, nv)                     # (nt, 6)
    unique_keys, inverse = np.unique(keys.reshape(-1), return_inverse=True)
    inverse = inverse.reshape(nt, 6)
    parent_edges = np.stack([unique_keys // nv, unique_keys % nv], axis=1).astype(int)

    coords = np.asarray(grid.vertices, dtype=float)
    midpoints = 0.5 * (coords[parent_edges[:, 0]] + coords[parent_edges[:, 1]])
    fine_vertices = np.vstack([coords, midpoints])

    extended = np.hstack([tets, nv + inverse])             # (nt, 10)
    fine_tets = extended[:, _TET_CHILDREN].reshape(-1, 4)  # child 8*t + i

    fine_subsets: Dict[str, Subset] = {}
    for name, sub in grid.subsets.items():
        faces = np.asarray(sub.faces, dtype=int).reshape(-1, 3)
        edges = np.asarray(sub.edges, dtype=int).reshape(-1, 2)

        face_mids = _lookup_midpoints(faces[:, _TRI_EDGES], unique_keys, nv)    # (nf, 3)
        fine_faces = np.hstack([faces, face_mids])[:, _TRI_CHILDREN].reshape(-1, 3)

        edge_mids = _lookup_midpoints(edges, unique_keys, nv)                   # (ne,)
        fine_edges = np.concatenate([
            np.stack([edges[:, 0], edge_mids], axis=1),
            np.stack([edge_mids, edges[:, 1]], axis=1),
        ]).reshape(-1, 2)

        new_vertices = np.concatenate([face_mids.reshape(-1), edge_mids])
        fine_subsets[name] = Subset(
            name=name,
            vertices=np.unique(np.concatenate([np.asarray(sub.vertices, dtype=int), new_vertices])),
            edges=fine_edges,
            faces=fine_faces,
            volumes=(8 * np.asarray(sub.volumes, dtype=int)[:, None] + np.arange(8)).reshape(-1),
        )

    fine = Grid(vertices=fine_vertices, tetrahedra=fine_tets, subsets=fine_subsets)
    return fine, parent_edges


@dataclass
class GridHierarchy:
    """
    Nested grids produced by repeated uniform refinement.

    levels[0] is the coarse (loaded) grid, levels[-1] the surface grid.
    parent_edges[l] links levels[l] to levels[l + 1].
    """
    levels: List[Grid]
    parent_edges: List[np.ndarray] = field(default_factory=list)

    @property
    def num_levels(self) -> int:
        return len(self.levels)

    @property
    def top(self) -> Grid:
        return self.levels[-1]

    def refine(self) -> None:
        fine, parents = refine_grid(self.top)
        self.levels.append(fine)
        self.parent_edges.append(parents)
        logger.info(f"Refined to level {self.num_levels - 1}: "
                    f"{fine.num_vertices} vertices, {fine.num_elements} tetrahedra")


def refine_hierarchy(grid: Grid, num_refs: int) -> GridHierarchy:
    """Build a hierarchy by refining `grid` uniformly `num_refs` times."""
    if num_refs < 0:
        raise ValueError("num_refs must be >= 0")
    hierarchy = GridHierarchy(levels=[grid])
    for _ in range(num_refs):
        hierarchy.refine()
    return hierarchy
