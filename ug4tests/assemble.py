"""
Global assembly utilities.

Produces sparse (CSR) global stiffness matrices and load vectors from the
P1 element matrices of the tetrahedra belonging to the requested subsets.

API:
- ApproximationSpace(hierarchy).add(name, family, order)
- assemble_global(grid, subsets, coeffs) -> (K, F)
- assemble_linear(space, disc, dirichlet, level=None) -> (A, b)
"""
from typing import Dict, Optional, Tuple
import numpy as np
import scipy.sparse as sp
from .io import Grid
from .mesh import GridHierarchy
from .elements import ConvectionDiffusion, split_subsets, tetra_element_matrices
from .boundary import DirichletBoundary


class ApproximationSpace:
    """
    Degree-of-freedom layout on every level of a grid hierarchy.

    Only scalar P1 Lagrange functions are supported; their DoFs are the grid
    vertices, so the DoF index of a vertex equals its vertex index.
    """

    def __init__(self, hierarchy: GridHierarchy):
        self.hierarchy = hierarchy
        self._functions: Dict[str, Tuple[str, int]] = {}

    def add(self, name: str, family: str, order: int) -> None:
        if family != "Lagrange" or int(order) != 1:
            raise NotImplementedError(f"Only Lagrange order 1 is supported, got {family} {order}")
        if name in self._functions:
            raise ValueError(f"Function {name!r} already added")
        if self._functions:
            raise NotImplementedError("Only a single scalar function is supported")
        self._functions[name] = (family, int(order))

    @property
    def function_names(self) -> Tuple[str, ...]:
        return tuple(self._functions)

    def grid(self, level: Optional[int] = None) -> Grid:
        if level is None:
            return self.hierarchy.top
        return self.hierarchy.levels[level]

    def num_dofs(self, level: Optional[int] = None) -> int:
        return self.grid(level).num_vertices * len(self._functions)


def assemble_global(grid: Grid, subsets, coeffs: Optional[dict] = None) -> Tuple[sp.csr_matrix, np.ndarray]:
    """
    Assemble K and F over the tetrahedra of the given subsets.

    Returns K as (nv, nv) CSR matrix and F as (nv,) ndarray.
    """
    names = split_subsets(subsets)
    elems = np.unique(np.concatenate([np.asarray(grid.subset(n).volumes, dtype=int) for n in names]))
    nv = grid.num_vertices

    tets = grid.tetrahedra[elems]
    F = np.zeros(nv, dtype=float)
    if tets.shape[0] == 0:
        return sp.csr_matrix((nv, nv)), F

    ELK, ELF = tetra_element_matrices(grid.vertices[tets], coeffs)
    rows = np.repeat(tets, 4, axis=1).reshape(-1)
    cols = np.tile(tets, (1, 4)).reshape(-1)
    # duplicate entries are summed on conversion
    K = sp.coo_matrix((ELK.reshape(-1), (rows, cols)), shape=(nv, nv)).tocsr()
    np.add.at(F, tets.reshape(-1), ELF.reshape(-1))
    return K, F


def assemble_linear(space: ApproximationSpace, disc: ConvectionDiffusion,
                    dirichlet: Optional[DirichletBoundary] = None,
                    level: Optional[int] = None) -> Tuple[sp.csr_matrix, np.ndarray]:
    """Assemble the linear system of `disc` on one level with Dirichlet rows applied."""
    if disc.function not in space.function_names:
        raise KeyError(f"Function {disc.function!r} not in approximation space")
    grid = space.grid(level)
    K, F = assemble_global(grid, disc.subsets, disc.coeffs)
    if dirichlet is not None:
        K = dirichlet.apply(K, F, grid)
    return K, F
