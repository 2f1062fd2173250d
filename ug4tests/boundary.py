"""
Boundary condition application utilities.

Dirichlet values are attached to named subsets; every vertex touched by a
subset (directly, or through one of its edges or faces) is constrained.

Classes/functions:
- DirichletBoundary.add(value, function, subsets)
- DirichletBoundary.constrained_dofs(grid) -> (dofs, values)
- DirichletBoundary.adjust_solution(u, grid): write prescribed values into u
- DirichletBoundary.apply(K, F, grid): row elimination on the sparse system
- apply_dirichlet_rows(K, F, dofs, values)
"""
from typing import List, Tuple
import numpy as np
import scipy.sparse as sp
from .io import Grid
from .elements import split_subsets


def apply_dirichlet_rows(K: sp.spmatrix, F: np.ndarray, dofs: np.ndarray,
                         values: np.ndarray) -> sp.csr_matrix:
    """Replace rows `dofs` of K by identity rows and set F[dofs] = values.

    Columns are left untouched, so K is in general no longer symmetric.
    F is modified in-place; the modified matrix is returned (CSR).
    """
    K = sp.csr_matrix(K, copy=True)
    dofs = np.asarray(dofs, dtype=int)
    if dofs.size == 0:
        return K
    mask = np.zeros(K.shape[0], dtype=bool)
    mask[dofs] = True
    # zero constrained rows, then put 1 on their diagonal
    keep = sp.diags((~mask).astype(float))
    K = (keep @ K).tocsr()
    K = K + sp.diags(mask.astype(float))
    K = K.tocsr()
    K.eliminate_zeros()
    F[dofs] = values
    return K


class DirichletBoundary:
    """Constant Dirichlet values on subsets."""

    def __init__(self):
        self._conditions: List[Tuple[float, str, Tuple[str, ...]]] = []

    def add(self, value: float, function: str, subsets) -> None:
        self._conditions.append((float(value), function, split_subsets(subsets)))

    @property
    def functions(self) -> Tuple[str, ...]:
        return tuple(sorted({fct for _, fct, _ in self._conditions}))

    def constrained_dofs(self, grid: Grid) -> Tuple[np.ndarray, np.ndarray]:
        """Return sorted constrained vertex indices and their values.

        A vertex shared by several conditions takes the value of the last one added.
        """
        values = np.full(grid.num_vertices, np.nan)
        for value, _, subsets in self._conditions:
            for name in subsets:
                values[grid.subset(name).all_vertices()] = value
        dofs = np.flatnonzero(~np.isnan(values))
        return dofs, values[dofs]

    def adjust_solution(self, u: np.ndarray, grid: Grid) -> None:
        dofs, values = self.constrained_dofs(grid)
        u[dofs] = values

    def apply(self, K: sp.spmatrix, F: np.ndarray, grid: Grid) -> sp.csr_matrix:
        dofs, values = self.constrained_dofs(grid)
        return apply_dirichlet_rows(K, F, dofs, values)
