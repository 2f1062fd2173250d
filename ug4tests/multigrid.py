"""
Geometric multigrid preconditioner on a hierarchy of uniformly refined grids.

Components:
- `Jacobi`: damped Jacobi smoother acting on a defect
- `prolongation_matrix`: P1 interpolation between nested levels
- `SuperLUBase`: direct solver for the base level (scipy's SuperLU)
- `GeometricMultigrid`: one V- or W-cycle per application

Every level carries its own assembled operator (no Galerkin product). The
transfer respects Dirichlet constraints: the restricted defect is zeroed on
constrained coarse DoFs and the prolongated correction on constrained fine
DoFs, so a cycle never changes prescribed values.
"""
import logging
from typing import List, Optional, Sequence
import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla
from .config import GMGConfig

logger = logging.getLogger(__name__)


class Jacobi:
    """Damped Jacobi: c <- c + w * D^-1 * (d - A c)."""

    def __init__(self, damping: float = 0.66):
        self.damping = float(damping)

    def init(self, A: sp.spmatrix) -> "Jacobi":
        diag = A.diagonal()
        if np.any(diag == 0.0):
            raise ValueError("Jacobi smoother needs a non-zero diagonal")
        self.A = A
        self.inv_diag = 1.0 / diag
        return self

    def smooth(self, c: np.ndarray, d: np.ndarray, steps: int) -> np.ndarray:
        for _ in range(steps):
            c = c + self.damping * self.inv_diag * (d - self.A @ c)
        return c


class SuperLUBase:
    """Direct base solver (sparse LU factorisation)."""

    def init(self, A: sp.spmatrix) -> "SuperLUBase":
        self.lu = spla.splu(sp.csc_matrix(A))
        return self

    def apply(self, d: np.ndarray) -> np.ndarray:
        return self.lu.solve(d)


def prolongation_matrix(num_coarse: int, parent_edges: np.ndarray) -> sp.csr_matrix:
    """
    P1 prolongation from a grid with `num_coarse` vertices to its refinement.

    Coarse vertices are copied, each new vertex receives the mean of its two
    parent vertices.
    """
    parent_edges = np.asarray(parent_edges, dtype=int).reshape(-1, 2)
    n_new = parent_edges.shape[0]
    new_ids = num_coarse + np.arange(n_new)
    rows = np.concatenate([np.arange(num_coarse), new_ids, new_ids])
    cols = np.concatenate([np.arange(num_coarse), parent_edges[:, 0], parent_edges[:, 1]])
    vals = np.concatenate([np.ones(num_coarse), np.full(2 * n_new, 0.5)])
    return sp.coo_matrix((vals, (rows, cols)), shape=(num_coarse + n_new, num_coarse)).tocsr()


class GeometricMultigrid:
    """
    Geometric multigrid cycle used as a preconditioner.

    Args:
        matrices: level operators, matrices[0] on the coarsest grid
        prolongations: prolongations[l] maps level l to level l + 1
        dirichlet_dofs: constrained DoFs per level
        config: smoothing/cycle parameters
    """

    def __init__(self, matrices: Sequence[sp.spmatrix], prolongations: Sequence[sp.spmatrix],
                 dirichlet_dofs: Optional[Sequence[np.ndarray]] = None,
                 config: GMGConfig = GMGConfig()):
        if len(prolongations) != len(matrices) - 1:
            raise ValueError("Need exactly one prolongation between consecutive levels")
        if config.cycle_type not in ("V", "W"):
            raise ValueError(f"Unknown cycle type {config.cycle_type!r}; use 'V' or 'W'")
        if not 0 <= config.base_level < len(matrices):
            raise ValueError(f"Base level {config.base_level} outside [0, {len(matrices)})")

        self.config = config
        self.gamma = 1 if config.cycle_type == "V" else 2
        self.matrices = [sp.csr_matrix(A) for A in matrices]
        if dirichlet_dofs is None:
            dirichlet_dofs = [np.zeros(0, dtype=int) for _ in matrices]

        # constrained rows/columns removed from the transfer operators
        self.prolongations: List[sp.csr_matrix] = []
        for lev, P in enumerate(prolongations):
            fine_free = np.ones(P.shape[0])
            fine_free[np.asarray(dirichlet_dofs[lev + 1], dtype=int)] = 0.0
            coarse_free = np.ones(P.shape[1])
            coarse_free[np.asarray(dirichlet_dofs[lev], dtype=int)] = 0.0
            self.prolongations.append((sp.diags(fine_free) @ P @ sp.diags(coarse_free)).tocsr())
        self.restrictions = [P.T.tocsr() for P in self.prolongations]

        base = config.base_level
        self.smoothers = {lev: Jacobi(config.damping).init(self.matrices[lev])
                          for lev in range(base + 1, len(self.matrices))}
        self.base_solver = SuperLUBase().init(self.matrices[base])
        logger.debug(f"GMG: {len(self.matrices)} levels, base level {base}, "
                     f"base size {self.matrices[base].shape[0]}")

    @property
    def top_level(self) -> int:
        return len(self.matrices) - 1

    def _cycle(self, lev: int, d: np.ndarray) -> np.ndarray:
        if lev == self.config.base_level:
            return self.base_solver.apply(d)

        A = self.matrices[lev]
        smoother = self.smoothers[lev]
        c = smoother.smooth(np.zeros_like(d), d, self.config.num_presmooth)

        P = self.prolongations[lev - 1]
        R = self.restrictions[lev - 1]
        for _ in range(self.gamma):
            d_coarse = R @ (d - A @ c)
            c = c + P @ self._cycle(lev - 1, d_coarse)

        return smoother.smooth(c, d, self.config.num_postsmooth)

    def apply(self, d: np.ndarray) -> np.ndarray:
        """Return the correction for defect d on the top level."""
        return self._cycle(self.top_level, np.asarray(d, dtype=float).reshape(-1))

    def as_linear_operator(self) -> spla.LinearOperator:
        n = self.matrices[-1].shape[0]
        return spla.LinearOperator((n, n), matvec=self.apply, dtype=float)
