"""
Iterative linear solver for the regression cases.

BiCGStab (scipy) preconditioned by any operator approximating A^-1, usually
`multigrid.GeometricMultigrid`. Convergence follows UG4's standard check:
the iteration stops once the defect norm drops below `min_defect` or below
`reduction` times the initial defect, or after `max_iterations` steps.

To measure the reduction against the initial defect of the start vector u0
(rather than against ||b||), we solve A c = b - A u0 for the correction c
starting from zero and return u0 + c.

API:
- `bicgstab_solve(A, b, u0, preconditioner, conv_check)` -> SolverResult
- `residual_norm(A, u, b)` -> ||b - A u||_2
"""
import logging
from dataclasses import dataclass
from typing import Optional
import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla
from .config import ConvCheckConfig

logger = logging.getLogger(__name__)


@dataclass
class SolverResult:
    solution: np.ndarray
    converged: bool
    iterations: int
    initial_defect: float
    final_defect: float


def residual_norm(A: sp.spmatrix, u: np.ndarray, b: np.ndarray) -> float:
    """Return the 2-norm of the residual r = b - A u."""
    return float(np.linalg.norm(b - A @ u))


def bicgstab_solve(A: sp.spmatrix, b: np.ndarray, u0: Optional[np.ndarray] = None,
                   preconditioner=None,
                   conv_check: ConvCheckConfig = ConvCheckConfig()) -> SolverResult:
    """Solve A u = b with preconditioned BiCGStab starting from u0."""
    A = sp.csr_matrix(A)
    b = np.asarray(b, dtype=float)
    if A.shape[0] != A.shape[1] or b.shape != (A.shape[0],):
        raise ValueError(f"Incompatible system: A {A.shape}, b {b.shape}")
    u0 = np.zeros_like(b) if u0 is None else np.asarray(u0, dtype=float)

    r0 = b - A @ u0
    d0 = float(np.linalg.norm(r0))
    report = logger.info if conv_check.verbose else logger.debug
    report(f"BiCGStab: iter 0, defect {d0:.6e}")

    if d0 < conv_check.min_defect:
        return SolverResult(u0.copy(), True, 0, d0, d0)

    M = preconditioner
    if M is not None and hasattr(M, "as_linear_operator"):
        M = M.as_linear_operator()

    iterations = 0

    def _monitor(ck):
        nonlocal iterations
        iterations += 1
        if conv_check.verbose:
            report(f"BiCGStab: iter {iterations}, defect {residual_norm(A, ck, r0):.6e}")

    c, info = spla.bicgstab(
        A, r0,
        rtol=conv_check.reduction,
        atol=conv_check.min_defect,
        maxiter=conv_check.max_iterations,
        M=M,
        callback=_monitor,
    )
    if info < 0:
        raise RuntimeError(f"BiCGStab breakdown (info={info})")

    u = u0 + c
    d_final = residual_norm(A, u, b)
    converged = info == 0
    if converged:
        report(f"BiCGStab: converged after {iterations} iterations, "
               f"defect {d_final:.6e}, reduction {d_final / d0:.3e}")
    else:
        logger.warning(f"BiCGStab: no convergence after {iterations} iterations "
                       f"(defect {d_final:.6e}, reduction {d_final / d0:.3e})")
    return SolverResult(u, converged, iterations, d0, d_final)
