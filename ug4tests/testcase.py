"""
Base class for regression test cases and the reference comparison.

A test case knows a grid file and a reference file. Subclasses implement
`run()`, which must leave the computed solution vector in `self.solution`;
`compare()` then checks it against the reference values.
"""
import logging
from dataclasses import dataclass
from typing import Optional
import numpy as np
from .io import Grid, read_reference, write_reference
from .mesh import GridHierarchy

logger = logging.getLogger(__name__)

TOLERANCE = 1e-6


@dataclass
class ComparisonResult:
    equal: bool
    first_mismatch: Optional[int] = None
    max_abs_diff: float = 0.0

    def __bool__(self) -> bool:
        return self.equal


def compare_values(solution, reference, tol: float = TOLERANCE) -> ComparisonResult:
    """
    Compare two equal-length sequences entry by entry.

    Equal iff |solution[i] - reference[i]| < tol for every i (absolute
    tolerance only). Otherwise `first_mismatch` is the lowest offending index.
    """
    sol = np.asarray(solution, dtype=float).reshape(-1)
    ref = np.asarray(reference, dtype=float).reshape(-1)
    if sol.shape != ref.shape:
        raise ValueError(f"Length mismatch: solution has {sol.size} values, reference {ref.size}")
    if sol.size == 0:
        return ComparisonResult(True)

    diff = np.abs(sol - ref)
    ok = diff < tol                      # NaN compares False
    max_diff = float(np.max(diff)) if np.all(np.isfinite(diff)) else float("nan")
    if np.all(ok):
        return ComparisonResult(True, None, max_diff)
    return ComparisonResult(False, int(np.flatnonzero(~ok)[0]), max_diff)


class Testcase:
    """
    Base class for all regression test cases.

    Args:
        grid: path of the grid file
        reference: path of the reference solution file
    """

    # keep pytest from collecting this class
    __test__ = False

    def __init__(self, grid, reference):
        self.gridname = str(grid)
        self.reference = str(reference)
        self.domain: Optional[GridHierarchy] = None
        self.solution: Optional[np.ndarray] = None
        self.reference_values: Optional[np.ndarray] = None

    def run(self):
        raise NotImplementedError("run() function of testcase not implemented.")

    def compare(self) -> bool:
        """True if the solution equals the reference within TOLERANCE."""
        if self.solution is None:
            raise RuntimeError("No solution to compare; call run() first")
        self.read_reference()
        result = compare_values(self.solution, self.reference_values)
        if not result:
            logger.warning(f"Not equal at {result.first_mismatch}")
        return result.equal

    def refine(self, num_refs: int) -> None:
        """Refine the loaded domain uniformly num_refs times."""
        if self.domain is None:
            raise RuntimeError("No domain loaded")
        if num_refs < 0:
            raise ValueError("num_refs must be >= 0")
        for _ in range(num_refs):
            self.domain.refine()

    def load_domain(self, grid: Grid) -> None:
        self.domain = GridHierarchy(levels=[grid])

    def read_reference(self) -> np.ndarray:
        self.reference_values = read_reference(self.reference)
        return self.reference_values

    def write_reference(self, values=None) -> None:
        """Store values (default: the current solution) as the new reference."""
        if values is None:
            values = self.solution
        if values is None:
            raise RuntimeError("No solution to write; call run() first")
        write_reference(self.reference, values)

    @staticmethod
    def is_equal(a: float, b: float) -> bool:
        return abs(a - b) < TOLERANCE
