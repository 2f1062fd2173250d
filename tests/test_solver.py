import sys
import os
import logging
import numpy as np
import pytest
import scipy.sparse as sp

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from ug4tests import solver
from ug4tests.config import ConvCheckConfig
from ug4tests.multigrid import GeometricMultigrid


def _laplace_1d(n):
    return sp.diags([-np.ones(n - 1), 2.0 * np.ones(n), -np.ones(n - 1)], [-1, 0, 1], format='csr')


def test_bicgstab_small_system():
    A = _laplace_1d(30)
    b = np.ones(30)
    res = solver.bicgstab_solve(A, b, conv_check=ConvCheckConfig(reduction=1e-12, min_defect=1e-14))
    assert res.converged
    assert res.iterations > 0
    assert np.allclose(A @ res.solution, b, atol=1e-8)


def test_reduction_measured_from_start_vector():
    A = _laplace_1d(30)
    x = np.linspace(0.0, 1.0, 30)
    b = A @ x
    u0 = x + 1e-3
    res = solver.bicgstab_solve(A, b, u0, conv_check=ConvCheckConfig(reduction=1e-6))
    assert res.converged
    assert np.isclose(res.initial_defect, solver.residual_norm(A, u0, b))
    assert res.final_defect < 1e-6 * res.initial_defect * 10


def test_exact_start_vector_needs_no_iteration():
    A = _laplace_1d(5)
    x = np.arange(5.0)
    res = solver.bicgstab_solve(A, A @ x, x)
    assert res.converged
    assert res.iterations == 0
    assert np.array_equal(res.solution, x)


def test_preconditioned_by_direct_solve():
    A = _laplace_1d(25)
    b = np.ones(25)
    res = solver.bicgstab_solve(A, b, preconditioner=GeometricMultigrid([A], []))
    assert res.converged
    assert res.iterations <= 2
    assert np.allclose(A @ res.solution, b)


def test_no_convergence_is_reported_not_raised(caplog):
    A = _laplace_1d(100)
    b = np.ones(100)
    cc = ConvCheckConfig(max_iterations=1, reduction=1e-14, min_defect=0.0, verbose=False)
    with caplog.at_level(logging.WARNING):
        res = solver.bicgstab_solve(A, b, conv_check=cc)
    assert not res.converged
    assert "no convergence" in caplog.text


def test_incompatible_shapes():
    with pytest.raises(ValueError):
        solver.bicgstab_solve(_laplace_1d(4), np.ones(3))


def test_residual_norm():
    A = sp.identity(3, format='csr')
    b = np.array([1.0, 2.0, 3.0])
    assert solver.residual_norm(A, b, b) == 0.0
    assert np.isclose(solver.residual_norm(A, np.zeros(3), b), np.linalg.norm(b))
