import sys
import os
import numpy as np
import scipy.sparse as sp

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from ug4tests import boundary
from ug4tests.io import read_ugx

CUBE_GRID = os.path.join(PROJECT_ROOT, 'regression_tests', 'grids', 'laplace_cube_3d.ugx')


def test_apply_dirichlet_rows():
    K = sp.csr_matrix(np.array([[2.0, -1.0, 0.0], [-1.0, 2.0, -1.0], [0.0, -1.0, 2.0]]))
    F = np.zeros(3)
    K2 = boundary.apply_dirichlet_rows(K, F, np.array([1]), np.array([5.0]))
    dense = K2.toarray()
    assert np.array_equal(dense[1], [0.0, 1.0, 0.0])
    # columns are kept, input matrix is left alone
    assert dense[0, 1] == -1.0
    assert K[1, 0] == -1.0
    assert F[1] == 5.0


def test_apply_dirichlet_rows_without_dofs():
    K = sp.identity(2, format='csr')
    F = np.ones(2)
    K2 = boundary.apply_dirichlet_rows(K, F, np.array([], dtype=int), np.array([]))
    assert np.array_equal(K2.toarray(), np.eye(2))
    assert np.array_equal(F, np.ones(2))


def test_constrained_dofs_on_cube():
    grid = read_ugx(CUBE_GRID)
    bnd = boundary.DirichletBoundary()
    bnd.add(-1.0, "c", "bndNegative")
    bnd.add(1.0, "c", "bndPositive")
    dofs, values = bnd.constrained_dofs(grid)
    assert np.array_equal(dofs, np.arange(8))
    assert np.array_equal(values, np.where(grid.vertices[:, 0] == 0.0, -1.0, 1.0))
    assert bnd.functions == ("c",)


def test_last_condition_wins():
    grid = read_ugx(CUBE_GRID)
    bnd = boundary.DirichletBoundary()
    bnd.add(3.0, "c", "bndNegative, bndPositive")
    bnd.add(7.0, "c", ["bndPositive"])
    dofs, values = bnd.constrained_dofs(grid)
    assert np.array_equal(values[grid.vertices[dofs, 0] == 1.0], np.full(4, 7.0))
    assert np.array_equal(values[grid.vertices[dofs, 0] == 0.0], np.full(4, 3.0))


def test_adjust_solution():
    grid = read_ugx(CUBE_GRID)
    bnd = boundary.DirichletBoundary()
    bnd.add(4.0, "c", "bndPositive")
    u = np.zeros(grid.num_vertices)
    bnd.adjust_solution(u, grid)
    assert np.array_equal(u, np.where(grid.vertices[:, 0] == 1.0, 4.0, 0.0))
