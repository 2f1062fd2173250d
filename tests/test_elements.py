import sys
import os
import numpy as np
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from ug4tests import elements

REF_TET = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])


def test_reference_tetra_stiffness():
    ELK, ELF = elements.tetra_element_matrices(REF_TET)
    expected = np.array([
        [3.0, -1.0, -1.0, -1.0],
        [-1.0, 1.0, 0.0, 0.0],
        [-1.0, 0.0, 1.0, 0.0],
        [-1.0, 0.0, 0.0, 1.0],
    ]) / 6.0
    assert ELK.shape == (1, 4, 4)
    assert np.allclose(ELK[0], expected)
    assert np.allclose(ELF, 0.0)


def test_shape_derivatives_of_reference_tetra():
    dNdx, vol = elements.tetra_shape_derivatives(REF_TET)
    assert np.isclose(vol[0], 1.0 / 6.0)
    # gradients of the barycentric coordinates sum to zero
    assert np.allclose(dNdx[0].sum(axis=1), 0.0)
    assert np.allclose(dNdx[0][:, 1:], np.eye(3))


def test_orientation_does_not_change_matrices():
    flipped = REF_TET[[1, 0, 2, 3]]
    ELK, _ = elements.tetra_element_matrices(flipped)
    ELK_ref, _ = elements.tetra_element_matrices(REF_TET)
    perm = [1, 0, 2, 3]
    assert np.allclose(ELK[0], ELK_ref[0][np.ix_(perm, perm)])


def test_reaction_and_source_are_lumped():
    coeffs = {'diffusion': 0.0, 'reaction': 2.0, 'source': 3.0}
    ELK, ELF = elements.tetra_element_matrices(REF_TET, coeffs)
    vol = 1.0 / 6.0
    assert np.allclose(ELK[0], 2.0 * vol / 4.0 * np.eye(4))
    assert np.allclose(ELF[0], 3.0 * vol / 4.0)


def test_degenerate_tetra():
    flat = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0]])
    with pytest.raises(ValueError):
        elements.tetra_shape_derivatives(flat)


def test_convection_diffusion_disc():
    disc = elements.ConvectionDiffusion("c", "Inner, Outer")
    assert disc.subsets == ("Inner", "Outer")
    disc.set_diffusion(2.0)
    disc.set_reaction(0.5)
    disc.set_source(-1.5)
    assert disc.coeffs == {'diffusion': 2.0, 'reaction': 0.5, 'source': -1.5}
    with pytest.raises(ValueError):
        elements.split_subsets(" , ")
