"""
Element routines for linear (P1) tetrahedra.

Supports the scalar convection-diffusion operator restricted to what the
regression cases use:

    -div(D grad u) + R u = f

The diffusion part is the standard P1 stiffness matrix; on the barycentric
dual this coincides with the vertex-centred finite-volume (FV1) operator.
Reaction and source are lumped onto the vertices (a quarter of the element
volume each), again matching FV1.

APIs:
- `tetra_shape_derivatives(coords)`
- `tetra_element_matrices(coords, coeffs=None)`

Both work on a batch of elements: coords has shape (m, 4, 3).
"""
from typing import Optional, Tuple
import numpy as np


def tetra_shape_derivatives(coords: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gradients of the barycentric basis functions (constant per element).

    Returns dNdx (m, 3, 4) and volumes (m,).
    """
    coords = np.asarray(coords, dtype=float)
    if coords.ndim == 2:
        coords = coords[None]
    m = coords.shape[0]
    # rows [1, x, y, z]; the inverse holds the coefficients of the basis functions
    M = np.ones((m, 4, 4), dtype=float)
    M[:, :, 1:] = coords
    det = np.linalg.det(M)
    vol = np.abs(det) / 6.0
    scale = np.max(np.abs(coords), axis=(1, 2)) + 1.0
    if np.any(vol <= 1e-14 * scale ** 3):
        raise ValueError("Tetrahedron volume is zero or degenerate")
    Minv = np.linalg.inv(M)
    dNdx = Minv[:, 1:, :]
    return dNdx, vol


def tetra_element_matrices(coords: np.ndarray, coeffs: Optional[dict] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Element stiffness ELK (m, 4, 4) and load ELF (m, 4).

    coeffs keys: 'diffusion' (default 1.0), 'reaction' (0.0), 'source' (0.0).
    """
    coeffs = coeffs or {}
    D = float(coeffs.get('diffusion', 1.0))
    R = float(coeffs.get('reaction', 0.0))
    f = float(coeffs.get('source', 0.0))

    dNdx, vol = tetra_shape_derivatives(coords)
    ELK = D * vol[:, None, None] * np.einsum('mki,mkj->mij', dNdx, dNdx)
    if R != 0.0:
        ELK = ELK + R * (vol / 4.0)[:, None, None] * np.eye(4)
    ELF = np.repeat((f * vol / 4.0)[:, None], 4, axis=1)
    return ELK, ELF


def split_subsets(subsets) -> Tuple[str, ...]:
    """Accept "A, B" or a sequence of names."""
    if isinstance(subsets, str):
        names = [s.strip() for s in subsets.split(',')]
    else:
        names = [str(s).strip() for s in subsets]
    names = [s for s in names if s]
    if not names:
        raise ValueError("At least one subset name is required")
    return tuple(names)


class ConvectionDiffusion:
    """Element discretization of one scalar function on a set of volume subsets."""

    def __init__(self, function: str, subsets):
        self.function = function
        self.subsets = split_subsets(subsets)
        self.diffusion = 1.0
        self.reaction = 0.0
        self.source = 0.0

    def set_diffusion(self, value: float) -> None:
        self.diffusion = float(value)

    def set_reaction(self, value: float) -> None:
        self.reaction = float(value)

    def set_source(self, value: float) -> None:
        self.source = float(value)

    @property
    def coeffs(self) -> dict:
        return {'diffusion': self.diffusion, 'reaction': self.reaction, 'source': self.source}
