"""
Input/Output module for the UG4 regression tests.

Reads grids stored in UG4's XML geometry format (.ugx) and reads/writes the
plain-text reference solutions the regression cases compare against.

UGX layout handled here:

    <grid name="defGrid">
      <vertices coords="3"> x0 y0 z0 x1 y1 z1 ... </vertices>
      <edges> a0 b0 a1 b1 ... </edges>
      <triangles> a0 b0 c0 ... </triangles>
      <tetrahedrons> a0 b0 c0 d0 ... </tetrahedrons>
      <subset_handler name="defSH">
        <subset name="Inner">
          <vertices> ... </vertices>  <edges> ... </edges>
          <faces> ... </faces>        <volumes> ... </volumes>
        </subset>
      </subset_handler>
    </grid>

Subset `faces` index into the triangle list, `volumes` into the
tetrahedron list. Only the first subset handler is read.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
from pathlib import Path
import xml.etree.ElementTree as ET
import numpy as np


_UNSUPPORTED_ELEMENTS = ("quadrilaterals", "hexahedrons", "prisms", "pyramids", "octahedrons")


# ============================================================================
# DATACLASSES for grid representation
# ============================================================================

@dataclass
class Subset:
    """
    Named collection of grid elements (UG4 subset).

    Attributes:
        name: Subset name, e.g. "Inner" or "bndNegative"
        vertices: Shape (nv,) - vertex indices assigned directly
        edges: Shape (ne, 2) - vertex pairs of subset edges
        faces: Shape (nf, 3) - vertex triples of subset triangles
        volumes: Shape (nt,) - indices into Grid.tetrahedra
    """
    name: str
    vertices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    edges: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=int))
    faces: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=int))
    volumes: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))

    def all_vertices(self) -> np.ndarray:
        """Sorted unique vertex indices touched by any element of the subset."""
        return np.unique(np.concatenate([
            self.vertices.reshape(-1),
            self.edges.reshape(-1),
            self.faces.reshape(-1),
        ]).astype(int))


@dataclass
class Grid:
    """
    Tetrahedral grid with named subsets.

    Attributes:
        vertices: Shape (nv, 3) - vertex coordinates
        tetrahedra: Shape (nt, 4) - vertex indices per tetrahedron
        subsets: Subset name -> Subset
    """
    vertices: np.ndarray
    tetrahedra: np.ndarray
    subsets: Dict[str, Subset] = field(default_factory=dict)

    @property
    def num_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def num_elements(self) -> int:
        return int(self.tetrahedra.shape[0])

    def subset(self, name: str) -> Subset:
        if name not in self.subsets:
            raise KeyError(f"Unknown subset {name!r}; grid has {sorted(self.subsets)}")
        return self.subsets[name]


# ============================================================================
# UGX reader
# ============================================================================

def _parse_numbers(text: Optional[str], dtype, what: str) -> np.ndarray:
    tokens = (text or "").split()
    try:
        if dtype is int:
            return np.array([int(tok) for tok in tokens], dtype=int)
        return np.array([float(tok) for tok in tokens], dtype=float)
    except ValueError as e:
        raise ValueError(f"Malformed number in <{what}>: {e}") from None


def _read_block(parent: ET.Element, tag: str, width: int, dtype=int) -> np.ndarray:
    """Concatenate all <tag> children of parent and reshape to (-1, width)."""
    chunks: List[np.ndarray] = [_parse_numbers(el.text, dtype, tag) for el in parent.findall(tag)]
    data = np.concatenate(chunks) if chunks else np.zeros(0, dtype=dtype)
    if data.size % width != 0:
        raise ValueError(f"<{tag}> holds {data.size} values, not a multiple of {width}")
    return data.reshape(-1, width)


def _check_range(idx: np.ndarray, bound: int, what: str) -> None:
    if idx.size and (idx.min() < 0 or idx.max() >= bound):
        raise ValueError(f"{what} index out of range [0, {bound})")


def read_ugx(filepath) -> Grid:
    """Read a 3D tetrahedral grid from a UGX file."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Grid file not found: {filepath}")

    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise ValueError(f"Malformed UGX file {filepath}: {e}") from None

    vert_els = root.findall("vertices")
    if not vert_els:
        raise ValueError(f"{filepath}: no <vertices> element")
    dims = {int(el.get("coords", "3")) for el in vert_els}
    if dims != {3}:
        raise NotImplementedError(f"Only 3D grids are supported, got coords={sorted(dims)}")
    vertices = _read_block(root, "vertices", 3, dtype=float)
    nv = vertices.shape[0]

    for tag in _UNSUPPORTED_ELEMENTS:
        if root.find(tag) is not None:
            raise NotImplementedError(f"UGX element type <{tag}> is not supported")

    edges = _read_block(root, "edges", 2)
    triangles = _read_block(root, "triangles", 3)
    tetrahedra = _read_block(root, "tetrahedrons", 4)
    for arr, what in ((edges, "edge"), (triangles, "triangle"), (tetrahedra, "tetrahedron")):
        _check_range(arr, nv, f"{what} vertex")

    subsets: Dict[str, Subset] = {}
    handler = root.find("subset_handler")
    if handler is not None:
        for si, sub_el in enumerate(handler.findall("subset")):
            name = sub_el.get("name", f"subset{si}")
            sv = _read_block(sub_el, "vertices", 1).reshape(-1)
            se = _read_block(sub_el, "edges", 1).reshape(-1)
            sf = _read_block(sub_el, "faces", 1).reshape(-1)
            sc = _read_block(sub_el, "volumes", 1).reshape(-1)
            _check_range(sv, nv, f"subset {name!r} vertex")
            _check_range(se, edges.shape[0], f"subset {name!r} edge")
            _check_range(sf, triangles.shape[0], f"subset {name!r} face")
            _check_range(sc, tetrahedra.shape[0], f"subset {name!r} volume")
            subsets[name] = Subset(
                name=name,
                vertices=sv,
                edges=edges[se],
                faces=triangles[sf],
                volumes=sc,
            )

    return Grid(vertices=vertices, tetrahedra=tetrahedra, subsets=subsets)


# ============================================================================
# Reference solutions
# ============================================================================

def read_reference(filepath) -> np.ndarray:
    """Read a reference solution: whitespace separated floats, one per line."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Reference file not found: {filepath}")
    return _parse_numbers(path.read_text(), float, "reference")


def write_reference(filepath, values: Iterable[float]) -> None:
    """Write values one per line with round-trip precision."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for v in values:
            f.write(f"{float(v)!r}\n")
