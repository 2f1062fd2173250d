"""
Fixed-dimension vector arithmetic (MathVector style).

Vectors are 1D numpy arrays of a fixed length (dim 3 by default) with
element type float32 or float64. All operations write into the destination
in-place and compute in the destination's element type, evaluating sums
left to right so results are reproducible component by component.
"""
from typing import Optional
import numpy as np


def make_vector(dim: int = 3, dtype=np.float64, fill: float = 0.0) -> np.ndarray:
    return np.full(dim, fill, dtype=dtype)


def urand(low: float, high: float, dim: int = 3, dtype=np.float64,
          rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Vector with components drawn uniformly from [low, high)."""
    rng = np.random.default_rng() if rng is None else rng
    return rng.uniform(low, high, size=dim).astype(dtype)


def _check_dims(dest: np.ndarray, *vectors: np.ndarray) -> None:
    for v in vectors:
        if np.shape(v) != dest.shape:
            raise ValueError(f"Dimension mismatch: {np.shape(v)} vs {dest.shape}")


def vec_copy(dest: np.ndarray, src: np.ndarray, fill: float = 0.0) -> None:
    """Copy src into dest; components of dest beyond len(src) are set to fill."""
    n = min(dest.shape[0], src.shape[0])
    dest[:n] = src[:n]
    dest[n:] = fill


def vec_append(dest: np.ndarray, *terms: np.ndarray) -> None:
    """dest += t1 + t2 + ... + tn"""
    if not terms:
        raise ValueError("vec_append needs at least one term")
    _check_dims(dest, *terms)
    acc = terms[0].astype(dest.dtype)
    for t in terms[1:]:
        acc = acc + t.astype(dest.dtype)
    dest += acc


def vec_scale_append(dest: np.ndarray, *scaled) -> None:
    """dest += s1 * v1 + s2 * v2 + ... given as (s1, v1, s2, v2, ...)."""
    if not scaled or len(scaled) % 2 != 0:
        raise ValueError("vec_scale_append expects scale/vector pairs")
    scalar = dest.dtype.type
    scales, vectors = scaled[0::2], scaled[1::2]
    _check_dims(dest, *vectors)
    acc = scalar(scales[0]) * vectors[0].astype(dest.dtype)
    for s, v in zip(scales[1:], vectors[1:]):
        acc = acc + scalar(s) * v.astype(dest.dtype)
    dest += acc


def vec_add(dest: np.ndarray, *operands: np.ndarray) -> None:
    """dest = v1 + v2 + ... + vn  (n >= 2)"""
    if len(operands) < 2:
        raise ValueError("vec_add needs at least two operands")
    _check_dims(dest, *operands)
    acc = operands[0].astype(dest.dtype)
    for v in operands[1:]:
        acc = acc + v.astype(dest.dtype)
    dest[:] = acc


def vec_subtract(dest: np.ndarray, a: np.ndarray, b: np.ndarray) -> None:
    """dest = a - b"""
    _check_dims(dest, a, b)
    dest[:] = a.astype(dest.dtype) - b.astype(dest.dtype)


def vec_pow(dest: np.ndarray, src: np.ndarray, alpha: float) -> None:
    """dest[i] = src[i] ** alpha"""
    _check_dims(dest, src)
    np.power(src.astype(dest.dtype), dest.dtype.type(alpha), out=dest)
