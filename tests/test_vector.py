import sys
import os
import numpy as np
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

from ug4tests import vector

DIM = 3


@pytest.fixture(params=[np.float32, np.float64], ids=['float', 'double'])
def vecs(request):
    """a, b random in [0, 10); c, d, e zero."""
    dtype = request.param
    a = vector.urand(0, 10, DIM, dtype)
    b = vector.urand(0, 10, DIM, dtype)
    c, d, e = (vector.make_vector(DIM, dtype) for _ in range(3))
    return dtype, a, b, c, d, e


def test_vec_append(vecs):
    t, a, b, c, d, e = vecs
    acopy = vector.make_vector(DIM, t)
    vector.vec_copy(acopy, a, 0)

    vector.vec_append(a, b)
    for i in range(DIM):
        assert a[i] == acopy[i] + b[i]

    vector.vec_append(c, a, b)
    vector.vec_append(d, a, b, c)
    vector.vec_append(e, a, b, c, d)
    for i in range(DIM):
        assert c[i] == a[i] + b[i]
        assert d[i] == a[i] + b[i] + c[i]
        assert e[i] == a[i] + b[i] + c[i] + d[i]
    assert c.dtype == t


def test_vec_scale_append(vecs):
    t, a, b, c, d, e = vecs
    vector.vec_scale_append(c, 2, b)
    for i in range(DIM):
        assert c[i] == t(2) * b[i]

    c[:] = 0
    vector.vec_scale_append(c, 2, a, 3, b)
    vector.vec_scale_append(d, 2, a, 3, b, 4, c)
    vector.vec_scale_append(e, 2, a, 3, b, 4, c, 5, d)
    for i in range(DIM):
        assert c[i] == t(2) * a[i] + t(3) * b[i]
        assert d[i] == t(2) * a[i] + t(3) * b[i] + t(4) * c[i]
        assert e[i] == t(2) * a[i] + t(3) * b[i] + t(4) * c[i] + t(5) * d[i]


def test_vec_scale_append_accumulates(vecs):
    t, a, b, c, d, e = vecs
    vector.vec_copy(c, a)
    vector.vec_scale_append(c, 0.5, b)
    for i in range(DIM):
        assert c[i] == a[i] + t(0.5) * b[i]


def test_vec_add(vecs):
    t, a, b, c, d, e = vecs
    vector.vec_add(c, a, b)
    vector.vec_add(d, a, b, c)
    vector.vec_add(e, a, b, c, d)
    for i in range(DIM):
        assert c[i] == a[i] + b[i]
        assert d[i] == a[i] + b[i] + c[i]
        assert e[i] == a[i] + b[i] + c[i] + d[i]


def test_vec_subtract(vecs):
    t, a, b, c, d, e = vecs
    vector.vec_subtract(c, a, b)
    for i in range(DIM):
        assert c[i] == a[i] - b[i]


def test_vec_pow(vecs):
    t, a, b, c, d, e = vecs
    vector.vec_pow(c, a, 2)
    for i in range(DIM):
        assert c[i] == a[i] ** t(2)
    assert c.dtype == t


def test_vec_copy_fills_remaining_components():
    dest = vector.make_vector(4)
    vector.vec_copy(dest, np.array([1.0, 2.0]), fill=7.0)
    assert np.array_equal(dest, [1.0, 2.0, 7.0, 7.0])


def test_operand_errors():
    v = vector.make_vector()
    with pytest.raises(ValueError):
        vector.vec_add(v, v)
    with pytest.raises(ValueError):
        vector.vec_append(v)
    with pytest.raises(ValueError):
        vector.vec_scale_append(v, 2.0)
    with pytest.raises(ValueError):
        vector.vec_subtract(v, vector.make_vector(2), v)


def test_urand_range():
    v = vector.urand(0, 10, 1000, np.float64, rng=np.random.default_rng(1))
    assert v.shape == (1000,)
    assert np.all((v >= 0.0) & (v < 10.0))
