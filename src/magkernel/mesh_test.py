import pytest
import numpy as np
from magkernel.mesh import Mesh, KernelPreconditionError


def test_cellsize_from_size():
    m = Mesh((4, 2, 1), size=(8e-9, 2e-9, 3e-9))
    assert np.allclose(m.cell_size, [2e-9, 1e-9, 3e-9])
    assert m.n == 8


def test_arrays_are_zyx_ordered():
    m = Mesh((5, 3, 2), cellsize=(1, 1, 1))
    assert m.shape == (2, 3, 5)
    arr = m.new_array()
    assert arr.shape == (2, 3, 5)
    assert not arr.any()


def test_padded_mesh():
    m = Mesh((4, 4, 1), cellsize=(1, 2, 3))
    p = m.padded()
    assert tuple(p.mesh_size) == (8, 8, 1)
    assert np.array_equal(p.cell_size, m.cell_size)

    m = Mesh((4, 4, 4), cellsize=(1, 1, 1), pbc=(2, 0, 0))
    assert tuple(m.padded().mesh_size) == (4, 8, 8)
    # padding is computed, the original mesh stays as it is
    assert tuple(m.mesh_size) == (4, 4, 4)


def test_is_2d():
    assert Mesh((4, 4, 1), cellsize=(1, 1, 1)).is_2d
    assert not Mesh((4, 4, 1), cellsize=(1, 1, 1), pbc=(0, 0, 1)).is_2d
    assert not Mesh((4, 4, 2), cellsize=(1, 1, 1)).is_2d


def test_mesh_is_immutable():
    m = Mesh((4, 4, 1), cellsize=(1, 1, 1))
    with pytest.raises(ValueError):
        m.cell_size[0] = 2.0


@pytest.mark.parametrize("kwargs", [
    dict(meshsize=(4, 4, 1), cellsize=(1, 0, 1)),
    dict(meshsize=(4, 4, 1), cellsize=(-1, 1, 1)),
    dict(meshsize=(4, 4, 1), cellsize=(1, 1, np.inf)),
    dict(meshsize=(4, 0, 1), cellsize=(1, 1, 1)),
    dict(meshsize=(4, 4), cellsize=(1, 1, 1)),
    dict(meshsize=(4, 4, 1), cellsize=(1, 1, 1), pbc=(0, -1, 0)),
    dict(meshsize=(4, 4, 1)),
])
def test_invalid_mesh_raises(kwargs):
    with pytest.raises(KernelPreconditionError):
        Mesh(**kwargs)


def test_precondition_error_is_value_and_assertion_error():
    with pytest.raises(ValueError):
        Mesh((4, 4, 1), cellsize=(1, 1, 0))
    with pytest.raises(AssertionError):
        Mesh((4, 4, 1), cellsize=(1, 1, 0))


def test_equality_and_repr():
    a = Mesh((4, 4, 1), cellsize=(1, 1, 1))
    b = Mesh((4, 4, 1), size=(4, 4, 1))
    c = Mesh((4, 4, 1), cellsize=(1, 1, 1), pbc=(1, 0, 0))
    assert a == b
    assert hash(a) == hash(b)
    assert a != c
    assert repr(a) == "Mesh(meshsize=(4, 4, 1), cellsize=(1.0, 1.0, 1.0), pbc=(0, 0, 0))"
