import pytest
import numpy as np
from magkernel.mesh import Mesh
from magkernel.demag.tensor import DemagKernel, UPPER_COMPONENTS


def make_kernel(absent=()):
    mesh = Mesh((4, 2, 1), cellsize=(1, 1, 1))
    components = {}
    for n, ij in enumerate(UPPER_COMPONENTS):
        components[ij] = None if ij in absent else np.full(mesh.shape, float(n))
    return DemagKernel(mesh, components)


def test_transposed_components_are_the_same_array():
    k = make_kernel()
    for i in range(3):
        for j in range(3):
            assert k[i, j] is k[j, i]
            assert k[i][j] is k[j][i]
            assert k.component(i, j) is k[min(i, j), max(i, j)]
    assert len(k) == 6


def test_absent_components():
    k = make_kernel(absent=[(0, 1), (0, 2)])
    assert k[0, 1] is None
    assert k[1][0] is None
    assert k[2, 0] is None
    assert k.is_absent(2, 0)
    assert not k.is_absent(1, 2)
    assert len(k) == 4
    zeros = k.as_array(1, 0)
    assert zeros.shape == (1, 2, 4)
    assert not zeros.any()


def test_to_full_is_symmetric():
    k = make_kernel(absent=[(0, 2)])
    full = k.to_full()
    assert full.shape == (3, 3, 1, 2, 4)
    assert np.array_equal(full, np.transpose(full, (1, 0, 2, 3, 4)))
    assert not full[0, 2].any()


def test_items_and_nbytes():
    k = make_kernel(absent=[(0, 1)])
    keys = [ij for ij, _ in k.items()]
    assert keys == [(0, 0), (0, 2), (1, 1), (1, 2), (2, 2)]
    assert k.nbytes == 5 * 8 * 8


def test_bad_indices():
    k = make_kernel()
    with pytest.raises(IndexError):
        k[0, 3]
    with pytest.raises(IndexError):
        k[3]


def test_shape_mismatch():
    mesh = Mesh((4, 2, 1), cellsize=(1, 1, 1))
    with pytest.raises(ValueError):
        DemagKernel(mesh, {(0, 0): np.zeros((2, 4))})
