"""
Container for the demagnetising kernel.

The kernel K[s][d] maps a unit magnetisation along direction `s` in a
source cell to the field component `d` in a destination cell. It is
symmetric (K[s][d] == K[d][s]) so only the components with s <= d are
stored. Asking for K[d][s] returns the same array as K[s][d].

Some components vanish identically for flat (single-layer) meshes.
These are not stored at all: the component is *absent*, `kernel[i, j]`
returns None for it and callers should treat it as zero everywhere.

"""
import numpy as np

__all__ = ["DemagKernel", "UPPER_COMPONENTS"]

UPPER_COMPONENTS = [(i, j) for i in range(3) for j in range(i, 3)]


def canonical(i, j):
    if i not in (0, 1, 2) or j not in (0, 1, 2):
        raise IndexError("Kernel component indices must be 0, 1 or 2, got ({}, {})".format(i, j))
    return (i, j) if i <= j else (j, i)


class _KernelRow(object):
    # Allows the nested kernel[i][j] access.
    def __init__(self, kernel, i):
        self.kernel = kernel
        self.i = i

    def __getitem__(self, j):
        return self.kernel.component(self.i, j)

    def __len__(self):
        return 3


class DemagKernel(object):
    def __init__(self, mesh, components, integration_points=0):
        """
        *Arguments*

        mesh: the (zero-padded) mesh the component arrays live on.

        components: dict mapping (i, j) with i <= j to a numpy array of
            shape `mesh.shape`, or to None for an absent component.

        integration_points: number of quadrature points which were
            evaluated to compute the kernel.

        """
        self.mesh = mesh
        self.integration_points = integration_points
        self._components = {}
        for ij in UPPER_COMPONENTS:
            arr = components.get(ij)
            if arr is not None and tuple(arr.shape) != mesh.shape:
                raise ValueError("Kernel component {} has shape {}, expected {}".format(
                    ij, arr.shape, mesh.shape))
            self._components[ij] = arr

    def component(self, i, j):
        """
        Return the array holding component (i, j), or None if the
        component is absent (zero everywhere).

        """
        return self._components[canonical(i, j)]

    def __getitem__(self, index):
        if isinstance(index, tuple):
            return self.component(*index)
        if index not in (0, 1, 2):
            raise IndexError("Kernel row index must be 0, 1 or 2, got {}".format(index))
        return _KernelRow(self, index)

    def is_absent(self, i, j):
        return self.component(i, j) is None

    def as_array(self, i, j):
        """
        Like `component` but returns an array of zeros for absent
        components.
        """
        arr = self.component(i, j)
        if arr is None:
            return np.zeros(self.mesh.shape)
        return arr

    def to_full(self):
        """
        Return a dense array of shape (3, 3, nz, ny, nx) containing all
        nine components.
        """
        res = np.zeros((3, 3) + self.mesh.shape)
        for i in range(3):
            for j in range(3):
                arr = self.component(i, j)
                if arr is not None:
                    res[i, j] = arr
        return res

    def items(self):
        """
        Iterate over the stored (i <= j) components as ((i, j), array) pairs.
        """
        for ij in UPPER_COMPONENTS:
            if self._components[ij] is not None:
                yield ij, self._components[ij]

    @property
    def nbytes(self):
        return sum(arr.nbytes for _, arr in self.items())

    def __len__(self):
        return len(list(self.items()))

    def __repr__(self):
        absent = [ij for ij in UPPER_COMPONENTS if self._components[ij] is None]
        return "DemagKernel(mesh={}, absent={})".format(self.mesh, absent)
