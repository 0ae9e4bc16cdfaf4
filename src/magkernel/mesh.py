import numpy as np

__all__ = ["Mesh", "KernelPreconditionError", "check"]

X, Y, Z = 0, 1, 2


class KernelPreconditionError(ValueError, AssertionError):
    """
    Raised when the input to the kernel computation is malformed
    (mesh shape, cell size, periodicity or accuracy). Nothing is
    returned to the caller after this has been raised.

    """
    pass


def check(condition, msg="precondition violated"):
    if not condition:
        raise KernelPreconditionError(msg)


# A 3D rectangular mesh
class Mesh(object):
    """
    Regular grid of identical rectangular cells.

    *Arguments*

    meshsize: number of cells along x, y and z

    cellsize: physical size of a single cell along x, y and z. If this
        is not given, it is computed from the total physical `size`.

    pbc: number of periodic images along x, y and z. Zero means the
        axis is open (not periodic).

    meshsize, cellsize and pbc use XYZ order of coordinates. Arrays
    allocated for the mesh use ZYX order, i.e. they are indexed
    by (z, y, x).

    """
    def __init__(self, meshsize, cellsize=None, pbc=(0, 0, 0), size=None):
        if cellsize is None:
            check(size is not None, "Either 'cellsize' or 'size' must be given.")
            cellsize = np.array(size, dtype=float)/np.array(meshsize, dtype=float)
        self.mesh_size = np.array(meshsize, dtype=int)
        self.cell_size = np.array(cellsize, dtype=float)
        self.pbc = np.array(pbc, dtype=int)

        # Check validity
        check(self.mesh_size.shape == (3,), "Mesh size must have three entries, got {}".format(meshsize))
        check(self.cell_size.shape == (3,), "Cell size must have three entries, got {}".format(cellsize))
        check(self.pbc.shape == (3,), "pbc must have three entries, got {}".format(pbc))
        check(np.all(np.isfinite(self.cell_size)), "Cell size must be finite, got {}".format(cellsize))
        check(np.all(self.cell_size > 0), "Cell size must be positive, got {}".format(cellsize))
        check(np.all(self.mesh_size > 0), "Mesh size must be positive, got {}".format(meshsize))
        check(np.all(self.pbc >= 0), "Number of periodic images must be non-negative, got {}".format(pbc))

        self.mesh_size.flags.writeable = False
        self.cell_size.flags.writeable = False
        self.pbc.flags.writeable = False

    n = property(lambda self: int(np.prod(self.mesh_size)))
    # shape of arrays living on this mesh, in (z, y, x) order
    shape = property(lambda self: tuple(int(k) for k in self.mesh_size[::-1]))
    # A single layer of cells which is not repeated periodically along z.
    is_2d = property(lambda self: self.mesh_size[Z] == 1 and self.pbc[Z] == 0)
    smallest_cell_dimension = property(lambda self: float(np.min(self.cell_size)))

    def padded(self):
        """
        Return the mesh used to store the demag kernel: every open
        axis with more than one cell is doubled, periodic axes are
        left as they are.

        """
        from magkernel.demag.kernel import pad_size
        return Mesh(pad_size(self.mesh_size, self.pbc), self.cell_size, self.pbc)

    def new_array(self, dtype=np.float64):
        return np.zeros(self.shape, dtype=dtype)

    def __eq__(self, other):
        if not isinstance(other, Mesh):
            return NotImplemented
        return (np.array_equal(self.mesh_size, other.mesh_size) and
                np.array_equal(self.cell_size, other.cell_size) and
                np.array_equal(self.pbc, other.pbc))

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    def __hash__(self):
        return hash((tuple(self.mesh_size), tuple(self.cell_size), tuple(self.pbc)))

    def __repr__(self):
        return "Mesh(meshsize={}, cellsize={}, pbc={})".format(
            tuple(int(k) for k in self.mesh_size),
            tuple(float(c) for c in self.cell_size),
            tuple(int(p) for p in self.pbc))
