"""
Brute-force computation of the magnetostatic (demagnetising) kernel.

For every source direction s the source cell is treated as uniformly
magnetised along s, which is equivalent to two sheets of magnetic
surface charge on the faces of the cell perpendicular to s. The field
of those charges is integrated numerically over the source faces and
averaged over the volume of every destination cell, which gives the
kernel components K[s][d] for d >= s. The remaining components follow
from reciprocity (see `magkernel.demag.tensor`).

The number of integration points is chosen per destination cell: the
closer the destination is to the source, the finer the quadrature. The
source face grid is always twice as fine as the destination grid. This
staggering of the two grids makes the error of the (self and nearest
neighbour) cubic kernel drop by more than an order of magnitude for the
same number of evaluation points compared to unstaggered grids. Other
ways of staggering (incrementing instead of doubling, or odd/even
destination counts) were tried and are less accurate at accuracy 6.

Usage:

    from magkernel import Mesh, brute_kernel
    kernel = brute_kernel(Mesh((64, 32, 1), cellsize=(2e-9, 2e-9, 1e-9)), accuracy=6)
    kxx = kernel[0, 0]

"""
import time
import logging
import functools
import multiprocessing
import numpy as np
from magkernel.mesh import Mesh, check
from magkernel.demag.tensor import DemagKernel, UPPER_COMPONENTS
from magkernel.util.helpers import format_time, make_human_readable, vec2str
from magkernel.util.progress_bar import ProgressBar
from magkernel.util import configuration

logger = logging.getLogger("magkernel")

X, Y, Z = 0, 1, 2

EXTREMEDEBUG = 5

# Upper limit for the number of (source point, destination point) pairs
# which are evaluated in a single numpy operation.
MAX_BLOCK_SIZE = 2 ** 18


def delta(d):
    """
    Closest distance between two cells (in units of the cell pitch)
    whose centres are `d` cells apart. Cells which touch, even if only
    by a corner, have distance zero.

    """
    d = abs(d)
    if d > 0:
        d -= 1
    return float(d)


def wrap(number, size):
    """
    Wrap the index `number` to [0, size) by adding or subtracting a
    multiple of `size`.

    """
    check(size > 0, "Cannot wrap index onto an axis of size {}".format(size))
    return number % size


def pad_size(size, pbc):
    """
    Return the mesh size after zero-padding. Open axes with more than
    one cell are doubled, periodic axes keep their size.

    """
    return tuple(2 * n if (p == 0 and n > 1) else n
                 for n, p in zip((int(k) for k in size), (int(k) for k in pbc)))


def destination_range(n, pbc, thin=False):
    """
    Return the inclusive range (lo, hi) of destination offsets along an
    axis with `n` cells (after padding) and `pbc` periodic images.

    An open axis covers the symmetric range -(n-1)/2 ... (n-1)/2 (with
    the division truncated), a periodic one -(n*pbc-1) ... n*pbc-1.
    If `thin` is True the axis is the thickness of a single-layer mesh
    and only the offset 0 is used.

    """
    if pbc == 0:
        lo, hi = -((n - 1) // 2), (n - 1) // 2
    else:
        lo, hi = -(n * pbc - 1), n * pbc - 1
    if thin:
        lo, hi = min(lo, 0), 0
    return lo, hi


def destination_ranges(mesh):
    """
    Destination offset ranges along x, y and z for the padded `mesh`.
    """
    return [destination_range(int(mesh.mesh_size[i]), int(mesh.pbc[i]),
                              thin=(i == Z and mesh.is_2d))
            for i in (X, Y, Z)]


def closest_distance(offset, cellsize, fallback):
    """
    Euclidean closest-approach distance between the source cell and the
    cell at integer `offset`. If the cells touch, `fallback` is returned
    instead (the quadrature needs a non-zero length scale).

    """
    d = np.sqrt(sum((delta(offset[i]) * cellsize[i]) ** 2 for i in (X, Y, Z)))
    if d == 0:
        d = fallback
    return d


def integration_order(distance, accuracy, cellsize, s=X):
    """
    Number of integration points (nv, nw, nx, ny, nz) used for a
    destination cell at closest distance `distance` from the source.

    nv and nw are the subdivisions of the source face perpendicular to
    the source direction `s` (v = s+1, w = s+2 modulo 3); nx, ny, nz
    those of the destination cell volume. The integration step is at
    most `distance / accuracy`, and the source face counts are doubled
    to stagger the two grids.

    """
    check(np.isfinite(accuracy) and accuracy > 0, "Accuracy must be positive and finite, got {}".format(accuracy))
    check(distance > 0, "Distance must be positive, got {}".format(distance))
    v, w = (s + 1) % 3, (s + 2) % 3
    max_size = distance / accuracy

    def subdivisions(c):
        return int(max(c / max_size, 1) + 0.5)

    nv = subdivisions(cellsize[v])
    nw = subdivisions(cellsize[w])
    nx = subdivisions(cellsize[X])
    ny = subdivisions(cellsize[Y])
    nz = subdivisions(cellsize[Z])
    # Stagger source and destination grids.
    nv *= 2
    nw *= 2

    check(nv > 0 and nw > 0 and nx > 0 and ny > 0 and nz > 0,
          "Invalid number of integration points {}".format((nv, nw, nx, ny, nz)))
    return nv, nw, nx, ny, nz


def sample_field(pole, r, charge):
    """
    Field at position(s) `r` of a point charge `charge` at `pole`:

        B = charge * (r - pole) / (4 pi |r - pole|^3)

    `pole` and `r` broadcast against each other, the last axis holds
    the x, y, z components. Returns an array of the broadcast shape.

    """
    R = np.asarray(r, dtype=float) - np.asarray(pole, dtype=float)
    dist = np.sqrt(np.sum(R * R, axis=-1))
    qr = charge / (4 * np.pi * dist * dist * dist)
    return R * qr[..., np.newaxis]


def _midpoints(start, length, n):
    # Centres of n equal subdivisions of [start, start + length].
    return start + length / (2 * n) + np.arange(n) * (length / n)


def integrate_cell(offset, cellsize, s, order):
    """
    Average field in the destination cell at integer `offset` produced
    by a source cell uniformly magnetised along `s`, i.e. by unit
    surface charges on its two faces perpendicular to `s`.

    Returns the field as an array (bx, by, bz) and the number of
    evaluated integration points.

    """
    u, v, w = s, (s + 1) % 3, (s + 2) % 3
    nv, nw, nx, ny, nz = order
    cellsize = np.asarray(cellsize, dtype=float)
    R = np.asarray(offset, dtype=float) * cellsize

    points = nv * nw * nx * ny * nz
    surface = cellsize[v] * cellsize[w]
    charge = surface / points

    # Sample points on the positive source face. The negative face has
    # the same points mirrored along u.
    pv, pw = np.meshgrid(_midpoints(-cellsize[v] / 2., cellsize[v], nv),
                         _midpoints(-cellsize[w] / 2., cellsize[w], nw), indexing='ij')
    poles = np.zeros((nv * nw, 3))
    poles[:, v] = pv.ravel()
    poles[:, w] = pw.ravel()
    poles[:, u] = cellsize[u] / 2.
    negative_poles = poles.copy()
    negative_poles[:, u] = -cellsize[u] / 2.

    rx, ry, rz = np.meshgrid(_midpoints(R[X] - cellsize[X] / 2, cellsize[X], nx),
                             _midpoints(R[Y] - cellsize[Y] / 2, cellsize[Y], ny),
                             _midpoints(R[Z] - cellsize[Z] / 2, cellsize[Z], nz), indexing='ij')
    dest = np.column_stack((rx.ravel(), ry.ravel(), rz.ravel()))

    B = np.zeros(3)
    chunk = max(1, MAX_BLOCK_SIZE // len(dest))
    for start in range(0, len(poles), chunk):
        p1 = poles[start:start + chunk, np.newaxis, :]
        p2 = negative_poles[start:start + chunk, np.newaxis, :]
        # Each positive pole contribution is added to its negative
        # partner before summing; they largely cancel far away.
        b = sample_field(p1, dest, charge) + sample_field(p2, dest, -charge)
        B += b.reshape(-1, 3).sum(axis=0)
    return B, points


def absent_components(mesh):
    """
    Components which vanish identically on the padded `mesh` and are
    therefore neither computed nor stored.
    """
    if mesh.is_2d:
        return [(X, Y), (X, Z)]
    return []


def _check_preconditions(size, cellsize, pbc, accuracy):
    check(size[Z] >= 1 and size[Y] >= 2 and size[X] >= 2,
          "Kernel mesh must have at least 2x2x1 cells, got {}".format(vec2str(size)))
    check(cellsize[X] > 0 and cellsize[Y] > 0 and cellsize[Z] > 0,
          "Cell size must be positive, got {}".format(vec2str(cellsize)))
    check(pbc[X] >= 0 and pbc[Y] >= 0 and pbc[Z] >= 0,
          "Number of periodic images must be non-negative, got {}".format(vec2str(pbc)))
    check(np.isfinite(accuracy) and accuracy > 0, "Accuracy must be positive and finite, got {}".format(accuracy))
    check(size[X] % 2 == 0 and size[Y] % 2 == 0,
          "Even kernel size needed, got {}".format(vec2str(size)))
    if size[Z] > 1:
        check(size[Z] % 2 == 0, "Even kernel size needed, got {}".format(vec2str(size)))


def _source_direction(s, mesh, accuracy, ranges, progress=None):
    """
    Compute the kernel row K[s][d], d >= s, on the padded `mesh`.

    Returns a dict {d: array} and the number of integration points used.
    """
    size = mesh.mesh_size
    cellsize = mesh.cell_size
    L = mesh.smallest_cell_dimension
    (x1, x2), (y1, y2), (z1, z2) = ranges

    absent = absent_components(mesh)
    arrays = dict((d, mesh.new_array()) for d in range(s, 3) if (s, d) not in absent)
    points = 0
    done = 0
    trace = logger.isEnabledFor(EXTREMEDEBUG)
    for z in range(z1, z2 + 1):
        zw = wrap(z, size[Z])
        for y in range(y1, y2 + 1):
            yw = wrap(y, size[Y])
            for x in range(x1, x2 + 1):
                xw = wrap(x, size[X])
                d = closest_distance((x, y, z), cellsize, L)
                order = integration_order(d, accuracy, cellsize, s)
                B, n = integrate_cell((x, y, z), cellsize, s, order)
                points += n
                for dst in arrays:
                    arrays[dst][zw, yw, xw] += B[dst]
                if trace:
                    logger.log(EXTREMEDEBUG, "s={} offset=({}, {}, {}) order={} B={}".format(
                        s, x, y, z, order, B))
            done += x2 - x1 + 1
            if progress is not None:
                progress(done)
    return arrays, points


def _source_direction_task(s, mesh, accuracy, ranges):
    # Pool workers need a picklable callable without a progress callback.
    return s, _source_direction(s, mesh, accuracy, ranges)


def brute_kernel(mesh, accuracy, processes=1, show_progress=False):
    """
    Calculate the demagnetising kernel by brute-force integration of
    magnetic charges over the faces of the source cell and averaging
    over the volume of the destination cells.

    *Arguments*

    mesh: magkernel.Mesh

        The simulation mesh. It must NOT be zero-padded yet: open axes
        are doubled here to leave room for a zero-padded convolution.

    accuracy: float

        The integration step is at most (closest distance) / accuracy,
        so larger values use more integration points. 6 is a good
        compromise between speed and accuracy.

    processes: int

        Number of worker processes. The three source directions are
        independent, so at most three processes are used.

    show_progress: bool

        Display a progress bar in the terminal. Only supported when
        the kernel is computed in the calling process (processes=1).

    *Returns*

    A `DemagKernel` living on the padded mesh. For single-layer meshes
    (one cell thick and not periodic along z) the components (0, 1) and
    (0, 2) are absent.

    """
    size = np.asarray(mesh.mesh_size, dtype=int)
    pbc = np.asarray(mesh.pbc, dtype=int)
    cellsize = np.asarray(mesh.cell_size, dtype=float)
    check(size.shape == (3,) and pbc.shape == (3,) and cellsize.shape == (3,),
          "Mesh size, cell size and pbc must have three entries each")
    check(np.all(size >= 1), "Mesh size must be positive, got {}".format(vec2str(size)))
    check(np.isfinite(accuracy) and accuracy > 0, "Accuracy must be positive and finite, got {}".format(accuracy))
    check(np.all(np.isfinite(cellsize)), "Cell size must be finite, got {}".format(vec2str(cellsize)))
    check(np.all(cellsize > 0), "Cell size must be positive, got {}".format(vec2str(cellsize)))
    check(np.all(pbc >= 0), "Number of periodic images must be non-negative, got {}".format(vec2str(pbc)))

    # Kernel mesh is 2x larger than the input, except for periodic axes.
    kmesh = Mesh(pad_size(size, pbc), cellsize, pbc)
    _check_preconditions(kmesh.mesh_size, kmesh.cell_size, kmesh.pbc, accuracy)

    ranges = destination_ranges(kmesh)
    cells_per_direction = int(np.prod([hi - lo + 1 for lo, hi in ranges]))
    logger.info("Calculating demag kernel for mesh {} (padded: {}, pbc: {}) with accuracy {}.".format(
        vec2str(size), vec2str(kmesh.mesh_size), vec2str(pbc), accuracy))
    logger.debug("Destination ranges: x {} .. {}, y {} .. {}, z {} .. {}".format(
        *[r for lo_hi in ranges for r in lo_hi]))

    tic = time.time()
    components = {}
    points = 0
    processes = max(1, min(int(processes), 3))
    if processes > 1:
        logger.debug("Distributing source directions over {} processes.".format(processes))
        if show_progress:
            logger.debug("No progress bar is shown when using several processes.")
        task = functools.partial(_source_direction_task, mesh=kmesh, accuracy=accuracy, ranges=ranges)
        pool = multiprocessing.Pool(processes)
        try:
            results = pool.map(task, [X, Y, Z])
        finally:
            pool.close()
            pool.join()
        for s, (arrays, n) in sorted(results, key=lambda res: res[0]):
            for d, arr in arrays.items():
                components[(s, d)] = arr
            points += n
    else:
        pb = ProgressBar(3 * cells_per_direction) if show_progress else None
        for s in (X, Y, Z):
            logger.debug("Integrating source direction {}.".format("xyz"[s]))
            progress = None
            if pb is not None:
                offset = s * cells_per_direction
                progress = lambda done, offset=offset: pb.update(offset + done)
            arrays, n = _source_direction(s, kmesh, accuracy, ranges, progress)
            for d, arr in arrays.items():
                components[(s, d)] = arr
            points += n
        if pb is not None:
            pb.finish()

    # For single-layer meshes these elements are zero.
    for ij in absent_components(kmesh):
        components[ij] = None

    kernel = DemagKernel(kmesh, components, integration_points=points)
    logger.info("Demag kernel done: {} integration points, {} of kernel data, took {}.".format(
        points, make_human_readable(kernel.nbytes), format_time(time.time() - tic)))
    return kernel


def unit_kernel(mesh):
    """
    Return the identity kernel on the padded `mesh`: the diagonal
    components are 1 at the origin and 0 elsewhere, all other
    components are zero. Convolving with it reproduces the input, which
    is handy for testing the convolution that consumes the kernel.

    """
    kmesh = mesh.padded()
    components = {}
    for ij in UPPER_COMPONENTS:
        components[ij] = kmesh.new_array()
        if ij[0] == ij[1]:
            components[ij][0, 0, 0] = 1.0
    for ij in absent_components(kmesh):
        components[ij] = None
    return DemagKernel(kmesh, components)


class KernelBuilder(object):
    """
    Builds demag kernels with a fixed set of options. Options which are
    not given are read from the [kernel] section of the configuration
    file (see `magkernel.util.configuration`).

    """
    def __init__(self, accuracy=None, processes=None, show_progress=None):
        if accuracy is None:
            accuracy = float(configuration.get_config_option("kernel", "accuracy", "6.0"))
        if processes is None:
            processes = int(configuration.get_config_option("kernel", "processes", "1"))
        if show_progress is None:
            show_progress = configuration.get_config_option(
                "kernel", "show_progress", "False").strip().lower() in ("true", "yes", "1")
        check(np.isfinite(accuracy) and accuracy > 0, "Accuracy must be positive and finite, got {}".format(accuracy))
        self.accuracy = accuracy
        self.processes = processes
        self.show_progress = show_progress

    def build(self, mesh, accuracy=None):
        if accuracy is None:
            accuracy = self.accuracy
        return brute_kernel(mesh, accuracy, processes=self.processes,
                            show_progress=self.show_progress)

    def __repr__(self):
        return "KernelBuilder(accuracy={}, processes={}, show_progress={})".format(
            self.accuracy, self.processes, self.show_progress)
