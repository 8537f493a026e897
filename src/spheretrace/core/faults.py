"""Geometry fault counter shared by all kernels.

Degenerate geometry (normalizing a zero-length vector, a glass hit whose
cosine comes out negative, a material kind the dispatcher does not know)
never crashes a release-mode kernel, but it silently corrupts the image.
Kernels therefore bump a counter whenever they detect one, and the frame
renderer refuses to hand over an image once the counter is non-zero.

Under ``ti.init(debug=True)`` the same checks also trip kernel assertions,
which stop the offending kernel immediately.
"""

import taichi as ti

# Number of degenerate-geometry events recorded since the last clear
_fault_count = ti.field(dtype=ti.i32, shape=())


@ti.func
def record_fault():
    """Count one geometry fault (safe to call from parallel kernels)."""
    ti.atomic_add(_fault_count[None], 1)


def clear_faults() -> None:
    """Reset the fault counter to zero."""
    _fault_count[None] = 0


def get_fault_count() -> int:
    """Get the number of faults recorded since the last clear."""
    return int(_fault_count[None])
