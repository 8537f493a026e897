"""Seedable per-pixel random streams for Monte Carlo sampling.

Every pixel of a frame owns one independent stream, so the parallel pixel loop
never shares generator state and a fixed seed reproduces a frame bit for bit
regardless of how Taichi schedules the loop.

Each stream is a single ``u32`` word advanced by the PCG output permutation
hash (Jarzynski and Olano, "Hash Functions for GPU Rendering", JCGT 2020).
Streams are seeded by hashing the stream index mixed with the user seed.

Components that need randomness take the stream index as an argument instead
of drawing from an ambient generator:

    >>> @ti.kernel
    ... def sample(stream: ti.i32) -> ti.f32:
    ...     return random_uniform(stream)
"""

import taichi as ti
import taichi.math as tm

# One stream per pixel of the largest supported frame (2048 x 2048)
MAX_STREAMS = 2048 * 2048

_stream_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)

# 2^-24: maps the top 24 bits of a draw onto [0, 1) exactly in f32
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def _pcg_hash(value: ti.u32) -> ti.u32:
    """PCG output permutation hash of a 32-bit word."""
    state = value * ti.u32(747796405) + ti.u32(2891336453)
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(277803737)
    return (word >> ti.u32(22)) ^ word


@ti.kernel
def _seed_streams(seed: ti.u32, count: ti.i32):
    for idx in range(count):
        _stream_state[idx] = _pcg_hash(ti.cast(idx, ti.u32) ^ (seed * ti.u32(0x9E3779B9)))


def seed_streams(seed: int, count: int = MAX_STREAMS) -> None:
    """Reseed the first ``count`` streams from ``seed``.

    Args:
        seed: Any integer; only the low 32 bits are used.
        count: Number of streams to reseed (at most MAX_STREAMS).

    Raises:
        ValueError: If count is outside [1, MAX_STREAMS].
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} is outside [1, {MAX_STREAMS}]")
    _seed_streams(seed & 0xFFFFFFFF, count)


@ti.func
def random_uniform(stream: ti.i32) -> ti.f32:
    """Draw a uniform value in [0, 1) from a stream."""
    state = _pcg_hash(_stream_state[stream])
    _stream_state[stream] = state
    return ti.cast(state >> ti.u32(8), ti.f32) * _INV_2_24


@ti.func
def random_range(stream: ti.i32, low: ti.f32, high: ti.f32) -> ti.f32:
    """Draw a uniform value in [low, high) from a stream."""
    return low + (high - low) * random_uniform(stream)


@ti.func
def random_normal(stream: ti.i32) -> ti.f32:
    """Draw a standard normal value (mean 0, variance 1) from a stream.

    Uses the Box-Muller transform on two uniform draws.
    """
    # 1 - U lies in (0, 1], keeping the logarithm finite
    u1 = 1.0 - random_uniform(stream)
    u2 = random_uniform(stream)
    return ti.sqrt(-2.0 * ti.log(u1)) * ti.cos(2.0 * tm.pi * u2)
