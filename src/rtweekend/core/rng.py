"""Per-pixel random number streams for Taichi kernels.

Every pixel owns an independent stream so that parallel workers never share
generator state. A stream is a combined multiple-recursive generator
(L'Ecuyer, 1988): two 31-bit Lehmer generators whose difference has a period
of roughly 2.3e18. All intermediate products fit in 64 bits, so the
generator runs unchanged on every Taichi backend.

Streams are seeded from the host with a NumPy generator keyed on the run
seed, which makes the seed of a stream a pure function of (seed, stream id)
and renders reproducible for a fixed seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.rtweekend.core.rng import seed_streams, random_double
    >>> seed_streams(seed=7, count=64 * 64)
    >>> # Inside a kernel: x = random_double(stream)  # x in [0, 1)
"""

import numpy as np
import taichi as ti

from src.rtweekend.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH

# Lehmer generator constants from L'Ecuyer's combined generator
_M1 = 2147483563
_A1 = 40014
_M2 = 2147483399
_A2 = 40692

# One stream per pixel of the largest supported image
MAX_STREAMS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

_state_a = ti.field(dtype=ti.i64, shape=MAX_STREAMS)
_state_b = ti.field(dtype=ti.i64, shape=MAX_STREAMS)


@ti.kernel
def _load_states(
    states_a: ti.types.ndarray(dtype=ti.i64, ndim=1),
    states_b: ti.types.ndarray(dtype=ti.i64, ndim=1),
    count: ti.i32,
):
    for k in range(count):
        _state_a[k] = states_a[k]
        _state_b[k] = states_b[k]


def seed_streams(seed: int | None, count: int) -> None:
    """Seed the first ``count`` random streams.

    Args:
        seed: Run seed. ``None`` draws fresh entropy from the operating system.
        count: Number of streams to seed (usually width * height).

    Raises:
        ValueError: If count is not in [1, MAX_STREAMS].
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} outside [1, {MAX_STREAMS}]")

    generator = np.random.default_rng(seed)
    # Both states must be non-zero and below their modulus
    states_a = generator.integers(1, _M1, size=count, dtype=np.int64)
    states_b = generator.integers(1, _M2, size=count, dtype=np.int64)
    _load_states(states_a, states_b, count)


@ti.func
def random_double(stream: ti.i32) -> ti.f64:
    """Draw a uniform double in [0, 1) from a stream.

    Args:
        stream: The stream id (the pixel index inside render kernels).

    Returns:
        A uniformly distributed value in [0, 1).
    """
    a = (_state_a[stream] * _A1) % _M1
    b = (_state_b[stream] * _A2) % _M2
    _state_a[stream] = a
    _state_b[stream] = b

    z = a - b
    if z < 1:
        z += _M1 - 1
    return ti.cast(z - 1, ti.f64) / ti.cast(_M1 - 1, ti.f64)


@ti.func
def random_range(stream: ti.i32, low: ti.f64, high: ti.f64) -> ti.f64:
    """Draw a uniform double in [low, high) from a stream."""
    return low + (high - low) * random_double(stream)
