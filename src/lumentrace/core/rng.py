"""Counter-based random streams for reproducible parallel sampling.

Every sample of every pixel gets its own stream. The starting state is a hash
of (seed, pixel index, sample index), and the state is advanced with a
32-bit xorshift generator. Each function takes the current state and returns
the updated one, so the stream is threaded explicitly through every call that
consumes randomness.

Because no stream is shared, results do not depend on how pixels are
scheduled across threads or kernel launches, and a fixed seed reproduces a
render bit for bit.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_stream(ti.u32(42), 0, 0)
    ...     value, state = next_float(state)
    ...     return value
"""

import taichi as ti


@ti.func
def wang_hash(value: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Thomas Wang's integer hash).

    Args:
        value: The integer to hash.

    Returns:
        A well-mixed 32-bit integer.
    """
    h = (value ^ ti.u32(61)) ^ (value >> ti.u32(16))
    h = h * ti.u32(9)
    h = h ^ (h >> ti.u32(4))
    h = h * ti.u32(0x27D4EB2D)
    h = h ^ (h >> ti.u32(15))
    return h


@ti.func
def seed_stream(seed: ti.u32, pixel_index: ti.i32, sample_index: ti.i32) -> ti.u32:
    """Derive the starting state of the stream for one pixel sample.

    Args:
        seed: Root seed of the render.
        pixel_index: Linear pixel index (row * width + column).
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero xorshift state.
    """
    state = wang_hash(ti.cast(sample_index, ti.u32))
    state = wang_hash(ti.cast(pixel_index, ti.u32) ^ state)
    state = wang_hash(seed ^ state)
    # xorshift has a fixed point at zero
    if state == ti.u32(0):
        state = ti.u32(1)
    return state


@ti.func
def next_u32(state: ti.u32) -> ti.u32:
    """Advance a xorshift32 state by one step."""
    x = state
    x = x ^ (x << ti.u32(13))
    x = x ^ (x >> ti.u32(17))
    x = x ^ (x << ti.u32(5))
    return x


@ti.func
def next_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Args:
        state: Current stream state.

    Returns:
        A tuple (value, new_state). The value uses the top 24 bits of the
        state so it is exactly representable in float32 and never equals 1.
    """
    new_state = next_u32(state)
    value = ti.cast(new_state >> ti.u32(8), ti.f32) * (1.0 / 16777216.0)
    return value, new_state
