"""Unit tests for the per-sample random streams.

Tests cover:
- Seeding is a pure function of (seed, pixel, sample)
- Different coordinates give different streams
- Draws lie in [0, 1) and are roughly uniform
"""

import taichi as ti


class TestSeedStream:
    """Tests for seed_stream()."""

    def test_same_coordinates_same_state(self):
        """Seeding twice with the same inputs gives the same state."""
        from lumentrace.core.rng import seed_stream

        result = ti.field(dtype=ti.u32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = seed_stream(ti.u32(1234), 17, 3)
            result[1] = seed_stream(ti.u32(1234), 17, 3)

        test_kernel()
        assert result[0] == result[1]
        assert result[0] != 0

    def test_different_coordinates_differ(self):
        """Changing any of seed, pixel or sample changes the state."""
        from lumentrace.core.rng import seed_stream

        result = ti.field(dtype=ti.u32, shape=4)

        @ti.kernel
        def test_kernel():
            result[0] = seed_stream(ti.u32(7), 0, 0)
            result[1] = seed_stream(ti.u32(8), 0, 0)
            result[2] = seed_stream(ti.u32(7), 1, 0)
            result[3] = seed_stream(ti.u32(7), 0, 1)

        test_kernel()
        states = [int(result[i]) for i in range(4)]
        assert len(set(states)) == 4

    def test_state_is_never_zero(self):
        """xorshift state is kept away from its zero fixed point."""
        from lumentrace.core.rng import seed_stream

        n = 4096
        result = ti.field(dtype=ti.u32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                result[i] = seed_stream(ti.u32(0), i, 0)

        test_kernel()
        assert (result.to_numpy() != 0).all()


class TestNextFloat:
    """Tests for next_float()."""

    def test_values_in_unit_interval(self):
        """Every draw lies in [0, 1)."""
        from lumentrace.core.rng import next_float, seed_stream

        n = 10000
        result = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                state = seed_stream(ti.u32(99), 0, 0)
                for i in range(n):
                    value, state = next_float(state)
                    result[i] = value

        test_kernel()
        values = result.to_numpy()
        assert values.min() >= 0.0
        assert values.max() < 1.0

    def test_roughly_uniform(self):
        """The mean of many draws, one per stream, is close to 0.5."""
        from lumentrace.core.rng import next_float, seed_stream

        n = 20000
        result = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                state = seed_stream(ti.u32(5), i, 0)
                value, state = next_float(state)
                result[i] = value

        test_kernel()
        values = result.to_numpy()
        assert abs(values.mean() - 0.5) < 0.02
        # Each decile should hold roughly a tenth of the draws
        counts = [((values >= k / 10) & (values < (k + 1) / 10)).sum() for k in range(10)]
        assert min(counts) > n * 0.08
        assert max(counts) < n * 0.12

    def test_state_advances(self):
        """Successive draws from one stream differ."""
        from lumentrace.core.rng import next_float, seed_stream

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            state = seed_stream(ti.u32(3), 5, 0)
            a, state = next_float(state)
            b, state = next_float(state)
            result[0] = a
            result[1] = b

        test_kernel()
        assert result[0] != result[1]
