"""Unit tests for the emissive material."""

import pytest
import taichi as ti


class TestEmitted:
    """Tests for emitted()."""

    def test_emissive_returns_color(self):
        from lumentrace.materials import MaterialKind, emitted

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            color = ti.math.vec3(15.0, 12.0, 4.0)
            result[0] = emitted(int(MaterialKind.EMISSIVE), color)
            result[1] = emitted(int(MaterialKind.LAMBERTIAN), color)

        test_kernel()
        r = result.to_numpy()
        assert tuple(r[0]) == (15.0, 12.0, 4.0)
        assert (r[1] == 0.0).all()


class TestEmissiveConstruction:
    """Tests for the host-side Emissive value."""

    def test_hdr_color_allowed(self):
        from lumentrace.materials import Emissive

        light = Emissive((15.0, 15.0, 15.0))
        assert light.device_params() == ((15.0, 15.0, 15.0), 0.0)

    @pytest.mark.parametrize(
        "color", [(-1.0, 0.0, 0.0), (float("inf"), 1.0, 1.0), (1e39, 1.0, 1.0)]
    )
    def test_invalid_color_raises(self, color):
        from lumentrace.errors import InvalidMaterialError
        from lumentrace.materials import Emissive

        with pytest.raises(InvalidMaterialError):
            Emissive(color)
