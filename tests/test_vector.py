"""Unit tests for the host-side Vector3 value type."""

import math

import pytest

from lumentrace.core.vector import Vector3
from lumentrace.errors import DegenerateVectorError


class TestVectorArithmetic:
    """Tests for Vector3 operators."""

    def test_add_sub_neg(self):
        a = Vector3(1.0, 2.0, 3.0)
        b = Vector3(0.5, -1.0, 2.0)
        assert a + b == Vector3(1.5, 1.0, 5.0)
        assert a - b == Vector3(0.5, 3.0, 1.0)
        assert -a == Vector3(-1.0, -2.0, -3.0)

    def test_scale_and_divide(self):
        a = Vector3(1.0, -2.0, 4.0)
        assert a * 2.0 == Vector3(2.0, -4.0, 8.0)
        assert 2.0 * a == Vector3(2.0, -4.0, 8.0)
        assert a / 2.0 == Vector3(0.5, -1.0, 2.0)

    def test_hadamard(self):
        assert Vector3(0.5, 1.0, 0.0).hadamard(Vector3(0.2, 0.3, 0.9)) == Vector3(0.1, 0.3, 0.0)

    def test_dot_and_cross(self):
        x = Vector3(1.0, 0.0, 0.0)
        y = Vector3(0.0, 1.0, 0.0)
        assert x.dot(y) == 0.0
        assert x.cross(y) == Vector3(0.0, 0.0, 1.0)
        assert y.cross(x) == Vector3(0.0, 0.0, -1.0)

    def test_length(self):
        v = Vector3(3.0, 4.0, 12.0)
        assert v.length_squared() == 169.0
        assert v.length() == 13.0

    def test_immutable(self):
        v = Vector3(1.0, 2.0, 3.0)
        with pytest.raises(AttributeError):
            v.x = 5.0  # type: ignore[misc]

    def test_iteration_and_indexing(self):
        v = Vector3(1.0, 2.0, 3.0)
        assert list(v) == [1.0, 2.0, 3.0]
        assert v[2] == 3.0
        assert v.as_tuple() == (1.0, 2.0, 3.0)

    def test_of_coerces_sequences(self):
        assert Vector3.of((1, 2, 3)) == Vector3(1.0, 2.0, 3.0)
        with pytest.raises(ValueError):
            Vector3.of((1.0, 2.0))


class TestNormalization:
    """Normalization either succeeds or fails explicitly, never yields NaN."""

    def test_normalized_unit_length(self):
        n = Vector3(0.0, 3.0, 4.0).normalized()
        assert math.isclose(n.length(), 1.0)
        assert math.isclose(n.y, 0.6)

    def test_zero_vector_raises(self):
        with pytest.raises(DegenerateVectorError):
            Vector3.zero().normalized()

    def test_non_finite_raises(self):
        with pytest.raises(DegenerateVectorError):
            Vector3(float("nan"), 0.0, 1.0).normalized()
        with pytest.raises(DegenerateVectorError):
            Vector3(float("inf"), 0.0, 1.0).normalized()

    def test_is_finite(self):
        assert Vector3(1.0, 2.0, 3.0).is_finite()
        assert not Vector3(1.0, float("nan"), 3.0).is_finite()

    def test_fits_float32(self):
        assert Vector3(3.0e38, -3.0e38, 0.0).fits_float32()
        assert Vector3(1e39, 0.0, 0.0).is_finite()
        assert not Vector3(1e39, 0.0, 0.0).fits_float32()
        assert not Vector3(0.0, float("inf"), 0.0).fits_float32()

    def test_degenerate_vector_error_is_value_error(self):
        with pytest.raises(ValueError):
            Vector3(0.0, 0.0, 0.0).normalized()
