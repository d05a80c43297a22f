"""Tests for vector and angle helpers."""
from __future__ import annotations

import math

import numpy as np
import pytest

from orbclear.utils.geometry import (
    PositionVector,
    angular_separation_deg,
    centroid,
    distance,
    eci_to_ecef,
    normalize_to_visual_radius,
    visual_radius_for_altitude,
    wrap_angle_degrees,
)


@pytest.fixture
def points() -> list[PositionVector]:
    rng = np.random.default_rng(3)
    return [PositionVector.from_array(rng.uniform(-8000, 8000, 3)) for _ in range(12)]


class TestDistance:
    def test_symmetric(self, points: list[PositionVector]) -> None:
        for a in points:
            for b in points:
                assert distance(a, b) == distance(b, a)

    def test_identity(self, points: list[PositionVector]) -> None:
        for a in points:
            assert distance(a, a) == 0.0

    def test_triangle_inequality(self, points: list[PositionVector]) -> None:
        for a in points:
            for b in points:
                for c in points[:4]:
                    assert distance(a, c) <= distance(a, b) + distance(b, c) + 1e-9

    def test_known_value(self) -> None:
        assert distance(PositionVector(0, 0, 0), PositionVector(3, 4, 12)) == pytest.approx(13.0)


class TestPositionVector:
    def test_zero_is_invalid(self) -> None:
        assert not PositionVector.zero().is_valid()

    def test_nan_is_invalid(self) -> None:
        assert not PositionVector(float("nan"), 1.0, 1.0).is_valid()

    def test_regular_is_valid(self) -> None:
        assert PositionVector(7000.0, 0.0, 0.0).is_valid()

    def test_centroid(self) -> None:
        c = centroid([PositionVector(0, 0, 0), PositionVector(2, 4, 6)])
        assert c == PositionVector(1.0, 2.0, 3.0)

    def test_centroid_empty_raises(self) -> None:
        with pytest.raises(ValueError):
            centroid([])


class TestNormalize:
    def test_preserves_direction(self) -> None:
        v = normalize_to_visual_radius(PositionVector(3.0, 0.0, 4.0), 10.0)
        np.testing.assert_allclose(v.as_array(), [6.0, 0.0, 8.0])

    def test_zero_input_gives_zero(self) -> None:
        assert normalize_to_visual_radius(PositionVector.zero(), 1.5) == PositionVector.zero()

    def test_visual_radius_clamped(self) -> None:
        assert visual_radius_for_altitude(100.0) == pytest.approx(1.02)
        assert visual_radius_for_altitude(5000.0) == pytest.approx(1.27)
        assert 1.02 < visual_radius_for_altitude(700.0) < 1.27


class TestAngles:
    @pytest.mark.parametrize(
        "value, expected",
        [(0.0, 0.0), (190.0, -170.0), (-190.0, 170.0), (358.0, -2.0), (720.0, 0.0)],
    )
    def test_wrap(self, value: float, expected: float) -> None:
        assert wrap_angle_degrees(value) == pytest.approx(expected)

    def test_wrap_range(self) -> None:
        for v in np.linspace(-1000, 1000, 97):
            assert -180.0 <= wrap_angle_degrees(float(v)) <= 180.0

    def test_separation_across_zero(self) -> None:
        assert angular_separation_deg(359.0, 1.0) == pytest.approx(2.0)
        assert angular_separation_deg(1.0, 359.0) == pytest.approx(2.0)


def test_eci_to_ecef_rotates_by_gmst() -> None:
    r = eci_to_ecef(np.array([7000.0, 0.0, 0.0]), math.pi / 2)
    np.testing.assert_allclose(r, [0.0, -7000.0, 0.0], atol=1e-9)
