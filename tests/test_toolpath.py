"""Surface raster and rotary sweep planning."""

from __future__ import annotations

import pytest

from probescan.config import RotaryScanParameters, ScanParameters
from probescan.errors import ValidationError
from probescan.toolpath import angles, plan_rotary, plan_surface


def test_small_grid_is_serpentine(small_grid) -> None:
    points = plan_surface(small_grid)
    assert [(p.x, p.y) for p in points] == [
        (0.0, 0.0), (0.5, 0.0), (1.0, 0.0),
        (1.0, 0.5), (0.5, 0.5), (0.0, 0.5),
        (0.0, 1.0), (0.5, 1.0), (1.0, 1.0),
    ]
    assert [p.index for p in points] == list(range(1, 10))
    assert all(p.z is None for p in points)


def test_grid_counts_and_bounds() -> None:
    params = ScanParameters(start_x=0, start_y=0, end_x=10, end_y=10, spacing=1)
    points = plan_surface(params)
    assert params.x_count == params.y_count == 11
    assert len(points) == params.total_points == 121
    assert all(0 <= p.x <= 10 and 0 <= p.y <= 10 for p in points)


def test_rows_alternate_direction() -> None:
    params = ScanParameters(start_x=1.0, start_y=2.0, end_x=3.0, end_y=4.0, spacing=0.25)
    points = plan_surface(params)
    rows = [points[i:i + params.x_count] for i in range(0, len(points), params.x_count)]
    for n, row in enumerate(rows):
        xs = [p.x for p in row]
        assert xs == sorted(xs, reverse=n % 2 == 1)
        assert len({p.y for p in row}) == 1


def test_uneven_spacing_undershoots_end() -> None:
    params = ScanParameters(start_x=0, start_y=0, end_x=1.0, end_y=0.3, spacing=0.3)
    points = plan_surface(params)
    assert params.x_count == 4
    assert params.y_count == 2
    assert max(p.x for p in points) == pytest.approx(0.9)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(start_x=1, start_y=0, end_x=1, end_y=1, spacing=0.5),
        dict(start_x=2, start_y=0, end_x=1, end_y=1, spacing=0.5),
        dict(start_x=0, start_y=1, end_x=1, end_y=0, spacing=0.5),
        dict(start_x=0, start_y=0, end_x=1, end_y=1, spacing=0),
        dict(start_x=0, start_y=0, end_x=1, end_y=1, spacing=-0.5),
    ],
)
def test_surface_validation_rejects(kwargs) -> None:
    with pytest.raises(ValidationError):
        plan_surface(ScanParameters(**kwargs))


def test_point_cap() -> None:
    params = ScanParameters(start_x=0, start_y=0, end_x=100, end_y=100, spacing=0.1)
    assert params.total_points == 1_002_001
    with pytest.raises(ValidationError, match="Too many points"):
        plan_surface(params)


def test_custom_cap() -> None:
    params = ScanParameters(start_x=0, start_y=0, end_x=10, end_y=10, spacing=1)
    with pytest.raises(ValidationError):
        plan_surface(params, max_points=100)


def test_rotary_sweep_is_angle_major() -> None:
    params = RotaryScanParameters(start=0.0, end=1.0, spacing=0.5, angle_step=90)
    points = plan_rotary(params)
    assert params.num_angles == 4
    assert len(points) == 12
    assert [p.index for p in points] == list(range(1, 13))
    assert [p.a for p in points] == [0.0] * 3 + [90.0] * 3 + [180.0] * 3 + [270.0] * 3
    assert [p.x for p in points[:3]] == [0.0, 0.5, 1.0]
    assert all(p.b == 0.0 and p.y == 0.0 for p in points)


def test_rotary_on_b_along_y() -> None:
    params = RotaryScanParameters(start=2.0, end=3.0, spacing=1.0, angle_step=120, axis="y", rotary_axis="b")
    points = plan_rotary(params)
    assert params.axis == "Y" and params.rotary_axis == "B"
    assert [(p.y, p.b) for p in points] == [
        (2.0, 0.0), (3.0, 0.0), (2.0, 120.0), (3.0, 120.0), (2.0, 240.0), (3.0, 240.0),
    ]
    assert all(p.x == 0.0 and p.a == 0.0 for p in points)


def test_rotary_angles_never_reach_full_turn() -> None:
    params = RotaryScanParameters(start=0, end=1, spacing=1, angle_step=7)
    values = angles(params)
    assert len(values) == 51
    assert values == [k * 7 for k in range(51)]
    assert max(values) < 360


def test_rotary_angles_have_no_drift() -> None:
    params = RotaryScanParameters(start=0, end=1, spacing=1, angle_step=0.1)
    points = plan_rotary(params)
    assert params.num_angles == 3600
    assert points[-1].a == 3599 * 0.1
    assert points[-1].a < 360


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(start=1, end=1, spacing=0.5, angle_step=90),
        dict(start=0, end=1, spacing=0, angle_step=90),
        dict(start=0, end=1, spacing=0.5, angle_step=0),
        dict(start=0, end=1, spacing=0.5, angle_step=400),
        dict(start=0, end=1, spacing=0.5, angle_step=90, axis="Z"),
        dict(start=0, end=1, spacing=0.5, angle_step=90, rotary_axis="C"),
        dict(start=0, end=100, spacing=1, angle_step=1),
    ],
)
def test_rotary_validation_rejects(kwargs) -> None:
    with pytest.raises(ValidationError):
        plan_rotary(RotaryScanParameters(**kwargs))


def test_inexact_spacing_stays_inside_area() -> None:
    params = ScanParameters(start_x=0, start_y=0, end_x=0.3, end_y=0.3, spacing=0.1)
    points = plan_surface(params)
    assert len(points) == 16
    assert all(0 <= p.x <= 0.3 and 0 <= p.y <= 0.3 for p in points)
    assert max(p.x for p in points) == 0.3
    assert max(p.y for p in points) == 0.3


def test_inexact_rotary_spacing_stays_inside_range() -> None:
    params = RotaryScanParameters(start=0, end=0.7, spacing=0.1, angle_step=180)
    points = plan_rotary(params)
    assert params.linear_count == 8
    assert all(0 <= p.x <= 0.7 for p in points)
    assert max(p.x for p in points) == 0.7
