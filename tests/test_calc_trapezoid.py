"""Tests for the calc_trapezoid module"""

import math

import numpy as np
import pytest
from pulsetree import Infeasible, PrepareError, calc_trapezoid, calculate_shortest_trapezoid, convert, trapezoid_value
from pulsetree.calc_trapezoid import calculate_slopes
from pulsetree.prepare_report import ConstraintConflict, MissingDependentConstraint


def trap_area(shape):
    return shape.amplitude * (shape.ramp_up_time / 2 + shape.flat_top_time + shape.ramp_dn_time / 2)


@pytest.mark.parametrize(
    'area, max_grad, max_slew, asymmetry',
    [
        (10, 2, 100, 0),
        (-10, 2, 100, 0),
        (0.01, 2, 100, 0),
        (-0.003, 2, 100, 0),
        (5, 2, 100, 0.5),
        (5, 2, 100, -2),
        (-3, 1, 10, 3),
        (1000, 1.7e6, 7.2e9, 0),
    ],
)
def test_area_reconstruction(area, max_grad, max_slew, asymmetry):
    shape = calculate_shortest_trapezoid(area, max_grad, max_slew, asymmetry)

    assert trap_area(shape) == pytest.approx(area, rel=1e-9)
    assert abs(shape.amplitude) <= max_grad * (1 + 1e-12)
    assert math.copysign(1, shape.amplitude) == math.copysign(1, area)
    assert shape.duration == pytest.approx(shape.ramp_up_time + shape.flat_top_time + shape.ramp_dn_time)
    assert shape.time_to_ramp_dn == pytest.approx(shape.ramp_up_time + shape.flat_top_time)


def test_zero_area():
    shape = calc_trapezoid(area=0, max_grad=2, max_slew=100)

    assert shape.amplitude == 0
    assert shape.ramp_up_time == 0
    assert shape.flat_top_time == 0
    assert shape.ramp_dn_time == 0
    assert shape.duration == 0
    assert trapezoid_value(shape, 1.0) == 0


def test_zero_area_with_duration():
    shape = calc_trapezoid(area=0, duration=1, max_grad=2, max_slew=100)
    assert shape.duration == 0


def test_triangle_trapezoid_boundary():
    _, _, dc = calculate_slopes(1, 100)
    area = 2 * 2 * dc
    shape = calculate_shortest_trapezoid(area, 2, 100)

    assert shape.flat_top_time == 0
    assert shape.amplitude == pytest.approx(2)

    # Just above the boundary the flat top grows continuously from zero
    shape = calculate_shortest_trapezoid(area * (1 + 1e-9), 2, 100)
    assert shape.amplitude == 2
    assert shape.flat_top_time == pytest.approx(0, abs=1e-9)


def test_triangle():
    shape = calc_trapezoid(area=0.01, max_grad=2, max_slew=100)

    assert shape.amplitude == pytest.approx(1)
    assert shape.flat_top_time == 0
    assert shape.ramp_up_time == pytest.approx(0.01)
    assert shape.ramp_dn_time == pytest.approx(0.01)


def test_area_10_max_grad_2_slew_100():
    _, _, dc = calculate_slopes(1, 100)
    assert dc == pytest.approx(0.01)
    # 10 > 2**2 * dC: trapezoid branch
    assert 10 > 2**2 * dc

    shape = calc_trapezoid(area=10, max_grad=2, max_slew=100)

    assert shape.amplitude == 2
    assert shape.slope_up == 100
    assert shape.slope_dn == -100
    assert shape.ramp_up_time == pytest.approx(0.02)
    assert shape.ramp_dn_time == pytest.approx(0.02)
    assert shape.flat_top_area == pytest.approx(10 - 4 * 0.01)
    assert shape.flat_top_time == pytest.approx(4.98)
    assert shape.duration == pytest.approx(5.02)


def test_negative_area_slopes():
    shape = calc_trapezoid(area=-10, max_grad=2, max_slew=100)

    assert shape.amplitude == -2
    assert shape.slope_up == -100
    assert shape.slope_dn == 100
    assert trapezoid_value(shape, 0.01) == pytest.approx(-1)


def test_asymmetric_slopes():
    shape = calc_trapezoid(area=10, max_grad=2, max_slew=100, asymmetry=2)
    assert shape.slope_up == 200
    assert shape.slope_dn == -100
    assert shape.ramp_up_time == pytest.approx(0.01)
    assert shape.ramp_dn_time == pytest.approx(0.02)

    shape = calc_trapezoid(area=10, max_grad=2, max_slew=100, asymmetry=-0.5)
    assert shape.slope_up == 100
    assert shape.slope_dn == -50
    assert shape.ramp_dn_time == pytest.approx(0.04)


@pytest.mark.parametrize('duration', [5.02, 6, 12.5, 100])
def test_fixed_duration(duration):
    shape = calc_trapezoid(area=10, duration=duration, max_grad=2, max_slew=100)

    assert shape.duration == pytest.approx(duration, rel=1e-12)
    assert trap_area(shape) == pytest.approx(10, rel=1e-9)
    assert shape.amplitude <= 2


@pytest.mark.parametrize('duration', [0.02, 0.05])
def test_fixed_duration_triangle(duration):
    shape = calc_trapezoid(area=0.01, duration=duration, max_grad=2, max_slew=100)

    assert shape.duration == pytest.approx(duration, rel=1e-9)
    assert trap_area(shape) == pytest.approx(0.01, rel=1e-9)


def test_fixed_duration_too_short():
    with pytest.raises(Infeasible, match='requested duration .* too short') as excinfo:
        calc_trapezoid(area=10, duration=5, max_grad=2, max_slew=100)
    assert excinfo.value.attribute == 'Duration'


def test_fixed_flat_time():
    shape = calc_trapezoid(flat_area=6, flat_time=6, max_grad=2, max_slew=100)

    assert shape.amplitude == pytest.approx(1)
    assert shape.flat_top_time == pytest.approx(6)
    assert shape.flat_top_area == pytest.approx(6)
    assert shape.ramp_up_time == pytest.approx(0.01)
    assert shape.duration == pytest.approx(6.02)


def test_fixed_flat_time_at_limit():
    shape = calc_trapezoid(flat_area=-9.96, flat_time=4.98, max_grad=2, max_slew=100)

    assert shape.amplitude == pytest.approx(-2)
    assert shape.flat_top_time == pytest.approx(4.98)


def test_fixed_flat_time_too_short():
    with pytest.raises(Infeasible, match='requested FlatTopTime .* too short') as excinfo:
        calc_trapezoid(flat_area=6, flat_time=2, max_grad=2, max_slew=100)
    assert excinfo.value.attribute == 'FlatTopTime'


def test_flat_area_only():
    shape = calc_trapezoid(flat_area=6, max_grad=2, max_slew=100)

    assert shape.amplitude == 2
    assert shape.flat_top_area == pytest.approx(6)
    assert shape.flat_top_time == pytest.approx(3)


def test_flat_area_with_duration():
    shape = calc_trapezoid(flat_area=6, duration=6.02, max_grad=2, max_slew=100)

    assert shape.amplitude == pytest.approx(1)
    assert shape.flat_top_area == pytest.approx(6)
    assert shape.duration == pytest.approx(6.02)


@pytest.mark.parametrize('duration', [3, 0.1])
def test_flat_area_with_duration_infeasible(duration):
    with pytest.raises(Infeasible):
        calc_trapezoid(flat_area=6, duration=duration, max_grad=2, max_slew=100)


def test_invalid_input_sets():
    with pytest.raises(ConstraintConflict, match="set only one of 'Area' and 'FlatTopArea'"):
        calc_trapezoid(area=1, flat_area=1)
    with pytest.raises(ConstraintConflict, match="set only one of 'Duration' and 'FlatTopTime'"):
        calc_trapezoid(flat_area=1, duration=1, flat_time=1)
    with pytest.raises(MissingDependentConstraint, match="'FlatTopTime' needs also 'FlatTopArea'"):
        calc_trapezoid(area=1, flat_time=1)
    with pytest.raises(ValueError, match="Must supply either 'area' or 'flat_area'."):
        calc_trapezoid()


def test_evaluator_continuity():
    shape = calc_trapezoid(area=10, max_grad=2, max_slew=100)
    delta = 1e-12

    for knot in (shape.ramp_up_time, shape.time_to_ramp_dn):
        before = trapezoid_value(shape, knot - delta)
        after = trapezoid_value(shape, knot + delta)
        assert before == pytest.approx(shape.amplitude, rel=1e-9)
        assert after == pytest.approx(shape.amplitude, rel=1e-9)

    assert trapezoid_value(shape, 0) == 0
    assert trapezoid_value(shape, shape.duration) == pytest.approx(0, abs=1e-12)


def test_evaluator_array():
    shape = calc_trapezoid(area=10, max_grad=2, max_slew=100)
    t = np.array([0.0, 0.01, 0.02, 2.5, 5.0, 5.01, 5.02])

    values = trapezoid_value(shape, t)

    assert isinstance(values, np.ndarray)
    np.testing.assert_allclose(values, [0, 1, 2, 2, 2, 1, 0], atol=1e-9)
    assert isinstance(trapezoid_value(shape, 0.01), float)


def test_ideal_slew_instant_ramps():
    shape = calc_trapezoid(area=10, max_grad=2, max_slew=1e4, ideal_slew=1000)

    assert shape.instant_up
    assert shape.instant_dn
    # Ramp times are still book-kept
    assert shape.ramp_up_time == pytest.approx(2e-4)
    assert shape.duration == pytest.approx(2e-4 + shape.flat_top_time + 2e-4)
    assert trapezoid_value(shape, 1e-4) == 2
    assert trapezoid_value(shape, shape.duration - 1e-4) == 2


def test_ideal_slew_one_ramp():
    shape = calc_trapezoid(area=10, max_grad=2, max_slew=100, asymmetry=20, ideal_slew=1000)

    assert shape.instant_up
    assert not shape.instant_dn
    assert trapezoid_value(shape, shape.ramp_up_time / 2) == 2
    assert trapezoid_value(shape, shape.time_to_ramp_dn + 0.01) == pytest.approx(1)


def test_ideal_slew_at_threshold():
    # A slew rate of exactly the default 1000 T/m/s asks for a constant gradient
    shape = calc_trapezoid(area=10, max_grad=2, max_slew=convert(1000, 'T/m/s'))

    assert shape.instant_up
    assert shape.instant_dn
    assert trapezoid_value(shape, shape.ramp_up_time / 2) == 2


@pytest.mark.parametrize(
    'max_grad, max_slew, attribute',
    [(0, 100, 'MaxAmpl'), (-2, 100, 'MaxAmpl'), (2, 0, 'SlewRate'), (2, -100, 'SlewRate')],
)
def test_non_positive_limits(max_grad, max_slew, attribute):
    with pytest.raises(PrepareError, match='must be positive') as excinfo:
        calc_trapezoid(area=10, max_grad=max_grad, max_slew=max_slew)
    assert excinfo.value.attribute == attribute
