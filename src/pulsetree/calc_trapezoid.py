import math
from types import SimpleNamespace
from typing import Literal, Tuple, Union

import numpy as np

from pulsetree import eps
from pulsetree.opts import Opts
from pulsetree.prepare_report import ConstraintConflict, Infeasible, MissingDependentConstraint, PrepareError

# Relative slack when comparing a requested time against the shortest achievable one.
_REL_TOL = 1e-12


def zero_trapezoid(area: float = 0.0) -> SimpleNamespace:
    shape = SimpleNamespace()
    shape.type = 'trap'
    shape.area = area
    shape.amplitude = 0.0
    shape.slope_up = 0.0
    shape.slope_dn = 0.0
    shape.ramp_up_time = 0.0
    shape.flat_top_time = 0.0
    shape.ramp_dn_time = 0.0
    shape.time_to_ramp_dn = 0.0
    shape.flat_top_area = 0.0
    shape.duration = 0.0
    shape.instant_up = False
    shape.instant_dn = False
    return shape


def calculate_slopes(sign: float, max_slew: float, asymmetry: float = 0) -> Tuple[float, float, float]:
    """
    Signed ramp slopes of a trapezoid and the combined ramp-time constant `dC`.

    Parameters
    ----------
    sign : float
        Sign of the gradient area, +1 or -1.
    max_slew : float
        Maximum slew rate (Hz/m/s).
    asymmetry : float, default=0
        A positive value scales the ramp-up slope, a negative value scales the ramp-down slope by its magnitude.

    Returns
    -------
    slope_up : float
    slope_dn : float
    dc : float
        `1 / (2 |slope_up|) + 1 / (2 |slope_dn|)`; the ramps of a trapezoid with amplitude `A` carry an area of
        `A**2 * dc`.
    """
    slope_up = sign * max_slew
    slope_dn = -sign * max_slew
    if asymmetry > 0:
        slope_up *= asymmetry
    if asymmetry < 0:
        slope_dn *= abs(asymmetry)

    dc = 1 / abs(2 * slope_up) + 1 / abs(2 * slope_dn)
    return slope_up, slope_dn, dc


def calculate_shortest_trapezoid(
    area: float,
    max_grad: float,
    max_slew: float,
    asymmetry: float = 0,
    ideal_slew: Union[float, None] = None,
) -> SimpleNamespace:
    """
    Calculate the trapezoid of shortest duration sweeping `area` within the amplitude and slew rate limits.

    Parameters
    ----------
    area : float
        Signed gradient area (1/m).
    max_grad : float
        Maximum gradient amplitude (Hz/m).
    max_slew : float
        Maximum slew rate (Hz/m/s).
    asymmetry : float, default=0
        Slew rate asymmetry, see `calculate_slopes()`.
    ideal_slew : float, default=None
        Ramps at least this steep are evaluated as instantaneous. Defaults to `Opts.default.ideal_slew`.

    Returns
    -------
    shape : SimpleNamespace
        Trapezoid shape. A triangle (no flat top) is returned when `|area| <= max_grad**2 * dc`.
    """
    if area == 0:
        return zero_trapezoid()

    if ideal_slew is None:
        ideal_slew = Opts.default.ideal_slew

    abs_area = abs(area)
    sign = math.copysign(1.0, area)
    slope_up, slope_dn, dc = calculate_slopes(sign, max_slew, asymmetry)

    if abs_area <= max_grad * max_grad * dc:
        # Triangle
        flat_top_area = 0.0
        amplitude = sign * math.sqrt(abs_area / dc)
    else:
        flat_top_area = sign * (abs_area - max_grad * max_grad * dc)
        amplitude = sign * max_grad

    shape = zero_trapezoid(area)
    shape.amplitude = amplitude
    shape.slope_up = slope_up
    shape.slope_dn = slope_dn
    shape.ramp_up_time = abs(amplitude / slope_up)
    shape.ramp_dn_time = abs(amplitude / slope_dn)
    shape.flat_top_time = abs(flat_top_area / amplitude)
    shape.flat_top_area = flat_top_area
    shape.time_to_ramp_dn = shape.ramp_up_time + shape.flat_top_time
    shape.duration = shape.ramp_up_time + shape.flat_top_time + shape.ramp_dn_time
    shape.instant_up = abs(slope_up) >= ideal_slew
    shape.instant_dn = abs(slope_dn) >= ideal_slew
    return shape


def _positive_root(a: float, b: float, c: float, what: str) -> float:
    # Smaller positive root of a*x**2 - b*x + c = 0, in the cancellation-free form 2c / (b + sqrt(b**2 - 4ac)).
    disc = b * b - 4 * a * c
    if disc < 0:
        if disc < -1e3 * eps * b * b:
            raise Infeasible(f'requested {what} too short for this trapezoid', attribute='Duration')
        disc = 0.0
    return 2 * c / (b + math.sqrt(disc))


def calc_trapezoid(
    area: Union[float, None] = None,
    max_grad: Union[float, None] = None,
    max_slew: Union[float, None] = None,
    asymmetry: float = 0,
    duration: Union[float, None] = None,
    flat_time: Union[float, None] = None,
    flat_area: Union[float, None] = None,
    ideal_slew: Union[float, None] = None,
) -> SimpleNamespace:
    """
    Solve the shape of a trapezoidal gradient.

    The user must supply one of the following sets of parameters:
    - area
    - area and duration
    - flat_area
    - flat_area and flat_time
    - flat_area and duration

    Parameters
    ----------
    area : float, default=None
        Total signed area (1/m).
    max_grad : float, default=None
        Maximum gradient amplitude (Hz/m). Defaults to `Opts.default.max_grad`.
    max_slew : float, default=None
        Maximum slew rate (Hz/m/s). Defaults to `Opts.default.max_slew`.
    asymmetry : float, default=0
        Slew rate asymmetry, see `calculate_slopes()`.
    duration : float, default=None
        Requested total duration in seconds (s).
    flat_time : float, default=None
        Requested flat-top duration in seconds (s).
    flat_area : float, default=None
        Requested signed flat-top area (1/m).
    ideal_slew : float, default=None
        Ramps at least this steep are evaluated as instantaneous. Defaults to `Opts.default.ideal_slew`.

    Returns
    -------
    shape : SimpleNamespace
        Trapezoid shape.

    Raises
    ------
    PrepareError
        If `max_grad` or `max_slew` is not positive.
    ConstraintConflict
        If both `area` and `flat_area`, or both `duration` and `flat_time` are passed.
    MissingDependentConstraint
        If `flat_time` is passed without `flat_area`.
    Infeasible
        If the requested duration or flat-top time is shorter than the limits allow.
    ValueError
        If neither `area` nor `flat_area` is passed.
    """
    if max_grad is None:
        max_grad = Opts.default.max_grad
    if max_slew is None:
        max_slew = Opts.default.max_slew

    if not max_grad > 0:
        raise PrepareError(f"'MaxAmpl' must be positive. Passed: {max_grad}", attribute='MaxAmpl')
    if not max_slew > 0:
        raise PrepareError(f"'SlewRate' must be positive. Passed: {max_slew}", attribute='SlewRate')

    if area is not None and flat_area is not None:
        raise ConstraintConflict("set only one of 'Area' and 'FlatTopArea'", attribute='FlatTopArea')
    if duration is not None and flat_time is not None:
        raise ConstraintConflict("set only one of 'Duration' and 'FlatTopTime'", attribute='FlatTopTime')
    if flat_time is not None and flat_area is None:
        raise MissingDependentConstraint("'FlatTopTime' needs also 'FlatTopArea'", attribute='FlatTopTime')

    calc_path: Literal['area', 'area_duration', 'flat_area', 'flat_area_time', 'flat_area_duration']
    if area is not None:
        calc_path = 'area' if duration is None else 'area_duration'
    elif flat_area is not None:
        if flat_time is not None:
            calc_path = 'flat_area_time'
        elif duration is not None:
            calc_path = 'flat_area_duration'
        else:
            calc_path = 'flat_area'
    else:
        raise ValueError("Must supply either 'area' or 'flat_area'.")

    target = area if area is not None else flat_area
    if target == 0:
        return zero_trapezoid()

    sign = math.copysign(1.0, target)
    _, _, dc = calculate_slopes(sign, max_slew, asymmetry)

    def shortest(total_area: float, amplitude_limit: float) -> SimpleNamespace:
        return calculate_shortest_trapezoid(total_area, amplitude_limit, max_slew, asymmetry, ideal_slew)

    if calc_path == 'area':
        return shortest(area, max_grad)

    if calc_path == 'area_duration':
        min_duration = shortest(area, max_grad).duration
        if duration < min_duration * (1 - _REL_TOL):
            raise Infeasible(
                f'requested duration {duration:g} s too short for this trapezoid (minimum {min_duration:g} s)',
                attribute='Duration',
            )
        # Reduce the amplitude so that the shortest trapezoid lasts exactly `duration`:
        # dc * A**2 - duration * A + |area| = 0
        amplitude = _positive_root(dc, duration, abs(area), 'duration')
        return shortest(area, amplitude)

    if calc_path == 'flat_area':
        return shortest(flat_area + sign * max_grad * max_grad * dc, max_grad)

    if calc_path == 'flat_area_time':
        min_flat_time = shortest(flat_area + sign * max_grad * max_grad * dc, max_grad).flat_top_time
        if flat_time < min_flat_time * (1 - _REL_TOL):
            raise Infeasible(
                f'requested FlatTopTime {flat_time:g} s too short for this trapezoid (minimum {min_flat_time:g} s)',
                attribute='FlatTopTime',
            )
        amplitude = abs(flat_area / flat_time)
        return shortest(flat_area + sign * amplitude * amplitude * dc, amplitude)

    # flat_area_duration: 2 * dc * A**2 - duration * A + |flat_area| = 0
    amplitude = _positive_root(2 * dc, duration, abs(flat_area), 'duration')
    if amplitude > max_grad * (1 + _REL_TOL):
        raise Infeasible(
            f'requested duration {duration:g} s too short for a flat-top area of {flat_area:g}',
            attribute='Duration',
        )
    return shortest(flat_area + sign * amplitude * amplitude * dc, amplitude)


def trapezoid_value(shape: SimpleNamespace, time: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Evaluate a trapezoid shape at `time`, measured from the start of the ramp-up.

    Parameters
    ----------
    shape : SimpleNamespace
        Trapezoid as returned by `calc_trapezoid()`.
    time : float or np.ndarray
        Time point(s) in seconds (s).

    Returns
    -------
    value : float or np.ndarray
        Gradient amplitude (Hz/m), same shape as `time`.
    """
    t = np.asarray(time, dtype=float)
    amplitude = shape.amplitude

    if shape.instant_up:
        ramp_up = np.full_like(t, amplitude)
    else:
        ramp_up = t * shape.slope_up

    if shape.instant_dn:
        ramp_dn = np.full_like(t, amplitude)
    else:
        ramp_dn = amplitude + (t - shape.time_to_ramp_dn) * shape.slope_dn

    value = np.where(t < shape.ramp_up_time, ramp_up, np.where(t < shape.time_to_ramp_dn, amplitude, ramp_dn))

    if value.ndim == 0:
        return float(value)
    return value
