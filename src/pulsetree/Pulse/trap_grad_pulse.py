from typing import List, Union

import numpy as np

from pulsetree import TIME_ERR_TOL
from pulsetree.calc_trapezoid import calc_trapezoid, trapezoid_value, zero_trapezoid
from pulsetree.opts import Opts
from pulsetree.prepare_report import ConstraintConflict, MissingDependentConstraint, PrepareError
from pulsetree.Pulse.pulse import AXIS_INDEX, Pulse


class TrapGradPulse(Pulse):
    """
    Trapezoidal gradient pulse.

    The shape is solved during `prepare()` from one of the following sets of attributes:
    - Area (shortest possible trapezoid)
    - Area and Duration
    - FlatTopArea
    - FlatTopArea and FlatTopTime
    - FlatTopArea and Duration

    Without any of them the pulse has zero area and zero duration.

    Parameters
    ----------
    axis : str
        Gradient channel. Must be one of 'GX', 'GY' or 'GZ'.
    area : float, default=None
        Total signed area (1/m).
    duration : float, default=None
        Requested duration in seconds (s).
    flat_area : float, default=None
        Signed flat-top area (1/m).
    flat_time : float, default=None
        Requested flat-top time in seconds (s). ADC samples are then only placed on the flat top.
    asymmetry : float, default=0
        A positive value scales the slew rate of the ramp-up, a negative one the ramp-down by its magnitude.
    max_grad : float, default=None
        Maximum gradient amplitude (Hz/m). Defaults to `max_grad` of the system passed to `prepare()`.
    max_slew : float, default=None
        Maximum slew rate (Hz/m/s). Defaults to `max_slew` of the system passed to `prepare()`.
    non_lin_grad : bool, default=False
        Whether the gradient is non-linear in space.
    """

    ATTRIBUTES = {
        **Pulse.ATTRIBUTES,
        'Area': 'area',
        'FlatTopArea': 'flat_area',
        'FlatTopTime': 'flat_time',
        'Asymmetric': 'asymmetry',
        'MaxAmpl': 'max_grad',
        'SlewRate': 'max_slew',
        'NonLinGrad': 'non_lin_grad',
    }
    HIDDEN_ATTRIBUTES = {
        'Amplitude': 'amplitude',
        'RampUpTime': 'ramp_up_time',
        'RampDnTime': 'ramp_dn_time',
        'EndOfFlatTop': 'time_to_ramp_dn',
    }

    def __init__(
        self,
        axis: str,
        name: Union[str, None] = None,
        area: Union[float, None] = None,
        duration: Union[float, None] = None,
        flat_area: Union[float, None] = None,
        flat_time: Union[float, None] = None,
        asymmetry: Union[float, None] = None,
        max_grad: Union[float, None] = None,
        max_slew: Union[float, None] = None,
        non_lin_grad: Union[bool, None] = None,
        adcs: Union[int, None] = None,
        phase_lock: Union[bool, None] = None,
        initial_delay: Union[float, None] = None,
    ):
        if axis not in ('GX', 'GY', 'GZ'):
            raise ValueError(f'Invalid axis. Must be one of `GX`, `GY` or `GZ`. Passed: {axis}')

        super().__init__(
            name=name, axis=axis, adcs=adcs, phase_lock=phase_lock, initial_delay=initial_delay, duration=duration
        )
        self.declare('Area', area, 0.0)
        self.declare('FlatTopArea', flat_area, 0.0)
        self.declare('FlatTopTime', flat_time, 0.0)
        self.declare('Asymmetric', asymmetry, 0.0)
        self.declare('MaxAmpl', max_grad)
        self.declare('SlewRate', max_slew)
        self.declare('NonLinGrad', non_lin_grad, False)

        self.shape = zero_trapezoid()
        self.amplitude = 0.0
        self.ramp_up_time = 0.0
        self.ramp_dn_time = 0.0
        self.time_to_ramp_dn = 0.0

        # Which timing constraints are active; read from the declared attributes, kept during 'update'.
        self._has_duration = False
        self._has_flat_time = False
        self._has_flat_area = False

    def validate(self) -> List[PrepareError]:
        errors = []
        if self.has_attribute('Duration') and self.has_attribute('FlatTopTime'):
            errors.append(
                ConstraintConflict(
                    "set only one of 'Duration' and 'FlatTopTime' for a TrapGradPulse", attribute='FlatTopTime'
                )
            )
        if self.has_attribute('Area') and self.has_attribute('FlatTopArea'):
            errors.append(
                ConstraintConflict("set only one of 'Area' and 'FlatTopArea' for a TrapGradPulse", attribute='FlatTopArea')
            )
        if self.has_attribute('FlatTopTime') and not self.has_attribute('FlatTopArea'):
            errors.append(
                MissingDependentConstraint(
                    "'FlatTopTime' needs also 'FlatTopArea' for a TrapGradPulse", attribute='FlatTopTime'
                )
            )
        return errors

    def set_shape(self, mode: str, system: Opts) -> None:
        if mode != 'update':
            self._has_duration = self.has_attribute('Duration')
            self._has_flat_time = self.has_attribute('FlatTopTime')
            self._has_flat_area = self.has_attribute('FlatTopArea')

        shape = calc_trapezoid(
            area=None if self._has_flat_area else self.area,
            max_grad=self.max_grad if self.max_grad is not None else system.max_grad,
            max_slew=self.max_slew if self.max_slew is not None else system.max_slew,
            asymmetry=self.asymmetry,
            duration=self.duration if self._has_duration else None,
            flat_time=self.flat_time if self._has_flat_time else None,
            flat_area=self.flat_area if self._has_flat_area else None,
            ideal_slew=system.ideal_slew,
        )

        self.shape = shape
        self.area = shape.area
        self.amplitude = shape.amplitude
        self.ramp_up_time = shape.ramp_up_time
        self.ramp_dn_time = shape.ramp_dn_time
        self.flat_time = shape.flat_top_time
        self.time_to_ramp_dn = shape.time_to_ramp_dn
        self.duration = shape.duration

    def set_tpois(self, system: Opts) -> None:
        if not self._has_flat_time:
            super().set_tpois(system)
        else:
            # ADCs only on the flat top
            self.tpoi.reset()
            self.tpoi.add(TIME_ERR_TOL, -1.0)
            self.tpoi.add(self.duration - TIME_ERR_TOL, -1.0)
            phase = system.phase_lock if self.phase_lock else 0.0
            for i in range(self.adcs):
                self.tpoi.add(self.ramp_up_time + (i + 1) * self.flat_time / (self.adcs + 1), phase)

        # Corners of the trapezoid
        self.tpoi.add(self.ramp_up_time, -1.0)
        self.tpoi.add(self.ramp_up_time + self.flat_time, -1.0)

    def get_value(self, time: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        return trapezoid_value(self.shape, time)

    def set_value(self, values: np.ndarray, time: float, non_lin_grad: bool = False) -> None:
        # Non-linear gradients are evaluated at the spin positions, not on the linear axes.
        if non_lin_grad and self.non_lin_grad:
            return
        t = time - self.initial_delay
        if t < 0 or t > self.duration:
            return
        values[AXIS_INDEX[self.axis]] += self.get_value(t)

    def get_info(self) -> str:
        s = super().get_info() + f', area={self.area:g}'
        if self._has_flat_time:
            s += f' , FlatTop: (Area,time)= ({self.flat_area:g},{self.flat_time:g})'
        return s
