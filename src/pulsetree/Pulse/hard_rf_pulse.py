import math
from typing import Union

import numpy as np

from pulsetree.opts import Opts
from pulsetree.prepare_report import MissingDependentConstraint
from pulsetree.Pulse.pulse import Pulse


class HardRfPulse(Pulse):
    """
    Hard (rectangular) radio-frequency pulse with constant magnitude and phase.

    Parameters
    ----------
    flip_angle : float
        Flip angle in radians.
    duration : float
        Duration in seconds (s). Must be positive.
    initial_phase : float, default=0
        Transmitter phase in radians.
    """

    ATTRIBUTES = {**Pulse.ATTRIBUTES, 'FlipAngle': 'flip_angle', 'InitialPhase': 'initial_phase'}
    HIDDEN_ATTRIBUTES = {'Magnitude': 'magnitude'}

    def __init__(
        self,
        flip_angle: float,
        duration: Union[float, None] = None,
        name: Union[str, None] = None,
        initial_phase: Union[float, None] = None,
        adcs: Union[int, None] = None,
        phase_lock: Union[bool, None] = None,
        initial_delay: Union[float, None] = None,
    ):
        super().__init__(
            name=name, axis='RF', adcs=adcs, phase_lock=phase_lock, initial_delay=initial_delay, duration=duration
        )
        self.declare('FlipAngle', flip_angle)
        self.declare('InitialPhase', initial_phase, 0.0)
        self.magnitude = 0.0

    def set_shape(self, mode: str, system: Opts) -> None:
        # Runs in 'update' mode too, where validate() is skipped
        if not self.duration > 0:
            raise MissingDependentConstraint("'FlipAngle' needs a positive 'Duration' for a HardRfPulse", 'Duration')
        # Same scaling as a block pulse: the magnitude in Hz integrates to flip_angle / (2 pi) over the duration.
        self.magnitude = self.flip_angle / (2 * math.pi) / self.duration

    def get_value(self, time: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        return np.full(np.shape(time), self.magnitude) if np.ndim(time) else self.magnitude

    def set_value(self, values: np.ndarray, time: float, non_lin_grad: bool = False) -> None:
        t = time - self.initial_delay
        if t < 0 or t > self.duration:
            return
        values[0] += self.magnitude
        values[1] += self.initial_phase

    def get_info(self) -> str:
        return super().get_info() + f', flip angle={math.degrees(self.flip_angle):g} deg'
