from types import SimpleNamespace
from typing import List, Union

import numpy as np

from pulsetree import TIME_ERR_TOL
from pulsetree.opts import Opts
from pulsetree.prepare_report import PrepareError, format_prepare_error, make_report_entry
from pulsetree.Sequence.module import Module, check_mode
from pulsetree.tpoi import TPOI

# Row of each pulse axis in the value vector [TXM, TXP, GX, GY, GZ] of an atomic sequence.
AXIS_INDEX = {'RF': 0, 'GX': 2, 'GY': 3, 'GZ': 4}
VALID_AXES = ('NONE', 'RF', 'GX', 'GY', 'GZ')


class Pulse(Module):
    """
    Base class of all pulses. A pulse is a leaf of the sequence tree, owned by an `AtomicSequence`.

    The base pulse has no waveform; it lasts `duration` seconds and places `adcs` evenly spaced ADC samples over it.

    Parameters
    ----------
    name : str, default=None
        Name of the pulse. Defaults to the class name.
    axis : str, default='NONE'
        Channel the pulse plays on. Must be one of 'NONE', 'RF', 'GX', 'GY' or 'GZ'.
    adcs : int, default=0
        Number of ADC samples.
    phase_lock : bool, default=False
        If True, ADC samples get the receiver phase `Opts.phase_lock` instead of 0.
    initial_delay : float, default=0
        Start of the pulse relative to the start of its atomic sequence, in seconds (s).
    duration : float, default=0
        Duration in seconds (s).
    """

    ATTRIBUTES = {
        **Module.ATTRIBUTES,
        'Axis': 'axis',
        'ADCs': 'adcs',
        'PhaseLock': 'phase_lock',
        'InitialDelay': 'initial_delay',
        'Duration': 'duration',
    }

    def __init__(
        self,
        name: Union[str, None] = None,
        axis: Union[str, None] = None,
        adcs: Union[int, None] = None,
        phase_lock: Union[bool, None] = None,
        initial_delay: Union[float, None] = None,
        duration: Union[float, None] = None,
    ):
        super().__init__(name)
        self.declare('Axis', axis, 'NONE')
        self.declare('ADCs', adcs, 0)
        self.declare('PhaseLock', phase_lock, False)
        self.declare('InitialDelay', initial_delay, 0.0)
        self.declare('Duration', duration, 0.0)

        if self.axis not in VALID_AXES:
            raise ValueError(f'Invalid axis. Must be one of {VALID_AXES}. Passed: {self.axis}')
        if self.adcs < 0:
            raise ValueError(f'Number of ADCs must be non-negative. Passed: {self.adcs}')

        self.non_lin_grad = False
        self.tpoi = TPOI()

    def add_child(self, child: Module) -> Module:
        raise TypeError(f'{type(self).__name__} cannot have children.')

    def validate(self) -> List[PrepareError]:
        """Check the declared attributes. Returns the list of violations, empty if there are none."""
        return []

    def set_shape(self, mode: str, system: Opts) -> None:
        """Derive the waveform and the duration. Raises `PrepareError` if this is impossible."""
        if self.duration < 0:
            raise PrepareError(f'negative duration {self.duration:g} s', attribute='Duration')

    def set_tpois(self, system: Opts) -> None:
        """Place the boundary markers and `adcs` ADC samples evenly over the duration of the pulse."""
        self.tpoi.reset()
        self.tpoi.add(TIME_ERR_TOL, -1.0)
        self.tpoi.add(self.duration - TIME_ERR_TOL, -1.0)

        phase = system.phase_lock if self.phase_lock else 0.0
        for i in range(self.adcs):
            self.tpoi.add((i + 1) * self.duration / (self.adcs + 1), phase)

    def prepare(
        self, mode: str = 'strict', system: Union[Opts, None] = None, report: Union[List[SimpleNamespace], None] = None
    ) -> bool:
        """
        Validate the pulse, derive its shape and its TPOIs.

        Parameters
        ----------
        mode : str, default='strict'
            'strict' validates silently, 'verbose' also prints diagnostics, 'update' re-derives the shape without
            validating the declared attributes again.
        system : Opts, default=Opts.default
            System limits and phase-lock context.
        report : list, default=None
            If given, an entry is appended for every error found.

        Returns
        -------
        bool
            True if the pulse could be prepared.
        """
        check_mode(mode)
        if system is None:
            system = Opts.default

        errors = [] if mode == 'update' else self.validate()
        if not errors:
            try:
                self.set_shape(mode, system)
            except PrepareError as e:
                errors.append(e)

        for error in errors:
            entry = make_report_entry(self.name, error)
            if report is not None:
                report.append(entry)
            if mode == 'verbose':
                print(format_prepare_error(entry))

        if errors:
            return False

        self.set_tpois(system)
        return True

    def get_value(self, time: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Waveform value at `time`, measured from the start of the pulse."""
        return np.zeros(np.shape(time)) if np.ndim(time) else 0.0

    def set_value(self, values: np.ndarray, time: float, non_lin_grad: bool = False) -> None:
        """
        Add the contribution of this pulse at `time` (relative to its atomic sequence) to `values`.

        Parameters
        ----------
        values : np.ndarray
            Vector [TXM, TXP, GX, GY, GZ].
        time : float
            Time in seconds (s) from the start of the atomic sequence.
        non_lin_grad : bool, default=False
            Whether the atomic sequence currently treats non-linear gradients as such.
        """
        if self.axis not in AXIS_INDEX:
            return
        t = time - self.initial_delay
        if t < 0 or t > self.duration:
            return
        values[AXIS_INDEX[self.axis]] += self.get_value(t)

    def get_info(self) -> str:
        s = f"{type(self).__name__} '{self.name}': axis={self.axis}, duration={self.duration:g} s"
        if self.adcs > 0:
            s += f', ADCs={self.adcs}'
        if self.initial_delay > 0:
            s += f', delay={self.initial_delay:g} s'
        return s
