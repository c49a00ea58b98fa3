from typing import Optional

from pulsetree.convert import convert


class Opts:
    """
    System limits of an MR scanner and the read-only context shared by all nodes of a sequence tree.

    Note: Default values can be overwritten by creating an Opts object and calling `set_as_default`. The sequence
    tree only ever reads from an `Opts` object.

    Attributes
    ----------
    gamma : float, default=42.576e6
        Gyromagnetic ratio in Hz/T. Default gamma is specified for Hydrogen.
    grad_unit : str, default='Hz/m'
        Unit of `max_grad`. Must be one of 'Hz/m', 'mT/m' or 'rad/ms/mm'.
    max_grad : float, default=40 mT/m
        Maximum gradient amplitude.
    max_slew : float, default=170 T/m/s
        Maximum slew rate.
    slew_unit : str, default='Hz/m/s'
        Unit of `max_slew` and `ideal_slew`. Must be one of 'Hz/m/s', 'mT/m/ms', 'T/m/s' or 'rad/ms/mm/ms'.
    ideal_slew : float, default=1000 T/m/s
        Ramps at least this steep are treated as instantaneous when evaluating a trapezoid (idealised constant
        gradients).
    phase_lock : float, default=0
        Receiver phase in radians given to ADC samples of pulses that lock their phase.

    Raises
    ------
    ValueError
        If invalid `grad_unit` or `slew_unit` is passed.
    """

    def __init__(
        self,
        gamma: Optional[float] = None,
        grad_unit: str = 'Hz/m',
        max_grad: Optional[float] = None,
        max_slew: Optional[float] = None,
        slew_unit: str = 'Hz/m/s',
        ideal_slew: Optional[float] = None,
        phase_lock: Optional[float] = None,
    ):
        valid_grad_units = ['Hz/m', 'mT/m', 'rad/ms/mm']
        valid_slew_units = ['Hz/m/s', 'mT/m/ms', 'T/m/s', 'rad/ms/mm/ms']

        if grad_unit not in valid_grad_units:
            raise ValueError(f'Invalid gradient unit. Must be one of {valid_grad_units}. Passed: {grad_unit}')

        if slew_unit not in valid_slew_units:
            raise ValueError(f'Invalid slew rate unit. Must be one of {valid_slew_units}. Passed: {slew_unit}')

        if gamma is None:
            gamma = Opts.default.gamma

        if max_grad is not None:
            max_grad = convert(from_value=max_grad, from_unit=grad_unit, gamma=abs(gamma))
        else:
            max_grad = Opts.default.max_grad

        if max_slew is not None:
            max_slew = convert(from_value=max_slew, from_unit=slew_unit, gamma=abs(gamma))
        else:
            max_slew = Opts.default.max_slew

        if ideal_slew is not None:
            ideal_slew = convert(from_value=ideal_slew, from_unit=slew_unit, gamma=abs(gamma))
        else:
            ideal_slew = Opts.default.ideal_slew

        if phase_lock is None:
            phase_lock = Opts.default.phase_lock

        if max_grad <= 0 or max_slew <= 0:
            raise ValueError(f'System limits must be positive. Passed: max_grad={max_grad}, max_slew={max_slew}')

        self.gamma = gamma
        self.max_grad = max_grad
        self.max_slew = max_slew
        self.ideal_slew = ideal_slew
        self.phase_lock = phase_lock

    def set_as_default(self):
        Opts.default = self

    @classmethod
    def reset_default(cls):
        gamma = 42.576e6
        # Bypass __init__, which reads Opts.default for every unset value.
        default = cls.__new__(cls)
        default.gamma = gamma
        default.max_grad = convert(from_value=40, from_unit='mT/m', gamma=gamma)
        default.max_slew = convert(from_value=170, from_unit='T/m/s', gamma=gamma)
        default.ideal_slew = convert(from_value=1000, from_unit='T/m/s', gamma=gamma)
        default.phase_lock = 0.0
        cls.default = default

    def __str__(self) -> str:
        """
        Print a string representation of the system limits objects.
        """
        s = [f'{key}: {value}' for key, value in vars(self).items()]
        return 'System limits:\n' + '\n'.join(s)


Opts.reset_default()
