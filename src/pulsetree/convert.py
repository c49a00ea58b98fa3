from typing import Iterable, Union

import numpy as np

# Factors taking a value in the given unit to the standard unit (Hz/m for gradients, Hz/m/s for slew rates).
# `None` marks units whose factor depends on the gyromagnetic ratio.
_grad_factors = {'Hz/m': 1.0, 'mT/m': None, 'rad/ms/mm': 1e6 / (2 * np.pi)}
_slew_factors = {'Hz/m/s': 1.0, 'mT/m/ms': None, 'T/m/s': None, 'rad/ms/mm/ms': 1e9 / (2 * np.pi)}


def _factor(unit: str, gamma: float) -> float:
    if unit == 'mT/m':
        return 1e-3 * gamma
    if unit in ('mT/m/ms', 'T/m/s'):
        return gamma
    return _grad_factors.get(unit) or _slew_factors[unit]


def convert(
    from_value: Union[float, Iterable],
    from_unit: str,
    gamma: float = 42.576e6,
    to_unit: str = str(),
) -> Union[float, np.ndarray]:
    """
    Converts a gradient amplitude or slew rate from `from_unit` to `to_unit`.

    Gradient amplitudes and slew rates cannot be converted into each other; both units must belong to the same family.

    Parameters
    ----------
    from_value : float or iterable
        Gradient amplitude or slew rate to convert from.
    from_unit : str
        One of 'Hz/m', 'mT/m', 'rad/ms/mm' (gradients) or 'Hz/m/s', 'mT/m/ms', 'T/m/s', 'rad/ms/mm/ms' (slew rates).
    gamma : float, default=42.576e6
        Gyromagnetic ratio in Hz/T. Default is for Hydrogen.
    to_unit : str, default=''
        Target unit. Defaults to the standard unit of the family of `from_unit` ('Hz/m' or 'Hz/m/s').

    Returns
    -------
    out : float or np.ndarray
        Converted value.

    Raises
    ------
    ValueError
        If `from_unit` or `to_unit` is unknown, or if they belong to different unit families.
    """
    if from_unit in _grad_factors:
        family = _grad_factors
    elif from_unit in _slew_factors:
        family = _slew_factors
    else:
        raise ValueError(
            f'Invalid from_unit. Must be one of {list(_grad_factors)} for gradients '
            f'or one of {list(_slew_factors)} for slew rates. Passed: {from_unit}'
        )

    if to_unit == '':
        to_unit = next(iter(family))
    elif to_unit not in family:
        raise ValueError(f'Cannot convert from {from_unit} to {to_unit}. Must be one of {list(family)}.')

    if isinstance(from_value, (list, tuple)):
        from_value = np.asarray(from_value, dtype=float)

    return from_value * _factor(from_unit, gamma) / _factor(to_unit, gamma)
