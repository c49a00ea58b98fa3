from __future__ import annotations

import typing

import numpy as np
from matplotlib import pyplot as plt

if typing.TYPE_CHECKING:
    from pulsetree.Sequence.sequence import Sequence

valid_time_units = {'s': 1, 'ms': 1e3, 'us': 1e6}
valid_grad_units = ['kHz/m', 'mT/m']


def plot_seq_diag(
    seq: Sequence,
    time_disp: str = 'ms',
    grad_disp: str = 'kHz/m',
    show_kspace: bool = False,
    gamma: float = 42.576e6,
    plot_now: bool = True,
) -> plt.Figure:
    """
    Plot the sequence diagram of a prepared sequence: ADC samples and RF magnitude, RF phase and the three gradient
    channels, optionally followed by the k-space trajectories.

    Parameters
    ----------
    seq : Sequence
        Prepared root of a sequence tree.
    time_disp : str, default='ms'
        Time display unit, must be one of `s`, `ms` or `us`.
    grad_disp : str, default='kHz/m'
        Gradient display unit, must be one of `kHz/m` or `mT/m`.
    show_kspace : bool, default=False
        If True, add a panel with the time integrals KX, KY and KZ.
    gamma : float, default=42.576e6
        Gyromagnetic ratio in Hz/T, used for `grad_disp='mT/m'`.
    plot_now : bool, default=True
        If True, show the figure immediately.

    Returns
    -------
    fig : matplotlib.figure.Figure
    """
    if time_disp not in valid_time_units:
        raise ValueError(f'Unsupported time unit. Must be one of {list(valid_time_units)}. Passed: {time_disp}')
    if grad_disp not in valid_grad_units:
        raise ValueError(f'Unsupported gradient unit. Must be one of {valid_grad_units}. Passed: {grad_disp}')

    seqdata, kspace = seq.get_seq_diag()
    t_factor = valid_time_units[time_disp]
    g_factor = 1e-3 if grad_disp == 'kHz/m' else 1e3 / gamma

    t = seqdata[:, 0] * t_factor
    is_adc = seqdata[:, 1] >= 0

    n_panels = 4 if show_kspace else 3
    fig, axes = plt.subplots(n_panels, 1, sharex=True)

    axes[0].plot(t, seqdata[:, 2])
    axes[0].plot(t[is_adc], np.zeros(np.count_nonzero(is_adc)), 'rx')
    axes[0].set_ylabel('ADC / RF mag (Hz)')

    axes[1].plot(t, seqdata[:, 3])
    axes[1].set_ylabel('RF phase (rad)')

    for column, axis in zip((4, 5, 6), ('GX', 'GY', 'GZ')):
        axes[2].plot(t, seqdata[:, column] * g_factor, label=axis)
    axes[2].set_ylabel(f'G ({grad_disp})')
    axes[2].legend(loc='upper right')

    if show_kspace:
        for name, k in kspace.items():
            axes[3].plot(t, k, label=name)
        axes[3].set_ylabel('k (1/m)')
        axes[3].legend(loc='upper right')

    axes[-1].set_xlabel(f't ({time_disp})')
    fig.suptitle(seq.name)
    fig.tight_layout()

    if plot_now:
        plt.show()

    return fig
