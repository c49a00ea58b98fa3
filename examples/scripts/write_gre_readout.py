"""
Demo gradient echo readout: hard excitation, readout prephaser, flat-top readout with ADCs and a slice spoiler.
"""

import math

import pulsetree as pt


def main(
    plot: bool = False,
    write_seq: bool = False,
    seq_filename: str = 'gre_readout.h5',
    *,
    fov: float = 220e-3,
    n_x: int = 64,
    readout_time: float = 3.2e-3,
    flip_angle: float = 10,
    n_rep: int = 4,
    delay: float = 5e-3,
):
    """Create a repeated gradient echo readout and optionally write its sequence diagram.

    Parameters
    ----------
    plot : bool, optional
        Plot the sequence diagram. Default is False.
    write_seq : bool, optional
        Write the sequence diagram to an HDF5 file. Default is False.
    seq_filename : str, optional
        Output filename for the sequence diagram. Default is 'gre_readout.h5'.
    fov : float, optional
        Field of view in meters. Default is 220e-3.
    n_x : int, optional
        Number of readout samples. Default is 64.
    readout_time : float, optional
        Flat-top time of the readout gradient in seconds. Default is 3.2e-3.
    flip_angle : float, optional
        Flip angle in degrees. Default is 10.
    n_rep : int, optional
        Number of repetitions. Default is 4.
    delay : float, optional
        Delay at the end of every repetition in seconds. Default is 5e-3.

    Returns
    -------
    seq : pt.ConcatSequence
        Prepared sequence tree.
    """
    # ======
    # SETUP
    # ======
    system = pt.Opts(max_grad=28, grad_unit='mT/m', max_slew=150, slew_unit='T/m/s')

    # ======
    # CREATE EVENTS
    # ======
    rf = pt.HardRfPulse(math.radians(flip_angle), duration=100e-6, name='rf')

    delta_k = 1 / fov
    gx = pt.TrapGradPulse('GX', name='gx', flat_area=n_x * delta_k, flat_time=readout_time, adcs=n_x)
    # The prephaser balances the readout up to the center of its flat top
    gx.prepare(system=system)
    gx_pre = pt.TrapGradPulse('GX', name='gx_pre', area=-gx.area / 2)
    gz_spoil = pt.TrapGradPulse('GZ', name='gz_spoil', area=4 * n_x * delta_k)

    # ======
    # CONSTRUCT SEQUENCE
    # ======
    seq = pt.ConcatSequence(
        'gre',
        n_rep,
        [
            pt.AtomicSequence('excitation', [rf]),
            pt.AtomicSequence('prephase', [gx_pre]),
            pt.AtomicSequence('readout', [gx]),
            pt.AtomicSequence('spoil', [gz_spoil]),
            pt.AtomicSequence('delay', [pt.EmptyPulse(delay, name='tr_fill')]),
        ],
    )

    ok, error_report = pt.check_prepare(seq, system)
    if ok:
        print('Prepare passed successfully')
    else:
        print('Prepare failed. Error listing follows:')
        pt.print_prepare_report(error_report)

    if plot:
        pt.plot_seq_diag(seq, show_kspace=True)

    if write_seq:
        seq.seq_diag(seq_filename)

    return seq


if __name__ == '__main__':
    main(plot=True, write_seq=True)
