import logging
from types import SimpleNamespace
from typing import Dict, List, Tuple, Union
from warnings import warn

import h5py
import numpy as np
from scipy.integrate import cumulative_trapezoid

from pulsetree.opts import Opts
from pulsetree.Sequence.module import Module, check_mode

log_module = logging.getLogger(__name__)

# Rows of the sequence diagram, in the order they are collected and written.
SEQ_AXES = ('T', 'RXP', 'TXM', 'TXP', 'GX', 'GY', 'GZ')
# Gradient rows and the names of their time integrals.
KSPACE_AXES = {'GX': 'KX', 'GY': 'KY', 'GZ': 'KZ'}
SEQ_DIAG_GROUP = '/seqdiag'


class Sequence(Module):
    """
    Base class of the nodes of a sequence tree: `ConcatSequence` (repeated group of children) and `AtomicSequence`
    (block of simultaneous pulses).

    All traversals (`prepare`, `collect_seq_data`, `get_num_of_adcs`, `get_num_of_tpois`) are implemented by both node
    types, so callers never need to know which kind of node they hold.
    """

    ATTRIBUTES = {**Module.ATTRIBUTES, 'Duration': 'duration'}

    def __init__(self, name: Union[str, None] = None):
        super().__init__(name)
        self.duration = 0.0

    def prepare(
        self, mode: str = 'strict', system: Union[Opts, None] = None, report: Union[List[SimpleNamespace], None] = None
    ) -> bool:
        """
        Prepare all nodes of the subtree: validate the declared attributes, solve pulse shapes, collect TPOIs and
        durations.

        Every child is prepared even if a previous one failed, so that all errors are found in one pass.

        Parameters
        ----------
        mode : str, default='strict'
            'strict' validates silently, 'verbose' also prints a diagnostic for every failing node, 'update' re-derives
            dependent attributes without validating the declared ones again.
        system : Opts, default=Opts.default
            System limits and phase-lock context. Read only.
        report : list, default=None
            If given, an entry is appended for every error found.

        Returns
        -------
        bool
            True if every node of the subtree was prepared.
        """
        check_mode(mode)
        if system is None:
            system = Opts.default

        # Duration is derived from the children from now on
        if mode != 'update':
            self.hide_attribute('Duration')

        success = True
        for child in self.get_children():
            log_module.debug('%s.prepare() calls prepare(%s) of %s', self.name, mode, child.name)
            success = child.prepare(mode, system, report) and success

        self.update_timing(mode)

        if self.is_root() and not success and mode == 'verbose':
            warn(f'Prepare of sequence {self.name} failed.', stacklevel=2)

        return success

    def update_timing(self, mode: str) -> None:
        """Derive duration and TPOIs of this node from its prepared children."""
        raise NotImplementedError

    def get_num_of_tpois(self) -> int:
        raise NotImplementedError

    def get_num_of_adcs(self) -> int:
        """Number of ADC samples of the subtree, counting all repetitions. Structural markers are not counted."""
        raise NotImplementedError

    def collect_seq_data(self, seqdata: np.ndarray, t: float = 0.0, offset: int = 0) -> Tuple[float, int]:
        """
        Write the samples of the subtree into `seqdata`.

        Parameters
        ----------
        seqdata : np.ndarray
            Sample matrix of shape (7, n + 1), rows ordered as `SEQ_AXES`. Column 0 is reserved for the sentinel.
        t : float, default=0
            Start time of this node in seconds (s).
        offset : int, default=0
            Number of samples written before this node.

        Returns
        -------
        t : float
            End time of this node, i.e. `t + duration`.
        offset : int
            `offset + get_num_of_tpois()`.
        """
        raise NotImplementedError

    def get_seq_diag(self) -> Tuple[np.ndarray, Dict[str, np.ndarray]]:
        """
        Sample the prepared sequence at all of its TPOIs.

        Returns
        -------
        seqdata : np.ndarray
            Samples of shape (n + 1, 7), columns ordered as `SEQ_AXES`. Row 0 is the sentinel with RXP = -1.
        kspace : dict
            Cumulative trapezoidal time integral of GX, GY and GZ, keyed 'KX', 'KY' and 'KZ'.
        """
        num_samples = self.get_num_of_tpois() + 1
        seqdata = np.zeros((len(SEQ_AXES), num_samples))
        seqdata[1, 0] = -1.0

        t, offset = self.collect_seq_data(seqdata, 0.0, 0)
        log_module.debug('Collected %d samples of %s, end time %g s', offset, self.name, t)

        seqdata = seqdata.T
        time = seqdata[:, 0]
        kspace = {}
        for i, axis in enumerate(SEQ_AXES):
            if axis in KSPACE_AXES:
                kspace[KSPACE_AXES[axis]] = cumulative_trapezoid(seqdata[:, i], time, initial=0)

        return seqdata, kspace

    def seq_diag(self, file_name: str = 'seq.h5') -> bool:
        """
        Write the sequence diagram of the prepared sequence to the HDF5 file `file_name`.

        The datasets 'T', 'RXP', 'TXM', 'TXP', 'GX', 'GY', 'GZ' and the k-space trajectories 'KX', 'KY', 'KZ' are
        written to the group '/seqdiag'. An existing file is overwritten.

        Returns
        -------
        bool
            False if the file could not be opened for writing; nothing is written in that case.
        """
        seqdata, kspace = self.get_seq_diag()

        try:
            h5file = h5py.File(file_name, 'w')
        except OSError as e:
            log_module.debug('Cannot open %s for writing: %s', file_name, e)
            return False

        with h5file:
            group = h5file.require_group(SEQ_DIAG_GROUP)
            for i, axis in enumerate(SEQ_AXES):
                group.create_dataset(axis, data=seqdata[:, i])
                if axis in KSPACE_AXES:
                    group.create_dataset(KSPACE_AXES[axis], data=kspace[KSPACE_AXES[axis]])

        log_module.debug('Wrote sequence diagram of %s to %s', self.name, file_name)
        return True

    def get_info(self) -> str:
        return f"{type(self).__name__} '{self.name}': duration={self.duration:g} s, TPOIs={self.get_num_of_tpois()}"


def check_prepare(seq: Sequence, system: Union[Opts, None] = None) -> Tuple[bool, List[SimpleNamespace]]:
    """
    Prepare `seq` in strict mode and return the errors found.

    Returns
    -------
    ok : bool
        True if the whole tree was prepared.
    report : list of SimpleNamespace
        One entry per error, with fields `node`, `attribute`, `error_type` and `message`.
    """
    report: List[SimpleNamespace] = []
    ok = seq.prepare('strict', system, report)
    return ok, report
