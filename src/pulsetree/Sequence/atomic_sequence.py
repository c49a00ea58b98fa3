from contextlib import contextmanager
from typing import Iterable, Iterator, Tuple, Union

import numpy as np

from pulsetree.Pulse.pulse import Pulse
from pulsetree.Sequence.module import Module
from pulsetree.Sequence.sequence import Sequence
from pulsetree.tpoi import TPOI


class AtomicSequence(Sequence):
    """
    Block of pulses played simultaneously; the leaf level of the sequence tree.

    The TPOIs of the block are the TPOIs of its pulses, shifted by their initial delays and ordered in time. The
    duration is the end of the latest pulse.

    Parameters
    ----------
    name : str, default=None
        Name of the node. Defaults to 'AtomicSequence'.
    pulses : iterable of Pulse, default=()
        Pulses of the block.
    """

    def __init__(self, name: Union[str, None] = None, pulses: Iterable = ()):
        super().__init__(name)
        self.tpoi = TPOI()
        self.non_lin_grad = False

        for pulse in pulses:
            self.add_child(pulse)

    def add_child(self, child: Module) -> Module:
        if not isinstance(child, Pulse):
            raise TypeError(f'Children of an AtomicSequence must be pulses. Passed: {type(child).__name__}')
        return super().add_child(child)

    def update_timing(self, mode: str) -> None:
        pulses = self.get_children()
        self.duration = max((pulse.initial_delay + pulse.duration for pulse in pulses), default=0.0)

        tpoi = TPOI()
        for pulse in pulses:
            tpoi.extend(pulse.tpoi, shift=pulse.initial_delay)
        self.tpoi = tpoi.sorted()

        if mode != 'update':
            self.non_lin_grad = any(pulse.non_lin_grad for pulse in pulses)

    @contextmanager
    def linear_gradients(self) -> Iterator['AtomicSequence']:
        """
        Treat all gradients of the block as linear within the `with` block. The previous setting is restored on exit,
        also when an exception is raised.
        """
        previous = self.non_lin_grad
        self.non_lin_grad = False
        try:
            yield self
        finally:
            self.non_lin_grad = previous

    def get_value(self, time: float) -> np.ndarray:
        """
        Values of all channels at `time` (from the start of the block).

        Returns
        -------
        values : np.ndarray
            Vector [TXM, TXP, GX, GY, GZ].
        """
        values = np.zeros(5)
        for pulse in self.get_children():
            pulse.set_value(values, time, self.non_lin_grad)
        return values

    def get_num_of_tpois(self) -> int:
        return len(self.tpoi)

    def get_num_of_adcs(self) -> int:
        num_adcs = len(self.tpoi)
        for i in range(len(self.tpoi)):
            if self.tpoi.get_phase(i) < 0:
                num_adcs -= 1
        return num_adcs

    def collect_seq_data(self, seqdata: np.ndarray, t: float = 0.0, offset: int = 0) -> Tuple[float, int]:
        with self.linear_gradients():
            for i, (time, phase) in enumerate(self.tpoi):
                seqdata[0, offset + i + 1] = time + t
                seqdata[1, offset + i + 1] = phase
                seqdata[2:, offset + i + 1] = self.get_value(time)

        return t + self.duration, offset + len(self.tpoi)
