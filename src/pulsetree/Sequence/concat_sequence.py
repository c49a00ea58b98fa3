from typing import Iterable, Iterator, Tuple, Union

import numpy as np

from pulsetree.Sequence.module import Module
from pulsetree.Sequence.sequence import Sequence


class ConcatSequence(Sequence):
    """
    Ordered group of sequence nodes played `repetitions` times.

    Iterating over the node yields the repetition indices `0 .. repetitions - 1` and keeps `counter` at the current
    one.

    Parameters
    ----------
    name : str, default=None
        Name of the node. Defaults to 'ConcatSequence'.
    repetitions : int, default=1
        Number of repetitions. Must be at least 1.
    children : iterable of Sequence, default=()
        Children, in playing order.
    """

    ATTRIBUTES = {**Sequence.ATTRIBUTES, 'Repetitions': 'repetitions'}

    def __init__(self, name: Union[str, None] = None, repetitions: Union[int, None] = None, children: Iterable = ()):
        super().__init__(name)
        self.declare('Repetitions', repetitions, 1)
        if self.repetitions < 1:
            raise ValueError(f'Repetitions must be at least 1. Passed: {self.repetitions}')
        self.counter = 0

        for child in children:
            self.add_child(child)

    def add_child(self, child: Module) -> Module:
        if not isinstance(child, Sequence):
            raise TypeError(f'Children of a ConcatSequence must be sequences. Passed: {type(child).__name__}')
        return super().add_child(child)

    def __iter__(self) -> Iterator[int]:
        for r in range(self.repetitions):
            self.counter = r
            yield r

    def update_timing(self, mode: str) -> None:
        self.duration = self.repetitions * sum(child.duration for child in self.get_children())

    def get_num_of_tpois(self) -> int:
        return self.repetitions * sum(child.get_num_of_tpois() for child in self.get_children())

    def get_num_of_adcs(self) -> int:
        return self.repetitions * sum(child.get_num_of_adcs() for child in self.get_children())

    def collect_seq_data(self, seqdata: np.ndarray, t: float = 0.0, offset: int = 0) -> Tuple[float, int]:
        children = self.get_children()
        for _ in self:
            for child in children:
                t, offset = child.collect_seq_data(seqdata, t, offset)
        return t, offset

    def get_info(self) -> str:
        return super().get_info() + f', repetitions={self.repetitions}'
