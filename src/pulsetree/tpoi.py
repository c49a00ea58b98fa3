from typing import Iterator, Tuple

import numpy as np


class TPOI:
    """
    Set of time points of interest (TPOIs) of a pulse or an atomic sequence.

    Every TPOI is a pair `(time, phase)`. A negative phase marks a structural point (a boundary or a corner of the
    waveform); a non-negative phase marks an ADC sample read out with that receiver phase. Points are kept in
    insertion order; `sorted()` gives the time-ordered view used for sampling. Near-duplicate times are kept.
    """

    def __init__(self):
        self._time = []
        self._phase = []

    def reset(self) -> None:
        self._time.clear()
        self._phase.clear()

    def add(self, time: float, phase: float = -1.0) -> 'TPOI':
        self._time.append(float(time))
        self._phase.append(float(phase))
        return self

    def extend(self, other: 'TPOI', shift: float = 0.0) -> 'TPOI':
        """Append all points of `other`, shifted in time by `shift` seconds (s)."""
        for time, phase in other:
            self.add(time + shift, phase)
        return self

    def __len__(self) -> int:
        return len(self._time)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        return zip(self._time, self._phase)

    def get_time(self, i: int) -> float:
        return self._time[i]

    def get_phase(self, i: int) -> float:
        return self._phase[i]

    @property
    def times(self) -> np.ndarray:
        return np.array(self._time, dtype=float)

    @property
    def phases(self) -> np.ndarray:
        return np.array(self._phase, dtype=float)

    def num_adcs(self) -> int:
        return sum(1 for phase in self._phase if phase >= 0)

    def sorted(self) -> 'TPOI':
        # Stable, so coinciding points keep their insertion order
        out = TPOI()
        for i in np.argsort(self.times, kind='stable'):
            out.add(self._time[i], self._phase[i])
        return out

    def __str__(self) -> str:
        return f'TPOI: {len(self)} points, {self.num_adcs()} ADCs'
