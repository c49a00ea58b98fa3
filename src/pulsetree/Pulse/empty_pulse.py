from typing import Union

from pulsetree.Pulse.pulse import Pulse


class EmptyPulse(Pulse):
    """
    Pulse without waveform. Used for delays and for ADC readouts that are not tied to a gradient.

    Parameters
    ----------
    duration : float
        Duration in seconds (s).
    adcs : int, default=0
        Number of ADC samples, evenly spaced over the duration.
    """

    def __init__(
        self,
        duration: float,
        name: Union[str, None] = None,
        adcs: Union[int, None] = None,
        phase_lock: Union[bool, None] = None,
        initial_delay: Union[float, None] = None,
    ):
        super().__init__(
            name=name, axis='NONE', adcs=adcs, phase_lock=phase_lock, initial_delay=initial_delay, duration=duration
        )
