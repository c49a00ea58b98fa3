import numpy as np

from pulsetree.version import __version__

# =========
# NP.FLOAT EPSILON
# =========
eps = np.finfo(np.float64).eps

# =========
# TIME TOLERANCE
# =========
# Offset of the structural boundary markers from the edges of a pulse, in seconds (s).
TIME_ERR_TOL = 1e-9

# =========
# PACKAGE-LEVEL IMPORTS
# =========
from pulsetree.calc_trapezoid import calc_trapezoid, calculate_shortest_trapezoid, trapezoid_value
from pulsetree.convert import convert
from pulsetree.opts import Opts
from pulsetree.prepare_report import (
    ConstraintConflict,
    Infeasible,
    MissingDependentConstraint,
    PrepareError,
    print_prepare_report,
)
from pulsetree.tpoi import TPOI
from pulsetree.Pulse.empty_pulse import EmptyPulse
from pulsetree.Pulse.hard_rf_pulse import HardRfPulse
from pulsetree.Pulse.trap_grad_pulse import TrapGradPulse
from pulsetree.Sequence.atomic_sequence import AtomicSequence
from pulsetree.Sequence.concat_sequence import ConcatSequence
from pulsetree.Sequence.read_xml import read_xml
from pulsetree.Sequence.sequence import Sequence, check_prepare
from pulsetree.utils.seq_plot import plot_seq_diag
