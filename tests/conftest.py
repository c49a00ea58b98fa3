import matplotlib

matplotlib.use('Agg')

import pulsetree as pt
import pytest

# Small, round system limits used throughout the tests: dC = 1 / max_slew = 0.01.
MAX_GRAD = 2
MAX_SLEW = 100


@pytest.fixture(autouse=True)
def reset_default_opts():
    yield
    pt.Opts.reset_default()


@pytest.fixture
def make_atomic():
    def make(name, area, adcs=0, **kwargs):
        gx = pt.TrapGradPulse('GX', name=f'{name}_gx', area=area, adcs=adcs, max_grad=MAX_GRAD, max_slew=MAX_SLEW, **kwargs)
        return pt.AtomicSequence(name, [gx])

    return make
