import warnings

import numpy as np
import pytest

import pulsetree as pt
from pulsetree.Sequence.module import MAX_DEPTH


@pytest.fixture
def nested(make_atomic):
    # root = [inner x 2, e], inner = [d]
    d = make_atomic('d', area=10, adcs=3)
    e = make_atomic('e', area=0.01)
    inner = pt.ConcatSequence('inner', 2, [d])
    root = pt.ConcatSequence('root', 1, [inner, e])
    return root, inner, d, e


def make_failing_tree():
    bad1 = pt.TrapGradPulse('GX', name='bad1', area=1, flat_area=1)
    bad2 = pt.TrapGradPulse('GY', name='bad2', area=10, duration=1, max_grad=2, max_slew=100)
    good = pt.TrapGradPulse('GZ', name='good', area=10, max_grad=2, max_slew=100)
    inner = pt.ConcatSequence('inner', 2, [pt.AtomicSequence('a1', [bad1])])
    return pt.ConcatSequence('root', 1, [inner, pt.AtomicSequence('a2', [bad2]), pt.AtomicSequence('a3', [good])])


# =========
# TIMING AND COUNTING
# =========
def test_atomic_sequence_timing():
    gx = pt.TrapGradPulse('GX', area=10, adcs=2, max_grad=2, max_slew=100)
    gy = pt.TrapGradPulse('GY', area=10, initial_delay=1, max_grad=2, max_slew=100)
    atom = pt.AtomicSequence('atom', [gx, gy])

    assert atom.prepare()

    assert atom.duration == pytest.approx(6.02)
    assert atom.get_num_of_tpois() == 6 + 4
    assert atom.get_num_of_adcs() == 2
    assert np.all(np.diff(atom.tpoi.times) >= 0)


def test_empty_atomic_sequence():
    atom = pt.AtomicSequence('atom')

    assert atom.prepare()
    assert atom.duration == 0
    assert atom.get_num_of_tpois() == 0


def test_adc_count_with_repetitions(make_atomic):
    root = pt.ConcatSequence('root', 3, [make_atomic('a', area=10, adcs=3), make_atomic('b', area=5, adcs=2)])

    assert root.prepare()

    assert root.get_num_of_adcs() == 3 * (3 + 2)
    assert root.get_num_of_tpois() == 3 * (7 + 6)


def test_durations(nested):
    root, inner, d, e = nested

    assert root.prepare()

    assert d.duration == pytest.approx(5.02)
    assert e.duration == pytest.approx(0.02)
    assert inner.duration == pytest.approx(2 * d.duration)
    assert root.duration == pytest.approx(2 * d.duration + e.duration)


def test_collect_seq_data_offsets(nested):
    root, inner, d, e = nested
    root.prepare()
    m, k = d.get_num_of_tpois(), e.get_num_of_tpois()
    assert (m, k) == (7, 4)

    seqdata = np.zeros((7, root.get_num_of_tpois() + 1))
    t, offset = root.collect_seq_data(seqdata, 0.0, 0)

    assert t == pytest.approx(2 * d.duration + e.duration)
    assert offset == 2 * m + k
    # Second repetition of d is shifted by its duration
    np.testing.assert_allclose(seqdata[0, m + 1 : 2 * m + 1], seqdata[0, 1 : m + 1] + d.duration)
    # e starts after both repetitions
    assert seqdata[0, 2 * m + 1] == pytest.approx(2 * d.duration + e.tpoi.get_time(0))


def test_collect_seq_data_from_offset(make_atomic):
    atom = make_atomic('a', area=10, adcs=1)
    atom.prepare()

    seqdata = np.zeros((7, 20))
    t, offset = atom.collect_seq_data(seqdata, 1.0, 10)

    assert t == pytest.approx(1.0 + atom.duration)
    assert offset == 10 + atom.get_num_of_tpois()
    assert np.all(seqdata[:, :11] == 0)
    assert seqdata[0, 11] == pytest.approx(1.0 + atom.tpoi.get_time(0))


def test_concat_iteration():
    seq = pt.ConcatSequence('loop', 3)

    assert list(seq) == [0, 1, 2]
    assert seq.counter == 2
    assert 'repetitions=3' in seq.get_info()


# =========
# PREPARE
# =========
def test_prepare_does_not_short_circuit():
    root = make_failing_tree()

    ok, report = pt.check_prepare(root)

    assert not ok
    assert [entry.node for entry in report] == ['bad1', 'bad2']
    assert [entry.error_type for entry in report] == ['CONSTRAINT_CONFLICT', 'INFEASIBLE']
    # The valid sibling was prepared anyway
    good = root.get_children()[2].get_children()[0]
    assert good.amplitude == 2


def test_verbose_prepare_warns_once_at_root(capsys):
    root = make_failing_tree()

    with pytest.warns(UserWarning, match='Prepare of sequence root failed') as record:
        assert not root.prepare('verbose')

    assert len([w for w in record if 'Prepare of sequence' in str(w.message)]) == 1
    out = capsys.readouterr().out
    assert 'bad1::prepare() error' in out
    assert 'bad2::set_shape() warning' in out


def test_strict_prepare_is_silent(capsys):
    root = make_failing_tree()

    with warnings.catch_warnings():
        warnings.simplefilter('error')
        assert not root.prepare('strict')

    assert capsys.readouterr().out == ''


def test_print_prepare_report(capsys):
    _, report = pt.check_prepare(make_failing_tree())

    pt.print_prepare_report(report, max_errors=1)

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["bad1::prepare() error: set only one of 'Area' and 'FlatTopArea' for a TrapGradPulse",
                     '--- 1 more errors hidden ---']


def test_duration_hidden_after_prepare(make_atomic):
    root = pt.ConcatSequence('root', 1, [make_atomic('a', area=10)])
    root.set_attribute('Duration', 1.0)

    root.prepare()

    assert root.duration == pytest.approx(5.02)
    with pytest.raises(AttributeError):
        root.set_attribute('Duration', 1.0)


def test_update_mode(nested):
    root, inner, d, e = nested
    root.prepare()

    d.get_children()[0].set_attribute('Area', 20)

    assert root.prepare('update')
    assert d.duration == pytest.approx(10.02)
    assert root.duration == pytest.approx(2 * 10.02 + 0.02)


def test_prepare_with_system():
    system = pt.Opts(max_grad=2, max_slew=100)
    atom = pt.AtomicSequence('atom', [pt.TrapGradPulse('GX', area=10)])

    assert atom.prepare(system=system)
    assert atom.duration == pytest.approx(5.02)


# =========
# NON-LINEAR GRADIENTS
# =========
def test_non_linear_gradients(make_atomic):
    atom = make_atomic('a', area=10, non_lin_grad=True)
    atom.prepare()

    assert atom.non_lin_grad
    assert atom.get_value(1.0)[2] == 0
    with atom.linear_gradients():
        assert atom.get_value(1.0)[2] == 2
    assert atom.non_lin_grad

    seqdata, _ = atom.get_seq_diag()
    assert seqdata[:, 4].max() == pytest.approx(2)
    assert atom.non_lin_grad


def test_linear_gradients_restored_on_exception(make_atomic):
    atom = make_atomic('a', area=10, non_lin_grad=True)
    atom.prepare()

    with pytest.raises(RuntimeError):
        with atom.linear_gradients():
            assert not atom.non_lin_grad
            raise RuntimeError('failed while sampling')

    assert atom.non_lin_grad


# =========
# TREE
# =========
def test_parent_links(nested):
    root, inner, d, e = nested

    assert root.is_root()
    assert inner.parent is root
    assert d.parent is inner
    assert d.get_depth() == 3
    assert root.get_height() == 4


def test_maximum_depth():
    node = pt.AtomicSequence('leaf')

    with pytest.raises(ValueError, match='maximum tree depth'):
        for i in range(MAX_DEPTH):
            node = pt.ConcatSequence(f'c{i}', children=[node])

    assert node.get_height() == MAX_DEPTH


def test_child_with_parent_is_rejected():
    atom = pt.AtomicSequence('a')
    first = pt.ConcatSequence('first', children=[atom])

    with pytest.raises(ValueError, match='a already belongs to first'):
        pt.ConcatSequence('second', children=[atom])


def test_cycles_are_rejected():
    outer = pt.ConcatSequence('outer')
    inner = outer.add_child(pt.ConcatSequence('inner'))

    with pytest.raises(ValueError, match='cycle'):
        outer.add_child(outer)
    with pytest.raises(ValueError, match='cycle'):
        inner.add_child(outer)


def test_child_types():
    with pytest.raises(TypeError, match='must be sequences'):
        pt.ConcatSequence('c', children=[pt.TrapGradPulse('GX')])
    with pytest.raises(TypeError, match='must be pulses'):
        pt.AtomicSequence('a', [pt.AtomicSequence('b')])
    with pytest.raises(ValueError, match='at least 1'):
        pt.ConcatSequence('c', 0)


def test_zero_pulse_limits_do_not_stop_prepare():
    bad = pt.TrapGradPulse('GX', name='bad', area=1, max_grad=0)
    good = pt.TrapGradPulse('GY', name='good', area=10, max_grad=2, max_slew=100)
    root = pt.ConcatSequence('root', 1, [pt.AtomicSequence('a1', [bad]), pt.AtomicSequence('a2', [good])])

    ok, report = pt.check_prepare(root)

    assert not ok
    assert [(entry.node, entry.attribute) for entry in report] == [('bad', 'MaxAmpl')]
    assert good.amplitude == 2
