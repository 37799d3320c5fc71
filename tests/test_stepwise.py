"""
Test stepwise selection by information criterion.
"""

import pytest
import numpy as np
import pandas as pd

from pyairreg import fit
from pyairreg.exceptions import DegenerateDesignError
from pyairreg.stepwise import TraceStep, select
from pyairreg.terms import Identity, parse_terms


@pytest.fixture
def signal_table(rng):
    n = 200
    a = rng.normal(size=n)
    b = rng.normal(size=n)
    noise = rng.normal(size=(n, 3))
    y = 3.0 * a - 2.0 * b + 0.5 * rng.normal(size=n)
    return pd.DataFrame({
        'a': a, 'b': b, 'n1': noise[:, 0], 'n2': noise[:, 1], 'n3': noise[:, 2], 'y': y
    })


UNIVERSE = ['a', 'b', 'n1', 'n2', 'n3']


def _keys(terms):
    return {t.key for t in terms}


def test_forward_from_empty_finds_signal(signal_table):
    model, trace = select(signal_table, 'y', [], UNIVERSE, direction='forward')

    assert [s.action for s in trace[:2]] == ['+', '+']
    assert trace[0].term == Identity('a')
    assert trace[1].term == Identity('b')
    assert _keys([Identity('a'), Identity('b')]) <= _keys(model.terms)
    assert _keys(model.terms) <= _keys(parse_terms(UNIVERSE))


def test_backward_from_full(signal_table):
    model, trace = select(signal_table, 'y', UNIVERSE, UNIVERSE, direction='backward')

    assert all(isinstance(s, TraceStep) and s.action == '-' for s in trace)
    assert _keys([Identity('a'), Identity('b')]) <= _keys(model.terms)
    assert len(model.terms) == len(UNIVERSE) - len(trace)


def test_criterion_strictly_decreases(signal_table):
    start = fit(signal_table, 'y', UNIVERSE).aic
    model, trace = select(signal_table, 'y', UNIVERSE, UNIVERSE, direction='both')

    criteria = [start] + [s.criterion for s in trace]
    assert all(later < earlier for earlier, later in zip(criteria, criteria[1:]))
    assert model.aic == pytest.approx(criteria[-1])


def test_no_single_step_improves_final_model(signal_table):
    model, _ = select(signal_table, 'y', [], UNIVERSE, direction='both')
    final = model.aic
    present = _keys(model.terms)
    for term in parse_terms(UNIVERSE):
        if term.key in present:
            candidate = [t for t in model.terms if t.key != term.key]
        else:
            candidate = list(model.terms) + [term]
        assert fit(signal_table, 'y', candidate).aic >= final


def test_bic_penalty(signal_table):
    penalty = np.log(len(signal_table))
    model, trace = select(signal_table, 'y', UNIVERSE, UNIVERSE, penalty=penalty)
    if trace:
        assert trace[-1].criterion == pytest.approx(model.bic)


def test_backward_on_empty_set(signal_table):
    model, trace = select(signal_table, 'y', [], UNIVERSE, direction='backward')
    assert trace == ()
    assert model.terms == ()
    assert model.rank == 1


def test_initial_terms_must_be_in_universe(signal_table):
    with pytest.raises(ValueError, match="not in the universe"):
        select(signal_table, 'y', ['a', 'n1'], ['a', 'b'])


def test_unknown_direction(signal_table):
    with pytest.raises(ValueError, match="direction"):
        select(signal_table, 'y', [], UNIVERSE, direction='sideways')


def test_candidate_failure_propagates(rng):
    x = rng.normal(size=30)
    table = pd.DataFrame({'x': x, 'x2': 2.0 * x, 'y': x + rng.normal(size=30)})
    with pytest.raises(DegenerateDesignError):
        select(table, 'y', ['x'], ['x', 'x2'], direction='forward')


def test_trace_step_str():
    step = TraceStep('+', Identity('Iws'), 12.5)
    assert str(step).startswith('+ Iws')


@pytest.fixture
def tied_table():
    # a and b are orthogonal with equal norms and equal weight in y
    a = np.array([1.0, -1.0, 0.0, 0.0, 1.0, -1.0, 0.0, 0.0])
    b = np.array([0.0, 0.0, 1.0, -1.0, 0.0, 0.0, 1.0, -1.0])
    c = np.array([1.0, 1.0, 1.0, 1.0, -1.0, -1.0, -1.0, -1.0])
    return pd.DataFrame({'a': a, 'b': b, 'y': 0.25 * a + 0.25 * b + c})


@pytest.mark.parametrize('universe', [['a', 'b'], ['b', 'a']])
def test_tie_goes_to_first_in_universe(tied_table, universe):
    _, trace = select(tied_table, 'y', universe, universe, direction='backward')
    assert trace[0].term == Identity(universe[0])
