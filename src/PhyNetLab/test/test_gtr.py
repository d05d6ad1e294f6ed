import numpy as np
import pytest
from PhyNetLab.GTR import (F81, GTR, HKY, JC, K80, SYM, TN93, 
                           SubstitutionModelError, get_model)

FREQS = [0.1, 0.2, 0.3, 0.4]
RATES = [1.0, 2.0, 0.5, 0.8, 3.0, 1.0]

################
#### TESTS #####
################

@pytest.mark.parametrize("model", [JC(), K80(2.0), F81(FREQS), HKY(FREQS, 3),
                                   TN93(FREQS, 2, 4), SYM(RATES), 
                                   GTR(FREQS, RATES)])
def test_transition_matrices(model):
    """
    P(0) is the identity, rows of P(t) sum to 1, the base frequencies are 
    stationary, and the expected substitution rate is 1.
    """
    assert np.allclose(model.expt(0.0), np.eye(4))
    P = model.expt(0.37)
    assert np.allclose(P.sum(axis = 1), 1.0)
    assert np.allclose(model.freqs @ P, model.freqs)
    Q = model.getQ()
    assert -np.sum(np.diag(Q) * model.freqs) == pytest.approx(1.0)
    # detailed balance
    flux = model.freqs[:, None] * Q
    assert np.allclose(flux, flux.T)

def test_jc_closed_form():
    t = 0.25
    P = JC().expt(t)
    same = 0.25 + 0.75 * np.exp(-4 * t / 3)
    diff = 0.25 - 0.25 * np.exp(-4 * t / 3)
    assert np.allclose(np.diag(P), same)
    assert P[0, 1] == pytest.approx(diff)

def test_expt_many_matches_expt():
    model = HKY(FREQS, 2.5)
    ts = np.array([0.01, 0.3, 2.0])
    many = model.expt_many(ts)
    for t, P in zip(ts, many):
        assert np.allclose(P, model.expt(t))

def test_free_parameters():
    assert JC().n_free_params() == 0
    assert F81(FREQS).n_free_params() == 3
    assert K80().n_free_params() == 1
    assert HKY(FREQS).n_free_params() == 4
    assert TN93(FREQS).n_free_params() == 5
    assert SYM().n_free_params() == 5
    assert GTR(FREQS).n_free_params() == 8

def test_rate_params_round_trip():
    model = TN93(FREQS)
    model.set_rate_params([3.0, 5.0])
    assert np.allclose(model.rate_params(), [3.0, 5.0])
    assert np.allclose(model.get_hyperparams()[1], 
                       [1.0, 3.0, 1.0, 1.0, 5.0, 1.0])
    
    hky = HKY(FREQS)
    hky.set_hyperparams({"kappa" : 4.0})
    assert np.allclose(hky.rate_params(), [4.0])

def test_invalid_parameters():
    with pytest.raises(SubstitutionModelError):
        GTR([0.5, 0.5, 0.5, 0.5])
    with pytest.raises(SubstitutionModelError):
        GTR(FREQS, [1, 1, 1])
    with pytest.raises(SubstitutionModelError):
        GTR(FREQS, [1, 1, 1, 1, -1, 1])

def test_get_model():
    assert isinstance(get_model("jc69"), JC)
    assert isinstance(get_model("HKY85", FREQS), HKY)
    assert np.allclose(get_model("F81", FREQS).freqs, FREQS)
    # models with fixed frequencies ignore the argument
    assert np.allclose(get_model("K80", FREQS).freqs, 0.25)
    with pytest.raises(SubstitutionModelError):
        get_model("WAG")

def test_copy_is_independent():
    model = GTR(FREQS, RATES)
    clone = model.copy()
    clone.set_rate_params([2, 2, 2, 2, 2])
    assert np.allclose(model.get_hyperparams()[1], RATES)
