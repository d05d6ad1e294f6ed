import copy
import math
import warnings
import numpy as np
import pytest
from PhyNetLab.GTR import HKY
from PhyNetLab.Likelihood import (LikelihoodError, discrete_gamma_rates, 
                                  optim_pml, pml)
from PhyNetLab.Logger import Logger
from PhyNetLab.MSA import MSA
from PhyNetLab.NJ import build_tree, clamp_branch_lengths
from PhyNetLab.TreeUtils import (parse_newick, root_with_outgroup, 
                                 tip_labels, to_newick)

################
### HELPERS ####
################

def jc_prob(t : float, same : bool) -> float:
    decay = math.exp(-4 * t / 3)
    return 0.25 + 0.75 * decay if same else 0.25 - 0.25 * decay

def star_log_likelihood(seqs : dict[str, str], 
                        lengths : dict[str, float]) -> float:
    """
    Jukes-Cantor log-likelihood on a star tree, summing over the state of 
    the center directly.
    """
    total = 0.0
    for i in range(len(next(iter(seqs.values())))):
        site = 0.0
        for x in "ACGT":
            term = 0.25
            for name, seq in seqs.items():
                term *= jc_prob(lengths[name], seq[i] == x)
            site += term
        total += math.log(site)
    return total

def nj_start(msa : MSA):
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        tree = build_tree(msa)
    clamp_branch_lengths(tree)
    return tree

################
#### TESTS #####
################

def test_closed_form_three_taxa():
    seqs = {"a" : "ACGTAACCGT", "b" : "ACGTCACCGA", "c" : "ACTTAACGGT"}
    lengths = {"a" : 0.1, "b" : 0.2, "c" : 0.3}
    tree = parse_newick("(a:0.1,b:0.2,c:0.3);")
    fit = pml(tree, MSA.from_dict(seqs), "JC")
    assert fit.log_likelihood == pytest.approx(star_log_likelihood(seqs, 
                                                                   lengths))

def test_site_likelihoods_add_up(small_msa):
    fit = pml(nj_start(small_msa), small_msa, "HKY", k = 4, inv = 0.1)
    assert np.sum(fit.weights * fit.site_log_likelihoods) == \
           pytest.approx(fit.log_likelihood)
    assert fit.n_sites == small_msa.length()
    assert fit.log_likelihood <= fit.unconstrained_log_likelihood()

def test_reroot_invariance(small_msa):
    tree = nj_start(small_msa)
    rooted = root_with_outgroup(copy.deepcopy(tree), "t3")
    for model in ("JC", "HKY", "GTR"):
        unrooted_fit = pml(tree, small_msa, model, k = 4, shape = 0.7)
        rooted_fit = pml(rooted, small_msa, model, k = 4, shape = 0.7)
        assert rooted_fit.log_likelihood == \
               pytest.approx(unrooted_fit.log_likelihood, rel = 1e-6)

def test_one_category_is_no_gamma(small_msa):
    tree = nj_start(small_msa)
    base = pml(tree, small_msa, "K80")
    assert pml(tree, small_msa, "K80", k = 1, shape = 0.2).log_likelihood \
           == pytest.approx(base.log_likelihood)
    # a very large shape means (almost) no rate variation
    flat = pml(tree, small_msa, "K80", k = 4, shape = 100.0)
    assert flat.log_likelihood == pytest.approx(base.log_likelihood, 
                                                rel = 1e-2)

@pytest.mark.parametrize("shape", [0.1, 0.5, 1.0, 3.0, 50.0])
@pytest.mark.parametrize("k", [1, 2, 4, 8])
def test_gamma_rates_have_mean_one(shape, k):
    rates = discrete_gamma_rates(shape, k)
    assert len(rates) == k
    assert np.mean(rates) == pytest.approx(1.0)
    assert np.all(np.diff(rates) >= 0)

def test_gamma_rates_known_values():
    rates = discrete_gamma_rates(0.5, 4)
    assert np.allclose(rates, [0.0334, 0.2519, 0.8203, 2.8944], atol = 1e-3)

def test_gamma_rates_invalid():
    with pytest.raises(LikelihoodError):
        discrete_gamma_rates(0.0, 4)
    with pytest.raises(LikelihoodError):
        discrete_gamma_rates(1.0, 0)

def test_degrees_of_freedom(small_msa):
    tree = nj_start(small_msa)
    jc = pml(tree, small_msa, "JC")
    assert jc.df == 7
    full = pml(tree, small_msa, "HKY", k = 4, inv = 0.2)
    assert full.df == 7 + 4 + 1 + 1
    assert full.label == "HKY+G(4)+I"
    assert full.aic == pytest.approx(-2 * full.log_likelihood + 2 * full.df)
    assert full.bic == pytest.approx(-2 * full.log_likelihood 
                                     + full.df * math.log(40))

def test_optimization_never_lowers_likelihood(small_msa):
    tree = nj_start(small_msa)
    before = to_newick(tree)
    start = pml(tree, small_msa, "HKY", k = 4, inv = 0.1)
    logger = Logger("optim")
    
    best = optim_pml(start, opt_q = True, opt_bf = True, opt_gamma = True,
                     opt_inv = True, rounds = 3, logger = logger)
    
    assert best.log_likelihood >= start.log_likelihood - 1e-9
    assert best is not start
    # neither the input tree nor the input fit is touched
    assert to_newick(tree) == before
    assert start.log_likelihood == pytest.approx(
        pml(tree, small_msa, "HKY", k = 4, inv = 0.1).log_likelihood)
    assert len(logger.lines) >= 2

def test_nni_search(small_msa):
    tree = parse_newick("((t1:0.1,t5:0.1):0.1,(t2:0.1,t4:0.1):0.1,t3:0.1);")
    start = pml(tree, small_msa, "JC")
    best = optim_pml(start, opt_nni = True, rounds = 5)
    assert best.log_likelihood >= start.log_likelihood
    assert sorted(tip_labels(best.tree)) == small_msa.taxa()

def test_update_keeps_alignment(small_msa):
    fit = pml(nj_start(small_msa), small_msa, "JC")
    other = fit.update(model = HKY(small_msa.base_frequencies(), 2.0))
    assert other.msa is fit.msa
    assert other.label == "HKY"
    assert fit.label == "JC"

def test_mismatched_inputs(small_msa):
    tree = parse_newick("((t1:0.1,t2:0.1):0.1,t3:0.1,t9:0.1);")
    with pytest.raises(LikelihoodError):
        pml(tree, small_msa)
    good = nj_start(small_msa)
    with pytest.raises(LikelihoodError):
        pml(good, small_msa, inv = 1.0)
    fit = pml(good, small_msa, "JC")
    with pytest.raises(LikelihoodError):
        optim_pml(fit, opt_gamma = True)
    with pytest.raises(LikelihoodError):
        optim_pml(fit, opt_bf = True)
