#! /usr/bin/env python
# -*- coding: utf-8 -*-

##############################################################################
##  -- PhyNetLab --
##  Library for Teaching Exploratory Phylogenetics and Network Science
##
##  Copyright 2025 Mark Kessler, Luay Nakhleh.
##  All rights reserved.
##
##  See "LICENSE.txt" for terms and conditions of usage.
##
##  If you use this work or any portion thereof in published work,
##  please cite it as:
##
##     Mark Kessler, Luay Nakhleh. 2025.
##
##############################################################################

""" 
Author : Mark Kessler
Last Edit : 10/1/25
First Included in Version : 1.0.0
Docs   - [x]
Tests  - [x]
Design - [x]

Maximum likelihood for nucleotide alignments on a fixed or searched tree.

Likelihoods are computed with Felsenstein's pruning algorithm over the 
unique site patterns of the alignment, with per-node scaling against 
underflow. Rate heterogeneity follows the discrete gamma model (mean rate 
of each category) with an optional proportion of invariant sites. 
Optimization is coordinate ascent using scipy.optimize, plus a greedy 
nearest neighbor interchange (NNI) search over topologies.

SOURCES:

1) Felsenstein 1981, Evolutionary trees from DNA sequences: a maximum 
   likelihood approach.

2) Yang 1994, Maximum likelihood phylogenetic estimation from DNA sequences
   with variable rates over sites: approximate methods.
"""

from __future__ import annotations
import copy
import math
import numpy as np
from scipy import optimize, special, stats
from Bio.Phylo.BaseTree import Tree, Clade
from .Config import (DEFAULT_GAMMA_SHAPE, DEFAULT_SUBSTITUTION_MODEL,
                     GAMMA_SHAPE_BOUNDS, LIKELIHOOD_TOLERANCE, 
                     MAX_BRANCH_LENGTH, MAX_INVARIANT_PROPORTION, 
                     MAX_OPTIMIZATION_ROUNDS, MIN_BRANCH_LENGTH, RATE_BOUNDS)
from .GTR import GTR, get_model
from .Logger import Logger
from .MSA import MSA
from .TreeUtils import num_unrooted_branches, parent_map, tip_labels


#########################
#### EXCEPTION CLASS ####
#########################

class LikelihoodError(Exception):
    """
    This exception is raised when a tree and an alignment do not match, or 
    when a likelihood model is given invalid parameters.
    """
    def __init__(self, message : str = "Error computing a likelihood"):
        self.message = message
        super().__init__(self.message)

##########################
#### HELPER FUNCTIONS ####
##########################

def discrete_gamma_rates(shape : float, k : int) -> np.ndarray:
    """
    Relative substitution rates of 'k' equally probable categories that 
    approximate a gamma distribution with mean 1 and the given shape. Each 
    rate is the mean of the gamma distribution within its category (2).

    Args:
        shape (float): gamma shape parameter (alpha), > 0
        k (int): number of categories, >= 1
    Returns:
        np.ndarray: k rates, in increasing order, whose mean is 1
    """
    if k < 1:
        raise LikelihoodError(f"Need at least one rate category, got {k}")
    if shape <= 0:
        raise LikelihoodError(f"Gamma shape must be positive, got {shape}")
    if k == 1:
        return np.ones(1)
    
    bounds = stats.gamma.ppf(np.arange(1, k) / k, a = shape, 
                             scale = 1 / shape)
    # Incomplete gamma with shape + 1 gives the partial first moments
    cumulative = special.gammainc(shape + 1, bounds * shape)
    cumulative = np.concatenate(([0.0], cumulative, [1.0]))
    return np.diff(cumulative) * k

def _tip_partials(msa : MSA, patterns : np.ndarray) -> dict[str, np.ndarray]:
    """
    Map each taxon name to its (patterns x 4) tip partial likelihoods.
    """
    lookup = {char : msa.alphabet.partials(char) 
              for char in np.unique(patterns)}
    return {name : np.array([lookup[char] for char in row]) 
            for name, row in zip(msa.taxa(), patterns)}

def _index_of(clades : list[Clade], target : Clade) -> int:
    for i, clade in enumerate(clades):
        if clade is target:
            return i
    raise LikelihoodError("Clade is not a child of the given parent")

def _swap(parent : Clade, sibling : Clade, clade : Clade, 
          child : Clade) -> None:
    """
    Exchange 'sibling' (a child of 'parent') with 'child' (a child of 
    'clade', itself a child of 'parent'). Calling it again with 'sibling'
    and 'child' exchanged undoes the move.
    """
    i = _index_of(parent.clades, sibling)
    j = _index_of(clade.clades, child)
    parent.clades[i] = child
    clade.clades[j] = sibling

def _nni_moves(tree : Tree) -> list[tuple[Clade, Clade, Clade, Clade]]:
    """
    All nearest neighbor interchanges around the internal branches of a 
    tree, as (parent, sibling, clade, child) tuples for _swap.
    """
    parents = parent_map(tree)
    moves = []
    for clade in tree.get_nonterminals():
        if clade is tree.root:
            continue
        parent = parents[clade]
        sibling = next(other for other in parent.clades if other is not clade)
        for child in clade.clades:
            moves.append((parent, sibling, clade, child))
    return moves

##########################
#### LIKELIHOOD MODEL ####
##########################

class LikelihoodFit:
    """
    A tree, an alignment and a substitution model, together with the 
    log-likelihood of the alignment under them.
    
    The fit owns a private copy of the tree; the tree passed in is never 
    modified. Non-positive branch lengths in the copy are raised to 
    MIN_BRANCH_LENGTH.
    """
    
    def __init__(self, 
                 tree : Tree, 
                 msa : MSA, 
                 model : GTR, 
                 k : int = 1, 
                 shape : float = DEFAULT_GAMMA_SHAPE, 
                 inv : float = 0.0) -> None:
        """
        Args:
            tree (Tree): a tree whose tips are exactly the alignment's taxa
            msa (MSA): a nucleotide alignment
            model (GTR): a substitution model (copied)
            k (int, optional): number of discrete gamma categories. 1 means 
                               no rate heterogeneity. Defaults to 1.
            shape (float, optional): gamma shape. Defaults to 1.
            inv (float, optional): proportion of invariant sites, in [0, 1).
                                   Defaults to 0.
        Raises:
            LikelihoodError: if the tree and alignment disagree on taxa, or
                             a parameter is out of range
        """
        tips = tip_labels(tree)
        if len(tips) != len(set(tips)):
            raise LikelihoodError("Tree has duplicate tip labels")
        if set(tips) != set(msa.taxa()):
            raise LikelihoodError("Tree tips and alignment taxa differ: "
                                  f"{sorted(set(tips) ^ set(msa.taxa()))}")
        if len(tips) < 2:
            raise LikelihoodError("Need at least two taxa")
        if not 0 <= inv < 1:
            raise LikelihoodError("Proportion of invariant sites must be in "
                                  f"[0, 1), got {inv}")
        
        self.tree : Tree = copy.deepcopy(tree)
        for clade in self.tree.find_clades():
            if clade is self.tree.root:
                continue
            if clade.branch_length is None or \
               clade.branch_length < MIN_BRANCH_LENGTH:
                clade.branch_length = MIN_BRANCH_LENGTH
        
        self.msa : MSA = msa
        self.model : GTR = model.copy()
        self.k : int = k
        self.shape : float = shape
        self.inv : float = inv
        
        # validates k and shape
        discrete_gamma_rates(shape, k)
        
        patterns, weights = msa.site_patterns()
        self.weights : np.ndarray = weights.astype(np.double)
        self._tips : dict[str, np.ndarray] = _tip_partials(msa, patterns)
        
        # Likelihood of each pattern given its site never changes, per state
        constant = np.ones((len(weights), 4))
        for partial in self._tips.values():
            constant = constant * partial
        self._constant : np.ndarray = constant
        
        self._site_logl : np.ndarray = None
    
    #### Evaluation ####
    
    def invalidate(self) -> None:
        """
        Forget the cached likelihood. Call after changing the tree's branch
        lengths or topology, or any model parameter, in place.
        """
        self._site_logl = None
    
    def _compute(self) -> np.ndarray:
        """
        Felsenstein pruning over all rate categories at once.

        Returns:
            np.ndarray: log-likelihood of each site pattern
        """
        rates = discrete_gamma_rates(self.shape, self.k) / (1 - self.inv)
        n_patterns = len(self.weights)
        log_scale = np.zeros(n_patterns)
        partials : dict[Clade, np.ndarray] = {}
        
        for clade in self.tree.find_clades(order = "postorder"):
            if clade.is_terminal():
                partials[clade] = np.broadcast_to(self._tips[clade.name], 
                                                  (self.k, n_patterns, 4))
                continue
            
            acc = np.ones((self.k, n_patterns, 4))
            for child in clade.clades:
                P = self.model.expt_many(rates * child.branch_length)
                acc = acc * np.einsum("kij,kpj->kpi", P, partials.pop(child))
            
            scale = acc.max(axis = (0, 2))
            scale = np.where(scale > 0, scale, 1.0)
            acc = acc / scale[None, :, None]
            log_scale += np.log(scale)
            partials[clade] = acc
        
        root = partials[self.tree.root]
        variable = np.einsum("kpi,i->kp", root, self.model.freqs).mean(axis = 0)
        
        with np.errstate(divide = "ignore"):
            site_logl = np.log(variable) + log_scale
            if self.inv > 0:
                invariant = self._constant @ self.model.freqs
                site_logl = np.logaddexp(np.log1p(-self.inv) + site_logl,
                                         np.log(self.inv) + np.log(invariant))
        return site_logl
    
    @property
    def site_log_likelihoods(self) -> np.ndarray:
        """
        Returns:
            np.ndarray: log-likelihood of each unique site pattern 
                        (see MSA.site_patterns for their order)
        """
        if self._site_logl is None:
            self._site_logl = self._compute()
        return self._site_logl
    
    @property
    def log_likelihood(self) -> float:
        """
        Returns:
            float: log-likelihood of the whole alignment
        """
        return float(np.sum(self.weights * self.site_log_likelihoods))
    
    #### Model selection quantities ####
    
    @property
    def n_sites(self) -> int:
        return int(self.weights.sum())
    
    @property
    def df(self) -> int:
        """
        Number of estimated parameters: branch lengths of the unrooted tree, 
        free model parameters, and one each for gamma and invariant sites 
        when in use.
        """
        return num_unrooted_branches(self.tree) + self.model.n_free_params() \
               + (1 if self.k > 1 else 0) + (1 if self.inv > 0 else 0)
    
    @property
    def aic(self) -> float:
        return -2 * self.log_likelihood + 2 * self.df
    
    @property
    def aicc(self) -> float:
        denom = self.n_sites - self.df - 1
        if denom <= 0:
            return math.inf
        return self.aic + 2 * self.df * (self.df + 1) / denom
    
    @property
    def bic(self) -> float:
        return -2 * self.log_likelihood + self.df * math.log(self.n_sites)
    
    @property
    def label(self) -> str:
        """
        Short model description, ie. "HKY+G(4)+I".
        """
        label = self.model.name
        if self.k > 1:
            label += f"+G({self.k})"
        if self.inv > 0:
            label += "+I"
        return label
    
    #### Copies ####
    
    def update(self, tree : Tree = None, model : GTR = None, k : int = None, 
               shape : float = None, inv : float = None) -> LikelihoodFit:
        """
        A new fit that shares this one's alignment and replaces the given 
        components.

        Returns:
            LikelihoodFit: the new fit
        """
        return LikelihoodFit(self.tree if tree is None else tree,
                             self.msa,
                             self.model if model is None else model,
                             self.k if k is None else k,
                             self.shape if shape is None else shape,
                             self.inv if inv is None else inv)
    
    def summary(self) -> str:
        """
        Human readable description, in the spirit of printing a fit in R.
        """
        freqs, rates = self.model.get_hyperparams()
        lines = [f"model: {self.label}",
                 f"loglikelihood: {self.log_likelihood:.4f}",
                 "unconstrained loglikelihood: "
                 f"{self.unconstrained_log_likelihood():.4f}",
                 f"df: {self.df}    AIC: {self.aic:.4f}    BIC: "
                 f"{self.bic:.4f}",
                 f"base frequencies (A C G T): {np.round(freqs, 4).tolist()}",
                 f"rates (AC AG AT CG CT GT): {np.round(rates, 4).tolist()}"]
        if self.k > 1:
            lines.append(f"gamma shape: {self.shape:.4f}")
        if self.inv > 0:
            lines.append(f"proportion of invariant sites: {self.inv:.4f}")
        return "\n".join(lines)
    
    def unconstrained_log_likelihood(self) -> float:
        """
        Log-likelihood of the saturated multinomial model over site patterns,
        the upper bound for any tree and model.
        """
        n = self.weights.sum()
        return float(np.sum(self.weights * np.log(self.weights / n)))
    
    def __repr__(self) -> str:
        return f"LikelihoodFit({self.label}, logLik={self.log_likelihood:.4f})"

def pml(tree : Tree, 
        msa : MSA, 
        model : str | GTR = DEFAULT_SUBSTITUTION_MODEL, 
        k : int = 1, 
        shape : float = DEFAULT_GAMMA_SHAPE, 
        inv : float = 0.0,
        base_freqs : np.ndarray = None) -> LikelihoodFit:
    """
    Compute the likelihood of an alignment on a tree.

    Args:
        tree (Tree): tree with the alignment's taxa as tips
        msa (MSA): nucleotide alignment
        model (str | GTR, optional): a model name (see GTR.get_model) or 
                                     instance. Defaults to "JC".
        k (int, optional): number of gamma rate categories. Defaults to 1.
        shape (float, optional): gamma shape. Defaults to 1.
        inv (float, optional): proportion of invariant sites. Defaults to 0.
        base_freqs (np.ndarray, optional): base frequencies for models with
                                           free frequencies, when 'model' is a
                                           name. Defaults to the empirical 
                                           frequencies of the alignment.
    Returns:
        LikelihoodFit: the fit
    """
    if isinstance(model, str):
        if base_freqs is None:
            base_freqs = msa.base_frequencies()
        model = get_model(model, base_freqs)
    return LikelihoodFit(tree, msa, model, k = k, shape = shape, inv = inv)

############################
#### OPTIMIZATION STEPS ####
############################

def _accept(fit : LikelihoodFit, before : float, restore) -> float:
    """
    Keep the new state if it did not lower the likelihood, otherwise call 
    'restore'. Returns the resulting log-likelihood.
    """
    fit.invalidate()
    after = fit.log_likelihood
    if after < before:
        restore()
        fit.invalidate()
        return before
    return after

def _optimize_branch(fit : LikelihoodFit, clade : Clade) -> float:
    before = fit.log_likelihood
    old = clade.branch_length
    
    def negative_logl(t : float) -> float:
        clade.branch_length = t
        fit.invalidate()
        return -fit.log_likelihood
    
    result = optimize.minimize_scalar(negative_logl, 
                                      bounds = (MIN_BRANCH_LENGTH, 
                                                MAX_BRANCH_LENGTH),
                                      method = "bounded",
                                      options = {"xatol" : 1e-7})
    clade.branch_length = float(result.x)
    
    def restore() -> None:
        clade.branch_length = old
    
    return _accept(fit, before, restore)

def _optimize_edges(fit : LikelihoodFit) -> float:
    """
    One pass of Brent's method over every branch length.
    """
    for clade in list(fit.tree.find_clades()):
        if clade is not fit.tree.root:
            _optimize_branch(fit, clade)
    return fit.log_likelihood

def _optimize_rates(fit : LikelihoodFit) -> float:
    start = fit.model.rate_params()
    if len(start) == 0:
        return fit.log_likelihood
    before = fit.log_likelihood
    low, high = np.log(RATE_BOUNDS[0]), np.log(RATE_BOUNDS[1])
    
    def negative_logl(x : np.ndarray) -> float:
        fit.model.set_rate_params(np.exp(x))
        fit.invalidate()
        return -fit.log_likelihood
    
    result = optimize.minimize(negative_logl, np.log(start), 
                               method = "L-BFGS-B",
                               bounds = [(low, high)] * len(start))
    fit.model.set_rate_params(np.exp(result.x))
    
    def restore() -> None:
        fit.model.set_rate_params(start)
    
    return _accept(fit, before, restore)

def _optimize_freqs(fit : LikelihoodFit) -> float:
    start = fit.model.freqs.copy()
    before = fit.log_likelihood
    
    def to_freqs(x : np.ndarray) -> np.ndarray:
        weights = np.exp(np.append(x, 0.0))
        return weights / weights.sum()
    
    def negative_logl(x : np.ndarray) -> float:
        fit.model.set_hyperparams({"base frequencies" : to_freqs(x)})
        fit.invalidate()
        return -fit.log_likelihood
    
    result = optimize.minimize(negative_logl, np.log(start[:3] / start[3]),
                               method = "L-BFGS-B", 
                               bounds = [(-10.0, 10.0)] * 3)
    fit.model.set_hyperparams({"base frequencies" : to_freqs(result.x)})
    
    def restore() -> None:
        fit.model.set_hyperparams({"base frequencies" : start})
    
    return _accept(fit, before, restore)

def _optimize_shape(fit : LikelihoodFit) -> float:
    before = fit.log_likelihood
    old = fit.shape
    
    def negative_logl(x : float) -> float:
        fit.shape = math.exp(x)
        fit.invalidate()
        return -fit.log_likelihood
    
    result = optimize.minimize_scalar(negative_logl, 
                                      bounds = (math.log(GAMMA_SHAPE_BOUNDS[0]),
                                                math.log(GAMMA_SHAPE_BOUNDS[1])),
                                      method = "bounded")
    fit.shape = math.exp(result.x)
    
    def restore() -> None:
        fit.shape = old
    
    return _accept(fit, before, restore)

def _optimize_inv(fit : LikelihoodFit) -> float:
    before = fit.log_likelihood
    old = fit.inv
    
    def negative_logl(p : float) -> float:
        fit.inv = p
        fit.invalidate()
        return -fit.log_likelihood
    
    result = optimize.minimize_scalar(negative_logl, 
                                      bounds = (0.0, MAX_INVARIANT_PROPORTION),
                                      method = "bounded")
    fit.inv = float(result.x)
    
    def restore() -> None:
        fit.inv = old
    
    return _accept(fit, before, restore)

def _nni_search(fit : LikelihoodFit, opt_edge : bool, tol : float) -> int:
    """
    Greedy hill climbing over nearest neighbor interchanges. The first move
    that improves the likelihood by more than 'tol' is kept and the list of
    moves is rebuilt, until no move improves it.

    Returns:
        int: number of interchanges kept
    """
    kept = 0
    improved = True
    while improved:
        improved = False
        best = fit.log_likelihood
        for parent, sibling, clade, child in _nni_moves(fit.tree):
            old_length = clade.branch_length
            _swap(parent, sibling, clade, child)
            fit.invalidate()
            if opt_edge:
                _optimize_branch(fit, clade)
            
            if fit.log_likelihood > best + tol:
                kept += 1
                improved = True
                break
            
            _swap(parent, child, clade, sibling)
            clade.branch_length = old_length
            fit.invalidate()
    return kept

def optim_pml(fit : LikelihoodFit, 
              opt_edge : bool = True,
              opt_nni : bool = False,
              opt_q : bool = False,
              opt_bf : bool = False,
              opt_gamma : bool = False,
              opt_inv : bool = False,
              rounds : int = MAX_OPTIMIZATION_ROUNDS,
              tol : float = LIKELIHOOD_TOLERANCE,
              logger : Logger = None) -> LikelihoodFit:
    """
    Maximize the likelihood over the selected parameters. Each round 
    optimizes, in turn, branch lengths, exchangeability rates, base 
    frequencies, gamma shape, proportion of invariant sites and topology, 
    and rounds stop once the improvement drops below 'tol'.
    
    Each step only ever keeps a change that does not lower the likelihood,
    so the result is at least as good as the input fit.

    Args:
        fit (LikelihoodFit): the starting point. Not modified.
        opt_edge (bool, optional): optimize branch lengths. Defaults to True.
        opt_nni (bool, optional): search topologies by NNI. Defaults to False.
        opt_q (bool, optional): optimize exchangeability rates. 
                                Defaults to False.
        opt_bf (bool, optional): optimize base frequencies. Defaults to False.
        opt_gamma (bool, optional): optimize the gamma shape. Needs k > 1. 
                                    Defaults to False.
        opt_inv (bool, optional): optimize the proportion of invariant sites.
                                  Defaults to False.
        rounds (int, optional): maximum number of rounds. Defaults to 25.
        tol (float, optional): convergence threshold on the log-likelihood.
        logger (Logger, optional): receives one line per round. 
                                   Defaults to None.
    Returns:
        LikelihoodFit: a new, optimized fit
    Raises:
        LikelihoodError: if gamma optimization is requested with k = 1, or 
                         base frequency optimization for a model whose 
                         frequencies are fixed
    """
    if opt_gamma and fit.k == 1:
        raise LikelihoodError("Optimizing the gamma shape requires k > 1 rate "
                              "categories")
    if opt_bf and not fit.model.free_freqs:
        raise LikelihoodError(f"Model {fit.model.name} has fixed base "
                              "frequencies")
    
    work = fit.update()
    current = work.log_likelihood
    if logger is not None:
        logger.log(f"optim_pml {work.label}: start loglik = {current:.6f}")
    
    for round_no in range(1, rounds + 1):
        if opt_edge:
            _optimize_edges(work)
        if opt_q:
            _optimize_rates(work)
        if opt_bf:
            _optimize_freqs(work)
        if opt_gamma:
            _optimize_shape(work)
        if opt_inv:
            _optimize_inv(work)
        swaps = _nni_search(work, opt_edge, tol) if opt_nni else 0
        
        new = work.log_likelihood
        if logger is not None:
            logger.log(f"optim_pml {work.label}: round {round_no}, loglik = "
                       f"{new:.6f}, NNI moves kept = {swaps}")
        
        converged = new - current < tol and swaps == 0
        current = new
        if converged:
            break
    
    return work
