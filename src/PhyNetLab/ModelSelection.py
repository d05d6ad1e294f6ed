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

Comparing likelihood fits: likelihood ratio tests for nested models, and
information criteria (AIC, AICc, BIC) for any set of models fit to the same
alignment.
"""

from __future__ import annotations
from dataclasses import dataclass
import numpy as np
import pandas as pd
from scipy.stats import chi2
from Bio.Phylo.BaseTree import Tree
from .Config import DEFAULT_GAMMA_CATEGORIES
from .Likelihood import LikelihoodFit, optim_pml, pml
from .Logger import Logger
from .MSA import MSA

#########################
#### EXCEPTION CLASS ####
#########################

class ModelSelectionError(Exception):
    """
    Error class for comparisons that make no sense, such as a likelihood 
    ratio test between models with the same number of parameters.
    """
    def __init__(self, message : str = "Error comparing models"):
        self.message = message
        super().__init__(self.message)

@dataclass(frozen = True)
class LRTResult:
    """
    Outcome of a likelihood ratio test.
    """
    statistic : float
    df : int
    p_value : float

def _check_same_data(fits : list[LikelihoodFit]) -> None:
    sites = {fit.n_sites for fit in fits}
    if len(sites) != 1:
        raise ModelSelectionError("Fits were computed on alignments of "
                                  "different lengths")

def likelihood_ratio_test(null : LikelihoodFit, 
                          alt : LikelihoodFit) -> LRTResult:
    """
    Test a nested (null) model against a richer (alternative) one. The 
    statistic 2 * (lnL_alt - lnL_null) is compared to a chi-squared 
    distribution with as many degrees of freedom as extra parameters.

    Args:
        null (LikelihoodFit): the simpler model
        alt (LikelihoodFit): the model with more parameters
    Returns:
        LRTResult: statistic, degrees of freedom and p-value
    Raises:
        ModelSelectionError: if 'alt' does not have more parameters than 
                             'null'
    """
    _check_same_data([null, alt])
    df = alt.df - null.df
    if df <= 0:
        raise ModelSelectionError("Alternative model must have more "
                                  "parameters than the null model (got a "
                                  f"difference of {df})")
    
    # Numerical optimization can leave a nested fit a hair above its parent
    statistic = max(2 * (alt.log_likelihood - null.log_likelihood), 0.0)
    return LRTResult(statistic, df, float(chi2.sf(statistic, df)))

def anova(*fits : LikelihoodFit) -> pd.DataFrame:
    """
    Sequential likelihood ratio tests for a series of nested fits, laid out
    like an analysis of deviance table. Each row is compared with the row 
    above it.

    Returns:
        pd.DataFrame: columns "Log lik.", "Df", "Df change", 
                      "Diff log lik.", "Pr(>|Chi|)", one row per fit
    """
    if len(fits) < 2:
        raise ModelSelectionError("anova needs at least two fits")
    _check_same_data(list(fits))
    
    rows = []
    for i, fit in enumerate(fits):
        row = {"Model" : fit.label,
               "Log lik." : fit.log_likelihood, 
               "Df" : fit.df,
               "Df change" : np.nan, 
               "Diff log lik." : np.nan, 
               "Pr(>|Chi|)" : np.nan}
        if i > 0:
            result = likelihood_ratio_test(fits[i - 1], fit)
            row["Df change"] = result.df
            row["Diff log lik."] = result.statistic
            row["Pr(>|Chi|)"] = result.p_value
        rows.append(row)
    
    return pd.DataFrame(rows).set_index("Model")

def aic_table(fits : list[LikelihoodFit], 
              labels : list[str] = None) -> pd.DataFrame:
    """
    Information criteria for a set of fits on the same alignment, in the 
    order given.

    Args:
        fits (list[LikelihoodFit]): the fits
        labels (list[str], optional): row names. Defaults to each fit's label.
    Returns:
        pd.DataFrame: columns "df", "logLik", "AIC", "AICw", "AICc", "AICcw",
                      "BIC". The weights are Akaike weights and sum to 1.
    """
    if len(fits) == 0:
        raise ModelSelectionError("No fits to compare")
    _check_same_data(fits)
    if labels is None:
        labels = [fit.label for fit in fits]
    if len(labels) != len(fits):
        raise ModelSelectionError("Need exactly one label per fit")
    
    table = pd.DataFrame({"Model" : labels,
                          "df" : [fit.df for fit in fits],
                          "logLik" : [fit.log_likelihood for fit in fits],
                          "AIC" : [fit.aic for fit in fits],
                          "AICc" : [fit.aicc for fit in fits],
                          "BIC" : [fit.bic for fit in fits]})
    table.insert(4, "AICw", _akaike_weights(table["AIC"].to_numpy()))
    table.insert(6, "AICcw", _akaike_weights(table["AICc"].to_numpy()))
    return table

def _akaike_weights(values : np.ndarray) -> np.ndarray:
    delta = values - np.min(values)
    relative = np.exp(-0.5 * delta)
    return relative / relative.sum()

def model_test(tree : Tree, 
               msa : MSA, 
               models : tuple[str, ...] = ("JC", "F81", "K80", "HKY", 
                                           "SYM", "GTR"),
               gamma : bool = True, 
               inv : bool = True,
               k : int = DEFAULT_GAMMA_CATEGORIES,
               opt_nni : bool = False,
               logger : Logger = None) -> pd.DataFrame:
    """
    Fit every model, and its +G, +I and +G+I variants if requested, on a 
    tree, optimizing branch lengths and model parameters for each, and 
    compare them.

    Args:
        tree (Tree): starting tree
        msa (MSA): the alignment
        models (tuple[str, ...], optional): model names. 
        gamma (bool, optional): also fit gamma rate variants. 
                                Defaults to True.
        inv (bool, optional): also fit invariant site variants. 
                              Defaults to True.
        k (int, optional): gamma categories. Defaults to 4.
        opt_nni (bool, optional): also search topologies. Defaults to False.
        logger (Logger, optional): passed to each optimization. 
    Returns:
        pd.DataFrame: see aic_table
    """
    variants = [(1, False)]
    if gamma:
        variants.append((k, False))
    if inv:
        variants.append((1, True))
    if gamma and inv:
        variants.append((k, True))
    
    fits = []
    for name in models:
        for categories, use_inv in variants:
            start = pml(tree, msa, model = name, k = categories, 
                        inv = 0.2 if use_inv else 0.0)
            fits.append(optim_pml(start, 
                                  opt_nni = opt_nni,
                                  opt_q = len(start.model.rate_params()) > 0,
                                  opt_bf = start.model.free_freqs,
                                  opt_gamma = categories > 1,
                                  opt_inv = use_inv,
                                  logger = logger))
    return aic_table(fits)
