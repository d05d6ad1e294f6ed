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
Last Edit : 9/22/25
First Included in Version : 1.0.0
Docs   - [x]
Tests  - [x]
Design - [x]

SOURCES:

1) Jukes and Cantor 1969 (JC69)

2) Kimura 1980 (K80)

3) Felsenstein 1981 (F81)

4) Tamura and Nei, 1993 (TN93)
"""

from __future__ import annotations
import warnings
import numpy as np
import pandas as pd
from Bio.Phylo.TreeConstruction import DistanceCalculator
from Bio.Phylo.TreeConstruction import DistanceMatrix as BioDistanceMatrix
from .MSA import MSA
from .Alphabet import PURINES, PYRIMIDINES
from .Config import DEFAULT_DISTANCE_MODEL


# Corrected distances computed here. The nucleotide scoring models below are
# passed to Biopython's DistanceCalculator.
CORRECTED_MODELS : tuple[str, ...] = ("raw", "N", "JC69", "K80", "F81", "TN93")

CALCULATOR_MODELS : tuple[str, ...] = ("identity", "blastn", "trans")

#########################
#### EXCEPTION CLASS ####
#########################

class DistanceError(Exception):
    """
    This exception is raised when a distance model is unknown, or a distance
    matrix is malformed.
    """
    def __init__(self, message : str = "Error computing a distance matrix"):
        self.message = message
        super().__init__(self.message)

##########################
#### DISTANCE MATRIX #####
##########################

class DistanceMatrix:
    """
    A symmetric, non-negative matrix of pairwise distances between taxa, with
    a zero diagonal. Thin wrapper over a numpy array that knows its taxon 
    names and converts to the Biopython and pandas representations.
    """
    
    def __init__(self, names : list[str], values : np.ndarray, 
                 model : str = None) -> None:
        """
        Args:
            names (list[str]): taxon names, in row order
            values (np.ndarray): square (n x n) array
            model (str, optional): name of the model the distances were 
                                   computed under. Defaults to None.
        Raises:
            DistanceError: if the array is not square or does not match the
                           number of names
        """
        values = np.asarray(values, dtype = np.double)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise DistanceError("Distance matrix must be square")
        if values.shape[0] != len(names):
            raise DistanceError(f"Got {len(names)} names for a "
                                f"{values.shape[0]}x{values.shape[0]} matrix")
        self.names : list[str] = list(names)
        self.values : np.ndarray = values
        self.model : str = model
        self._index : dict[str, int] = {name : i 
                                        for i, name in enumerate(self.names)}
    
    @classmethod
    def from_biopython(cls, dm : BioDistanceMatrix, 
                       model : str = None) -> DistanceMatrix:
        """
        Convert a Biopython (lower triangular) distance matrix.

        Args:
            dm (BioDistanceMatrix): Biopython distance matrix
            model (str, optional): model name. Defaults to None.
        Returns:
            DistanceMatrix: the full square matrix
        """
        n = len(dm.names)
        values = np.zeros((n, n))
        for i in range(n):
            for j in range(i):
                values[i, j] = values[j, i] = dm[i, j]
        return cls(dm.names, values, model = model)
    
    def to_biopython(self) -> BioDistanceMatrix:
        """
        Returns:
            BioDistanceMatrix: lower triangular copy, the input to Biopython's
                               tree constructors
        """
        lower = [[float(self.values[i, j]) for j in range(i)] + [0.0] 
                 for i in range(len(self.names))]
        return BioDistanceMatrix(list(self.names), lower)
    
    def to_dataframe(self) -> pd.DataFrame:
        """
        Returns:
            pd.DataFrame: labelled copy of the matrix
        """
        return pd.DataFrame(self.values.copy(), index = self.names, 
                            columns = self.names)
    
    def as_array(self) -> np.ndarray:
        """
        Returns:
            np.ndarray: a copy of the underlying array
        """
        return self.values.copy()
    
    def is_symmetric(self, tol : float = 1e-12) -> bool:
        """
        Check symmetry, a zero diagonal and non-negativity.

        Args:
            tol (float, optional): absolute tolerance. Defaults to 1e-12.
        Returns:
            bool: True if all three hold
        """
        finite = np.where(np.isfinite(self.values), self.values, 0)
        return bool(np.allclose(finite, finite.T, atol = tol)
                    and np.allclose(np.diag(self.values), 0, atol = tol)
                    and np.all(self.values >= 0))
    
    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.values)))
    
    @property
    def shape(self) -> tuple[int, int]:
        return self.values.shape
    
    def __getitem__(self, key : tuple[str, str]) -> float:
        a, b = key
        return float(self.values[self._index[a], self._index[b]])
    
    def __len__(self) -> int:
        return len(self.names)
    
    def __repr__(self) -> str:
        return f"DistanceMatrix({len(self.names)} taxa, model={self.model})"

##########################
#### HELPER FUNCTIONS ####
##########################

def _pair_counts(x : np.ndarray, y : np.ndarray) -> tuple[int, int, int, int]:
    """
    Compare two integer-coded sequences (0-3 for A, C, G, T; -1 for anything
    else), ignoring columns where either is -1.

    Returns:
        tuple[int, int, int, int]: (compared sites, purine transitions, 
                                    pyrimidine transitions, transversions)
    """
    valid = (x >= 0) & (y >= 0)
    x = x[valid]
    y = y[valid]
    diff = x != y
    both_purine = np.isin(x, list(PURINES)) & np.isin(y, list(PURINES))
    both_pyrimidine = np.isin(x, list(PYRIMIDINES)) & \
                      np.isin(y, list(PYRIMIDINES))
    ts_r = int(np.sum(diff & both_purine))
    ts_y = int(np.sum(diff & both_pyrimidine))
    tv = int(np.sum(diff)) - ts_r - ts_y
    return int(valid.sum()), ts_r, ts_y, tv

def _log_or_saturated(arg : float) -> float:
    """
    Natural log of a correction term, or nan if the pair is saturated.
    """
    if arg <= 0:
        return np.nan
    return np.log(arg)

def _corrected_distance(model : str, sites : int, ts_r : int, ts_y : int,
                        tv : int, freqs : np.ndarray) -> float:
    """
    Apply one of the corrected distance formulas to a pair of sequences.

    Returns:
        float: the distance, or nan if the correction is undefined
    """
    if sites == 0:
        return np.nan
    
    diffs = ts_r + ts_y + tv
    if model == "N":
        return float(diffs)
    
    p = diffs / sites
    if model == "raw":
        return p
    
    if model == "JC69":
        return -0.75 * _log_or_saturated(1 - 4 * p / 3)
    
    if model == "K80":
        P = (ts_r + ts_y) / sites
        Q = tv / sites
        return -0.5 * _log_or_saturated(1 - 2 * P - Q) \
               - 0.25 * _log_or_saturated(1 - 2 * Q)
    
    if model == "F81":
        b = 1 - np.sum(freqs ** 2)
        return -b * _log_or_saturated(1 - p / b)
    
    # TN93
    pi_a, pi_c, pi_g, pi_t = freqs
    pi_r = pi_a + pi_g
    pi_y = pi_c + pi_t
    P1 = ts_r / sites
    P2 = ts_y / sites
    Q = tv / sites
    k1 = 2 * pi_a * pi_g / pi_r
    k2 = 2 * pi_t * pi_c / pi_y
    k3 = 2 * (pi_r * pi_y - pi_a * pi_g * pi_y / pi_r 
              - pi_t * pi_c * pi_r / pi_y)
    return -k1 * _log_or_saturated(1 - P1 / k1 - Q / (2 * pi_r)) \
           - k2 * _log_or_saturated(1 - P2 / k2 - Q / (2 * pi_y)) \
           - k3 * _log_or_saturated(1 - Q / (2 * pi_r * pi_y))

def _encode(msa : MSA) -> np.ndarray:
    """
    Integer-code an alignment: 0-3 for A, C, G, T; -1 for gaps, missing data
    and ambiguity codes.
    """
    matrix = msa.char_matrix()
    lookup = np.vectorize(msa.alphabet.state_index, otypes = [int])
    return lookup(matrix)

##########################
#### DISTANCE MATRICES ###
##########################

def distance_matrix(msa : MSA, 
                    model : str = DEFAULT_DISTANCE_MODEL) -> DistanceMatrix:
    """
    Compute pairwise evolutionary distances between the sequences of an 
    alignment under a named model.
    
    Models "raw" (proportion of differing sites), "N" (number of differing 
    sites), "JC69", "K80", "F81" and "TN93" are computed with pairwise 
    deletion of gaps and ambiguous characters. Any other name is handed to 
    Biopython's DistanceCalculator (for DNA: "identity", "blastn", "trans").
    
    Pairs whose correction is undefined (too divergent for the model) get an
    infinite distance, and a warning is issued.

    Args:
        msa (MSA): an alignment
        model (str, optional): model name. Defaults to "JC69".
    Returns:
        DistanceMatrix: n x n, symmetric, zero diagonal
    Raises:
        DistanceError: if the model name is unknown
    """
    if model not in CORRECTED_MODELS:
        if model not in CALCULATOR_MODELS:
            known = list(CORRECTED_MODELS) + list(CALCULATOR_MODELS)
            raise DistanceError(f"Unknown distance model <{model}>. Choose "
                                f"from {known}")
        bio_dm = DistanceCalculator(model).get_distance(msa.to_biopython())
        return DistanceMatrix.from_biopython(bio_dm, model = model)
    
    coded = _encode(msa)
    freqs = msa.base_frequencies() if model in ("F81", "TN93") else None
    n = msa.num_taxa()
    values = np.zeros((n, n))
    saturated = []
    
    for i in range(n):
        for j in range(i + 1, n):
            counts = _pair_counts(coded[i], coded[j])
            d = _corrected_distance(model, *counts, freqs)
            if np.isnan(d):
                saturated.append((msa.taxa()[i], msa.taxa()[j]))
                d = np.inf
            values[i, j] = values[j, i] = d
    
    if saturated:
        warnings.warn(f"{len(saturated)} pair(s) of sequences are too "
                      f"divergent for the {model} correction and were given an "
                      f"infinite distance: {saturated}")
    
    return DistanceMatrix(msa.taxa(), values, model = model)
