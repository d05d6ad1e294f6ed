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
Last Stable Edit : 9/26/25
First Included in Version : 1.0.0
Approved for Release : Yes.
"""

from __future__ import annotations
import numpy as np
from numpy import linalg as lg

"""
SOURCES:

1) Kimura 1980 (K80)

2) Felsenstein 1981 (F81)

3) Hasegawa et al. 1985 (HKY85)

4) Tamura and Nei, 1993 (TN93)

5) Zharkikh 1994 (SYM)

6) Tavaré 1986 (GTR)

7) Jukes and Cantor 1969 (JC)
"""

# Order of the 6 exchangeability rates: AC, AG, AT, CG, CT, GT. 
# AG and CT are the transitions.
RATE_PAIRS : tuple[tuple[int, int], ...] = ((0, 1), (0, 2), (0, 3), 
                                            (1, 2), (1, 3), (2, 3))

EQUAL_FREQS : np.ndarray = np.array([.25, .25, .25, .25])

#########################
#### EXCEPTION CLASS ####
#########################

class SubstitutionModelError(Exception):
    """
    Class of exception that gets raised when there is an error in the 
    formulation of a substitution model, whether it be inputs that don't 
    adhere to requirements or there is an issue in computation.
    """
    def __init__(self, message = "Unknown substitution model error") -> None:
        self.message = message
        super().__init__(self.message)

#############################
#### SUBSTITUTION MODELS ####
#############################

class GTR:
    """
    General superclass for time reversible nucleotide substitution models. 
    Implements eigenvalue decomposition for computing e^(Q*t).
    
    Subclasses constrain the 6 exchangeability rates and/or the base 
    frequencies. Each model names its free rate parameters so that an 
    optimizer can work on them as a flat vector.
    
    This is the Generalized Time Reversible (GTR) model: 5 free rates (GT is
    fixed to 1) and free base frequencies.
    """
    
    name : str = "GTR"
    
    # whether base frequencies count as estimated parameters
    free_freqs : bool = True

    def __init__(self, base_freqs : list[float] | np.ndarray = None, 
                       transitions : list[float] | np.ndarray = None) -> None:
        """
        Args:
            base_freqs (list[float] | np.ndarray, optional): 4 positive 
                                                    floats that sum to 1, in 
                                                    A, C, G, T order. Defaults
                                                    to equal frequencies.
            transitions (list[float] | np.ndarray, optional): the 6 
                                                    exchangeability rates 
                                                    (AC, AG, AT, CG, CT, GT).
                                                    Defaults to all ones.

        Raises:
            SubstitutionModelError: If the base frequency or transition arrays
                                    are malformed.
        """
        self.states : int = 4
        self.freqs : np.ndarray = np.array(EQUAL_FREQS if base_freqs is None 
                                           else base_freqs, dtype = np.double)
        self.trans : np.ndarray = np.array(np.ones(6) if transitions is None 
                                           else transitions, dtype = np.double)
        self.trans = self.trans.reshape(-1)
        self.freqs = self.freqs.reshape(-1)
        
        self.is_valid(self.trans, self.freqs)

        # compute Q, the instantaneous rate matrix
        self.Q : np.ndarray = None
        self.buildQ()

    def getQ(self) -> np.ndarray:
        """
        Get the Q matrix

        Returns: np array obj
        """
        return self.Q

    def set_hyperparams(self, params : dict[str, object]) -> None:
        """
        Change any of the base frequencies/transitions parameters, and 
        recompute the Q matrix accordingly.

        Args:
            params (dict[str, object]): A mapping from gtr parameter names to 
                                        their values. For the GTR superclass,
                                        names must be limited to 
                                        ["base frequencies", "transitions"]
        """
        if "transitions" in params:
            self.trans = np.array(params["transitions"], dtype = np.double)
        if "base frequencies" in params:
            self.freqs = np.array(params["base frequencies"], 
                                  dtype = np.double)
        
        self.is_valid(self.trans, self.freqs)
        self.buildQ()
           
    def get_hyperparams(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Gets the base frequency and transition arrays.

        Returns:
            tuple[np.ndarray, np.ndarray]: base frequencies and the 6 
                                           exchangeability rates.
        """
        return self.freqs.copy(), self.trans.copy()

    def state_count(self) -> int:
        """
        Get the number of states for this substitution model.

        Returns:
            int: Number of states.
        """
        return self.states

    def buildQ(self) -> np.ndarray:
        """
        Populate the normalized Q matrix, Q_ij = r_ij * pi_j, scaled so that
        the expected number of substitutions per unit time is 1. Also caches 
        the eigen decomposition used by expt.
        """
        self.Q = np.zeros((self.states, self.states), dtype = np.double)

        for (i, j), rate in zip(RATE_PAIRS, self.trans):
            self.Q[i][j] = rate * self.freqs[j]
            self.Q[j][i] = rate * self.freqs[i]

        np.fill_diagonal(self.Q, -self.Q.sum(axis = 1))

        # normalize such that -1 * SUM Q_ii * pi_i = 1
        norm_factor = -np.sum(np.diag(self.Q) * self.freqs)
        self.Q = self.Q / norm_factor
        
        # Q is similar to a symmetric matrix, diagonalize that one instead
        root_pi = np.sqrt(self.freqs)
        sym = (self.Q * root_pi[:, None]) / root_pi[None, :]
        sym = (sym + sym.T) / 2
        eigenvals, eigenvecs = lg.eigh(sym)
        self._eigenvals : np.ndarray = eigenvals
        self._left : np.ndarray = eigenvecs / root_pi[:, None]
        self._right : np.ndarray = eigenvecs.T * root_pi[None, :]
        
        return self.Q

    def expt(self, t : float) -> np.ndarray:
        """
        Compute the transition probability matrix P(t) = e^(Q*t).
        
        Args: 
            t (float): Branch length, in expected substitutions per site.
        Returns:
            np.ndarray: 4x4 matrix whose rows sum to 1.
        """
        return self.expt_many(np.array([t]))[0]
    
    def expt_many(self, ts : np.ndarray) -> np.ndarray:
        """
        Compute e^(Q*t) for several values of t at once.

        Args:
            ts (np.ndarray): k branch lengths (ie. one per rate category)
        Returns:
            np.ndarray: k x 4 x 4 array of transition probability matrices
        """
        ts = np.asarray(ts, dtype = np.double).reshape(-1)
        exp_diag = np.exp(np.outer(ts, self._eigenvals))
        P = np.einsum("ij,kj,jl->kil", self._left, exp_diag, self._right)
        return np.clip(P, 0.0, 1.0)
    
    def is_valid(self, transitions: np.ndarray, freqs : np.ndarray) -> None:
        """
        Ensure frequencies and transitions are well formed.

        Args:
            transitions (np.ndarray): Transition list.
            freqs (np.ndarray): Base frequency list. Must sum to 1.
        """
        if len(freqs) != 4 or not np.isclose(np.sum(freqs), 1):
            raise SubstitutionModelError("Base frequency list either does not "
                                         "sum to 1 or is not of correct length")
        if np.any(freqs <= 0):
            raise SubstitutionModelError("Base frequencies must be positive")

        if len(transitions) != 6:
            raise SubstitutionModelError("Incorrect number of transition "
                                         f"rates. Got {len(transitions)}. "
                                         "Expected 6!")
        if np.any(transitions <= 0):
            raise SubstitutionModelError("Exchangeability rates must be "
                                         "positive")
    
    def rate_params(self) -> np.ndarray:
        """
        The free exchangeability parameters of this model, as a flat vector.
        For GTR, the first 5 rates (GT is the reference rate).
        """
        return self.trans[:5].copy()
    
    def set_rate_params(self, values : np.ndarray) -> None:
        """
        Inverse of rate_params.
        """
        trans = np.append(np.asarray(values, dtype = np.double), 1.0)
        self.set_hyperparams({"transitions" : trans})
    
    def n_free_params(self) -> int:
        """
        Number of estimated model parameters: free rates, plus 3 if the base
        frequencies are free.
        """
        return len(self.rate_params()) + (3 if self.free_freqs else 0)
    
    def copy(self) -> GTR:
        new = object.__new__(type(self))
        new.__dict__.update({key : (value.copy() 
                                    if isinstance(value, np.ndarray) 
                                    else value)
                             for key, value in self.__dict__.items()})
        return new
    
    def __repr__(self) -> str:
        return (f"{self.name}(freqs={np.round(self.freqs, 4).tolist()}, "
                f"rates={np.round(self.trans, 4).tolist()})")

class SYM(GTR):
    """
    Developed by Zharkikh in 1994, this model assumes that all base 
    frequencies are equal, and all exchangeability rates are free.
    """
    
    name = "SYM"
    free_freqs = False
    
    def __init__(self, transitions : list[float] | np.ndarray = None) -> None:
        super().__init__(EQUAL_FREQS, transitions)

class TN93(GTR):
    """
    Developed by Tamura and Nei in 1993. Transversion rates are equal (and 
    fixed to 1), the purine (AG) and pyrimidine (CT) transition rates are 
    free. Base frequencies are free.
    """
    
    name = "TN93"

    def __init__(self, base_freqs : list[float] | np.ndarray = None,
                 kappa_r : float = 1.0, kappa_y : float = 1.0) -> None:
        super().__init__(base_freqs, [1.0, kappa_r, 1.0, 1.0, kappa_y, 1.0])
    
    def rate_params(self) -> np.ndarray:
        return self.trans[[1, 4]].copy()
    
    def set_rate_params(self, values : np.ndarray) -> None:
        kappa_r, kappa_y = values
        self.set_hyperparams({"transitions" : [1.0, kappa_r, 1.0, 
                                               1.0, kappa_y, 1.0]})

class HKY(TN93):
    """
    Developed by Hasegawa et al. Transversion rates are equal and the two 
    transition rates are equal (kappa times the transversion rate). Base 
    frequencies are free.
    """
    
    name = "HKY"

    def __init__(self, base_freqs : list[float] | np.ndarray = None, 
                 kappa : float = 1.0) -> None:
        super().__init__(base_freqs, kappa, kappa)
    
    def set_hyperparams(self, params : dict[str, object]) -> None:
        """
        Accepts "kappa" in addition to the GTR parameter names.
        """
        params = dict(params)
        if "kappa" in params:
            kappa = params.pop("kappa")
            params["transitions"] = [1.0, kappa, 1.0, 1.0, kappa, 1.0]
        super().set_hyperparams(params)
    
    def rate_params(self) -> np.ndarray:
        return self.trans[[1]].copy()
    
    def set_rate_params(self, values : np.ndarray) -> None:
        self.set_hyperparams({"kappa" : float(values[0])})

class K80(HKY):
    """
    Kimura 2 parameter model (K80). Equal base frequencies, one 
    transition/transversion rate ratio, kappa.
    """
    
    name = "K80"
    free_freqs = False

    def __init__(self, kappa : float = 1.0) -> None:
        super().__init__(EQUAL_FREQS, kappa)

class F81(GTR):
    """
    Formulated by Felsenstein in 1981, this substitution model assumes that 
    base frequencies are free, but all exchangeability rates are equal.
    """
    
    name = "F81"

    def __init__(self, base_freqs : list[float] | np.ndarray = None) -> None:
        super().__init__(base_freqs, np.ones(6))
    
    def rate_params(self) -> np.ndarray:
        return np.zeros(0)
    
    def set_rate_params(self, values : np.ndarray) -> None:
        return

class JC(F81):
    """
    The Jukes Cantor model is the simplest of all time reversible models,
    in which all parameters (transitions, base frequencies) are assumed to be 
    equal. It has no free parameters.
    """
    
    name = "JC"
    free_freqs = False
    
    def __init__(self) -> None:
        super().__init__(EQUAL_FREQS)

###############################
#### MODEL LOOKUP BY NAME #####
###############################

_MODELS : dict[str, type] = {"JC" : JC, "JC69" : JC, "F81" : F81, 
                             "K80" : K80, "K2P" : K80, "HKY" : HKY, 
                             "HKY85" : HKY, "TN93" : TN93, "SYM" : SYM, 
                             "GTR" : GTR}

def get_model(name : str, base_freqs : np.ndarray = None) -> GTR:
    """
    Build a substitution model from its name, with default rate parameters.

    Args:
        name (str): one of JC (JC69), F81, K80 (K2P), HKY (HKY85), TN93, SYM,
                    GTR. Case insensitive.
        base_freqs (np.ndarray, optional): starting base frequencies for 
                                           models with free frequencies. 
                                           Ignored by the others. Defaults 
                                           to equal frequencies.
    Returns:
        GTR: the model
    Raises:
        SubstitutionModelError: if the name is unknown
    """
    try:
        model_type = _MODELS[name.upper()]
    except KeyError:
        raise SubstitutionModelError(f"Unknown substitution model <{name}>. "
                                     f"Choose from {sorted(_MODELS.keys())}")
    
    if model_type.free_freqs and base_freqs is not None:
        return model_type(base_freqs)
    return model_type()
