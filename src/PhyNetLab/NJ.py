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
Distance based tree construction. Neighbor joining and UPGMA are delegated 
to Biopython's DistanceTreeConstructor; support values to 
Bio.Phylo.Consensus.

Source : https://en.wikipedia.org/wiki/Neighbor_joining

Author: Mark Kessler
Date Last Edited: 9/30/25
Ready for Release:
    Docs    - [ X ]
    Design  - [ X ]
    Testing - [ X ]
"""

from __future__ import annotations
import copy
import warnings
import numpy as np
from Bio.Phylo.BaseTree import Tree
from Bio.Phylo.Consensus import get_support
from Bio.Phylo.TreeConstruction import DistanceTreeConstructor
from .Config import (BRANCH_LENGTH_EPSILON, DEFAULT_BOOTSTRAP_REPLICATES,
                     DEFAULT_DISTANCE_MODEL, DEFAULT_TREE_METHOD)
from .Distance import DistanceMatrix, distance_matrix
from .MSA import MSA
from .TreeUtils import root_with_outgroup


class NJException(Exception):
    """
    This exception is raised when there is an error either in the distances 
    handed to a tree construction method, or in its parameters.
    """

    def __init__(self, message = "NJ Error"):
        self.message = message
        super().__init__(self.message)

##########################
#### HELPER FUNCTIONS ####
##########################

def _check_distances(dm : DistanceMatrix) -> None:
    """
    Raises:
        NJException: if there are fewer than 3 taxa, or any distance is 
                     infinite or nan
    """
    if len(dm) < 3:
        raise NJException("Need at least 3 taxa to build a tree, got "
                          f"{len(dm)}")
    if not dm.is_finite():
        raise NJException("Distance matrix contains non-finite values. Some "
                          "sequences are too divergent for the chosen model.")

#############################
#### TREE CONSTRUCTION ######
#############################

def nj_tree(dm : DistanceMatrix) -> Tree:
    """
    Perform Neighbor Joining.
    
    The tree is unrooted: its root node has three children. Branch lengths 
    can be negative when the distances are not additive; see 
    clamp_branch_lengths.

    Args:
        dm (DistanceMatrix): pairwise distances
    Returns:
        Tree: the inferred tree
    """
    _check_distances(dm)
    tree = DistanceTreeConstructor().nj(dm.to_biopython())
    
    negatives = count_nonpositive_branches(tree, strict = True)
    if negatives > 0:
        warnings.warn(f"Neighbor joining produced {negatives} negative branch "
                      "length(s). Consider clamp_branch_lengths before "
                      "plotting.")
    return tree

def upgma_tree(dm : DistanceMatrix) -> Tree:
    """
    Perform UPGMA clustering. The tree is rooted and ultrametric when the 
    distances are.

    Args:
        dm (DistanceMatrix): pairwise distances
    Returns:
        Tree: the inferred tree
    """
    _check_distances(dm)
    tree = DistanceTreeConstructor().upgma(dm.to_biopython())
    tree.rooted = True
    return tree

def build_tree(msa : MSA, 
               model : str = DEFAULT_DISTANCE_MODEL, 
               method : str = DEFAULT_TREE_METHOD) -> Tree:
    """
    Alignment -> distance matrix -> tree, in one call.

    Args:
        msa (MSA): an alignment
        model (str, optional): distance model. Defaults to "JC69".
        method (str, optional): "nj" or "upgma". Defaults to "nj".
    Returns:
        Tree: the inferred tree
    """
    dm = distance_matrix(msa, model)
    if method == "nj":
        return nj_tree(dm)
    if method == "upgma":
        return upgma_tree(dm)
    raise NJException(f"Unknown tree method <{method}>. Use 'nj' or 'upgma'")

##############################
#### BRANCH LENGTH CLAMP #####
##############################

def count_nonpositive_branches(tree : Tree, strict : bool = False) -> int:
    """
    Count the non-root branches with a length <= 0 (or < 0 if strict).
    Missing lengths count as non-positive unless strict.
    """
    count = 0
    for clade in tree.find_clades():
        if clade is tree.root:
            continue
        length = clade.branch_length
        if length is None:
            count += 0 if strict else 1
        elif length < 0 or (length == 0 and not strict):
            count += 1
    return count

def clamp_branch_lengths(tree : Tree, 
                         epsilon : float = BRANCH_LENGTH_EPSILON) -> int:
    """
    Replace, in place, every branch length <= 0 with a small positive value,
    so that the tree can be drawn and scored. Positive branch lengths are 
    left untouched. A missing length on a non-root branch is treated as 0.
    The root's own branch length is never changed.

    Args:
        tree (Tree): a tree, modified in place
        epsilon (float, optional): the replacement length. Must be > 0. 
                                   Defaults to BRANCH_LENGTH_EPSILON.
    Returns:
        int: the number of branches that were changed
    Raises:
        NJException: if epsilon is not positive
    """
    if not epsilon > 0:
        raise NJException(f"Clamp value must be positive, got {epsilon}")
    
    changed = 0
    for clade in tree.find_clades():
        if clade is tree.root:
            continue
        if clade.branch_length is None or clade.branch_length <= 0:
            clade.branch_length = epsilon
            changed += 1
    return changed

######################
#### BOOTSTRAP #######
######################

def bootstrap_support(msa : MSA, 
                      model : str = DEFAULT_DISTANCE_MODEL,
                      replicates : int = DEFAULT_BOOTSTRAP_REPLICATES,
                      seed : int = None,
                      method : str = DEFAULT_TREE_METHOD,
                      outgroup : str = None) -> tuple[Tree, list[Tree]]:
    """
    Nonparametric bootstrap. Columns of the alignment are resampled with 
    replacement, a tree is built from each replicate, and the fraction of 
    replicates containing each clade of the tree built from the original
    alignment is attached as its confidence (in percent).
    
    All trees are rooted on the same outgroup before clades are compared.

    Args:
        msa (MSA): an alignment
        model (str, optional): distance model. Defaults to "JC69".
        replicates (int, optional): number of replicates. Defaults to 100.
        seed (int, optional): seed for np.random.default_rng. 
                              Defaults to None.
        method (str, optional): "nj" or "upgma". Defaults to "nj".
        outgroup (str, optional): rooting taxon. Defaults to the first 
                                  sequence of the alignment.
    Returns:
        tuple[Tree, list[Tree]]: the annotated tree, and the replicate trees
    """
    if replicates < 1:
        raise NJException("Need at least one bootstrap replicate")
    
    rng = np.random.default_rng(seed)
    outgroup = msa.taxa()[0] if outgroup is None else outgroup
    
    with warnings.catch_warnings():
        # Replicate trees are never drawn, negative branches are irrelevant
        warnings.simplefilter("ignore")
        target = build_tree(msa, model, method)
        trees = []
        for _ in range(replicates):
            tree = build_tree(msa.resample(rng), model, method)
            trees.append(root_with_outgroup(tree, outgroup))
    
    root_with_outgroup(target, outgroup)
    supported = get_support(target, copy.deepcopy(trees), len(trees))
    return supported, trees
