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
Last Edit : 10/2/25
First Included in Version : 1.0.0

Docs    - [ X ]
Design  - [ X ]
Testing - [ X ]

Maximum parsimony. Scores use the Fitch algorithm and tree search uses 
nearest neighbor interchanges, both from Bio.Phylo.TreeConstruction.
"""

from __future__ import annotations
import copy
from Bio.Phylo.BaseTree import Tree
from Bio.Phylo.TreeConstruction import (DistanceCalculator,
                                        DistanceTreeConstructor,
                                        NNITreeSearcher, ParsimonyScorer,
                                        ParsimonyTreeConstructor)
from .MSA import MSA
from .TreeUtils import root_with_outgroup, tip_labels


class ParsimonyError(Exception):
    """
    Raised when a tree does not fit the alignment it is scored against.
    """

    def __init__(self, message = "Parsimony Error"):
        self.message = message
        super().__init__(self.message)

def _prepare(tree : Tree, msa : MSA) -> Tree:
    """
    Validate a tree against an alignment and return a copy with a 
    bifurcating root, which the Fitch implementation expects. Parsimony 
    scores do not depend on the root position.
    """
    if set(tip_labels(tree)) != set(msa.taxa()):
        raise ParsimonyError("Tree tips and alignment taxa differ")
    if not tree.is_bifurcating():
        raise ParsimonyError("Parsimony scoring requires a bifurcating tree")
    tree = copy.deepcopy(tree)
    if len(tree.root.clades) > 2:
        root_with_outgroup(tree, tip_labels(tree)[0])
    # An unrooted tree would be midpoint rooted by the scorer, which fails 
    # without branch lengths
    tree.rooted = True
    return tree

def parsimony_score(tree : Tree, msa : MSA) -> int:
    """
    Minimum number of state changes needed to explain the alignment on a 
    tree (Fitch parsimony). Neither argument is modified.

    Args:
        tree (Tree): a bifurcating tree on the alignment's taxa
        msa (MSA): the alignment
    Returns:
        int: the parsimony score
    Raises:
        ParsimonyError: if the tree does not fit the alignment
    """
    # The scorer sorts the alignment in place
    return int(ParsimonyScorer().get_score(_prepare(tree, msa), 
                                           msa.to_biopython()))

def parsimony_tree(msa : MSA, starting_tree : Tree = None) -> Tree:
    """
    Search for a most parsimonious tree by NNI hill climbing.

    Args:
        msa (MSA): the alignment
        starting_tree (Tree, optional): where the search starts. Defaults to
                                        a UPGMA tree on identity distances.
    Returns:
        Tree: the best tree found
    """
    if starting_tree is None:
        constructor = DistanceTreeConstructor(DistanceCalculator("identity"),
                                              "upgma")
        starting_tree = constructor.build_tree(msa.to_biopython())
    starting_tree = _prepare(starting_tree, msa)
    
    searcher = NNITreeSearcher(ParsimonyScorer())
    constructor = ParsimonyTreeConstructor(searcher, starting_tree)
    return constructor.build_tree(msa.to_biopython())
