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
Docs   - [x]
Tests  - [x]
Design - [x]

Distances between two trees on the same taxa. Splits based distances are 
computed by dendropy on unrooted copies of the trees.
"""

from __future__ import annotations
from itertools import combinations
import math
import dendropy
from dendropy.calculate import treecompare
from Bio.Phylo.BaseTree import Tree
from .TreeUtils import tip_labels, to_newick

#########################
#### EXCEPTION CLASS ####
#########################

class TreeDistanceError(Exception):
    """
    Raised when two trees cannot be compared.
    """
    def __init__(self, message : str = "Trees cannot be compared"):
        self.message = message
        super().__init__(self.message)

##########################
#### HELPER FUNCTIONS ####
##########################

def _check_comparable(tree_a : Tree, tree_b : Tree) -> list[str]:
    tips_a = tip_labels(tree_a)
    tips_b = tip_labels(tree_b)
    if len(tips_a) != len(set(tips_a)) or len(tips_b) != len(set(tips_b)):
        raise TreeDistanceError("Trees must not have duplicate tip labels")
    if set(tips_a) != set(tips_b):
        raise TreeDistanceError("Trees have different taxa: "
                                f"{sorted(set(tips_a) ^ set(tips_b))}")
    return sorted(tips_a)

def _to_dendropy(tree : Tree, 
                 taxon_namespace : dendropy.TaxonNamespace) -> dendropy.Tree:
    """
    Convert to an unrooted dendropy tree. Missing branch lengths become 0.
    """
    dtree = dendropy.Tree.get(data = to_newick(tree, internal_labels = False),
                              schema = "newick",
                              taxon_namespace = taxon_namespace,
                              rooting = "force-unrooted",
                              preserve_underscores = True)
    for edge in dtree.postorder_edge_iter():
        if edge.length is None:
            edge.length = 0.0
    dtree.encode_bipartitions()
    return dtree

def _pair(tree_a : Tree, 
          tree_b : Tree) -> tuple[dendropy.Tree, dendropy.Tree]:
    _check_comparable(tree_a, tree_b)
    tns = dendropy.TaxonNamespace()
    return _to_dendropy(tree_a, tns), _to_dendropy(tree_b, tns)

def _path_lengths(tree : Tree, taxa : list[str]) -> list[int]:
    """
    Number of branches between every pair of taxa, with the tree seen as 
    unrooted.
    """
    bifurcating_root = len(tree.root.clades) == 2
    lengths = []
    for a, b in combinations(taxa, 2):
        steps = len(tree.trace(a, b))
        if bifurcating_root and tree.common_ancestor(a, b) is tree.root:
            steps -= 1
        lengths.append(steps)
    return lengths

###################
#### DISTANCES ####
###################

def robinson_foulds(tree_a : Tree, tree_b : Tree) -> int:
    """
    Robinson-Foulds (symmetric difference) distance: the number of splits 
    found in one tree but not the other.

    Args:
        tree_a (Tree): a tree
        tree_b (Tree): a tree on the same taxa
    Returns:
        int: the distance, 0 for identical unrooted topologies
    Raises:
        TreeDistanceError: if the taxa differ
    """
    da, db = _pair(tree_a, tree_b)
    return treecompare.symmetric_difference(da, db)

def weighted_robinson_foulds(tree_a : Tree, tree_b : Tree) -> float:
    """
    Robinson-Foulds distance weighted by branch length: the sum over all 
    splits of the absolute difference of their branch lengths (0 where a 
    split is absent).
    """
    da, db = _pair(tree_a, tree_b)
    return treecompare.weighted_robinson_foulds_distance(da, db)

def branch_score_difference(tree_a : Tree, tree_b : Tree) -> float:
    """
    Kuhner and Felsenstein's branch score: the square root of the summed 
    squared differences of split branch lengths.
    """
    da, db = _pair(tree_a, tree_b)
    return treecompare.euclidean_distance(da, db)

def path_difference(tree_a : Tree, tree_b : Tree) -> float:
    """
    Steel and Penny's path difference: the Euclidean distance between the 
    vectors of topological path lengths between all pairs of taxa.
    """
    taxa = _check_comparable(tree_a, tree_b)
    lengths_a = _path_lengths(tree_a, taxa)
    lengths_b = _path_lengths(tree_b, taxa)
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(lengths_a, lengths_b)))

def tree_distances(tree_a : Tree, tree_b : Tree) -> dict[str, float]:
    """
    All four distances at once, keyed as "symmetric.difference",
    "weighted.RF", "branch.score.difference" and "path.difference".

    Returns:
        dict[str, float]: distance name -> value
    """
    return {"symmetric.difference" : robinson_foulds(tree_a, tree_b),
            "weighted.RF" : weighted_robinson_foulds(tree_a, tree_b),
            "branch.score.difference" : branch_score_difference(tree_a, 
                                                                tree_b),
            "path.difference" : path_difference(tree_a, tree_b)}
