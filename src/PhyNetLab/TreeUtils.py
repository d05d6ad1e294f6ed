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
Last Edit : 9/28/25
First Included in Version : 1.0.0
Docs   - [x]
Tests  - [x]
Design - [x]

Reading, writing and (in place) rerooting of Biopython trees.
"""

from __future__ import annotations
import copy
from io import StringIO
from pathlib import Path
from Bio import Phylo
from Bio.Phylo.BaseTree import Tree, Clade


#########################
#### EXCEPTION CLASS ####
#########################

class TreeError(Exception):
    """
    This exception is raised when a tree operation refers to taxa that are 
    not in the tree, or a tree string cannot be used.
    """
    def __init__(self, message : str = "Error with a phylogenetic tree"):
        self.message = message
        super().__init__(self.message)

####################
#### TREE I/O ######
####################

def parse_newick(newick : str) -> Tree:
    """
    Parse a single tree from a newick string.

    Args:
        newick (str): ie. "((A:0.1,B:0.2):0.05,C:0.3);"
    Returns:
        Tree: the parsed tree
    """
    return Phylo.read(StringIO(newick), "newick")

def read_tree(filename : str | Path, fmt : str = "newick") -> Tree:
    """
    Read the one tree contained in a file.

    Args:
        filename (str | Path): path to a tree file
        fmt (str, optional): any Bio.Phylo format. Defaults to "newick".
    Returns:
        Tree: the tree
    """
    return Phylo.read(str(filename), fmt)

def to_newick(tree : Tree, internal_labels : bool = True) -> str:
    """
    Serialize a tree to a newick string.

    Args:
        tree (Tree): a tree
        internal_labels (bool, optional): if False, names and support values
                                          of internal nodes are left out. 
                                          Defaults to True.
    Returns:
        str: newick string, ending with a semicolon
    """
    if not internal_labels:
        tree = copy.deepcopy(tree)
        for clade in tree.get_nonterminals():
            clade.name = None
            clade.confidence = None
    handle = StringIO()
    Phylo.write(tree, handle, "newick")
    return handle.getvalue().strip()

def write_tree(tree : Tree, filename : str | Path, 
               fmt : str = "newick") -> None:
    """
    Write a tree to a file.

    Args:
        tree (Tree): a tree
        filename (str | Path): destination
        fmt (str, optional): any Bio.Phylo format. Defaults to "newick".
    """
    Phylo.write(tree, str(filename), fmt)

#######################
#### TREE QUERIES #####
#######################

def tip_labels(tree : Tree) -> list[str]:
    """
    Returns:
        list[str]: names of the terminal nodes, in tree order
    """
    return [leaf.name for leaf in tree.get_terminals()]

def same_taxa(tree_a : Tree, tree_b : Tree) -> bool:
    """
    Check whether two trees have the same set of tip labels.
    """
    return set(tip_labels(tree_a)) == set(tip_labels(tree_b))

def parent_map(tree : Tree) -> dict[Clade, Clade]:
    """
    Map every non-root clade to its parent.

    Returns:
        dict[Clade, Clade]: child -> parent
    """
    return {child : parent for parent in tree.find_clades() 
            for child in parent.clades}

def is_binary(tree : Tree) -> bool:
    """
    Check that every internal node has two children, except for the root 
    which may have three (an unrooted binary tree).
    """
    return tree.is_bifurcating()

def num_unrooted_branches(tree : Tree) -> int:
    """
    Number of branches of the tree seen as unrooted. A root with two 
    children joins two branches into one.

    Returns:
        int: 2n - 3 for a binary tree on n tips
    """
    count = sum(1 for clade in tree.find_clades() if clade is not tree.root)
    if len(tree.root.clades) == 2:
        count -= 1
    return count

###############################
#### IN PLACE MUTATIONS #######
###############################

def root_with_outgroup(tree : Tree, outgroup : str | list[str]) -> Tree:
    """
    Reroot the tree, in place, halfway along the branch leading to an 
    outgroup. For several names, the outgroup is their most recent common 
    ancestor. The total tree length is unchanged.

    Args:
        tree (Tree): a tree, modified in place
        outgroup (str | list[str]): one tip name or several
    Returns:
        Tree: the same tree object, for chaining
    Raises:
        TreeError: if an outgroup name is not in the tree
    """
    names = [outgroup] if isinstance(outgroup, str) else list(outgroup)
    missing = set(names) - set(tip_labels(tree))
    if missing:
        raise TreeError(f"Outgroup taxa {sorted(missing)} are not in the tree")
    
    target = tree.common_ancestor(*names)
    if target is not tree.root:
        half = (target.branch_length or 0.0) / 2
        total = tree.total_branch_length()
        tree.root_with_outgroup(target, outgroup_branch_length = half)

        # Biopython keeps the whole outgroup branch on the ingroup side when
        # the outgroup hangs off the old root
        excess = tree.total_branch_length() - total
        if excess:
            rest = next(c for c in tree.root.clades if c is not target)
            rest.branch_length = (rest.branch_length or 0.0) - excess
    tree.rooted = True
    return tree

def midpoint_root(tree : Tree) -> Tree:
    """
    Reroot the tree, in place, at the midpoint of its longest tip-to-tip 
    path.

    Args:
        tree (Tree): a tree, modified in place
    Returns:
        Tree: the same tree object, for chaining
    """
    tree.root_at_midpoint()
    tree.rooted = True
    return tree

def unroot(tree : Tree) -> Tree:
    """
    Remove a bifurcating root, in place, by merging its two branches. The 
    root then has three children, as in a neighbor joining tree.

    Args:
        tree (Tree): a tree, modified in place
    Returns:
        Tree: the same tree object, for chaining
    """
    root = tree.root
    if len(root.clades) == 2:
        left, right = root.clades
        # Fold the internal child into the root
        if not left.is_terminal():
            keep, fold = right, left
        else:
            keep, fold = left, right
        if not fold.is_terminal():
            keep_len = keep.branch_length or 0.0
            fold_len = fold.branch_length or 0.0
            keep.branch_length = keep_len + fold_len
            root.clades = [keep] + fold.clades
    tree.rooted = False
    return tree

def ladderize(tree : Tree, reverse : bool = False) -> Tree:
    """
    Sort clades in place by their number of tips, for tidier drawings.
    """
    tree.ladderize(reverse = reverse)
    return tree
