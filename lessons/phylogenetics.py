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
Lesson 1: exploratory phylogenetics.

Walks through loading an alignment of seven primate sequences, computing 
distance matrices, building and rooting neighbor joining trees, fitting and 
optimizing maximum likelihood models, comparing models and comparing trees.
Every step is logged to an html report (phylogenetics_lesson.html).

Run from the repository root:

    python lessons/phylogenetics.py

Exercises are marked EXERCISE and left to the reader.
"""

import copy
from pathlib import Path
import warnings
import matplotlib.pyplot as plt
from PhyNetLab import (MSA, Logger, aic_table, anova, bootstrap_support,
                       build_tree, clamp_branch_lengths, distance_matrix, 
                       likelihood_ratio_test, optim_pml, parsimony_score, 
                       parsimony_tree, pml, root_with_outgroup, 
                       tree_distances)
from PhyNetLab.NJ import count_nonpositive_branches, nj_tree
from PhyNetLab.TreeUtils import to_newick
from PhyNetLab.vis import draw_distance_matrix, draw_tree

DATA = Path(__file__).parent / "data"
OUTGROUP = "Macaque"


def main() -> None:
    log = Logger("phylogenetics_lesson", title = "Exploratory phylogenetics")
    
    #### 1. The alignment ####
    
    primates = MSA.from_file(DATA / "primates.fasta")
    log.log(f"Loaded {primates}: taxa {primates.taxa()}")
    
    # The same data as a nexus file
    nexus = MSA.from_file(DATA / "primates.nex")
    log.log(f"Nexus copy has {nexus.num_taxa()} taxa and {nexus.length()} "
            "sites")
    log.log("Base frequencies (A C G T): "
            f"{primates.base_frequencies().round(3).tolist()}")
    
    # EXERCISE: how many distinct site patterns are there? What fraction of
    # the sites are constant across all seven species?
    
    #### 2. Distances ####
    
    for model in ("raw", "JC69", "K80", "TN93"):
        dm = distance_matrix(primates, model)
        log.log_table(dm.to_dataframe(), f"{model} distances")
    
    fig, ax = plt.subplots(figsize = (6, 5))
    draw_distance_matrix(distance_matrix(primates, "JC69"), ax = ax)
    log.log_figure(fig, "JC69 distance heatmap")
    
    # EXERCISE: why is every corrected distance larger than the raw one, and
    # why does the gap grow with the raw distance?
    
    #### 3. Neighbor joining ####
    
    with warnings.catch_warnings(record = True) as caught:
        warnings.simplefilter("always")
        tree = nj_tree(distance_matrix(primates, "JC69"))
    for warning in caught:
        log.log(f"warning: {warning.message}")
    
    log.log(f"NJ tree: {to_newick(tree)}")
    log.log("Non-positive branches before clamping: "
            f"{count_nonpositive_branches(tree)}")
    clamp_branch_lengths(tree)
    root_with_outgroup(tree, OUTGROUP)
    log.log_tree(tree, f"NJ tree (JC69), rooted on {OUTGROUP}")
    
    supported, _ = bootstrap_support(primates, replicates = 100, seed = 1,
                                     outgroup = OUTGROUP)
    fig, ax = plt.subplots(figsize = (7, 5))
    draw_tree(supported, ax = ax, show_support = True, 
              title = "Bootstrap support (100 replicates)")
    log.log_figure(fig, "Bootstrap support")
    
    # EXERCISE: build a UPGMA tree with build_tree(primates, method="upgma").
    # Where does it disagree with the NJ tree, and why might it?
    
    #### 4. Parsimony ####
    
    mp_tree = parsimony_tree(primates)
    log.log(f"Parsimony score of the NJ tree: {parsimony_score(tree, primates)}")
    log.log("Parsimony score of the NNI search result: "
            f"{parsimony_score(mp_tree, primates)}")
    
    #### 5. Maximum likelihood ####
    
    fit_jc = pml(tree, primates, "JC")
    log.log(fit_jc.summary())
    
    fit_jc = optim_pml(fit_jc, opt_nni = True, logger = log)
    fit_k80 = optim_pml(pml(fit_jc.tree, primates, "K80"), opt_q = True, 
                        opt_nni = True, logger = log)
    fit_hky = optim_pml(pml(fit_k80.tree, primates, "HKY", k = 4), 
                        opt_q = True, opt_bf = True, opt_gamma = True, 
                        opt_nni = True, logger = log)
    log.log(fit_hky.summary())
    
    lrt = likelihood_ratio_test(fit_jc, fit_k80)
    log.log(f"JC vs K80: statistic = {lrt.statistic:.3f}, df = {lrt.df}, "
            f"p = {lrt.p_value:.4g}")
    log.log_table(anova(fit_jc, fit_k80, fit_hky), "Nested model comparison")
    log.log_table(aic_table([fit_jc, fit_k80, fit_hky]), "AIC comparison")
    
    ml_tree = root_with_outgroup(copy.deepcopy(fit_hky.tree), OUTGROUP)
    log.log_tree(ml_tree, "ML tree (HKY+G)")
    
    # EXERCISE: run PhyNetLab.model_test(tree, primates) and compare its 
    # ranking with the table above. Does adding +I help?
    
    #### 6. Comparing trees ####
    
    upgma = build_tree(primates, method = "upgma")
    for name, other in (("NJ", tree), ("UPGMA", upgma), ("MP", mp_tree)):
        distances = tree_distances(ml_tree, other)
        log.log(f"ML vs {name}: {distances}")
    
    # EXERCISE: which of the four distances is sensitive to branch lengths?
    
    path = log.to_html()
    print(f"Report written to {path}")

if __name__ == "__main__":
    main()
