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
PhyNetLab - Exploratory Phylogenetics and Network Science Library

Teaching library behind two lessons: building and comparing phylogenetic 
trees from a DNA alignment, and building and exploring networks from 
tables of interactions.
"""

# Alignments and distances
from .Alphabet import Alphabet, AlphabetError
from .MSA import MSA, MSAError
from .Distance import DistanceError, DistanceMatrix, distance_matrix

# Trees
from .TreeUtils import (TreeError, ladderize, midpoint_root, parse_newick, 
                        read_tree, root_with_outgroup, to_newick, unroot, 
                        write_tree)
from .NJ import (NJException, bootstrap_support, build_tree, 
                 clamp_branch_lengths, nj_tree, upgma_tree)
from .Parsimony import ParsimonyError, parsimony_score, parsimony_tree
from .TreeDistance import (TreeDistanceError, robinson_foulds, 
                           tree_distances)

# Likelihood
from .GTR import (F81, GTR, HKY, JC, K80, SYM, TN93, SubstitutionModelError,
                  get_model)
from .Likelihood import (LikelihoodError, LikelihoodFit, discrete_gamma_rates,
                         optim_pml, pml)
from .ModelSelection import (LRTResult, ModelSelectionError, aic_table, 
                             anova, likelihood_ratio_test, model_test)

# Networks
from .GraphIO import (GraphIOError, aggregate_edges, graph_from_tables,
                      load_graph_collection, read_edge_table, 
                      read_node_table, save_graph_collection, simplify)
from .Generators import GraphGenerationError
from .GraphAnalysis import (GraphAnalysisError, PercolationError, percolate,
                            percolation_sweep, er_sweep)

# Output
from .Logger import Logger

__version__ = "1.0.0"
__author__ = "Mark Kessler"
