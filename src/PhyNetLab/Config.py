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

Module constants shared by the phylogenetics and network halves of the
library. Every function that uses one of these takes it as an overridable
default argument.
"""

##########################
#### TREE CONSTRUCTION ###
##########################

# Neighbor joining on non-additive distances can produce branch lengths <= 0,
# which tree drawing cannot handle. Such branches are set to this value.
BRANCH_LENGTH_EPSILON : float = 1e-6

DEFAULT_DISTANCE_MODEL : str = "JC69"

DEFAULT_TREE_METHOD : str = "nj"

DEFAULT_BOOTSTRAP_REPLICATES : int = 100

##########################
#### MAXIMUM LIKELIHOOD ##
##########################

DEFAULT_SUBSTITUTION_MODEL : str = "JC"

MIN_BRANCH_LENGTH : float = 1e-8

MAX_BRANCH_LENGTH : float = 10.0

DEFAULT_GAMMA_CATEGORIES : int = 4

DEFAULT_GAMMA_SHAPE : float = 1.0

GAMMA_SHAPE_BOUNDS : tuple[float, float] = (0.02, 100.0)

MAX_INVARIANT_PROPORTION : float = 0.99

RATE_BOUNDS : tuple[float, float] = (1e-4, 1e4)

LIKELIHOOD_TOLERANCE : float = 1e-6

MAX_OPTIMIZATION_ROUNDS : int = 25

##########################
#### NETWORK TABLES ######
##########################

SOURCE_COLUMN : str = "from"

TARGET_COLUMN : str = "to"

TYPE_COLUMN : str = "type"

WEIGHT_COLUMN : str = "weight"

ID_COLUMN : str = "id"

##########################
#### VISUALIZATION #######
##########################

DEFAULT_PALETTE : list[str] = ["#0173B2", "#DE8F05", "#029E73", "#D55E00",
                               "#CC78BC", "#CA9161", "#FBAFE4", "#949494",
                               "#ECE133", "#56B4E9"]

DEFAULT_NODE_COLOR : str = "#949494"

DEFAULT_NODE_SIZE : float = 300.0

DEFAULT_EDGE_WIDTH : float = 1.0
