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
Last Edit : 10/3/25
First Included in Version : 1.0.0
Docs   - [x]
Tests  - [x]
Design - [x]

Deterministic and random graph families. Vertices are always the integers 
0 .. n - 1. Random generators take a seed so that results are reproducible.
"""

from __future__ import annotations
import networkx as nx

#########################
#### EXCEPTION CLASS ####
#########################

class GraphGenerationError(Exception):
    """
    Raised when a generator is given parameters that describe no graph.
    """
    def __init__(self, message : str = "Invalid graph parameters"):
        self.message = message
        super().__init__(self.message)

def _check_order(n : int, minimum : int = 0) -> None:
    if n < minimum:
        raise GraphGenerationError("Number of vertices must be at least "
                                   f"{minimum}, got {n}")

#######################
#### DETERMINISTIC ####
#######################

def complete_graph(n : int, directed : bool = False) -> nx.Graph:
    """
    Every pair of distinct vertices joined by an edge (both directions when
    directed).
    """
    _check_order(n)
    return nx.complete_graph(n, create_using = nx.DiGraph if directed 
                                                 else nx.Graph)

def star_graph(n : int, mode : str = "undirected") -> nx.Graph:
    """
    One center (vertex 0) joined to n - 1 leaves.

    Args:
        n (int): number of vertices, including the center
        mode (str, optional): "undirected", "in" (edges point to the center)
                              or "out" (edges point away from it). 
                              Defaults to "undirected".
    Returns:
        nx.Graph: a Graph, or a DiGraph for modes "in" and "out"
    """
    _check_order(n, 1)
    if mode == "undirected":
        return nx.star_graph(n - 1)
    if mode == "out":
        G = nx.DiGraph()
        G.add_nodes_from(range(n))
        G.add_edges_from((0, leaf) for leaf in range(1, n))
        return G
    if mode == "in":
        G = nx.DiGraph()
        G.add_nodes_from(range(n))
        G.add_edges_from((leaf, 0) for leaf in range(1, n))
        return G
    raise GraphGenerationError(f"Unknown star mode '{mode}'. Use "
                               "'undirected', 'in' or 'out'")

def tree_graph(n : int, children : int = 2) -> nx.Graph:
    """
    A tree on n vertices filled breadth first, every internal vertex having
    'children' children except possibly the last one.
    """
    _check_order(n)
    if children < 1:
        raise GraphGenerationError("Each vertex needs at least one child, "
                                   f"got {children}")
    return nx.full_rary_tree(children, n)

def ring_graph(n : int) -> nx.Graph:
    """
    A cycle through all n vertices.
    """
    _check_order(n)
    return nx.cycle_graph(n)

def lattice_graph(rows : int, cols : int, periodic : bool = False) -> nx.Graph:
    """
    A rows x cols square grid, relabeled to integers in row major order.
    With 'periodic', opposite sides are joined (a torus).
    """
    _check_order(rows)
    _check_order(cols)
    G = nx.grid_2d_graph(rows, cols, periodic = periodic)
    return nx.convert_node_labels_to_integers(G, ordering = "sorted")

################
#### RANDOM ####
################

def erdos_renyi_gnp(n : int, p : float, seed : int = None, 
                    directed : bool = False) -> nx.Graph:
    """
    G(n, p): every possible edge present independently with probability p.
    """
    _check_order(n)
    if not 0 <= p <= 1:
        raise GraphGenerationError("Edge probability must be in [0, 1], "
                                   f"got {p}")
    return nx.gnp_random_graph(n, p, seed = seed, directed = directed)

def erdos_renyi_gnm(n : int, m : int, seed : int = None, 
                    directed : bool = False) -> nx.Graph:
    """
    G(n, m): m edges chosen uniformly among all possible edges.
    """
    _check_order(n)
    max_edges = n * (n - 1) if directed else n * (n - 1) // 2
    if not 0 <= m <= max_edges:
        raise GraphGenerationError("Number of edges must be in [0, "
                                   f"{max_edges}] for {n} vertices, got {m}")
    return nx.gnm_random_graph(n, m, seed = seed, directed = directed)

def erdos_renyi(n : int, kind : str = "gnp", p : float = None, 
                m : int = None, seed : int = None, 
                directed : bool = False) -> nx.Graph:
    """
    Erdos-Renyi random graph of either kind.

    Args:
        n (int): number of vertices
        kind (str, optional): "gnp" (needs p) or "gnm" (needs m). 
                              Defaults to "gnp".
        p (float, optional): edge probability
        m (int, optional): number of edges
        seed (int, optional): random seed
        directed (bool, optional): Defaults to False.
    Returns:
        nx.Graph: the graph
    """
    if kind == "gnp":
        if p is None:
            raise GraphGenerationError("G(n, p) needs an edge probability p")
        return erdos_renyi_gnp(n, p, seed, directed)
    if kind == "gnm":
        if m is None:
            raise GraphGenerationError("G(n, m) needs a number of edges m")
        return erdos_renyi_gnm(n, m, seed, directed)
    raise GraphGenerationError(f"Unknown Erdos-Renyi kind '{kind}'. Use "
                               "'gnp' or 'gnm'")
