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
Last Edit : 10/4/25
First Included in Version : 1.0.0
Docs   - [x]
Tests  - [x]
Design - [x]

Structural summaries of networkx graphs (adjacency matrices, path counts, 
components, degrees) and bond percolation experiments.
"""

from __future__ import annotations
from collections import Counter
import numpy as np
import networkx as nx
import pandas as pd
from .Generators import erdos_renyi_gnp

##########################
#### EXCEPTION CLASSES ###
##########################

class GraphAnalysisError(Exception):
    """
    Raised when a graph query is given arguments that do not apply to the 
    graph.
    """
    def __init__(self, message : str = "Error analyzing a graph"):
        self.message = message
        super().__init__(self.message)

class PercolationError(GraphAnalysisError):
    """
    Raised when a retention probability is outside [0, 1].
    """
    def __init__(self, message : str = "Retention probability must be in "
                                       "[0, 1]"):
        super().__init__(message)

def _check_mode(G : nx.Graph, mode : str, allowed : tuple[str, ...]) -> None:
    if mode not in allowed:
        raise GraphAnalysisError(f"Unknown mode '{mode}'. Use one of "
                                 f"{allowed}")
    if mode != allowed[0] and not G.is_directed():
        raise GraphAnalysisError(f"Mode '{mode}' only applies to directed "
                                 "graphs")

def _check_phi(phi : float) -> None:
    if not 0 <= phi <= 1:
        raise PercolationError("Retention probability must be in [0, 1], "
                               f"got {phi}")

###################
#### STRUCTURE ####
###################

def adjacency_matrix(G : nx.Graph, weight : str = None) -> np.ndarray:
    """
    Dense adjacency matrix, rows and columns in the order of G.nodes.

    Args:
        G (nx.Graph): any graph. Parallel edges are counted.
        weight (str, optional): edge attribute to use as the entry. 
                                Defaults to None (every edge counts 1).
    Returns:
        np.ndarray: n x n matrix
    """
    return nx.to_numpy_array(G, nodelist = list(G.nodes), weight = weight)

def count_paths(G : nx.Graph, length : int) -> np.ndarray:
    """
    Number of walks of exactly 'length' edges between every pair of 
    vertices: the length-th power of the adjacency matrix.

    Returns:
        np.ndarray: n x n matrix of counts
    """
    if length < 0:
        raise GraphAnalysisError("Path length must be non-negative, got "
                                 f"{length}")
    A = adjacency_matrix(G)
    return np.linalg.matrix_power(A, length)

def connected_components(G : nx.Graph, mode : str = "weak") -> list[set]:
    """
    Vertex sets of the connected components, largest first. For directed 
    graphs 'mode' chooses weakly or strongly connected components.
    """
    if mode not in ("weak", "strong"):
        raise GraphAnalysisError(f"Unknown component mode '{mode}'. Use "
                                 "'weak' or 'strong'")
    if not G.is_directed():
        components = nx.connected_components(G)
    elif mode == "weak":
        components = nx.weakly_connected_components(G)
    else:
        components = nx.strongly_connected_components(G)
    return sorted(components, key = len, reverse = True)

def component_sizes(G : nx.Graph, mode : str = "weak") -> list[int]:
    """
    Sizes of the connected components, largest first.
    """
    return [len(comp) for comp in connected_components(G, mode)]

def giant_component(G : nx.Graph, mode : str = "weak") -> nx.Graph:
    """
    A copy of the largest connected component (empty for an empty graph).
    """
    components = connected_components(G, mode)
    if not components:
        return G.copy()
    return G.subgraph(components[0]).copy()

def induced_subgraph(G : nx.Graph, vertices) -> nx.Graph:
    """
    A copy of the subgraph on the given vertices and all edges among them.

    Raises:
        GraphAnalysisError: if a vertex is not in the graph
    """
    vertices = list(vertices)
    missing = [v for v in vertices if v not in G]
    if missing:
        raise GraphAnalysisError(f"Vertices not in graph: {missing}")
    return G.subgraph(vertices).copy()

def degree_sequence(G : nx.Graph, mode : str = "all") -> np.ndarray:
    """
    Degree of each vertex in the order of G.nodes. For directed graphs, 
    'mode' is "all" (in + out), "in" or "out".
    """
    _check_mode(G, mode, ("all", "in", "out"))
    if mode == "in":
        degrees = G.in_degree()
    elif mode == "out":
        degrees = G.out_degree()
    else:
        degrees = G.degree()
    return np.array([d for _, d in degrees], dtype = int)

def degree_distribution(G : nx.Graph, mode : str = "all") -> pd.DataFrame:
    """
    Empirical degree distribution.

    Returns:
        pd.DataFrame: columns "degree", "count" and "fraction", one row per 
                      degree from 0 to the maximum degree
    """
    degrees = degree_sequence(G, mode)
    max_degree = int(degrees.max()) if len(degrees) else 0
    counts = Counter(degrees.tolist())
    table = pd.DataFrame({"degree" : np.arange(max_degree + 1)})
    table["count"] = [counts.get(d, 0) for d in table["degree"]]
    total = max(len(degrees), 1)
    table["fraction"] = table["count"] / total
    return table

def graph_summary(G : nx.Graph) -> dict[str, object]:
    """
    Headline numbers for a graph.

    Returns:
        dict[str, object]: vertices, edges, directed, multigraph, self_loops,
                           density, mean_degree, components and 
                           giant_component_size
    """
    n = G.number_of_nodes()
    sizes = component_sizes(G)
    return {"vertices" : n,
            "edges" : G.number_of_edges(),
            "directed" : G.is_directed(),
            "multigraph" : G.is_multigraph(),
            "self_loops" : nx.number_of_selfloops(G),
            "density" : nx.density(G) if n > 1 else 0.0,
            "mean_degree" : float(np.mean(degree_sequence(G))) if n else 0.0,
            "components" : len(sizes),
            "giant_component_size" : sizes[0] if sizes else 0}

#####################
#### PERCOLATION ####
#####################

def percolate(G : nx.Graph, phi : float, 
              seed : int | np.random.Generator = None) -> nx.Graph:
    """
    Bond percolation: keep every vertex, and keep each edge independently 
    with probability phi.

    Args:
        G (nx.Graph): any graph. It is not modified.
        phi (float): retention probability in [0, 1]
        seed (int | np.random.Generator, optional): random seed or generator
    Returns:
        nx.Graph: a new graph of the same type
    Raises:
        PercolationError: if phi is outside [0, 1]
    """
    _check_phi(phi)
    rng = np.random.default_rng(seed)
    H = G.__class__()
    H.graph.update(G.graph)
    H.add_nodes_from(G.nodes(data = True))
    
    edges = list(G.edges(data = True))
    keep = rng.random(len(edges)) < phi
    H.add_edges_from(edge for edge, kept in zip(edges, keep) if kept)
    return H

def _trial_summary(H : nx.Graph) -> tuple[int, float, int]:
    sizes = component_sizes(H)
    n = max(H.number_of_nodes(), 1)
    return H.number_of_edges(), (sizes[0] if sizes else 0) / n, len(sizes)

SWEEP_COLUMNS : tuple[str, ...] = ("mean_edges", "giant_fraction", 
                                  "giant_fraction_sd", "components")

def _summarize(rows : list[dict], key : str, value : float, 
               trials : list[tuple[int, float, int]]) -> None:
    edges, giant, components = (np.array(col) for col in zip(*trials))
    rows.append({key : value,
                 "mean_edges" : edges.mean(),
                 "giant_fraction" : giant.mean(),
                 "giant_fraction_sd" : giant.std(ddof = 1) 
                                       if len(giant) > 1 else 0.0,
                 "components" : components.mean()})

def percolation_sweep(G : nx.Graph, phis, trials : int = 10, 
                      seed : int = None) -> pd.DataFrame:
    """
    Percolate a graph repeatedly at each retention probability.

    Args:
        G (nx.Graph): the graph
        phis (iterable of float): retention probabilities
        trials (int, optional): repetitions per probability. Defaults to 10.
        seed (int, optional): random seed for the whole sweep
    Returns:
        pd.DataFrame: one row per phi with the mean number of retained edges,
                      the mean and standard deviation of the fraction of 
                      vertices in the giant component, and the mean number 
                      of components
    """
    if trials < 1:
        raise GraphAnalysisError(f"Need at least one trial, got {trials}")
    rng = np.random.default_rng(seed)
    rows = []
    for phi in phis:
        _check_phi(phi)
        results = [_trial_summary(percolate(G, phi, rng)) 
                   for _ in range(trials)]
        _summarize(rows, "phi", phi, results)
    return pd.DataFrame(rows, columns = ["phi", *SWEEP_COLUMNS])

def er_sweep(n : int, ps, trials : int = 10, 
             seed : int = None) -> pd.DataFrame:
    """
    The Erdos-Renyi phase transition: G(n, p) graphs sampled at each p.

    Returns:
        pd.DataFrame: as percolation_sweep, keyed by "p", plus the expected 
                      mean degree (n - 1) * p
    """
    if trials < 1:
        raise GraphAnalysisError(f"Need at least one trial, got {trials}")
    rng = np.random.default_rng(seed)
    rows = []
    for p in ps:
        results = []
        for _ in range(trials):
            G = erdos_renyi_gnp(n, p, seed = int(rng.integers(2 ** 31)))
            results.append(_trial_summary(G))
        _summarize(rows, "p", p, results)
    table = pd.DataFrame(rows, columns = ["p", *SWEEP_COLUMNS])
    table.insert(1, "expected_mean_degree", (n - 1) * table["p"])
    return table
