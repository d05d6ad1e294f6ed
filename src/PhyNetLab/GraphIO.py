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

Building networkx graphs from CSV node and edge tables, and saving and 
loading named collections of graphs.

An edge table has one row per interaction with at least a source and a 
target column (see Config.SOURCE_COLUMN and Config.TARGET_COLUMN). A node 
table has one row per vertex with an id column (Config.ID_COLUMN); its 
remaining columns become vertex attributes.
"""

from __future__ import annotations
from pathlib import Path
import pickle
import networkx as nx
import pandas as pd
from .Config import (ID_COLUMN, SOURCE_COLUMN, TARGET_COLUMN, TYPE_COLUMN,
                     WEIGHT_COLUMN)

#########################
#### EXCEPTION CLASS ####
#########################

class GraphIOError(Exception):
    """
    Raised when node or edge tables are malformed or disagree, or a saved 
    graph collection cannot be read.
    """
    def __init__(self, message : str = "Error reading or writing a graph"):
        self.message = message
        super().__init__(self.message)

def _require_columns(table : pd.DataFrame, columns : list[str], 
                     what : str) -> None:
    missing = [col for col in columns if col not in table.columns]
    if missing:
        raise GraphIOError(f"{what} table is missing columns {missing}. "
                           f"Found {list(table.columns)}")

################
#### TABLES ####
################

def read_node_table(path : str | Path, id_column : str = ID_COLUMN, 
                    **kwargs) -> pd.DataFrame:
    """
    Read a node table from a CSV file. Keyword arguments go to 
    pandas.read_csv.

    Raises:
        GraphIOError: if the id column is missing or has duplicates
    """
    nodes = pd.read_csv(path, **kwargs)
    _require_columns(nodes, [id_column], "Node")
    if nodes[id_column].duplicated().any():
        raise GraphIOError(f"Duplicate node ids in {path}")
    return nodes

def read_edge_table(path : str | Path, source : str = SOURCE_COLUMN, 
                    target : str = TARGET_COLUMN, **kwargs) -> pd.DataFrame:
    """
    Read an edge table from a CSV file. Keyword arguments go to 
    pandas.read_csv.

    Raises:
        GraphIOError: if the source or target column is missing
    """
    edges = pd.read_csv(path, **kwargs)
    _require_columns(edges, [source, target], "Edge")
    return edges

def aggregate_edges(edges : pd.DataFrame, 
                    keys : tuple[str, ...] = (SOURCE_COLUMN, TARGET_COLUMN, 
                                              TYPE_COLUMN),
                    weight : str = WEIGHT_COLUMN) -> pd.DataFrame:
    """
    Collapse repeated interactions into one row per unique key tuple, 
    summing their weights. The result does not depend on the row order of 
    the input.

    Args:
        edges (pd.DataFrame): the edge table
        keys (tuple[str, ...], optional): columns identifying an edge. 
                                          Defaults to source, target, type.
        weight (str, optional): column to sum. Defaults to "weight".
    Returns:
        pd.DataFrame: one row per key tuple, sorted by the keys, with columns
                      keys + (weight,)
    """
    _require_columns(edges, list(keys) + [weight], "Edge")
    return (edges.groupby(list(keys), as_index = False, sort = True,
                          dropna = False)[weight]
                 .sum()
                 .reset_index(drop = True))

###############
#### GRAPH ####
###############

def graph_from_tables(edges : pd.DataFrame, 
                      nodes : pd.DataFrame = None,
                      directed : bool = True, 
                      multigraph : bool = False,
                      source : str = SOURCE_COLUMN,
                      target : str = TARGET_COLUMN,
                      id_column : str = ID_COLUMN) -> nx.Graph:
    """
    Build a graph from an edge table and an optional node table. Every 
    other edge column becomes an edge attribute and every other node column
    a vertex attribute.

    Args:
        edges (pd.DataFrame): edge table
        nodes (pd.DataFrame, optional): node table. Without one, vertices 
                                        are the edge endpoints. 
        directed (bool, optional): Defaults to True.
        multigraph (bool, optional): keep parallel edges. Defaults to False,
                                     in which case a repeated edge keeps the
                                     attributes of its last row.
    Returns:
        nx.Graph: a Graph, DiGraph, MultiGraph or MultiDiGraph
    Raises:
        GraphIOError: if an edge endpoint is not in the node table
    """
    _require_columns(edges, [source, target], "Edge")
    if multigraph:
        G = nx.MultiDiGraph() if directed else nx.MultiGraph()
    else:
        G = nx.DiGraph() if directed else nx.Graph()
    
    if nodes is not None:
        _require_columns(nodes, [id_column], "Node")
        known = set(nodes[id_column])
        missing = (set(edges[source]) | set(edges[target])) - known
        if missing:
            raise GraphIOError("Edge endpoints not in the node table: "
                               f"{sorted(map(str, missing))}")
        for row in nodes.to_dict("records"):
            node_id = row.pop(id_column)
            G.add_node(node_id, **row)
    
    for row in edges.to_dict("records"):
        u = row.pop(source)
        v = row.pop(target)
        G.add_edge(u, v, **row)
    
    return G

def simplify(G : nx.Graph, 
             remove_loops : bool = True, 
             remove_multiple : bool = True,
             weight : str = WEIGHT_COLUMN) -> nx.Graph:
    """
    A copy of the graph without self loops and/or parallel edges. The 
    weights of parallel edges are summed; their other attributes are taken 
    from the first of them.

    Args:
        G (nx.Graph): any networkx graph
        remove_loops (bool, optional): Defaults to True.
        remove_multiple (bool, optional): Defaults to True.
        weight (str, optional): attribute to sum. Defaults to "weight".
    Returns:
        nx.Graph: a new graph; G is not modified
    """
    if remove_multiple and G.is_multigraph():
        H = nx.DiGraph() if G.is_directed() else nx.Graph()
        H.graph.update(G.graph)
        H.add_nodes_from(G.nodes(data = True))
        for u, v, data in G.edges(data = True):
            if H.has_edge(u, v):
                if weight in data:
                    existing = H[u][v].get(weight, 0)
                    H[u][v][weight] = existing + data[weight]
            else:
                H.add_edge(u, v, **data)
    else:
        H = G.copy()
    
    if remove_loops:
        H.remove_edges_from(list(nx.selfloop_edges(H)))
    return H

#####################
#### COLLECTIONS ####
#####################

def save_graph_collection(graphs : dict[str, nx.Graph], 
                          path : str | Path) -> None:
    """
    Pickle a mapping of names to graphs.
    """
    with open(path, "wb") as f:
        pickle.dump(dict(graphs), f)

def load_graph_collection(path : str | Path) -> dict[str, nx.Graph]:
    """
    Load a mapping of names to graphs written by save_graph_collection.

    Raises:
        GraphIOError: if the file does not hold a mapping of graphs
    """
    with open(path, "rb") as f:
        graphs = pickle.load(f)
    if not isinstance(graphs, dict) or \
       not all(isinstance(G, nx.Graph) for G in graphs.values()):
        raise GraphIOError(f"{path} does not contain a graph collection")
    return graphs
