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
Drawing trees, distance matrices and graphs with matplotlib, and exporting 
graphs to interactive html with pyvis.

Every matplotlib function draws onto the given axes (a new figure is made 
when none is given) and returns the axes, so that plots can be combined, 
saved or handed to a Logger.
"""

from __future__ import annotations
from pathlib import Path
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.patches import Patch
import networkx as nx
import pandas as pd
from Bio import Phylo
from Bio.Phylo.BaseTree import Tree
from pyvis.network import Network as PyvisNetwork
from .Config import (DEFAULT_EDGE_WIDTH, DEFAULT_NODE_COLOR, DEFAULT_NODE_SIZE,
                     DEFAULT_PALETTE, WEIGHT_COLUMN)
from .Distance import DistanceMatrix
from .GraphAnalysis import degree_distribution

#########################
#### EXCEPTION CLASS ####
#########################

class VisualizationError(Exception):
    """
    Raised when a drawing is asked for with options it does not support.
    """
    def __init__(self, message : str = "Cannot draw this object"):
        self.message = message
        super().__init__(self.message)

def _axes(ax : Axes = None) -> Axes:
    if ax is None:
        _, ax = plt.subplots()
    return ax

###############
#### TREES ####
###############

def draw_tree(tree : Tree, ax : Axes = None, show_support : bool = False, 
              title : str = None) -> Axes:
    """
    Draw a phylogram: horizontal positions are cumulative branch lengths.

    Args:
        tree (Tree): the tree
        ax (Axes, optional): where to draw. Defaults to a new figure.
        show_support (bool, optional): label internal nodes with their 
                                       support values. Defaults to False.
        title (str, optional): axes title. Defaults to None.
    Returns:
        Axes: the axes drawn on
    """
    ax = _axes(ax)
    Phylo.draw(tree, axes = ax, do_show = False, show_confidence = show_support)
    if title is not None:
        ax.set_title(title)
    return ax

def draw_distance_matrix(dm : DistanceMatrix, ax : Axes = None, 
                         cmap : str = "viridis", title : str = None) -> Axes:
    """
    Heatmap of a distance matrix. Saturated (infinite) distances are left 
    blank.
    """
    ax = _axes(ax)
    values = np.ma.masked_invalid(dm.as_array())
    image = ax.imshow(values, cmap = cmap)
    ax.figure.colorbar(image, ax = ax, label = f"{dm.model} distance")
    ticks = np.arange(len(dm))
    ax.set_xticks(ticks)
    ax.set_xticklabels(dm.names, rotation = 90)
    ax.set_yticks(ticks)
    ax.set_yticklabels(dm.names)
    if title is not None:
        ax.set_title(title)
    return ax

################
#### GRAPHS ####
################

def attribute_colors(G : nx.Graph, attribute : str, 
                     palette : tuple[str, ...] = DEFAULT_PALETTE,
                     default : str = DEFAULT_NODE_COLOR,
                     edges : bool = False) -> tuple[list[str], dict]:
    """
    Map a categorical vertex (or edge) attribute to colors. Distinct values
    are sorted and assigned palette colors in order, cycling if there are 
    more values than colors. Elements without the attribute get 'default'.

    Args:
        G (nx.Graph): the graph
        attribute (str): attribute name, ie. "type"
        palette (tuple[str, ...], optional): colors to assign. 
        default (str, optional): color for missing values.
        edges (bool, optional): color edges instead of vertices. 
                                Defaults to False.
    Returns:
        tuple[list[str], dict]: one color per vertex (in G.nodes order) or 
                                edge (in G.edges order), and the legend 
                                mapping each value to its color
    """
    if edges:
        values = [data.get(attribute) for *_, data in G.edges(data = True)]
    else:
        values = [data.get(attribute) for _, data in G.nodes(data = True)]
    
    distinct = sorted({v for v in values if v is not None}, key = str)
    legend = {value : palette[i % len(palette)] 
              for i, value in enumerate(distinct)}
    return [legend.get(v, default) for v in values], legend

def _resolve(G : nx.Graph, value, default : float, edges : bool) -> list:
    """
    A per element value: a constant, or the name of a numeric attribute.
    """
    if value is None:
        value = default
    if not isinstance(value, str):
        return value
    if edges:
        return [data.get(value, default) for *_, data in G.edges(data = True)]
    return [data.get(value, default) for _, data in G.nodes(data = True)]

def _layout(G : nx.Graph, layout : str, seed : int) -> dict:
    if layout == "spring":
        return nx.spring_layout(G, seed = seed)
    if layout == "kamada_kawai":
        return nx.kamada_kawai_layout(G)
    if layout == "circular":
        return nx.circular_layout(G)
    if layout == "shell":
        return nx.shell_layout(G)
    if layout == "spectral":
        return nx.spectral_layout(G)
    raise VisualizationError(f"Unknown layout <{layout}>")

def draw_graph(G : nx.Graph, 
               ax : Axes = None,
               layout : str | dict = "spring",
               seed : int = None,
               color_by : str = None,
               node_color : str = DEFAULT_NODE_COLOR,
               node_size : float | str = DEFAULT_NODE_SIZE,
               edge_width : float | str = DEFAULT_EDGE_WIDTH,
               edge_color_by : str = None,
               labels : bool = False,
               legend : bool = True,
               title : str = None) -> Axes:
    """
    Draw a graph with vertex and edge appearance keyed on attributes.

    Args:
        G (nx.Graph): the graph
        ax (Axes, optional): where to draw. Defaults to a new figure.
        layout (str | dict, optional): a layout name ("spring", 
                                       "kamada_kawai", "circular", "shell",
                                       "spectral") or precomputed positions.
                                       Defaults to "spring".
        seed (int, optional): seed for the spring layout.
        color_by (str, optional): categorical vertex attribute for colors.
        node_color (str, optional): color when color_by is not given.
        node_size (float | str, optional): a size, or a numeric vertex 
                                           attribute to use as the size.
        edge_width (float | str, optional): a width, or a numeric edge 
                                            attribute, ie. "weight".
        edge_color_by (str, optional): categorical edge attribute for colors.
        labels (bool, optional): draw vertex names. Defaults to False.
        legend (bool, optional): add a legend for color_by. Defaults to True.
        title (str, optional): axes title.
    Returns:
        Axes: the axes drawn on
    """
    ax = _axes(ax)
    pos = layout if isinstance(layout, dict) else _layout(G, layout, seed)
    
    legend_map = {}
    if color_by is not None:
        colors, legend_map = attribute_colors(G, color_by)
    else:
        colors = node_color
    edge_colors = "k"
    if edge_color_by is not None:
        edge_colors, _ = attribute_colors(G, edge_color_by, 
                                          default = "k", edges = True)
    
    nx.draw_networkx_nodes(G, pos, ax = ax, node_color = colors,
                           node_size = _resolve(G, node_size, 
                                                DEFAULT_NODE_SIZE, False))
    nx.draw_networkx_edges(G, pos, ax = ax, edge_color = edge_colors,
                           width = _resolve(G, edge_width, 
                                            DEFAULT_EDGE_WIDTH, True))
    if labels:
        nx.draw_networkx_labels(G, pos, ax = ax, font_size = 8)
    
    if legend and legend_map:
        ax.legend(handles = [Patch(color = color, label = str(value)) 
                             for value, color in legend_map.items()],
                  title = color_by, loc = "best", fontsize = 8)
    if title is not None:
        ax.set_title(title)
    ax.set_axis_off()
    return ax

def plot_degree_distribution(G : nx.Graph, mode : str = "all", 
                             ax : Axes = None, log : bool = False,
                             title : str = None) -> Axes:
    """
    Bar chart (or log-log scatter) of the fraction of vertices per degree.
    """
    ax = _axes(ax)
    table = degree_distribution(G, mode)
    if log:
        table = table[(table["degree"] > 0) & (table["count"] > 0)]
        ax.loglog(table["degree"], table["fraction"], "o")
    else:
        ax.bar(table["degree"], table["fraction"], color = DEFAULT_PALETTE[0])
    ax.set_xlabel("degree")
    ax.set_ylabel("fraction of vertices")
    if title is not None:
        ax.set_title(title)
    return ax

def plot_sweep(table : pd.DataFrame, x : str = "phi", 
               y : str = "giant_fraction", err : str = "giant_fraction_sd",
               ax : Axes = None, label : str = None, 
               title : str = None) -> Axes:
    """
    Line plot of a percolation_sweep or er_sweep table, with error bars when
    the 'err' column is present.
    """
    ax = _axes(ax)
    yerr = table[err] if err is not None and err in table.columns else None
    ax.errorbar(table[x], table[y], yerr = yerr, marker = "o", capsize = 3,
                label = label)
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    if label is not None:
        ax.legend()
    if title is not None:
        ax.set_title(title)
    return ax

def to_interactive_html(G : nx.Graph, path : str | Path, 
                        color_by : str = None, 
                        weight : str = WEIGHT_COLUMN,
                        height : str = "750px") -> Path:
    """
    Write an interactive (draggable, zoomable) html view of a graph. Vertex
    tooltips list the vertex attributes, and edge thickness follows 
    'weight' when present.

    Args:
        G (nx.Graph): the graph
        path (str | Path): output html file
        color_by (str, optional): categorical vertex attribute for colors.
        weight (str, optional): edge attribute for thickness.
        height (str, optional): canvas height. Defaults to "750px".
    Returns:
        Path: the written file
    """
    net = PyvisNetwork(height = height, width = "100%", 
                       directed = G.is_directed(), cdn_resources = "remote")
    if color_by is not None:
        colors, _ = attribute_colors(G, color_by)
    else:
        colors = [DEFAULT_NODE_COLOR] * G.number_of_nodes()
    
    for (node, data), color in zip(G.nodes(data = True), colors):
        tooltip = "<br>".join(f"{key}: {value}" for key, value in data.items())
        net.add_node(str(node), label = str(node), color = color, 
                     title = tooltip or str(node))
    for u, v, data in G.edges(data = True):
        if weight in data:
            net.add_edge(str(u), str(v), value = float(data[weight]))
        else:
            net.add_edge(str(u), str(v))
    
    path = Path(path)
    net.write_html(str(path))
    return path
