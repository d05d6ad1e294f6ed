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
Lesson 2: network science.

Builds a media network from node and edge tables, explores its structure, 
compares it with canonical and random graphs, and simulates percolation. 
Every step is logged to an html report (networks_lesson.html), and an 
interactive view of the media network is written to media_network.html.

Run from the repository root:

    python lessons/networks.py

Exercises are marked EXERCISE and left to the reader.
"""

from pathlib import Path
import matplotlib.pyplot as plt
import numpy as np
from PhyNetLab import (Logger, aggregate_edges, er_sweep, graph_from_tables,
                       load_graph_collection, percolate, percolation_sweep,
                       read_edge_table, read_node_table, 
                       save_graph_collection, simplify)
from PhyNetLab.Generators import (complete_graph, erdos_renyi_gnm, 
                                  erdos_renyi_gnp, lattice_graph, ring_graph,
                                  star_graph, tree_graph)
from PhyNetLab.GraphAnalysis import (adjacency_matrix, component_sizes, 
                                     count_paths, giant_component, 
                                     graph_summary, induced_subgraph)
from PhyNetLab.vis import (draw_graph, plot_degree_distribution, plot_sweep,
                           to_interactive_html)

DATA = Path(__file__).parent / "data"
COLLECTION = DATA / "graphs.pkl"


def example_collection() -> dict:
    """
    The graphs used in section 3, built once and kept in a pickle.
    """
    if not COLLECTION.exists():
        save_graph_collection({"complete" : complete_graph(10),
                               "star" : star_graph(10),
                               "tree" : tree_graph(15, children = 2),
                               "ring" : ring_graph(12),
                               "lattice" : lattice_graph(5, 5)}, 
                              COLLECTION)
    return load_graph_collection(COLLECTION)

def main() -> None:
    log = Logger("networks_lesson", title = "Network science")
    
    #### 1. From tables to a graph ####
    
    nodes = read_node_table(DATA / "nodes.csv")
    links = read_edge_table(DATA / "edges.csv")
    log.log(f"{len(nodes)} nodes, {len(links)} edge rows, "
            f"{len(links[['from', 'to', 'type']].drop_duplicates())} unique links")
    
    links = aggregate_edges(links)
    media = graph_from_tables(links, nodes, directed = True)
    log.log(f"Media network: {graph_summary(media)}")
    
    media = simplify(media)
    log.log(f"After removing self loops: {graph_summary(media)}")
    
    # Audience in thousands, scaled up to marker areas
    for node, audience in media.nodes(data = "audience"):
        media.nodes[node]["size"] = 10 * audience
    
    fig, ax = plt.subplots(figsize = (8, 6))
    draw_graph(media, ax = ax, seed = 3, color_by = "type", 
               node_size = "size", edge_width = "weight", labels = True,
               title = "Media network")
    log.log_figure(fig, "Vertex color is media type, edge width is weight")
    
    to_interactive_html(media, "media_network.html", color_by = "type")
    
    # EXERCISE: draw only the hyperlinks, coloring edges by type with 
    # draw_graph(..., edge_color_by="type").
    
    newspapers = [n for n, kind in media.nodes(data = "type") 
                  if kind == "Newspaper"]
    papers = induced_subgraph(media, newspapers)
    log.log(f"Newspaper subgraph: {graph_summary(papers)}")
    
    A = adjacency_matrix(media)
    log.log(f"Adjacency matrix is {A.shape[0]}x{A.shape[1]} with "
            f"{int(A.sum())} links")
    
    #### 2. Degrees ####
    
    fig, axes = plt.subplots(1, 2, figsize = (10, 4))
    plot_degree_distribution(media, "in", ax = axes[0], title = "in-degree")
    plot_degree_distribution(media, "out", ax = axes[1], title = "out-degree")
    log.log_figure(fig, "Degree distributions of the media network")
    
    #### 3. Canonical graphs ####
    
    collection = example_collection()
    fig, axes = plt.subplots(1, len(collection), 
                             figsize = (4 * len(collection), 4))
    for ax, (name, G) in zip(axes, collection.items()):
        draw_graph(G, ax = ax, seed = 1, title = name)
    log.log_figure(fig, "Canonical graphs")
    
    K = collection["complete"]
    paths = count_paths(K, 2)
    log.log(f"Walks of length 2 between two vertices of K10: {paths[0, 1]:.0f}")
    
    # EXERCISE: for the star graph, what does count_paths(G, 2) say about
    # the center and about two leaves?
    
    #### 4. Random graphs ####
    
    gnp = erdos_renyi_gnp(100, 0.02, seed = 42)
    gnm = erdos_renyi_gnm(100, 99, seed = 42)
    for name, G in (("G(n, p)", gnp), ("G(n, m)", gnm)):
        log.log(f"{name}: {graph_summary(G)}, component sizes "
                f"{component_sizes(G)[:5]}")
        log.log_network(G, f"{name}, n = 100", 
                        layout = "spring", seed = 2, node_size = 30)
    log.log_network(giant_component(gnp), "Giant component of G(n, p)",
                    seed = 2, node_size = 30)
    
    n = 500
    ps = np.linspace(0.0, 4.0, 17) / (n - 1)
    table = er_sweep(n, ps, trials = 5, seed = 7)
    log.log_table(table, "Erdos-Renyi phase transition")
    fig, ax = plt.subplots()
    plot_sweep(table, x = "expected_mean_degree", ax = ax, 
               title = "Giant component of G(n, p)")
    ax.axvline(1.0, color = "grey", linestyle = "--")
    log.log_figure(fig, "The giant component appears at mean degree 1")
    
    # EXERCISE: repeat the sweep with n = 100 and n = 2000. How does the 
    # transition change with n?
    
    #### 5. Percolation ####
    
    grid = lattice_graph(30, 30)
    half = percolate(grid, 0.5, seed = 5)
    log.log("Lattice after percolation at phi = 0.5: kept "
            f"{half.number_of_edges()} of {grid.number_of_edges()} edges")
    
    phis = np.linspace(0.0, 1.0, 21)
    table = percolation_sweep(grid, phis, trials = 5, seed = 11)
    log.log_table(table, "Bond percolation on a 30x30 lattice")
    fig, ax = plt.subplots()
    plot_sweep(table, ax = ax, label = "30x30 lattice")
    plot_sweep(percolation_sweep(media.to_undirected(), phis, trials = 20, 
                                 seed = 11), 
               ax = ax, label = "media network")
    log.log_figure(fig, "Fraction of vertices in the largest component")
    
    # EXERCISE: the square lattice has a bond percolation threshold of 
    # exactly 1/2. Can you see it in the plot? What happens on a ring?
    
    path = log.to_html()
    print(f"Report written to {path}")

if __name__ == "__main__":
    main()
