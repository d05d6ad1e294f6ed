import matplotlib.pyplot as plt
import networkx as nx
import pandas as pd
import pytest
from PhyNetLab.Distance import distance_matrix
from PhyNetLab.GraphAnalysis import percolation_sweep
from PhyNetLab.Generators import complete_graph, ring_graph
from PhyNetLab.Logger import Logger
from PhyNetLab.TreeUtils import parse_newick
from PhyNetLab.vis import (VisualizationError, attribute_colors, 
                           draw_distance_matrix, draw_graph,
                           draw_tree, plot_degree_distribution, plot_sweep,
                           to_interactive_html)
from PhyNetLab.Config import DEFAULT_NODE_COLOR, DEFAULT_PALETTE

################
### HELPERS ####
################

def typed_graph() -> nx.Graph:
    G = nx.Graph()
    G.add_node("a", kind = "TV", size = 100)
    G.add_node("b", kind = "Online", size = 300)
    G.add_node("c", kind = "TV", size = 200)
    G.add_node("d")
    G.add_edge("a", "b", weight = 2.0, medium = "link")
    G.add_edge("b", "c", weight = 1.0)
    return G

@pytest.fixture(autouse = True)
def close_figures():
    yield
    plt.close("all")

################
#### TESTS #####
################

def test_attribute_colors():
    colors, legend = attribute_colors(typed_graph(), "kind")
    assert legend == {"Online" : DEFAULT_PALETTE[0], "TV" : DEFAULT_PALETTE[1]}
    assert colors == [DEFAULT_PALETTE[1], DEFAULT_PALETTE[0], 
                      DEFAULT_PALETTE[1], DEFAULT_NODE_COLOR]
    edge_colors, edge_legend = attribute_colors(typed_graph(), "medium", 
                                                default = "k", edges = True)
    assert edge_colors == [DEFAULT_PALETTE[0], "k"]
    assert list(edge_legend) == ["link"]

def test_draw_graph_returns_axes():
    ax = draw_graph(typed_graph(), seed = 1, color_by = "kind", 
                    node_size = "size", edge_width = "weight", labels = True)
    assert ax.get_legend() is not None
    ax = draw_graph(ring_graph(8), layout = "circular")
    assert ax.figure is not None

def test_draw_graph_unknown_layout():
    with pytest.raises(VisualizationError):
        draw_graph(ring_graph(8), layout = "hyperbolic")

def test_draw_tree_and_matrix(small_msa):
    ax = draw_tree(parse_newick("((A:1,B:2):1,C:1,D:3);"), title = "tree")
    assert ax.get_title() == "tree"
    ax = draw_distance_matrix(distance_matrix(small_msa))
    assert [t.get_text() for t in ax.get_yticklabels()] == small_msa.taxa()

def test_plots():
    ax = plot_degree_distribution(complete_graph(6))
    assert ax.get_xlabel() == "degree"
    table = percolation_sweep(complete_graph(10), [0.2, 0.8], trials = 2, 
                              seed = 0)
    ax = plot_sweep(table, label = "K10")
    assert ax.get_ylabel() == "giant_fraction"

def test_interactive_html(tmp_path):
    path = to_interactive_html(typed_graph(), tmp_path / "graph.html", 
                               color_by = "kind")
    assert path.exists()
    text = path.read_text(encoding = "utf-8")
    assert '"label": "a"' in text
    assert '"color": "' + DEFAULT_PALETTE[1] in text

def test_logger(tmp_path):
    logger = Logger("lesson", title = "Lesson log")
    logger.log("first line")
    logger.log_table(pd.DataFrame({"x" : [1.0, 2.0]}), "a table")
    logger.log_tree(parse_newick("((A:1,B:1):1,C:1);"), "a tree")
    logger.log_network(ring_graph(5), "a ring")
    assert logger.lines == ["first line"]
    
    html = logger.render()
    assert "Lesson log" in html
    assert "first line" in html
    assert "a table" in html
    assert html.count("data:image/png;base64,") == 2
    
    path = logger.to_html(tmp_path / "log.html")
    assert path.read_text(encoding = "utf-8") == html
