import networkx as nx
import numpy as np
import pytest
from PhyNetLab.Generators import complete_graph, star_graph
from PhyNetLab.GraphAnalysis import (GraphAnalysisError, PercolationError,
                                     adjacency_matrix, component_sizes, 
                                     connected_components, count_paths,
                                     degree_distribution, degree_sequence,
                                     er_sweep, giant_component, graph_summary,
                                     induced_subgraph, percolate, 
                                     percolation_sweep)

################
#### TESTS #####
################

@pytest.mark.parametrize("n", [3, 5, 12])
def test_complete_graph_adjacency(n):
    """
    Zero diagonal, ones elsewhere, and n - 2 walks of length 2 between any 
    two distinct vertices.
    """
    G = complete_graph(n)
    A = adjacency_matrix(G)
    assert np.array_equal(A, np.ones((n, n)) - np.eye(n))
    A2 = count_paths(G, 2)
    off_diagonal = A2[~np.eye(n, dtype = bool)]
    assert np.all(off_diagonal == n - 2)
    assert np.all(np.diag(A2) == n - 1)
    assert np.array_equal(count_paths(G, 0), np.eye(n))

def test_weighted_adjacency():
    G = nx.Graph()
    G.add_edge("a", "b", weight = 2.5)
    assert adjacency_matrix(G, weight = "weight")[0, 1] == 2.5
    assert adjacency_matrix(G)[0, 1] == 1.0

def test_components():
    G = nx.Graph([(0, 1), (1, 2), (3, 4)])
    G.add_node(5)
    assert component_sizes(G) == [3, 2, 1]
    assert set(giant_component(G).nodes) == {0, 1, 2}
    
    D = nx.DiGraph([(0, 1), (1, 0), (1, 2)])
    assert component_sizes(D, "weak") == [3]
    assert component_sizes(D, "strong") == [2, 1]
    with pytest.raises(GraphAnalysisError):
        connected_components(D, "medium")

def test_induced_subgraph():
    G = complete_graph(5)
    H = induced_subgraph(G, [0, 1, 2])
    assert H.number_of_edges() == 3
    H.add_edge(0, 9)
    assert 9 not in G
    with pytest.raises(GraphAnalysisError):
        induced_subgraph(G, [0, 42])

def test_degrees():
    G = star_graph(6, mode = "out")
    assert degree_sequence(G, "out").tolist() == [5, 0, 0, 0, 0, 0]
    assert degree_sequence(G, "in").tolist() == [0, 1, 1, 1, 1, 1]
    assert degree_sequence(G).tolist() == [5, 1, 1, 1, 1, 1]
    with pytest.raises(GraphAnalysisError):
        degree_sequence(star_graph(6), "in")
    
    table = degree_distribution(star_graph(6))
    assert table["count"].tolist() == [0, 5, 0, 0, 0, 1]
    assert table["fraction"].sum() == pytest.approx(1.0)

def test_graph_summary():
    summary = graph_summary(star_graph(5))
    assert summary["vertices"] == 5
    assert summary["edges"] == 4
    assert summary["components"] == 1
    assert summary["giant_component_size"] == 5
    assert summary["mean_degree"] == pytest.approx(8 / 5)

def test_percolation_extremes():
    G = complete_graph(20)
    none = percolate(G, 0.0, seed = 1)
    assert none.number_of_edges() == 0
    assert none.number_of_nodes() == 20
    full = percolate(G, 1.0, seed = 1)
    assert sorted(full.edges) == sorted(G.edges)
    # the input is not touched
    assert G.number_of_edges() == 190

def test_percolation_retains_phi_of_edges():
    """
    On K_100 (4950 edges), the mean number of retained edges over many 
    trials is close to phi * E.
    """
    G = complete_graph(100)
    phi = 0.3
    rng = np.random.default_rng(2024)
    counts = [percolate(G, phi, rng).number_of_edges() for _ in range(30)]
    expected = phi * G.number_of_edges()
    # standard error of the mean is about 32 / sqrt(30) ~ 6
    assert abs(np.mean(counts) - expected) < 30

def test_percolation_is_seeded():
    G = complete_graph(30)
    a = percolate(G, 0.5, seed = 9)
    b = percolate(G, 0.5, seed = 9)
    assert sorted(a.edges) == sorted(b.edges)

def test_invalid_phi():
    for phi in (-0.1, 1.1):
        with pytest.raises(PercolationError):
            percolate(complete_graph(4), phi)
    with pytest.raises(PercolationError):
        percolation_sweep(complete_graph(4), [0.5, 2.0])

def test_percolation_sweep():
    table = percolation_sweep(complete_graph(30), [0.0, 0.5, 1.0], trials = 4,
                              seed = 3)
    assert table["phi"].tolist() == [0.0, 0.5, 1.0]
    assert table.loc[0, "giant_fraction"] == pytest.approx(1 / 30)
    assert table.loc[2, "giant_fraction"] == pytest.approx(1.0)
    assert table.loc[2, "mean_edges"] == 435

def test_er_giant_component():
    """
    Well below mean degree 1 there is no giant component; well above it 
    most vertices belong to one.
    """
    table = er_sweep(400, [0.5 / 399, 4.0 / 399], trials = 3, seed = 8)
    assert table["expected_mean_degree"].tolist() == pytest.approx([0.5, 4.0])
    assert table.loc[0, "giant_fraction"] < 0.1
    assert table.loc[1, "giant_fraction"] > 0.9

def test_empty_sweeps():
    table = er_sweep(50, [], trials = 2, seed = 1)
    assert table.empty
    assert list(table.columns) == ["p", "expected_mean_degree", "mean_edges",
                                   "giant_fraction", "giant_fraction_sd", 
                                   "components"]
    table = percolation_sweep(complete_graph(5), [], seed = 1)
    assert table.empty
    assert list(table.columns)[0] == "phi"
