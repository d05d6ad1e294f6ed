import networkx as nx
import pytest
from PhyNetLab.Generators import (GraphGenerationError, complete_graph, 
                                  erdos_renyi, erdos_renyi_gnm, 
                                  erdos_renyi_gnp, lattice_graph, ring_graph,
                                  star_graph, tree_graph)

################
#### TESTS #####
################

@pytest.mark.parametrize("n", [1, 2, 5, 40])
def test_star_graph(n):
    """
    n vertices, n - 1 edges, one vertex of degree n - 1 and the rest of 
    degree 1.
    """
    G = star_graph(n)
    assert G.number_of_nodes() == n
    assert G.number_of_edges() == n - 1
    if n > 2:
        degrees = sorted(d for _, d in G.degree())
        assert degrees == [1] * (n - 1) + [n - 1]

def test_star_modes():
    out_star = star_graph(6, mode = "out")
    in_star = star_graph(6, mode = "in")
    assert out_star.out_degree(0) == 5 and out_star.in_degree(0) == 0
    assert in_star.in_degree(0) == 5 and in_star.out_degree(0) == 0
    with pytest.raises(GraphGenerationError):
        star_graph(6, mode = "mutual")

def test_complete_graph():
    G = complete_graph(6)
    assert G.number_of_edges() == 15
    assert complete_graph(6, directed = True).number_of_edges() == 30

def test_tree_ring_lattice():
    tree = tree_graph(40, children = 3)
    assert tree.number_of_nodes() == 40
    assert nx.is_tree(tree)
    assert max(d for _, d in tree.degree()) == 4
    
    ring = ring_graph(10)
    assert all(d == 2 for _, d in ring.degree())
    
    grid = lattice_graph(4, 5)
    assert grid.number_of_nodes() == 20
    assert grid.number_of_edges() == 4 * 4 + 3 * 5
    assert sorted(grid.nodes) == list(range(20))
    torus = lattice_graph(4, 5, periodic = True)
    assert all(d == 4 for _, d in torus.degree())

def test_erdos_renyi_is_seeded():
    a = erdos_renyi_gnp(50, 0.1, seed = 5)
    b = erdos_renyi_gnp(50, 0.1, seed = 5)
    assert sorted(a.edges) == sorted(b.edges)
    assert erdos_renyi_gnm(50, 60, seed = 1).number_of_edges() == 60
    assert erdos_renyi(30, "gnm", m = 10, seed = 2).number_of_edges() == 10
    assert erdos_renyi(30, p = 0.0).number_of_edges() == 0
    assert erdos_renyi(30, p = 1.0).number_of_edges() == 435

def test_invalid_parameters():
    with pytest.raises(GraphGenerationError):
        erdos_renyi_gnp(10, 1.5)
    with pytest.raises(GraphGenerationError):
        erdos_renyi_gnm(5, 11)
    with pytest.raises(GraphGenerationError):
        erdos_renyi(10, "gnp")
    with pytest.raises(GraphGenerationError):
        erdos_renyi(10, "ba", p = 0.1)
    with pytest.raises(GraphGenerationError):
        star_graph(0)
    with pytest.raises(GraphGenerationError):
        tree_graph(5, children = 0)
