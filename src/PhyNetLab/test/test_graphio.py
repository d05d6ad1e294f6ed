import networkx as nx
import pandas as pd
import pytest
from PhyNetLab.GraphIO import (GraphIOError, aggregate_edges, 
                               graph_from_tables, load_graph_collection,
                               read_edge_table, read_node_table, 
                               save_graph_collection, simplify)

################
#### TESTS #####
################

def test_read_tables(files_dir):
    nodes = read_node_table(files_dir / "nodes.csv")
    edges = read_edge_table(files_dir / "edges.csv")
    assert list(nodes["id"]) == ["n1", "n2", "n3", "n4"]
    assert len(edges) == 6

def test_read_tables_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("source,target\na,b\n")
    with pytest.raises(GraphIOError) as err:
        read_edge_table(path)
    assert "  " not in err.value.message
    with pytest.raises(GraphIOError):
        read_node_table(path)

def test_aggregate_edges(files_dir):
    edges = read_edge_table(files_dir / "edges.csv")
    agg = aggregate_edges(edges)
    assert len(agg) == 5
    row = agg[(agg["from"] == "n1") & (agg["to"] == "n2") & 
              (agg["type"] == "x")]
    assert row["weight"].item() == 3
    assert agg["weight"].sum() == edges["weight"].sum()

def test_aggregate_is_order_independent(files_dir):
    edges = read_edge_table(files_dir / "edges.csv")
    shuffled = edges.sample(frac = 1.0, random_state = 11)
    pd.testing.assert_frame_equal(aggregate_edges(edges), 
                                  aggregate_edges(shuffled))

def test_aggregate_keeps_missing_keys():
    edges = pd.DataFrame({"from" : ["a", "a", "b", "b"],
                          "to" : ["b", "b", "c", "c"],
                          "type" : ["x", "x", None, None],
                          "weight" : [1, 2, 5, 4]})
    agg = aggregate_edges(edges)
    assert len(agg) == 2
    assert agg["weight"].sum() == 12
    untyped = agg[agg["type"].isna()]
    assert untyped["weight"].item() == 9

def test_graph_from_tables(files_dir):
    nodes = read_node_table(files_dir / "nodes.csv")
    edges = aggregate_edges(read_edge_table(files_dir / "edges.csv"))
    G = graph_from_tables(edges, nodes, directed = True, multigraph = True)
    assert isinstance(G, nx.MultiDiGraph)
    assert G.number_of_nodes() == 4
    assert G.number_of_edges() == 5
    assert G.nodes["n3"]["type"] == "B"
    assert G.nodes["n1"]["name"] == "alpha"
    weights = sorted(d["weight"] for _, _, d in G.edges("n1", data = True))
    assert weights == [3, 4]

def test_graph_without_node_table(files_dir):
    edges = read_edge_table(files_dir / "edges.csv")
    G = graph_from_tables(edges, directed = False)
    assert isinstance(G, nx.Graph)
    assert set(G.nodes) == {"n1", "n2", "n3", "n4"}

def test_unknown_endpoint(files_dir):
    nodes = read_node_table(files_dir / "nodes.csv")
    edges = pd.DataFrame({"from" : ["n1"], "to" : ["n9"], "weight" : [1]})
    with pytest.raises(GraphIOError):
        graph_from_tables(edges, nodes)

def test_simplify(files_dir):
    edges = read_edge_table(files_dir / "edges.csv")
    G = graph_from_tables(edges, multigraph = True)
    H = simplify(G)
    assert isinstance(H, nx.DiGraph) and not H.is_multigraph()
    assert nx.number_of_selfloops(H) == 0
    assert H["n1"]["n2"]["weight"] == 7
    assert H.number_of_edges() == 3
    # the input is unchanged
    assert G.number_of_edges() == 6
    
    loops_kept = simplify(G, remove_loops = False)
    assert nx.number_of_selfloops(loops_kept) == 1

def test_graph_collection_round_trip(tmp_path):
    graphs = {"ring" : nx.cycle_graph(5), "path" : nx.path_graph(3)}
    path = tmp_path / "graphs.pkl"
    save_graph_collection(graphs, path)
    loaded = load_graph_collection(path)
    assert set(loaded) == {"ring", "path"}
    assert nx.utils.graphs_equal(loaded["ring"], graphs["ring"])

def test_load_rejects_other_pickles(tmp_path):
    import pickle
    path = tmp_path / "junk.pkl"
    with open(path, "wb") as f:
        pickle.dump([1, 2, 3], f)
    with pytest.raises(GraphIOError):
        load_graph_collection(path)
