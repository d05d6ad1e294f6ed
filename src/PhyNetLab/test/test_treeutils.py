import pytest
from PhyNetLab.TreeUtils import (TreeError, is_binary, ladderize, 
                                 midpoint_root, num_unrooted_branches, 
                                 parse_newick, read_tree, root_with_outgroup,
                                 same_taxa, tip_labels, to_newick, unroot, 
                                 write_tree)

NEWICK = "((A:0.1,B:0.2)AB:0.3,(C:0.4,D:0.5)CD:0.6,E:0.7);"

################
#### TESTS #####
################

def test_parse_and_labels():
    tree = parse_newick(NEWICK)
    assert tip_labels(tree) == ["A", "B", "C", "D", "E"]
    assert is_binary(tree)
    assert num_unrooted_branches(tree) == 7

def test_newick_round_trip_through_file(tmp_path):
    tree = parse_newick(NEWICK)
    path = tmp_path / "tree.nwk"
    write_tree(tree, path)
    again = read_tree(path)
    assert tip_labels(again) == tip_labels(tree)
    assert again.total_branch_length() == pytest.approx(2.8)

def test_to_newick_without_internal_labels():
    text = to_newick(parse_newick(NEWICK), internal_labels = False)
    assert "AB" not in text and "CD" not in text
    assert text.endswith(";")
    # the source tree keeps its labels
    tree = parse_newick(NEWICK)
    to_newick(tree, internal_labels = False)
    assert tree.common_ancestor("A", "B").name == "AB"

def test_root_with_outgroup():
    tree = parse_newick(NEWICK)
    root_with_outgroup(tree, "E")
    assert tree.rooted
    assert len(tree.root.clades) == 2
    assert "E" in [clade.name for clade in tree.root.clades]
    # rooting never changes the unrooted branch count or tree length
    assert num_unrooted_branches(tree) == 7
    assert tree.total_branch_length() == pytest.approx(2.8)

def test_root_on_root_child_splits_its_branch():
    tree = root_with_outgroup(parse_newick(NEWICK), "E")
    lengths = {clade.name : clade.branch_length for clade in tree.root.clades}
    assert lengths["E"] == pytest.approx(0.35)
    rest = [length for name, length in lengths.items() if name != "E"]
    assert rest == [pytest.approx(0.35)]

def test_root_keeps_length_of_bifurcating_tree():
    tree = parse_newick("((A:1,B:1):1,(C:1,D:1):2);")
    root_with_outgroup(tree, "A")
    assert len(tree.root.clades) == 2
    assert tree.total_branch_length() == pytest.approx(7.0)
    root_with_outgroup(tree, "C")
    assert tree.total_branch_length() == pytest.approx(7.0)

def test_root_with_several_outgroup_taxa():
    tree = parse_newick(NEWICK)
    root_with_outgroup(tree, ["C", "D"])
    names = {leaf.name for clade in tree.root.clades 
             for leaf in clade.get_terminals()}
    assert names == {"A", "B", "C", "D", "E"}
    assert any({leaf.name for leaf in clade.get_terminals()} == {"C", "D"}
               for clade in tree.root.clades)

def test_root_with_unknown_outgroup():
    with pytest.raises(TreeError):
        root_with_outgroup(parse_newick(NEWICK), "Z")

def test_unroot_after_rooting():
    tree = root_with_outgroup(parse_newick(NEWICK), "A")
    unroot(tree)
    assert not tree.rooted
    assert len(tree.root.clades) == 3
    assert tree.total_branch_length() == pytest.approx(2.8)
    assert num_unrooted_branches(tree) == 7

def test_midpoint_root():
    tree = midpoint_root(parse_newick("((A:1,B:1):1,C:5);"))
    assert len(tree.root.clades) == 2
    assert sorted(tip_labels(tree)) == ["A", "B", "C"]

def test_same_taxa_and_ladderize():
    a = parse_newick(NEWICK)
    b = ladderize(parse_newick("(E,(D,C),(B,A));"))
    assert same_taxa(a, b)
    assert not same_taxa(a, parse_newick("(A,B,C);"))
    assert b.root.clades[0].is_terminal()
