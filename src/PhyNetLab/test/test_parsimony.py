import pytest
from PhyNetLab.MSA import MSA
from PhyNetLab.Parsimony import ParsimonyError, parsimony_score, parsimony_tree
from PhyNetLab.TreeUtils import parse_newick, tip_labels, to_newick

################
### HELPERS ####
################

def four_taxa() -> MSA:
    return MSA.from_dict({"a" : "AAGTA", "b" : "AAGTA", 
                          "c" : "ACTTA", "d" : "ACTTC"})

################
#### TESTS #####
################

def test_fitch_scores():
    msa = four_taxa()
    good = parse_newick("((a,b),(c,d));")
    bad = parse_newick("((a,c),(b,d));")
    assert parsimony_score(good, msa) == 3
    assert parsimony_score(bad, msa) == 5

def test_score_unrooted_tree_without_lengths():
    tree = parse_newick("((a,b),(c,d));")
    tree.rooted = False
    assert parsimony_score(tree, four_taxa()) == 3
    assert not tree.rooted
    best = parsimony_tree(four_taxa(), tree)
    assert parsimony_score(best, four_taxa()) == 3

def test_score_does_not_modify_tree():
    tree = parse_newick("((a:1,b:1):1,c:1,d:1);")
    before = to_newick(tree)
    parsimony_score(tree, four_taxa())
    assert to_newick(tree) == before

def test_parsimony_tree_improves_start():
    msa = four_taxa()
    start = parse_newick("((a,c),(b,d));")
    best = parsimony_tree(msa, start)
    assert sorted(tip_labels(best)) == ["a", "b", "c", "d"]
    assert parsimony_score(best, msa) <= parsimony_score(start, msa)

def test_parsimony_tree_default_start(small_msa):
    best = parsimony_tree(small_msa)
    assert sorted(tip_labels(best)) == small_msa.taxa()

def test_bad_tree():
    with pytest.raises(ParsimonyError):
        parsimony_score(parse_newick("((a,b),(c,e));"), four_taxa())
    with pytest.raises(ParsimonyError):
        parsimony_score(parse_newick("(a,b,c,d);"), four_taxa())
