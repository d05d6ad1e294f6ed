"""
Use pytest to test the nucleotide encoding in Alphabet.py.
"""

from dataclasses import FrozenInstanceError
import numpy as np
import pytest
from PhyNetLab.Alphabet import DNA, Alphabet, AlphabetError, AlphabetMapping

################
#### TESTS #####
################

def test_immutability():
    with pytest.raises(FrozenInstanceError):
        DNA.name = "DNA2"

def test_map_is_case_insensitive():
    alphabet = Alphabet()
    assert alphabet.map("A") == alphabet.map("a") == 1
    assert alphabet.map("T") == alphabet.map("U") == 8
    assert alphabet.map("R") == alphabet.map("A") | alphabet.map("G")
    assert alphabet.map("?") == alphabet.map("N") == 15
    assert alphabet.map("-") == 0

def test_state_index():
    alphabet = Alphabet()
    assert [alphabet.state_index(c) for c in "ACGTu"] == [0, 1, 2, 3, 3]
    assert [alphabet.state_index(c) for c in "-NRy"] == [-1, -1, -1, -1]

def test_partials():
    alphabet = Alphabet()
    assert np.array_equal(alphabet.partials("c"), [0, 1, 0, 0])
    assert np.array_equal(alphabet.partials("Y"), [0, 1, 0, 1])
    assert np.array_equal(alphabet.partials("-"), [1, 1, 1, 1])
    assert np.array_equal(alphabet.partials("N"), [1, 1, 1, 1])

def test_user_alphabet():
    alphabet = Alphabet(AlphabetMapping("ACGT", {"A" : 1, "C" : 2, "G" : 4, 
                                                 "T" : 8}))
    assert alphabet.state_index("g") == 2
    with pytest.raises(AlphabetError):
        alphabet.map("N")

def test_bogus_map_input():
    with pytest.raises(AlphabetError):
        Alphabet().map("Z")
