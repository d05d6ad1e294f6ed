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
Last Edit : 9/14/25
First Included in Version : 1.0.0
Docs   - [x]
Tests  - [x]
Design - [x]
"""

from dataclasses import dataclass
import numpy as np


########################
### MODULE CONSTANTS ###
########################


@dataclass(frozen=True)
class AlphabetMapping:
    name : str
    mapping : dict[str, int]

DNA : AlphabetMapping = AlphabetMapping("DNA", 
                                        {"-" : 0, "A" : 1, "C" : 2, "M" : 3, 
                                         "G" : 4, "R" : 5, "S" : 6, "V" : 7, 
                                         "T" : 8, "U" : 8, "W" : 9, "Y" : 10, 
                                         "H" : 11, "K" : 12, "D" : 13, "B" : 14, 
                                         "N" : 15, "X" : 15, "?" : 15})

# Nucleotide order used by every state vector in the library
NUCLEOTIDES : tuple[str, ...] = ("A", "C", "G", "T")

# Index pairs (into NUCLEOTIDES) of the two transition classes
PURINES : frozenset[int] = frozenset({0, 2})
PYRIMIDINES : frozenset[int] = frozenset({1, 3})


#########################
#### EXCEPTION CLASS ####
#########################

class AlphabetError(Exception):
    """
    Error class for all errors relating to alphabet mappings.
    """
    def __init__(self, message : str = "Error during Alphabet class mapping "
                                       "operation") -> None:
        """
        Initialize an AlphabetError with a message.
        
        Args:
            message (str): error message
        Returns:
            N/A
        """
        self.message = message
        super().__init__(self.message)

########################
#### ALPHABET CLASS ####
########################

class Alphabet:
    """
    Class that deals with the mapping from characters to state values that 
    have partial likelihood values associated with them.
    This state mapping is based on Base10 -> Binary conversions such that the
    decimal numbers become a generalized version of the one-hot encoding 
    scheme.
    
    DNA MAPPING INFORMATION
     Symbol(s)	Name	   Partial Likelihood
         A	  Adenine	   [1,0,0,0] -> 1
         C	  Cytosine	   [0,1,0,0] -> 2
         G	  Guanine	   [0,0,1,0] -> 4
         T U	  Thymine  [0,0,0,1] -> 8
     Symbol(s)	Name	   Partial Likelihood
         N X ?	Any 	   A C G T ([1,1,1,1] -> 15)
         V	    Not T	   A C G ([1,1,1,0] -> 7)
         H	    Not G	   A C T ([1,1,0,1] -> 11)
         D	    Not C	   A G T ([1,0,1,1] -> 13)
         B	    Not A	   C G T ([0,1,1,1] -> 14)
         M	    Amino	   A C ([1,1,0,0] -> 3)
         R	    Purine	   A G ([1,0,1,0] -> 5)
         W	    Weak	   A T ([1,0,0,1] -> 9)
         S	    Strong	   C G ([0,1,1,0] -> 6)
         Y	    Pyrimidine C T ([0,1,0,1] -> 10)
         K	    Keto	   G T ([0,0,1,1] -> 12)
         -      Gap        treated as missing data ([1,1,1,1])
    """

    def __init__(self, mapping : AlphabetMapping = DNA) -> None:
        """
        Initialize this Alphabet object with a mapping of choice.
        
        Args:
            mapping (AlphabetMapping): DNA, or a user defined 4-bit
                                       nucleotide alphabet. Defaults to DNA.
        Returns:
            N/A
        """
        self.alphabet : AlphabetMapping = mapping

    def map(self, char : str) -> int:
        """
        Return mapping for a character encountered in a sequence file

        Raises:
            AlphabetError: if the char encountered is undefined for the data 
                           mapping.
                           
        Args:
            char (str): sequence data point
        Returns:
            int: the integer corresponding to char in the alphabet mapping
        """
        try:
            return self.alphabet.mapping[char.upper()]
        except KeyError:
            raise AlphabetError(f"Attempted to map <{char}>. That character is "
                                "invalid for this alphabet")

    def state_index(self, char : str) -> int:
        """
        Position of an unambiguous nucleotide in NUCLEOTIDES, or -1 for gaps,
        missing data and ambiguity codes.

        Args:
            char (str): sequence data point
        Returns:
            int: 0-3, or -1.
        """
        state = self.map(char)
        return {1 : 0, 2 : 1, 4 : 2, 8 : 3}.get(state, -1)

    def partials(self, char : str) -> np.ndarray:
        """
        Tip partial likelihood vector for a character, in NUCLEOTIDES order.
        A gap is treated as missing data.

        Args:
            char (str): sequence data point
        Returns:
            np.ndarray: length 4 array of zeros and ones.
        """
        state = self.map(char)
        if state == 0:
            state = 15
        return np.array([(state >> bit) & 1 for bit in range(4)], 
                        dtype = np.double)
