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
Last Stable Edit : 9/20/25
First Included in Version : 1.0.0
Approved for Release: Yes.

Loading and packaging of multiple sequence alignments. Parsing is done by
Biopython's AlignIO, with python-nexus as a fallback for nexus files that
Biopython's strict nexus parser rejects.
"""

from __future__ import annotations
from pathlib import Path
import numpy as np
from Bio import AlignIO
from Bio.Align import MultipleSeqAlignment
from Bio.Nexus.Nexus import NexusError
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord as BioSeqRecord
from nexus import NexusReader
from .Alphabet import Alphabet, DNA, AlphabetMapping, NUCLEOTIDES


_EXTENSION_FORMATS : dict[str, str] = {".fasta" : "fasta", 
                                       ".fas" : "fasta",
                                       ".fa" : "fasta", 
                                       ".fna" : "fasta",
                                       ".nex" : "nexus", 
                                       ".nexus" : "nexus",
                                       ".nxs" : "nexus",
                                       ".phy" : "phylip-relaxed",
                                       ".phylip" : "phylip-relaxed",
                                       ".aln" : "clustal"}

#########################
#### EXCEPTION CLASS ####
#########################

class MSAError(Exception):
    """
    This exception is raised when an alignment is malformed (ragged rows, 
    duplicate names, unknown file type) or a query on it is invalid.
    """
    def __init__(self, message : str = "Error with a sequence alignment"):
        self.message = message
        super().__init__(self.message)

##########################
#### HELPER FUNCTIONS ####
##########################

def guess_format(filename : str | Path) -> str:
    """
    Infer the AlignIO format name from a file extension.

    Args:
        filename (str | Path): path to an alignment file
    Returns:
        str: an AlignIO format name
    Raises:
        MSAError: if the extension is not recognized
    """
    suffix = Path(filename).suffix.lower()
    try:
        return _EXTENSION_FORMATS[suffix]
    except KeyError:
        raise MSAError(f"Cannot infer the alignment format of {filename}. "
                       "Pass 'fmt' explicitly.")

def _read_nexus_fallback(filename : str | Path) -> list[SeqRecord]:
    """
    Read the matrix block of a nexus file with python-nexus. Used when the 
    Biopython parser raises a NexusError.

    Args:
        filename (str | Path): path to a nexus file
    Returns:
        list[SeqRecord]: one record per taxon, in file order
    """
    reader = NexusReader.from_file(str(filename))
    recs = []
    for taxon, chars in reader.data:
        recs.append(SeqRecord("".join(chars), taxon))
    return recs

############################## 
#### SEQUENCE RECORD, MSA ####
##############################

class SeqRecord:
    """
    An individual sequence record, defined by a data sequence and a name.
    """
    
    def __init__(self, sequence : str, name : str) -> None:
        """
        Initialize a Sequence Record

        Args:
            sequence (str): the aligned sequence, gaps included
            name (str): taxon label
        """
        self.seq : str = str(sequence).upper()
        self.name : str = name

    def get_name(self) -> str:
        """
        Get the name of the sequence.

        Returns:
            str: sequence label
        """
        return self.name

    def get_seq(self) -> str:
        """
        Get the aligned sequence (upper case).

        Returns:
            str: the sequence
        """
        return self.seq
    
    def __len__(self) -> int:
        return len(self.seq)
    
    def __repr__(self) -> str:
        return f"SeqRecord({self.name!r}, length={len(self.seq)})"

class MSA:
    """
    Class that provides all packaging and functionality services to do with 
    Multiple Sequence Alignments. An MSA is an ordered collection of named 
    sequences of equal length. It is never modified after construction; 
    operations such as 'subset' and 'resample' return new alignments.
    """

    def __init__(self, 
                 records : list[SeqRecord],
                 alphabet : AlphabetMapping = DNA,
                 filename : str = None) -> None:
        """
        Initialize a Multiple Sequence Alignment (MSA) from sequence records.

        Args:
            records (list[SeqRecord]): the aligned sequences
            alphabet (AlphabetMapping, optional): character alphabet. 
                                                  Defaults to DNA.
            filename (str, optional): source file, if any. Defaults to None.
        Raises:
            MSAError: if the alignment is empty, ragged, or has duplicate 
                      taxon names
        """
        if len(records) == 0:
            raise MSAError("An alignment needs at least one sequence")
        
        lengths = {len(rec) for rec in records}
        if len(lengths) != 1:
            raise MSAError("Sequences are not all of equal length. Found "
                           f"lengths {sorted(lengths)}")
        
        names = [rec.get_name() for rec in records]
        if len(set(names)) != len(names):
            raise MSAError("Duplicate taxon names in alignment")
        
        self.filename : str = filename
        self.alphabet : Alphabet = Alphabet(alphabet)
        self._records : tuple[SeqRecord, ...] = tuple(records)
        
        # Validate every character against the alphabet once, up front
        for rec in self._records:
            for char in set(rec.get_seq()):
                self.alphabet.map(char)
    
    @classmethod
    def from_file(cls, filename : str | Path, fmt : str = None, 
                  alphabet : AlphabetMapping = DNA) -> MSA:
        """
        Parse an alignment file. The format is taken from the file extension 
        unless 'fmt' is given (any AlignIO format name).

        Args:
            filename (str | Path): path to the alignment file
            fmt (str, optional): AlignIO format name. Defaults to None.
            alphabet (AlphabetMapping, optional): Defaults to DNA.
        Returns:
            MSA: the parsed alignment
        """
        if fmt is None:
            fmt = guess_format(filename)
        
        try:
            aln = AlignIO.read(str(filename), fmt)
            recs = [SeqRecord(rec.seq, rec.id) for rec in aln]
        except NexusError:
            if fmt != "nexus":
                raise
            recs = _read_nexus_fallback(filename)
        
        return cls(recs, alphabet = alphabet, filename = str(filename))
    
    @classmethod
    def from_biopython(cls, aln : MultipleSeqAlignment, 
                       alphabet : AlphabetMapping = DNA) -> MSA:
        """
        Wrap a Biopython alignment.

        Args:
            aln (MultipleSeqAlignment): a Biopython alignment
        Returns:
            MSA: the same data as an MSA
        """
        return cls([SeqRecord(rec.seq, rec.id) for rec in aln], 
                   alphabet = alphabet)
    
    @classmethod
    def from_dict(cls, sequences : dict[str, str], 
                  alphabet : AlphabetMapping = DNA) -> MSA:
        """
        Build an alignment from a name -> sequence mapping.
        
        Args:
            sequences (dict[str, str]): taxon names to aligned sequences
        Returns:
            MSA: the alignment, in mapping order
        """
        return cls([SeqRecord(seq, name) for name, seq in sequences.items()],
                   alphabet = alphabet)

    def get_records(self) -> list[SeqRecord]:
        """
        Retrieve all sequences that are in this alignment.

        Returns:
            list[SeqRecord]: list of all sequence records.
        """
        return list(self._records)
    
    def taxa(self) -> list[str]:
        """
        Returns:
            list[str]: taxon names, in alignment order
        """
        return [rec.get_name() for rec in self._records]
    
    def num_taxa(self) -> int:
        """
        Returns:
            int: number of sequences
        """
        return len(self._records)
    
    def length(self) -> int:
        """
        Returns:
            int: number of aligned columns
        """
        return len(self._records[0])
    
    def seq_by_name(self, name : str) -> SeqRecord:
        """
        Retrieves the sequence that belongs to this MSA that has a given name

        Args:
            name (str): The taxa/label name of the sequence.
                        Must match exactly (same case, spacing, etc)
        Returns:
            SeqRecord: the sequence with the label 'name'
        Raises:
            MSAError: if no such sequence exists
        """
        for record in self._records:
            if record.get_name() == name:
                return record
        raise MSAError(f"No sequence named {name} in alignment")
    
    def char_matrix(self) -> np.ndarray:
        """
        The alignment as a (taxa x sites) array of single characters.

        Returns:
            np.ndarray: array of dtype '<U1'
        """
        return np.array([list(rec.get_seq()) for rec in self._records], 
                        dtype = "<U1")
    
    def site_patterns(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Compress the alignment into its unique columns. Likelihood 
        calculations only need each distinct column once, weighted by how 
        often it occurs.

        Returns:
            tuple[np.ndarray, np.ndarray]: (taxa x patterns) character array,
                                           and the integer weight of each 
                                           pattern. Weights sum to length().
        """
        matrix = self.char_matrix()
        patterns, counts = np.unique(matrix, axis = 1, return_counts = True)
        return patterns, counts
    
    def base_frequencies(self) -> np.ndarray:
        """
        Empirical frequencies of A, C, G and T over all unambiguous 
        characters in the alignment.

        Returns:
            np.ndarray: length 4 array that sums to 1
        Raises:
            MSAError: if the alignment has no unambiguous nucleotide
        """
        joined = "".join(rec.get_seq() for rec in self._records)
        joined = joined.replace("U", "T")
        counts = np.array([joined.count(base) for base in NUCLEOTIDES], 
                          dtype = np.double)
        if counts.sum() == 0:
            raise MSAError("Cannot estimate base frequencies from an "
                           "alignment without any A, C, G or T")
        return counts / counts.sum()
    
    def subset(self, names : list[str]) -> MSA:
        """
        A new alignment that contains only the named taxa, in the given order.

        Args:
            names (list[str]): taxon names
        Returns:
            MSA: the sub-alignment
        """
        return MSA([self.seq_by_name(name) for name in names], 
                   alphabet = self.alphabet.alphabet)
    
    def resample(self, rng : np.random.Generator) -> MSA:
        """
        Nonparametric bootstrap replicate: sample columns with replacement.

        Args:
            rng (np.random.Generator): the result of a 
                                       np.random.default_rng(seed) call
        Returns:
            MSA: an alignment of the same dimensions
        """
        matrix = self.char_matrix()
        cols = rng.integers(0, self.length(), size = self.length())
        resampled = matrix[:, cols]
        recs = [SeqRecord("".join(row), name) 
                for row, name in zip(resampled, self.taxa())]
        return MSA(recs, alphabet = self.alphabet.alphabet)
    
    def to_biopython(self) -> MultipleSeqAlignment:
        """
        A fresh Biopython alignment with the same data. A new object is 
        returned on every call since some Biopython routines sort the 
        alignment in place.

        Returns:
            MultipleSeqAlignment: the alignment
        """
        return MultipleSeqAlignment(
            [BioSeqRecord(Seq(rec.get_seq()), id = rec.get_name(), 
                          name = rec.get_name(), description = "")
             for rec in self._records])
    
    def __len__(self) -> int:
        return self.num_taxa()
    
    def __repr__(self) -> str:
        return f"MSA({self.num_taxa()} taxa x {self.length()} sites)"
