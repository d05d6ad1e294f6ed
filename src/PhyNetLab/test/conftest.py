import matplotlib
matplotlib.use("Agg")

from pathlib import Path
import pytest
from PhyNetLab.MSA import MSA

FILES = Path(__file__).parent / "files"


@pytest.fixture
def small_msa() -> MSA:
    return MSA.from_file(FILES / "small.fasta")

@pytest.fixture
def files_dir() -> Path:
    return FILES
