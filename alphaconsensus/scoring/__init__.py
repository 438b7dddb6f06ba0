"""Consensus scoring algorithms.

Each algorithm turns the peptide identifications of one group (the same
spectrum identified by several runs) into one ranked list of consensus hits:

- PEPMatrix: PEPs weighted by substitution-matrix sequence similarity
- PEPIons: PEPs weighted by shared fragment ions
- best: best score of any engine
- average: mean score of the engines that reported a sequence
- ranks: rank-based score in (0, 1], independent of score types

Examples
--------
>>> from alphaconsensus.scoring import AverageAlgorithm
>>> algorithm = AverageAlgorithm(considered_hits=10)
>>> hits = algorithm.apply(identifications, number_of_runs=2)
"""

from .base import ConsensusAlgorithm, SequenceScore
from .identity import (
    AverageAlgorithm,
    BestAlgorithm,
    IdentityAlgorithm,
    RanksAlgorithm,
)
from .similarity import (
    PEPIonsAlgorithm,
    PEPMatrixAlgorithm,
    SimilarityAlgorithm,
)
from .alignment import (
    get_substitution_matrix,
    local_alignment_score,
    sequence_similarity,
)

ALGORITHM_CLASSES = {
    "PEPMatrix": PEPMatrixAlgorithm,
    "PEPIons": PEPIonsAlgorithm,
    "best": BestAlgorithm,
    "average": AverageAlgorithm,
    "ranks": RanksAlgorithm,
}

__all__ = [
    'ALGORITHM_CLASSES',
    'AverageAlgorithm',
    'BestAlgorithm',
    'ConsensusAlgorithm',
    'IdentityAlgorithm',
    'PEPIonsAlgorithm',
    'PEPMatrixAlgorithm',
    'RanksAlgorithm',
    'SequenceScore',
    'SimilarityAlgorithm',
    'get_substitution_matrix',
    'local_alignment_score',
    'sequence_similarity',
]
