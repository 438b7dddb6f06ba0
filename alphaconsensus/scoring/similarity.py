"""Consensus algorithms based on PEPs and peptide similarity.

Reference: Nahnsen S, Bertsch A, Rahnenfuehrer J, Nordheim A, Kohlbacher O.
Probabilistic Consensus Scoring Improves Tandem Mass Spectrometry Peptide
Identification. J Proteome Res (2011), DOI: 10.1021/pr2002879

All scores must be posterior error probabilities (PEP, lower is better). A
peptide proposed by one engine receives evidence from every other engine's
best matching hit (highest similarity, ties broken by lower PEP), so a
similar but not identical sequence still contributes.

For a hit with PEP ``p0`` and best matches ``(s_i, p_i)`` from the other
runs::

    score   = (p0 + sum(s_i * p_i)) / (1 + sum(s_i))^2
    support = sum(s_i) / n_other

Runs without hits contribute nothing. Two variants differ in the similarity
measure:

- PEPMatrix: local alignment of the unmodified sequences with a
  substitution matrix
- PEPIons: shared b/y fragment ions

Feeding scores other than PEPs is not detected at scoring time; the output
is then meaningless but the algorithms still run.
"""

import logging
from typing import Dict, List, Sequence

import numpy as np

from ..constants import (
    DEFAULT_FRAGMENT_TOLERANCE,
    DEFAULT_GAP_PENALTY,
    DEFAULT_MATRIX,
    DEFAULT_MIN_SHARED,
    PEP_SCORE_TYPE,
    PEP_SCORE_TYPE_ALIASES,
)
from ..exceptions import ConfigurationError, ScorePreconditionError
from ..fragments import fragment_spectrum, shared_peak_similarity
from ..identification.records import PeptideHit, PeptideIdentification
from ..modifications import unmodified_sequence
from .alignment import get_substitution_matrix, sequence_similarity
from .base import ConsensusAlgorithm, SequenceScore

logger = logging.getLogger(__name__)


class SimilarityAlgorithm(ConsensusAlgorithm):
    """PEP aggregation weighted by peptide similarity."""

    name = "similarity"

    def output_score_type(self, identifications):
        return PEP_SCORE_TYPE

    def output_higher_better(self, identifications):
        return False

    def check_inputs(self, identifications: Sequence[PeptideIdentification]) -> bool:
        problems = []
        score_types = sorted({
            pep_id.score_type for pep_id in identifications
            if pep_id.score_type not in PEP_SCORE_TYPE_ALIASES
        })
        if score_types:
            problems.append(
                f"Score type must be '{PEP_SCORE_TYPE}', found: {', '.join(score_types)}"
            )
        out_of_range = sum(
            1 for pep_id in identifications for hit in pep_id.hits
            if not 0.0 <= hit.score <= 1.0
        )
        if out_of_range:
            problems.append(f"{out_of_range:,} peptide hits have scores outside [0, 1]")

        for problem in problems:
            if self.strict:
                raise ScorePreconditionError(problem)
            logger.warning(
                f"{problem}. The '{self.name}' algorithm requires posterior error "
                f"probabilities; results will be meaningless otherwise."
            )
        return not problems

    def _similarity(self, hit1: PeptideHit, hit2: PeptideHit, cache: dict) -> float:
        raise NotImplementedError

    def _score(
        self,
        identifications: List[PeptideIdentification],
        number_of_runs: int,
    ) -> Dict[str, SequenceScore]:
        n_other_ids = self._n_other_ids(identifications, number_of_runs)
        cache: dict = {}
        results: Dict[str, SequenceScore] = {}

        for i, id1 in enumerate(identifications):
            for hit1 in id1.hits:
                # Each sequence is scored once, based on its first occurrence
                if hit1.sequence in results:
                    result = results[hit1.sequence]
                    result.charge = self._merge_charge(result.charge, hit1.charge, hit1.sequence)
                    continue

                best_matches = []
                for j, id2 in enumerate(identifications):
                    if i == j or not id2.hits:
                        continue
                    # Highest similarity, ties broken by better (lower) PEP
                    best_matches.append(max(
                        ((self._similarity(hit1, hit2, cache), hit2.score) for hit2 in id2.hits),
                        key=lambda match: (match[0], -match[1]),
                    ))

                score = hit1.score
                sum_sim = 1.0
                for similarity, pep in best_matches:
                    score += similarity * pep
                    sum_sim += similarity
                score /= sum_sim * sum_sim

                results[hit1.sequence] = SequenceScore(
                    charge=hit1.charge,
                    score=score,
                    support=self._support(sum_sim - 1.0, n_other_ids),
                )

        return results


class PEPMatrixAlgorithm(SimilarityAlgorithm):
    """PEP consensus with substitution-matrix sequence similarity.

    Modifications are not taken into account for the similarity; identical
    unmodified sequences have similarity 1.

    Parameters
    ----------
    matrix : str
        Substitution matrix ('identity' or 'PAM30MS')
    penalty : int
        Alignment gap penalty (opening and extension)
    """

    name = "PEPMatrix"

    def __init__(
        self,
        matrix: str = DEFAULT_MATRIX,
        penalty: int = DEFAULT_GAP_PENALTY,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if penalty < 1:
            raise ConfigurationError(f"Gap penalty must be >= 1, got {penalty}")
        self.matrix_name = matrix
        self.matrix = get_substitution_matrix(matrix)
        self.penalty = penalty

    def _similarity(self, hit1, hit2, cache):
        seq1 = unmodified_sequence(hit1.sequence)
        seq2 = unmodified_sequence(hit2.sequence)
        if seq1 == seq2:
            return 1.0

        key = (seq1, seq2) if seq1 < seq2 else (seq2, seq1)
        if key not in cache:
            cache[key] = sequence_similarity(seq1, seq2, self.matrix, float(self.penalty))
        return cache[key]


class PEPIonsAlgorithm(SimilarityAlgorithm):
    """PEP consensus with fragment-ion similarity.

    Similarity is the fraction of shared singly charged b/y fragments
    (relative to the smaller spectrum). Observed fragment evidence on a hit
    (`fragment_mz`) is used instead of the theoretical spectrum when present.

    Parameters
    ----------
    mass_tolerance : float
        Maximum fragment m/z difference (Da) for fragments to be shared
    min_shared : int
        Minimum number of shared fragments for a non-zero similarity
    """

    name = "PEPIons"

    def __init__(
        self,
        mass_tolerance: float = DEFAULT_FRAGMENT_TOLERANCE,
        min_shared: int = DEFAULT_MIN_SHARED,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if mass_tolerance < 0:
            raise ConfigurationError(f"mass_tolerance must be >= 0, got {mass_tolerance}")
        if min_shared < 1:
            raise ConfigurationError(f"min_shared must be >= 1, got {min_shared}")
        self.mass_tolerance = mass_tolerance
        self.min_shared = min_shared

    def _spectrum(self, hit: PeptideHit, cache: dict) -> np.ndarray:
        if hit.fragment_mz is not None:
            return np.sort(np.asarray(hit.fragment_mz, dtype=np.float64))
        if hit.sequence not in cache:
            cache[hit.sequence] = fragment_spectrum(hit.sequence)
        return cache[hit.sequence]

    def _similarity(self, hit1, hit2, cache):
        if hit1.sequence == hit2.sequence:
            return 1.0
        return shared_peak_similarity(
            self._spectrum(hit1, cache),
            self._spectrum(hit2, cache),
            self.mass_tolerance,
            self.min_shared,
        )
