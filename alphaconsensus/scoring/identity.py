"""Consensus algorithms that only combine identical peptide sequences.

- best: best score of any engine
- average: mean score of the engines that reported the sequence
- ranks: score from the ranks of the sequence in the engines' hit lists

`best` and `average` require all engines to report the same score type with
the same orientation. This is the caller's responsibility; `check_inputs`
only reports violations.

Tie rules
---------
Sequences are scored in first-seen order (identifications in input order,
hits best first). Sorting of the consensus hits is stable, so sequences with
equal consensus scores keep that order and receive consecutive ranks.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Sequence

import numpy as np

from ..constants import RANKS_SCORE_TYPE
from ..exceptions import ScorePreconditionError
from ..identification.records import PeptideIdentification
from .base import ConsensusAlgorithm, SequenceScore

logger = logging.getLogger(__name__)


class IdentityAlgorithm(ConsensusAlgorithm):
    """Group hits by identical sequence and aggregate their scores."""

    name = "identity"

    def check_inputs(self, identifications: Sequence[PeptideIdentification]) -> bool:
        if not identifications:
            return True

        problems = []
        orientations = {pep_id.higher_score_better for pep_id in identifications}
        if len(orientations) > 1:
            problems.append("Score orientations of peptide hits differ")
        score_types = sorted({pep_id.score_type for pep_id in identifications})
        if len(score_types) > 1:
            problems.append(
                f"Different score types for peptide hits found ({', '.join(score_types)})"
            )

        for problem in problems:
            if self.strict:
                raise ScorePreconditionError(problem)
            logger.warning(
                f"{problem}. If the scores are not comparable, the results of "
                f"the '{self.name}' algorithm will be meaningless."
            )
        return not problems

    def _preprocess(
        self,
        identifications: List[PeptideIdentification],
    ) -> List[PeptideIdentification]:
        return identifications

    def _aggregate(
        self,
        scores: List[float],
        identifications: List[PeptideIdentification],
        number_of_runs: int,
    ) -> float:
        raise NotImplementedError

    def _score(
        self,
        identifications: List[PeptideIdentification],
        number_of_runs: int,
    ) -> Dict[str, SequenceScore]:
        identifications = self._preprocess(identifications)

        charges: Dict[str, int] = {}
        scores: Dict[str, List[float]] = {}
        for pep_id in identifications:
            for hit in pep_id.hits:
                if hit.sequence not in scores:
                    charges[hit.sequence] = hit.charge
                    scores[hit.sequence] = [hit.score]
                else:
                    charges[hit.sequence] = self._merge_charge(
                        charges[hit.sequence], hit.charge, hit.sequence
                    )
                    scores[hit.sequence].append(hit.score)

        n_other_ids = self._n_other_ids(identifications, number_of_runs)
        results = {}
        for sequence, sequence_scores in scores.items():
            results[sequence] = SequenceScore(
                charge=charges[sequence],
                score=self._aggregate(sequence_scores, identifications, number_of_runs),
                support=self._support(len(sequence_scores) - 1.0, n_other_ids),
            )
        return results


class BestAlgorithm(IdentityAlgorithm):
    """Use the best score of any search engine as the consensus score."""

    name = "best"

    def _aggregate(self, scores, identifications, number_of_runs):
        if identifications[0].higher_score_better:
            return max(scores)
        return min(scores)


class AverageAlgorithm(IdentityAlgorithm):
    """Use the average score of all search engines as the consensus score.

    Sequences reported by fewer engines are averaged over the engines that
    reported them only.
    """

    name = "average"

    def _aggregate(self, scores, identifications, number_of_runs):
        return float(np.mean(scores))


class RanksAlgorithm(IdentityAlgorithm):
    """Consensus score from the ranks of a sequence in all runs.

    Each run gives its best hit the value 0, the second best 1, and so on up
    to N - 1 for the last considered hit, where N is `considered_hits` (or the
    largest number of hits of any run if `considered_hits` is 0). A sequence
    missing from a run receives N from that run. With R = `number_of_runs`::

        score = 1 - sum(values) / (N * R)

    The score lies in (0, 1]; 1 means rank 1 in every run. Score types of the
    runs do not need to be comparable.
    """

    name = "ranks"

    def check_inputs(self, identifications):
        return True

    def output_score_type(self, identifications):
        return RANKS_SCORE_TYPE

    def output_higher_better(self, identifications):
        return True

    def _preprocess(self, identifications):
        # Hits are already sorted best first
        ranked = []
        for pep_id in identifications:
            hits = [
                replace(hit, score=float(position))
                for position, hit in enumerate(pep_id.hits)
            ]
            ranked.append(replace(pep_id, hits=hits, higher_score_better=False))
        return ranked

    def _aggregate(self, scores, identifications, number_of_runs):
        considered_hits = self.considered_hits
        if considered_hits == 0:
            considered_hits = max(len(pep_id.hits) for pep_id in identifications)
        n_runs = max(number_of_runs, len(identifications))

        # Contributions of the runs that did not report this sequence
        total = sum(scores) + (n_runs - len(scores)) * considered_hits
        return 1.0 - total / (considered_hits * n_runs)
