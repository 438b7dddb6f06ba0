"""Common machinery of all consensus scoring algorithms.

An algorithm receives the peptide identifications of one group (one per run
that identified the spectrum) and returns a single ranked list of consensus
peptide hits. Preparation shared by all algorithms:

1. Sort the hits of each identification best first
2. Keep the top `considered_hits` hits (0 = all)
3. Drop repeated sequences within an identification (keep the best)

Subclasses turn the prepared identifications into one score and one support
value per peptide sequence; the base class filters by support, sorts and
assigns ranks.

Support is the fraction of the *other* runs that back a consensus hit. With
`count_empty`, runs that did not identify the spectrum at all are counted too
(based on `number_of_runs`).
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from ..constants import DEFAULT_CONSIDERED_HITS, SUPPORT_META_KEY
from ..exceptions import ConfigurationError
from ..identification.records import PeptideHit, PeptideIdentification

logger = logging.getLogger(__name__)


@dataclass
class SequenceScore:
    """Consensus score, support and charge of one peptide sequence."""

    charge: int
    score: float
    support: float = 1.0


class ConsensusAlgorithm:
    """Base class of the consensus scoring algorithms.

    Parameters
    ----------
    considered_hits : int
        Number of top hits per identification used for scoring (0 = all)
    min_support : float
        Consensus hits with a support below this value are dropped
    count_empty : bool
        Count runs without an identification for the spectrum when
        computing support
    strict : bool
        Raise ScorePreconditionError from `check_inputs` instead of warning
    """

    name = "base"

    def __init__(
        self,
        considered_hits: int = DEFAULT_CONSIDERED_HITS,
        min_support: float = 0.0,
        count_empty: bool = False,
        strict: bool = False,
    ):
        if considered_hits < 0:
            raise ConfigurationError(f"considered_hits must be >= 0, got {considered_hits}")
        if not 0.0 <= min_support <= 1.0:
            raise ConfigurationError(f"min_support must be in [0, 1], got {min_support}")
        self.considered_hits = considered_hits
        self.min_support = min_support
        self.count_empty = count_empty
        self.strict = strict

    def __repr__(self):
        return (
            f"{type(self).__name__}(considered_hits={self.considered_hits}, "
            f"min_support={self.min_support}, count_empty={self.count_empty})"
        )

    # -------------------------------------------------------------------------
    # Public interface
    # -------------------------------------------------------------------------

    def apply(
        self,
        identifications: Sequence[PeptideIdentification],
        number_of_runs: int = 0,
    ) -> List[PeptideHit]:
        """Compute the ranked consensus hits of one group.

        Parameters
        ----------
        identifications : sequence of PeptideIdentification
            Identifications of the same spectrum from different runs
        number_of_runs : int
            Number of runs that could have contributed (0 = number of
            identifications)

        Returns
        -------
        List[PeptideHit]
            New hits, best first, ranks 1..n. Empty if nothing remains.
        """
        if not identifications:
            return []

        n_runs = number_of_runs if number_of_runs > 0 else len(identifications)
        prepared = [self._prepare(pep_id) for pep_id in identifications]

        results = self._score(prepared, n_runs)

        hits = []
        for sequence, result in results.items():
            if result.support < self.min_support:
                continue
            hits.append(PeptideHit(
                sequence=sequence,
                score=result.score,
                charge=result.charge,
                meta={SUPPORT_META_KEY: result.support},
            ))

        higher_better = self.output_higher_better(prepared)
        hits.sort(key=lambda hit: -hit.score if higher_better else hit.score)
        for rank, hit in enumerate(hits, start=1):
            hit.rank = rank

        return hits

    def consensus_identification(
        self,
        identifications: Sequence[PeptideIdentification],
        number_of_runs: int = 0,
        rt: Optional[float] = None,
        mz: Optional[float] = None,
        run_identifier: str = "",
    ) -> Optional[PeptideIdentification]:
        """Consensus hits wrapped into a new PeptideIdentification.

        Returns None if no consensus hit remains.
        """
        hits = self.apply(identifications, number_of_runs)
        if not hits:
            return None

        return PeptideIdentification(
            run_identifier=run_identifier,
            rt=rt,
            mz=mz,
            hits=hits,
            score_type=self.output_score_type(identifications),
            higher_score_better=self.output_higher_better(identifications),
            spectrum_reference=identifications[0].spectrum_reference,
        )

    def output_score_type(self, identifications: Sequence[PeptideIdentification]) -> str:
        """Score type of the consensus hits."""
        return identifications[0].score_type

    def output_higher_better(self, identifications: Sequence[PeptideIdentification]) -> bool:
        """Score orientation of the consensus hits."""
        return identifications[0].higher_score_better

    def check_inputs(self, identifications: Sequence[PeptideIdentification]) -> bool:
        """Check score preconditions of this algorithm on all input identifications.

        Logs a warning for each violated precondition (raises
        ScorePreconditionError instead if `strict`). Returns True if all
        preconditions hold.
        """
        return True

    # -------------------------------------------------------------------------
    # Helpers for subclasses
    # -------------------------------------------------------------------------

    def _score(
        self,
        identifications: List[PeptideIdentification],
        number_of_runs: int,
    ) -> Dict[str, SequenceScore]:
        """Score every distinct sequence (insertion order = first seen)."""
        raise NotImplementedError

    def _prepare(self, pep_id: PeptideIdentification) -> PeptideIdentification:
        hits = pep_id.sorted_hits()
        if self.considered_hits > 0:
            hits = hits[:self.considered_hits]

        unique_hits = []
        seen = set()
        for hit in hits:
            if hit.sequence in seen:
                continue
            seen.add(hit.sequence)
            unique_hits.append(hit)

        return replace(pep_id, hits=unique_hits)

    def _n_other_ids(self, identifications: Sequence[PeptideIdentification], number_of_runs: int) -> int:
        return (number_of_runs if self.count_empty else len(identifications)) - 1

    @staticmethod
    def _support(n_supporting: float, n_other_ids: int) -> float:
        # With a single contributing run there is nobody else to agree
        if n_other_ids <= 0:
            return 1.0
        return n_supporting / n_other_ids

    @staticmethod
    def _merge_charge(recorded_charge: int, new_charge: int, sequence: str) -> int:
        """Reconcile the charge states reported for the same peptide."""
        if recorded_charge == 0:
            return new_charge
        if new_charge != 0 and new_charge != recorded_charge:
            logger.warning(
                f"Conflicting charge states found for peptide '{sequence}': "
                f"{recorded_charge}, {new_charge} (keeping {recorded_charge})"
            )
        return recorded_charge
