"""Identification records: runs, peptide identifications, hits and groups.

Plain data holders. Scoring and matching never modify them in place; they
return new records built with the copy helpers defined here.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import UnknownRunError


@dataclass
class IdentificationRun:
    """One search-engine execution."""

    identifier: str
    search_engine: str = ""
    search_engine_version: str = ""
    date_time: Optional[datetime] = None


@dataclass
class PeptideHit:
    """One candidate peptide sequence for a spectrum."""

    sequence: str
    score: float
    rank: int = 0    # 0 = not assigned
    charge: int = 0  # 0 = unknown

    # Observed/annotated fragment m/z (sorted), used for fragment-ion similarity
    fragment_mz: Optional[np.ndarray] = field(default=None, compare=False)

    meta: Dict[str, object] = field(default_factory=dict)

    def copy(self) -> 'PeptideHit':
        return replace(self, meta=dict(self.meta))


@dataclass
class PeptideIdentification:
    """The hits one identification run reported for one spectrum."""

    run_identifier: str
    rt: Optional[float] = None
    mz: Optional[float] = None
    hits: List[PeptideHit] = field(default_factory=list)
    score_type: str = ""
    higher_score_better: bool = True
    spectrum_reference: Optional[str] = None
    meta: Dict[str, object] = field(default_factory=dict)

    def has_rt(self) -> bool:
        return _is_set(self.rt)

    def has_mz(self) -> bool:
        return _is_set(self.mz)

    def sorted_hits(self) -> List[PeptideHit]:
        """Hits ordered best first (stable for equal scores)."""
        return sorted(
            self.hits,
            key=lambda hit: -hit.score if self.higher_score_better else hit.score,
        )

    def copy(self) -> 'PeptideIdentification':
        return replace(
            self,
            hits=[hit.copy() for hit in self.hits],
            meta=dict(self.meta),
        )


@dataclass
class Feature:
    """Identifications already attached to one feature or consensus feature."""

    rt: float
    mz: float
    identifications: List[PeptideIdentification] = field(default_factory=list)
    identifier: Optional[str] = None

    def copy(self) -> 'Feature':
        return replace(
            self,
            identifications=[pep_id.copy() for pep_id in self.identifications],
        )


@dataclass(frozen=True)
class PositionedRecord:
    """A peptide identification placed at (run index, RT, m/z) for matching.

    The identification is referenced, not copied.
    """

    run_index: int
    rt: Optional[float]
    mz: Optional[float]
    identification: PeptideIdentification

    @classmethod
    def from_identification(
        cls,
        identification: PeptideIdentification,
        run_index: int,
    ) -> 'PositionedRecord':
        return cls(
            run_index=run_index,
            rt=identification.rt,
            mz=identification.mz,
            identification=identification,
        )

    def has_position(self) -> bool:
        return _is_set(self.rt) and _is_set(self.mz)


@dataclass(frozen=True)
class Group:
    """Records from different runs believed to stem from the same spectrum."""

    records: Tuple[PositionedRecord, ...]
    rt: float
    mz: float
    quality: float = 0.0

    @property
    def size(self) -> int:
        return len(self.records)

    def identifications(self) -> List[PeptideIdentification]:
        return [record.identification for record in self.records]

    def run_indices(self) -> List[int]:
        return [record.run_index for record in self.records]


@dataclass
class ConsensusResult:
    """Consensus run and its identifications (flat identification list shape)."""

    run: IdentificationRun
    identifications: List[PeptideIdentification] = field(default_factory=list)


@dataclass
class FeatureConsensusResult:
    """Consensus run and features carrying consensus identifications."""

    run: IdentificationRun
    features: List[Feature] = field(default_factory=list)


def _is_set(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def run_index_mapping(runs: Sequence[IdentificationRun]) -> Dict[str, int]:
    """Map run identifiers to their position in `runs`."""
    return {run.identifier: i for i, run in enumerate(runs)}


def project_identifications(
    runs: Sequence[IdentificationRun],
    identifications: Sequence[PeptideIdentification],
) -> List[List[PositionedRecord]]:
    """Sort identifications into one PositionedRecord list per run.

    Parameters
    ----------
    runs : sequence of IdentificationRun
        Identification runs, defining the run indices
    identifications : sequence of PeptideIdentification
        Identifications of all runs

    Returns
    -------
    List[List[PositionedRecord]]
        One list per run, in input order

    Raises
    ------
    UnknownRunError
        If an identification references a run that is not in `runs`
    """
    mapping = run_index_mapping(runs)
    record_sets: List[List[PositionedRecord]] = [[] for _ in runs]

    for pep_id in identifications:
        run_index = mapping.get(pep_id.run_identifier)
        if run_index is None:
            raise UnknownRunError(pep_id.run_identifier)
        record_sets[run_index].append(
            PositionedRecord.from_identification(pep_id, run_index)
        )

    return record_sets
