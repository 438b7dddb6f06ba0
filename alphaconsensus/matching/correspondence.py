"""Correspondence matching of peptide identifications across runs.

Merging peptide identifications by precursor position is a feature linking
problem: identifications from different runs play the role of features from
different maps. The matcher therefore hands the positions to the QT
clustering primitive and turns the resulting clusters into Groups.

Matching is charge-agnostic and uses absolute (Da) m/z tolerances.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..constants import DEFAULT_MZ_DELTA, DEFAULT_RT_DELTA
from ..exceptions import ConfigurationError, InputDataError, MissingPositionError
from ..identification.records import Group, PositionedRecord
from .qt_clustering import qt_cluster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorrespondenceMatcher:
    """Group identifications from different runs by RT and m/z proximity.

    Parameters
    ----------
    rt_delta : float
        Maximum RT deviation between identifications of the same spectrum
    mz_delta : float
        Maximum m/z deviation (Da) between identifications of the same spectrum
    """

    rt_delta: float = DEFAULT_RT_DELTA
    mz_delta: float = DEFAULT_MZ_DELTA

    def __post_init__(self):
        if self.rt_delta < 0 or self.mz_delta < 0:
            raise ConfigurationError(
                f"Tolerances must be non-negative (rt_delta={self.rt_delta}, "
                f"mz_delta={self.mz_delta})"
            )

    def group(self, record_sets: Sequence[Sequence[PositionedRecord]]) -> List[Group]:
        """Cluster records of all runs into groups.

        Parameters
        ----------
        record_sets : sequence of sequences of PositionedRecord
            One record set per run; the set's position is its run index

        Returns
        -------
        List[Group]
            Groups sorted by representative RT, then m/z, then first member

        Raises
        ------
        MissingPositionError
            If any record lacks RT or m/z
        InputDataError
            If a record's run index differs from the position of its set
        """
        records = []
        for run_index, record_set in enumerate(record_sets):
            for record in record_set:
                if record.run_index != run_index:
                    raise InputDataError(
                        f"Record of run '{record.identification.run_identifier}' has run "
                        f"index {record.run_index} but was passed in record set {run_index}"
                    )
                records.append(record)

        for record in records:
            if not record.has_position():
                raise MissingPositionError(record.identification.run_identifier)

        if not records:
            return []

        map_index = np.array([record.run_index for record in records], dtype=np.int64)
        rt = np.array([record.rt for record in records], dtype=np.float64)
        mz = np.array([record.mz for record in records], dtype=np.float64)

        labels, qualities = qt_cluster(
            map_index, rt, mz, self.rt_delta, self.mz_delta,
            n_maps=len(record_sets),
        )

        members: List[List[int]] = [[] for _ in range(len(qualities))]
        for i, label in enumerate(labels):
            members[label].append(i)

        groups = []
        for label, indices in enumerate(members):
            indices.sort(key=lambda i: (map_index[i], i))
            groups.append((
                min(indices),
                Group(
                    records=tuple(records[i] for i in indices),
                    rt=float(np.mean(rt[indices])),
                    mz=float(np.mean(mz[indices])),
                    quality=float(qualities[label]),
                ),
            ))

        groups.sort(key=lambda item: (item[1].rt, item[1].mz, item[0]))

        n_linked = sum(1 for _, group in groups if group.size > 1)
        logger.info(
            f"Grouped {len(records):,} identifications from {len(record_sets)} runs "
            f"into {len(groups):,} groups ({n_linked:,} linking several runs)"
        )

        return [group for _, group in groups]
