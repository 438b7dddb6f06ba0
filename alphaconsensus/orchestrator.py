"""Consensus identification pipeline.

Two input shapes are supported:

1. A flat list of peptide identifications from several identification runs.
   Identifications of the same spectrum are found by correspondence
   matching on precursor RT and m/z, then each group is scored.
2. Identifications already attached to features (feature maps) or
   consensus features (consensus maps). No matching is needed; the
   identifications of each feature are scored as one group.

Inputs are never modified. Each invocation creates exactly one new
identification run, stamped by the injected ProvenanceSource.

Examples
--------
>>> consensus = ConsensusID(ConsensusParams(algorithm="average"))
>>> result = consensus.process_identifications(runs, peptide_ids)
>>> result.run.search_engine
'AlphaConsensus/ConsensusID'
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from . import __version__
from .config import ConsensusParams
from .constants import TOOL_NAME
from .exceptions import MissingPositionError
from .identification.records import (
    ConsensusResult,
    Feature,
    FeatureConsensusResult,
    Group,
    IdentificationRun,
    PeptideIdentification,
    project_identifications,
)
from .matching import CorrespondenceMatcher

logger = logging.getLogger(__name__)


class ProvenanceSource:
    """Tool identity and clock used to stamp the consensus identification run.

    Parameters
    ----------
    search_engine : str
        Name recorded as the search engine of the consensus run
    version : str
        Version recorded as the search engine version
    clock : callable, optional
        Returns the current time (default: datetime.now). Inject a fixed
        clock for reproducible output.
    """

    def __init__(
        self,
        search_engine: str = TOOL_NAME,
        version: str = __version__,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.search_engine = search_engine
        self.version = version
        self.clock = clock if clock is not None else datetime.now

    def create_run(self) -> IdentificationRun:
        """New identification run stamped with tool identity and current time."""
        now = self.clock()
        return IdentificationRun(
            identifier=f"{self.search_engine}_{now.strftime('%Y-%m-%dT%H:%M:%S.%f')}",
            search_engine=self.search_engine,
            search_engine_version=self.version,
            date_time=now,
        )


def validate_positions(identifications: Sequence[PeptideIdentification]):
    """Abort on the first identification without RT or m/z.

    Raises
    ------
    MissingPositionError
        Naming the identification run of the offending identification
    """
    for pep_id in identifications:
        if not pep_id.has_rt() or not pep_id.has_mz():
            raise MissingPositionError(pep_id.run_identifier)


class ConsensusID:
    """Compute consensus peptide identifications from several engines.

    Parameters
    ----------
    params : ConsensusParams, optional
        Tolerances, algorithm and algorithm settings (default parameters if
        not given)
    provenance : ProvenanceSource, optional
        Identity and clock for the output run
    """

    def __init__(
        self,
        params: Optional[ConsensusParams] = None,
        provenance: Optional[ProvenanceSource] = None,
    ):
        self.params = params if params is not None else ConsensusParams()
        self.params.validate()
        self.algorithm = self.params.create_algorithm()
        self.matcher = CorrespondenceMatcher(self.params.rt_delta, self.params.mz_delta)
        self.provenance = provenance if provenance is not None else ProvenanceSource()

    def process_identifications(
        self,
        runs: Sequence[IdentificationRun],
        identifications: Sequence[PeptideIdentification],
    ) -> ConsensusResult:
        """Consensus of a flat list of identifications from several runs.

        Parameters
        ----------
        runs : sequence of IdentificationRun
            All identification runs the identifications belong to
        identifications : sequence of PeptideIdentification
            Identifications of all runs, each with RT and m/z

        Returns
        -------
        ConsensusResult
            New identification run and one consensus identification per
            group that kept at least one hit, in group order

        Raises
        ------
        MissingPositionError
            If an identification lacks RT or m/z
        UnknownRunError
            If an identification references a run not in `runs`
        """
        validate_positions(identifications)
        record_sets = project_identifications(runs, identifications)
        groups = self.matcher.group(record_sets)

        self.algorithm.check_inputs(identifications)

        run = self.provenance.create_run()
        number_of_runs = len(runs)

        def score_group(group: Group) -> Optional[PeptideIdentification]:
            return self.algorithm.consensus_identification(
                group.identifications(),
                number_of_runs=number_of_runs,
                rt=group.rt,
                mz=group.mz,
                run_identifier=run.identifier,
            )

        consensus = [
            pep_id for pep_id in self._map(score_group, groups)
            if pep_id is not None
        ]

        logger.info(
            f"✓ Consensus ({self.algorithm.name}): {len(identifications):,} IDs "
            f"from {number_of_runs} runs → {len(consensus):,} consensus IDs"
        )
        if len(consensus) < len(groups):
            logger.info(f"  {len(groups) - len(consensus):,} groups without remaining hits dropped")

        return ConsensusResult(run=run, identifications=consensus)

    def process_features(
        self,
        runs: Sequence[IdentificationRun],
        features: Sequence[Feature],
    ) -> FeatureConsensusResult:
        """Consensus of identifications already grouped by feature.

        Parameters
        ----------
        runs : sequence of IdentificationRun
            Identification runs of the feature or consensus map
        features : sequence of Feature
            Features with their attached identifications

        Returns
        -------
        FeatureConsensusResult
            New identification run and copies of the features, each carrying
            at most one consensus identification at the feature position
        """
        all_ids = [pep_id for feature in features for pep_id in feature.identifications]
        self.algorithm.check_inputs(all_ids)

        run = self.provenance.create_run()
        number_of_runs = len(runs)

        def score_feature(feature: Feature) -> Feature:
            pep_id = self.algorithm.consensus_identification(
                feature.identifications,
                number_of_runs=number_of_runs,
                rt=feature.rt,
                mz=feature.mz,
                run_identifier=run.identifier,
            )
            return replace(feature, identifications=[pep_id] if pep_id is not None else [])

        new_features = list(self._map(score_feature, features))

        n_identified = sum(1 for feature in new_features if feature.identifications)
        logger.info(
            f"✓ Consensus ({self.algorithm.name}): {len(new_features):,} features, "
            f"{n_identified:,} with consensus IDs"
        )

        return FeatureConsensusResult(run=run, features=new_features)

    def _map(self, function, items) -> List:
        """Apply `function` to all items, in a thread pool if configured.

        Output order always follows input order.
        """
        if self.params.n_threads > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.params.n_threads) as executor:
                return list(executor.map(function, items))
        return [function(item) for item in items]
