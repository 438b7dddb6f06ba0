"""Identification record model."""

from .records import (
    ConsensusResult,
    Feature,
    FeatureConsensusResult,
    Group,
    IdentificationRun,
    PeptideHit,
    PeptideIdentification,
    PositionedRecord,
    project_identifications,
    run_index_mapping,
)

__all__ = [
    'ConsensusResult',
    'Feature',
    'FeatureConsensusResult',
    'Group',
    'IdentificationRun',
    'PeptideHit',
    'PeptideIdentification',
    'PositionedRecord',
    'project_identifications',
    'run_index_mapping',
]
