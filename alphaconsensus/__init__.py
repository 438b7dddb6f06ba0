"""AlphaConsensus - consensus peptide identification from several search engines.

The same spectra are often searched with several engines. AlphaConsensus
merges their results into one ranked peptide call per spectrum:

- Correspondence matching groups identifications of the same spectrum
  across runs by precursor RT and m/z (QT clustering)
- Consensus scoring combines each group's hits (PEPMatrix, PEPIons, best,
  average or ranks)

Examples
--------
>>> from alphaconsensus import ConsensusID, ConsensusParams
>>> consensus = ConsensusID(ConsensusParams(algorithm="PEPMatrix"))
>>> result = consensus.process_identifications(runs, peptide_ids)
"""

__version__ = "0.1.0"

from alphaconsensus import identification
from alphaconsensus import matching
from alphaconsensus import scoring
from alphaconsensus import fragments
from alphaconsensus.config import ConsensusParams, PEPIonsParams, PEPMatrixParams
from alphaconsensus.orchestrator import ConsensusID, ProvenanceSource

__all__ = [
    "identification",
    "matching",
    "scoring",
    "fragments",
    "ConsensusID",
    "ConsensusParams",
    "PEPIonsParams",
    "PEPMatrixParams",
    "ProvenanceSource",
]
