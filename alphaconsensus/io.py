"""Read and write peptide identifications as flat TSV tables.

One row per peptide hit. Rows sharing ``(run_id, spectrum_id)`` form one
peptide identification; identification runs are listed in order of first
appearance. A ``feature_id`` column attaches identifications to features,
the pre-grouped input shape of feature and consensus maps.

Columns
-------
Required: run_id, sequence, score
Optional: search_engine, search_engine_version, spectrum_id, rt, mz,
score_type, higher_score_better, charge, rank, feature_id, feature_rt,
feature_mz

Empty ``rt``/``mz`` cells mean the position is missing.
"""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .constants import SUPPORT_META_KEY
from .exceptions import InputDataError
from .identification.records import (
    ConsensusResult,
    Feature,
    FeatureConsensusResult,
    IdentificationRun,
    PeptideHit,
    PeptideIdentification,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("run_id", "sequence", "score")

OUTPUT_COLUMNS = [
    "run_id",
    "search_engine",
    "search_engine_version",
    "spectrum_id",
    "rt",
    "mz",
    "score_type",
    "higher_score_better",
    "sequence",
    "charge",
    "score",
    "rank",
    SUPPORT_META_KEY,
]

FEATURE_COLUMNS = ["feature_id", "feature_rt", "feature_mz"]

_TRUE_VALUES = {"1", "true", "yes", "y", "t"}


@dataclass
class IdentificationTable:
    """Contents of an identification TSV file."""

    runs: List[IdentificationRun]
    identifications: List[PeptideIdentification]

    # Only set when the table has a feature_id column
    features: Optional[List[Feature]] = None


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    return float(value)


def _optional_int(value: Optional[str]) -> int:
    if value is None or value.strip() == "":
        return 0
    return int(float(value))


def _parse_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def read_identifications(path: Union[str, Path]) -> IdentificationTable:
    """Read peptide identifications from a TSV file.

    Parameters
    ----------
    path : str or Path
        Tab-separated file, one row per peptide hit

    Returns
    -------
    IdentificationTable
        Runs, identifications and (in feature mode) features

    Raises
    ------
    InputDataError
        If required columns are missing or a value cannot be parsed
    """
    path = Path(path)
    logger.info(f"Reading identifications: {path.name}")

    runs: Dict[str, IdentificationRun] = {}
    identifications: Dict[Tuple, PeptideIdentification] = {}
    features: Dict[str, Feature] = {}

    with open(path, newline='') as f:
        reader = csv.DictReader(f, delimiter='\t')
        fieldnames = reader.fieldnames or []
        missing = [column for column in REQUIRED_COLUMNS if column not in fieldnames]
        if missing:
            raise InputDataError(f"{path.name}: missing column(s) {', '.join(missing)}")
        feature_mode = "feature_id" in fieldnames

        for line_number, row in enumerate(reader, start=2):
            try:
                run_id = row["run_id"]
                if run_id not in runs:
                    runs[run_id] = IdentificationRun(
                        identifier=run_id,
                        search_engine=row.get("search_engine") or "",
                        search_engine_version=row.get("search_engine_version") or "",
                    )

                rt = _optional_float(row.get("rt"))
                mz = _optional_float(row.get("mz"))
                spectrum_id = row.get("spectrum_id") or None
                feature_id = row.get("feature_id") if feature_mode else None

                key = (run_id, spectrum_id or (rt, mz), feature_id)
                pep_id = identifications.get(key)
                if pep_id is None:
                    pep_id = PeptideIdentification(
                        run_identifier=run_id,
                        rt=rt,
                        mz=mz,
                        score_type=row.get("score_type") or "",
                        higher_score_better=_parse_bool(row.get("higher_score_better")),
                        spectrum_reference=spectrum_id,
                    )
                    identifications[key] = pep_id

                    if feature_mode:
                        feature = features.get(feature_id)
                        if feature is None:
                            feature = Feature(
                                rt=float(row["feature_rt"]),
                                mz=float(row["feature_mz"]),
                                identifier=feature_id,
                            )
                            features[feature_id] = feature
                        feature.identifications.append(pep_id)

                pep_id.hits.append(PeptideHit(
                    sequence=row["sequence"],
                    score=float(row["score"]),
                    rank=_optional_int(row.get("rank")),
                    charge=_optional_int(row.get("charge")),
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise InputDataError(f"{path.name}, line {line_number}: {e}") from e

    logger.info(
        f"✓ Read {len(identifications):,} identifications from {len(runs)} runs"
        + (f" attached to {len(features):,} features" if feature_mode else "")
    )

    return IdentificationTable(
        runs=list(runs.values()),
        identifications=list(identifications.values()),
        features=list(features.values()) if feature_mode else None,
    )


def _format_float(value: Optional[float]) -> str:
    return "" if value is None else repr(float(value))


def _hit_rows(run: IdentificationRun, pep_id: PeptideIdentification) -> List[Dict[str, str]]:
    rows = []
    for hit in pep_id.hits:
        support = hit.meta.get(SUPPORT_META_KEY)
        rows.append({
            "run_id": run.identifier,
            "search_engine": run.search_engine,
            "search_engine_version": run.search_engine_version,
            "spectrum_id": pep_id.spectrum_reference or "",
            "rt": _format_float(pep_id.rt),
            "mz": _format_float(pep_id.mz),
            "score_type": pep_id.score_type,
            "higher_score_better": str(pep_id.higher_score_better).lower(),
            "sequence": hit.sequence,
            "charge": str(hit.charge),
            "score": _format_float(hit.score),
            "rank": str(hit.rank),
            SUPPORT_META_KEY: _format_float(support),
        })
    return rows


def write_consensus(path: Union[str, Path], result: ConsensusResult):
    """Write consensus identifications to a TSV file."""
    path = Path(path)
    with open(path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=OUTPUT_COLUMNS, delimiter='\t')
        writer.writeheader()
        for pep_id in result.identifications:
            writer.writerows(_hit_rows(result.run, pep_id))

    logger.info(f"✓ Wrote {len(result.identifications):,} consensus identifications to {path.name}")


def write_feature_consensus(path: Union[str, Path], result: FeatureConsensusResult):
    """Write features with their consensus identifications to a TSV file.

    Features without a consensus identification produce no rows.
    """
    path = Path(path)
    with open(path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=FEATURE_COLUMNS + OUTPUT_COLUMNS, delimiter='\t')
        writer.writeheader()
        for feature in result.features:
            feature_values = {
                "feature_id": feature.identifier or "",
                "feature_rt": _format_float(feature.rt),
                "feature_mz": _format_float(feature.mz),
            }
            for pep_id in feature.identifications:
                for row in _hit_rows(result.run, pep_id):
                    row.update(feature_values)
                    writer.writerow(row)

    logger.info(f"✓ Wrote {len(result.features):,} features to {path.name}")
