#!/usr/bin/env python
"""Command line interface: consensus identification of a TSV identification table.

Examples
--------
$ alphaconsensus -in merged_ids.tsv -out consensus.tsv --algorithm PEPMatrix
$ alphaconsensus -in merged_ids.tsv -out consensus.tsv --algorithm ranks --considered-hits 5

A table with a ``feature_id`` column is processed feature by feature
(no correspondence matching).
"""

import argparse
import logging
import sys
from enum import IntEnum
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import ConsensusParams, PEPIonsParams, PEPMatrixParams
from .constants import (
    ALGORITHMS,
    DEFAULT_ALGORITHM,
    DEFAULT_CONSIDERED_HITS,
    DEFAULT_FRAGMENT_TOLERANCE,
    DEFAULT_GAP_PENALTY,
    DEFAULT_MATRIX,
    DEFAULT_MIN_SHARED,
    DEFAULT_MZ_DELTA,
    DEFAULT_RT_DELTA,
    MATRICES,
)
from .exceptions import ConfigurationError, InputDataError, ScorePreconditionError
from .io import read_identifications, write_consensus, write_feature_consensus
from .orchestrator import ConsensusID

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    EXECUTION_OK = 0
    UNKNOWN_ERROR = 1
    ILLEGAL_PARAMETERS = 2
    INPUT_FILE_NOT_FOUND = 3
    INCOMPATIBLE_INPUT_DATA = 4
    CANNOT_WRITE_OUTPUT_FILE = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alphaconsensus",
        description="Computes a consensus of peptide identifications of several identification engines.",
    )
    parser.add_argument("-in", dest="input", required=True, help="Input identification table (TSV)")
    parser.add_argument("-out", dest="output", required=True, help="Output consensus table (TSV)")
    parser.add_argument(
        "--rt-delta", type=float, default=DEFAULT_RT_DELTA,
        help="Maximum allowed precursor RT deviation between identifications "
             "belonging to the same spectrum",
    )
    parser.add_argument(
        "--mz-delta", type=float, default=DEFAULT_MZ_DELTA,
        help="Maximum allowed precursor m/z deviation (Da) between identifications "
             "belonging to the same spectrum",
    )
    parser.add_argument(
        "--considered-hits", type=int, default=DEFAULT_CONSIDERED_HITS,
        help="Number of top hits used for consensus scoring (0 for all hits)",
    )
    parser.add_argument(
        "--algorithm", choices=ALGORITHMS, default=DEFAULT_ALGORITHM,
        help="Algorithm used for consensus scoring. PEPMatrix/PEPIons require "
             "posterior error probabilities, best/average require the same score "
             "type for all engines, ranks works with any score types",
    )
    parser.add_argument(
        "--min-support", type=float, default=0.0,
        help="Minimum fraction of other runs supporting a consensus hit",
    )
    parser.add_argument(
        "--count-empty", action="store_true",
        help="Count runs without an identification for a spectrum when computing support",
    )
    parser.add_argument(
        "--strict", action="store_true",
        help="Abort if scores do not meet the requirements of the algorithm",
    )
    parser.add_argument("--threads", type=int, default=1, help="Worker threads for scoring")

    pepmatrix = parser.add_argument_group("PEPMatrix algorithm parameters")
    pepmatrix.add_argument("--matrix", choices=MATRICES, default=DEFAULT_MATRIX,
                           help="Substitution matrix for alignment-based similarity scoring")
    pepmatrix.add_argument("--penalty", type=int, default=DEFAULT_GAP_PENALTY,
                           help="Alignment gap penalty (gap opening and extension)")

    pepions = parser.add_argument_group("PEPIons algorithm parameters")
    pepions.add_argument("--mass-tolerance", type=float, default=DEFAULT_FRAGMENT_TOLERANCE,
                         help="Maximum fragment mass difference (Da) for 'shared' fragments")
    pepions.add_argument("--min-shared", type=int, default=DEFAULT_MIN_SHARED,
                         help="Minimal number of shared fragments for a non-zero similarity")

    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def params_from_args(args: argparse.Namespace) -> ConsensusParams:
    return ConsensusParams(
        rt_delta=args.rt_delta,
        mz_delta=args.mz_delta,
        considered_hits=args.considered_hits,
        algorithm=args.algorithm,
        min_support=args.min_support,
        count_empty=args.count_empty,
        strict_score_types=args.strict,
        n_threads=args.threads,
        pepmatrix=PEPMatrixParams(matrix=args.matrix, penalty=args.penalty),
        pepions=PEPIonsParams(mass_tolerance=args.mass_tolerance, min_shared=args.min_shared),
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        params = params_from_args(args)
    except ConfigurationError as e:
        logger.error(f"Invalid parameters: {e}")
        return ExitCode.ILLEGAL_PARAMETERS

    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error(f"Input file not found: {input_path}")
        return ExitCode.INPUT_FILE_NOT_FOUND

    try:
        table = read_identifications(input_path)
        consensus = ConsensusID(params)
        if table.features is not None:
            result = consensus.process_features(table.runs, table.features)
        else:
            result = consensus.process_identifications(table.runs, table.identifications)
    except (InputDataError, ScorePreconditionError) as e:
        logger.critical(f"{e} Aborting!")
        return ExitCode.INCOMPATIBLE_INPUT_DATA

    try:
        if table.features is not None:
            write_feature_consensus(args.output, result)
        else:
            write_consensus(args.output, result)
    except OSError as e:
        logger.error(f"Cannot write output file {args.output}: {e}")
        return ExitCode.CANNOT_WRITE_OUTPUT_FILE

    return ExitCode.EXECUTION_OK


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
