"""Pytest configuration for AlphaConsensus tests.

Common fixtures: identification runs, a factory for peptide identifications
and a fixed clock for reproducible provenance.
"""

from datetime import datetime

import numpy as np
import pytest

from alphaconsensus.constants import PEP_SCORE_TYPE
from alphaconsensus.identification import (
    IdentificationRun,
    PeptideHit,
    PeptideIdentification,
)


@pytest.fixture
def simple_peptide():
    """Simple peptide for basic tests."""
    return "PEPTIDE"


@pytest.fixture
def tryptic_peptides():
    """Collection of typical tryptic peptides."""
    return [
        "PEPTIDE",
        "ACDEK",
        "TESTPEPTIDER",
        "YGGFMTSEK",
        "LGEHNIDVLEGNEQFINAAK",
    ]


@pytest.fixture
def two_runs():
    """Two identification runs of different engines."""
    return [
        IdentificationRun("run_A", search_engine="EngineA", search_engine_version="1.0"),
        IdentificationRun("run_B", search_engine="EngineB", search_engine_version="2.1"),
    ]


@pytest.fixture
def three_runs():
    """Three identification runs of different engines."""
    return [
        IdentificationRun("run_A", search_engine="EngineA"),
        IdentificationRun("run_B", search_engine="EngineB"),
        IdentificationRun("run_C", search_engine="EngineC"),
    ]


@pytest.fixture
def make_id():
    """Factory for peptide identifications.

    ``make_id("run_A", 100.0, 500.0, [("PEPTIDE", 0.8)])`` creates an
    identification with one hit per (sequence, score) or
    (sequence, score, charge) tuple.
    """
    def _make_id(run_identifier, rt, mz, hits, score_type="score", higher_score_better=True):
        peptide_hits = []
        for hit in hits:
            sequence, score = hit[0], hit[1]
            charge = hit[2] if len(hit) > 2 else 0
            peptide_hits.append(PeptideHit(sequence=sequence, score=score, charge=charge))
        return PeptideIdentification(
            run_identifier=run_identifier,
            rt=rt,
            mz=mz,
            hits=peptide_hits,
            score_type=score_type,
            higher_score_better=higher_score_better,
        )
    return _make_id


@pytest.fixture
def make_pep_id(make_id):
    """Factory for identifications scored with posterior error probabilities."""
    def _make_pep_id(run_identifier, rt, mz, hits):
        return make_id(
            run_identifier, rt, mz, hits,
            score_type=PEP_SCORE_TYPE, higher_score_better=False,
        )
    return _make_pep_id


@pytest.fixture
def fixed_clock():
    """Clock always returning the same time."""
    moment = datetime(2024, 3, 1, 12, 30, 0)
    return lambda: moment


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
