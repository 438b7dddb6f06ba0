"""Tests for the identification record model."""

import math

import numpy as np
import pytest

from alphaconsensus.exceptions import UnknownRunError
from alphaconsensus.identification import (
    Feature,
    Group,
    IdentificationRun,
    PeptideHit,
    PeptideIdentification,
    PositionedRecord,
    project_identifications,
    run_index_mapping,
)


class TestPeptideIdentification:
    """Test position checks, sorting and copying."""

    def test_missing_positions(self):
        """None and NaN both count as missing."""
        assert not PeptideIdentification("run_A").has_rt()
        assert not PeptideIdentification("run_A", rt=math.nan, mz=500.0).has_rt()
        assert not PeptideIdentification("run_A", rt=100.0, mz=np.nan).has_mz()

        pep_id = PeptideIdentification("run_A", rt=0.0, mz=0.0)
        assert pep_id.has_rt()
        assert pep_id.has_mz()

    def test_sorted_hits_higher_better(self):
        """Higher-is-better hits are sorted descending."""
        pep_id = PeptideIdentification("run_A", hits=[
            PeptideHit("AAA", 1.0),
            PeptideHit("CCC", 3.0),
            PeptideHit("DDD", 2.0),
        ])
        assert [hit.sequence for hit in pep_id.sorted_hits()] == ["CCC", "DDD", "AAA"]

    def test_sorted_hits_lower_better(self):
        """Lower-is-better hits are sorted ascending."""
        pep_id = PeptideIdentification("run_A", higher_score_better=False, hits=[
            PeptideHit("AAA", 0.5),
            PeptideHit("CCC", 0.01),
            PeptideHit("DDD", 0.2),
        ])
        assert [hit.sequence for hit in pep_id.sorted_hits()] == ["CCC", "DDD", "AAA"]

    def test_sorted_hits_stable(self):
        """Equal scores keep their input order."""
        pep_id = PeptideIdentification("run_A", hits=[
            PeptideHit("AAA", 1.0),
            PeptideHit("CCC", 1.0),
            PeptideHit("DDD", 1.0),
        ])
        assert [hit.sequence for hit in pep_id.sorted_hits()] == ["AAA", "CCC", "DDD"]

    def test_copy_is_independent(self):
        """Copies do not share hits or meta values."""
        pep_id = PeptideIdentification(
            "run_A", rt=10.0, mz=500.0,
            hits=[PeptideHit("PEPTIDE", 0.9, meta={"note": "x"})],
        )
        copied = pep_id.copy()
        copied.hits[0].meta["note"] = "y"
        copied.hits.append(PeptideHit("AAA", 0.1))

        assert pep_id.hits[0].meta["note"] == "x"
        assert len(pep_id.hits) == 1
        assert copied.rt == pep_id.rt

    def test_fragment_mz_not_compared(self):
        """Hits compare equal regardless of attached fragment arrays."""
        hit1 = PeptideHit("PEPTIDE", 0.1, fragment_mz=np.array([100.0, 200.0]))
        hit2 = PeptideHit("PEPTIDE", 0.1)
        assert hit1 == hit2


class TestFeature:
    """Test feature copies."""

    def test_copy(self):
        feature = Feature(
            rt=100.0, mz=500.0, identifier="f1",
            identifications=[PeptideIdentification("run_A", hits=[PeptideHit("AAA", 1.0)])],
        )
        copied = feature.copy()
        copied.identifications[0].hits.clear()

        assert len(feature.identifications[0].hits) == 1
        assert copied.identifier == "f1"


class TestProjection:
    """Test sorting identifications into per-run record sets."""

    def test_run_index_mapping(self, three_runs):
        assert run_index_mapping(three_runs) == {"run_A": 0, "run_B": 1, "run_C": 2}

    def test_project_identifications(self, two_runs, make_id):
        ids = [
            make_id("run_B", 10.0, 500.0, [("AAA", 1.0)]),
            make_id("run_A", 11.0, 501.0, [("CCC", 1.0)]),
            make_id("run_B", 12.0, 502.0, [("DDD", 1.0)]),
        ]
        record_sets = project_identifications(two_runs, ids)

        assert len(record_sets) == 2
        assert [record.rt for record in record_sets[0]] == [11.0]
        assert [record.rt for record in record_sets[1]] == [10.0, 12.0]
        assert all(record.run_index == 1 for record in record_sets[1])

    def test_records_reference_identifications(self, two_runs, make_id):
        """Records point at the input identifications, no copies."""
        pep_id = make_id("run_A", 10.0, 500.0, [("AAA", 1.0)])
        record_sets = project_identifications(two_runs, [pep_id])
        assert record_sets[0][0].identification is pep_id

    def test_unknown_run(self, two_runs, make_id):
        ids = [make_id("run_X", 10.0, 500.0, [("AAA", 1.0)])]
        with pytest.raises(UnknownRunError) as excinfo:
            project_identifications(two_runs, ids)
        assert excinfo.value.run_identifier == "run_X"

    def test_empty_runs(self, two_runs):
        assert project_identifications(two_runs, []) == [[], []]


class TestPositionedRecordAndGroup:
    """Test record position checks and group accessors."""

    def test_has_position(self, make_id):
        record = PositionedRecord.from_identification(make_id("run_A", 10.0, None, []), 0)
        assert not record.has_position()

        record = PositionedRecord.from_identification(make_id("run_A", 10.0, 500.0, []), 0)
        assert record.has_position()

    def test_group_accessors(self, make_id):
        id_a = make_id("run_A", 10.0, 500.0, [("AAA", 1.0)])
        id_b = make_id("run_B", 10.02, 500.02, [("AAA", 2.0)])
        group = Group(
            records=(
                PositionedRecord.from_identification(id_a, 0),
                PositionedRecord.from_identification(id_b, 1),
            ),
            rt=10.01,
            mz=500.01,
            quality=0.9,
        )

        assert group.size == 2
        assert group.identifications() == [id_a, id_b]
        assert group.run_indices() == [0, 1]

    def test_identification_run_defaults(self):
        run = IdentificationRun("run_A")
        assert run.search_engine == ""
        assert run.date_time is None
