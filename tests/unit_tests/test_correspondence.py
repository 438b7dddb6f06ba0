"""Tests for correspondence matching of identifications across runs."""

import pytest

from alphaconsensus.exceptions import ConfigurationError, InputDataError, MissingPositionError
from alphaconsensus.identification import PositionedRecord, project_identifications
from alphaconsensus.matching import CorrespondenceMatcher


class TestCorrespondenceMatcher:
    """Test grouping of positioned identifications."""

    def test_invalid_tolerances(self):
        with pytest.raises(ConfigurationError):
            CorrespondenceMatcher(rt_delta=-1.0)
        with pytest.raises(ConfigurationError):
            CorrespondenceMatcher(mz_delta=-0.1)

    def test_empty(self, two_runs):
        assert CorrespondenceMatcher().group([[], []]) == []

    def test_same_spectrum_two_runs(self, two_runs, make_id):
        """Identifications within tolerance form one group at the centroid."""
        id_a = make_id("run_A", 100.0, 500.0, [("PEPTIDE", 0.8)])
        id_b = make_id("run_B", 100.04, 500.02, [("PEPTIDE", 0.6)])

        groups = CorrespondenceMatcher(0.1, 0.1).group(
            project_identifications(two_runs, [id_b, id_a])
        )

        assert len(groups) == 1
        group = groups[0]
        assert group.size == 2
        # Members ordered by run
        assert group.identifications() == [id_a, id_b]
        assert group.rt == pytest.approx(100.02)
        assert group.mz == pytest.approx(500.01)
        assert 0.0 < group.quality <= 1.0

    def test_different_spectra(self, two_runs, make_id):
        """Distant identifications stay apart; groups are ordered by position."""
        ids = [
            make_id("run_A", 200.0, 600.0, [("AAA", 1.0)]),
            make_id("run_B", 100.0, 500.0, [("CCC", 1.0)]),
        ]
        groups = CorrespondenceMatcher(0.1, 0.1).group(project_identifications(two_runs, ids))

        assert [group.rt for group in groups] == [100.0, 200.0]
        assert all(group.size == 1 for group in groups)

    def test_same_run_never_merged(self, two_runs, make_id):
        """Two identifications of one run are never in the same group."""
        ids = [
            make_id("run_A", 100.0, 500.0, [("AAA", 1.0)]),
            make_id("run_A", 100.0, 500.0, [("CCC", 1.0)]),
        ]
        groups = CorrespondenceMatcher(0.1, 0.1).group(project_identifications(two_runs, ids))

        assert len(groups) == 2
        # Equal positions: input order decides
        assert groups[0].identifications()[0] is ids[0]
        assert groups[1].identifications()[0] is ids[1]

    def test_every_identification_in_one_group(self, three_runs, make_id):
        ids = []
        for i in range(20):
            for run in ("run_A", "run_B", "run_C"):
                ids.append(make_id(run, 10.0 * i, 400.0 + i, [("AAA", 1.0)]))
        ids.append(make_id("run_B", 1000.0, 900.0, [("CCC", 1.0)]))

        groups = CorrespondenceMatcher(0.1, 0.1).group(project_identifications(three_runs, ids))

        grouped = [id(pep_id) for group in groups for pep_id in group.identifications()]
        assert sorted(grouped) == sorted(id(pep_id) for pep_id in ids)
        assert len(groups) == 21
        for group in groups:
            assert len(set(group.run_indices())) == group.size

    def test_outside_tolerance(self, two_runs, make_id):
        ids = [
            make_id("run_A", 100.0, 500.0, [("AAA", 1.0)]),
            make_id("run_B", 100.5, 500.0, [("AAA", 1.0)]),
        ]
        groups = CorrespondenceMatcher(0.1, 0.1).group(project_identifications(two_runs, ids))
        assert len(groups) == 2

    def test_missing_position(self, two_runs, make_id):
        ids = [
            make_id("run_A", 100.0, 500.0, [("AAA", 1.0)]),
            make_id("run_B", None, 500.0, [("AAA", 1.0)]),
        ]
        with pytest.raises(MissingPositionError) as excinfo:
            CorrespondenceMatcher().group(project_identifications(two_runs, ids))
        assert excinfo.value.run_identifier == "run_B"

    def test_run_index_must_match_set_position(self, make_id):
        a = make_id("run_A", 100.0, 500.0, [("AAA", 1.0)])
        b = make_id("run_B", 100.0, 500.0, [("AAA", 1.0)])
        record_sets = [
            [PositionedRecord.from_identification(a, 7)],
            [PositionedRecord.from_identification(b, 9)],
        ]
        with pytest.raises(InputDataError, match="run index 7"):
            CorrespondenceMatcher().group(record_sets)

    def test_negative_run_index(self, make_id):
        a = make_id("run_A", 100.0, 500.0, [("AAA", 1.0)])
        with pytest.raises(InputDataError):
            CorrespondenceMatcher().group([[PositionedRecord.from_identification(a, -1)]])
