"""Unit tests for the modifications module.

Covers inline modification parsing and modified b/y fragment generation.
"""

import logging

import numpy as np
import pytest

from alphaconsensus.constants import (
    H2O_MASS,
    PROTON_MASS,
    AA_MASSES_DICT,
    CARBAMIDOMETHYL_MASS,
    OXIDATION_MASS,
    ACETYL_MASS,
)
from alphaconsensus.modifications import (
    clean_sequence,
    generate_modified_by_ions,
    modification_mass,
    parse_modified_sequence,
    prepare_modifications_for_numba,
    unmodified_sequence,
)
from alphaconsensus.fragments.generator import encode_peptide_to_ord


class TestParseModifiedSequence:
    """Test inline modification parsing."""

    def test_unmodified(self):
        assert parse_modified_sequence("PEPTIDE") == ("PEPTIDE", [])

    def test_square_brackets(self):
        """Test modification in square brackets."""
        assert parse_modified_sequence("PEPTM[Oxidation]IDE") == ("PEPTMIDE", [("Oxidation", 4)])

    def test_round_brackets(self):
        """Test modification in round brackets."""
        assert parse_modified_sequence("PEPTM(Oxidation)IDE") == ("PEPTMIDE", [("Oxidation", 4)])

    def test_n_terminal_modification(self):
        """N-terminal modifications are attached to the first residue."""
        result = parse_modified_sequence("[Acetyl]-PEPC[Carbamidomethyl]TIDE")
        assert result == ("PEPCTIDE", [("Acetyl", 0), ("Carbamidomethyl", 3)])

        result = parse_modified_sequence(".(Acetyl)PEPTIDE")
        assert result == ("PEPTIDE", [("Acetyl", 0)])

    def test_numeric_modification(self):
        """Test mass-shift annotation."""
        assert parse_modified_sequence("PEPS[+79.966]IDE") == ("PEPSIDE", [("+79.966", 3)])

    def test_lowercase_residues(self):
        """Residues are reported uppercase."""
        assert parse_modified_sequence("peptide")[0] == "PEPTIDE"

    def test_unbalanced_bracket(self):
        with pytest.raises(ValueError):
            parse_modified_sequence("PEPTM[Oxidation")

    def test_unmodified_sequence(self):
        assert unmodified_sequence("C[Carbamidomethyl]PEPTM(Oxidation)IDE") == "CPEPTMIDE"


class TestCleanSequence:
    """Test replacement of non-standard amino acids."""

    def test_standard_unchanged(self):
        assert clean_sequence("PEPTIDE") == "PEPTIDE"

    def test_non_standard(self):
        assert clean_sequence("XZBJUO") == "LQNLCM"


class TestModificationMass:
    """Test modification mass lookup."""

    def test_known_modifications(self):
        assert modification_mass("Oxidation") == OXIDATION_MASS
        assert modification_mass("Carbamidomethyl") == CARBAMIDOMETHYL_MASS
        assert modification_mass("Acetyl") == ACETYL_MASS

    def test_numeric_modification(self):
        assert modification_mass("+79.966") == pytest.approx(79.966)
        assert modification_mass("-17.026") == pytest.approx(-17.026)

    def test_unknown_modification(self, caplog):
        """Unknown modifications have no mass shift and are logged."""
        with caplog.at_level(logging.WARNING):
            assert modification_mass("NotAModification") == 0.0
        assert "NotAModification" in caplog.text


class TestPrepareModificationsForNumba:
    """Test modification preparation for Numba."""

    def test_empty_modifications(self):
        """Test preparing empty modification list."""
        result = prepare_modifications_for_numba([])
        assert result.shape == (0, 2)
        assert result.dtype == np.float64

    def test_multiple_modifications(self):
        """Test preparing multiple modifications."""
        result = prepare_modifications_for_numba([("Carbamidomethyl", 0), ("Oxidation", 5)])

        assert result.shape == (2, 2)
        assert result[0, 0] == 0
        assert result[0, 1] == CARBAMIDOMETHYL_MASS
        assert result[1, 0] == 5
        assert result[1, 1] == OXIDATION_MASS


class TestModifiedFragmentGeneration:
    """Test modified fragment generation with ord-based encoding."""

    def test_unmodified_fragments(self):
        """Test fragment generation without modifications."""
        peptide_ord = encode_peptide_to_ord("PEPTIDE")
        modifications = np.zeros((0, 2), dtype=np.float64)

        mz, types, positions, charges = generate_modified_by_ions(
            peptide_ord, modifications, (0, 1), (1,)
        )

        # 6 b-ions and 6 y-ions
        assert len(mz) == 12
        assert np.sum(types == 0) == 6
        assert np.sum(types == 1) == 6

        # b1 = P + H+
        b1_idx = np.where((types == 0) & (positions == 1))[0]
        assert len(b1_idx) == 1
        assert abs(mz[b1_idx[0]] - (AA_MASSES_DICT["P"] + PROTON_MASS)) < 0.001

    def test_modified_b_and_y_ions(self):
        """Fragments containing the modified residue are shifted."""
        peptide_ord = encode_peptide_to_ord("PEPTCIDE")
        modifications = prepare_modifications_for_numba([("Carbamidomethyl", 4)])

        mz, types, positions, charges = generate_modified_by_ions(
            peptide_ord, modifications, (0, 1), (1,)
        )

        b4 = mz[(types == 0) & (positions == 4)][0]
        b5 = mz[(types == 0) & (positions == 5)][0]
        assert abs(b4 - (sum(AA_MASSES_DICT[aa] for aa in "PEPT") + PROTON_MASS)) < 0.001
        assert abs(
            b5 - (sum(AA_MASSES_DICT[aa] for aa in "PEPTC") + CARBAMIDOMETHYL_MASS + PROTON_MASS)
        ) < 0.001

        y3 = mz[(types == 1) & (positions == 3)][0]
        y4 = mz[(types == 1) & (positions == 4)][0]
        assert abs(y3 - (sum(AA_MASSES_DICT[aa] for aa in "IDE") + H2O_MASS + PROTON_MASS)) < 0.001
        assert abs(
            y4 - (sum(AA_MASSES_DICT[aa] for aa in "CIDE")
                  + CARBAMIDOMETHYL_MASS + H2O_MASS + PROTON_MASS)
        ) < 0.001

    def test_charge_not_above_position(self):
        """Fragments with charge > position are skipped."""
        peptide_ord = encode_peptide_to_ord("PEPTIDE")
        modifications = np.zeros((0, 2), dtype=np.float64)

        mz, types, positions, charges = generate_modified_by_ions(
            peptide_ord, modifications, (0, 1), (1, 2)
        )

        assert np.any(charges == 2)
        assert np.all(charges <= positions)

    def test_empty_peptide(self):
        peptide_ord = encode_peptide_to_ord("")
        modifications = np.zeros((0, 2), dtype=np.float64)
        mz, _, _, _ = generate_modified_by_ions(peptide_ord, modifications, (0, 1), (1,))
        assert len(mz) == 0
