"""Tests for substitution matrices and local sequence alignment."""

import numpy as np
import pytest

from alphaconsensus.exceptions import ConfigurationError
from alphaconsensus.scoring.alignment import (
    MATRIX_ALPHABET,
    encode_for_alignment,
    get_substitution_matrix,
    local_alignment_score,
    sequence_similarity,
)


class TestSubstitutionMatrices:
    """Test matrix construction."""

    @pytest.mark.parametrize("name", ["identity", "PAM30MS"])
    def test_symmetric(self, name):
        matrix = get_substitution_matrix(name)
        assert matrix.shape == (len(MATRIX_ALPHABET), len(MATRIX_ALPHABET))
        assert np.array_equal(matrix, matrix.T)

    def test_identity(self):
        matrix = get_substitution_matrix("identity")
        assert np.array_equal(matrix, np.eye(len(MATRIX_ALPHABET)))

    def test_pam30ms_isobaric_pairs(self):
        """I/L and K/Q are scored like matches."""
        matrix = get_substitution_matrix("PAM30MS")
        i, l = MATRIX_ALPHABET.index("I"), MATRIX_ALPHABET.index("L")
        k, q = MATRIX_ALPHABET.index("K"), MATRIX_ALPHABET.index("Q")

        assert matrix[i, l] == matrix[l, l]
        assert matrix[i, i] == matrix[l, l]
        assert matrix[k, q] == min(matrix[k, k], matrix[q, q])

    def test_pam30ms_values(self):
        """Spot checks against PAM30."""
        matrix = get_substitution_matrix("PAM30MS")
        a = MATRIX_ALPHABET.index("A")
        w = MATRIX_ALPHABET.index("W")
        assert matrix[a, a] == 6
        assert matrix[w, w] == 13
        assert matrix[a, w] == -13

    def test_unknown_matrix(self):
        with pytest.raises(ConfigurationError):
            get_substitution_matrix("BLOSUM62")


class TestEncoding:
    def test_encode(self):
        encoded = encode_for_alignment("ARN")
        assert list(encoded) == [0, 1, 2]

    def test_non_standard(self):
        """Ambiguous residues are cleaned to standard ones."""
        assert list(encode_for_alignment("B")) == [MATRIX_ALPHABET.index("N")]
        assert list(encode_for_alignment("z")) == [MATRIX_ALPHABET.index("Q")]


class TestLocalAlignment:
    """Test Smith-Waterman scores and normalised similarity."""

    def test_self_alignment_identity(self, simple_peptide):
        matrix = get_substitution_matrix("identity")
        encoded = encode_for_alignment(simple_peptide)
        assert local_alignment_score(encoded, encoded, matrix, 5.0) == 7.0

    def test_unrelated_sequences(self):
        matrix = get_substitution_matrix("identity")
        score = local_alignment_score(
            encode_for_alignment("AAAA"), encode_for_alignment("WWWW"), matrix, 5.0
        )
        assert score == 0.0
        assert sequence_similarity("AAAA", "WWWW", matrix, 5.0) == 0.0

    def test_gap_penalty(self):
        """A gap costs the penalty; with a large penalty the best local hit is ungapped."""
        matrix = get_substitution_matrix("identity")
        seq1 = encode_for_alignment("PEPTIDEK")
        seq2 = encode_for_alignment("PEPTWIDEK")

        assert local_alignment_score(seq1, seq2, matrix, 1.0) == 7.0
        assert local_alignment_score(seq1, seq2, matrix, 10.0) == 4.0

    def test_identical_similarity(self, simple_peptide):
        matrix = get_substitution_matrix("identity")
        assert sequence_similarity(simple_peptide, simple_peptide, matrix, 5.0) == 1.0

    def test_single_substitution_identity(self):
        matrix = get_substitution_matrix("identity")
        assert sequence_similarity("PEPTIDE", "PEPTLDE", matrix, 5.0) == pytest.approx(6 / 7)

    def test_isobaric_substitution_pam30ms(self):
        """I/L and K/Q swaps are indistinguishable under PAM30MS."""
        matrix = get_substitution_matrix("PAM30MS")
        assert sequence_similarity("PEPTIDE", "PEPTLDE", matrix, 5.0) == pytest.approx(1.0)
        assert sequence_similarity("PEPTKDE", "PEPTQDE", matrix, 5.0) == pytest.approx(1.0)

    def test_symmetric_similarity(self):
        matrix = get_substitution_matrix("PAM30MS")
        forward = sequence_similarity("ELVISLIVES", "ELVISLEVES", matrix, 5.0)
        backward = sequence_similarity("ELVISLEVES", "ELVISLIVES", matrix, 5.0)
        assert forward == pytest.approx(backward)
        assert 0.0 < forward < 1.0
