"""Substitution matrices and local sequence alignment.

Used by the PEPMatrix algorithm to score the similarity of peptide sequences
that are not identical.

Matrices
--------
- identity: 1 for identical residues, 0 otherwise
- PAM30MS: PAM30 with residue pairs that tandem MS cannot tell apart scored
  as matches (I/L are isobaric, K/Q differ by 0.036 Da)

Residues are indexed through an ord()-indexed lookup array; letters outside
the 20 standard amino acids are cleaned first (B → N, Z → Q, ...) and
anything still unknown is scored as X.
"""

import numpy as np
import numba

from ..exceptions import ConfigurationError
from ..modifications import clean_sequence

MATRIX_ALPHABET = "ARNDCQEGHILKMFPSTWYVX"

# PAM30, lower triangle in MATRIX_ALPHABET order
_PAM30_LOWER = """
  6
 -7   8
 -4  -6   8
 -3 -10   2   8
 -6  -8 -11 -14  10
 -4  -2  -3  -2 -14   8
 -2  -9  -2   2 -14   1   8
 -2  -9  -3  -3  -9  -7  -4   6
 -7  -2   0  -4  -7   1  -5  -9   9
 -5  -5  -5  -7  -6  -8  -5 -11  -9   8
 -6  -8  -7 -12 -15  -5  -9 -10  -6  -1   7
 -7   0  -1  -4 -14  -3  -4  -7  -6  -6  -8   7
 -5  -4  -9 -11 -13  -4  -7  -8 -10  -1   1  -2  11
 -8  -9  -9 -15 -13 -13 -14  -9  -6  -2  -3 -14  -4   9
 -2  -4  -6  -8  -8  -3  -5  -6  -4  -8  -7  -6  -8 -10   8
  0  -3   0  -4  -3  -5  -4  -2  -6  -7  -8  -4  -5  -6  -2   6
 -1  -6  -2  -5  -8  -5  -6  -6  -7  -2  -7  -3  -4  -9  -4   0   7
-13  -2  -8 -15 -15 -13 -17 -15  -7 -14  -6 -12 -13  -4 -14  -5 -13  13
 -8 -10  -4 -11  -4 -12  -8 -14  -3  -6  -7  -9 -11   2 -13  -7  -6  -5  10
 -2  -8  -8  -8  -6  -7  -6  -5  -6   2  -2  -9  -1  -8  -6  -6  -3 -15  -7   7
 -3  -6  -3  -5  -9  -5  -5  -5  -5  -5  -6  -5  -5  -8  -5  -3  -4 -11  -7  -5  -5
"""

# ord()-indexed residue → matrix index lookup (unknown → X)
RESIDUE_INDEX = np.full(256, MATRIX_ALPHABET.index('X'), dtype=np.int64)
for _i, _aa in enumerate(MATRIX_ALPHABET):
    RESIDUE_INDEX[ord(_aa)] = _i


def _symmetric_from_lower(text: str) -> np.ndarray:
    rows = [[float(value) for value in line.split()] for line in text.strip().splitlines()]
    size = len(rows)
    matrix = np.zeros((size, size), dtype=np.float64)
    for i, row in enumerate(rows):
        for j, value in enumerate(row):
            matrix[i, j] = value
            matrix[j, i] = value
    return matrix


def _identity_matrix() -> np.ndarray:
    return np.eye(len(MATRIX_ALPHABET), dtype=np.float64)


def _pam30ms_matrix() -> np.ndarray:
    matrix = _symmetric_from_lower(_PAM30_LOWER)
    i = MATRIX_ALPHABET.index('I')
    l = MATRIX_ALPHABET.index('L')
    k = MATRIX_ALPHABET.index('K')
    q = MATRIX_ALPHABET.index('Q')

    # I and L are indistinguishable: I behaves exactly like L
    matrix[i, :] = matrix[l, :]
    matrix[:, i] = matrix[:, l]
    matrix[i, i] = matrix[l, l]

    # K/Q near-isobaric pair scored as a match
    matrix[k, q] = matrix[q, k] = min(matrix[k, k], matrix[q, q])
    return matrix


SUBSTITUTION_MATRICES = {
    "identity": _identity_matrix(),
    "PAM30MS": _pam30ms_matrix(),
}


def get_substitution_matrix(name: str) -> np.ndarray:
    """Look up a substitution matrix by name.

    Raises
    ------
    ConfigurationError
        If the matrix is unknown
    """
    try:
        return SUBSTITUTION_MATRICES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown substitution matrix '{name}' "
            f"(choose from: {', '.join(SUBSTITUTION_MATRICES)})"
        ) from None


def encode_for_alignment(sequence: str) -> np.ndarray:
    """Encode an unmodified sequence as substitution matrix indices."""
    cleaned = clean_sequence(sequence.upper())
    return RESIDUE_INDEX[np.array([ord(c) for c in cleaned], dtype=np.int64)]


@numba.jit(nopython=True, cache=True)
def local_alignment_score(
    seq1: np.ndarray,
    seq2: np.ndarray,
    matrix: np.ndarray,
    gap_penalty: float,
) -> float:
    """Smith-Waterman local alignment score with a linear gap penalty.

    Parameters
    ----------
    seq1, seq2 : np.ndarray (int64)
        Sequences encoded with encode_for_alignment()
    matrix : np.ndarray (float64)
        Substitution matrix
    gap_penalty : float
        Penalty per gap position (same for opening and extension)

    Returns
    -------
    float
        Best local alignment score (>= 0)
    """
    m = len(seq2)
    prev = np.zeros(m + 1, dtype=np.float64)
    curr = np.zeros(m + 1, dtype=np.float64)
    best = 0.0

    for i in range(1, len(seq1) + 1):
        curr[0] = 0.0
        for j in range(1, m + 1):
            score = prev[j - 1] + matrix[seq1[i - 1], seq2[j - 1]]
            score = max(score, prev[j] - gap_penalty)
            score = max(score, curr[j - 1] - gap_penalty)
            score = max(score, 0.0)
            curr[j] = score
            if score > best:
                best = score
        for j in range(m + 1):
            prev[j] = curr[j]

    return best


def sequence_similarity(
    seq1: str,
    seq2: str,
    matrix: np.ndarray,
    gap_penalty: float,
) -> float:
    """Alignment-based similarity of two unmodified sequences, in [0, 1].

    The local alignment score is normalised by the smaller of the two
    self-alignment scores. Identical sequences have similarity 1.

    Examples
    --------
    >>> sequence_similarity("PEPTIDE", "PEPTLDE", get_substitution_matrix("identity"), 5)
    0.8571428571428571
    """
    if seq1 == seq2:
        return 1.0

    enc1 = encode_for_alignment(seq1)
    enc2 = encode_for_alignment(seq2)
    score = local_alignment_score(enc1, enc2, matrix, gap_penalty)
    if score <= 0.0:
        return 0.0

    self_score = min(
        local_alignment_score(enc1, enc1, matrix, gap_penalty),
        local_alignment_score(enc2, enc2, matrix, gap_penalty),
    )
    if self_score <= 0.0:
        return 0.0

    return min(score / self_score, 1.0)
