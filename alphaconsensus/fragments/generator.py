"""Theoretical fragment spectra for peptide sequences.

Generates singly charged b/y fragment ions, the fragment pattern used to
compare candidate peptides by fragment-ion overlap.

Key optimizations:
1. Numba JIT compilation for the fragment loop
2. ord() encoding for string-to-array conversion (no string operations in Numba)
3. Pre-allocated arrays (no dynamic memory allocation)
"""

import numpy as np
from typing import Tuple

from ..modifications import (
    clean_sequence,
    generate_modified_by_ions,
    parse_modified_sequence,
    prepare_modifications_for_numba,
)


def encode_peptide_to_ord(peptide: str) -> np.ndarray:
    """Encode peptide string to ord() array for Numba processing.

    Parameters
    ----------
    peptide : str
        Peptide sequence (uppercase, one-letter codes)

    Returns
    -------
    peptide_ord : np.ndarray (uint8)
        Array of ord() values for each amino acid

    Examples
    --------
    >>> encode_peptide_to_ord("PEPTIDE")
    array([80, 69, 80, 84, 73, 68, 69], dtype=uint8)
    """
    return np.array([ord(c) for c in peptide], dtype=np.uint8)


def fragment_spectrum(
    sequence: str,
    fragment_charges: Tuple[int, ...] = (1,),
) -> np.ndarray:
    """Sorted b/y fragment m/z values of a (possibly modified) peptide.

    Parameters
    ----------
    sequence : str
        Peptide sequence with optional inline modifications
    fragment_charges : tuple of int
        Fragment charge states, singly charged by default

    Returns
    -------
    np.ndarray (float64)
        Fragment m/z values sorted ascending

    Examples
    --------
    >>> mz = fragment_spectrum("PEPTIDE")
    >>> len(mz)  # 6 b-ions + 6 y-ions
    12
    """
    residues, modifications = parse_modified_sequence(sequence)
    peptide_ord = encode_peptide_to_ord(clean_sequence(residues))
    mod_array = prepare_modifications_for_numba(modifications)

    fragment_mz, _, _, _ = generate_modified_by_ions(
        peptide_ord, mod_array, (0, 1), fragment_charges
    )
    return np.sort(fragment_mz)
