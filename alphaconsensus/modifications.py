"""Handle inline modifications in peptide sequences.

Search engines report modified peptides with the modification written next to
the residue, e.g. ``PEPTM[Oxidation]IDE``, ``PEPTM(Oxidation)IDE`` or
``PEPTM[+15.9949]IDE``. A modification in front of the first residue
(``[Acetyl]-PEPTIDE`` or ``(Acetyl)PEPTIDE``) is an N-terminal modification
and is attached to the first residue.

Key Features
------------
- Parse inline modification strings into (modification, position) tuples
- Strip modifications for sequence-similarity scoring
- Generate modified b/y fragment ions (Numba-compiled)

Examples
--------
>>> parse_modified_sequence("PEPTM[Oxidation]IDE")
('PEPTMIDE', [('Oxidation', 4)])
>>> unmodified_sequence("PEPTM(Oxidation)IDE")
'PEPTMIDE'
"""

from __future__ import annotations
import logging
import re
from typing import List, Tuple

import numpy as np
import numba

from .constants import (
    H2O_MASS,
    PROTON_MASS,
    AA_MASSES,
    MODIFICATION_MASSES,
    NON_STANDARD_AA_MAP,
)

logger = logging.getLogger(__name__)

# Modification annotation in square or round brackets
_MOD_PATTERN = re.compile(r"\[([^\]]*)\]|\(([^)]*)\)")


# =============================================================================
# Sequence Parsing
# =============================================================================

def parse_modified_sequence(sequence: str) -> Tuple[str, List[Tuple[str, int]]]:
    """Split a peptide sequence into residues and inline modifications.

    Parameters
    ----------
    sequence : str
        Peptide sequence with optional inline modifications

    Returns
    -------
    residues : str
        Unmodified sequence
    modifications : List[Tuple[str, int]]
        List of (modification, position) tuples, positions 0-based.
        N-terminal modifications are reported at position 0.

    Examples
    --------
    >>> parse_modified_sequence("[Acetyl]-PEPC[Carbamidomethyl]TIDE")
    ('PEPCTIDE', [('Acetyl', 0), ('Carbamidomethyl', 3)])
    """
    residues = []
    modifications = []
    pos = 0
    n = len(sequence)
    while pos < n:
        char = sequence[pos]
        if char in "[(":
            match = _MOD_PATTERN.match(sequence, pos)
            if match is None:
                raise ValueError(f"Unbalanced modification bracket in '{sequence}'")
            name = match.group(1) if match.group(1) is not None else match.group(2)
            modifications.append((name.strip(), max(len(residues) - 1, 0)))
            pos = match.end()
            continue
        if char in ".-":
            # Terminal separators, e.g. "[Acetyl]-PEPTIDE" or ".(Acetyl)PEPTIDE"
            pos += 1
            continue
        residues.append(char.upper())
        pos += 1

    return ''.join(residues), modifications


def unmodified_sequence(sequence: str) -> str:
    """Return the sequence with all inline modifications removed."""
    return parse_modified_sequence(sequence)[0]


def clean_sequence(sequence: str) -> str:
    """Replace non-standard amino acids by their standard equivalents.

    - X (unknown) → L (leucine, most common)
    - Z (Glu/Gln) → Q (glutamine)
    - B (Asp/Asn) → N (asparagine)
    - J (Leu/Ile) → L (leucine)
    - U (selenocysteine) → C (cysteine)
    - O (pyrrolysine) → M (methionine)

    Examples
    --------
    >>> clean_sequence("PEPTXIDE")
    'PEPTLIDE'
    """
    return ''.join(NON_STANDARD_AA_MAP.get(aa, aa) for aa in sequence)


def modification_mass(name: str) -> float:
    """Mass shift of a named (Unimod) or numeric modification.

    Unknown names contribute no mass shift and are logged.

    Examples
    --------
    >>> modification_mass("Oxidation")
    15.994915
    >>> modification_mass("+79.966")
    79.966
    """
    if name in MODIFICATION_MASSES:
        return MODIFICATION_MASSES[name]
    try:
        return float(name)
    except ValueError:
        logger.warning(f"Unknown modification '{name}', ignoring its mass shift")
        return 0.0


# =============================================================================
# Modification Array Preparation for Numba
# =============================================================================

def prepare_modifications_for_numba(modifications: List[Tuple[str, int]]) -> np.ndarray:
    """Convert modification list to numpy array for Numba functions.

    Parameters
    ----------
    modifications : List[Tuple[str, int]]
        List of (modification, position) tuples

    Returns
    -------
    np.ndarray
        Array of shape (n_mods, 2) with dtype float64.
        Each row: [position, mass_shift]

    Examples
    --------
    >>> prepare_modifications_for_numba([("Carbamidomethyl", 2), ("Oxidation", 5)])
    array([[ 2.      , 57.021464],
           [ 5.      , 15.994915]])
    """
    if not modifications:
        return np.zeros((0, 2), dtype=np.float64)

    result = np.zeros((len(modifications), 2), dtype=np.float64)
    for i, (name, position) in enumerate(modifications):
        result[i, 0] = position
        result[i, 1] = modification_mass(name)

    return result


# =============================================================================
# Modified Fragment Generation (Numba-Compiled)
# =============================================================================

@numba.jit(nopython=True, cache=True)
def generate_modified_by_ions(
    peptide_ord: np.ndarray,
    modifications: np.ndarray,
    fragment_types: Tuple[int, ...] = (0, 1),
    fragment_charges: Tuple[int, ...] = (1,),
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Generate theoretical b/y fragment m/z values with modifications.

    Parameters
    ----------
    peptide_ord : np.ndarray (uint8)
        Peptide sequence as ord() values
    modifications : np.ndarray (float64)
        Shape (n_mods, 2), each row is [position, mass_shift]
    fragment_types : tuple of int
        Fragment types: 0=b, 1=y (default: both)
    fragment_charges : tuple of int
        Fragment charge states (default: singly charged only)

    Returns
    -------
    fragment_mz : np.ndarray (float64)
    fragment_type : np.ndarray (uint8)
    fragment_position : np.ndarray (uint8)
    fragment_charge : np.ndarray (uint8)

    Notes
    -----
    Fragments with charge > position are skipped.
    """
    peptide_length = len(peptide_ord)
    n_positions = peptide_length - 1
    max_fragments = max(n_positions, 0) * len(fragment_types) * len(fragment_charges)

    fragment_mz = np.empty(max_fragments, dtype=np.float64)
    fragment_type = np.empty(max_fragments, dtype=np.uint8)
    fragment_position = np.empty(max_fragments, dtype=np.uint8)
    fragment_charge = np.empty(max_fragments, dtype=np.uint8)

    if peptide_length == 0:
        return fragment_mz, fragment_type, fragment_position, fragment_charge

    # Residue masses including modification shifts
    residue_mass = np.empty(peptide_length, dtype=np.float64)
    for i in range(peptide_length):
        residue_mass[i] = AA_MASSES[peptide_ord[i]]
    for j in range(len(modifications)):
        position = int(modifications[j, 0])
        if 0 <= position < peptide_length:
            residue_mass[position] += modifications[j, 1]

    cumsum_forward = np.cumsum(residue_mass)
    cumsum_backward = np.cumsum(residue_mass[::-1])[::-1]

    idx = 0
    for frag_type in fragment_types:
        for position in range(1, n_positions + 1):
            for charge in fragment_charges:
                if charge > position:
                    continue

                if frag_type == 0:  # b-ion
                    fragment_mass = cumsum_forward[position - 1]
                elif frag_type == 1:  # y-ion
                    fragment_mass = cumsum_backward[peptide_length - position] + H2O_MASS
                else:
                    continue

                fragment_mz[idx] = (fragment_mass + charge * PROTON_MASS) / charge
                fragment_type[idx] = frag_type
                fragment_position[idx] = position
                fragment_charge[idx] = charge
                idx += 1

    return (
        fragment_mz[:idx],
        fragment_type[:idx],
        fragment_position[:idx],
        fragment_charge[:idx]
    )
