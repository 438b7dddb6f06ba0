"""Physical constants, amino acid masses and consensus defaults.

Masses are provided both as dictionaries and as ord()-indexed arrays so they
can be used from standard Python and from Numba JIT-compiled code alike.

Sources
-------
- NIST physical constants: https://physics.nist.gov/cgi-bin/cuu/Value
- IUPAC amino acid masses: https://www.unimod.org/masses.html
- Unimod modification masses: https://www.unimod.org/modifications_list.php
"""

import numpy as np

# =============================================================================
# Fundamental Physical Constants (NIST values)
# =============================================================================

# Proton mass (NOT hydrogen atom mass!)
PROTON_MASS = 1.007276466622  # Da

# Water mass (H2O)
# Calculated: 2*1.007825 + 15.994915 = 18.010564684
H2O_MASS = 18.010564684  # Da

# =============================================================================
# Amino Acid Monoisotopic Masses (Da)
# =============================================================================

# Monoisotopic residue masses (not including N/C terminals)
AA_MASSES_DICT = {
    'A': 71.037114,   # Alanine
    'R': 156.101111,  # Arginine
    'N': 114.042927,  # Asparagine
    'D': 115.026943,  # Aspartic acid
    'C': 103.009185,  # Cysteine (unmodified)
    'E': 129.042593,  # Glutamic acid
    'Q': 128.058578,  # Glutamine
    'G': 57.021464,   # Glycine
    'H': 137.058912,  # Histidine
    'I': 113.084064,  # Isoleucine
    'L': 113.084064,  # Leucine
    'K': 128.094963,  # Lysine
    'M': 131.040485,  # Methionine
    'F': 147.068414,  # Phenylalanine
    'P': 97.052764,   # Proline
    'S': 87.032028,   # Serine
    'T': 101.047679,  # Threonine
    'W': 186.079313,  # Tryptophan
    'Y': 163.063320,  # Tyrosine
    'V': 99.068414,   # Valine
}

# Non-standard amino acids mapped to the mass of their closest standard equivalent
AA_MASSES_NONSTANDARD = {
    'X': 113.084064,  # Unknown → Leu/Ile (most common)
    'Z': 128.058578,  # Glu/Gln → Gln
    'B': 114.042927,  # Asp/Asn → Asn
    'J': 113.084064,  # Leu/Ile → Leu
    'U': 103.009185,  # Selenocysteine → Cys (similar mass)
    'O': 131.040485,  # Pyrrolysine → Met (closest mass)
}

NON_STANDARD_AA_MAP = {
    'X': 'L',
    'Z': 'Q',
    'B': 'N',
    'J': 'L',
    'U': 'C',
    'O': 'M',
}

# ord()-indexed lookup array for Numba access: AA_MASSES[ord('A')] → 71.037114
AA_MASSES = np.zeros(256, dtype=np.float64)

for aa, mass in AA_MASSES_DICT.items():
    AA_MASSES[ord(aa)] = mass

for aa, mass in AA_MASSES_NONSTANDARD.items():
    AA_MASSES[ord(aa)] = mass

# =============================================================================
# Modification Masses (Unimod)
# =============================================================================

CARBAMIDOMETHYL_MASS = 57.021464  # Unimod:4, C2H3NO
OXIDATION_MASS = 15.994915        # Unimod:35, O
ACETYL_MASS = 42.010565           # Unimod:1, C2H2O
PHOSPHO_MASS = 79.966331          # Unimod:21, HPO3
DEAMIDATION_MASS = 0.984016       # Unimod:7, NH → O

MODIFICATION_MASSES = {
    'Carbamidomethyl': CARBAMIDOMETHYL_MASS,
    'Oxidation': OXIDATION_MASS,
    'Acetyl': ACETYL_MASS,
    'Phospho': PHOSPHO_MASS,
    'Deamidation': DEAMIDATION_MASS,
    'Deamidated': DEAMIDATION_MASS,
}

# =============================================================================
# Score Types
# =============================================================================

PEP_SCORE_TYPE = "Posterior Error Probability"

# Alternative spellings of PEP score types produced by common converters
PEP_SCORE_TYPE_ALIASES = (
    PEP_SCORE_TYPE,
    "pep",
    "PEP",
    "MS:1001493",
)

RANKS_SCORE_TYPE = "ConsensusID_ranks"

# Meta value key carrying the support of a consensus hit
SUPPORT_META_KEY = "consensus_support"

# =============================================================================
# Consensus Defaults
# =============================================================================

# Precursor tolerances for correspondence matching (RT units of the input, Da)
DEFAULT_RT_DELTA = 0.1
DEFAULT_MZ_DELTA = 0.1

# Top hits per engine that take part in consensus scoring (0 = all)
DEFAULT_CONSIDERED_HITS = 10

DEFAULT_ALGORITHM = "PEPMatrix"
ALGORITHMS = ("PEPMatrix", "PEPIons", "best", "average", "ranks")

# PEPMatrix: substitution matrix and linear gap penalty
DEFAULT_MATRIX = "identity"
MATRICES = ("identity", "PAM30MS")
DEFAULT_GAP_PENALTY = 5

# PEPIons: fragment tolerance (Da) and minimum number of shared fragments
DEFAULT_FRAGMENT_TOLERANCE = 0.5
DEFAULT_MIN_SHARED = 2

TOOL_NAME = "AlphaConsensus/ConsensusID"
