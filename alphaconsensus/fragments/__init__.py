"""Fragment spectra and fragment-ion overlap.

Used by the PEPIons consensus algorithm to compare candidate peptides by the
b/y fragments they share.
"""

from .generator import (
    encode_peptide_to_ord,
    fragment_spectrum,
)
from .matching import (
    count_shared_peaks,
    shared_peak_similarity,
)

__all__ = [
    'encode_peptide_to_ord',
    'fragment_spectrum',
    'count_shared_peaks',
    'shared_peak_similarity',
]
