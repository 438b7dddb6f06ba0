"""Fragment matching between two peak lists.

Counts the fragments two spectra have in common within an absolute (Da)
tolerance. Both inputs must be sorted ascending; a peak of one spectrum
is matched to at most one peak of the other.
"""

import numpy as np
import numba


@numba.jit(nopython=True, cache=True)
def count_shared_peaks(
    mz1: np.ndarray,
    mz2: np.ndarray,
    tolerance: float,
) -> int:
    """Count one-to-one peak matches between two sorted m/z arrays.

    Parameters
    ----------
    mz1, mz2 : np.ndarray (float64)
        Sorted m/z arrays
        CRITICAL: Must be sorted ascending! No validation for speed.
    tolerance : float
        Maximum m/z difference (Da) for two peaks to be "shared"

    Returns
    -------
    int
        Number of shared peaks

    Examples
    --------
    >>> a = np.array([100.0, 200.0, 300.0])
    >>> b = np.array([100.2, 250.0, 299.9])
    >>> count_shared_peaks(a, b, 0.5)
    2
    """
    i = 0
    j = 0
    n1 = len(mz1)
    n2 = len(mz2)
    matches = 0

    while i < n1 and j < n2:
        diff = mz1[i] - mz2[j]
        if abs(diff) <= tolerance:
            matches += 1
            i += 1
            j += 1
        elif diff < 0:
            i += 1
        else:
            j += 1

    return matches


def shared_peak_similarity(
    mz1: np.ndarray,
    mz2: np.ndarray,
    tolerance: float,
    min_shared: int = 1,
) -> float:
    """Fraction of the smaller spectrum's peaks that are shared.

    Returns 0.0 when fewer than `min_shared` peaks are shared or when one
    of the spectra is empty.

    Examples
    --------
    >>> a = np.array([100.0, 200.0, 300.0, 400.0])
    >>> b = np.array([100.1, 200.1])
    >>> shared_peak_similarity(a, b, 0.5, min_shared=2)
    1.0
    """
    if len(mz1) == 0 or len(mz2) == 0:
        return 0.0

    matches = count_shared_peaks(mz1, mz2, tolerance)
    if matches < min_shared:
        return 0.0

    return matches / min(len(mz1), len(mz2))
