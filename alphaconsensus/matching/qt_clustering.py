"""Quality-threshold (QT) clustering of points from several maps.

Groups points (identifications) from different maps (identification runs)
that lie within an RT and an m/z tolerance of each other.

Algorithm
---------
Every point is the centre of a candidate cluster. A candidate cluster holds,
for each other map, the compatible point closest to its centre. Distances
are normalised to [0, 1]::

    distance = (|ΔRT| / max_rt_diff + |Δm/z| / max_mz_diff) / 2

and the cluster quality is ``1 - mean distance`` over all other maps, where a
map without a compatible point contributes the maximum distance 1. The best
cluster (ties: lowest centre index) is emitted, its points are removed, the
candidate clusters that lost a point are re-evaluated, and the procedure
repeats until every point is assigned.

Properties
----------
- A cluster never contains two points of the same map
- Every point is assigned to exactly one cluster (singletons allowed)
- Each member lies within both tolerances of the cluster centre, so the
  cluster diameter is bounded by twice the tolerances

Performance
-----------
Candidate search is O(n log n + k) using an m/z-sorted sweep; the clustering
loop is O(n^2) in the worst case, Numba-compiled.
"""

import numpy as np
from numba import njit
from typing import Optional, Tuple


@njit
def pair_distance(
    rt_diff: float,
    mz_diff: float,
    max_rt_diff: float,
    max_mz_diff: float,
) -> float:
    """Normalised distance of two compatible points, in [0, 1].

    A zero tolerance only admits exact equality, which has distance 0.
    """
    d_rt = abs(rt_diff) / max_rt_diff if max_rt_diff > 0.0 else 0.0
    d_mz = abs(mz_diff) / max_mz_diff if max_mz_diff > 0.0 else 0.0
    return 0.5 * (d_rt + d_mz)


@njit
def find_neighbor_candidates(
    map_index: np.ndarray,
    rt: np.ndarray,
    mz: np.ndarray,
    max_rt_diff: float,
    max_mz_diff: float,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Find all compatible point pairs from different maps.

    Parameters
    ----------
    map_index : np.ndarray (int64)
        Map of each point
    rt, mz : np.ndarray (float64)
        Point positions
    max_rt_diff, max_mz_diff : float
        Maximum allowed RT and m/z differences (inclusive)

    Returns
    -------
    ptr : np.ndarray (int64)
        CSR row pointers, length n + 1
    neighbors : np.ndarray (int64)
        Candidate indices; row i is ``neighbors[ptr[i]:ptr[i + 1]]``
    distances : np.ndarray (float64)
        Distances parallel to `neighbors`

    Notes
    -----
    Rows are sorted by distance, ties by candidate index. The relation is
    symmetric: j is a candidate of i if and only if i is a candidate of j.
    """
    n = len(mz)
    order = np.argsort(mz)

    # First pass: count candidates per point
    counts = np.zeros(n, dtype=np.int64)
    for a in range(n):
        i = order[a]
        b = a + 1
        while b < n and mz[order[b]] - mz[i] <= max_mz_diff:
            j = order[b]
            if map_index[i] != map_index[j] and abs(rt[i] - rt[j]) <= max_rt_diff:
                counts[i] += 1
                counts[j] += 1
            b += 1

    ptr = np.zeros(n + 1, dtype=np.int64)
    for i in range(n):
        ptr[i + 1] = ptr[i] + counts[i]

    neighbors = np.empty(ptr[n], dtype=np.int64)
    distances = np.empty(ptr[n], dtype=np.float64)
    fill = ptr[:n].copy()

    # Second pass: store candidates and distances
    for a in range(n):
        i = order[a]
        b = a + 1
        while b < n and mz[order[b]] - mz[i] <= max_mz_diff:
            j = order[b]
            if map_index[i] != map_index[j] and abs(rt[i] - rt[j]) <= max_rt_diff:
                d = pair_distance(rt[i] - rt[j], mz[i] - mz[j], max_rt_diff, max_mz_diff)
                neighbors[fill[i]] = j
                distances[fill[i]] = d
                fill[i] += 1
                neighbors[fill[j]] = i
                distances[fill[j]] = d
                fill[j] += 1
            b += 1

    # Sort rows by distance, ties by index (stable sort on index-sorted rows)
    for i in range(n):
        start = ptr[i]
        end = ptr[i + 1]
        if end - start > 1:
            row_idx = neighbors[start:end].copy()
            row_dist = distances[start:end].copy()
            by_idx = np.argsort(row_idx)
            row_idx = row_idx[by_idx]
            row_dist = row_dist[by_idx]
            by_dist = np.argsort(row_dist, kind='mergesort')
            neighbors[start:end] = row_idx[by_dist]
            distances[start:end] = row_dist[by_dist]

    return ptr, neighbors, distances


@njit
def cluster_quality(
    center: int,
    map_index: np.ndarray,
    ptr: np.ndarray,
    neighbors: np.ndarray,
    distances: np.ndarray,
    assigned: np.ndarray,
    n_maps: int,
    best_distance: np.ndarray,
) -> float:
    """Quality of the candidate cluster around `center`, in [0, 1].

    `best_distance` is a scratch array of length `n_maps`.
    """
    for m in range(n_maps):
        best_distance[m] = 1.0

    for k in range(ptr[center], ptr[center + 1]):
        j = neighbors[k]
        if assigned[j]:
            continue
        m = map_index[j]
        if distances[k] < best_distance[m]:
            best_distance[m] = distances[k]

    total = 0.0
    for m in range(n_maps):
        if m != map_index[center]:
            total += best_distance[m]

    return 1.0 - total / (n_maps - 1)


@njit
def qt_assign(
    map_index: np.ndarray,
    ptr: np.ndarray,
    neighbors: np.ndarray,
    distances: np.ndarray,
    n_maps: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Run the QT loop on precomputed neighbor candidates.

    Requires ``n_maps >= 2``.

    Returns
    -------
    labels : np.ndarray (int64)
        Cluster label of each point, clusters numbered in emission order
    qualities : np.ndarray (float64)
        Quality of each emitted cluster
    """
    n = len(map_index)
    assigned = np.zeros(n, dtype=np.bool_)
    labels = np.full(n, -1, dtype=np.int64)
    qualities = np.empty(n, dtype=np.float64)
    quality = np.empty(n, dtype=np.float64)
    scratch = np.empty(n_maps, dtype=np.float64)
    chosen = np.empty(n_maps, dtype=np.int64)

    for c in range(n):
        quality[c] = cluster_quality(
            c, map_index, ptr, neighbors, distances, assigned, n_maps, scratch
        )

    n_clusters = 0
    n_assigned = 0
    while n_assigned < n:
        # Best remaining candidate cluster, first index wins ties
        best = -1
        best_quality = -1.0
        for c in range(n):
            if not assigned[c] and quality[c] > best_quality:
                best = c
                best_quality = quality[c]

        # Closest unassigned point per other map
        for m in range(n_maps):
            chosen[m] = -1
        chosen[map_index[best]] = best
        for k in range(ptr[best], ptr[best + 1]):
            j = neighbors[k]
            if not assigned[j] and chosen[map_index[j]] == -1:
                chosen[map_index[j]] = j

        for m in range(n_maps):
            j = chosen[m]
            if j >= 0:
                assigned[j] = True
                labels[j] = n_clusters
                n_assigned += 1

        qualities[n_clusters] = best_quality
        n_clusters += 1

        # Re-evaluate candidate clusters that lost a point
        for m in range(n_maps):
            j = chosen[m]
            if j < 0:
                continue
            for k in range(ptr[j], ptr[j + 1]):
                c = neighbors[k]
                if not assigned[c]:
                    quality[c] = cluster_quality(
                        c, map_index, ptr, neighbors, distances, assigned, n_maps, scratch
                    )

    return labels, qualities[:n_clusters]


def qt_cluster(
    map_index: np.ndarray,
    rt: np.ndarray,
    mz: np.ndarray,
    max_rt_diff: float,
    max_mz_diff: float,
    n_maps: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Cluster points from several maps with QT clustering.

    Parameters
    ----------
    map_index : array-like of int
        Map (identification run) of each point
    rt, mz : array-like of float
        Point positions
    max_rt_diff, max_mz_diff : float
        Maximum RT and m/z difference between a cluster centre and its members
    n_maps : int, optional
        Number of maps (default: highest map index + 1)

    Returns
    -------
    labels : np.ndarray (int64)
        Cluster label of each point
    qualities : np.ndarray (float64)
        Quality of each cluster, indexed by label

    Examples
    --------
    >>> labels, qualities = qt_cluster([0, 1], [100.0, 100.0], [500.0, 500.0], 0.1, 0.1)
    >>> labels
    array([0, 0])
    """
    map_index = np.asarray(map_index, dtype=np.int64)
    rt = np.asarray(rt, dtype=np.float64)
    mz = np.asarray(mz, dtype=np.float64)

    n = len(map_index)
    if n_maps is None:
        n_maps = int(map_index.max()) + 1 if n > 0 else 0

    if n == 0:
        return np.zeros(0, dtype=np.int64), np.zeros(0, dtype=np.float64)

    if n_maps < 2:
        # Nothing to link: every point is its own cluster
        return np.arange(n, dtype=np.int64), np.ones(n, dtype=np.float64)

    ptr, neighbors, distances = find_neighbor_candidates(
        map_index, rt, mz, float(max_rt_diff), float(max_mz_diff)
    )
    return qt_assign(map_index, ptr, neighbors, distances, int(n_maps))
