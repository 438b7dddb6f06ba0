"""Correspondence matching of identifications across runs.

This module provides:
- QT (quality-threshold) clustering of points from several maps
- CorrespondenceMatcher turning positioned identifications into Groups
"""

from .qt_clustering import (
    find_neighbor_candidates,
    pair_distance,
    qt_cluster,
)
from .correspondence import CorrespondenceMatcher

__all__ = [
    'CorrespondenceMatcher',
    'find_neighbor_candidates',
    'pair_distance',
    'qt_cluster',
]
