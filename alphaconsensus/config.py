"""Parameters for consensus identification.

Configuration is validated when it is bound (on construction and again by
the orchestrator), so invalid tolerances or algorithm choices never reach
the matching and scoring code.

Examples
--------
>>> params = ConsensusParams(algorithm="ranks", considered_hits=5)
>>> algorithm = params.create_algorithm()

>>> params = ConsensusParams.from_dict({
...     "algorithm": "PEPMatrix",
...     "rt_delta": 0.5,
...     "PEPMatrix": {"matrix": "PAM30MS", "penalty": 3},
... })
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict

from .constants import (
    ALGORITHMS,
    DEFAULT_ALGORITHM,
    DEFAULT_CONSIDERED_HITS,
    DEFAULT_FRAGMENT_TOLERANCE,
    DEFAULT_GAP_PENALTY,
    DEFAULT_MATRIX,
    DEFAULT_MIN_SHARED,
    DEFAULT_MZ_DELTA,
    DEFAULT_RT_DELTA,
    MATRICES,
)
from .exceptions import ConfigurationError
from .scoring import ALGORITHM_CLASSES, ConsensusAlgorithm


@dataclass
class PEPMatrixParams:
    """Parameters of the PEPMatrix algorithm."""

    # Substitution matrix for alignment-based similarity scoring
    matrix: str = DEFAULT_MATRIX

    # Alignment gap penalty (same value for gap opening and extension)
    penalty: int = DEFAULT_GAP_PENALTY

    def validate(self):
        if self.matrix not in MATRICES:
            raise ConfigurationError(
                f"Unknown substitution matrix '{self.matrix}' (choose from: {', '.join(MATRICES)})"
            )
        if self.penalty < 1:
            raise ConfigurationError(f"penalty must be >= 1, got {self.penalty}")


@dataclass
class PEPIonsParams:
    """Parameters of the PEPIons algorithm."""

    # Maximum fragment m/z difference (Da) for fragments to count as shared
    mass_tolerance: float = DEFAULT_FRAGMENT_TOLERANCE

    # Minimum number of shared fragments for a non-zero similarity
    min_shared: int = DEFAULT_MIN_SHARED

    def validate(self):
        if self.mass_tolerance < 0:
            raise ConfigurationError(f"mass_tolerance must be >= 0, got {self.mass_tolerance}")
        if self.min_shared < 1:
            raise ConfigurationError(f"min_shared must be >= 1, got {self.min_shared}")


@dataclass
class ConsensusParams:
    """Parameters for consensus identification."""

    # Maximum precursor deviations between IDs of the same spectrum
    rt_delta: float = DEFAULT_RT_DELTA
    mz_delta: float = DEFAULT_MZ_DELTA  # Da

    # Top hits per ID used for consensus scoring (0 = all)
    considered_hits: int = DEFAULT_CONSIDERED_HITS

    # PEPMatrix, PEPIons, best, average or ranks
    algorithm: str = DEFAULT_ALGORITHM

    # Drop consensus hits backed by less than this fraction of the other runs
    min_support: float = 0.0

    # Count runs without an ID for the spectrum when computing support
    count_empty: bool = False

    # Raise instead of warning when scores violate the algorithm's requirements
    strict_score_types: bool = False

    # Worker threads for scoring groups
    n_threads: int = 1

    pepmatrix: PEPMatrixParams = field(default_factory=PEPMatrixParams)
    pepions: PEPIonsParams = field(default_factory=PEPIonsParams)

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Check all settings.

        Raises
        ------
        ConfigurationError
            If any setting is out of range
        """
        if self.rt_delta < 0:
            raise ConfigurationError(f"rt_delta must be >= 0, got {self.rt_delta}")
        if self.mz_delta < 0:
            raise ConfigurationError(f"mz_delta must be >= 0, got {self.mz_delta}")
        if self.considered_hits < 0:
            raise ConfigurationError(f"considered_hits must be >= 0, got {self.considered_hits}")
        if self.algorithm not in ALGORITHMS:
            raise ConfigurationError(
                f"Unknown algorithm '{self.algorithm}' (choose from: {', '.join(ALGORITHMS)})"
            )
        if not 0.0 <= self.min_support <= 1.0:
            raise ConfigurationError(f"min_support must be in [0, 1], got {self.min_support}")
        if self.n_threads < 1:
            raise ConfigurationError(f"n_threads must be >= 1, got {self.n_threads}")
        self.pepmatrix.validate()
        self.pepions.validate()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'ConsensusParams':
        """Create parameters from a (possibly nested) dictionary.

        Algorithm-specific settings go into "PEPMatrix" / "PEPIons"
        sub-dictionaries. Unknown keys are rejected.
        """
        values = dict(values)
        pepmatrix_values = values.pop("PEPMatrix", values.pop("pepmatrix", {}))
        pepions_values = values.pop("PEPIons", values.pop("pepions", {}))
        pepmatrix = PEPMatrixParams(**_known(PEPMatrixParams, pepmatrix_values))
        pepions = PEPIonsParams(**_known(PEPIonsParams, pepions_values))
        return cls(pepmatrix=pepmatrix, pepions=pepions, **_known(cls, values))

    def algorithm_options(self) -> Dict[str, Any]:
        """Keyword arguments for the selected algorithm class."""
        options: Dict[str, Any] = {
            "considered_hits": self.considered_hits,
            "min_support": self.min_support,
            "count_empty": self.count_empty,
            "strict": self.strict_score_types,
        }
        if self.algorithm == "PEPMatrix":
            options.update(matrix=self.pepmatrix.matrix, penalty=self.pepmatrix.penalty)
        elif self.algorithm == "PEPIons":
            options.update(
                mass_tolerance=self.pepions.mass_tolerance,
                min_shared=self.pepions.min_shared,
            )
        return options

    def create_algorithm(self) -> ConsensusAlgorithm:
        """Instantiate the configured consensus algorithm."""
        self.validate()
        return ALGORITHM_CLASSES[self.algorithm](**self.algorithm_options())


def _known(params_class, values: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(params_class)}
    unknown = sorted(set(values) - names)
    if unknown:
        raise ConfigurationError(
            f"Unknown {params_class.__name__} setting(s): {', '.join(unknown)}"
        )
    return values
