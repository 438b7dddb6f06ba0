"""Error taxonomy for consensus identification.

Input-shape errors (missing positions, unknown runs) and configuration errors
are fatal and stop a run before any output is produced. Score-precondition
violations are only raised when strict score-type checking is requested.
"""

from typing import Optional


class ConsensusError(Exception):
    """Base class for all consensus identification errors."""


class InputDataError(ConsensusError):
    """Input identifications are incompatible with the requested processing."""


class MissingPositionError(InputDataError):
    """A peptide identification lacks the RT and/or m/z needed for matching."""

    def __init__(self, run_identifier: str, message: Optional[str] = None):
        self.run_identifier = run_identifier
        if message is None:
            message = (
                f"Peptide ID without RT and/or m/z information found in "
                f"identification run '{run_identifier}'. Make sure that this "
                f"information is included for all IDs when generating/converting "
                f"search results."
            )
        super().__init__(message)


class UnknownRunError(InputDataError):
    """A peptide identification references an identification run that is not listed."""

    def __init__(self, run_identifier: str):
        self.run_identifier = run_identifier
        super().__init__(
            f"Peptide ID references unknown identification run '{run_identifier}'"
        )


class ConfigurationError(ConsensusError, ValueError):
    """Invalid tolerance, algorithm or sub-algorithm setting."""


class ScorePreconditionError(ConsensusError):
    """Scores do not satisfy the requirements of the selected algorithm."""
