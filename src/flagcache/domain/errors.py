"""Domain-layer error definitions."""

# ============================================================================
#                           General domain errors
# ============================================================================


class DomainError(Exception):
    """Base class for domain-layer errors."""


# ============================================================================
#                   Evaluation preparation errors
# ============================================================================


class PreparationError(DomainError):
    """Raised when a flag cannot be prepared for evaluation.

    A single failing flag aborts the whole snapshot build, so callers keep
    serving the previous snapshot until the upstream data is fixed.

    Attributes:
        flag_id (int): ID of the flag that failed preparation.
        detail (str): Human-readable description of the problem.
    """

    def __init__(self, flag_id: int, detail: str) -> None:
        super().__init__(f"Flag {flag_id} failed evaluation preparation: {detail}")
        self.flag_id = flag_id
        self.detail = detail


class InvalidSegmentError(PreparationError):
    """Raised when a segment carries out-of-range settings (e.g. rollout percent)."""


class InvalidConstraintError(PreparationError):
    """Raised when a constraint has an unknown operator or an unparsable value."""


class InvalidDistributionError(PreparationError):
    """Raised when a segment's distributions do not form a valid 100% split."""
