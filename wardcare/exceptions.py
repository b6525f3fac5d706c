"""
Exception hierarchy for the wardcare core.

Workflow violations and missing records are raised to the caller. Scorers only
raise when a required input is absent; extreme numeric values fall into the
nearest band instead.
"""

from typing import Iterable, List, Optional


class WardcareError(Exception):
    """Base class for all errors raised by the wardcare core."""


class InvalidTransition(WardcareError):
    """Raised when an investigation cannot move from its current status to the target."""

    def __init__(self, current: str, target: str, reason: Optional[str] = None):
        self.current = current
        self.target = target
        message = f"Invalid status transition from {current} to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NotFound(WardcareError, KeyError):
    """Raised when a record id is absent from the record store."""

    def __init__(self, record_id: str, entity: str = "Investigation"):
        self.record_id = record_id
        self.entity = entity
        super().__init__(f"{entity} not found: {record_id}")

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise
        return self.args[0]


class InvalidMeasurement(WardcareError, ValueError):
    """Raised by the dosing-weight helpers on non-positive height or weight."""

    def __init__(self, name: str, value: float):
        self.name = name
        self.value = value
        super().__init__(f"{name} must be a positive number, got {value!r}")


class MissingClinicalInput(WardcareError, ValueError):
    """Raised by a scorer when a required input was not supplied at all."""

    def __init__(self, score_name: str, missing: Iterable[str]):
        self.score_name = score_name
        self.missing: List[str] = list(missing)
        super().__init__(
            f"Cannot calculate {score_name}: missing required parameters "
            f"({', '.join(self.missing)})"
        )


class AttachmentError(WardcareError):
    """Raised when an uploaded file cannot be read into a storable form."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not read attachment {path}: {cause}")
