"""
Rule violations raised by the engine core.

Every violation carries an ErrorKind. The reducer turns violations into
ActionResult failures so that callers match on the kind instead of
catching exceptions.
"""

from __future__ import annotations
from enum import Enum


class ErrorKind(str, Enum):
    """Structured error codes surfaced to the acting player."""
    INVALID_PHASE_ACTION = "INVALID_PHASE_ACTION"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_ENOUGH_REQUIREMENT = "NOT_ENOUGH_REQUIREMENT"
    DEPOT_CAPACITY_EXCEEDED = "DEPOT_CAPACITY_EXCEEDED"
    DEPOT_TYPE_MISMATCH = "DEPOT_TYPE_MISMATCH"
    INVALID_WAREHOUSE_ORGANIZATION = "INVALID_WAREHOUSE_ORGANIZATION"
    NEGATIVE_RESOURCE = "NEGATIVE_RESOURCE"
    WILDCARD_CONVERSION_MISMATCH = "WILDCARD_CONVERSION_MISMATCH"
    INVALID_SELECTION = "INVALID_SELECTION"
    INVALID_CARD_PLACEMENT = "INVALID_CARD_PLACEMENT"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"


class RuleViolation(Exception):
    """Base class for all rule violations."""
    kind: ErrorKind = ErrorKind.INVALID_SELECTION

    def __init__(self, message: str, kind: ErrorKind | None = None):
        if kind is not None:
            self.kind = kind
        super().__init__(message)


class InvalidPhaseAction(RuleViolation):
    kind = ErrorKind.INVALID_PHASE_ACTION


class NotYourTurn(RuleViolation):
    kind = ErrorKind.NOT_YOUR_TURN


class NotEnoughRequirement(RuleViolation):
    """Affordability check failed."""
    kind = ErrorKind.NOT_ENOUGH_REQUIREMENT


class DepotCapacityExceeded(RuleViolation):
    kind = ErrorKind.DEPOT_CAPACITY_EXCEEDED


class DepotTypeMismatch(RuleViolation):
    kind = ErrorKind.DEPOT_TYPE_MISMATCH


class InvalidWarehouseOrganization(RuleViolation):
    """Two base depots would hold the same resource type."""
    kind = ErrorKind.INVALID_WAREHOUSE_ORGANIZATION


class NegativeResource(RuleViolation):
    kind = ErrorKind.NEGATIVE_RESOURCE


class WildcardConversionMismatch(RuleViolation):
    kind = ErrorKind.WILDCARD_CONVERSION_MISMATCH


class InvalidSelection(RuleViolation):
    """Index out of range, unknown leader, already used production, etc."""
    kind = ErrorKind.INVALID_SELECTION


class InvalidCardPlacement(RuleViolation):
    kind = ErrorKind.INVALID_CARD_PLACEMENT


class UnknownPlayer(RuleViolation):
    kind = ErrorKind.UNKNOWN_PLAYER
