"""
Error taxonomy for the scheduling engine.

ValidationError    bad input to generation / logging / configuration;
                   always raised before anything is mutated.
PersistenceError   the store failed to commit; no visible state change.
InvariantViolation a programming-contract breach the engine refuses to
                   perform (mutating completed data, advancing past the
                   last week, illegal status transitions).

Below-threshold performance is NOT an error: the evaluator returns it as
an ordinary adjustment value.
"""

from enum import Enum


class Constraint(str, Enum):
    """The specific rule a ValidationError reports as violated."""

    TARGET_NOT_ABOVE_CURRENT = "target_not_above_current"
    NON_POSITIVE_COUNT = "non_positive_count"
    INVALID_WEIGHT = "invalid_weight"
    BELOW_LOADABLE_MINIMUM = "below_loadable_minimum"
    TOO_MANY_SESSIONS = "too_many_sessions"
    UNKNOWN_TEMPLATE = "unknown_template"
    UNKNOWN_STYLE = "unknown_style"
    NOT_A_PROGRAM_TEMPLATE = "not_a_program_template"
    MISSING_LIFT = "missing_lift"
    EMPTY_NAME = "empty_name"
    INVALID_DATE = "invalid_date"
    INVALID_SET_LOG = "invalid_set_log"
    INVALID_SETTING = "invalid_setting"
    UNKNOWN_STATUS = "unknown_status"
    UNKNOWN_ENTITY = "unknown_entity"
    MALFORMED_RECORD = "malformed_record"


class LiftrError(Exception):
    """Base class for all engine errors."""


class ValidationError(LiftrError, ValueError):
    """Raised when input validation fails."""

    def __init__(self, message: str, constraint: Constraint = Constraint.MALFORMED_RECORD):
        super().__init__(message)
        self.constraint = constraint


class PersistenceError(LiftrError):
    """Raised when the store cannot commit a unit of work."""


class InvariantViolation(LiftrError):
    """Raised when an operation would break an entity-graph invariant."""
