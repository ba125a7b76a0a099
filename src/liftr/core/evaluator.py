"""
Performance evaluation.

Classifies a completed session by the share of planned reps that were
actually performed and recommends an adjustment.  Evaluation is advisory:
nothing here mutates the schedule.

    p >= excellent               ContinueAsPlanned (excellent)
    good <= p < excellent        ContinueAsPlanned (good)
    adjustment <= p < good       RepeatWeight
    p < adjustment               ReduceBy(reduction %) or, at a deload
                                 checkpoint, Deload(deload %)
"""

from dataclasses import dataclass
from typing import Literal, Union

from .models import ExerciseSession, WorkoutSession
from .settings import Rules

Tier = Literal["excellent", "good", "repeat", "reduce"]


@dataclass(frozen=True)
class ContinueAsPlanned:
    @property
    def message(self) -> str:
        return "Great work! Continue with your planned progression."


@dataclass(frozen=True)
class RepeatWeight:
    @property
    def message(self) -> str:
        return "You completed most reps but not all. Repeat this weight next session."


@dataclass(frozen=True)
class ReduceBy:
    percent: float

    @property
    def message(self) -> str:
        return f"Performance below target. Reduce future weights by {self.percent:.1f}%?"


@dataclass(frozen=True)
class Deload:
    percent: float

    @property
    def message(self) -> str:
        return f"Significant performance drop. Deload by {self.percent:.1f}% for recovery?"


Adjustment = Union[ContinueAsPlanned, RepeatWeight, ReduceBy, Deload]


@dataclass(frozen=True)
class Evaluation:
    """Result of evaluating one session."""

    percentage: float
    tier: Tier
    adjustment: Adjustment

    @property
    def message(self) -> str:
        if self.tier == "good":
            return "Solid session. Keep the planned progression."
        return self.adjustment.message

    @property
    def needs_decision(self) -> bool:
        """True when the recommendation would change the schedule."""
        return not isinstance(self.adjustment, ContinueAsPlanned)


def is_deload_checkpoint(current_week: int, rules: Rules) -> bool:
    """True when auto-deload is on and the week is a multiple of the deload frequency."""
    return rules.auto_deload_enabled and current_week % rules.auto_deload_frequency == 0


def evaluate_percentage(percentage: float, rules: Rules, at_deload_checkpoint: bool = False) -> Evaluation:
    """
    Map a performance percentage onto a tier and adjustment.

    Example (default thresholds 90 / 75 / 50, 15 planned reps):
        15 reps -> 100.0 % -> ContinueAsPlanned
         8 reps ->  53.3 % -> RepeatWeight
         5 reps ->  33.3 % -> ReduceBy(5.0)
    """
    if percentage >= rules.excellent_threshold:
        return Evaluation(percentage, "excellent", ContinueAsPlanned())
    if percentage >= rules.good_threshold:
        return Evaluation(percentage, "good", ContinueAsPlanned())
    if percentage >= rules.adjustment_threshold:
        return Evaluation(percentage, "repeat", RepeatWeight())
    if at_deload_checkpoint:
        return Evaluation(percentage, "reduce", Deload(rules.deload_percent))
    return Evaluation(percentage, "reduce", ReduceBy(rules.reduction_percent))


def evaluate_session(
    session: WorkoutSession | ExerciseSession,
    rules: Rules,
    at_deload_checkpoint: bool = False,
) -> Evaluation:
    """Evaluate a session's rep completion against the effective rules."""
    return evaluate_percentage(session.performance_percentage, rules, at_deload_checkpoint)
