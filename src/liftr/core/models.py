"""
Data models for liftr.

Two schedule trees share one set type:

    Progression ─┬─ WorkoutSession ─┬─ WorkoutSet
                 │                  └─ ...
    Program ─┬─ TrainingDay ─┬─ ProgramExercise
             │               └─ ExerciseSession ─┬─ WorkoutSet

Ownership is strictly top-down (parents hold child lists; deleting a parent
drops the whole subtree).  Children point back at parents only through
non-owning ``*_id`` fields, so the graph has no reference cycles.

Weights are in the base unit (lbs).  Dates are ISO strings (YYYY-MM-DD).
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .config import RPE_MAX, RPE_MIN
from .errors import InvariantViolation

TemplateKind = Literal[
    "starting_strength", "texas_method", "madcow", "five_three_one", "smolov", "custom"
]
ProgressionStyle = Literal["linear", "periodization", "rpe", "percentage"]
Status = Literal["active", "paused", "completed"]

TEMPLATE_KINDS: tuple[str, ...] = (
    "starting_strength", "texas_method", "madcow", "five_three_one", "smolov", "custom",
)
PROGRESSION_STYLES: tuple[str, ...] = ("linear", "periodization", "rpe", "percentage")
STATUSES: tuple[str, ...] = ("active", "paused", "completed")

# Lifecycle: completed is terminal
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    "active": frozenset({"paused", "completed"}),
    "paused": frozenset({"active", "completed"}),
    "completed": frozenset(),
}


def new_id() -> str:
    """Process-unique opaque identifier."""
    return uuid.uuid4().hex


def today_iso() -> str:
    return datetime.now().strftime("%Y-%m-%d")


def validate_iso_date(date_str: str) -> None:
    """Validate date string is ISO format YYYY-MM-DD."""
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Invalid date: {date_str}") from e


@dataclass
class WorkoutSet:
    """
    One planned/performed set.

    ``actual_reps`` is None until the set is logged.
    """

    set_number: int
    target_reps: int
    target_weight: float
    actual_reps: int | None = None
    actual_weight: float | None = None
    rpe: int | None = None
    completed: bool = False
    notes: str | None = None
    session_id: str | None = None  # non-owning back-reference
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")
        if self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")
        if self.target_weight < 0:
            raise ValueError("target_weight must be non-negative")
        if self.actual_reps is not None and self.actual_reps < 0:
            raise ValueError("actual_reps must be non-negative")
        if self.actual_weight is not None and self.actual_weight < 0:
            raise ValueError("actual_weight must be non-negative")
        if self.rpe is not None and not RPE_MIN <= self.rpe <= RPE_MAX:
            raise ValueError(f"rpe must be within {RPE_MIN}-{RPE_MAX}")

    @property
    def was_successful(self) -> bool:
        """True when the logged reps reached the target."""
        return self.actual_reps is not None and self.actual_reps >= self.target_reps

    def retarget(self, weight: float) -> None:
        """Change the target weight of a set that has not been performed."""
        if self.completed:
            raise InvariantViolation(f"Set {self.id} is completed; its target is frozen")
        self.target_weight = weight


class _SessionMixin:
    """
    Shared behaviour of WorkoutSession and ExerciseSession.

    Schedule-identity fields (week number, session number) may be assigned
    once, at construction.
    """

    _IMMUTABLE_FIELDS: frozenset[str] = frozenset({"week_number", "session_number"})

    def __setattr__(self, name, value):
        if name in self._IMMUTABLE_FIELDS and name in self.__dict__:
            raise InvariantViolation(f"{name} is immutable after generation")
        super().__setattr__(name, value)

    @property
    def total_planned_reps(self) -> int:
        return self.planned_sets * self.planned_reps

    @property
    def total_completed_reps(self) -> int:
        return sum(s.actual_reps or 0 for s in self.sets)

    @property
    def performance_percentage(self) -> float:
        """Completed reps as a percentage of planned reps (0 when nothing is planned)."""
        if self.total_planned_reps == 0:
            return 0.0
        return 100.0 * self.total_completed_reps / self.total_planned_reps

    @property
    def completed_sets_count(self) -> int:
        return sum(1 for s in self.sets if s.completed)

    def set_planned_weight(self, weight: float) -> None:
        if self.completed:
            raise InvariantViolation(f"Session {self.id} is completed; its plan is frozen")
        self.planned_weight = weight

    def mark_completed(self, date: str) -> None:
        if self.completed:
            raise InvariantViolation(f"Session {self.id} is already completed")
        validate_iso_date(date)
        self.completed = True
        self.completed_date = date

    def _validate_plan(self) -> None:
        validate_iso_date(self.date)
        if self.week_number < 1:
            raise ValueError("week_number must be >= 1")
        if self.planned_weight < 0:
            raise ValueError("planned_weight must be non-negative")
        if self.planned_sets < 0 or self.planned_reps < 0:
            raise ValueError("planned_sets and planned_reps must be non-negative")
        if self.completed_date is not None:
            validate_iso_date(self.completed_date)


@dataclass(eq=False)
class WorkoutSession(_SessionMixin):
    """One scheduled occurrence of a single-exercise Progression."""

    date: str  # ISO format: YYYY-MM-DD
    week_number: int
    day_number: int
    planned_weight: float
    planned_sets: int
    planned_reps: int
    completed: bool = False
    completed_date: str | None = None
    paused: bool = False
    notes: str | None = None
    sets: list[WorkoutSet] = field(default_factory=list)
    progression_id: str | None = None  # non-owning back-reference
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        self._validate_plan()
        if self.day_number < 1:
            raise ValueError("day_number must be >= 1")

    def mark_completed(self, date: str) -> None:
        super().mark_completed(date)
        self.paused = False


@dataclass(eq=False)
class ProgramExercise:
    """An exercise definition inside a TrainingDay; generates one ExerciseSession per occurrence."""

    exercise_name: str
    order_index: int
    starting_weight: float
    target_sets: int
    target_reps: int
    increment: float = 5.0
    load_factor: float = 1.0  # Share of the progressed weight used on this day
    current_weight: float | None = None  # auto-progressed; defaults to starting_weight
    notes: str | None = None
    training_day_id: str | None = None  # non-owning back-reference
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.current_weight is None:
            self.current_weight = self.starting_weight
        if self.starting_weight < 0:
            raise ValueError("starting_weight must be non-negative")
        if self.target_sets < 1 or self.target_reps < 1:
            raise ValueError("target_sets and target_reps must be positive")
        if self.increment <= 0:
            raise ValueError("increment must be positive")
        if self.load_factor <= 0:
            raise ValueError("load_factor must be positive")


@dataclass(eq=False)
class ExerciseSession(_SessionMixin):
    """One scheduled occurrence of a ProgramExercise within a workout instance."""

    date: str  # ISO format: YYYY-MM-DD
    week_number: int
    session_number: int  # program-global workout instance number
    planned_weight: float
    planned_sets: int
    planned_reps: int
    completed: bool = False
    completed_date: str | None = None
    notes: str | None = None
    sets: list[WorkoutSet] = field(default_factory=list)
    exercise_id: str | None = None  # non-owning back-reference
    training_day_id: str | None = None  # non-owning back-reference
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        self._validate_plan()
        if self.session_number < 1:
            raise ValueError("session_number must be >= 1")


@dataclass(eq=False)
class TrainingDay:
    """A named workout layout (e.g. 'Workout A', 'Volume Day') within a Program."""

    name: str
    day_number: int
    exercises: list[ProgramExercise] = field(default_factory=list)
    sessions: list[ExerciseSession] = field(default_factory=list)
    program_id: str | None = None  # non-owning back-reference
    id: str = field(default_factory=new_id)

    def exercise(self, exercise_id: str | None) -> ProgramExercise | None:
        return next((e for e in self.exercises if e.id == exercise_id), None)


class _OwnerMixin:
    """Lifecycle and week-counter behaviour shared by Progression and Program."""

    @property
    def progress_percentage(self) -> float:
        return 100.0 * self.current_week / self.total_weeks

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def set_status(self, status: str) -> None:
        """Apply a lifecycle transition, refusing illegal ones."""
        if status not in STATUSES:
            raise ValueError(f"Invalid status: {status}")
        if status == self.status:
            return
        if status not in STATUS_TRANSITIONS[self.status]:
            raise InvariantViolation(f"Cannot change status from {self.status} to {status}")
        self.status = status

    def advance_week(self) -> None:
        """Move the current-week counter forward by exactly one."""
        if self.current_week >= self.total_weeks:
            raise InvariantViolation(
                f"Cannot advance past week {self.total_weeks} (current week {self.current_week})"
            )
        self.current_week += 1

    def _validate_schedule(self) -> None:
        validate_iso_date(self.start_date)
        if self.template_kind not in TEMPLATE_KINDS:
            raise ValueError(f"Invalid template_kind: {self.template_kind}")
        if self.status not in STATUSES:
            raise ValueError(f"Invalid status: {self.status}")
        if self.total_weeks < 1:
            raise ValueError("total_weeks must be >= 1")
        if not 1 <= self.current_week <= self.total_weeks:
            raise ValueError(
                f"current_week must be within 1-{self.total_weeks}, got {self.current_week}"
            )


@dataclass(eq=False)
class Progression(_OwnerMixin):
    """Single-exercise scheduled plan with weekly target weights."""

    exercise_name: str
    template_kind: TemplateKind
    progression_style: ProgressionStyle
    current_max: float
    target_max: float
    starting_weight: float
    total_weeks: int
    current_week: int = 1
    start_date: str = field(default_factory=today_iso)
    status: Status = "active"
    notes: str | None = None
    sessions: list[WorkoutSession] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        self._validate_schedule()
        if self.progression_style not in PROGRESSION_STYLES:
            raise ValueError(f"Invalid progression_style: {self.progression_style}")

    @property
    def name(self) -> str:
        return self.exercise_name

    def all_sessions(self) -> list[WorkoutSession]:
        """Sessions in schedule order."""
        return sorted(self.sessions, key=lambda s: (s.week_number, s.day_number, s.date))


@dataclass(eq=False)
class Program(_OwnerMixin):
    """Multi-exercise plan composed of training days."""

    name: str
    template_kind: TemplateKind
    total_weeks: int
    current_week: int = 1
    start_date: str = field(default_factory=today_iso)
    status: Status = "active"
    notes: str | None = None
    training_days: list[TrainingDay] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        self._validate_schedule()

    def training_day(self, training_day_id: str | None) -> TrainingDay | None:
        return next((d for d in self.training_days if d.id == training_day_id), None)

    def exercise_for(self, session: ExerciseSession) -> ProgramExercise | None:
        """Resolve a session's non-owning exercise reference."""
        day = self.training_day(session.training_day_id)
        return day.exercise(session.exercise_id) if day is not None else None

    def exercise_name_for(self, session: ExerciseSession) -> str:
        exercise = self.exercise_for(session)
        return exercise.exercise_name if exercise is not None else ""

    def all_sessions(self) -> list[ExerciseSession]:
        """Sessions in schedule order: by workout instance, then exercise order."""

        def key(s: ExerciseSession) -> tuple[int, int]:
            exercise = self.exercise_for(s)
            return (s.session_number, exercise.order_index if exercise is not None else 0)

        return sorted((s for d in self.training_days for s in d.sessions), key=key)

    def workout(self, session_number: int) -> list[ExerciseSession]:
        """All exercise sessions of one workout instance."""
        return [s for s in self.all_sessions() if s.session_number == session_number]


Owner = Progression | Program
