"""
Training analytics over stored schedules.

Pure read-only summaries: upcoming workouts, volume, per-exercise maxima
and personal-record counts.  Volume is reps x weight summed over logged
sets, in the base unit.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta

from .models import ExerciseSession, Program, Progression, WorkoutSession

Session = WorkoutSession | ExerciseSession


@dataclass(frozen=True)
class UpcomingWorkout:
    date: str
    owner_id: str
    owner_name: str
    label: str                 # exercise name or training-day name
    session_id: str            # first exercise session for programs
    session_number: int | None = None  # programs only
    week_number: int = 1
    planned_weight: float | None = None  # progressions only


@dataclass(frozen=True)
class ExerciseStat:
    name: str
    sessions: int
    total_volume: float
    max_weight: float
    avg_performance: float


def session_volume(session: Session) -> float:
    return sum((s.actual_reps or 0) * (s.actual_weight or 0.0) for s in session.sets)


def _session_max(session: Session) -> float:
    return max((s.actual_weight for s in session.sets if s.actual_weight is not None), default=0.0)


def completed_sessions(
    progressions: list[Progression], programs: list[Program]
) -> list[tuple[str, Session]]:
    """(exercise name, session) for every completed session, oldest first."""
    entries: list[tuple[str, Session]] = []
    for p in progressions:
        entries.extend((p.exercise_name, s) for s in p.sessions if s.completed)
    for program in programs:
        entries.extend((program.exercise_name_for(s), s) for s in program.all_sessions() if s.completed)
    entries.sort(key=lambda e: e[1].completed_date or e[1].date)
    return entries


def upcoming_sessions(
    progressions: list[Progression],
    programs: list[Program],
    today: str,
    days: int,
) -> list[UpcomingWorkout]:
    """
    Not-completed workouts of active schedules dated within [today, today + days].

    Program workouts are listed once per session number.
    """
    start = datetime.strptime(today, "%Y-%m-%d")
    end = (start + timedelta(days=days)).strftime("%Y-%m-%d")
    upcoming: list[UpcomingWorkout] = []

    for p in progressions:
        if not p.is_active:
            continue
        for s in p.all_sessions():
            if not s.completed and today <= s.date <= end:
                upcoming.append(UpcomingWorkout(
                    date=s.date,
                    owner_id=p.id,
                    owner_name=p.exercise_name,
                    label=p.exercise_name,
                    session_id=s.id,
                    week_number=s.week_number,
                    planned_weight=s.planned_weight,
                ))

    for program in programs:
        if not program.is_active:
            continue
        seen: set[int] = set()
        for s in program.all_sessions():
            if s.completed or s.session_number in seen or not today <= s.date <= end:
                continue
            seen.add(s.session_number)
            day = program.training_day(s.training_day_id)
            upcoming.append(UpcomingWorkout(
                date=s.date,
                owner_id=program.id,
                owner_name=program.name,
                label=day.name if day is not None else f"Workout {s.session_number}",
                session_id=s.id,
                session_number=s.session_number,
                week_number=s.week_number,
            ))

    upcoming.sort(key=lambda u: (u.date, u.owner_name))
    return upcoming


def volume_by_date(entries: list[tuple[str, Session]]) -> dict[str, float]:
    """Total volume per completion date."""
    volume: dict[str, float] = defaultdict(float)
    for _, session in entries:
        volume[session.completed_date or session.date] += session_volume(session)
    return dict(sorted(volume.items()))


def max_weight_by_exercise(progressions: list[Progression], programs: list[Program]) -> dict[str, float]:
    """Heaviest logged weight per exercise."""
    maxes: dict[str, float] = {}
    for name, session in completed_sessions(progressions, programs):
        maxes[name] = max(maxes.get(name, 0.0), _session_max(session))
    return maxes


def count_prs(entries: list[tuple[str, Session]]) -> int:
    """
    Count sessions whose heaviest set beat every earlier session of the same exercise.

    The first session of an exercise sets the baseline and is not a PR.
    """
    best: dict[str, float] = {}
    prs = 0
    for name, session in entries:
        top = _session_max(session)
        if name in best:
            if top > best[name]:
                prs += 1
                best[name] = top
        else:
            best[name] = top
    return prs


def exercise_stats(entries: list[tuple[str, Session]]) -> list[ExerciseStat]:
    """Per-exercise totals, highest volume first."""
    grouped: dict[str, list[Session]] = defaultdict(list)
    for name, session in entries:
        grouped[name].append(session)
    stats = [
        ExerciseStat(
            name=name,
            sessions=len(sessions),
            total_volume=sum(session_volume(s) for s in sessions),
            max_weight=max(_session_max(s) for s in sessions),
            avg_performance=sum(s.performance_percentage for s in sessions) / len(sessions),
        )
        for name, sessions in grouped.items()
    ]
    stats.sort(key=lambda st: st.total_volume, reverse=True)
    return stats
