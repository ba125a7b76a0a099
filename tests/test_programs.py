"""
Program template tests: Starting Strength, Texas Method, Madcow 5x5.

Lift weights used throughout (lbs):
    squat 200, bench 150, deadlift 250, press 100, row 130

Default settings: lower-body step 5, upper-body step 2.5, rounding step 5.
Per-exercise rounding step = min(5, progression increment).
"""

import pytest

from liftr.core.adjuster import apply_adjustment
from liftr.core.advancement import advance_week
from liftr.core.errors import Constraint, ValidationError
from liftr.core.evaluator import ReduceBy, RepeatWeight
from liftr.core.generator import ProgramRequest, generate_program
from liftr.core.settings import Settings
from liftr.core.templates import TEMPLATES, get_template, program_templates

LIFTS = {"squat": 200, "bench": 150, "deadlift": 250, "press": 100, "row": 130}


def _program(kind: str, weeks: int | None = None, lifts: dict | None = None):
    request = ProgramRequest(
        name=get_template(kind).display_name,
        template_kind=kind,
        lift_weights=LIFTS if lifts is None else lifts,
        total_weeks=weeks,
        start_date="2026-01-05",
    )
    return generate_program(request, Settings())


def _by_name(program, session_number: int) -> dict:
    return {program.exercise_name_for(s): s for s in program.workout(session_number)}


class TestTemplateRegistry:

    def test_all_kinds_registered(self):
        assert set(TEMPLATES) == {
            "starting_strength", "texas_method", "madcow", "five_three_one", "smolov", "custom",
        }

    def test_program_templates(self):
        assert [t.kind for t in program_templates()] == ["starting_strength", "texas_method", "madcow"]

    def test_required_lifts(self):
        assert get_template("starting_strength").required_lifts == ("squat", "bench", "deadlift", "press")
        assert get_template("madcow").required_lifts == ("squat", "bench", "row", "press", "deadlift")

    def test_unknown_template(self):
        with pytest.raises(ValidationError) as exc:
            get_template("westside")
        assert exc.value.constraint == Constraint.UNKNOWN_TEMPLATE


class TestStartingStrength:

    @pytest.fixture
    def program(self):
        return _program("starting_strength")

    def test_shape(self, program):
        assert program.total_weeks == 12
        assert [d.name for d in program.training_days] == ["Workout A", "Workout B"]
        numbers = sorted({s.session_number for s in program.all_sessions()})
        assert numbers == list(range(1, 37))
        assert all(len(program.workout(n)) == 3 for n in numbers)

    def test_days_alternate_across_weeks(self, program):
        """Week 1: A B A, week 2: B A B."""
        names = []
        for n in range(1, 7):
            day = program.training_day(program.workout(n)[0].training_day_id)
            names.append(day.name[-1])
        assert names == ["A", "B", "A", "B", "A", "B"]

    def test_monday_wednesday_friday(self, program):
        assert [program.workout(n)[0].date for n in range(1, 5)] == [
            "2026-01-05", "2026-01-07", "2026-01-09", "2026-01-12",
        ]

    def test_exercise_sessions_share_workout_number(self, program):
        for n in (1, 2, 36):
            sessions = program.workout(n)
            assert len({s.date for s in sessions}) == 1
            assert len({s.week_number for s in sessions}) == 1

    def test_starting_weights(self, program):
        """
        squat    200 * 0.85 = 170
        bench    150 * 0.85 = 127.5 (step 2.5)
        deadlift 250 * 0.85 = 212.5 -> 215
        press    100 * 0.85 = 85
        """
        w1 = _by_name(program, 1)
        assert w1["Squat"].planned_weight == 170.0
        assert w1["Bench Press"].planned_weight == 127.5
        assert w1["Deadlift"].planned_weight == 215.0
        assert _by_name(program, 2)["Overhead Press"].planned_weight == 85.0

    def test_every_session_adds_weight(self, program):
        """Squat +5 per occurrence, deadlift +10, bench/press +2.5 per own occurrence."""
        assert [_by_name(program, n)["Squat"].planned_weight for n in (1, 2, 3, 4)] == [170.0, 175.0, 180.0, 185.0]
        assert [_by_name(program, n)["Deadlift"].planned_weight for n in (1, 2, 3)] == [215.0, 225.0, 235.0]
        assert _by_name(program, 3)["Bench Press"].planned_weight == 130.0
        assert _by_name(program, 4)["Overhead Press"].planned_weight == 87.5

    def test_deadlift_is_single_set(self, program):
        deadlift = _by_name(program, 1)["Deadlift"]
        assert deadlift.planned_sets == 1
        assert len(deadlift.sets) == 1
        exercise = program.exercise_for(deadlift)
        assert exercise.increment == 10.0
        assert exercise.current_weight == exercise.starting_weight

    def test_custom_weeks(self):
        program = _program("starting_strength", weeks=2)
        assert max(s.session_number for s in program.all_sessions()) == 6


class TestTexasMethod:

    @pytest.fixture
    def program(self):
        return _program("texas_method")

    def test_day_load_factors(self, program):
        """
        Week 1 squat (5RM 200):
            volume    200 * 0.90 = 180
            recovery  200 * 0.72 = 144 -> 145
            intensity 200
        """
        assert _by_name(program, 1)["Squat"].planned_weight == 180.0
        assert _by_name(program, 2)["Squat"].planned_weight == 145.0
        assert _by_name(program, 3)["Squat"].planned_weight == 200.0

    def test_weekly_progression(self, program):
        """Week 2: volume 205 * 0.9 = 184.5 -> 185, intensity 205."""
        assert _by_name(program, 4)["Squat"].planned_weight == 185.0
        assert _by_name(program, 6)["Squat"].planned_weight == 205.0

    def test_days_are_fixed(self, program):
        names = [program.training_day(program.workout(n)[0].training_day_id).name for n in (1, 2, 3, 4)]
        assert names == ["Volume Day", "Recovery Day", "Intensity Day", "Volume Day"]

    def test_volume_day_sets(self, program):
        w1 = _by_name(program, 1)
        assert len(w1["Squat"].sets) == 5
        assert w1["Bench Press"].planned_weight == 135.0
        assert _by_name(program, 2)["Overhead Press"].planned_weight == 90.0


class TestMadcow:

    @pytest.fixture
    def program(self):
        return _program("madcow")

    def test_volume_day_ramp(self, program):
        """Top set 170: 60/69/82/91/100 % -> 102, 117.3, 139.4, 154.7, 170 -> rounded."""
        squat = _by_name(program, 1)["Squat"]
        assert squat.planned_weight == 170.0
        assert [s.target_weight for s in squat.sets] == [100.0, 115.0, 140.0, 155.0, 170.0]

    def test_intensity_day_scheme(self, program):
        """69/82/91/100 % x5, 105 % x3 (178.5 -> 180), 80 % x8 (136 -> 135)."""
        squat = _by_name(program, 3)["Squat"]
        assert [(s.target_weight, s.target_reps) for s in squat.sets] == [
            (115.0, 5), (140.0, 5), (155.0, 5), (170.0, 5), (180.0, 3), (135.0, 8),
        ]

    def test_light_day_squat_is_straight(self, program):
        """170 * 0.75 = 127.5 -> 130 for all four sets."""
        squat = _by_name(program, 2)["Squat"]
        assert [s.target_weight for s in squat.sets] == [130.0] * 4

    def test_row_starting_weight(self, program):
        """130 * 0.85 = 110.5 -> 110 at step 2.5."""
        assert _by_name(program, 1)["Barbell Row"].planned_weight == 110.0

    def test_never_below_empty_bar(self):
        program = _program("madcow", lifts={**LIFTS, "press": 50})
        for s in program.all_sessions():
            assert s.planned_weight >= 45.0
            assert all(ws.target_weight >= 45.0 for ws in s.sets)


class TestProgramValidation:

    def test_missing_lift(self):
        lifts = {k: v for k, v in LIFTS.items() if k != "press"}
        with pytest.raises(ValidationError) as exc:
            _program("starting_strength", lifts=lifts)
        assert exc.value.constraint == Constraint.MISSING_LIFT

    def test_below_empty_bar(self):
        with pytest.raises(ValidationError) as exc:
            _program("starting_strength", lifts={**LIFTS, "squat": 40})
        assert exc.value.constraint == Constraint.BELOW_LOADABLE_MINIMUM

    def test_not_a_program_template(self):
        with pytest.raises(ValidationError) as exc:
            _program("smolov")
        assert exc.value.constraint == Constraint.NOT_A_PROGRAM_TEMPLATE

    def test_empty_name(self):
        request = ProgramRequest(name=" ", template_kind="madcow", lift_weights=LIFTS)
        with pytest.raises(ValidationError) as exc:
            generate_program(request, Settings())
        assert exc.value.constraint == Constraint.EMPTY_NAME


class TestProgramAdjustment:

    def test_reduce_only_same_exercise_later_workouts(self):
        """Squat 175 * 0.9 = 157.5 -> 160; 180 * 0.9 = 162 -> 160; bench untouched."""
        program = _program("starting_strength")
        rules = Settings().rules_for("Squat")
        squat1 = _by_name(program, 1)["Squat"]

        apply_adjustment(program, squat1, ReduceBy(10.0), rules)

        assert squat1.planned_weight == 170.0
        assert _by_name(program, 2)["Squat"].planned_weight == 160.0
        assert _by_name(program, 3)["Squat"].planned_weight == 160.0
        assert _by_name(program, 3)["Bench Press"].planned_weight == 130.0
        assert _by_name(program, 2)["Deadlift"].planned_weight == 225.0

    def test_repeat_keeps_day_load_factors(self):
        """
        Repeat the week-1 volume squat (180 at 0.90):
            recovery  180 * 0.72 / 0.90 = 144 -> 145
            intensity 180 / 0.90        = 200
            week 2 volume               = 180
        """
        program = _program("texas_method")
        rules = Settings().rules_for("Squat")
        volume = _by_name(program, 1)["Squat"]

        apply_adjustment(program, volume, RepeatWeight(), rules)

        assert _by_name(program, 2)["Squat"].planned_weight == 145.0
        assert _by_name(program, 3)["Squat"].planned_weight == 200.0
        assert _by_name(program, 4)["Squat"].planned_weight == 180.0
        assert _by_name(program, 6)["Squat"].planned_weight == 200.0

    def test_ramp_sets_keep_their_ratio(self):
        """Madcow volume squat week 2 (175): ReduceBy(10) -> 157.5 -> 160, first ramp set 105 -> 95."""
        program = _program("madcow")
        rules = Settings().rules_for("Squat")
        apply_adjustment(program, _by_name(program, 1)["Squat"], ReduceBy(10.0), rules)

        squat = _by_name(program, 4)["Squat"]
        assert squat.planned_weight == 160.0
        assert squat.sets[-1].target_weight == 160.0
        assert squat.sets[0].target_weight < squat.sets[-1].target_weight


class TestProgramAdvancement:

    def test_week_needs_every_workout(self):
        program = _program("starting_strength", weeks=2)
        for n in (1, 2):
            for s in program.workout(n):
                s.mark_completed("2026-01-05")
        partial = program.workout(3)
        partial[0].mark_completed("2026-01-09")
        assert not advance_week(program, 1)

        for s in partial[1:]:
            s.mark_completed("2026-01-09")
        assert advance_week(program, 1)
        assert program.current_week == 2
