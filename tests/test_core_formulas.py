"""
Formula-focused unit tests for the core progression engine.

Each test verifies a specific rule:
- rounding and unit conversion
- progression weight curves (linear, periodization)
- performance evaluation tiers
- schedule adjustment scope and compounding
- week advancement
- settings resolution and the YAML loader
- plate loading

Values are hand-computed from the formulas so the tests act as a reference.
"""

import tempfile
from pathlib import Path

import pytest

from liftr.core.adjuster import apply_adjustment, downstream_sessions
from liftr.core.advancement import advance_week, is_week_complete
from liftr.core.engine.config_loader import load_settings, save_user_settings
from liftr.core.errors import Constraint, InvariantViolation, ValidationError
from liftr.core.evaluator import (
    ContinueAsPlanned,
    Deload,
    ReduceBy,
    RepeatWeight,
    evaluate_percentage,
    evaluate_session,
    is_deload_checkpoint,
)
from liftr.core.generator import GenerationRequest, generate_progression, parse_weight, week_weight
from liftr.core.models import WorkoutSession, WorkoutSet
from liftr.core.plates import calculate_plates
from liftr.core.settings import ExerciseOverrides, Settings, apply_preset, settings_from_dict
from liftr.core.units import display_weight, round5, round_to_increment
from liftr.core.workflow import set_status

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _request(**overrides) -> GenerationRequest:
    base = dict(
        exercise_name="Squat",
        current_max=200,
        target_max=250,
        total_weeks=10,
        sessions_per_week=1,
        sets=3,
        reps=5,
        start_date="2026-01-05",
    )
    base.update(overrides)
    return GenerationRequest(**base)


def _session(reps: list[int], planned_reps: int = 5, weight: float = 200.0) -> WorkoutSession:
    """A session with len(reps) planned sets, each logged with the given reps."""
    session = WorkoutSession(
        date="2026-01-05",
        week_number=1,
        day_number=1,
        planned_weight=weight,
        planned_sets=len(reps),
        planned_reps=planned_reps,
    )
    session.sets = [
        WorkoutSet(i, planned_reps, weight, actual_reps=r, actual_weight=weight, completed=True)
        for i, r in enumerate(reps, start=1)
    ]
    return session


def _complete(session, date: str = "2026-01-05") -> None:
    for s in session.sets:
        s.actual_reps = s.target_reps
        s.actual_weight = s.target_weight
        s.completed = True
    session.mark_completed(date)


@pytest.fixture
def rules():
    return Settings().rules_for("Squat")


@pytest.fixture
def temp_home():
    """Create a temporary directory for settings files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ===========================================================================
# Rounding and units
# ===========================================================================

class TestRounding:

    def test_tie_rounds_away_from_zero(self):
        """172.5 / 5 = 34.5 -> 35 -> 175."""
        assert round_to_increment(172.5, 5.0) == 175.0
        assert round_to_increment(-172.5, 5.0) == -175.0

    def test_nearest_multiple(self):
        assert round_to_increment(171.0, 5.0) == 170.0
        assert round_to_increment(173.0, 5.0) == 175.0

    def test_idempotent(self):
        for value in (0.0, 12.4, 99.99, 127.5, 172.5, 333.3, 1001.0):
            for step in (2.5, 5.0, 10.0):
                once = round_to_increment(value, step)
                assert round_to_increment(once, step) == once

    def test_metric_step_is_two_and_a_half(self):
        """101 / 2.5 = 40.4 -> 100.0; 101.25 / 2.5 = 40.5 -> 102.5."""
        assert round5(101.0, use_metric=True) == 100.0
        assert round5(101.25, use_metric=True) == 102.5
        assert round5(101.25) == 100.0

    def test_invalid_increment_raises(self):
        with pytest.raises(ValueError):
            round_to_increment(100.0, 0.0)
        with pytest.raises(ValueError):
            round_to_increment(float("nan"), 5.0)

    def test_display_weight(self):
        assert display_weight(185.0) == "185.0 lbs"
        # 100 / 2.20462 = 45.36
        assert display_weight(100.0, use_metric=True) == "45.4 kg"


class TestParseWeight:

    def test_numeric_string_is_trimmed(self):
        assert parse_weight("  225 ") == 225.0

    @pytest.mark.parametrize("bad", ["abc", "", "nan", "inf", "-5", 0, True])
    def test_rejects_non_positive_or_non_numeric(self, bad):
        with pytest.raises(ValidationError) as exc:
            parse_weight(bad)
        assert exc.value.constraint == Constraint.INVALID_WEIGHT


# ===========================================================================
# Progression generation
# ===========================================================================

class TestLinearProgression:

    def test_reference_example(self):
        """
        current 200, target 250, 10 weeks:
            starting = round(200 * 0.85) = 170
            weekly   = round(50 / 10)    = 5
            week 6   = 170 + 5 * 5       = 195
        """
        p = generate_progression(_request(), Settings())
        assert p.starting_weight == 170.0
        by_week = {s.week_number: s for s in p.sessions}
        assert by_week[1].planned_weight == 170.0
        assert by_week[6].planned_weight == 195.0
        assert by_week[10].planned_weight == 215.0

    def test_twelve_week_curve(self):
        """current 200, target 260, 12 weeks: weekly = round(60 / 12) = 5, week 6 = 195."""
        p = generate_progression(_request(target_max=260, total_weeks=12), Settings())
        by_week = {s.week_number: s.planned_weight for s in p.sessions}
        assert by_week[1] == p.starting_weight == 170.0
        assert by_week[6] == 195.0

    def test_every_session_and_set_is_planned(self):
        p = generate_progression(_request(sessions_per_week=3), Settings())
        assert len(p.sessions) == 30
        for session in p.sessions:
            assert [s.set_number for s in session.sets] == [1, 2, 3]
            assert all(s.target_reps == 5 for s in session.sets)
            assert all(s.target_weight == session.planned_weight for s in session.sets)
            assert all(s.session_id == session.id for s in session.sets)
            assert session.progression_id == p.id

    def test_session_dates(self):
        """3 per week: 7 // 3 = 2 days apart; weeks start 7 days apart."""
        p = generate_progression(_request(sessions_per_week=3), Settings())
        dates = [s.date for s in p.all_sessions()[:4]]
        assert dates == ["2026-01-05", "2026-01-07", "2026-01-09", "2026-01-12"]

    def test_one_per_week_is_weekly(self):
        p = generate_progression(_request(), Settings())
        assert [s.date for s in p.all_sessions()[:2]] == ["2026-01-05", "2026-01-12"]

    def test_initial_state(self):
        p = generate_progression(_request(), Settings())
        assert p.current_week == 1
        assert p.status == "active"
        assert p.template_kind == "custom"
        assert not any(s.completed for s in p.sessions)

    def test_per_exercise_increment_override(self):
        """205 * 0.85 = 174.25: step 5 -> 175, step 10 -> 170."""
        assert generate_progression(_request(current_max=205, target_max=305), Settings()).starting_weight == 175.0

        settings = Settings(exercises={
            "squat": ExerciseOverrides("squat", use_custom_rules=True, weight_increment=10.0),
        })
        assert generate_progression(_request(current_max=205, target_max=305), settings).starting_weight == 170.0

    def test_metric_rounding(self):
        """203 * 0.85 = 172.55: step 5 -> 175, step 2.5 -> 172.5."""
        p = generate_progression(_request(current_max=203), Settings(use_metric=True))
        assert p.starting_weight == 172.5


class TestPeriodization:

    def test_three_week_wave(self):
        """
        start 170, weekly 5:
            week 1: 170 * 0.90 = 153   -> 155
            week 2: 170 * 0.95 = 161.5 -> 160
            week 3: 170 * 1.00         =  170
            week 4: (170 + 15) * 0.90 = 166.5 -> 165
        """
        assert week_weight(1, 170, 5, "periodization", 5.0) == 155.0
        assert week_weight(2, 170, 5, "periodization", 5.0) == 160.0
        assert week_weight(3, 170, 5, "periodization", 5.0) == 170.0
        assert week_weight(4, 170, 5, "periodization", 5.0) == 165.0

    def test_generated_progression_uses_wave(self):
        p = generate_progression(
            _request(target_max=260, total_weeks=12, progression_style="periodization"), Settings()
        )
        by_week = {s.week_number: s.planned_weight for s in p.sessions}
        assert by_week[1] == 155.0
        assert by_week[3] == 170.0

    @pytest.mark.parametrize("style", ["linear", "rpe", "percentage"])
    def test_other_styles_are_linear(self, style):
        assert week_weight(4, 170, 5, style, 5.0) == 185.0


class TestGenerationValidation:

    @pytest.mark.parametrize("overrides, constraint", [
        ({"target_max": 200}, Constraint.TARGET_NOT_ABOVE_CURRENT),
        ({"target_max": 150}, Constraint.TARGET_NOT_ABOVE_CURRENT),
        ({"total_weeks": 0}, Constraint.NON_POSITIVE_COUNT),
        ({"sets": -1}, Constraint.NON_POSITIVE_COUNT),
        ({"sessions_per_week": 8}, Constraint.TOO_MANY_SESSIONS),
        ({"current_max": "abc"}, Constraint.INVALID_WEIGHT),
        ({"exercise_name": "   "}, Constraint.EMPTY_NAME),
        ({"template_kind": "bogus"}, Constraint.UNKNOWN_TEMPLATE),
        ({"progression_style": "bogus"}, Constraint.UNKNOWN_STYLE),
        ({"start_date": "2026-13-01"}, Constraint.INVALID_DATE),
    ])
    def test_rejected_requests(self, overrides, constraint):
        with pytest.raises(ValidationError) as exc:
            generate_progression(_request(**overrides), Settings())
        assert exc.value.constraint == constraint

    def test_name_is_trimmed(self):
        assert generate_progression(_request(exercise_name="  Squat "), Settings()).exercise_name == "Squat"


# ===========================================================================
# Evaluation
# ===========================================================================

class TestEvaluation:

    def test_reference_tiers(self, rules):
        """15 planned reps: 15 -> 100 %, 8 -> 53.3 %, 5 -> 33.3 %."""
        assert evaluate_session(_session([5, 5, 5]), rules).adjustment == ContinueAsPlanned()
        assert evaluate_session(_session([5, 3, 0]), rules).adjustment == RepeatWeight()
        assert evaluate_session(_session([2, 2, 1]), rules).adjustment == ReduceBy(5.0)

    def test_boundaries_are_inclusive(self, rules):
        """20 planned reps: 18 = 90 %, 15 = 75 %, 10 = 50 %, 9 = 45 %."""
        assert evaluate_percentage(90.0, rules).tier == "excellent"
        assert evaluate_percentage(75.0, rules).tier == "good"
        assert evaluate_percentage(50.0, rules).tier == "repeat"
        assert evaluate_percentage(45.0, rules).tier == "reduce"

    def test_good_tier_continues(self, rules):
        ev = evaluate_session(_session([5, 4, 3]), rules)  # 12 / 15 = 80 %
        assert ev.tier == "good"
        assert ev.adjustment == ContinueAsPlanned()
        assert not ev.needs_decision

    def test_deload_at_checkpoint(self, rules):
        ev = evaluate_session(_session([2, 2, 1]), rules, at_deload_checkpoint=True)
        assert ev.adjustment == Deload(10.0)

    def test_checkpoint_only_below_adjustment_threshold(self, rules):
        ev = evaluate_session(_session([5, 3, 0]), rules, at_deload_checkpoint=True)
        assert ev.adjustment == RepeatWeight()

    def test_deload_checkpoint_weeks(self):
        on = Settings(auto_deload_enabled=True, auto_deload_frequency=4).rules_for("Squat")
        assert is_deload_checkpoint(8, on)
        assert not is_deload_checkpoint(6, on)
        assert not is_deload_checkpoint(8, Settings().rules_for("Squat"))

    def test_nothing_planned_is_zero_percent(self, rules):
        session = _session([])
        assert session.performance_percentage == 0.0
        assert evaluate_session(session, rules).tier == "reduce"

    def test_messages(self):
        assert ReduceBy(5.0).message == "Performance below target. Reduce future weights by 5.0%?"
        assert "10.0%" in Deload(10.0).message

    def test_evaluation_does_not_mutate(self, rules):
        session = _session([2, 2, 1])
        evaluate_session(session, rules)
        assert session.planned_weight == 200.0
        assert not session.completed


# ===========================================================================
# Adjustment
# ===========================================================================

class TestAdjustment:

    @pytest.fixture
    def progression(self):
        # 170, 175, 180, ... 215
        return generate_progression(_request(), Settings())

    def _week(self, p, week):
        return next(s for s in p.sessions if s.week_number == week)

    def test_reduce_only_touches_later_open_sessions(self, progression, rules):
        """ReduceBy(10): week 3 planned 180 * 0.9 = 162 -> 160."""
        w1, w2 = self._week(progression, 1), self._week(progression, 2)
        _complete(w1)
        _complete(w2, "2026-01-12")

        changed = apply_adjustment(progression, w2, ReduceBy(10.0), rules)

        assert changed == 8
        assert w1.planned_weight == 170.0
        assert w2.planned_weight == 175.0
        w3 = self._week(progression, 3)
        assert w3.planned_weight == 160.0
        assert all(s.target_weight == 160.0 for s in w3.sets)

    def test_two_done_three_ahead(self, rules):
        """
        5 weeks (weekly 10): 170, 180, 190, 200, 210.
        Weeks 1-2 done; ReduceBy(10): 190 -> 171 -> 170, 200 -> 180, 210 -> 189 -> 190.
        """
        p = generate_progression(_request(total_weeks=5), Settings())
        w1, w2 = self._week(p, 1), self._week(p, 2)
        _complete(w1)
        _complete(w2, "2026-01-12")
        done_before = [(s.target_weight, s.actual_reps) for s in (*w1.sets, *w2.sets)]

        assert apply_adjustment(p, w2, ReduceBy(10.0), rules) == 3

        assert [self._week(p, w).planned_weight for w in (1, 2, 3, 4, 5)] == [170.0, 180.0, 170.0, 180.0, 190.0]
        assert [(s.target_weight, s.actual_reps) for s in (*w1.sets, *w2.sets)] == done_before
        assert all(s.target_weight == 180.0 for s in self._week(p, 4).sets)

    def test_reduce_compounds(self, progression, rules):
        """180 -> 162 -> 160, then 160 * 0.9 = 144 -> 145."""
        w1 = self._week(progression, 1)
        apply_adjustment(progression, w1, ReduceBy(10.0), rules)
        apply_adjustment(progression, w1, ReduceBy(10.0), rules)
        assert self._week(progression, 3).planned_weight == 145.0

    def test_repeat_freezes_at_evaluated_weight(self, progression, rules):
        w2 = self._week(progression, 2)
        apply_adjustment(progression, w2, RepeatWeight(), rules)
        assert {s.planned_weight for s in progression.sessions if s.week_number > 2} == {175.0}
        assert self._week(progression, 1).planned_weight == 170.0

    def test_continue_changes_nothing(self, progression, rules):
        before = [s.planned_weight for s in progression.all_sessions()]
        assert apply_adjustment(progression, self._week(progression, 1), ContinueAsPlanned(), rules) == 0
        assert [s.planned_weight for s in progression.all_sessions()] == before

    def test_completed_sets_are_untouched(self, progression, rules):
        w3 = self._week(progression, 3)
        w3.sets[0].actual_reps = 5
        w3.sets[0].completed = True

        apply_adjustment(progression, self._week(progression, 1), ReduceBy(10.0), rules)

        assert w3.sets[0].target_weight == 180.0
        assert [s.target_weight for s in w3.sets[1:]] == [160.0, 160.0]

    def test_completed_sessions_are_out_of_scope(self, progression):
        w1 = self._week(progression, 1)
        w5 = self._week(progression, 5)
        _complete(w5, "2026-02-02")
        scope = downstream_sessions(progression, w1)
        assert w5 not in scope
        assert len(scope) == 8

    def test_frozen_data_refuses_changes(self, progression):
        w1 = self._week(progression, 1)
        _complete(w1)
        with pytest.raises(InvariantViolation):
            w1.set_planned_weight(100.0)
        with pytest.raises(InvariantViolation):
            w1.sets[0].retarget(100.0)


# ===========================================================================
# Week advancement and lifecycle
# ===========================================================================

class TestAdvancement:

    @pytest.fixture
    def progression(self):
        return generate_progression(_request(total_weeks=3, sessions_per_week=2), Settings())

    def test_advances_only_when_week_is_done(self, progression):
        day1, day2 = [s for s in progression.all_sessions() if s.week_number == 1]
        _complete(day1)
        assert not advance_week(progression, 1)
        assert progression.current_week == 1

        _complete(day2, "2026-01-08")
        assert advance_week(progression, 1)
        assert progression.current_week == 2

    def test_past_week_does_not_advance(self, progression):
        for s in progression.all_sessions():
            if s.week_number <= 2:
                _complete(s)
        assert advance_week(progression, 1)
        assert advance_week(progression, 2)
        assert progression.current_week == 3
        assert not advance_week(progression, 1)
        assert progression.current_week == 3

    def test_monotonic_and_stops_at_final_week(self, progression):
        weeks = []
        for s in progression.all_sessions():
            _complete(s)
            before = progression.current_week
            advance_week(progression, s.week_number)
            assert progression.current_week in (before, before + 1)
            weeks.append(progression.current_week)
        assert weeks == sorted(weeks)
        assert progression.current_week == 3
        assert is_week_complete(progression, 3)

    def test_owner_refuses_to_pass_last_week(self, progression):
        progression.current_week = 3
        with pytest.raises(InvariantViolation):
            progression.advance_week()

    def test_week_number_is_immutable(self, progression):
        with pytest.raises(InvariantViolation):
            progression.sessions[0].week_number = 3


class TestStatusTransitions:

    def test_pause_resume_complete(self):
        p = generate_progression(_request(), Settings())
        set_status(p, "paused")
        set_status(p, "active")
        set_status(p, "completed")
        assert p.status == "completed"

    def test_completed_is_terminal(self):
        p = generate_progression(_request(), Settings())
        set_status(p, "completed")
        with pytest.raises(InvariantViolation):
            set_status(p, "active")

    def test_unknown_status(self):
        p = generate_progression(_request(), Settings())
        with pytest.raises(ValidationError) as exc:
            set_status(p, "archived")
        assert exc.value.constraint == Constraint.UNKNOWN_STATUS


# ===========================================================================
# Settings
# ===========================================================================

class TestSettings:

    def test_defaults(self):
        s = Settings()
        assert (s.excellent_threshold, s.good_threshold, s.adjustment_threshold) == (90, 75, 50)
        assert s.adjustment_mode == "prompt"

    def test_thresholds_must_descend(self):
        with pytest.raises(ValidationError) as exc:
            Settings(good_threshold=95)
        assert exc.value.constraint == Constraint.INVALID_SETTING

    def test_unknown_mode(self):
        with pytest.raises(ValidationError):
            Settings(adjustment_mode="sometimes")

    def test_override_applies_only_with_custom_rules(self):
        off = Settings(exercises={"Deadlift": ExerciseOverrides("Deadlift", reduction_percent=3.0)})
        assert off.rules_for("Deadlift").reduction_percent == 5.0

        on = Settings(exercises={
            "Deadlift": ExerciseOverrides("Deadlift", use_custom_rules=True, reduction_percent=3.0),
        })
        assert on.rules_for("deadlift").reduction_percent == 3.0
        assert on.rules_for("Deadlift").excellent_threshold == 90
        assert on.rules_for("Squat").reduction_percent == 5.0

    def test_merged_thresholds_are_checked(self):
        s = Settings(exercises={
            "Squat": ExerciseOverrides("Squat", use_custom_rules=True, good_threshold=95),
        })
        with pytest.raises(ValidationError):
            s.rules_for("Squat")

    def test_progression_increment(self):
        rules = Settings().rules_for("Deadlift")
        assert rules.progression_increment("lower", 2.0) == 10.0
        assert rules.progression_increment("upper") == 2.5

    def test_preset_then_explicit_keys(self):
        s = settings_from_dict({"progression": {"preset": "conservative", "reduction_percent": 4.0}})
        assert s.excellent_threshold == 95
        assert s.reduction_percent == 4.0

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            settings_from_dict({"progression": {"reducton_percent": 4.0}})

    def test_apply_unknown_preset(self):
        with pytest.raises(ValidationError):
            apply_preset(Settings(), "reckless")


class TestConfigLoader:

    def test_bundled_defaults(self, temp_home):
        s = load_settings(temp_home / "missing.yaml")
        assert s == Settings()

    def test_user_file_is_merged(self, temp_home):
        path = temp_home / "settings.yaml"
        path.write_text(
            "progression:\n"
            "  adjustment_mode: auto_adjust\n"
            "exercises:\n"
            "  Deadlift:\n"
            "    use_custom_rules: true\n"
            "    weight_increment: 10.0\n"
        )
        s = load_settings(path)
        assert s.adjustment_mode == "auto_adjust"
        assert s.excellent_threshold == 90
        assert s.rules_for("Deadlift").weight_increment == 10.0

    def test_malformed_user_file_warns_and_is_ignored(self, temp_home):
        path = temp_home / "settings.yaml"
        path.write_text("progression: [unclosed\n")
        with pytest.warns(UserWarning, match="Ignoring"):
            s = load_settings(path)
        assert s == Settings()

    def test_invalid_values_raise(self, temp_home):
        path = temp_home / "settings.yaml"
        path.write_text("progression:\n  good_threshold: 99\n")
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_save_and_reload(self, temp_home):
        path = temp_home / "nested" / "settings.yaml"
        settings = Settings(
            use_metric=True,
            exercises={"Squat": ExerciseOverrides("Squat", use_custom_rules=True, deload_percent=15.0)},
        )
        assert save_user_settings(settings, path) == path
        assert load_settings(path) == settings


# ===========================================================================
# Plates
# ===========================================================================

class TestPlates:

    def test_reference_example(self):
        """(225 - 45) / 2 = 90 per side -> two 45s."""
        result = calculate_plates(225.0)
        assert result.is_exact
        assert [(p.plate_weight, p.per_side) for p in result.plates] == [(45.0, 2)]
        assert result.total_plates == 4
        assert result.actual_weight == 225.0

    def test_mixed_plates(self):
        """(185 - 45) / 2 = 70 -> 45 + 25."""
        result = calculate_plates(185.0)
        assert [(p.plate_weight, p.per_side) for p in result.plates] == [(45.0, 1), (25.0, 1)]

    def test_empty_bar(self):
        result = calculate_plates(45.0)
        assert result.plates == ()
        assert result.is_exact

    def test_below_bar(self):
        assert calculate_plates(40.0) is None

    def test_nothing_fits_is_bare_bar(self):
        """(47 - 45) / 2 = 1 per side, below the smallest 2.5 plate."""
        result = calculate_plates(47.0)
        assert result is not None
        assert result.plates == ()
        assert result.actual_weight == 45.0
        assert not result.is_exact

    def test_unreachable_rounds_down(self):
        """(226 - 45) / 2 = 90.5 -> 90 loadable."""
        result = calculate_plates(226.0)
        assert not result.is_exact
        assert result.actual_weight == 225.0

    def test_collars_add_to_total(self):
        assert calculate_plates(225.0, collar_weight=5.0).actual_weight == 230.0

    def test_heavy_target(self):
        """(600 - 45) / 2 = 277.5 -> six 45s + 5 + 2.5."""
        result = calculate_plates(600.0)
        assert result.is_exact
        assert result.actual_weight == 600.0

    def test_limited_inventory(self):
        """Only two 45s in total: one per side, the rest cannot be loaded."""
        result = calculate_plates(225.0, plates={45.0: 2})
        assert result.actual_weight == 135.0
        assert not result.is_exact
