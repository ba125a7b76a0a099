"""
Week advancement.

After a completion write, the owner's current week moves forward by one
when every workout instance of the completed week is done.  For programs
an instance is the group of exercise sessions sharing a session number;
for progressions each session is its own instance.
"""

from collections import defaultdict

from .models import Owner, Program


def week_instances(owner: Owner, week: int) -> list[list]:
    """Workout instances (lists of sessions) scheduled in ``week``."""
    if isinstance(owner, Program):
        groups: dict[int, list] = defaultdict(list)
        for s in owner.all_sessions():
            groups[s.session_number].append(s)
        return [g for g in groups.values() if g[0].week_number == week]
    return [[s] for s in owner.all_sessions() if s.week_number == week]


def is_week_complete(owner: Owner, week: int) -> bool:
    """True when the week has at least one instance and all of them are complete."""
    instances = week_instances(owner, week)
    return bool(instances) and all(all(s.completed for s in group) for group in instances)


def advance_week(owner: Owner, completed_week: int) -> bool:
    """
    Advance ``owner.current_week`` by one if ``completed_week`` is finished.

    Never decrements or skips; a no-op at the final week and for weeks
    already behind the counter.

    Returns:
        True if the counter moved
    """
    if owner.current_week >= owner.total_weeks:
        return False
    if completed_week < owner.current_week:
        return False
    if not is_week_complete(owner, completed_week):
        return False
    owner.advance_week()
    return True
