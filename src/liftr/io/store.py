"""
JSON document storage for progressions and programs.

The whole schedule lives in one JSON file.  Mutations happen in memory on
the loaded entities; ``commit()`` writes the document atomically (temp file
then ``os.replace``).  ``rollback()`` restores the last committed state, or
the in-memory state captured by an earlier ``savepoint()``.
"""

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core.engine.config_loader import get_liftr_home
from ..core.errors import InvariantViolation, PersistenceError, ValidationError
from ..core.models import (
    ExerciseSession,
    Program,
    ProgramExercise,
    Progression,
    TrainingDay,
    WorkoutSession,
    WorkoutSet,
)
from .serializers import dict_to_document, document_to_dict

Entity = Progression | WorkoutSession | WorkoutSet | Program | TrainingDay | ProgramExercise | ExerciseSession


@dataclass
class Savepoint:
    """Stored roots plus a field snapshot of every entity below them."""

    progressions: list[Progression]
    programs: list[Program]
    states: list[tuple[Entity, dict[str, Any]]]


def _entity_state(entity: Entity) -> dict[str, Any]:
    # Child lists are copied; the children themselves are captured separately
    return {k: list(v) if isinstance(v, list) else v for k, v in vars(entity).items()}


def _walk_roots(progressions: list[Progression], programs: list[Program]):
    """Yield every entity under the given roots."""
    for p in progressions:
        yield p
        for session in p.sessions:
            yield session
            yield from session.sets
    for program in programs:
        yield program
        for day in program.training_days:
            yield day
            yield from day.exercises
            for session in day.sessions:
                yield session
                yield from session.sets


class ScheduleStore:
    """
    Unit-of-work store over a single JSON document.

    Roots (Progression, Program) are inserted and deleted explicitly;
    everything below them is reached through ownership and deleted by
    cascade.  A TrainingDay may also be deleted on its own, taking its
    exercises and sessions with it.
    """

    def __init__(self, store_path: str | Path):
        """
        Initialize the store.

        Args:
            store_path: Path to the JSON document
        """
        self.store_path = Path(store_path)
        self._progressions: list[Progression] = []
        self._programs: list[Program] = []
        self._committed: dict[str, Any] = document_to_dict([], [])

    def exists(self) -> bool:
        """Check if the store file exists."""
        return self.store_path.exists()

    def load(self) -> "ScheduleStore":
        """
        Load the committed document; a missing file is an empty store.

        Raises:
            ValidationError: If the file is not valid JSON or holds invalid records
        """
        if self.store_path.exists():
            try:
                with open(self.store_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Error parsing {self.store_path}: {e}") from e
            except OSError as e:
                raise PersistenceError(f"Cannot read {self.store_path}: {e}") from e
        else:
            data = document_to_dict([], [])

        self._progressions, self._programs = dict_to_document(data)
        self._committed = data
        return self

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def progressions(self) -> list[Progression]:
        return list(self._progressions)

    def programs(self) -> list[Program]:
        return list(self._programs)

    def _walk(self):
        """Yield every entity in the tree."""
        return _walk_roots(self._progressions, self._programs)

    def get(self, entity_id: str) -> Entity | None:
        """Find any entity by id (or unique id prefix of at least 4 characters)."""
        exact = next((e for e in self._walk() if e.id == entity_id), None)
        if exact is not None or len(entity_id) < 4:
            return exact
        matches = [e for e in self._walk() if e.id.startswith(entity_id)]
        return matches[0] if len(matches) == 1 else None

    def owner_of(self, entity: Entity) -> Progression | Program | None:
        """Return the root that owns ``entity`` (itself for roots)."""
        for root in (*self._progressions, *self._programs):
            if root is entity:
                return root
        for p in self._progressions:
            for session in p.sessions:
                if session is entity or any(s is entity for s in session.sets):
                    return p
        for program in self._programs:
            for day in program.training_days:
                if day is entity or any(e is entity for e in day.exercises):
                    return program
                for session in day.sessions:
                    if session is entity or any(s is entity for s in session.sets):
                        return program
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, root: Progression | Program) -> None:
        """Stage a newly generated root for the next commit."""
        if isinstance(root, Progression):
            if any(p.id == root.id for p in self._progressions):
                raise InvariantViolation(f"Progression {root.id} is already stored")
            self._progressions.append(root)
        elif isinstance(root, Program):
            if any(p.id == root.id for p in self._programs):
                raise InvariantViolation(f"Program {root.id} is already stored")
            self._programs.append(root)
        else:
            raise InvariantViolation(f"Only progressions and programs can be inserted, got {type(root).__name__}")

    def delete(self, entity: Progression | Program | TrainingDay) -> None:
        """
        Stage a cascade delete of a root or a training day.

        Raises:
            InvariantViolation: For entities that cannot be deleted on their own
        """
        if isinstance(entity, Progression):
            self._progressions = [p for p in self._progressions if p is not entity]
        elif isinstance(entity, Program):
            self._programs = [p for p in self._programs if p is not entity]
        elif isinstance(entity, TrainingDay):
            for program in self._programs:
                program.training_days = [d for d in program.training_days if d is not entity]
        else:
            raise InvariantViolation(
                f"{type(entity).__name__} cannot be deleted individually; delete its owner instead"
            )

    def commit(self) -> None:
        """
        Write the in-memory state atomically.

        Raises:
            PersistenceError: If the file cannot be written; the committed
                document is unchanged and pending changes are kept
        """
        data = document_to_dict(self._progressions, self._programs)
        tmp_name = None
        try:
            self.store_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.store_path.name}.", suffix=".tmp", dir=self.store_path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.store_path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.store_path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        self._committed = data

    def savepoint(self, *roots: Progression | Program) -> Savepoint:
        """
        Capture the in-memory state of every stored entity.

        ``roots`` adds entities that are not (yet) stored, so callers can
        protect objects they hold directly.
        """
        progressions = list(self._progressions)
        programs = list(self._programs)
        extra_progressions = [r for r in roots if isinstance(r, Progression) and r not in progressions]
        extra_programs = [r for r in roots if isinstance(r, Program) and r not in programs]
        states = [
            (entity, _entity_state(entity))
            for entity in _walk_roots(progressions + extra_progressions, programs + extra_programs)
        ]
        return Savepoint(progressions, programs, states)

    def rollback(self, savepoint: Savepoint | None = None) -> None:
        """
        Discard pending changes.

        With a ``savepoint`` the entities captured there are restored in
        place, so references the caller holds stay valid and reflect the
        state at that moment.  Without one the store is rebuilt from the
        last committed document.
        """
        if savepoint is None:
            self._progressions, self._programs = dict_to_document(self._committed)
            return
        for entity, state in savepoint.states:
            attrs = vars(entity)
            attrs.clear()
            attrs.update(state)
        self._progressions = list(savepoint.progressions)
        self._programs = list(savepoint.programs)


def get_default_store_path() -> Path:
    """Default store location: $LIFTR_HOME/schedule.json or ~/.liftr/schedule.json."""
    return get_liftr_home() / "schedule.json"


def get_default_store() -> ScheduleStore:
    return ScheduleStore(get_default_store_path())
