# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle Journal — mutations of the in-memory entry and goal lists.

The module-level functions are pure: they take a list and return a new
one, raising on duplicate or unknown ids. Journal wraps them for a session:
load once, mutate, hand the whole list to the store after each change.

    journal = Journal(EntryStore())
    journal.log(Emotion.HAPPY, intensity=7, mood="great day")
    goal = journal.create_goal("Run 5k", category=GoalCategory.HEALTH)
    journal.set_progress(goal.id, 40)
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from mogle.events import bus, Events
from mogle.schemas import (
    Emotion, EmotionEntry, Goal, GoalCategory, GoalStatus,
    MogleNotFoundError, MogleValidationError, status_for_progress,
)
from mogle.store import EntryStore, SaveOutcome

logger = logging.getLogger("mogle.journal")

DEFAULT_GOAL_DAYS = 30


def _timestamp_id(now: datetime) -> str:
    return str(int(now.timestamp() * 1000))


def _free_id(item, items: Sequence):
    """Bump a timestamp id past any id already taken in `items`."""
    taken = {i.id for i in items}
    if item.id not in taken or not item.id.isdigit():
        return item
    n = int(item.id)
    while str(n) in taken:
        n += 1
    return item.model_copy(update={"id": str(n)})


# ============================================================================
# Factories
# ============================================================================

def new_entry(
    emotion: Emotion,
    intensity: int = 5,
    mood: str = "",
    note: str = "",
    now: Optional[datetime] = None,
) -> EmotionEntry:
    now = now or datetime.now()
    return EmotionEntry(
        id=_timestamp_id(now), date=now, emotion=Emotion(emotion),
        intensity=intensity, mood=mood, note=note,
    )


def new_goal(
    title: str,
    description: str = "",
    category: GoalCategory = GoalCategory.PERSONAL,
    days_to_complete: int = DEFAULT_GOAL_DAYS,
    now: Optional[datetime] = None,
) -> Goal:
    """Fresh active goal at 0%, due `days_to_complete` days from now."""
    if not title.strip():
        raise MogleValidationError("Goal title must not be empty")
    now = now or datetime.now()
    return Goal(
        id=_timestamp_id(now),
        title=title.strip(),
        description=description,
        target_date=now + timedelta(days=days_to_complete),
        progress=0,
        category=GoalCategory(category),
        status=GoalStatus.ACTIVE,
        created_at=now,
    )


# ============================================================================
# Pure list operations
# ============================================================================

def _index(items: Sequence, item_id: str, kind: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    raise MogleNotFoundError(f"{kind} {item_id!r} not found")


def add_entry(entries: Sequence[EmotionEntry], entry: EmotionEntry) -> List[EmotionEntry]:
    if any(e.id == entry.id for e in entries):
        raise MogleValidationError(f"Entry {entry.id!r} already exists")
    return [*entries, entry]


def delete_entry(entries: Sequence[EmotionEntry], entry_id: str) -> List[EmotionEntry]:
    _index(entries, entry_id, "Entry")
    return [e for e in entries if e.id != entry_id]


def add_goal(goals: Sequence[Goal], goal: Goal) -> List[Goal]:
    if any(g.id == goal.id for g in goals):
        raise MogleValidationError(f"Goal {goal.id!r} already exists")
    return [*goals, goal]


def update_goal(goals: Sequence[Goal], goal: Goal) -> List[Goal]:
    """Replace the goal with the same id."""
    i = _index(goals, goal.id, "Goal")
    updated = list(goals)
    updated[i] = goal
    return updated


def delete_goal(goals: Sequence[Goal], goal_id: str) -> List[Goal]:
    _index(goals, goal_id, "Goal")
    return [g for g in goals if g.id != goal_id]


def set_goal_progress(goal: Goal, progress: int) -> Goal:
    """
    New goal with progress clamped to 0..100 and status recomputed.

    Recomputing also lifts a pause: any progress update makes the goal
    active (or completed) again.
    """
    # model_copy skips validators, so clamp here
    p = max(0, min(100, int(progress)))
    return goal.model_copy(update={"progress": p, "status": status_for_progress(p)})


def pause_goal(goal: Goal) -> Goal:
    return goal.model_copy(update={"status": GoalStatus.PAUSED})


# ============================================================================
# Journal session
# ============================================================================

class Journal:
    """In-memory lists backed by an EntryStore. Persists after every mutation."""

    def __init__(self, store: Optional[EntryStore] = None):
        self.store = store or EntryStore()
        self.entries: List[EmotionEntry] = self.store.load_emotions()
        self.goals: List[Goal] = self.store.load_goals()
        self.last_save: Optional[SaveOutcome] = None
        logger.debug("Journal loaded: %d entries, %d goals", len(self.entries), len(self.goals))

    def _save_entries(self) -> SaveOutcome:
        self.last_save = self.store.save_emotions(self.entries)
        return self.last_save

    def _save_goals(self) -> SaveOutcome:
        self.last_save = self.store.save_goals(self.goals)
        return self.last_save

    # --- Entries ---

    def log(self, emotion: Emotion, intensity: int = 5, mood: str = "",
            note: str = "", now: Optional[datetime] = None) -> EmotionEntry:
        """Create and add an entry stamped now."""
        entry = _free_id(new_entry(emotion, intensity=intensity, mood=mood, note=note, now=now),
                         self.entries)
        self.add_entry(entry)
        return entry

    def add_entry(self, entry: EmotionEntry) -> SaveOutcome:
        self.entries = add_entry(self.entries, entry)
        bus.emit(Events.ENTRY_ADDED, {"id": entry.id, "emotion": entry.emotion.value},
                 source="journal")
        return self._save_entries()

    def delete_entry(self, entry_id: str) -> SaveOutcome:
        self.entries = delete_entry(self.entries, entry_id)
        bus.emit(Events.ENTRY_DELETED, {"id": entry_id}, source="journal")
        return self._save_entries()

    # --- Goals ---

    def goal(self, goal_id: str) -> Goal:
        return self.goals[_index(self.goals, goal_id, "Goal")]

    def create_goal(self, title: str, description: str = "",
                    category: GoalCategory = GoalCategory.PERSONAL,
                    days_to_complete: int = DEFAULT_GOAL_DAYS,
                    now: Optional[datetime] = None) -> Goal:
        """Build a new goal with a free id and add it."""
        goal = new_goal(title, description=description, category=category,
                        days_to_complete=days_to_complete, now=now)
        return self.add_goal(_free_id(goal, self.goals))

    def add_goal(self, goal: Goal) -> Goal:
        self.goals = add_goal(self.goals, goal)
        bus.emit(Events.GOAL_ADDED, {"id": goal.id, "title": goal.title}, source="journal")
        self._save_goals()
        return goal

    def update_goal(self, goal: Goal) -> Goal:
        self.goals = update_goal(self.goals, goal)
        bus.emit(Events.GOAL_UPDATED, {
            "id": goal.id, "progress": goal.progress, "status": goal.status.value,
        }, source="journal")
        self._save_goals()
        return goal

    def set_progress(self, goal_id: str, progress: int) -> Goal:
        return self.update_goal(set_goal_progress(self.goal(goal_id), progress))

    def pause(self, goal_id: str) -> Goal:
        return self.update_goal(pause_goal(self.goal(goal_id)))

    def delete_goal(self, goal_id: str) -> SaveOutcome:
        self.goals = delete_goal(self.goals, goal_id)
        bus.emit(Events.GOAL_DELETED, {"id": goal_id}, source="journal")
        return self._save_goals()
