# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Tests for journal operations and the persisted Journal session."""

from datetime import timedelta

import pytest

from mogle.events import bus, Events
from mogle.journal import (
    Journal, add_entry, add_goal, delete_entry, delete_goal, new_entry, new_goal,
    pause_goal, set_goal_progress, update_goal,
)
from mogle.schemas import (
    Emotion, GoalCategory, GoalStatus, MogleNotFoundError, MogleValidationError,
)
from mogle.store import EntryStore, SaveStatus


@pytest.fixture
def goal(now):
    return new_goal("Run 5k", category=GoalCategory.HEALTH, now=now)


class TestFactories:

    def test_new_entry(self, now):
        e = new_entry(Emotion.HAPPY, intensity=7, mood="great day", now=now)
        assert e.id == str(int(now.timestamp() * 1000))
        assert e.date == now
        assert e.score == 4

    def test_new_entry_accepts_string_emotion(self, now):
        assert new_entry("very-sad", now=now).emotion is Emotion.VERY_SAD

    def test_new_goal_defaults(self, goal, now):
        assert goal.progress == 0
        assert goal.status is GoalStatus.ACTIVE
        assert goal.created_at == now
        assert goal.target_date == now + timedelta(days=30)

    def test_new_goal_custom_days(self, now):
        assert new_goal("x", days_to_complete=7, now=now).target_date == now + timedelta(days=7)

    def test_blank_title_rejected(self):
        with pytest.raises(MogleValidationError):
            new_goal("   ")


class TestEntryOperations:

    def test_add_returns_new_list(self, now):
        original = []
        e = new_entry(Emotion.SAD, now=now)
        updated = add_entry(original, e)
        assert updated == [e]
        assert original == []

    def test_duplicate_id_rejected(self, now):
        e = new_entry(Emotion.SAD, now=now)
        with pytest.raises(MogleValidationError):
            add_entry([e], e)

    def test_delete(self, entries_of, now):
        entries = entries_of([1, 2, 3], now)
        assert [e.id for e in delete_entry(entries, "e1")] == ["e0", "e2"]

    def test_delete_unknown(self, entries_of, now):
        with pytest.raises(MogleNotFoundError):
            delete_entry(entries_of([1], now), "nope")


class TestGoalOperations:

    def test_progress_100_completes(self, goal):
        assert set_goal_progress(goal, 100).status is GoalStatus.COMPLETED

    def test_progress_back_to_99_reactivates(self, goal):
        done = set_goal_progress(goal, 100)
        again = set_goal_progress(done, 99)
        assert again.status is GoalStatus.ACTIVE
        assert again.progress == 99

    @pytest.mark.parametrize("value,expected", [(150, 100), (-5, 0), (55, 55)])
    def test_progress_clamped(self, goal, value, expected):
        assert set_goal_progress(goal, value).progress == expected

    def test_progress_keeps_identity_fields(self, goal):
        updated = set_goal_progress(goal, 20)
        assert updated.id == goal.id
        assert updated.created_at == goal.created_at
        assert updated.target_date == goal.target_date

    def test_pause_then_progress_recomputes(self, goal):
        paused = pause_goal(goal)
        assert paused.status is GoalStatus.PAUSED
        assert set_goal_progress(paused, 10).status is GoalStatus.ACTIVE

    def test_update_replaces_by_id(self, goal):
        goals = add_goal([], goal)
        changed = set_goal_progress(goal, 30)
        assert update_goal(goals, changed)[0].progress == 30

    def test_update_unknown(self, goal):
        with pytest.raises(MogleNotFoundError):
            update_goal([], goal)

    def test_duplicate_goal(self, goal):
        with pytest.raises(MogleValidationError):
            add_goal([goal], goal)

    def test_delete_goal(self, goal):
        assert delete_goal([goal], goal.id) == []
        with pytest.raises(MogleNotFoundError):
            delete_goal([], goal.id)


class TestJournalSession:

    def test_log_persists(self, now):
        journal = Journal(EntryStore())
        entry = journal.log(Emotion.HAPPY, intensity=6, mood="sunny", now=now)
        assert journal.last_save.status is SaveStatus.SAVED
        reopened = Journal(EntryStore())
        assert [e.id for e in reopened.entries] == [entry.id]

    def test_goal_lifecycle_persists(self, goal):
        journal = Journal(EntryStore())
        journal.add_goal(goal)
        journal.set_progress(goal.id, 100)
        reopened = Journal(EntryStore())
        assert reopened.goal(goal.id).status is GoalStatus.COMPLETED
        reopened.pause(goal.id)
        assert Journal(EntryStore()).goal(goal.id).status is GoalStatus.PAUSED

    def test_events_emitted(self, goal, now):
        seen = []
        for name in (Events.ENTRY_ADDED, Events.GOAL_ADDED, Events.GOAL_UPDATED, Events.GOAL_DELETED):
            bus.on(name, lambda e: seen.append(e.type))
        journal = Journal(EntryStore())
        journal.log(Emotion.NEUTRAL, now=now)
        journal.add_goal(goal)
        journal.set_progress(goal.id, 5)
        journal.delete_goal(goal.id)
        assert seen == ["entry_added", "goal_added", "goal_updated", "goal_deleted"]

    def test_deleting_last_entry_is_not_persisted(self, now):
        # Empty saves are ignored by the store, so the last record stays on disk
        journal = Journal(EntryStore())
        entry = journal.log(Emotion.SAD, now=now)
        outcome = journal.delete_entry(entry.id)
        assert journal.entries == []
        assert outcome.status is SaveStatus.SKIPPED_EMPTY
        assert len(Journal(EntryStore()).entries) == 1

    def test_unknown_goal(self):
        with pytest.raises(MogleNotFoundError):
            Journal(EntryStore()).set_progress("missing", 10)

    def test_same_millisecond_ids_are_bumped(self, now):
        journal = Journal(EntryStore())
        first = journal.log(Emotion.HAPPY, now=now)
        second = journal.log(Emotion.SAD, now=now)
        assert int(second.id) == int(first.id) + 1
        a = journal.create_goal("a", now=now)
        b = journal.create_goal("b", now=now)
        assert a.id != b.id
        assert len(Journal(EntryStore()).goals) == 2
