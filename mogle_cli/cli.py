# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle CLI — log moods, track goals, read the analysis.

Usage:
    mogle log happy --intensity 7 --mood "great day"
    mogle entries                  List recent entries
    mogle delete <entry-id>        Delete one entry
    mogle goal add "Run 5k" --category health --days 30
    mogle goal progress <id> 40    Set progress (+5 / -5 for a step)
    mogle goal pause <id>
    mogle goal delete <id>
    mogle goal list
    mogle analyze                  Weekly pattern + long-run analysis
    mogle feedback                 One coaching message
    mogle feedback --no-model      Rule-based only, skip the local model
    mogle dashboard                Summary numbers + daily series
    mogle export [PATH]            Write mogle_backup_YYYY-MM-DD.json
    mogle stats                    Record counts
    mogle wipe --yes               Delete ALL data in every tier
    mogle bridge                   Local model status
    mogle --data-dir PATH          Override data directory
"""

import argparse
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from mogle import __version__
from mogle.schemas import (
    Emotion, GoalCategory, MogleNotFoundError, MogleValidationError,
)


@contextmanager
def _open_journal():
    from mogle.journal import Journal

    journal = Journal()
    try:
        yield journal
    finally:
        journal.store.close()


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _notify_recovered(event) -> None:
    d = event.data
    print(f"Notice: {d['collection']} restored from {d['tier']} storage "
          f"({d['count']} records)", file=sys.stderr)


def _notify_degraded(event) -> None:
    d = event.data
    print(f"Warning: primary storage failed for {d['collection']}: {d['error']}",
          file=sys.stderr)


def _check_saved(outcome, action: str) -> None:
    """Exit non-zero when a mutation never reached durable storage."""
    from mogle.store import SaveStatus

    if outcome.status is SaveStatus.FAILED:
        _fail(f"{action} failed: {'; '.join(outcome.errors)}")
    if outcome.status is SaveStatus.FALLBACK:
        print(f"Warning: primary storage unavailable, {action} kept in fallback storage",
              file=sys.stderr)


# ============================================================================
# Entries
# ============================================================================

def _log(args) -> None:
    with _open_journal() as journal:
        entry = journal.log(Emotion(args.emotion), intensity=args.intensity,
                            mood=args.mood, note=args.note)
        _check_saved(journal.last_save, "save")
        print(f"Logged {entry.emotion.value} ({entry.intensity}/10) as {entry.id}")


def _entries(args) -> None:
    with _open_journal() as journal:
        shown = journal.entries[-args.limit:] if args.limit > 0 else journal.entries
        if not shown:
            print("No entries yet.")
            return
        for e in shown:
            mood = f"  {e.mood}" if e.mood else ""
            print(f"{e.id}  {e.date:%Y-%m-%d %H:%M}  {e.emotion.value:<10} "
                  f"{e.intensity:>2}/10{mood}")


def _delete(args) -> None:
    from mogle.store import SaveStatus

    with _open_journal() as journal:
        try:
            outcome = journal.delete_entry(args.entry_id)
        except MogleNotFoundError as e:
            _fail(str(e))
        if outcome.status is SaveStatus.SKIPPED_EMPTY:
            _fail("the last entry cannot be removed on its own, use 'mogle wipe --yes'")
        _check_saved(outcome, "delete")
        print(f"Deleted entry {args.entry_id}")


# ============================================================================
# Goals
# ============================================================================

def _goal_line(goal) -> str:
    from mogle.insights import days_left

    left = days_left(goal)
    due = f"{left}d left" if left > 0 else "due"
    return (f"{goal.id}  [{goal.status.value:<9}] {goal.progress:>3}%  "
            f"{goal.title} ({goal.category.value}, {due})")


def _goal(args, goal_parser) -> None:
    from mogle.insights import days_left, evaluate_goal_progress
    from mogle.store import SaveStatus

    with _open_journal() as journal:
        cmd = args.goal_command
        try:
            if cmd == "add":
                goal = journal.create_goal(
                    args.title, description=args.description,
                    category=GoalCategory(args.category), days_to_complete=args.days,
                )
                _check_saved(journal.last_save, "save")
                print(f"Added goal {goal.id}: {goal.title}")
            elif cmd == "progress":
                raw = args.value.strip()
                current = journal.goal(args.goal_id).progress
                value = current + int(raw) if raw[:1] in "+-" else int(raw)
                goal = journal.set_progress(args.goal_id, value)
                _check_saved(journal.last_save, "save")
                print(_goal_line(goal))
                print("  " + evaluate_goal_progress(max(0, days_left(goal)), 100, goal.progress))
            elif cmd == "pause":
                goal = journal.pause(args.goal_id)
                _check_saved(journal.last_save, "save")
                print(_goal_line(goal))
            elif cmd == "delete":
                outcome = journal.delete_goal(args.goal_id)
                if outcome.status is SaveStatus.SKIPPED_EMPTY:
                    _fail("the last goal cannot be removed on its own, use 'mogle wipe --yes'")
                _check_saved(outcome, "delete")
                print(f"Deleted goal {args.goal_id}")
            elif cmd == "list":
                if not journal.goals:
                    print("No goals yet.")
                for g in journal.goals:
                    print(_goal_line(g))
            else:
                goal_parser.print_help()
                sys.exit(1)
        except (MogleNotFoundError, MogleValidationError) as e:
            _fail(str(e))
        except ValueError as e:
            _fail(f"invalid value: {e}")


# ============================================================================
# Analysis
# ============================================================================

def _analyze(args) -> None:
    from mogle import advanced, patterns
    from mogle.insights import suggest_activities, suggest_daily_goal

    with _open_journal() as journal:
        pattern = patterns.analyze(journal.entries)
        adv = advanced.analyze(journal.entries)

        print(f"Trend: {pattern.emotional_trend}")
        if pattern.has_data:
            print(f"  Average (7d): {pattern.average_score:.2f}/5")
            print(f"  Peaks: {', '.join(pattern.mood_peaks) or '-'}")
            print(f"  Dips:  {', '.join(pattern.mood_dips) or '-'}")
        for line in pattern.insights:
            print(f"  * {line}")
        for line in pattern.recommendations:
            print(f"  > {line}")

        print(f"\nWeekly pattern: {adv.weekly_pattern}")
        print(f"  Health score: {adv.health_score}/100")
        if adv.anomaly_count:
            print(f"  Anomalies: {adv.anomaly_count}")
            for line in adv.anomalies:
                print(f"    - {line}")
        for line in adv.improvement_suggestions:
            print(f"  > {line}")

        if pattern.has_data:
            print("\nTry:")
            for s in suggest_activities(pattern.average_score):
                print(f"  {s}")
        print(f"\nToday: {suggest_daily_goal(journal.entries)}")


def _feedback(args) -> None:
    from mogle import advanced, patterns
    from mogle.bridge import ModelBridge
    from mogle.config import load_config
    from mogle.feedback import FeedbackComposer
    from mogle.insights import time_of_day_tip

    config = load_config()
    bridge = None
    if config.bridge_enabled and not args.no_model:
        bridge = ModelBridge.from_config(config)

    with _open_journal() as journal:
        pattern = patterns.analyze(journal.entries)
        adv = advanced.analyze(journal.entries)

        composer = FeedbackComposer(bridge=bridge, bridge_timeout=config.bridge_timeout)
        try:
            fb = composer.compose(pattern, adv, journal.entries)
        finally:
            composer.close()

        print(f"[{fb.type.value}] {fb.message}")
        print(f"  confidence {fb.confidence:.2f} via {fb.source.value}")
        print(f"  {time_of_day_tip()}")


def _dashboard(args) -> None:
    from mogle.dashboard import daily_series, dashboard_stats, emotion_distribution

    with _open_journal() as journal:
        s = dashboard_stats(journal.entries, journal.goals)

        def fmt(v):
            return "-" if v is None else f"{v:.1f}"

        print(f"Today:   {fmt(s.today_average)} ({s.today_count} entries)")
        print(f"Week:    {fmt(s.week_average)} ({s.week_count} entries, {s.recent_trend.value})")
        print(f"Goals:   {s.active_goals} active, {s.completed_goals} completed, "
              f"avg {s.average_progress}%")

        series = daily_series(journal.entries, days=args.days)
        if series:
            print("\nDaily:")
            for p in series:
                bar = "#" * int(round(p.average_score * 4))
                print(f"  {p.day:%m/%d}  {p.average_score:4.2f}  {bar:<20} "
                      f"max {p.max_intensity}/10")

        dist = emotion_distribution(journal.entries)
        if dist:
            print("\nEmotions: " + ", ".join(f"{name} {count}" for name, count in dist))


# ============================================================================
# Data management
# ============================================================================

def _export(args) -> None:
    from mogle.store import EntryStore

    store = EntryStore()
    try:
        path = store.write_export(args.path)
    except OSError as e:
        _fail(f"export failed: {e}")
    finally:
        store.close()
    print(f"Exported to {path}")


def _stats(args) -> None:
    from mogle.store import EntryStore

    store = EntryStore()
    try:
        s = store.stats()
    finally:
        store.close()
    print(f"Emotions: {s['emotions_count']}")
    print(f"Goals:    {s['goals_count']}")
    print(f"As of:    {s['last_updated']}")


def _wipe(args) -> None:
    from mogle.store import EntryStore

    if not args.yes:
        _fail("this deletes every entry and goal in all storage tiers, re-run with --yes")
    store = EntryStore()
    try:
        errors = store.delete_all()
    finally:
        store.close()
    if errors:
        _fail(f"delete incomplete ({len(errors)} error(s)): {errors[0]}")
    print("All data deleted.")


def _bridge(args) -> None:
    from mogle.bridge import ModelBridge
    from mogle.config import load_config

    config = load_config()
    bridge = ModelBridge.from_config(config)
    ready = bridge.init()
    st = bridge.status()

    print(f"Model bridge: {'ready' if ready else 'unavailable'}")
    print(f"  Server:  {bridge.url} ({'up' if st.runtime_ready else 'down'})")
    print(f"  Model:   {bridge.model} ({'pulled' if st.has_files else 'missing'})")
    print(f"  Loaded:  {st.model_loaded}")
    if not config.bridge_enabled:
        print("  Disabled in config (bridge_enabled=false)")
    if st.last_error:
        print(f"  Error:   {st.last_error}")


# ============================================================================
# Entry point
# ============================================================================

def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="mogle",
        description="Mogle: mood and goal journal with local analytics",
    )
    parser.add_argument(
        "--data-dir", type=Path, default=None,
        help="Override data directory (default: $MOGLE_DATA_DIR or ~/.mogle/)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"mogle {__version__}")

    sub = parser.add_subparsers(dest="command")

    # log
    log_p = sub.add_parser("log", help="Log an emotion entry")
    log_p.add_argument("emotion", choices=[e.value for e in Emotion])
    log_p.add_argument("--intensity", "-i", type=int, default=5, choices=range(1, 11),
                       metavar="1-10", help="Intensity 1-10 (default: 5)")
    log_p.add_argument("--mood", "-m", default="", help="Short mood label")
    log_p.add_argument("--note", "-n", default="", help="Free-text note")

    # entries
    entries_p = sub.add_parser("entries", help="List entries")
    entries_p.add_argument("--limit", type=int, default=20, help="Show last N (0 = all)")

    # delete
    delete_p = sub.add_parser("delete", help="Delete an entry")
    delete_p.add_argument("entry_id")

    # goal
    goal_p = sub.add_parser("goal", help="Goal management")
    goal_sub = goal_p.add_subparsers(dest="goal_command")
    g_add = goal_sub.add_parser("add", help="Add a goal")
    g_add.add_argument("title")
    g_add.add_argument("--description", "-d", default="")
    g_add.add_argument("--category", "-c", default=GoalCategory.PERSONAL.value,
                       choices=[c.value for c in GoalCategory])
    g_add.add_argument("--days", type=int, default=30, help="Days to complete (default: 30)")
    g_prog = goal_sub.add_parser("progress", help="Set goal progress")
    g_prog.add_argument("goal_id")
    g_prog.add_argument("value", help="0-100, or +N / -N relative")
    g_pause = goal_sub.add_parser("pause", help="Pause a goal")
    g_pause.add_argument("goal_id")
    g_del = goal_sub.add_parser("delete", help="Delete a goal")
    g_del.add_argument("goal_id")
    goal_sub.add_parser("list", help="List goals")

    # analysis
    sub.add_parser("analyze", help="Pattern and long-run analysis")
    fb_p = sub.add_parser("feedback", help="One coaching message")
    fb_p.add_argument("--no-model", action="store_true", dest="no_model",
                      help="Skip the local language model")
    dash_p = sub.add_parser("dashboard", help="Summary numbers")
    dash_p.add_argument("--days", type=int, default=7, help="Days in the daily series")

    # data
    export_p = sub.add_parser("export", help="Export all data to JSON")
    export_p.add_argument("path", nargs="?", type=Path, default=None,
                          help="File or directory (default: <data-dir>/exports/)")
    sub.add_parser("stats", help="Record counts")
    wipe_p = sub.add_parser("wipe", help="Delete all data")
    wipe_p.add_argument("--yes", "-y", action="store_true", help="Confirm deletion")
    sub.add_parser("bridge", help="Local model status")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    from mogle.config import load_config, setup_logging
    from mogle.events import bus, Events
    from mogle.paths import configure, get_paths

    if args.data_dir is not None:
        configure(args.data_dir.expanduser().resolve())
    get_paths().ensure_dirs()
    config = load_config()
    setup_logging("DEBUG" if args.verbose else config.log_level)

    commands = {
        "log": _log, "entries": _entries, "delete": _delete,
        "goal": lambda a: _goal(a, goal_p),
        "analyze": _analyze, "feedback": _feedback, "dashboard": _dashboard,
        "export": _export, "stats": _stats, "wipe": _wipe, "bridge": _bridge,
    }

    bus.on(Events.DATA_RECOVERED, _notify_recovered)
    bus.on(Events.STORAGE_DEGRADED, _notify_degraded)
    try:
        commands[args.command](args)
    finally:
        bus.off(Events.DATA_RECOVERED, _notify_recovered)
        bus.off(Events.STORAGE_DEGRADED, _notify_degraded)


if __name__ == "__main__":
    main()
