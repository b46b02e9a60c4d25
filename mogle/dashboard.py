# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Dashboard numbers — the summary cards and the daily mood series.

Pure functions over entry/goal snapshots; "now" is injectable.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from mogle.schemas import EmotionEntry, Goal, GoalStatus
from mogle.trend import Trend

WEEK = timedelta(days=7)
SHORT_TREND_SPAN = 3
SHORT_TREND_MARGIN = 0.3


@dataclass
class DashboardStats:
    today_average: Optional[float]
    today_count: int
    week_average: Optional[float]
    week_count: int
    recent_trend: Trend
    active_goals: int
    completed_goals: int
    average_progress: int


@dataclass
class DailyPoint:
    day: date
    average_score: float
    max_intensity: int
    moods: str


def _mean(entries: Sequence[EmotionEntry]) -> Optional[float]:
    if not entries:
        return None
    return sum(e.score for e in entries) / len(entries)


def short_term_trend(week_entries: Sequence[EmotionEntry]) -> Trend:
    """Last three entries against the three before them, +-0.3 margin."""
    if len(week_entries) < 2:
        return Trend.STABLE
    recent = week_entries[-SHORT_TREND_SPAN:]
    older = week_entries[-2 * SHORT_TREND_SPAN:-SHORT_TREND_SPAN]
    if not older:
        return Trend.STABLE
    recent_avg, older_avg = _mean(recent), _mean(older)
    if recent_avg > older_avg + SHORT_TREND_MARGIN:
        return Trend.IMPROVING
    if recent_avg < older_avg - SHORT_TREND_MARGIN:
        return Trend.DECLINING
    return Trend.STABLE


def dashboard_stats(
    entries: Sequence[EmotionEntry],
    goals: Sequence[Goal],
    now: Optional[datetime] = None,
) -> DashboardStats:
    now = now or datetime.now()
    today = [e for e in entries if e.date.date() == now.date()]
    week = [e for e in entries if e.date >= now - WEEK]

    return DashboardStats(
        today_average=_mean(today),
        today_count=len(today),
        week_average=_mean(week),
        week_count=len(week),
        recent_trend=short_term_trend(week),
        active_goals=sum(1 for g in goals if g.status is GoalStatus.ACTIVE),
        completed_goals=sum(1 for g in goals if g.status is GoalStatus.COMPLETED),
        average_progress=round(sum(g.progress for g in goals) / len(goals)) if goals else 0,
    )


def daily_series(entries: Sequence[EmotionEntry], days: int = 7) -> List[DailyPoint]:
    """One point per calendar day that has entries; the latest `days` of them."""
    by_day: Dict[date, List[EmotionEntry]] = {}
    for e in entries:
        by_day.setdefault(e.date.date(), []).append(e)

    points = [
        DailyPoint(
            day=day,
            average_score=round(_mean(group), 2),
            max_intensity=max(e.intensity for e in group),
            moods=", ".join(e.mood for e in group),
        )
        for day, group in sorted(by_day.items())
    ]
    return points[-days:] if days > 0 else points


def emotion_distribution(entries: Sequence[EmotionEntry]) -> List[Tuple[str, int]]:
    """(emotion, count) pairs, most frequent first."""
    counts: Dict[str, int] = {}
    for e in entries:
        counts[e.emotion.value] = counts.get(e.emotion.value, 0) + 1
    return sorted(counts.items(), key=lambda kv: -kv[1])
