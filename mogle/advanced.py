# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Advanced Analyzer — long-run view over the full history.

Unlike the Pattern Analyzer there is no time window: day-of-week averages,
anomalies and the health score use every entry supplied, in input order.

Health score:
    clamp(((avg - 1) / 4) * 100 - 5 * anomalies, 0, 100), rounded half-up.
    The penalty uses every anomaly found, not just the five displayed.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from mogle.schemas import EmotionEntry

MIN_ENTRIES = 7
ANOMALY_DELTA = 2
MAX_ANOMALIES_SHOWN = 5
ANOMALY_PENALTY = 5
STRESS_RATIO = 0.3

# 0 = Sunday
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

INSUFFICIENT = "Not enough data yet. Keep logging for at least a week."
LOG_DAILY = "Try logging how you feel every day."

SUGGEST_PROFESSIONAL = "Consider talking to a professional counselor."
SUGGEST_ROUTINE = "Regular exercise and enough sleep are recommended."
SUGGEST_POSITIVE = "Try to add more positive activities."
SUGGEST_SOCIAL = "Keep up your social connections."
SUGGEST_STRESS = "Your mood swings a lot. Try some stress management."


@dataclass
class AdvancedAnalysis:
    weekly_pattern: str
    anomalies: List[str] = field(default_factory=list)
    improvement_suggestions: List[str] = field(default_factory=list)
    health_score: int = 0
    anomaly_count: int = 0
    average_score: Optional[float] = None
    day_averages: Dict[int, float] = field(default_factory=dict)


def day_of_week(entry: EmotionEntry) -> int:
    """0=Sunday .. 6=Saturday."""
    return (entry.date.weekday() + 1) % 7


def day_averages(entries: Sequence[EmotionEntry]) -> Dict[int, float]:
    """Mean score per day-of-week, only for days that have entries."""
    buckets: Dict[int, List[int]] = {}
    for e in entries:
        buckets.setdefault(day_of_week(e), []).append(e.score)
    return {day: sum(s) / len(s) for day, s in sorted(buckets.items())}


def health_score(average: float, anomaly_count: int) -> int:
    raw = ((average - 1) / 4) * 100 - ANOMALY_PENALTY * anomaly_count
    clamped = min(100.0, max(0.0, raw))
    return int(math.floor(clamped + 0.5))


def find_anomalies(entries: Sequence[EmotionEntry]) -> List[str]:
    """One line per adjacent pair whose scores differ by ANOMALY_DELTA or more."""
    found = []
    for prev, cur in zip(entries, entries[1:]):
        if abs(cur.score - prev.score) >= ANOMALY_DELTA:
            found.append(f"Sharp mood change on {cur.date.date().isoformat()}.")
    return found


def analyze(entries: Sequence[EmotionEntry]) -> AdvancedAnalysis:
    if len(entries) < MIN_ENTRIES:
        return AdvancedAnalysis(weekly_pattern=INSUFFICIENT, improvement_suggestions=[LOG_DAILY])

    entries = list(entries)
    scores = [e.score for e in entries]
    avg = sum(scores) / len(scores)

    averages = day_averages(entries)
    ascending = list(averages.items())  # already ordered by day index
    best = sorted(ascending, key=lambda kv: -kv[1])[0]
    worst = sorted(ascending, key=lambda kv: kv[1])[0]
    weekly = (
        f"Best day: {DAY_NAMES[best[0]]} ({best[1]:.1f}), "
        f"hardest day: {DAY_NAMES[worst[0]]} ({worst[1]:.1f})"
    )

    anomalies = find_anomalies(entries)

    suggestions = []
    if avg < 2.5:
        suggestions += [SUGGEST_PROFESSIONAL, SUGGEST_ROUTINE]
    elif avg < 3.5:
        suggestions += [SUGGEST_POSITIVE, SUGGEST_SOCIAL]
    if len(anomalies) > len(entries) * STRESS_RATIO:
        suggestions.append(SUGGEST_STRESS)

    return AdvancedAnalysis(
        weekly_pattern=weekly,
        anomalies=anomalies[:MAX_ANOMALIES_SHOWN],
        improvement_suggestions=suggestions,
        health_score=health_score(avg, len(anomalies)),
        anomaly_count=len(anomalies),
        average_score=avg,
        day_averages=averages,
    )
