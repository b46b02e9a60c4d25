# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Pattern Analyzer — short-term view over the trailing 7 days.

Scores in-window entries, classifies their trend, extracts mood peaks and
dips, then runs a fixed decision table (average bucket x trend) to produce
insights and at most three recommendations.

Entries are taken in the caller's order. Nothing is re-sorted, so the trend
reflects whatever order the journal holds.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from mogle.schemas import EmotionEntry
from mogle.trend import Trend, classify

WINDOW = timedelta(days=7)
MAX_RECOMMENDATIONS = 3

NOT_ENOUGH_DATA = "Not enough emotion data yet."
NO_DATA_THIS_WEEK = "No entries in the past week."
LOG_DAILY = "Try logging how you feel every day."

INSIGHT_HIGH = "You've had a lot of good moods lately. Keep it up!"
INSIGHT_MID = "Your mood is steady. Try adding more positive activities."
INSIGHT_LOW = "You don't seem to be feeling great lately. Take care of yourself."
INSIGHT_IMPROVING = "Your mood is getting better and better. That's a good sign!"
INSIGHT_DECLINING = "Your mood is drifting down a little. Some stress management may help."

REC_REST = "Go to bed early and get plenty of rest."
REC_STRESS = "Try some exercise or meditation."

TREND_NARRATIVE = {
    Trend.IMPROVING: "Your mood is improving! 🌱",
    Trend.DECLINING: "Your mood is declining a little. 😐",
    Trend.STABLE: "Your mood is stable. 😌",
}


@dataclass
class PatternAnalysis:
    emotional_trend: str
    mood_peaks: List[str] = field(default_factory=list)
    mood_dips: List[str] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    trend: Trend = Trend.STABLE
    average_score: Optional[float] = None

    @property
    def has_data(self) -> bool:
        return self.average_score is not None


def _insufficient(narrative: str) -> PatternAnalysis:
    return PatternAnalysis(emotional_trend=narrative, recommendations=[LOG_DAILY])


def analyze(entries: Sequence[EmotionEntry], now: Optional[datetime] = None) -> PatternAnalysis:
    """Analyze the last 7 days of `entries` (lower bound inclusive)."""
    if not entries:
        return _insufficient(NOT_ENOUGH_DATA)

    now = now or datetime.now()
    since = now - WINDOW
    recent = [e for e in entries if e.date >= since]
    if not recent:
        return _insufficient(NO_DATA_THIS_WEEK)

    scores = [e.score for e in recent]
    avg = sum(scores) / len(scores)
    trend = classify(scores)

    top, bottom = max(scores), min(scores)
    peaks = [e.mood for e in recent if e.score == top]
    dips = [e.mood for e in recent if e.score == bottom]

    insights: List[str] = []
    recommendations: List[str] = []

    if avg >= 4:
        insights.append(INSIGHT_HIGH)
    elif avg >= 3:
        insights.append(INSIGHT_MID)
    else:
        insights.append(INSIGHT_LOW)
        recommendations.append(REC_REST)

    if trend is Trend.IMPROVING:
        insights.append(INSIGHT_IMPROVING)
    elif trend is Trend.DECLINING:
        insights.append(INSIGHT_DECLINING)
        recommendations.append(REC_STRESS)

    return PatternAnalysis(
        emotional_trend=TREND_NARRATIVE[trend],
        mood_peaks=peaks,
        mood_dips=dips,
        insights=insights,
        recommendations=recommendations[:MAX_RECOMMENDATIONS],
        trend=trend,
        average_score=avg,
    )
