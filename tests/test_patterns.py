# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Tests for the 7-day Pattern Analyzer."""

from datetime import timedelta

from mogle import patterns
from mogle.patterns import analyze
from mogle.schemas import Emotion, EmotionEntry
from mogle.trend import Trend


class TestInsufficientData:

    def test_no_entries(self, now):
        result = analyze([], now=now)
        assert result.emotional_trend == patterns.NOT_ENOUGH_DATA
        assert result.recommendations == [patterns.LOG_DAILY]
        assert result.insights == []
        assert result.mood_peaks == [] and result.mood_dips == []
        assert not result.has_data

    def test_nothing_in_window(self, now, entries_of):
        old = entries_of([4, 4], now - timedelta(days=30))
        result = analyze(old, now=now)
        assert result.emotional_trend == patterns.NO_DATA_THIS_WEEK
        assert result.recommendations == [patterns.LOG_DAILY]


class TestWindow:

    def test_lower_bound_inclusive(self, now):
        edge = EmotionEntry(id="a", date=now - timedelta(days=7),
                            emotion=Emotion.SAD, mood="edge")
        result = analyze([edge], now=now)
        assert result.has_data
        assert result.mood_peaks == ["edge"]

    def test_just_outside_window(self, now):
        outside = EmotionEntry(id="a", date=now - timedelta(days=7, seconds=1),
                               emotion=Emotion.SAD, mood="old")
        assert analyze([outside], now=now).emotional_trend == patterns.NO_DATA_THIS_WEEK

    def test_old_entries_ignored(self, now, entries_of):
        old = entries_of([1, 1, 1], now - timedelta(days=40))
        recent = entries_of([5], now - timedelta(hours=1), moods=["fresh"])
        recent[0] = recent[0].model_copy(update={"id": "r0"})
        result = analyze(old + recent, now=now)
        assert result.average_score == 5
        assert result.mood_dips == ["fresh"]


class TestSingleEntry:

    def test_one_happy_entry_today(self, now):
        entry = EmotionEntry(id="1", date=now, emotion=Emotion.HAPPY,
                             intensity=7, mood="great day")
        result = analyze([entry], now=now)
        assert result.average_score >= 4
        assert result.trend is Trend.STABLE
        assert result.mood_peaks == ["great day"]
        assert result.mood_dips == ["great day"]
        assert result.insights == [patterns.INSIGHT_HIGH]
        assert result.recommendations == []
        assert result.emotional_trend == patterns.TREND_NARRATIVE[Trend.STABLE]


class TestDecisionTable:

    def _recent(self, scores, now, entries_of, moods=None):
        return entries_of(scores, now - timedelta(days=6), step=timedelta(hours=12), moods=moods)

    def test_mid_average_declining(self, now, entries_of):
        result = analyze(self._recent([5, 4, 3, 2, 1], now, entries_of), now=now)
        assert result.trend is Trend.DECLINING
        assert result.insights == [patterns.INSIGHT_MID, patterns.INSIGHT_DECLINING]
        assert result.recommendations == [patterns.REC_STRESS]
        assert result.emotional_trend == patterns.TREND_NARRATIVE[Trend.DECLINING]

    def test_low_average_declining_gets_rest_first(self, now, entries_of):
        result = analyze(self._recent([3, 2, 1], now, entries_of), now=now)
        assert result.insights == [patterns.INSIGHT_LOW, patterns.INSIGHT_DECLINING]
        assert result.recommendations == [patterns.REC_REST, patterns.REC_STRESS]

    def test_high_average_improving(self, now, entries_of):
        result = analyze(self._recent([3, 4, 5, 5, 5], now, entries_of), now=now)
        assert result.trend is Trend.IMPROVING
        assert result.insights == [patterns.INSIGHT_HIGH, patterns.INSIGHT_IMPROVING]
        assert result.recommendations == []

    def test_low_stable(self, now, entries_of):
        result = analyze(self._recent([2, 2, 2], now, entries_of), now=now)
        assert result.insights == [patterns.INSIGHT_LOW]
        assert result.recommendations == [patterns.REC_REST]

    def test_narrative_ignores_average(self, now, entries_of):
        low = analyze(self._recent([1, 1], now, entries_of), now=now)
        high = analyze(self._recent([5, 5], now, entries_of), now=now)
        assert low.emotional_trend == high.emotional_trend


class TestPeaksAndDips:

    def test_all_ties_kept_in_order(self, now, entries_of):
        moods = ["a", "b", "c", "d", "e"]
        entries = entries_of([5, 1, 5, 1, 5], now - timedelta(days=3),
                             step=timedelta(hours=6), moods=moods)
        result = analyze(entries, now=now)
        assert result.mood_peaks == ["a", "c", "e"]
        assert result.mood_dips == ["b", "d"]

    def test_duplicate_moods_not_collapsed(self, now, entries_of):
        entries = entries_of([4, 4], now - timedelta(days=1),
                             step=timedelta(hours=1), moods=["same", "same"])
        assert analyze(entries, now=now).mood_peaks == ["same", "same"]

    def test_input_order_drives_trend(self, now, entries_of):
        entries = entries_of([1, 2, 3, 4, 5], now - timedelta(days=2), step=timedelta(hours=1))
        forward = analyze(entries, now=now)
        backward = analyze(list(reversed(entries)), now=now)
        assert forward.trend is Trend.IMPROVING
        assert backward.trend is Trend.DECLINING
