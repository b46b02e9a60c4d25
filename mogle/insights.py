# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Small rule-based helpers: keyword detection, goal pace, activity and
daily-goal suggestions, time-of-day tips.
"""

import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from mogle.schemas import EmotionEntry, Goal

EMOTION_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "happy": ("joy", "happy", "fun", "excited", "great", "good"),
    "sad": ("sad", "depressed", "gloomy", "down", "lonely"),
    "stressed": ("stress", "anxious", "worried", "tense", "tired", "hard"),
    "calm": ("calm", "relaxed", "peaceful", "quiet", "stable"),
    "excited": ("thrilled", "excited", "looking forward", "eager", "pumped"),
}

TIME_OF_DAY_TIPS = {
    "morning": "Mornings are for easing in. Start slowly and rest well. 🌅",
    "afternoon": "Some movement in the afternoon can really help. 📍",
    "evening": "Evenings are good for winding down and tidying up. 🌆",
    "night": "At night, sleep matters most. Get some proper rest. 🌙",
}


def detect_emotion_keywords(text: str) -> List[str]:
    """Emotion groups whose keywords appear in `text`, deduplicated, in table order."""
    lowered = (text or "").lower()
    return [
        emotion for emotion, keywords in EMOTION_KEYWORDS.items()
        if any(k in lowered for k in keywords)
    ]


def evaluate_goal_progress(days_left: int, target_progress: int, current_progress: int) -> str:
    """Narrative on whether the current pace reaches the target in time."""
    if target_progress <= 0 or current_progress >= target_progress:
        return "Congratulations! You reached your goal! 🎉"

    progress_rate = current_progress / target_progress * 100
    per_day = progress_rate / max(1, days_left)

    if per_day < 1:
        return "A bit more effort is needed to reach this goal."
    if per_day < 2:
        return "Good pace. Keep going."
    return "Excellent progress! At this rate you'll make it easily!"


def days_left(goal: Goal, now: Optional[datetime] = None) -> int:
    """Whole days until the target date, rounded up. Negative once overdue."""
    now = now or datetime.now()
    return math.ceil((goal.target_date - now).total_seconds() / 86400)


def suggest_activities(average_score: float) -> List[str]:
    if average_score < 2:
        return [
            "🌳 Take a walk outside",
            "🧘 Try meditation or yoga",
            "☕ Rest with a favourite drink",
        ]
    if average_score < 3:
        return [
            "📚 Enjoy a fun book or video",
            "🎵 Listen to music you love",
            "🎨 Do something creative (drawing, writing)",
        ]
    return [
        "🏃 Burn off energy with some exercise",
        "👥 Spend time with friends",
        "🎯 Start a new challenge",
    ]


def suggest_daily_goal(entries: Sequence[EmotionEntry], now: Optional[datetime] = None) -> str:
    if not entries:
        return "Make it your goal to spend today on a positive note."

    today = (now or datetime.now()).date()
    todays = [e.score for e in entries if e.date.date() == today]
    if not todays:
        return "Log your first emotion of the day. 🌅"

    avg = sum(todays) / len(todays)
    if avg < 2.5:
        return "Today, put rest and self-care first. 💙"
    if avg < 3.5:
        return "Look for the good moments in today. 👀"
    return "Share today's good mood with someone. ✨"


def time_of_day(now: Optional[datetime] = None) -> str:
    hour = (now or datetime.now()).hour
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "night"


def time_of_day_tip(now: Optional[datetime] = None) -> str:
    return TIME_OF_DAY_TIPS[time_of_day(now)]
