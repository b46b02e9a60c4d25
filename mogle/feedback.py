# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Feedback Composer — one coaching message from the analyses.

Rule path (always runs):
  pool = templates[pattern.trend] (+ energetic / relaxed bonus pool when the
  latest mood text reads happy / calm), uniform random pick, confidence 0.85.

Model path (best-effort, only with an available bridge):
  prompt summarizing trend, insights, recommendations (+ health score),
  run on the "llm" worker pool and waited on with a timeout. Non-empty
  text replaces the message with confidence 0.9. Anything else keeps the
  rule result.
"""

import logging
import random
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from mogle.advanced import AdvancedAnalysis
from mogle.bridge import BridgeResult, ModelBridge
from mogle.events import bus, Events
from mogle.insights import detect_emotion_keywords
from mogle.patterns import PatternAnalysis
from mogle.schemas import EmotionEntry
from mogle.trend import Trend
from mogle.workers import WorkerPool, WorkerPoolBusy

logger = logging.getLogger("mogle.feedback")

RULE_CONFIDENCE = 0.85
MODEL_CONFIDENCE = 0.9
DEFAULT_BRIDGE_TIMEOUT = 30.0

TEMPLATES = {
    Trend.IMPROVING: (
        "More and more good moods lately. Keep it going! 🌱",
        "Your mood keeps getting better. Great work! 💪",
        "Your effort is showing. Keep moving forward! ✨",
    ),
    Trend.DECLINING: (
        "You haven't been feeling great lately. Be gentle with yourself. 💙",
        "Looks like a lot of stress. Some rest might help. 🌤️",
        "Your mood is dipping. Try something that lifts you up. 🎯",
    ),
    Trend.STABLE: (
        "Your mood is steady. Keep doing what works. 😌",
        "You're keeping a balanced emotional state. Nice! 🎨",
        "You're showing a consistent pattern. That's a good sign. 📊",
    ),
}

ENERGETIC = (
    "Lots of energy today! Hold on to it. ⚡",
    "Feels like an exciting day. Enjoy it! 🎉",
)

RELAXED = (
    "You're staying relaxed. Hope it's a restful time. 🌙",
    "A calm mood today. Look after yourself. 💝",
)


class FeedbackType(str, Enum):
    INSIGHT = "insight"
    ENCOURAGEMENT = "encouragement"
    SUGGESTION = "suggestion"
    WARNING = "warning"


class FeedbackSource(str, Enum):
    RULES = "rules"
    MODEL = "model"


@dataclass
class Feedback:
    message: str
    type: FeedbackType
    confidence: float
    timestamp: datetime = field(default_factory=datetime.now)
    source: FeedbackSource = FeedbackSource.RULES


def template_pool(trend: Trend, recent_entries: Sequence[EmotionEntry] = ()) -> List[str]:
    """Fresh list of candidate messages. Module templates are never mutated."""
    pool = list(TEMPLATES[trend])
    if recent_entries:
        detected = detect_emotion_keywords(recent_entries[-1].mood)
        if "happy" in detected:
            pool.extend(ENERGETIC)
        elif "calm" in detected:
            pool.extend(RELAXED)
    return pool


def build_prompt(pattern: PatternAnalysis, advanced: Optional[AdvancedAnalysis] = None) -> str:
    lines = [
        f"User emotions summary: {pattern.emotional_trend}",
        f"Insights: {', '.join(pattern.insights)}",
        f"Recommendations: {', '.join(pattern.recommendations)}",
    ]
    if advanced is not None and advanced.average_score is not None:
        lines.append(f"Emotional health score: {advanced.health_score}/100")
    lines.append("Provide a short supportive message.")
    return "\n".join(lines)


class FeedbackComposer:
    """Rule-based feedback with an optional model override."""

    def __init__(
        self,
        bridge: Optional[ModelBridge] = None,
        rng: Optional[random.Random] = None,
        bridge_timeout: float = DEFAULT_BRIDGE_TIMEOUT,
    ):
        self.bridge = bridge
        self._rng = rng or random.Random()
        self.bridge_timeout = bridge_timeout
        self._pool: Optional[WorkerPool] = None

    def compose(
        self,
        pattern: PatternAnalysis,
        advanced: Optional[AdvancedAnalysis] = None,
        recent_entries: Sequence[EmotionEntry] = (),
    ) -> Feedback:
        pool = template_pool(pattern.trend, recent_entries)
        feedback = Feedback(
            message=self._rng.choice(pool),
            type=(FeedbackType.ENCOURAGEMENT if pattern.trend is Trend.IMPROVING
                  else FeedbackType.SUGGESTION),
            confidence=RULE_CONFIDENCE,
        )

        if self.bridge is not None:
            result = self._ask_bridge(build_prompt(pattern, advanced))
            if result.ok:
                feedback.message = result.text
                feedback.confidence = MODEL_CONFIDENCE
                feedback.source = FeedbackSource.MODEL
            else:
                logger.debug("Model feedback not used: %s", result.error)
                bus.emit(Events.BRIDGE_UNAVAILABLE, {"error": result.error}, source="feedback")

        bus.emit(Events.FEEDBACK_GENERATED, {
            "type": feedback.type.value, "source": feedback.source.value,
        }, source="feedback")
        return feedback

    def _generate(self, prompt: str) -> BridgeResult:
        if not self.bridge.init():
            return BridgeResult(error=self.bridge.status().last_error or "bridge unavailable")
        return self.bridge.try_generate(prompt)

    def _ask_bridge(self, prompt: str) -> BridgeResult:
        """Run the bridge call off-thread, bounded by bridge_timeout."""
        if self._pool is None:
            self._pool = WorkerPool("llm", max_workers=1)
        try:
            future = self._pool.submit_sync(self._generate, prompt)
            return future.result(timeout=self.bridge_timeout)
        except FutureTimeout:
            logger.warning("Model bridge timed out after %.1fs", self.bridge_timeout)
            return BridgeResult(error="timeout")
        except WorkerPoolBusy as e:
            return BridgeResult(error=str(e))
        except Exception as e:
            logger.warning("Model bridge call failed: %s", e)
            return BridgeResult(error=str(e))

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=False)
            self._pool = None
