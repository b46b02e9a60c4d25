# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle Schema Registry — Pydantic models for every persisted structure.

Single source of truth for emotion entries, goals and the config file.
Field names are snake_case in Python and camelCase on the wire, so export
files stay readable by older Mogle builds.

Usage:
    from mogle.schemas import EmotionEntry, Goal

    entry = EmotionEntry.model_validate(row)
    row = entry.to_record()        # JSON-safe dict, ISO-8601 dates

All models use extra="allow" so stored data with unknown fields
won't break; we just won't validate those extra fields.
"""

import json
import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Base config: all models inherit this
# ============================================================================

class MogleModel(BaseModel):
    """Base for all Mogle schemas. Allows extra fields for forward compat."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        """JSON-safe dict with wire (camelCase) keys and ISO-8601 dates."""
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Custom exceptions: raised by journal operations on bad input
# ============================================================================

class MogleNotFoundError(Exception):
    """Raised when a requested entry or goal doesn't exist."""

class MogleValidationError(Exception):
    """Raised when input fails validation (duplicate id, bad status, etc.)."""


# ============================================================================
# EMOTIONS
# ============================================================================

class Emotion(str, Enum):
    """Ordered emotion categories. Each maps onto a 1..5 score."""
    VERY_SAD = "very-sad"
    SAD = "sad"
    NEUTRAL = "neutral"
    HAPPY = "happy"
    VERY_HAPPY = "very-happy"

    @property
    def score(self) -> int:
        return EMOTION_SCORE[self]


EMOTION_SCORE: Dict[Emotion, int] = {
    Emotion.VERY_SAD: 1,
    Emotion.SAD: 2,
    Emotion.NEUTRAL: 3,
    Emotion.HAPPY: 4,
    Emotion.VERY_HAPPY: 5,
}


def _local_naive(dt: datetime) -> datetime:
    # All dates are kept as naive local time so they compare with datetime.now()
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 value into naive local time, None if unusable."""
    if isinstance(value, datetime):
        return _local_naive(value)
    if isinstance(value, str) and value:
        try:
            return _local_naive(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def _now_if_invalid(value: Any) -> datetime:
    # Stored rows can carry a missing or garbled date. Repair with "now"
    # instead of rejecting the whole row.
    parsed = parse_iso(value)
    return parsed if parsed is not None else datetime.now()


class EmotionEntry(MogleModel):
    """One logged emotional data point. Replaced wholesale, never edited."""
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    id: str
    date: datetime = Field(default_factory=datetime.now)
    emotion: Emotion
    intensity: int = Field(default=5, ge=1, le=10)
    mood: str = ""
    note: str = ""

    @field_validator("date", mode="before")
    @classmethod
    def repair_date(cls, value: Any) -> datetime:
        return _now_if_invalid(value)

    @property
    def score(self) -> int:
        return self.emotion.score


# ============================================================================
# GOALS
# ============================================================================

class GoalCategory(str, Enum):
    HEALTH = "health"
    WORK = "work"
    PERSONAL = "personal"
    RELATIONSHIP = "relationship"
    LEARNING = "learning"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


def status_for_progress(progress: int) -> GoalStatus:
    """Status derived from progress. PAUSED is never derived."""
    return GoalStatus.COMPLETED if progress >= 100 else GoalStatus.ACTIVE


class Goal(MogleModel):
    """Single goal. target_date is fixed at creation (created_at + N days)."""
    id: str
    title: str
    description: str = ""
    target_date: datetime = Field(default_factory=datetime.now, alias="targetDate")
    progress: int = 0
    category: GoalCategory = GoalCategory.PERSONAL
    status: GoalStatus = GoalStatus.ACTIVE
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")

    @field_validator("target_date", "created_at", mode="before")
    @classmethod
    def repair_dates(cls, value: Any) -> datetime:
        return _now_if_invalid(value)

    @field_validator("progress", mode="before")
    @classmethod
    def clamp_progress(cls, value: Any) -> int:
        try:
            return max(0, min(100, int(value)))
        except (TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"progress must be a number, got {value!r}") from e


# ============================================================================
# CONFIG
# ============================================================================

class MogleConfig(MogleModel):
    """User config: ~/.mogle/mogle-config.json"""
    bridge_enabled: bool = True
    bridge_url: str = "http://localhost:11434"
    bridge_model: str = "llama3.2:1b"
    bridge_timeout: float = Field(default=20.0, gt=0)
    log_level: str = "INFO"


# ============================================================================
# UTILITY: validated load/save helpers
# ============================================================================

T = TypeVar("T", bound=MogleModel)


def load_validated(path: Path, schema: Type[T], default: Any = None) -> T:
    """
    Load JSON from file and validate against schema.

    Args:
        path: Path to JSON file
        schema: Pydantic model class to validate against
        default: Default value if file doesn't exist or is invalid.
                 If None, returns schema() with all defaults.
    """
    if not path.exists():
        if default is not None:
            return schema.model_validate(default)
        return schema()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return schema.model_validate(data)
    except Exception:
        if default is not None:
            return schema.model_validate(default)
        return schema()


def _atomic_rename(tmp: Path, dest: Path):
    """Flush, fsync, then rename. Crash-safe atomic write."""
    fd = os.open(str(tmp), os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)
    os.replace(str(tmp), str(dest))


def atomic_write_text(path: Path, text: str) -> None:
    """Atomically write text (write .tmp, then rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    _atomic_rename(tmp, path)


def atomic_write_json(path: Path, data: Any, indent: int = 2) -> None:
    """Atomically write a dict/list as JSON.

    For raw dicts that don't have matching Pydantic schemas.
    """
    atomic_write_text(path, json.dumps(data, indent=indent, ensure_ascii=False))


def records_of(models: List[MogleModel]) -> List[Dict[str, Any]]:
    """Serialize models to JSON-safe wire dicts."""
    return [m.to_record() for m in models]
