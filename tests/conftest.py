# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Test configuration — paths isolation for tests."""

import logging
from datetime import datetime, timedelta

import pytest

from mogle.events import bus
from mogle.paths import configure, reset
from mogle.schemas import Emotion, EmotionEntry


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path):
    """Route all Mogle data to a temp directory, clean bus and log handlers."""
    paths = configure(tmp_path)
    paths.ensure_dirs()
    bus.reset()
    yield paths
    bus.reset()
    logger = logging.getLogger("mogle")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    reset()


@pytest.fixture
def now():
    # A Wednesday, mid-morning
    return datetime(2026, 3, 11, 10, 0, 0)


def make_entries(scores, start, step=timedelta(days=1), moods=None):
    """Entries with the given 1..5 scores, one per `step` from `start`."""
    by_score = {e.score: e for e in Emotion}
    entries = []
    for i, s in enumerate(scores):
        entries.append(EmotionEntry(
            id=f"e{i}",
            date=start + step * i,
            emotion=by_score[s],
            intensity=5,
            mood=moods[i] if moods else f"mood{i}",
        ))
    return entries


@pytest.fixture
def entries_of():
    return make_entries
