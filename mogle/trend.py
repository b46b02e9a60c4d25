# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Trend estimation — least-squares slope of a score sequence.
"""

from enum import Enum
from typing import Sequence

# Slopes smaller than this (points per entry) read as noise
SLOPE_THRESHOLD = 0.1


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


def slope(scores: Sequence[float]) -> float:
    """OLS slope of score against 0-based index. 0.0 below two points."""
    n = len(scores)
    if n < 2:
        return 0.0

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for i, y in enumerate(scores):
        sum_x += i
        sum_y += y
        sum_xy += i * y
        sum_x2 += i * i

    return (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)


def classify(scores: Sequence[float]) -> Trend:
    """improving / declining / stable. Never raises."""
    if len(scores) < 2:
        return Trend.STABLE
    s = slope(scores)
    if abs(s) < SLOPE_THRESHOLD:
        return Trend.STABLE
    return Trend.IMPROVING if s > 0 else Trend.DECLINING
