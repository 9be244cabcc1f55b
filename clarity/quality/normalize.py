from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from clarity.quality.sharpness import sanitize_score


class PhotoSlot(str, Enum):
    A = "A"
    B = "B"


@dataclass(frozen=True)
class PercentagePair:
    a: int
    b: int

    @property
    def leading(self) -> Optional[PhotoSlot]:
        if self.a > self.b:
            return PhotoSlot.A
        if self.b > self.a:
            return PhotoSlot.B
        return None

    def to_dict(self) -> Dict[str, int]:
        return {"a": self.a, "b": self.b}


def _round_half_up(value: float) -> int:
    # Python's round() is half-to-even; ties go up here (56.5 -> 57).
    return int(math.floor(value + 0.5))


def _clamp_percent(value: int) -> int:
    return max(0, min(100, value))


def relative_percentages(score_a: float, score_b: float) -> PercentagePair:
    """
    Split two sharpness scores into integer percentages summing to 100.

    Inputs are sanitized again so NaN or negative scores count as zero. When
    both are zero the result is an even 50/50.
    """
    a = sanitize_score(score_a)
    b = sanitize_score(score_b)
    total = a + b
    if total <= 0.0:
        return PercentagePair(50, 50)
    if math.isinf(total):
        # Halving is exact and keeps the shares unchanged
        a, b = a / 2.0, b / 2.0
        total = a + b
    percent_a = _clamp_percent(_round_half_up(a / total * 100.0))
    percent_b = _clamp_percent(100 - percent_a)
    return PercentagePair(percent_a, percent_b)


def describe(pair: PercentagePair) -> str:
    leading = pair.leading
    if leading is PhotoSlot.A:
        return f"Photo A is sharper: {pair.a}% vs {pair.b}%"
    if leading is PhotoSlot.B:
        return f"Photo B is sharper: {pair.b}% vs {pair.a}%"
    return f"Both photos are equally sharp ({pair.a}%)"
