from __future__ import annotations

import math


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{_round_half_up(meters)}m"
    return f"{meters / 1000:.1f}km"


def format_travel_time(seconds: float) -> str:
    if seconds < 60:
        return f"{_round_half_up(seconds)}s"
    minutes = int(seconds // 60)
    remaining = _round_half_up(seconds % 60)
    if remaining >= 60:
        minutes += 1
        remaining = 0
    return f"{minutes}m {remaining}s" if remaining > 0 else f"{minutes}m"
