from __future__ import annotations

from enum import Enum

from .settings import settings


class Mode(str, Enum):
    WALKING = "W"
    TWO_WHEELER = "2"
    FOUR_WHEELER = "4"
    # Edge-tagging variants of the four-wheeler mode.
    FOUR_WHEELER_PARKING = "4PA"
    FOUR_WHEELER_PICKUP = "4PI"


REQUESTABLE_MODES: tuple[Mode, ...] = (Mode.WALKING, Mode.TWO_WHEELER, Mode.FOUR_WHEELER)
VEHICLE_MODES: frozenset[Mode] = frozenset({Mode.TWO_WHEELER, Mode.FOUR_WHEELER})
FOUR_WHEELER_VARIANTS: frozenset[Mode] = frozenset({Mode.FOUR_WHEELER_PARKING, Mode.FOUR_WHEELER_PICKUP})

MODE_COLORS: dict[Mode, str] = {
    Mode.WALKING: "#10B981",
    Mode.TWO_WHEELER: "#3B82F6",
    Mode.FOUR_WHEELER: "#8B5CF6",
    Mode.FOUR_WHEELER_PARKING: "#F97316",
    Mode.FOUR_WHEELER_PICKUP: "#EF4444",
}
FALLBACK_COLOR = "#EF4444"

MODE_LABELS: dict[Mode, str] = {
    Mode.WALKING: "Walking",
    Mode.TWO_WHEELER: "2-Wheeler",
    Mode.FOUR_WHEELER: "4-Wheeler",
    Mode.FOUR_WHEELER_PARKING: "4-Wheeler (parking)",
    Mode.FOUR_WHEELER_PICKUP: "4-Wheeler (pickup)",
}

MODE_ICONS: dict[Mode, str] = {
    Mode.WALKING: "walk",
    Mode.TWO_WHEELER: "motorcycle",
    Mode.FOUR_WHEELER: "car",
    Mode.FOUR_WHEELER_PARKING: "car",
    Mode.FOUR_WHEELER_PICKUP: "car",
}

_MODE_ALIASES: dict[str, Mode] = {
    "w": Mode.WALKING,
    "walk": Mode.WALKING,
    "walking": Mode.WALKING,
    "2": Mode.TWO_WHEELER,
    "2w": Mode.TWO_WHEELER,
    "two_wheeler": Mode.TWO_WHEELER,
    "2-wheeler": Mode.TWO_WHEELER,
    "4": Mode.FOUR_WHEELER,
    "4w": Mode.FOUR_WHEELER,
    "four_wheeler": Mode.FOUR_WHEELER,
    "4-wheeler": Mode.FOUR_WHEELER,
    "4pa": Mode.FOUR_WHEELER_PARKING,
    "4pi": Mode.FOUR_WHEELER_PICKUP,
}


def parse_mode(value: str | Mode | None) -> Mode | None:
    if isinstance(value, Mode):
        return value
    key = str(value or "").strip().lower()
    return _MODE_ALIASES.get(key)


def is_vehicle_mode(mode: Mode) -> bool:
    return mode in VEHICLE_MODES


def mode_speed_mps(mode: Mode) -> float:
    speeds = {
        Mode.WALKING: settings.speed_walking_mps,
        Mode.TWO_WHEELER: settings.speed_two_wheeler_mps,
        Mode.FOUR_WHEELER: settings.speed_four_wheeler_mps,
        Mode.FOUR_WHEELER_PARKING: settings.speed_four_wheeler_parking_mps,
        Mode.FOUR_WHEELER_PICKUP: settings.speed_four_wheeler_pickup_mps,
    }
    return max(0.1, float(speeds.get(mode, settings.speed_walking_mps)))


def mode_label(mode: Mode) -> str:
    return MODE_LABELS.get(mode, str(mode.value))


def mode_color(mode: Mode) -> str:
    return MODE_COLORS.get(mode, MODE_COLORS[Mode.WALKING])


def mode_catalog() -> list[dict[str, str | float]]:
    return [
        {
            "id": mode.value,
            "name": mode_label(mode),
            "icon": MODE_ICONS[mode],
            "color": mode_color(mode),
            "speed_mps": mode_speed_mps(mode),
        }
        for mode in REQUESTABLE_MODES
    ]
