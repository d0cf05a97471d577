from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Union

from .modes import FOUR_WHEELER_VARIANTS, Mode

if TYPE_CHECKING:
    from .destinations import Destination


class ConditionKind(str, Enum):
    ARCHITECTURE_PARKING = "architecture_parking"
    MENS_HOSTEL_PICKUP = "mens_hostel_pickup"
    DEVADAN_PARKING = "devadan_parking"
    GIRLS_HOSTEL = "girls_hostel"
    BLOCK1_ENTRANCE1 = "block1_entrance1"
    DESTINATION_IS = "destination_is"
    GENERIC = "generic"


@dataclass(frozen=True)
class ModeAccess:
    tag: str
    mode: Mode | None


@dataclass(frozen=True)
class ConditionalAccess:
    tag: str
    condition: ConditionKind
    condition_text: str
    allowed_text: str
    allowed_mode: Mode | None
    # Lower-cased place name for DESTINATION_IS conditions.
    subject: str = ""


AccessRule = Union[ModeAccess, ConditionalAccess]


@dataclass(frozen=True)
class TripContext:
    """Named endpoints of the leg being searched; conditional tags are evaluated against them."""

    start: Destination | None = None
    end: Destination | None = None

    @property
    def start_name(self) -> str:
        return self.start.name.lower() if self.start is not None else ""

    @property
    def end_name(self) -> str:
        return self.end.name.lower() if self.end is not None else ""


_CONDITIONAL_RE = re.compile(r"^\s*if\s+(?P<condition>.+?)\s+->\s+(?P<mode>\S+)\s*$", re.IGNORECASE)
_DESTINATION_IS_PREFIX = "destination is "
_EXACT_MODE_TAGS = frozenset(mode.value for mode in Mode)


def _classify_condition(text: str) -> tuple[ConditionKind, str]:
    lowered = text.lower()
    if "architecture block parking" in lowered:
        return ConditionKind.ARCHITECTURE_PARKING, ""
    if "men's hostel" in lowered and "pickup" in lowered:
        return ConditionKind.MENS_HOSTEL_PICKUP, ""
    if "devadan block parking" in lowered or "devadan parking" in lowered:
        return ConditionKind.DEVADAN_PARKING, ""
    if "girls hostel" in lowered:
        return ConditionKind.GIRLS_HOSTEL, ""
    if "block 1 entrance 1" in lowered:
        return ConditionKind.BLOCK1_ENTRANCE1, ""
    if lowered.startswith(_DESTINATION_IS_PREFIX):
        return ConditionKind.DESTINATION_IS, lowered[len(_DESTINATION_IS_PREFIX):].strip()
    return ConditionKind.GENERIC, ""


@lru_cache(maxsize=4096)
def parse_mode_tag(tag: str) -> AccessRule:
    raw = str(tag)
    match = _CONDITIONAL_RE.match(raw)
    if match is None:
        return ModeAccess(tag=raw, mode=Mode(raw.strip()) if raw.strip() in _EXACT_MODE_TAGS else None)
    condition_text = match.group("condition").strip()
    allowed_text = match.group("mode").strip()
    kind, subject = _classify_condition(condition_text)
    return ConditionalAccess(
        tag=raw,
        condition=kind,
        condition_text=condition_text,
        allowed_text=allowed_text,
        allowed_mode=Mode(allowed_text) if allowed_text in _EXACT_MODE_TAGS else None,
        subject=subject,
    )


def parse_mode_tags(tags: Iterable[str]) -> tuple[AccessRule, ...]:
    return tuple(parse_mode_tag(str(tag)) for tag in tags)


def _named_condition_holds(rule: ConditionalAccess, trip: TripContext) -> bool:
    start = trip.start_name
    end = trip.end_name
    kind = rule.condition
    if kind is ConditionKind.ARCHITECTURE_PARKING:
        return "architecture" in end and "parking" in end
    if kind is ConditionKind.MENS_HOSTEL_PICKUP:
        return "men's hostel" in start or "men's hostel" in end
    if kind is ConditionKind.DEVADAN_PARKING:
        return "devadan" in end and "parking" in end
    if kind is ConditionKind.GIRLS_HOSTEL:
        return "girls hostel" in start or "girls hostel" in end
    if kind is ConditionKind.BLOCK1_ENTRANCE1:
        return "block 1 entrance 1" in end
    if kind is ConditionKind.DESTINATION_IS:
        return bool(rule.subject) and rule.subject in end
    return False


def _condition_holds(rule: ConditionalAccess, trip: TripContext) -> bool:
    if _named_condition_holds(rule, trip):
        return True
    # Any condition may also name one of the trip endpoints verbatim.
    needle = rule.condition_text.lower()
    if not needle:
        return False
    return needle in trip.end_name or needle in trip.start_name


def _conditional_grants(rule: ConditionalAccess, mode: Mode, trip: TripContext) -> bool:
    allowed = rule.allowed_mode
    if allowed is None:
        return False
    if allowed is not mode and not (mode is Mode.FOUR_WHEELER and allowed in FOUR_WHEELER_VARIANTS):
        return False
    return _condition_holds(rule, trip)


def is_allowed(access: Sequence[AccessRule], mode: Mode, trip: TripContext | None = None) -> bool:
    """Whether an edge carrying ``access`` may be traversed in ``mode`` on this trip."""
    if not access:
        return True
    trip = trip or TripContext()
    for rule in access:
        if mode is Mode.WALKING and "W" in rule.tag:
            return True
        if isinstance(rule, ModeAccess):
            if rule.mode is mode:
                return True
            if mode is Mode.FOUR_WHEELER and rule.mode in FOUR_WHEELER_VARIANTS:
                return True
        elif _conditional_grants(rule, mode, trip):
            return True
    return mode is Mode.WALKING


def is_allowed_tags(
    tags: Iterable[str],
    mode: Mode,
    start: Destination | None = None,
    end: Destination | None = None,
) -> bool:
    return is_allowed(parse_mode_tags(tags), mode, TripContext(start=start, end=end))
