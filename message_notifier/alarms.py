"""Sound, vibration and LED decoration for rendered notifications."""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import DecorationParseError
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)

NONE = "none"
CUSTOM = "custom"

NAMED_COLORS = {
    "black": 0xFF000000,
    "white": 0xFFFFFFFF,
    "red": 0xFFFF0000,
    "green": 0xFF00FF00,
    "blue": 0xFF0000FF,
    "yellow": 0xFFFFFF00,
    "cyan": 0xFF00FFFF,
    "magenta": 0xFFFF00FF,
    "gray": 0xFF888888,
    "grey": 0xFF888888,
    "orange": 0xFFFFA500,
    "purple": 0xFF800080,
}


@dataclass(frozen=True)
class Lights:
    """LED color (ARGB) and blink timing."""
    argb: int
    on_ms: int
    off_ms: int


@dataclass(frozen=True)
class Alarms:
    """How a notification should get the user's attention."""
    sound: Optional[str] = None     # ringtone URI
    vibrate: bool = False
    lights: Optional[Lights] = None


def parse_blink_pattern(pattern: str, custom: str) -> Optional[Tuple[int, int]]:
    """
    Turn an LED blink preference into (on_ms, off_ms).

    Args:
        pattern: A preset such as "500,2000", "custom" or "none".
        custom: The user's own "on,off" string, used when pattern is "custom".

    Returns:
        The (on_ms, off_ms) pair, or None when the LED should stay off.

    Raises:
        DecorationParseError: If the resolved pattern does not start with two integers.
    """
    if pattern == CUSTOM:
        pattern = custom

    if pattern is None or pattern.strip() == NONE:
        return None

    parts = pattern.split(",")
    if len(parts) < 2:
        raise DecorationParseError(f"Blink pattern needs at least two values, got {pattern!r}")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as e:
        raise DecorationParseError(f"Invalid blink pattern {pattern!r}: {e}") from e


def parse_color(color: str) -> int:
    """
    Parse "#RRGGBB", "#AARRGGBB" or a color name into an ARGB integer.

    Raises:
        DecorationParseError: If the color is not recognised.
    """
    value = (color or "").strip().lower()
    if value.startswith("#"):
        digits = value[1:]
        try:
            if len(digits) == 6:
                return 0xFF000000 | int(digits, 16)
            if len(digits) == 8:
                return int(digits, 16)
        except ValueError:
            pass
        raise DecorationParseError(f"Invalid color {color!r}")

    if value in NAMED_COLORS:
        return NAMED_COLORS[value]
    raise DecorationParseError(f"Unknown color {color!r}")


def build_lights(preferences: PreferenceStore) -> Optional[Lights]:
    """LED settings from preferences, or None when disabled."""
    color = preferences.get_led_color()
    if color == NONE:
        return None

    blink = parse_blink_pattern(preferences.get_led_pattern(),
                                preferences.get_led_pattern_custom())
    if blink is None:
        return None
    return Lights(argb=parse_color(color), on_ms=blink[0], off_ms=blink[1])


def build_alarms(preferences: PreferenceStore, signal: bool) -> Alarms:
    """
    Decide sound, vibration and LED for one render.

    Sound and vibration are only used when signalling. A malformed LED
    preference drops the lights and nothing else.
    """
    ringtone = preferences.get_notification_ringtone()
    sound = ringtone if signal and ringtone else None
    vibrate = signal and preferences.is_vibrate_enabled()

    try:
        lights = build_lights(preferences)
    except DecorationParseError as e:
        logger.warning(f"Skipping LED decoration: {e}")
        lights = None

    return Alarms(sound=sound, vibrate=vibrate, lights=lights)
