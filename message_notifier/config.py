"""Configuration management."""

import os
from dataclasses import dataclass, field
from typing import Optional

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv is optional


@dataclass
class NotificationPreferences:
    """Default notification preferences, before any stored overrides."""
    notifications_enabled: bool = True
    in_thread_notifications: bool = True
    ringtone: Optional[str] = None   # file path or file:// URI
    vibrate: bool = True
    led_color: str = "green"         # "#RRGGBB", a color name, or "none"
    led_pattern: str = "500,2000"    # "on,off" in ms, "custom", or "none"
    led_pattern_custom: str = "500,2000"


@dataclass
class TwilioConfig:
    """Twilio SMS configuration."""
    account_sid: str
    auth_token: str
    from_number: str
    to_number: str


@dataclass
class AppConfig:
    """Complete application configuration."""
    db_path: str
    preferences: NotificationPreferences = field(default_factory=NotificationPreferences)
    twilio: Optional[TwilioConfig] = None
    cue_volume: float = 0.25  # in-thread chime volume, 0.0-1.0


def _parse_bool_env(key: str, default: bool) -> bool:
    """Parse a true/false environment variable."""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def _load_twilio_config() -> Optional[TwilioConfig]:
    """Load Twilio settings, or None when none of them are set."""
    values = {
        "TWILIO_ACCOUNT_SID": os.getenv("TWILIO_ACCOUNT_SID"),
        "TWILIO_AUTH_TOKEN": os.getenv("TWILIO_AUTH_TOKEN"),
        "TWILIO_FROM_NUMBER": os.getenv("TWILIO_FROM_NUMBER"),
        "TWILIO_TO_NUMBER": os.getenv("TWILIO_TO_NUMBER"),
    }
    if not any(values.values()):
        return None

    missing = [key for key, value in values.items() if not value]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return TwilioConfig(
        account_sid=values["TWILIO_ACCOUNT_SID"],
        auth_token=values["TWILIO_AUTH_TOKEN"],
        from_number=values["TWILIO_FROM_NUMBER"],
        to_number=values["TWILIO_TO_NUMBER"],
    )


def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    Raises:
        ValueError: If Twilio is partially configured or a number is malformed.
    """
    db_path = os.getenv("DB_PATH", "notifier_state.db")

    defaults = NotificationPreferences()
    preferences = NotificationPreferences(
        notifications_enabled=_parse_bool_env("NOTIFICATIONS_ENABLED", defaults.notifications_enabled),
        in_thread_notifications=_parse_bool_env("IN_THREAD_NOTIFICATIONS", defaults.in_thread_notifications),
        ringtone=os.getenv("NOTIFICATION_RINGTONE") or None,
        vibrate=_parse_bool_env("NOTIFICATION_VIBRATE", defaults.vibrate),
        led_color=os.getenv("LED_COLOR", defaults.led_color),
        led_pattern=os.getenv("LED_PATTERN", defaults.led_pattern),
        led_pattern_custom=os.getenv("LED_PATTERN_CUSTOM", defaults.led_pattern_custom),
    )

    cue_volume = float(os.getenv("IN_THREAD_VOLUME", "0.25"))
    if not 0.0 <= cue_volume <= 1.0:
        raise ValueError(f"IN_THREAD_VOLUME must be between 0 and 1, got {cue_volume}")

    return AppConfig(
        db_path=db_path,
        preferences=preferences,
        twilio=_load_twilio_config(),
        cue_volume=cue_volume,
    )
