"""User notification preferences."""

import sqlite3
from abc import ABC, abstractmethod
from typing import Optional

from .config import NotificationPreferences
from .db import get_meta, set_meta


class PreferenceStore(ABC):
    """Typed read access to the user's notification preferences."""

    @abstractmethod
    def is_notifications_enabled(self) -> bool:
        pass

    @abstractmethod
    def is_in_thread_notifications(self) -> bool:
        pass

    @abstractmethod
    def get_notification_ringtone(self) -> Optional[str]:
        pass

    @abstractmethod
    def is_vibrate_enabled(self) -> bool:
        pass

    @abstractmethod
    def get_led_color(self) -> str:
        pass

    @abstractmethod
    def get_led_pattern(self) -> str:
        pass

    @abstractmethod
    def get_led_pattern_custom(self) -> str:
        pass


class StaticPreferences(PreferenceStore):
    """Preferences taken straight from configuration."""

    def __init__(self, preferences: Optional[NotificationPreferences] = None):
        self.preferences = preferences or NotificationPreferences()

    def is_notifications_enabled(self) -> bool:
        return self.preferences.notifications_enabled

    def is_in_thread_notifications(self) -> bool:
        return self.preferences.in_thread_notifications

    def get_notification_ringtone(self) -> Optional[str]:
        return self.preferences.ringtone

    def is_vibrate_enabled(self) -> bool:
        return self.preferences.vibrate

    def get_led_color(self) -> str:
        return self.preferences.led_color

    def get_led_pattern(self) -> str:
        return self.preferences.led_pattern

    def get_led_pattern_custom(self) -> str:
        return self.preferences.led_pattern_custom


class SQLitePreferences(StaticPreferences):
    """
    Preferences stored in the meta table, falling back to configured defaults.

    Values are read on every call so changes made by another process take
    effect on the next update cycle.
    """

    KEY_PREFIX = "pref."

    def __init__(self, conn: sqlite3.Connection,
                 defaults: Optional[NotificationPreferences] = None):
        super().__init__(defaults)
        self.conn = conn

    def _get(self, name: str) -> Optional[str]:
        return get_meta(self.conn, self.KEY_PREFIX + name)

    def _get_bool(self, name: str, default: bool) -> bool:
        value = self._get(name)
        if value is None:
            return default
        return value.lower() == "true"

    def set(self, name: str, value) -> None:
        """Persist a preference, e.g. set("led_color", "red")."""
        if not hasattr(self.preferences, name):
            raise KeyError(f"Unknown preference: {name}")
        if isinstance(value, bool):
            value = "true" if value else "false"
        set_meta(self.conn, self.KEY_PREFIX + name, "" if value is None else str(value))

    def is_notifications_enabled(self) -> bool:
        return self._get_bool("notifications_enabled", super().is_notifications_enabled())

    def is_in_thread_notifications(self) -> bool:
        return self._get_bool("in_thread_notifications", super().is_in_thread_notifications())

    def get_notification_ringtone(self) -> Optional[str]:
        value = self._get("ringtone")
        if value is None:
            return super().get_notification_ringtone()
        return value or None

    def is_vibrate_enabled(self) -> bool:
        return self._get_bool("vibrate", super().is_vibrate_enabled())

    def get_led_color(self) -> str:
        return self._get("led_color") or super().get_led_color()

    def get_led_pattern(self) -> str:
        return self._get("led_pattern") or super().get_led_pattern()

    def get_led_pattern_custom(self) -> str:
        return self._get("led_pattern_custom") or super().get_led_pattern_custom()
