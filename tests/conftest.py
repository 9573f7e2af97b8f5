"""Pytest configuration and shared fixtures."""

import sys
import threading
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from message_notifier.chime import AudioFocus, CuePlayer, InThreadChime  # noqa: E402
from message_notifier.config import NotificationPreferences  # noqa: E402
from message_notifier.db import init_db, insert_message, insert_push  # noqa: E402
from message_notifier.notifier import MessageNotifier  # noqa: E402
from message_notifier.preferences import StaticPreferences  # noqa: E402
from message_notifier.presenter import Presenter  # noqa: E402

ALICE = "+15550001111"
BOB = "+15550002222"
CAROL = "+15550003333"
RINGTONE = "file:///sounds/chime.wav"


class RecordingPresenter(Presenter):
    """Presenter that records every call."""

    def __init__(self):
        self.calls = []
        self.active = {}

    def render(self, notification_id, request):
        self.calls.append(("render", notification_id, request))
        self.active[notification_id] = request

    def cancel(self, notification_id):
        self.calls.append(("cancel", notification_id, None))
        self.active.pop(notification_id, None)

    @property
    def renders(self):
        return [call for call in self.calls if call[0] == "render"]


class FakeCuePlayer(CuePlayer):
    """Cue player that finishes immediately, or fails on demand."""

    def __init__(self, error=None):
        self.error = error
        self.played = []

    def play(self, uri, volume, loop=False):
        if self.error is not None:
            raise self.error
        self.played.append((uri, volume, loop))
        done = threading.Event()
        done.set()
        return done


@pytest.fixture
def conn():
    connection = init_db(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def preferences():
    return StaticPreferences(NotificationPreferences(ringtone=RINGTONE))


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def player():
    return FakeCuePlayer()


@pytest.fixture
def chime(preferences, player):
    return InThreadChime(preferences, player, AudioFocus())


@pytest.fixture
def notifier(conn, preferences, presenter, chime):
    return MessageNotifier(conn, preferences, presenter, chime)


def make_thread(conn, thread_id, *addresses):
    """Create a thread with a fixed id."""
    conn.execute(
        "INSERT INTO threads (id, recipient_addresses) VALUES (?, ?)",
        (thread_id, ",".join(sorted(addresses))),
    )
    conn.commit()
    return thread_id


def add_message(conn, thread_id, sender, body="hello", date_received=1000):
    return insert_message(conn, sender, [sender], thread_id, body, date_received)


def add_push(conn, source, destinations=()):
    return insert_push(conn, source, list(destinations), 0)
