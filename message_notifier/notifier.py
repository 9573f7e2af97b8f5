"""Posts system notifications for new messages."""

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional

from .chime import InThreadChime
from .errors import SourceReadError
from .models import UNRESOLVED_THREAD_ID, Recipients
from .preferences import PreferenceStore
from .presenter import (
    NOTIFICATION_ID,
    Presenter,
    RenderRequest,
    build_delivery_failure_request,
    present,
)
from .recipients import RecipientFactory
from .signal_policy import SignalDecision, decide_signal
from .sources import (
    MessageReader,
    PushReader,
    SilenceStore,
    ThreadDirectory,
    open_message_reader,
    open_push_reader,
)
from .state import construct_notification_state

logger = logging.getLogger(__name__)


class VisibleThread:
    """
    The thread the user is currently looking at, -1 for none.

    Set by the UI and read by every update; the last write wins.
    """

    def __init__(self, thread_id: int = UNRESOLVED_THREAD_ID):
        self._lock = threading.Lock()
        self._thread_id = thread_id

    def get(self) -> int:
        with self._lock:
            return self._thread_id

    def set(self, thread_id: int) -> None:
        with self._lock:
            self._thread_id = thread_id


class MessageNotifier:
    """Runs update cycles: signal policy, state construction, presentation."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        preferences: PreferenceStore,
        presenter: Presenter,
        chime: InThreadChime,
        visible_thread: Optional[VisibleThread] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        message_reader_factory: Optional[Callable[[], MessageReader]] = None,
        push_reader_factory: Optional[Callable[[], PushReader]] = None,
    ):
        self.conn = conn
        self.preferences = preferences
        self.presenter = presenter
        self.chime = chime
        self.visible_thread = visible_thread or VisibleThread()
        self.clock = clock
        self.recipients = RecipientFactory(conn)
        self.threads = ThreadDirectory(conn, self.recipients)
        self.silence = SilenceStore(conn)
        self._open_messages = message_reader_factory or (lambda: open_message_reader(conn))
        self._open_pushes = push_reader_factory or (lambda: open_push_reader(conn))
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, notification_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(notification_id, threading.Lock())

    def set_visible_thread(self, thread_id: int) -> None:
        self.visible_thread.set(thread_id)

    def update_notification(self, locked: bool = False) -> Optional[RenderRequest]:
        """Refresh the notification quietly, e.g. after messages were read."""
        if not self.preferences.is_notifications_enabled():
            return None
        return self._update(signal=False, locked=locked)

    def update_notification_for_thread(self, thread_id: int,
                                       locked: bool = False) -> Optional[RenderRequest]:
        """
        Refresh the notification after a message arrived in a thread.

        Args:
            thread_id: The thread that received the message.
            locked: True when message content cannot be decrypted right now.

        Returns:
            The rendered request, or None if nothing was rendered.
        """
        if not self.preferences.is_notifications_enabled():
            return None

        decision = decide_signal(thread_id, self.visible_thread.get(),
                                 self._is_silenced(thread_id))
        if decision is SignalDecision.IN_THREAD:
            try:
                self.threads.set_read(thread_id)
            except SourceReadError as e:
                logger.error(f"Could not mark visible thread {thread_id} read: {e}")
            self.chime.play()
            return None

        return self._update(signal=decision is SignalDecision.SIGNAL, locked=locked)

    def notify_message_delivery_failed(self, recipients: Recipients,
                                       thread_id: int) -> Optional[RenderRequest]:
        """Tell the user a message to a thread could not be delivered."""
        if decide_signal(thread_id, self.visible_thread.get(), False) is SignalDecision.IN_THREAD:
            self.chime.play()
            return None

        request = build_delivery_failure_request(recipients, thread_id, self.preferences)
        with self._lock_for(request.notification_id):
            self.presenter.render(request.notification_id, request)
        return request

    def mark_threads_read(self, thread_ids: Iterable[int],
                          locked: bool = False) -> Optional[RenderRequest]:
        """Handle the mark-as-read action, then refresh quietly."""
        try:
            for thread_id in thread_ids:
                self.threads.set_read(thread_id)
        except SourceReadError as e:
            logger.error(f"Mark as read aborted: {e}", exc_info=True)
            return None
        return self.update_notification(locked=locked)

    def _is_silenced(self, thread_id: int) -> bool:
        if thread_id == UNRESOLVED_THREAD_ID:
            return False
        try:
            recipients = self.threads.recipients_for_thread_id(thread_id)
            if recipients is None:
                return False
            return self.silence.is_silenced_now(recipients.primary, self.clock())
        except SourceReadError as e:
            logger.warning(f"Could not check mute setting for thread {thread_id}: {e}")
            return False

    def _update(self, signal: bool, locked: bool) -> Optional[RenderRequest]:
        with self._lock_for(NOTIFICATION_ID):
            try:
                message_reader = self._open_messages()
                try:
                    push_reader = self._open_pushes()
                except SourceReadError:
                    message_reader.close()
                    raise
                state = construct_notification_state(
                    message_reader,
                    push_reader,
                    self.threads,
                    self.recipients,
                    locked,
                )
            except SourceReadError as e:
                logger.error(f"Notification update aborted: {e}", exc_info=True)
                return None

            logger.info(
                f"Notification state: {state.message_count} messages "
                f"in {state.thread_count} threads (signal={signal})"
            )
            return present(state, self.presenter, self.preferences, signal, locked)
