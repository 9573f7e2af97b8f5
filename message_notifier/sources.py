"""Sequential readers over the message store and pending push queue."""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from .db import (
    get_or_create_thread_id,
    get_pending,
    get_silence_until,
    get_thread_addresses,
    get_unread,
    set_thread_read,
)
from .errors import SourceReadError
from .models import MessageRecord, PendingPushRecord, Recipient, Recipients
from .recipients import RecipientFactory

logger = logging.getLogger(__name__)


def _split(value: Optional[str]):
    return tuple(part for part in (value or "").split(",") if part)


class _CursorReader:
    """Reads one row at a time from a cursor; closing twice is harmless."""

    def __init__(self, cursor: Optional[sqlite3.Cursor]):
        self._cursor = cursor
        self._closed = cursor is None

    def _fetch(self):
        if self._closed:
            return None
        try:
            return self._cursor.fetchone()
        except sqlite3.Error as e:
            raise SourceReadError(f"{type(self).__name__} failed: {e}") from e

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._cursor.close()
        except sqlite3.Error as e:
            logger.warning(f"Error closing {type(self).__name__}: {e}")


class MessageReader(_CursorReader):
    """Reads unread messages from the persisted store."""

    def get_next(self) -> Optional[MessageRecord]:
        row = self._fetch()
        if row is None:
            return None
        message_id, sender, recipients, thread_id, body, image, date_received = row
        return MessageRecord(
            id=message_id,
            sender=sender,
            recipients=_split(recipients),
            thread_id=thread_id,
            body=body,
            image=image,
            date_received=date_received,
        )


class PushReader(_CursorReader):
    """Reads pending push messages from the queue."""

    def get_next(self) -> Optional[PendingPushRecord]:
        row = self._fetch()
        if row is None:
            return None
        push_id, source, destinations, timestamp = row
        return PendingPushRecord(
            id=push_id,
            source=source,
            destinations=_split(destinations),
            timestamp=timestamp,
        )


def open_message_reader(conn: sqlite3.Connection) -> MessageReader:
    try:
        return MessageReader(get_unread(conn))
    except sqlite3.Error as e:
        raise SourceReadError(f"Could not query unread messages: {e}") from e


def open_push_reader(conn: sqlite3.Connection) -> PushReader:
    try:
        return PushReader(get_pending(conn))
    except sqlite3.Error as e:
        raise SourceReadError(f"Could not query pending pushes: {e}") from e


class ThreadDirectory:
    """Maps between thread ids and their participants."""

    def __init__(self, conn: sqlite3.Connection, recipients: RecipientFactory):
        self.conn = conn
        self.recipients = recipients

    def recipients_for_thread_id(self, thread_id: int) -> Optional[Recipients]:
        try:
            addresses = get_thread_addresses(self.conn, thread_id)
        except sqlite3.Error as e:
            raise SourceReadError(f"Could not load thread {thread_id}: {e}") from e
        if not addresses:
            return None
        return self.recipients.recipients_for(addresses)

    def thread_id_for(self, recipients: Recipients) -> int:
        try:
            return get_or_create_thread_id(self.conn, recipients.addresses)
        except sqlite3.Error as e:
            raise SourceReadError(f"Could not resolve thread for {recipients.short_name}: {e}") from e

    def set_read(self, thread_id: int) -> None:
        try:
            set_thread_read(self.conn, thread_id)
        except sqlite3.Error as e:
            raise SourceReadError(f"Could not mark thread {thread_id} read: {e}") from e


class SilenceStore:
    """Per-recipient mute settings."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def is_silenced_now(self, recipient: Recipient, now: Optional[datetime] = None) -> bool:
        """
        Check whether a recipient is muted at the given instant.

        Args:
            recipient: The thread's primary recipient.
            now: Instant to compare against; defaults to the current time.

        Returns:
            True if the recipient's silence-until instant is in the future.
        """
        now = now or datetime.now(timezone.utc)
        now_millis = int(now.timestamp() * 1000)
        try:
            return get_silence_until(self.conn, recipient.address) > now_millis
        except sqlite3.Error as e:
            raise SourceReadError(f"Could not load mute setting for {recipient.address}: {e}") from e
