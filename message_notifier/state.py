"""Builds the notification state from the message store and push queue."""

import logging

from .errors import MalformedSenderError
from .models import (
    ENCRYPTED_MESSAGE,
    UNRESOLVED_THREAD_ID,
    NotificationItem,
    NotificationState,
    Recipient,
    StyledText,
    normalize_body,
)
from .recipients import RecipientFactory
from .sources import MessageReader, PushReader, ThreadDirectory

logger = logging.getLogger(__name__)


def construct_notification_state(
    message_reader: MessageReader,
    push_reader: PushReader,
    threads: ThreadDirectory,
    recipients: RecipientFactory,
    locked: bool,
) -> NotificationState:
    """
    Gather every unread message and pending push into one state.

    Persisted messages come first, in reader order, followed by pending
    pushes. Pushes are left out entirely while the store is locked.
    Both readers are closed before returning, including on error.

    Args:
        message_reader: Reader over unread persisted messages.
        push_reader: Reader over pending push messages.
        threads: Thread lookup used to resolve participants and thread ids.
        recipients: Factory used to resolve sender addresses.
        locked: True when message content cannot be decrypted this cycle.

    Returns:
        The populated NotificationState.

    Raises:
        SourceReadError: If either source fails while being read.
    """
    try:
        state = NotificationState()
        _append_persisted(state, message_reader, threads, recipients)
        if not locked:
            _append_pending(state, push_reader, threads, recipients)
        return state
    finally:
        message_reader.close()
        push_reader.close()


def _append_persisted(state, reader, threads, recipients) -> None:
    while True:
        record = reader.get_next()
        if record is None:
            break

        try:
            individual = recipients.recipient_from_string(record.sender)
        except MalformedSenderError as e:
            logger.warning(f"Message {record.id}: {e}")
            individual = Recipient.unknown()

        thread_recipients = None
        if record.thread_id != UNRESOLVED_THREAD_ID:
            thread_recipients = threads.recipients_for_thread_id(record.thread_id)

        state.add(NotificationItem(
            individual_recipient=individual,
            recipients=recipients.recipients_for(record.recipients or (record.sender,)),
            thread_recipients=thread_recipients,
            thread_id=record.thread_id,
            body=normalize_body(record.body),
            image=record.image,
        ))


def _append_pending(state, reader, threads, recipients) -> None:
    while True:
        message = reader.get_next()
        if message is None:
            break

        try:
            individual = recipients.recipient_from_string(message.source)
        except MalformedSenderError as e:
            logger.warning(f"Pending push {message.id}: {e}")
            individual = Recipient.unknown()

        message_recipients = recipients.recipients_from_message(message)
        thread_id = threads.thread_id_for(message_recipients)

        state.add(NotificationItem(
            individual_recipient=individual,
            recipients=message_recipients,
            thread_recipients=None,
            thread_id=thread_id,
            body=StyledText.italic(ENCRYPTED_MESSAGE),
        ))
