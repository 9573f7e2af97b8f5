"""Tests for building the notification state."""

import sqlite3

import pytest

from conftest import ALICE, BOB, CAROL, add_message, add_push, make_thread
from message_notifier.db import set_contact
from message_notifier.errors import SourceReadError
from message_notifier.models import DECRYPTING_PLACEHOLDER, ENCRYPTED_MESSAGE
from message_notifier.recipients import RecipientFactory
from message_notifier.sources import (
    MessageReader,
    PushReader,
    ThreadDirectory,
    open_message_reader,
    open_push_reader,
)
from message_notifier.state import construct_notification_state


@pytest.fixture
def recipients(conn):
    return RecipientFactory(conn)


@pytest.fixture
def threads(conn, recipients):
    return ThreadDirectory(conn, recipients)


def build(conn, threads, recipients, locked=False):
    return construct_notification_state(
        open_message_reader(conn), open_push_reader(conn), threads, recipients, locked
    )


class FailingCursor:
    def __init__(self):
        self.closed = False

    def fetchone(self):
        raise sqlite3.OperationalError("disk I/O error")

    def close(self):
        self.closed = True


class TestConstructNotificationState:
    def test_counts_records_from_both_sources(self, conn, threads, recipients):
        make_thread(conn, 5, ALICE)
        add_message(conn, 5, ALICE, date_received=2000)
        add_message(conn, 5, ALICE, date_received=1000)
        add_push(conn, BOB)
        add_push(conn, CAROL)

        state = build(conn, threads, recipients)

        assert state.message_count == 4

    def test_persisted_before_pending(self, conn, threads, recipients):
        make_thread(conn, 5, ALICE)
        add_push(conn, BOB)
        add_message(conn, 5, ALICE)

        state = build(conn, threads, recipients)

        senders = [item.individual_recipient.address for item in state.notifications]
        assert senders == [ALICE, BOB]

    def test_persisted_most_recent_first(self, conn, threads, recipients):
        make_thread(conn, 5, ALICE)
        add_message(conn, 5, ALICE, body="older", date_received=1000)
        add_message(conn, 5, ALICE, body="newer", date_received=2000)

        state = build(conn, threads, recipients)

        assert [str(item.body) for item in state.notifications] == ["newer", "older"]

    def test_locked_skips_pending_pushes(self, conn, threads, recipients):
        make_thread(conn, 5, ALICE)
        add_message(conn, 5, ALICE)
        add_push(conn, BOB)

        state = build(conn, threads, recipients, locked=True)

        assert state.message_count == 1
        assert state.notifications[0].individual_recipient.address == ALICE

    def test_decrypting_body_replaced(self, conn, threads, recipients):
        make_thread(conn, 5, ALICE)
        add_message(conn, 5, ALICE, body=DECRYPTING_PLACEHOLDER)

        body = build(conn, threads, recipients).notifications[0].body

        assert str(body) == ENCRYPTED_MESSAGE
        assert body.spans[0].italic is True

    def test_thread_recipients_resolved(self, conn, threads, recipients):
        make_thread(conn, 5, ALICE)
        set_contact(conn, ALICE, "Alice")
        add_message(conn, 5, ALICE)

        item = build(conn, threads, recipients).notifications[0]

        assert item.thread_recipients.short_name == "Alice"
        assert item.individual_recipient.name == "Alice"

    def test_unresolved_thread_has_no_thread_recipients(self, conn, threads, recipients):
        add_message(conn, -1, ALICE)

        state = build(conn, threads, recipients)

        assert state.notifications[0].thread_recipients is None
        assert state.message_count == 1
        assert state.thread_count == 0

    def test_push_body_is_always_encrypted_placeholder(self, conn, threads, recipients):
        add_push(conn, BOB)

        item = build(conn, threads, recipients).notifications[0]

        assert str(item.body) == ENCRYPTED_MESSAGE
        assert item.body.spans[0].italic is True

    def test_push_thread_resolved_from_addressing(self, conn, threads, recipients):
        make_thread(conn, 9, BOB)
        add_push(conn, BOB)

        assert build(conn, threads, recipients).notifications[0].thread_id == 9

    def test_group_push_creates_group_thread(self, conn, threads, recipients):
        add_push(conn, BOB, destinations=[CAROL])

        item = build(conn, threads, recipients).notifications[0]

        assert item.recipients.addresses == (BOB, CAROL)
        assert threads.recipients_for_thread_id(item.thread_id).addresses == (BOB, CAROL)

    def test_malformed_push_sender_degrades_to_unknown(self, conn, threads, recipients):
        add_push(conn, "not a sender!")
        add_push(conn, BOB)

        state = build(conn, threads, recipients)

        assert state.message_count == 2
        assert state.notifications[0].individual_recipient.short_name == "Unknown"

    def test_readers_closed_on_success(self, conn, threads, recipients):
        message_reader = open_message_reader(conn)
        push_reader = open_push_reader(conn)

        construct_notification_state(message_reader, push_reader, threads, recipients, True)

        assert message_reader.closed
        assert push_reader.closed

    def test_read_failure_propagates_and_closes_readers(self, conn, threads, recipients):
        failing = FailingCursor()
        message_reader = MessageReader(failing)
        push_reader = open_push_reader(conn)

        with pytest.raises(SourceReadError):
            construct_notification_state(message_reader, push_reader, threads, recipients, False)

        assert failing.closed
        assert push_reader.closed

    def test_push_read_failure_propagates(self, conn, threads, recipients):
        make_thread(conn, 5, ALICE)
        add_message(conn, 5, ALICE)
        message_reader = open_message_reader(conn)

        with pytest.raises(SourceReadError):
            construct_notification_state(
                message_reader, PushReader(FailingCursor()), threads, recipients, False
            )

        assert message_reader.closed

    def test_close_twice_is_harmless(self, conn):
        reader = open_message_reader(conn)
        reader.close()
        reader.close()
        assert reader.get_next() is None
