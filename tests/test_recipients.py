"""Tests for address parsing and recipient lookup."""

import pytest

from message_notifier.db import set_contact
from message_notifier.errors import MalformedSenderError
from message_notifier.models import PendingPushRecord
from message_notifier.recipients import RecipientFactory, normalize_address


class TestNormalizeAddress:
    @pytest.mark.parametrize("raw,expected", [
        ("+1 (555) 000-1111", "+15550001111"),
        ("555.000.1111", "5550001111"),
        (" Alice@Example.com ", "alice@example.com"),
    ])
    def test_valid(self, raw, expected):
        assert normalize_address(raw) == expected

    @pytest.mark.parametrize("raw", ["", "hello", "12", "+1-555-abc", None])
    def test_malformed(self, raw):
        with pytest.raises(MalformedSenderError):
            normalize_address(raw)


class TestRecipientFactory:
    def test_contact_name_and_photo(self, conn):
        set_contact(conn, "+15550001111", "Alice", "content://alice.png")

        recipient = RecipientFactory(conn).recipient_from_string("+1 555 000 1111")

        assert recipient.short_name == "Alice"
        assert recipient.contact_photo == "content://alice.png"

    def test_unknown_contact_uses_address(self, conn):
        assert RecipientFactory(conn).recipient_from_string("+15550001111").short_name == "+15550001111"

    def test_recipients_for_substitutes_unknown(self, conn):
        recipients = RecipientFactory(conn).recipients_for(["+15550001111", "garbage"])

        assert recipients.addresses == ("+15550001111", "Unknown")

    def test_recipients_for_empty(self, conn):
        assert RecipientFactory(conn).recipients_for([]).short_name == "Unknown"

    def test_recipients_from_group_message(self, conn):
        message = PendingPushRecord(id=1, source="+15550001111", destinations=("+15550002222",))

        recipients = RecipientFactory(conn).recipients_from_message(message)

        assert recipients.addresses == ("+15550001111", "+15550002222")
