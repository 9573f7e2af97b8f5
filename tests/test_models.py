"""Tests for notification items and state."""

from message_notifier.models import (
    DECRYPTING_PLACEHOLDER,
    ENCRYPTED_MESSAGE,
    NavigationTarget,
    NotificationItem,
    NotificationState,
    Recipient,
    Recipients,
    Span,
    StyledText,
    normalize_body,
)


def make_item(thread_id, sender="+15550001111", body="hi", thread_recipients=None):
    recipient = Recipient(address=sender)
    return NotificationItem(
        individual_recipient=recipient,
        recipients=Recipients.of(recipient),
        thread_recipients=thread_recipients,
        thread_id=thread_id,
        body=StyledText.plain(body),
    )


class TestNormalizeBody:
    def test_decrypting_placeholder_becomes_italic_encrypted_message(self):
        body = normalize_body(DECRYPTING_PLACEHOLDER)
        assert str(body) == ENCRYPTED_MESSAGE
        assert body.spans == (Span(ENCRYPTED_MESSAGE, italic=True),)

    def test_ordinary_body_is_plain(self):
        body = normalize_body("See you at 5")
        assert str(body) == "See you at 5"
        assert not any(span.italic for span in body.spans)

    def test_missing_body_is_empty(self):
        assert str(normalize_body(None)) == ""


class TestRecipient:
    def test_short_name_prefers_contact_name(self):
        assert Recipient("+1555", name="Alice").short_name == "Alice"
        assert Recipient("+1555").short_name == "+1555"

    def test_recipients_short_name_joins_members(self):
        recipients = Recipients.of(Recipient("+1", name="Alice"), Recipient("+2"))
        assert recipients.short_name == "Alice, +2"
        assert recipients.primary.name == "Alice"


class TestNotificationItem:
    def test_ticker_text_bolds_sender(self):
        item = make_item(5, sender="+15550001111", body="lunch?")
        ticker = item.ticker_text
        assert str(ticker) == "+15550001111: lunch?"
        assert ticker.spans[0].bold is True

    def test_big_style_summary_is_body(self):
        assert str(make_item(5, body="lunch?").big_style_summary) == "lunch?"

    def test_target_prefers_thread_recipients(self):
        thread_recipients = Recipients.of(Recipient("+1"), Recipient("+2"))
        item = make_item(5, thread_recipients=thread_recipients)
        assert item.target == NavigationTarget(thread_id=5, recipients=thread_recipients)

    def test_target_falls_back_to_recipients(self):
        item = make_item(-1)
        assert item.target.recipients == item.recipients
        assert item.target.thread_id == -1


class TestNotificationState:
    def test_empty_state(self):
        state = NotificationState()
        assert state.is_empty()
        assert state.message_count == 0
        assert state.thread_count == 0
        assert not state.has_multiple_threads()

    def test_counts_distinct_threads(self):
        state = NotificationState()
        for thread_id in (5, 5, 9):
            state.add(make_item(thread_id))
        assert state.message_count == 3
        assert state.thread_count == 2
        assert state.thread_ids == [5, 9]
        assert state.has_multiple_threads()

    def test_unresolved_threads_are_counted_but_not_threads(self):
        state = NotificationState()
        state.add(make_item(-1))
        state.add(make_item(5))
        assert state.message_count == 2
        assert state.thread_count == 1
        assert not state.has_multiple_threads()

    def test_landing_target(self):
        assert NavigationTarget.landing().is_landing
        assert not NavigationTarget(thread_id=3).is_landing
