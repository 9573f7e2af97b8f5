"""Chooses and builds the notification to show for a notification state."""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .alarms import Alarms, build_alarms
from .models import NavigationTarget, NotificationState, Recipients, StyledText
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)

NOTIFICATION_ID = 1338

SMALL_ICON = "icon_notification"
WARNING_ICON = "ic_action_warning_red"

NEW_MESSAGES = "{count} new messages"
MOST_RECENT_FROM = "Most recent from: {name}"
MARK_AS_READ = "Mark as read"
MARK_ALL_AS_READ = "Mark all as read"
DELIVERY_FAILED_TITLE = "Message delivery failed"
DELIVERY_FAILED_TEXT = "Failed to deliver message."
DELIVERY_FAILED_TICKER = "Error delivering message."


class StyleKind(Enum):
    """Expanded layout of a notification."""

    NONE = "none"
    BIG_TEXT = "big_text"  # one block of text, one line per message
    INBOX = "inbox"        # one ticker line per message


@dataclass(frozen=True)
class MarkReadAction:
    """Secondary action marking the given threads as read."""
    label: str
    thread_ids: Tuple[int, ...]


@dataclass(frozen=True)
class RenderRequest:
    """Everything a presenter needs to show one notification."""
    notification_id: int
    title: str
    text: StyledText
    target: NavigationTarget
    number: int = 0
    style: StyleKind = StyleKind.NONE
    lines: Tuple[StyledText, ...] = ()
    action: Optional[MarkReadAction] = None
    alarms: Alarms = Alarms()
    ticker: Optional[StyledText] = None
    small_icon: str = SMALL_ICON
    large_icon: Optional[str] = None
    auto_cancel: bool = False

    @property
    def content_info(self) -> str:
        return str(self.number)

    @property
    def detail(self) -> str:
        """Expanded body as plain text."""
        return "\n".join(str(line) for line in self.lines)


class Presenter(ABC):
    """Surface that shows and removes notifications."""

    @abstractmethod
    def render(self, notification_id: int, request: RenderRequest) -> None:
        pass

    @abstractmethod
    def cancel(self, notification_id: int) -> None:
        pass


class TrayPresenter(Presenter):
    """Keeps active notifications in memory and logs every change."""

    def __init__(self):
        self._lock = threading.Lock()
        self.active: Dict[int, RenderRequest] = {}

    def render(self, notification_id: int, request: RenderRequest) -> None:
        with self._lock:
            self.active[notification_id] = request
        logger.info(f"Notification {notification_id}: {request.title} - {request.text}")
        for line in request.lines:
            logger.debug(f"  {line}")

    def cancel(self, notification_id: int) -> None:
        with self._lock:
            removed = self.active.pop(notification_id, None)
        if removed is not None:
            logger.info(f"Notification {notification_id} cancelled")


def _thread_title(state: NotificationState) -> str:
    first = state.notifications[0]
    recipients: Optional[Recipients] = first.thread_recipients or first.recipients
    if recipients is not None and recipients.members:
        return recipients.short_name
    return first.individual_recipient_name


def build_single_thread_request(state: NotificationState, preferences: PreferenceStore,
                                signal: bool, locked: bool) -> RenderRequest:
    """Detail view for a state whose messages all belong to one conversation."""
    notifications = state.notifications
    first = notifications[0]

    action = None
    if not locked:
        action = MarkReadAction(label=MARK_AS_READ, thread_ids=tuple(state.thread_ids))

    return RenderRequest(
        notification_id=NOTIFICATION_ID,
        title=_thread_title(state),
        text=first.text,
        target=first.target,
        number=state.message_count,
        style=StyleKind.BIG_TEXT,
        lines=tuple(item.big_style_summary for item in notifications),
        action=action,
        alarms=build_alarms(preferences, signal),
        ticker=first.ticker_text if signal else None,
        large_icon=first.individual_recipient.contact_photo,
    )


def build_multiple_thread_request(state: NotificationState, preferences: PreferenceStore,
                                  signal: bool, locked: bool) -> RenderRequest:
    """Inbox-style summary for messages spread over several conversations."""
    notifications = state.notifications
    first = notifications[0]

    action = None
    if not locked:
        action = MarkReadAction(label=MARK_ALL_AS_READ, thread_ids=tuple(state.thread_ids))

    return RenderRequest(
        notification_id=NOTIFICATION_ID,
        title=NEW_MESSAGES.format(count=state.message_count),
        text=StyledText.plain(MOST_RECENT_FROM.format(name=first.individual_recipient_name)),
        target=NavigationTarget.landing(),
        number=state.message_count,
        style=StyleKind.INBOX,
        lines=tuple(item.ticker_text for item in notifications),
        action=action,
        alarms=build_alarms(preferences, signal),
        ticker=first.ticker_text if signal else None,
        large_icon=SMALL_ICON,
    )


def delivery_failure_id(thread_id: int) -> int:
    """
    Notification id for a thread's delivery failure.

    Thread ids are positive, or -1 when unresolved, so failure ids are always
    negative and can never collide with NOTIFICATION_ID.
    """
    return -2 - thread_id


def build_delivery_failure_request(recipients: Recipients, thread_id: int,
                                   preferences: PreferenceStore) -> RenderRequest:
    """Failure notice for one thread, shown under an id derived from the thread."""
    return RenderRequest(
        notification_id=delivery_failure_id(thread_id),
        title=DELIVERY_FAILED_TITLE,
        text=StyledText.plain(DELIVERY_FAILED_TEXT),
        target=NavigationTarget(thread_id=thread_id, recipients=recipients),
        alarms=build_alarms(preferences, True),
        ticker=StyledText.plain(DELIVERY_FAILED_TICKER),
        large_icon=WARNING_ICON,
        auto_cancel=True,
    )


def present(state: NotificationState, presenter: Presenter, preferences: PreferenceStore,
            signal: bool, locked: bool) -> Optional[RenderRequest]:
    """
    Render the state, or cancel the notification when there is nothing to show.

    Args:
        state: The state built for this update cycle.
        presenter: Where the notification is shown.
        preferences: Source of sound, vibration and LED settings.
        signal: Whether this update should alert the user.
        locked: Whether message content is currently undecryptable.

    Returns:
        The submitted RenderRequest, or None if the notification was cancelled.
    """
    if state.is_empty():
        presenter.cancel(NOTIFICATION_ID)
        return None

    if state.has_multiple_threads():
        request = build_multiple_thread_request(state, preferences, signal, locked)
    else:
        request = build_single_thread_request(state, preferences, signal, locked)

    presenter.render(NOTIFICATION_ID, request)
    return request
