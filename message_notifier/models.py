"""Data models for message notifications."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

UNRESOLVED_THREAD_ID = -1

DECRYPTING_PLACEHOLDER = "Decrypting, please wait..."
ENCRYPTED_MESSAGE = "Encrypted message"


@dataclass(frozen=True)
class Recipient:
    """A single conversation participant."""
    address: str                         # phone number or email address
    name: Optional[str] = None           # contact display name, if known
    contact_photo: Optional[str] = None  # URI of the contact's photo

    @property
    def short_name(self) -> str:
        return self.name or self.address

    @classmethod
    def unknown(cls) -> "Recipient":
        """Placeholder identity for senders whose address cannot be parsed."""
        return cls(address="Unknown", name="Unknown")


@dataclass(frozen=True)
class Recipients:
    """The participants of a conversation, primary recipient first."""
    members: Tuple[Recipient, ...]

    @property
    def primary(self) -> Recipient:
        return self.members[0]

    @property
    def short_name(self) -> str:
        return ", ".join(member.short_name for member in self.members)

    @property
    def addresses(self) -> Tuple[str, ...]:
        return tuple(member.address for member in self.members)

    @classmethod
    def of(cls, *members: Recipient) -> "Recipients":
        return cls(members=tuple(members))


@dataclass(frozen=True)
class Span:
    """A run of text sharing one style."""
    text: str
    bold: bool = False
    italic: bool = False


@dataclass(frozen=True)
class StyledText:
    """Display text made of styled spans."""
    spans: Tuple[Span, ...] = ()

    @classmethod
    def plain(cls, text: str) -> "StyledText":
        return cls(spans=(Span(text),)) if text else cls()

    @classmethod
    def italic(cls, text: str) -> "StyledText":
        return cls(spans=(Span(text, italic=True),))

    def __add__(self, other: "StyledText") -> "StyledText":
        return StyledText(spans=self.spans + other.spans)

    def __str__(self) -> str:
        return "".join(span.text for span in self.spans)


def normalize_body(raw: Optional[str]) -> StyledText:
    """
    Turn a stored message body into display text.

    A body still showing the decrypting placeholder is replaced by an
    italic "Encrypted message".
    """
    if raw == DECRYPTING_PLACEHOLDER:
        return StyledText.italic(ENCRYPTED_MESSAGE)
    return StyledText.plain(raw or "")


@dataclass(frozen=True)
class NavigationTarget:
    """Where tapping a notification takes the user."""
    thread_id: int
    recipients: Optional[Recipients] = None

    @classmethod
    def landing(cls) -> "NavigationTarget":
        """The app's default conversation list."""
        return cls(thread_id=UNRESOLVED_THREAD_ID)

    @property
    def is_landing(self) -> bool:
        return self.thread_id == UNRESOLVED_THREAD_ID and self.recipients is None


@dataclass(frozen=True)
class MessageRecord:
    """An unread message as read from the persisted message store."""
    id: int
    sender: str
    recipients: Tuple[str, ...]
    thread_id: int
    body: Optional[str]
    image: Optional[str] = None
    date_received: int = 0  # epoch millis


@dataclass(frozen=True)
class PendingPushRecord:
    """A push message received but not yet decrypted or threaded."""
    id: int
    source: str
    destinations: Tuple[str, ...] = ()  # other group members, empty for 1:1
    timestamp: int = 0                  # epoch millis


@dataclass(frozen=True)
class NotificationItem:
    """One pending message, normalized for display."""
    individual_recipient: Recipient
    recipients: Recipients
    thread_recipients: Optional[Recipients]
    thread_id: int
    body: StyledText
    image: Optional[str] = None

    @property
    def individual_recipient_name(self) -> str:
        return self.individual_recipient.short_name

    @property
    def text(self) -> StyledText:
        return self.body

    @property
    def ticker_text(self) -> StyledText:
        name = StyledText(spans=(Span(self.individual_recipient_name, bold=True),))
        return name + StyledText.plain(": ") + self.body

    @property
    def big_style_summary(self) -> StyledText:
        return self.body

    @property
    def target(self) -> NavigationTarget:
        return NavigationTarget(
            thread_id=self.thread_id,
            recipients=self.thread_recipients or self.recipients,
        )


@dataclass
class NotificationState:
    """The notification items gathered during one update cycle."""
    notifications: List[NotificationItem] = field(default_factory=list)

    def add(self, item: NotificationItem) -> None:
        self.notifications.append(item)

    @property
    def message_count(self) -> int:
        return len(self.notifications)

    @property
    def thread_ids(self) -> List[int]:
        """Distinct resolved thread ids, in first-seen order."""
        seen: List[int] = []
        for item in self.notifications:
            if item.thread_id != UNRESOLVED_THREAD_ID and item.thread_id not in seen:
                seen.append(item.thread_id)
        return seen

    @property
    def thread_count(self) -> int:
        return len(self.thread_ids)

    def has_multiple_threads(self) -> bool:
        return self.thread_count > 1

    def is_empty(self) -> bool:
        return not self.notifications
