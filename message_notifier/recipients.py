"""Recipient resolution from raw sender and destination addresses."""

import logging
import re
import sqlite3
from typing import Iterable

from .db import get_contact
from .errors import MalformedSenderError, SourceReadError
from .models import PendingPushRecord, Recipient, Recipients

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?\d{3,15}$")
_PHONE_SEPARATORS_RE = re.compile(r"[\s().\-]")


def normalize_address(raw: str) -> str:
    """
    Normalize a phone number or email address.

    Args:
        raw: The address as received.

    Returns:
        The canonical address: lowercase email, or digits with optional "+".

    Raises:
        MalformedSenderError: If the value is neither a phone number nor an email.
    """
    if raw is None:
        raise MalformedSenderError("Empty address")

    value = raw.strip()
    if _EMAIL_RE.match(value):
        return value.lower()

    number = _PHONE_SEPARATORS_RE.sub("", value)
    if _PHONE_RE.match(number):
        return number

    raise MalformedSenderError(f"Unparseable address: {raw!r}")


class RecipientFactory:
    """Builds Recipient objects, filling in names from the contacts table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def recipient_for(self, address: str) -> Recipient:
        """Look up a contact for an already-normalized address."""
        try:
            contact = get_contact(self.conn, address)
        except sqlite3.Error as e:
            raise SourceReadError(f"Could not look up contact {address}: {e}") from e
        if contact is None:
            return Recipient(address=address)
        name, photo_uri = contact
        return Recipient(address=address, name=name, contact_photo=photo_uri)

    def recipient_from_string(self, raw: str) -> Recipient:
        """
        Resolve a raw sender string.

        Raises:
            MalformedSenderError: If the address cannot be parsed.
        """
        return self.recipient_for(normalize_address(raw))

    def recipients_for(self, addresses: Iterable[str]) -> Recipients:
        """Resolve stored addresses, substituting the unknown recipient for bad ones."""
        members = []
        for address in addresses:
            try:
                members.append(self.recipient_from_string(address))
            except MalformedSenderError as e:
                logger.warning(f"Skipping malformed recipient: {e}")
                members.append(Recipient.unknown())
        if not members:
            members.append(Recipient.unknown())
        return Recipients(members=tuple(members))

    def recipients_from_message(self, message: PendingPushRecord) -> Recipients:
        """Participants of a push message: the sender plus any group destinations."""
        return self.recipients_for((message.source,) + tuple(message.destinations))
