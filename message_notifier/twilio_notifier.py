"""Forwards alerting notifications by SMS through Twilio."""

import logging

from .config import TwilioConfig
from .presenter import Presenter, RenderRequest

logger = logging.getLogger(__name__)

try:
    from twilio.rest import Client
    TWILIO_AVAILABLE = True
except ImportError:
    TWILIO_AVAILABLE = False
    logger.warning("Twilio library not installed. Install with: pip install twilio")

MAX_SMS_LENGTH = 1600


def format_sms(request: RenderRequest) -> str:
    """Plain-text SMS body for a render request."""
    lines = [request.title, str(request.text)]
    if request.lines:
        lines.append("")
        lines.extend(str(line) for line in request.lines)
    message = "\n".join(lines)
    if len(message) > MAX_SMS_LENGTH:
        message = message[:MAX_SMS_LENGTH - 3] + "..."
    return message


class TwilioSmsPresenter(Presenter):
    """
    Sends a text message for every render that signals the user.

    Quiet updates and cancellations are only logged, since a sent SMS
    cannot be replaced or withdrawn.
    """

    def __init__(self, config: TwilioConfig, client=None):
        """
        Args:
            config: Twilio configuration.
            client: Optional pre-built Twilio client.

        Raises:
            ImportError: If Twilio library is not installed and no client is given.
        """
        if client is None:
            if not TWILIO_AVAILABLE:
                raise ImportError(
                    "Twilio library not installed. Install with: pip install twilio"
                )
            client = Client(config.account_sid, config.auth_token)
        self.config = config
        self.client = client

    def render(self, notification_id: int, request: RenderRequest) -> None:
        if request.ticker is None:
            logger.debug(f"Notification {notification_id} updated quietly; no SMS sent")
            return

        try:
            message_obj = self.client.messages.create(
                body=format_sms(request),
                from_=self.config.from_number,
                to=self.config.to_number
            )
            logger.info(f"SMS sent for notification {notification_id}. SID: {message_obj.sid}")
        except Exception as e:
            error_str = str(e)
            if "20003" in error_str or "Authenticate" in error_str or "401" in error_str:
                logger.error(
                    "Twilio authentication failed (Error 20003). "
                    "Check TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN. "
                    f"Current Account SID (first 10 chars): {self.config.account_sid[:10]}..."
                )
            else:
                logger.error(f"Failed to send SMS: {e}")

    def cancel(self, notification_id: int) -> None:
        logger.debug(f"Notification {notification_id} cleared; nothing to withdraw by SMS")
