"""Main entry point for the message notifier."""

import argparse
import logging
import os
import sys

from .chime import AUDIO_AVAILABLE, InThreadChime, SoundDeviceCuePlayer
from .config import AppConfig, load_config
from .db import init_db
from .models import Recipients
from .notifier import MessageNotifier
from .preferences import SQLitePreferences
from .presenter import Presenter, TrayPresenter
from .twilio_notifier import TwilioSmsPresenter

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

CHIME_TIMEOUT_SECONDS = 10


def _create_presenter(config: AppConfig, method: str) -> Presenter:
    """Create the presenter for the requested delivery method."""
    if method == "sms":
        if config.twilio is None:
            raise ValueError(
                "SMS presenter requires TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, "
                "TWILIO_FROM_NUMBER and TWILIO_TO_NUMBER"
            )
        return TwilioSmsPresenter(config.twilio)
    return TrayPresenter()


def run_once(args) -> None:
    """Run a single notification update cycle."""
    conn = None
    try:
        logger.info("Loading configuration...")
        config = load_config()

        logger.info(f"Opening database at {config.db_path}...")
        conn = init_db(config.db_path)

        preferences = SQLitePreferences(conn, config.preferences)
        player = SoundDeviceCuePlayer() if AUDIO_AVAILABLE else None
        chime = InThreadChime(preferences, player, volume=config.cue_volume)
        notifier = MessageNotifier(
            conn,
            preferences,
            _create_presenter(config, args.presenter),
            chime,
        )

        if args.visible_thread is not None:
            notifier.set_visible_thread(args.visible_thread)

        if args.delivery_failed is not None:
            recipients = notifier.threads.recipients_for_thread_id(args.delivery_failed)
            if recipients is None:
                recipients = Recipients.of()
            notifier.notify_message_delivery_failed(recipients, args.delivery_failed)
        elif args.mark_read:
            notifier.mark_threads_read(args.mark_read, locked=args.locked)
        elif args.thread_id is not None:
            notifier.update_notification_for_thread(args.thread_id, locked=args.locked)
        else:
            notifier.update_notification(locked=args.locked)

        chime.wait(CHIME_TIMEOUT_SECONDS)
        logger.info("Run completed successfully.")

    except Exception as e:
        logger.error(f"Fatal error in run_once: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if conn is not None:
            conn.close()


def main():
    """Main entry point with command-line argument parsing."""
    parser = argparse.ArgumentParser(
        description="Aggregate unread and pending messages into a single notification"
    )
    parser.add_argument(
        "--thread-id",
        type=int,
        default=None,
        help="Thread that just received a message (runs the signal policy)"
    )
    parser.add_argument(
        "--visible-thread",
        type=int,
        default=None,
        help="Thread the user is currently viewing"
    )
    parser.add_argument(
        "--delivery-failed",
        type=int,
        default=None,
        metavar="THREAD_ID",
        help="Report a failed delivery for this thread"
    )
    parser.add_argument(
        "--mark-read",
        type=int,
        nargs="+",
        default=None,
        metavar="THREAD_ID",
        help="Mark these threads as read, then refresh the notification"
    )
    parser.add_argument(
        "--locked",
        action="store_true",
        help="Message content cannot be decrypted (hides pending pushes and mark-as-read)"
    )
    parser.add_argument(
        "--presenter",
        choices=["tray", "sms"],
        default="tray",
        help="Where to show the notification (default: tray)"
    )

    args = parser.parse_args()
    run_once(args)


if __name__ == "__main__":
    main()
