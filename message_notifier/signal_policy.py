"""Decides whether an update should alert the user."""

from enum import Enum


class SignalDecision(Enum):
    """Outcome of the signal policy for one update."""

    IN_THREAD = "in_thread"  # user is looking at the thread: chime, no notification
    SIGNAL = "signal"        # render with sound, vibration and ticker
    SILENT = "silent"        # render quietly


def decide_signal(thread_id: int, visible_thread: int, is_silenced: bool) -> SignalDecision:
    """
    Decide how to announce an update to a thread.

    Args:
        thread_id: The thread that received the update.
        visible_thread: The thread the user is currently viewing, -1 if none.
        is_silenced: Whether the thread's primary recipient is muted right now.

    Returns:
        The SignalDecision for this update.
    """
    if thread_id != -1 and thread_id == visible_thread:
        return SignalDecision.IN_THREAD
    if is_silenced:
        return SignalDecision.SILENT
    return SignalDecision.SIGNAL
