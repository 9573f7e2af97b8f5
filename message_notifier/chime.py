"""Short audio cue played when a message arrives in the thread being viewed."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import unquote, urlparse

from .errors import CueLoadError
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)

try:
    import sounddevice as sd
    import soundfile as sf
    AUDIO_AVAILABLE = True
except (ImportError, OSError):
    AUDIO_AVAILABLE = False
    logger.warning("Audio libraries not available. Install with: pip install sounddevice soundfile")

IN_THREAD_VOLUME = 0.25


class CuePlayer(ABC):
    """Plays an audio cue without blocking the caller."""

    @abstractmethod
    def play(self, uri: str, volume: float, loop: bool = False) -> threading.Event:
        """
        Start playing a cue.

        Args:
            uri: File path or file:// URI of the cue.
            volume: Playback gain, 0.0-1.0.
            loop: Whether to repeat until stopped.

        Returns:
            An Event set when playback finishes.

        Raises:
            CueLoadError: If the cue cannot be loaded or started.
        """
        pass


class AudioFocus:
    """Tracks transient audio focus held by notification cues."""

    def __init__(self):
        self._lock = threading.Lock()
        self._holders = 0

    def request_transient(self) -> None:
        with self._lock:
            self._holders += 1
        logger.debug("Transient audio focus requested")

    def abandon(self) -> None:
        with self._lock:
            self._holders = max(0, self._holders - 1)
        logger.debug("Audio focus abandoned")

    @property
    def held(self) -> bool:
        with self._lock:
            return self._holders > 0


def _path_from_uri(uri: str) -> str:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return unquote(parsed.path)
    if parsed.scheme and len(parsed.scheme) > 1:
        raise CueLoadError(f"Unsupported ringtone URI scheme: {uri}")
    return uri


class SoundDeviceCuePlayer(CuePlayer):
    """Decodes cues with soundfile and plays them through sounddevice."""

    def __init__(self):
        if not AUDIO_AVAILABLE:
            raise ImportError(
                "Audio libraries not installed. Install with: pip install sounddevice soundfile"
            )

    def play(self, uri: str, volume: float, loop: bool = False) -> threading.Event:
        path = _path_from_uri(uri)
        try:
            data, samplerate = sf.read(path, dtype="float32")
            sd.play(data * volume, samplerate, loop=loop)
        except Exception as e:
            raise CueLoadError(f"Could not play {uri}: {e}") from e

        done = threading.Event()

        def wait_for_completion():
            try:
                sd.wait()
            finally:
                done.set()

        threading.Thread(target=wait_for_completion, name="cue-wait", daemon=True).start()
        return done


class InThreadChime:
    """Plays the notification ringtone quietly, with no visual notification."""

    def __init__(self, preferences: PreferenceStore, player: Optional[CuePlayer],
                 focus: Optional[AudioFocus] = None, volume: float = IN_THREAD_VOLUME):
        self.preferences = preferences
        self.player = player
        self.focus = focus or AudioFocus()
        self.volume = volume
        self._last_worker: Optional[threading.Thread] = None

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the most recent chime has finished."""
        if self._last_worker is not None:
            self._last_worker.join(timeout)

    def play(self) -> Optional[threading.Thread]:
        """
        Dispatch the chime in the background.

        Returns:
            The worker thread, or None when in-thread alerts are off, no
            ringtone is set, or there is no player.
        """
        if not self.preferences.is_in_thread_notifications():
            return None

        ringtone = self.preferences.get_notification_ringtone()
        if not ringtone or self.player is None:
            return None

        worker = threading.Thread(
            target=self._play_cue, args=(ringtone,), name="in-thread-chime", daemon=True
        )
        worker.start()
        self._last_worker = worker
        return worker

    def _play_cue(self, ringtone: str) -> None:
        self.focus.request_transient()
        try:
            done = self.player.play(ringtone, self.volume, loop=False)
            done.wait()
        except Exception as e:
            logger.warning(f"In-thread chime failed for {ringtone}: {e}")
        finally:
            self.focus.abandon()
