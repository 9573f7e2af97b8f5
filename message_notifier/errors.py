"""Exceptions raised by the notification engine."""


class NotifierError(Exception):
    """Base class for notification engine errors."""


class MalformedSenderError(NotifierError):
    """A pending message's sender address could not be parsed."""


class SourceReadError(NotifierError):
    """The message store or pending queue could not be read."""


class DecorationParseError(NotifierError):
    """An LED color or blink pattern preference could not be parsed."""


class CueLoadError(NotifierError):
    """An audio cue could not be loaded or played."""
