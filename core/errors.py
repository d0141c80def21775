"""Codec errors with tracking IDs."""

from utils.ids import generate_tracking_id
from utils.timestamp import format_timestamp


class NfuidError(Exception):
    """Base error with unique ID and timestamp for tracking."""

    def __init__(self, message, context=None, cause=None):
        super().__init__(message)
        self.error_id = generate_tracking_id()
        self.timestamp = format_timestamp()
        self.context = context or {}
        self.cause = cause

    @property
    def message(self):
        return self.args[0] if self.args else ""

    def __str__(self):
        return f"[{self.error_id}] {super().__str__()}"

    def to_dict(self):
        return {
            "error": self.message,
            "error_id": self.error_id,
            "type": type(self).__name__,
            "context": self.context,
        }


class ConfigurationError(NfuidError, ValueError):
    """Rejected codec options (alphabet, field widths, unit, backend)."""

    def __init__(self, message, option=None, **kwargs):
        context = kwargs.pop("context", {})
        if option:
            context["option"] = option
        super().__init__(message, context=context, **kwargs)


class DecodeError(NfuidError, ValueError):
    """An identifier string could not be decoded."""


class InvalidCharacterError(DecodeError):
    """Input contains a character outside the alphabet."""

    def __init__(self, message, character=None, **kwargs):
        context = kwargs.pop("context", {})
        if character is not None:
            context["character"] = character
        super().__init__(message, context=context, **kwargs)


class MalformedIdError(DecodeError):
    """Field widths recovered from the value are inconsistent."""

    def __init__(self, message, nfuid=None, **kwargs):
        context = kwargs.pop("context", {})
        if nfuid is not None:
            context["nfuid"] = nfuid
        super().__init__(message, context=context, **kwargs)
