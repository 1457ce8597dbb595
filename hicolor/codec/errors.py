from __future__ import annotations


class HiColorError(Exception):
    """Base class for every failure raised by the HiColor codec."""

    code = "hicolor_error"
    message = "HiColor error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class HiColorIOError(HiColorError):
    """Short read/write on a stream, or a file that can't be opened."""

    code = "io_error"
    message = "I/O error"


class BadMagicError(HiColorError):
    """The header does not start with the HiColor signature."""

    code = "bad_magic"
    message = "bad magic value"


class UnknownVersionError(HiColorError):
    """The format variant marker is neither '5' nor '6'."""

    code = "unknown_version"
    message = "unknown version"


class InvalidValueError(HiColorError):
    """A packed value uses a bit the format variant reserves."""

    code = "invalid_value"
    message = "invalid value"


class InsufficientDataError(HiColorError):
    """The stream ended before the header or pixel data was complete."""

    code = "insufficient_data"
    message = "insufficient data"
